"""Content entities, blocks and the mutation pipeline."""

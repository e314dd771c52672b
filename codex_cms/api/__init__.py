"""HTTP surface of the content API."""

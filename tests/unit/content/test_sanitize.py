import pytest

from codex_cms.content.sanitize import sanitize_block_data, sanitize_rich_text, unwrap_editor_payload

pytestmark = pytest.mark.unit


class TestSanitizeRichText:
    def test_strips_script_tags(self):
        cleaned = sanitize_rich_text("<p>Hello</p><script>alert(1)</script>")
        assert "<script>" not in cleaned
        assert "<p>Hello</p>" in cleaned

    def test_strips_event_handler_attributes(self):
        cleaned = sanitize_rich_text('<img src="https://x.test/a.png" onerror="alert(1)">')
        assert "onerror" not in cleaned
        assert 'src="https://x.test/a.png"' in cleaned

    def test_drops_javascript_links(self):
        cleaned = sanitize_rich_text('<a href="javascript:alert(1)">x</a>')
        assert "javascript:" not in cleaned

    def test_keeps_safe_markup(self):
        html = '<h2>Title</h2><ul><li><a href="https://codex.test">link</a></li></ul>'
        assert sanitize_rich_text(html) == html

    def test_empty(self):
        assert sanitize_rich_text("") == ""


class TestSanitizeBlockData:
    def test_cleans_rich_text_keys_and_markup_anywhere(self):
        data = {
            "content": "<p>ok</p><script>x</script>",
            "items": [{"title": "<b onclick='x()'>Bold</b>"}],
            "headline": "Plain text & symbols",
        }
        cleaned = sanitize_block_data(data)
        assert "<script>" not in cleaned["content"]
        assert "onclick" not in cleaned["items"][0]["title"]
        assert cleaned["headline"] == "Plain text & symbols"

    def test_drops_dangerous_keys(self):
        cleaned = sanitize_block_data({"onClick": "x()", "__proto__": {}, "headline": "Hi"})
        assert cleaned == {"headline": "Hi"}

    def test_does_not_mutate_input(self):
        data = {"content": "<script>x</script>"}
        sanitize_block_data(data)
        assert data == {"content": "<script>x</script>"}

    def test_non_mappings_pass_through(self):
        assert sanitize_block_data(None) is None


class TestUnwrapEditorPayload:
    def test_unwraps_nested_block_layers(self):
        wrapped = {"data": {"type": "hero", "data": {"type": "hero", "headline": "Hi"}}}
        assert unwrap_editor_payload(wrapped) == {"type": "hero", "headline": "Hi"}

    def test_leaves_plain_data_keys_alone(self):
        payload = {"data": {"rows": [1, 2]}}
        assert unwrap_editor_payload(payload) == payload

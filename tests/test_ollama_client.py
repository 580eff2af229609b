from unittest.mock import MagicMock, patch

import requests

from app.services import OllamaClient


def _response(payload=None, json_error=None, http_error=None) -> MagicMock:
    resp = MagicMock()
    if http_error is not None:
        resp.raise_for_status.side_effect = http_error
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


class TestOllamaClient:
    def setup_method(self):
        self.client = OllamaClient(url="http://ollama.test/api/generate", model="llama3", timeout=3)

    @patch("app.services.requests.post")
    def test_returns_response_text(self, post):
        post.return_value = _response({"response": "  Save more.  "})
        assert self.client("prompt text") == "Save more."
        post.assert_called_once_with(
            "http://ollama.test/api/generate",
            json={"model": "llama3", "prompt": "prompt text", "stream": False},
            timeout=3,
        )

    @patch("app.services.requests.post")
    def test_empty_response(self, post):
        post.return_value = _response({"response": ""})
        assert self.client.generate("x") == "No response from assistant"

    @patch("app.services.requests.post")
    def test_error_field(self, post):
        post.return_value = _response({"error": "model not found"})
        assert self.client.generate("x") == "Assistant error: model not found"

    @patch("app.services.requests.post")
    def test_connection_failure(self, post):
        post.side_effect = requests.ConnectionError("refused")
        assert self.client.generate("x").startswith("Assistant request failed")

    @patch("app.services.requests.post")
    def test_http_error(self, post):
        post.return_value = _response(http_error=requests.HTTPError("500 Server Error"))
        assert "500" in self.client.generate("x")

    @patch("app.services.requests.post")
    def test_invalid_json(self, post):
        post.return_value = _response(json_error=ValueError("bad json"))
        assert self.client.generate("x") == "Assistant returned an unreadable response"

import logging

import requests

from config import ASSISTANT_TIMEOUT_SECONDS, OLLAMA_MODEL, OLLAMA_URL

logger = logging.getLogger(__name__)


class OllamaClient:
    """Text generation over a local Ollama server.

    `generate` always returns a string: the model answer, or a short
    diagnostic when the server is unreachable or answers with an error.
    Instances are callable so they plug straight into `AssistantService`.
    """

    def __init__(
        self,
        url: str = OLLAMA_URL,
        model: str = OLLAMA_MODEL,
        timeout: float = ASSISTANT_TIMEOUT_SECONDS,
    ):
        self._url = url
        self._model = model
        self._timeout = timeout

    @property
    def model(self) -> str:
        return self._model

    def generate(self, prompt: str) -> str:
        payload = {"model": self._model, "prompt": prompt, "stream": False}
        try:
            resp = requests.post(self._url, json=payload, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.warning("Assistant request to %s failed: %s", self._url, e)
            return f"Assistant request failed: {e}"
        except ValueError as e:
            logger.warning("Assistant returned invalid JSON: %s", e)
            return "Assistant returned an unreadable response"

        if not isinstance(data, dict):
            return "Assistant returned an unreadable response"
        if data.get("error"):
            logger.warning("Assistant error from %s: %s", self._url, data["error"])
            return f"Assistant error: {data['error']}"
        text = str(data.get("response") or "").strip()
        return text or "No response from assistant"

    def __call__(self, prompt: str) -> str:
        return self.generate(prompt)

"""Client for the remote generative model.

The model is reached over its REST ``generateContent`` endpoint with
``httpx``. Every failure mode (timeout, transport error, non-2xx status, a
reply that is not a JSON object) surfaces as
:class:`~clubhub.services.exceptions.UpstreamFailure` so callers have a
single exception to fall back on.
"""

from __future__ import annotations

import json
import logging

import httpx

from .config import get_ai_api_key, get_ai_model, get_ai_timeout
from .services.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GenerativeClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._http = httpx.Client(base_url=BASE_URL, timeout=timeout, transport=transport)

    def generate_json(self, prompt: str) -> dict:
        """Send ``prompt`` and return the model's reply parsed as a JSON object."""
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        try:
            resp = self._http.post(
                f"/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as exc:
            raise UpstreamFailure(f"Generative model timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamFailure(f"Generative model request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamFailure("Generative model returned invalid JSON") from exc

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamFailure("Generative model returned no content") from exc
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise UpstreamFailure("Generative model output is not JSON") from exc
        if not isinstance(payload, dict):
            raise UpstreamFailure("Generative model output is not a JSON object")
        return payload

    def close(self) -> None:
        self._http.close()


def build_client() -> GenerativeClient | None:
    """Return a configured client, or ``None`` when no API key is set."""
    api_key = get_ai_api_key()
    if not api_key:
        logger.info("GOOGLE_GENAI_API_KEY not set; AI suggestions use the fallback only")
        return None
    return GenerativeClient(api_key, model=get_ai_model(), timeout=get_ai_timeout())

"""OpenAI-compatible chat completion provider."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from namecraft.core.errors import ProviderError

from .base import ProviderAdapter
from .payloads import LLMPayload

DEFAULT_MODEL = "grok-3-mini"
DEFAULT_BASE_URL = "https://api.x.ai/v1"


def _prompt(query: str, domain: str, options: Mapping[str, Any]) -> str:
    if options.get("mode") == "names":
        count = int(options.get("count", 5))
        content_type = "band names" if options.get("content_type", "band") == "band" else "song titles"
        words = options.get("word_count") or "any number of"
        return (
            f"Suggest {count} original {content_type} of {words} words each for: {query}. "
            'Reply with a JSON object {"names": [...]} and nothing else.'
        )
    if domain in ("vocabulary", "lyrics"):
        return (
            f"List 30 evocative single English words associated with: {query}. "
            'Reply with a JSON object {"words": [...]} and nothing else.'
        )
    return (
        f"Describe the {domain} '{query}' in JSON with keys name, genres (list) "
        "and artists (list, may be empty). Reply with the JSON object only."
    )


class LLMCompletionAdapter(ProviderAdapter):
    """Ask a chat model for vocabulary or candidate names as a JSON object."""

    name = "llm"
    domains = ("vocabulary", "lyrics", "artist", "track", "genre")
    base_url = DEFAULT_BASE_URL
    payload_type = LLMPayload
    default_timeout = 15.0

    def __init__(self, api_key: str, *, model: str = DEFAULT_MODEL, temperature: float = 0.9, **kwargs: Any) -> None:
        if not api_key:
            raise ValueError("an API key is required")
        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        super().__init__(**kwargs)

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        body = {
            "model": self.model,
            "temperature": float(options.get("temperature", self.temperature)),
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": "You are a creative assistant for musicians. Answer in JSON."},
                {"role": "user", "content": _prompt(query, domain, options)},
            ],
        }
        data = await self._post_json(f"{self.base_url.rstrip('/')}/chat/completions", body)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, "completion has no message content") from exc
        try:
            parsed = json.loads(content)
        except (TypeError, ValueError) as exc:
            raise ProviderError(self.name, "completion is not valid JSON") from exc
        if not isinstance(parsed, Mapping):
            raise ProviderError(self.name, "completion JSON is not an object")
        return self._clean(dict(parsed))

    @staticmethod
    def _clean(parsed: Dict[str, Any]) -> Dict[str, Any]:
        for key in ("words", "names", "genres", "artists"):
            if key in parsed:
                raw = parsed.get(key) if isinstance(parsed.get(key), list) else []
                values: List[str] = [str(item).strip() for item in raw if str(item).strip()]
                if values:
                    parsed[key] = values
                else:
                    parsed.pop(key)
        return parsed


__all__ = ["DEFAULT_BASE_URL", "DEFAULT_MODEL", "LLMCompletionAdapter"]

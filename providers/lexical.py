"""Word-association providers: Datamuse, ConceptNet and PoetryDB."""

from __future__ import annotations

from typing import Any, Dict, Mapping
from urllib.parse import quote

from namecraft.core.errors import ProviderError

from .base import ProviderAdapter
from .payloads import ConceptNetPayload, DatamusePayload, PoetryDbPayload


def _term(query: str) -> str:
    return " ".join(query.lower().split())


class DatamuseAdapter(ProviderAdapter):
    """Means-like lookups with part-of-speech, pronunciation and syllable metadata."""

    name = "datamuse"
    domains = ("vocabulary",)
    base_url = "https://api.datamuse.com"
    payload_type = DatamusePayload
    default_timeout = 8.0

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        params = {"ml": _term(query), "max": int(options.get("limit", 50)), "md": "prs"}
        data = await self._get_json(f"{self.base_url}/words", params=params)
        if not isinstance(data, list):
            raise ProviderError(self.name, "expected a list of words")
        return data


class ConceptNetAdapter(ProviderAdapter):
    """Concept edges starting from an English term."""

    name = "conceptnet"
    domains = ("vocabulary", "lyrics")
    base_url = "https://api.conceptnet.io"
    payload_type = ConceptNetPayload
    default_timeout = 10.0

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        concept = _term(query).replace(" ", "_")
        params = {"start": f"/c/en/{concept}", "limit": int(options.get("limit", 50))}
        data = await self._get_json(f"{self.base_url}/query", params=params)
        if not isinstance(data, Mapping) or not data.get("edges"):
            raise ProviderError(self.name, "no edges for concept")
        return data


class PoetryDbAdapter(ProviderAdapter):
    """Poems whose lines contain the query term."""

    name = "poetrydb"
    domains = ("vocabulary", "lyrics")
    base_url = "https://poetrydb.org"
    payload_type = PoetryDbPayload
    default_timeout = 10.0

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        term = quote(_term(query).split(" ")[0] if query.strip() else "", safe="")
        if not term:
            raise ProviderError(self.name, "empty search term")
        data = await self._get_json(f"{self.base_url}/lines/{term}/author,title,lines")
        # A miss is reported in the body with a 200 status.
        if isinstance(data, Mapping):
            raise ProviderError(self.name, str(data.get("reason") or "not found"), status=data.get("status"))
        return list(data)[: int(options.get("limit", 10))]


__all__ = ["DatamuseAdapter", "ConceptNetAdapter", "PoetryDbAdapter"]

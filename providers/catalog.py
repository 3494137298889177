"""Music catalog providers: Spotify, Last.fm and MusicBrainz."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from namecraft.core.errors import ProviderError

from .base import ProviderAdapter
from .payloads import LastFmArtistPayload, MusicBrainzArtistPayload, SpotifyArtistPayload


def _items(data: Any, *path: str) -> List[Any]:
    for key in path:
        if not isinstance(data, Mapping):
            return []
        data = data.get(key)
    return list(data) if isinstance(data, list) else []


class SpotifyAdapter(ProviderAdapter):
    """Catalog search with a pre-issued bearer token."""

    name = "spotify"
    domains = ("artist", "track", "genre")
    base_url = "https://api.spotify.com/v1"
    payload_type = SpotifyArtistPayload

    def __init__(self, token: str, **kwargs: Any) -> None:
        if not token:
            raise ValueError("a Spotify access token is required")
        self._token = token
        super().__init__(**kwargs)

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        kind = "track" if domain == "track" else "artist"
        search = f'genre:"{query}"' if domain == "genre" else query
        params = {"q": search, "type": kind, "limit": int(options.get("limit", 5))}
        data = await self._get_json(f"{self.base_url}/search", params=params)
        items = _items(data, f"{kind}s", "items")
        if domain == "genre":
            genres: List[str] = []
            for item in items:
                for genre in _items(item, "genres"):
                    if isinstance(genre, str) and genre not in genres:
                        genres.append(genre)
            return {"name": query, "genres": genres} if genres else {}
        return items


class LastFmAdapter(ProviderAdapter):
    """Last.fm ``*.getinfo`` methods keyed by API key."""

    name = "lastfm"
    domains = ("artist", "track", "genre")
    base_url = "https://ws.audioscrobbler.com/2.0/"
    payload_type = LastFmArtistPayload

    _METHODS = {"artist": "artist.getinfo", "track": "track.getinfo", "genre": "tag.getinfo"}

    def __init__(self, api_key: str, **kwargs: Any) -> None:
        if not api_key:
            raise ValueError("a Last.fm API key is required")
        self._api_key = api_key
        super().__init__(**kwargs)

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        params: Dict[str, Any] = {
            "method": self._METHODS[domain],
            "api_key": self._api_key,
            "format": "json",
        }
        if domain == "artist":
            params["artist"] = query
        elif domain == "track":
            params["track"] = query
            artist: Optional[str] = options.get("artist")
            if artist:
                params["artist"] = artist
        else:
            params["tag"] = query
        data = await self._get_json(self.base_url, params=params)
        if isinstance(data, Mapping) and data.get("error"):
            raise ProviderError(self.name, str(data.get("message") or "lastfm error"), status=data.get("error"))
        if domain == "genre":
            tag = data.get("tag") if isinstance(data, Mapping) else None
            if not isinstance(tag, Mapping) or not tag.get("name"):
                return {}
            return {"name": tag["name"], "toptags": {"tag": [{"name": tag["name"]}]}, "reach": tag.get("reach")}
        entity = data.get(domain) if isinstance(data, Mapping) else None
        return entity if isinstance(entity, Mapping) else {}


class MusicBrainzAdapter(ProviderAdapter):
    """MusicBrainz web service search; requires an identifying user agent."""

    name = "musicbrainz"
    domains = ("artist", "track", "genre")
    base_url = "https://musicbrainz.org/ws/2"
    payload_type = MusicBrainzArtistPayload

    _ENDPOINTS = {"artist": ("artist", "artists"), "track": ("recording", "recordings"), "genre": ("tag", "tags")}

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        endpoint, key = self._ENDPOINTS[domain]
        params = {"query": query, "fmt": "json", "limit": int(options.get("limit", 5))}
        data = await self._get_json(f"{self.base_url}/{endpoint}", params=params)
        items = _items(data, key)
        if domain == "genre":
            return {"name": query, "tags": items} if items else {}
        return items


__all__ = ["SpotifyAdapter", "LastFmAdapter", "MusicBrainzAdapter"]

"""Linear GraphQL API client wrapper (read-only queries + TTL cache)."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from .config import (
    CYCLES_PAGE_SIZE,
    EXCLUDED_STATE_NAME,
    LINEAR_CACHE_TTL_SECONDS,
    LINEAR_ENDPOINT,
    LINEAR_REQUEST_TIMEOUT_SECONDS,
)
from .errors import IssueFetchError, MissingCredential
from .settings import resolve_token

logger = logging.getLogger(__name__)

ISSUES_QUERY = """
query Issues($excludedState: String!) {
  issues(filter: { state: { name: { neq: $excludedState } } }) {
    nodes {
      id
      title
      identifier
      url
      state { name color }
      cycle { id number startsAt endsAt }
      assignee { id name avatarUrl }
    }
  }
}
"""

CYCLES_QUERY = """
query Cycles($first: Int!) {
  cycles(first: $first) {
    nodes { id number startsAt endsAt }
  }
}
"""

USERS_QUERY = """
query Users {
  users {
    nodes { id name email avatarUrl active }
  }
}
"""

VIEWER_QUERY = """
query Viewer {
  viewer { id name email avatarUrl active }
}
"""


class LinearAPI:
    def __init__(
        self,
        token: str | None = None,
        *,
        endpoint: str = LINEAR_ENDPOINT,
        token_provider: Callable[[], str | None] | None = None,
        session: requests.Session | None = None,
    ):
        self.endpoint = endpoint
        self._token = token
        self._token_provider = token_provider or resolve_token
        self.session = session or requests.Session()
        # Simple in-memory cache: {(hash): (timestamp, data)}
        self._cache: dict[str, tuple[float, dict]] = {}
        self._cache_ttl = LINEAR_CACHE_TTL_SECONDS

    @property
    def token(self) -> str | None:
        return self._token or self._token_provider()

    @property
    def cache_ttl(self) -> float:
        return self._cache_ttl

    @cache_ttl.setter
    def cache_ttl(self, seconds: float) -> None:
        self._cache_ttl = max(0.0, float(seconds))

    def set_token(self, token: str | None) -> None:
        self._token = token or None
        self.clear_cache()

    def clear_cache(self) -> None:
        """Reset the in-memory query cache."""
        cache = getattr(self, "_cache", None)
        if isinstance(cache, dict):
            cache.clear()

    def _cache_key(self, query: str, variables: dict | None) -> str:
        payload = {"query": query, "variables": variables or {}}
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def request(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        token = self.token
        if not token:
            raise MissingCredential()
        key = self._cache_key(query, variables)
        now = time.time()
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            return cached[1]
        try:
            resp = self.session.post(
                self.endpoint,
                json={"query": query, "variables": variables or {}},
                headers={"Authorization": token, "Content-Type": "application/json"},
                timeout=LINEAR_REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise IssueFetchError(f"Linear request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise IssueFetchError(f"Linear query failed {resp.status_code}: {resp.text[:200]}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise IssueFetchError(f"Linear returned a non-JSON response: {resp.text[:200]}") from exc
        errors = payload.get("errors")
        if errors:
            message = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict)) or str(errors)
            raise IssueFetchError(f"Linear query returned errors: {message[:200]}")
        data = payload.get("data") or {}
        self._cache[key] = (now, data)
        return data

    def fetch_issues(self) -> list[dict[str, Any]]:
        data = self.request(ISSUES_QUERY, {"excludedState": EXCLUDED_STATE_NAME})
        nodes = (data.get("issues") or {}).get("nodes") or []
        logger.debug("Fetched %s issues", len(nodes))
        return nodes

    def fetch_cycles(self) -> list[dict[str, Any]]:
        data = self.request(CYCLES_QUERY, {"first": CYCLES_PAGE_SIZE})
        return (data.get("cycles") or {}).get("nodes") or []

    def fetch_users(self) -> list[dict[str, Any]]:
        data = self.request(USERS_QUERY)
        nodes = (data.get("users") or {}).get("nodes") or []
        return [user for user in nodes if user.get("active")]

    def viewer(self) -> dict[str, Any]:
        data = self.request(VIEWER_QUERY)
        return data.get("viewer") or {}

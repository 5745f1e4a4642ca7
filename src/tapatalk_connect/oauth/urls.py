"""URL helpers and the inbound callback request context."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


@dataclass(frozen=True)
class CallbackRequest:
    """The request a provider redirected the user back with.

    Attributes:
        query_params: GET parameters of the request
        url: Full URL of the current request, if known
    """

    query_params: Mapping[str, str] = field(default_factory=dict)
    url: str | None = None

    @classmethod
    def from_url(cls, url: str) -> CallbackRequest:
        """Build a request context from a full callback URL.

        Repeated parameters keep their last value.
        """
        query = urlsplit(url).query
        return cls(query_params=dict(parse_qsl(query, keep_blank_values=True)), url=url)

    def get(self, key: str) -> str | None:
        """Return a GET parameter, or None when absent or empty."""
        value = self.query_params.get(key)
        return value or None


def build_query(params: Mapping[str, object], separator: str = "&") -> str:
    """Form-encode ``params`` joined with ``separator``.

    Parameters whose value is None are left out.
    """
    return separator.join(
        urlencode({key: value}) for key, value in params.items() if value is not None
    )


def remove_params_from_url(url: str, params_to_filter: list[str]) -> str:
    """Return ``url`` without the given query parameters."""
    parts = urlsplit(url)
    if not parts.query:
        return url

    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in params_to_filter
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))

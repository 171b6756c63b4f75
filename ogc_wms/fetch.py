"""Fetch capabilities documents and decide how service URLs are requested."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable
from urllib.parse import urlsplit, urlunsplit

import requests
from loguru import logger

from .errors import TransportFailureError

__all__ = [
    "HTTPGet",
    "DocumentFetcher",
    "CorsProxy",
    "clean_url",
    "proxy_url",
    "get_document",
    "fetch_document",
]

HTTPGet = Callable[[str], Any]
DocumentFetcher = Callable[[str], Awaitable[bytes]]


def _default_http_get(url: str) -> Any:
    return requests.get(url, timeout=30)


def clean_url(url: str) -> str:
    """Strip the query (and fragment) portion of ``url``."""

    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


@dataclass(frozen=True)
class CorsProxy:
    """Routes requests for some hosts through a proxy endpoint.

    ``get_url`` appends the target URL to ``base_url``, so ``base_url`` is
    typically something like ``"https://catalog.example/proxy/"``.
    """

    base_url: str
    proxy_domains: tuple[str, ...] = ()
    always_use_proxy: bool = False

    def should_use_proxy(self, url: str) -> bool:
        host = (urlsplit(url).hostname or "").lower()
        if not host:
            return False
        if self.always_use_proxy:
            return True
        for domain in self.proxy_domains:
            domain = domain.lower().lstrip(".")
            if host == domain or host.endswith(f".{domain}"):
                return True
        return False

    def get_url(self, url: str) -> str:
        return f"{self.base_url}{url}"


def proxy_url(proxy: CorsProxy | None, url: str) -> str:
    if proxy is not None and proxy.should_use_proxy(url):
        return proxy.get_url(url)
    return url


def get_document(url: str, http_get: HTTPGet | None = None) -> bytes:
    """Fetch ``url`` and return the raw response body.

    Parameters
    ----------
    url:
        Fully qualified URL of the document.
    http_get:
        Optional callable used to perform the HTTP GET request. It must accept a
        URL and return an object that exposes ``status_code`` and ``content``
        (or ``text``) like a :mod:`requests` response. Defaults to
        :func:`requests.get`.

    Raises
    ------
    TransportFailureError
        If the request fails or the server responds with an HTTP error.
    """

    getter = http_get or _default_http_get

    try:
        response = getter(url)
    except Exception as exc:
        raise TransportFailureError(f"Failed to fetch '{url}'.") from exc

    status_code = getattr(response, "status_code", None)
    if status_code is not None and int(status_code) >= 400:
        raise TransportFailureError(f"Request to '{url}' failed with status code {status_code}.")

    if hasattr(response, "raise_for_status"):
        try:
            response.raise_for_status()
        except Exception as exc:
            raise TransportFailureError(f"Request to '{url}' failed: {exc}.") from exc

    content = getattr(response, "content", None)
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)

    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text.encode("utf-8")

    raise TransportFailureError(f"Response from '{url}' has no body.")


async def fetch_document(url: str, *, http_get: HTTPGet | None = None) -> bytes:
    """Fetch ``url`` without blocking the event loop."""

    logger.debug(f"Fetching {url}")
    return await asyncio.to_thread(get_document, url, http_get)

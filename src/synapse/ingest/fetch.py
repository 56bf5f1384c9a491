"""Network fetch collaborator with SSRF protection.

Security requirements:
- SSRF guard: ipaddress module blocks private/loopback/link-local ranges before
  any connection is established.
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html, application/xhtml+xml and text/plain.
- Max response body: configurable (default 5 MB).
- Timeout: configurable (default 30 seconds, connect + read).
- Max redirects: configurable (default 3).
"""

from __future__ import annotations

import http.client
import ipaddress
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Protocol

from synapse.config import FetchCfg
from synapse.errors import FetchError, SsrfError

_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "application/xhtml+xml", "text/plain"}


@dataclass
class FetchResponse:
    status: int
    body: str
    content_type: str = "text/html"

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class FetchClient(Protocol):
    """Anything that can GET a URL. Extractors depend on this, not on urllib."""

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> FetchResponse: ...


class Fetcher:
    """urllib-based FetchClient.

    SSRF protection is applied *before* any connection is made: the hostname is
    resolved and every resulting address is checked against private, loopback,
    link-local and reserved ranges.

    Raises FetchError (or SsrfError) for transport failures; HTTP error
    statuses are returned as a FetchResponse so callers can decide.
    """

    def __init__(self, config: FetchCfg | None = None) -> None:
        self._config = config or FetchCfg()

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> FetchResponse:
        self._validate_scheme(url)
        self._check_ssrf(url)

        request_headers = {"User-Agent": self._config.user_agent}
        request_headers.update(headers or {})
        request = urllib.request.Request(url, headers=request_headers)
        opener = urllib.request.build_opener(
            _LimitedRedirectHandler(self._config.max_redirects)
        )

        try:
            response = opener.open(request, timeout=self._config.timeout)
        except urllib.error.HTTPError as exc:
            return FetchResponse(status=exc.code, body="", content_type="")
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise FetchError(f"Failed to fetch URL '{url}': {exc}") from exc

        with response:
            raw_ct = response.headers.get("Content-Type", "text/html")
            ct = raw_ct.split(";")[0].strip().lower()
            if ct not in _ALLOWED_CONTENT_TYPES:
                raise FetchError(
                    f"Unsupported Content-Type '{ct}' for URL '{url}'. "
                    f"Accepted: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
                )

            try:
                body = response.read(self._config.max_bytes + 1)
                if len(body) > self._config.max_bytes:
                    raise FetchError(
                        f"Response body exceeds {self._config.max_bytes} bytes for URL '{url}'."
                    )
                charset = response.headers.get_content_charset() or "utf-8"
                text = body.decode(charset, errors="replace")
            except (OSError, http.client.HTTPException, LookupError) as exc:
                raise FetchError(f"Failed to read response from '{url}': {exc}") from exc
            status = getattr(response, "status", 200)

        return FetchResponse(status=status, body=text, content_type=ct)

    @staticmethod
    def _validate_scheme(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in _ALLOWED_SCHEMES:
            raise FetchError(
                f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
            )

    @staticmethod
    def _check_ssrf(url: str) -> None:
        """Resolve the hostname and block private/reserved IP ranges."""
        parsed = urllib.parse.urlparse(url)
        hostname = parsed.hostname
        if not hostname:
            raise FetchError(f"URL has no hostname: {url}")

        try:
            addrinfos = socket.getaddrinfo(hostname, None)
        except socket.gaierror as exc:
            raise FetchError(f"DNS resolution failed for '{hostname}': {exc}") from exc

        for addrinfo in addrinfos:
            addr_str = addrinfo[4][0]
            try:
                ip = ipaddress.ip_address(addr_str)
            except ValueError:
                continue
            if (
                ip.is_private
                or ip.is_loopback
                or ip.is_link_local
                or ip.is_reserved
                or ip.is_multicast
                or ip.is_unspecified
            ):
                raise SsrfError(
                    f"URL resolves to private address ({ip}). "
                    "Access to internal network addresses is not allowed."
                )


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise FetchError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)

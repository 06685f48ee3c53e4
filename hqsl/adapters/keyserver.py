"""HKP key server client.

Keys are fetched with ``GET pks/lookup`` and published with ``POST pks/add``.
Servers are tried in the configured order, each once, and a failing server is
logged and skipped rather than retried.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional, Set
from urllib.parse import quote, urlsplit, urlunsplit

import httpx

from hqsl.adapters import openpgp
from hqsl.errors import KeyNotFoundError
from hqsl.middleware.logging import log_debug, log_error, log_info, log_warning

DEFAULT_KEYSERVER = "https://hqsl.net"
DEFAULT_TIMEOUT = 1.0  # seconds
HKP_PORT = 11371

END_OF_KEY_BLOCK = "-----END PGP PUBLIC KEY BLOCK-----"


def normalize_url(url: str) -> str:
    """Turn an HKP/HKPS server URL into an HTTP(S) base URL ending in ``/``.

    ``hkp://host`` becomes ``http://host:11371/`` unless a port is given,
    ``hkps://host`` becomes ``https://host/``.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc

    if scheme == "hkps":
        scheme = "https"
    elif scheme == "hkp":
        scheme = "http"
        if parts.port is None:
            netloc = f"{netloc}:{HKP_PORT}"

    result = urlunsplit((scheme, netloc, parts.path, parts.query, ""))
    if not result.endswith("/"):
        result += "/"
    return result


class KeyServerClient:
    """Looks keys up on, and publishes keys to, a list of HKP servers."""

    def __init__(
        self,
        key_servers: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        servers = [s for s in (key_servers or []) if s]
        self.key_servers: List[str] = [
            normalize_url(s) for s in (servers or [DEFAULT_KEYSERVER])
        ]
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._client = client
        # Strong references to publication tasks until they finish.
        self._background: Set[asyncio.Task] = set()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, timeout=self.timeout, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.request(method, url, **kwargs)

    async def lookup(self, query: str) -> list:
        """Fetch keys matching ``query`` from the first server that has them.

        When looking keys up by id, prefix the id with ``0x`` yourself.

        Returns:
            Every public key in the first usable reply.

        Raises:
            KeyNotFoundError: once every server has failed or come up empty.
        """
        for base_url in self.key_servers:
            url = f"{base_url}pks/lookup"
            params = {"op": "get", "options": "mr", "search": query}
            try:
                r = await self._request("GET", url, params=params)
            except httpx.TimeoutException:
                log_warning("keyserver_timeout", server=base_url, query=query)
                continue
            except httpx.HTTPError as e:
                log_warning("keyserver_request_error", server=base_url, query=query, error=str(e))
                continue

            if r.status_code != 200:
                log_info(
                    "keyserver_response_status",
                    server=base_url,
                    query=query,
                    status=r.status_code,
                )
                continue

            text = r.text
            if END_OF_KEY_BLOCK not in text:
                log_warning("keyserver_unrecognized_response", server=base_url, query=query)
                continue

            try:
                keys = openpgp.parse_keys(text)
            except Exception as e:
                log_warning(
                    "keyserver_unrecognized_response",
                    server=base_url,
                    query=query,
                    error=str(e),
                )
                continue

            log_debug("keyserver_lookup", server=base_url, query=query, keys=len(keys))
            return keys

        raise KeyNotFoundError(f"Key not found: {query}")

    async def _publish_one(self, base_url: str, keytext: str) -> None:
        try:
            r = await self._request(
                "POST",
                f"{base_url}pks/add",
                content="keytext=" + quote(keytext, safe=""),
                headers={
                    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8"
                },
            )
        except Exception as e:
            log_error("keyserver_publish_error", server=base_url, error=str(e))
            return
        log_info("keyserver_publish", server=base_url, status=r.status_code)

    async def publish(self, key, target: Optional[str] = None) -> List[asyncio.Task]:
        """Send a public key to ``target``, or to every configured server.

        Requests run in the background and their outcome is only logged. The
        scheduled tasks are returned for callers that want to wait on them.
        """
        try:
            keytext = openpgp.armor(key)
        except Exception as e:
            log_error("keyserver_publish_error", error=f"Unusable key: {e}")
            return []
        servers = [normalize_url(target)] if target else self.key_servers

        tasks = []
        for base_url in servers:
            task = asyncio.create_task(self._publish_one(base_url, keytext))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            tasks.append(task)
        return tasks

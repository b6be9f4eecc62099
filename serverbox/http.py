from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
import http.client
import ipaddress
import json
import logging
import urllib.error
import urllib.parse
import urllib.request

from .exceptions import MalformedResponseError, ServerIOError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

MAX_TEXT_RESPONSE_BYTES = 16 * 1024 * 1024
MAX_DOWNLOAD_BYTES = 512 * 1024 * 1024
CHUNK_SIZE = 1024 * 1024
PARTIAL_SUFFIX = ".part"

ProgressHandler = Callable[[int, int | None], None]

_NETWORK_ERRORS = (
    urllib.error.URLError,
    http.client.HTTPException,
    ConnectionError,
    TimeoutError,
)


class HttpClient:
    def __init__(
        self,
        timeout_seconds: int = 30,
        max_text_response_bytes: int = MAX_TEXT_RESPONSE_BYTES,
        max_download_bytes: int = MAX_DOWNLOAD_BYTES,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_text_response_bytes = max_text_response_bytes
        self.max_download_bytes = max_download_bytes
        self.chunk_size = chunk_size
        self.user_agent = "serverbox/0.1"

    def _request(self, url: str) -> urllib.request.Request:
        self._validate_url(url)
        return urllib.request.Request(url, headers={"User-Agent": self.user_agent})

    def get_json(self, url: str) -> Any:
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(
                self._request(url), timeout=self.timeout_seconds
            ) as response:
                payload = self._read_limited(
                    response,
                    max_bytes=self.max_text_response_bytes,
                    url=url,
                )
        except _NETWORK_ERRORS as exc:
            raise UpstreamUnavailableError(f"Request failed for {url}: {exc}") from exc
        try:
            return json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedResponseError(f"Invalid JSON from {url}") from exc

    def download(
        self,
        url: str,
        destination: Path,
        progress: ProgressHandler | None = None,
    ) -> Path:
        """Stream ``url`` into ``destination``.

        Bytes go to ``<destination>.part`` first, which is renamed over the
        destination once the stream completes. A failed stream leaves the
        partial file on disk.
        """
        partial = destination.with_name(destination.name + PARTIAL_SUFFIX)
        logger.debug("Downloading %s to %s", url, destination)
        try:
            with urllib.request.urlopen(
                self._request(url), timeout=self.timeout_seconds
            ) as response:
                total = self._declared_size(response, destination)
                try:
                    handle = partial.open("wb")
                except OSError as exc:
                    raise ServerIOError(f"Could not create {partial}: {exc}") from exc
                with handle:
                    received = 0
                    while True:
                        chunk = response.read(self.chunk_size)
                        if not chunk:
                            break
                        received += len(chunk)
                        if received > self.max_download_bytes:
                            raise MalformedResponseError(
                                f"Download for {destination.name} exceeded the allowed size limit."
                            )
                        try:
                            handle.write(chunk)
                        except OSError as exc:
                            raise ServerIOError(
                                f"Could not write {partial}: {exc}"
                            ) from exc
                        if progress:
                            progress(received, total)
        except _NETWORK_ERRORS as exc:
            raise UpstreamUnavailableError(f"Download failed for {url}: {exc}") from exc
        try:
            partial.replace(destination)
        except OSError as exc:
            raise ServerIOError(
                f"Could not move {partial.name} to {destination}: {exc}"
            ) from exc
        return destination

    def _declared_size(self, response, destination: Path) -> int | None:
        content_length = response.headers.get("Content-Length")
        if not content_length:
            return None
        try:
            declared_size = int(content_length)
        except ValueError:
            return None
        if declared_size > self.max_download_bytes:
            raise MalformedResponseError(
                f"Download for {destination.name} exceeds the size limit."
            )
        return declared_size

    @staticmethod
    def _validate_url(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme.lower() != "https":
            raise UpstreamUnavailableError(f"Blocked URL with unsupported scheme: {url}")
        host = parsed.hostname
        if not host:
            raise UpstreamUnavailableError(f"Blocked URL with missing host: {url}")
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            return
        if (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_multicast
            or ip.is_reserved
        ):
            raise UpstreamUnavailableError(f"Blocked URL targeting disallowed address: {url}")

    def _read_limited(self, response, max_bytes: int, url: str) -> bytes:
        chunks: list[bytes] = []
        received = 0
        while True:
            chunk = response.read(self.chunk_size)
            if not chunk:
                break
            received += len(chunk)
            if received > max_bytes:
                raise MalformedResponseError(
                    f"Response from {url} exceeded the allowed size limit."
                )
            chunks.append(chunk)
        return b"".join(chunks)

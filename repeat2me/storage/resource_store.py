"""In-memory blob URL registry and fetch-like resource reader."""

import logging
import threading
import uuid
from pathlib import Path
from typing import Dict, Tuple
from urllib.parse import urlparse, unquote

import aiohttp

from ..errors import ResourceNotFoundError

logger = logging.getLogger(__name__)

BLOB_SCHEME = "blob:"
BLOB_PREFIX = "blob:repeat2me/"


class ResourceStore:
    """Holds audio blobs addressed by ``blob:`` URLs.

    Whoever creates a URL owns it and is responsible for revoking it once it
    has been superseded, otherwise the bytes stay in memory.
    """

    def __init__(self, http_timeout: float = 30.0):
        """Initialize resource store.

        Args:
            http_timeout: Total timeout in seconds for ``http(s)`` fetches
        """
        self.http_timeout = http_timeout
        self._blobs: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def create_object_url(self, data: bytes, mime_type: str = "audio/wav") -> str:
        """Register bytes and return a new ``blob:`` URL for them."""
        url = f"{BLOB_PREFIX}{uuid.uuid4()}"
        with self._lock:
            self._blobs[url] = (bytes(data), mime_type)
        logger.debug(f"Created object URL {url} ({len(data)} bytes, {mime_type})")
        return url

    def revoke_object_url(self, url: str) -> bool:
        """Release the blob behind ``url``.

        Returns:
            True if a blob was released, False if the URL was unknown
        """
        with self._lock:
            released = self._blobs.pop(url, None) is not None
        if released:
            logger.debug(f"Revoked object URL {url}")
        else:
            logger.warning(f"Revoke of unknown object URL ignored: {url}")
        return released

    def read(self, url: str) -> bytes:
        """Return the bytes of a ``blob:`` URL."""
        with self._lock:
            entry = self._blobs.get(url)
        if entry is None:
            raise ResourceNotFoundError(url)
        return entry[0]

    def mime_type(self, url: str) -> str:
        with self._lock:
            entry = self._blobs.get(url)
        if entry is None:
            raise ResourceNotFoundError(url)
        return entry[1]

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)

    async def fetch(self, url: str) -> bytes:
        """Resolve any supported URL to its bytes.

        Args:
            url: ``blob:`` URL from this store, ``http(s)://`` URL,
                ``file://`` URL or plain filesystem path

        Returns:
            Raw resource bytes

        Raises:
            ResourceNotFoundError: Unknown or revoked blob URL
            aiohttp.ClientError: HTTP failure
            OSError: File could not be read
        """
        if url.startswith(BLOB_SCHEME):
            return self.read(url)

        scheme = urlparse(url).scheme.lower()
        if scheme in ("http", "https"):
            return await self._fetch_http(url)
        if scheme == "file":
            return Path(unquote(urlparse(url).path)).read_bytes()
        return Path(url).read_bytes()

    async def _fetch_http(self, url: str) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self.http_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                data = await response.read()
        logger.debug(f"Fetched {len(data)} bytes from {url}")
        return data

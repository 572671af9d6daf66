"""
TripMatch Backend — WebDAV Object Storage
===========================================

What:  ObjectStorage backend that uploads event images to a WebDAV server
       (Nextcloud, ownCloud, Apache mod_dav).
How:   MKCOL creates each missing directory level, then PUT writes the
       object. Both go through httpx with basic auth.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter around each upload
    2. Circuit breaker shared by all uploads of this instance
    3. Per-request timeout from settings.webdav_timeout

Error Handling Chain:
    request fails → tenacity retries (retry_max_attempts)
    → all retries fail → circuit breaker records a failure
    → threshold reached → further uploads fail fast with CircuitBreakerOpenError
    → recovery timeout elapsed → one trial upload (HALF_OPEN)
    → trial succeeds → CLOSED again
"""

import logging
import time
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from tripmatch.exceptions import CircuitBreakerOpenError, StorageServiceError
from tripmatch.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

# MKCOL: 201 created, 405 already exists
MKCOL_OK = {201, 405}
PUT_OK = {200, 201, 204}
DELETE_OK = {200, 204, 404}


class CircuitBreaker:
    """
    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → On success: CLOSED (failure_count reset)
            → On failure: back to OPEN (timer reset)

    Not shared across worker processes; each process keeps its own counters.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.OPEN:
            elapsed = time.monotonic() - (self.last_failure_time or 0)
            if elapsed < self.recovery_timeout:
                raise CircuitBreakerOpenError(
                    recovery_time=int(self.recovery_timeout - elapsed)
                )
            logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
            self.state = self.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (storage recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (trial upload failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


class WebDAVRequestError(Exception):
    """A WebDAV request returned an unexpected status. Retried by tenacity."""


class WebDAVStorage(ObjectStorage):
    """
    Args:
        base_url: WebDAV collection URL, e.g. https://cloud.example.com/remote.php/dav/files/app
        public_url: Prefix for URLs handed to clients; defaults to base_url
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        public_url: str = "",
        timeout: float = 15.0,
        max_attempts: int = 3,
        min_wait: float = 1,
        max_wait: float = 10,
        circuit_breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.public_url = (public_url or base_url).rstrip("/")
        self.auth = httpx.BasicAuth(username, password)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self.transport = transport
        logger.info(
            "WebDAVStorage initialized with base_url=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.base_url,
            self.circuit_breaker.failure_threshold,
            self.circuit_breaker.recovery_timeout,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=self.auth, timeout=self.timeout, transport=self.transport
        )

    async def _make_collections(self, client: httpx.AsyncClient, key: str) -> None:
        parts = key.split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            url = f"{self.base_url}/{'/'.join(parts[:depth])}"
            response = await client.request("MKCOL", url)
            if response.status_code not in MKCOL_OK:
                raise WebDAVRequestError(f"MKCOL {url} returned {response.status_code}")

    async def _put(self, key: str, content: bytes, content_type: str) -> None:
        async with self._client() as client:
            await self._make_collections(client, key)
            response = await client.put(
                f"{self.base_url}/{key}",
                content=content,
                headers={"Content-Type": content_type},
            )
            if response.status_code not in PUT_OK:
                raise WebDAVRequestError(f"PUT {key} returned {response.status_code}")

    async def upload(self, key: str, content: bytes, content_type: str) -> str:
        self.circuit_breaker.can_execute()
        start_time = time.monotonic()

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.HTTPError, WebDAVRequestError)),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential_jitter(
                    initial=self.min_wait, max=self.max_wait, jitter=1
                ),
                before_sleep=before_sleep_log(logger, logging.WARNING),
            ):
                with attempt:
                    await self._put(key, content, content_type)
        except RetryError as e:
            self.circuit_breaker.record_failure()
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("All WebDAV upload retries exhausted for %s: %s", key, last)
            raise StorageServiceError(
                message="Image upload failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"key": key, "attempts": self.max_attempts},
            ) from e

        self.circuit_breaker.record_success()
        logger.info(
            "WebDAV upload of %s completed in %.0fms (%d bytes)",
            key,
            (time.monotonic() - start_time) * 1000,
            len(content),
        )
        return f"{self.public_url}/{key}"

    async def delete(self, key: str) -> None:
        try:
            async with self._client() as client:
                response = await client.delete(f"{self.base_url}/{key}")
            if response.status_code not in DELETE_OK:
                logger.warning("WebDAV DELETE %s returned %d", key, response.status_code)
        except httpx.HTTPError as e:
            logger.warning("WebDAV DELETE %s failed: %s", key, str(e))

    async def health_check(self) -> bool:
        """PROPFIND with Depth: 0 on the base collection."""
        try:
            async with self._client() as client:
                response = await client.request(
                    "PROPFIND", self.base_url, headers={"Depth": "0"}
                )
            return response.status_code in {200, 207}
        except httpx.HTTPError as e:
            logger.warning("WebDAV health check failed: %s", str(e))
            return False

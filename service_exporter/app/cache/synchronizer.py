"""
List + watch synchronizer keeping a ServiceMirror up to date.
"""

import asyncio
import time
from typing import AsyncIterator, List, Optional, Protocol

from shared.errors import CacheSyncTimeoutError, WatchExpiredError
from shared.logging import get_logger
from shared.metrics import ExporterMetrics
from shared.retry import Backoff, RetryConfig

from .models import ChangeKind, ServiceEntity, ServiceListing, WatchEvent
from .store import ServiceMirror


class ServiceSource(Protocol):
    """Remote collection that can be listed and watched."""

    async def list(self) -> ServiceListing:
        """Return every current service and the collection resource version."""
        ...

    def watch(self, resource_version: str) -> AsyncIterator[WatchEvent]:
        """Stream changes that happened after ``resource_version``.

        The stream may end at any time; the caller re-lists when it does.
        """
        ...


class CacheSynchronizer:
    """Mirrors a remote service collection into a local ServiceMirror.

    A background task lists the collection, then applies watch events until
    the stream ends, at which point it lists again and reconciles. Failed
    lists and broken streams back off exponentially. A list is also forced
    every ``resync_period_seconds`` to recover from silently missed events.
    """

    def __init__(
        self,
        source: ServiceSource,
        mirror: Optional[ServiceMirror] = None,
        resync_period_seconds: Optional[float] = 300.0,
        retry_config: Optional[RetryConfig] = None,
        metrics: Optional[ExporterMetrics] = None
    ):
        self.source = source
        self.mirror = mirror if mirror is not None else ServiceMirror()
        self.resync_period_seconds = resync_period_seconds
        self.metrics = metrics
        self.logger = get_logger("exporter.cache.synchronizer")

        self.resource_version = ""
        self.running = False
        self.sync_task: Optional[asyncio.Task] = None
        self._backoff = Backoff(retry_config or RetryConfig())
        self._synced = asyncio.Event()
        self._last_list = 0.0

    async def start(self):
        """Start synchronizing in the background."""
        if self.running:
            return
        self.running = True
        self.sync_task = asyncio.create_task(self._run())
        self.logger.info("Cache synchronizer started")

    async def stop(self):
        """Stop the background task. Pending events are dropped."""
        self.running = False
        if self.sync_task:
            self.sync_task.cancel()
            try:
                await self.sync_task
            except asyncio.CancelledError:
                pass
            self.sync_task = None

        self.logger.info("Cache synchronizer stopped")

    def has_synced(self) -> bool:
        """Whether the initial full list has been applied."""
        return self._synced.is_set()

    async def wait_for_sync(self, timeout_seconds: float):
        """Block until the initial list completes or ``timeout_seconds`` pass."""
        try:
            await asyncio.wait_for(self._synced.wait(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            self.logger.error("Timed out waiting for caches to sync", timeout_seconds=timeout_seconds)
            raise CacheSyncTimeoutError(timeout_seconds) from None

    def snapshot(self) -> List[ServiceEntity]:
        """Current mirror contents."""
        return self.mirror.list()

    async def _run(self):
        """Main list/watch loop."""
        reason = "initial"
        while self.running:
            try:
                await self._list(reason)
                reason = await self._watch()

            except asyncio.CancelledError:
                raise

            except WatchExpiredError as e:
                self.logger.info("Watch expired, relisting", error=e.message)
                self._record_error("WatchExpiredError")
                reason = "expired"

            except Exception as e:
                delay = self._backoff.next_delay()
                self.logger.warning(
                    "List/watch failed, relisting after backoff",
                    error=str(e),
                    error_type=type(e).__name__,
                    attempt=self._backoff.attempts,
                    delay=round(delay, 3)
                )
                self._record_error(type(e).__name__)
                reason = "error"
                await asyncio.sleep(delay)

    async def _list(self, reason: str):
        """Full list and reconcile."""
        listing = await self.source.list()
        counts = self.mirror.replace(listing.entities)
        self.resource_version = listing.resource_version
        self._last_list = time.monotonic()

        if self.metrics is not None:
            self.metrics.record_relist(reason, len(listing.entities))

        if not self._synced.is_set():
            self._synced.set()
            if self.metrics is not None:
                self.metrics.set_synced(True)
            self.logger.info(
                "Initial cache sync complete",
                services=len(listing.entities),
                resource_version=self.resource_version
            )
        else:
            self.logger.info(
                "Cache relisted",
                reason=reason,
                services=len(listing.entities),
                resource_version=self.resource_version,
                **counts
            )

    async def _watch(self) -> str:
        """Apply watch events until the stream ends or a resync is due.

        Returns the reason for the next list.
        """
        stream = self.source.watch(self.resource_version)
        iterator = stream.__aiter__()
        try:
            while self.running:
                timeout = self._resync_remaining()
                if timeout is not None and timeout <= 0:
                    return "resync"

                try:
                    event = await asyncio.wait_for(iterator.__anext__(), timeout=timeout)
                except StopAsyncIteration:
                    self.logger.info("Watch stream closed", resource_version=self.resource_version)
                    return "stream_closed"
                except asyncio.TimeoutError:
                    return "resync"

                self._apply(event)
                # The stream is healthy again once it delivers something
                self._backoff.reset()
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        return "stopped"

    def _apply(self, event: WatchEvent):
        """Apply a single change event to the mirror."""
        if event.resource_version:
            self.resource_version = event.resource_version

        entity = event.entity
        if event.kind in (ChangeKind.ADDED, ChangeKind.MODIFIED) and entity is not None:
            self.mirror.upsert(entity)
        elif event.kind == ChangeKind.DELETED and entity is not None:
            self.mirror.delete(entity.uid)

        if self.metrics is not None:
            self.metrics.record_cache_event(event.kind.value)
            self.metrics.set_cache_size(len(self.mirror))

        self.logger.debug(
            "Applied change event",
            kind=event.kind.value,
            service=entity.key if entity is not None else None,
            resource_version=self.resource_version
        )

    def _resync_remaining(self) -> Optional[float]:
        if not self.resync_period_seconds:
            return None
        return self.resync_period_seconds - (time.monotonic() - self._last_list)

    def _record_error(self, error_type: str):
        if self.metrics is not None:
            self.metrics.record_watch_error(error_type)

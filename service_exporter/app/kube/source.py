"""
List/watch source backed by the Kubernetes CoreV1 API.
"""

import asyncio
import functools
import threading
from typing import Any, AsyncIterator, Callable, Dict, Optional

from kubernetes import client, watch
from kubernetes.client.exceptions import ApiException

from shared.errors import WatchExpiredError, WatchStreamError
from shared.logging import get_logger

from ..cache.models import ChangeKind, ServiceEntity, ServiceListing, WatchEvent


HTTP_GONE = 410

_STREAM_END = object()


def _post(loop: asyncio.AbstractEventLoop, callback: Callable[..., Any], *args: Any):
    """Hand a worker thread result back to ``loop``."""
    try:
        loop.call_soon_threadsafe(callback, *args)
    except RuntimeError:
        # loop already closed; nobody is waiting for the result
        return


def _resolve(future: asyncio.Future, result: Any = None, error: Optional[Exception] = None):
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def run_in_daemon_thread(fn: Callable[[], Any], name: str) -> asyncio.Future:
    """Run blocking ``fn`` on its own daemon thread.

    Unlike the default executor, the thread is never joined: cancelling the
    returned future or closing the loop does not wait for a blocked HTTP read.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def target():
        try:
            result = fn()
        except Exception as e:
            _post(loop, _resolve, future, None, e)
        else:
            _post(loop, _resolve, future, result)

    threading.Thread(target=target, name=name, daemon=True).start()
    return future


class KubernetesServiceSource:
    """Lists and watches Services across all namespaces.

    The kubernetes client is blocking, so list calls and watch streams run on
    daemon threads that are abandoned, not joined, when the caller goes away.
    """

    def __init__(
        self,
        core_api: client.CoreV1Api,
        watch_timeout_seconds: int = 300,
        request_timeout_seconds: int = 60
    ):
        self.core_api = core_api
        self.watch_timeout_seconds = watch_timeout_seconds
        self.request_timeout_seconds = request_timeout_seconds
        self.logger = get_logger("exporter.kube.source")

    async def list(self) -> ServiceListing:
        """List every service in the cluster."""
        result = await run_in_daemon_thread(
            functools.partial(
                self.core_api.list_service_for_all_namespaces,
                _request_timeout=self.request_timeout_seconds
            ),
            name="service-list"
        )

        entities = [ServiceEntity.from_k8s(item) for item in result.items or []]
        resource_version = result.metadata.resource_version or ""
        self.logger.debug("Listed services", services=len(entities), resource_version=resource_version)
        return ServiceListing(entities=entities, resource_version=resource_version)

    async def watch(self, resource_version: str) -> AsyncIterator[WatchEvent]:
        """Stream service changes after ``resource_version``."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        stopped = threading.Event()
        watcher = watch.Watch()
        kwargs: Dict[str, Any] = {
            "allow_watch_bookmarks": True,
            "timeout_seconds": self.watch_timeout_seconds,
            # Server-side timeout plus slack so a silent connection still gets dropped
            "_request_timeout": self.watch_timeout_seconds + self.request_timeout_seconds,
        }
        if resource_version:
            kwargs["resource_version"] = resource_version

        def pump():
            try:
                for raw in watcher.stream(self.core_api.list_service_for_all_namespaces, **kwargs):
                    if stopped.is_set():
                        return
                    _post(loop, queue.put_nowait, raw)
            except Exception as e:
                if not stopped.is_set():
                    _post(loop, queue.put_nowait, e)
                return
            _post(loop, queue.put_nowait, _STREAM_END)

        threading.Thread(target=pump, name="service-watch", daemon=True).start()
        try:
            while True:
                item = await queue.get()
                if item is _STREAM_END:
                    return

                if isinstance(item, ApiException) and item.status == HTTP_GONE:
                    raise WatchExpiredError(str(item.reason)) from item
                if isinstance(item, Exception):
                    raise item

                yield self._convert(item)
        finally:
            stopped.set()
            watcher.stop()

    def _convert(self, raw: Dict[str, Any]) -> WatchEvent:
        """Translate a raw watch event into a WatchEvent."""
        event_type = raw.get("type")

        if event_type == "ERROR":
            status = raw.get("raw_object") or {}
            code = status.get("code")
            message = status.get("message", "")
            if code == HTTP_GONE:
                raise WatchExpiredError(message, details={"code": code})
            raise WatchStreamError(message, details={"code": code, "reason": status.get("reason")})

        obj = raw.get("object")
        kind = ChangeKind(event_type)

        if kind == ChangeKind.BOOKMARK:
            resource_version = (raw.get("raw_object") or {}).get("metadata", {}).get("resourceVersion", "")
            return WatchEvent(kind=kind, resource_version=resource_version)

        entity = ServiceEntity.from_k8s(obj)
        return WatchEvent(kind=kind, entity=entity, resource_version=entity.resource_version)

"""Firebase Realtime Database backing store over the REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import aiohttp

from pygeofire.config import FirebaseConfig
from pygeofire.exceptions import GeoFireError, GeoFireSubscriptionError, GeoFireTransportError
from pygeofire.models.events import ChildEvent, ChildEventKind
from pygeofire.store._stream import ChildChange, RangeSnapshot, SseMessage, SseParser
from pygeofire.store.base import ChildListener, LostListener

if TYPE_CHECKING:
    from pygeofire.query.ranges import GeohashRange

_logger = logging.getLogger(__name__)

_STREAM_CLOSING_EVENTS = frozenset({"cancel", "auth_revoked"})


class RangeStream:
    """Handle of one streamed range subscription."""

    def __init__(
        self,
        geohash_range: GeohashRange,
        listener: ChildListener,
        on_lost: LostListener | None = None,
    ) -> None:
        self.geohash_range = geohash_range
        self.listener = listener
        self.on_lost = on_lost
        self.snapshot = RangeSnapshot()
        self.task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self.task is not None and not self.task.done()


class FirebaseStore:
    """Stores locations under ``<database_url>/<path>`` and streams range queries.

    Range subscriptions are ``orderBy="g"`` REST streams, so the database
    rules must declare ``".indexOn": "g"`` for the location path.

    Usage::

        async with FirebaseStore(FirebaseConfig.from_env()) as store:
            geofire = GeoFire(store)
            await geofire.set("bus-12", (52.37, 4.90))
    """

    def __init__(
        self,
        config: FirebaseConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http = session
        self._streams: set[RangeStream] = set()

    async def __aenter__(self) -> FirebaseStore:
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for stream in list(self._streams):
            self.unsubscribe(stream)
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_http(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise GeoFireError("Store not initialized. Use 'async with FirebaseStore(...) as store:'")
        return self._http

    def _url(self, key: str | None = None) -> str:
        base = self._config.database_url.rstrip("/")
        parts = [part for part in (self._config.path.strip("/"), key) if part]
        return f"{base}/{'/'.join(parts)}.json"

    def _params(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        params: dict[str, str] = {}
        if self._config.auth_token:
            params["auth"] = self._config.auth_token
        if extra:
            params.update(extra)
        return params

    async def _request(self, method: str, key: str | None = None, body: Any = None) -> Any:
        http = self._require_http()
        url = self._url(key)
        path = f"/{key}" if key else "/"
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("%s %s", method, url)
        try:
            async with http.request(
                method,
                url,
                params=self._params(),
                data=json.dumps(body, separators=(",", ":")) if body is not None else None,
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise GeoFireTransportError(
                        f"HTTP {resp.status} from {method} {path}: {text[:200]}",
                        status_code=resp.status,
                        path=path,
                    )
        except GeoFireTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GeoFireTransportError(f"{method} {path} failed: {exc}", path=path) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise GeoFireTransportError(f"Invalid JSON from {method} {path}: {text[:200]}", path=path) from exc

    # ------------------------------------------------------------------
    # GeoStore
    # ------------------------------------------------------------------

    async def update(self, changes: Mapping[str, dict[str, Any] | None]) -> None:
        if not changes:
            return
        await self._request("PATCH", body=dict(changes))

    async def get(self, key: str) -> dict[str, Any] | None:
        value = await self._request("GET", key)
        return value if isinstance(value, dict) else None

    async def subscribe(
        self,
        geohash_range: GeohashRange,
        listener: ChildListener,
        *,
        on_lost: LostListener | None = None,
    ) -> RangeStream:
        http = self._require_http()
        params = self._params(
            {
                "orderBy": json.dumps("g"),
                "startAt": json.dumps(geohash_range.start),
                "endAt": json.dumps(geohash_range.end),
            }
        )
        # Streams stay open indefinitely; only connecting is bounded.
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._config.request_timeout, sock_read=None)

        try:
            resp = await http.get(
                self._url(),
                params=params,
                headers={"Accept": "text/event-stream"},
                timeout=timeout,
            )
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise GeoFireSubscriptionError(
                f"Subscribing to range {geohash_range} failed: {exc}",
                store_range=geohash_range,
            ) from exc

        if resp.status != 200:
            text = await resp.text()
            resp.release()
            raise GeoFireSubscriptionError(
                f"HTTP {resp.status} subscribing to range {geohash_range}: {text[:200]}",
                store_range=geohash_range,
            )

        stream = RangeStream(geohash_range, listener, on_lost)
        stream.task = asyncio.get_running_loop().create_task(
            self._consume(stream, resp),
            name=f"geofire-stream-{geohash_range}",
        )
        self._streams.add(stream)
        _logger.debug("Stream opened for range %s", geohash_range)
        return stream

    def unsubscribe(self, handle: Any) -> None:
        if not isinstance(handle, RangeStream):
            raise TypeError(f"not a FirebaseStore subscription handle: {handle!r}")
        self._streams.discard(handle)
        if handle.task is not None and not handle.task.done():
            handle.task.cancel()
        _logger.debug("Stream closed for range %s", handle.geohash_range)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def _consume(self, stream: RangeStream, resp: aiohttp.ClientResponse) -> None:
        parser = SseParser()
        reason = "closed by server"
        try:
            async for raw_line in resp.content:
                message = parser.feed_line(raw_line.decode("utf-8"))
                if message is None:
                    continue
                if not await self._handle_message(stream, message):
                    reason = f"closed by server ({message.event})"
                    break
        except aiohttp.ClientError as exc:
            _logger.debug("Stream for range %s ended with an error", stream.geohash_range, exc_info=True)
            reason = f"failed: {exc}"
        finally:
            resp.release()
            # unsubscribe() removes the stream first; still being registered means it was lost
            lost = stream in self._streams
            self._streams.discard(stream)

        if lost:
            self._report_lost(stream, reason)

    def _report_lost(self, stream: RangeStream, reason: str) -> None:
        _logger.warning("Stream for range %s %s", stream.geohash_range, reason)
        if stream.on_lost is None:
            return
        stream.on_lost(
            GeoFireSubscriptionError(
                f"Subscription to range {stream.geohash_range} {reason}",
                store_range=stream.geohash_range,
            )
        )

    async def _handle_message(self, stream: RangeStream, message: SseMessage) -> bool:
        """Apply one stream message; returns ``False`` when the stream must stop."""
        if message.event == "keep-alive":
            return True
        if message.event in _STREAM_CLOSING_EVENTS:
            _logger.debug(
                "Stream for range %s closed by server: %s %s",
                stream.geohash_range,
                message.event,
                message.data,
            )
            return False
        if message.event not in ("put", "patch"):
            _logger.debug("Ignoring stream event %s", message.event)
            return True

        try:
            payload = json.loads(message.data)
        except json.JSONDecodeError:
            _logger.warning("Stream for range %s sent invalid JSON: %s", stream.geohash_range, message.data[:200])
            return True
        if not isinstance(payload, dict) or not isinstance(payload.get("path"), str):
            _logger.warning("Stream for range %s sent a message without a path", stream.geohash_range)
            return True

        if message.event == "put":
            changes = stream.snapshot.put(payload["path"], payload.get("data"))
        else:
            changes = stream.snapshot.patch(payload["path"], payload.get("data"))

        for change in changes:
            event = await self._to_child_event(change)
            if event is not None:
                stream.listener(event)
        return True

    async def _to_child_event(self, change: ChildChange) -> ChildEvent | None:
        if change.kind is ChildEventKind.REMOVED:
            # The key left the range; tell listeners where it lives now.
            return ChildEvent(kind=change.kind, key=change.key, value=await self._current_value(change.key))
        if not isinstance(change.value, dict):
            _logger.warning("Ignoring non-object value for key=%s", change.key)
            return None
        return ChildEvent(kind=change.kind, key=change.key, value=change.value)

    async def _current_value(self, key: str) -> dict[str, Any] | None:
        try:
            return await self.get(key)
        except GeoFireTransportError:
            _logger.warning("Could not re-read removed key=%s; treating it as deleted", key, exc_info=True)
            return None

"""
Realtime change subscriptions for Supabase tables.

Speaks the Phoenix channel protocol used by Supabase Realtime over a
websocket. A subscription is an async iterator of ChangeEvent values: it
yields changes as they arrive, never ends on its own, and cannot be
restarted once unsubscribed. There is no replay; changes made while no
subscription is open are missed.
"""

import asyncio
import contextlib
import itertools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import websockets

from .config import SupabaseConfig
from .models import ChangeEvent

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_SECONDS = 25.0

# Ends iteration when placed on the event queue
_CLOSED = object()


class SubscriptionError(Exception):
    """The server refused or dropped a change subscription."""


class ChangeSubscription:
    """
    A live subscription to row changes on one table.

    Use as an async iterator, optionally inside `async with`. Call
    `unsubscribe()` to leave the channel and release the connection.
    """

    def __init__(
        self,
        connection: Any,
        table: str,
        schema: str = "public",
        event: str = "*",
        access_token: str | None = None,
        heartbeat_seconds: float = DEFAULT_HEARTBEAT_SECONDS,
    ):
        self.table = table
        self.schema = schema
        self.event = event
        self.topic = f"realtime:{table}-changes"
        self._connection = connection
        self._access_token = access_token
        self._heartbeat_seconds = heartbeat_seconds
        self._refs = itertools.count(1)
        self._join_ref: str | None = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _next_ref(self) -> str:
        return str(next(self._refs))

    async def _send(self, topic: str, event: str, payload: dict[str, Any]) -> str:
        ref = self._next_ref()
        message = {
            "topic": topic,
            "event": event,
            "payload": payload,
            "ref": ref,
            "join_ref": self._join_ref,
        }
        await self._connection.send(json.dumps(message))
        return ref

    async def start(self) -> None:
        """Join the channel and start the reader and heartbeat tasks."""
        self._join_ref = self._next_ref()
        payload: dict[str, Any] = {
            "config": {
                "broadcast": {"self": False},
                "presence": {"key": ""},
                "postgres_changes": [
                    {"event": self.event, "schema": self.schema, "table": self.table}
                ],
            }
        }
        if self._access_token:
            payload["access_token"] = self._access_token

        join = {
            "topic": self.topic,
            "event": "phx_join",
            "payload": payload,
            "ref": self._join_ref,
            "join_ref": self._join_ref,
        }
        await self._connection.send(json.dumps(join))
        logger.info(f"Subscribed to changes on {self.schema}.{self.table}")

        self._tasks.append(asyncio.create_task(self._read_loop()))
        if self._heartbeat_seconds > 0:
            self._tasks.append(asyncio.create_task(self._heartbeat_loop()))

    async def _read_loop(self) -> None:
        try:
            async for raw in self._connection:
                self._handle_message(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._closed:
                logger.warning(f"Change subscription on {self.table} lost: {e}")
                self._queue.put_nowait(SubscriptionError(str(e)))
        self._queue.put_nowait(_CLOSED)

    def _handle_message(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-JSON realtime frame: {raw!r}")
            return

        if message.get("topic") != self.topic:
            return

        event = message.get("event")
        payload = message.get("payload") or {}

        if event == "postgres_changes":
            data = payload.get("data") or {}
            try:
                change = ChangeEvent.from_payload(data)
            except ValueError:
                logger.debug(f"Ignoring change with unknown type: {data.get('type')!r}")
                return
            logger.debug(f"Change on {change.table}: {change.type.value}")
            self._queue.put_nowait(change)
        elif event == "phx_reply" and message.get("ref") == self._join_ref:
            if payload.get("status") != "ok":
                reason = (payload.get("response") or {}).get("reason", "join refused")
                logger.error(f"Subscription to {self.table} refused: {reason}")
                self._queue.put_nowait(SubscriptionError(reason))
        elif event in ("phx_error", "phx_close"):
            logger.warning(f"Channel {self.topic} closed by server ({event})")
            self._queue.put_nowait(SubscriptionError(f"channel {event}"))

    async def _heartbeat_loop(self) -> None:
        while not self._closed:
            await asyncio.sleep(self._heartbeat_seconds)
            try:
                await self._send("phoenix", "heartbeat", {})
            except Exception as e:
                logger.debug(f"Heartbeat failed: {e}")
                return

    def forward_to(
        self, callback: Callable[[ChangeEvent], Awaitable[None] | None]
    ) -> None:
        """Deliver every event to `callback` from a background task."""

        async def pump() -> None:
            try:
                async for change in self:
                    try:
                        result = callback(change)
                        if asyncio.iscoroutine(result):
                            await result
                    except Exception:
                        logger.exception(
                            f"Change callback failed for {change.type.value} on {change.table}"
                        )
            except SubscriptionError as e:
                logger.error(f"Change delivery on {self.table} stopped: {e}")

        self._tasks.append(asyncio.create_task(pump()))

    async def unsubscribe(self) -> None:
        """Leave the channel and close the connection. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        with contextlib.suppress(Exception):
            await self._send(self.topic, "phx_leave", {})

        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current:
                task.cancel()
        for task in self._tasks:
            if task is not current:
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task
        self._tasks.clear()

        with contextlib.suppress(Exception):
            await self._connection.close()

        # Undelivered events are dropped
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        logger.info(f"Unsubscribed from changes on {self.schema}.{self.table}")

    def __aiter__(self) -> "ChangeSubscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the sentinel so later iterations end too
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        if isinstance(item, SubscriptionError):
            raise item
        return item

    async def __aenter__(self) -> "ChangeSubscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.unsubscribe()


class RealtimeClient:
    """Opens change subscriptions against a Supabase project."""

    def __init__(
        self,
        config: SupabaseConfig,
        connect: Callable[[str], Awaitable[Any]] | None = None,
        heartbeat_seconds: float = DEFAULT_HEARTBEAT_SECONDS,
    ):
        """
        Initialize the realtime client.

        Args:
            config: Supabase project configuration
            connect: Opens a websocket for a URL (defaults to websockets.connect)
            heartbeat_seconds: Interval between keep-alive messages
        """
        self.config = config
        self._connect = connect or websockets.connect
        self.heartbeat_seconds = heartbeat_seconds

    async def subscribe(
        self, table: str, schema: str | None = None, event: str = "*"
    ) -> ChangeSubscription:
        """Open a subscription to INSERT/UPDATE/DELETE events on a table."""
        if not self.config.is_configured():
            raise SubscriptionError("Supabase is not configured")

        connection = await self._connect(self.config.realtime_url)
        subscription = ChangeSubscription(
            connection,
            table=table,
            schema=schema or self.config.schema,
            event=event,
            access_token=self.config.anon_key,
            heartbeat_seconds=self.heartbeat_seconds,
        )
        try:
            await subscription.start()
        except Exception:
            with contextlib.suppress(Exception):
                await connection.close()
            raise
        return subscription

    async def subscribe_to_changes(
        self,
        table: str,
        on_event: Callable[[ChangeEvent], Awaitable[None] | None],
    ) -> ChangeSubscription:
        """Callback form of subscribe(). Returns the handle for unsubscribe()."""
        subscription = await self.subscribe(table)
        subscription.forward_to(on_event)
        return subscription

    async def unsubscribe(self, subscription: ChangeSubscription) -> None:
        await subscription.unsubscribe()

"""etcd key-value client using the etcd v3 JSON gateway."""

import asyncio
import base64
import json
import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from .base import KVClient, ProviderHealth, ProviderStatus
from ..channel import Channel
from ..config.providers import StoreConfig
from ..errors import BackendUnavailable, WriteRejected
from ..interfaces import KVEvent, KVEventType

logger = logging.getLogger(__name__)


def _encode(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode()
    return base64.b64encode(data).decode()


def _decode(text: str) -> str:
    return base64.b64decode(text.encode()).decode()


def prefix_range_end(prefix: str) -> bytes:
    """Return the etcd range_end that selects every key starting with prefix.

    The last byte that can be incremented is incremented and everything
    after it dropped. A prefix of only 0xff bytes selects all keys.
    """
    end = bytearray(prefix.encode())
    for i in range(len(end) - 1, -1, -1):
        if end[i] < 0xff:
            end[i] += 1
            return bytes(end[:i + 1])
    return b"\0"


class _WatchStreamError(Exception):
    """The gateway reported an error on an open watch stream."""


class EtcdKVClient(KVClient[StoreConfig]):
    """etcd client talking to the v3 gRPC-gateway over HTTP.

    Keys and values are base64 encoded on the wire. Every watch owns a
    background task reading the streaming ``/v3/watch`` response; when
    the stream breaks a CONNECTION_DOWN event is published and the watch
    channel is closed.
    """

    def __init__(
        self,
        config: StoreConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._watches: dict[Channel[KVEvent], asyncio.Task] = {}

    @property
    def base_url(self) -> str:
        return f"http://{self.config.address}"

    async def initialize(self) -> None:
        """Create the HTTP client.

        No request is made; connectivity problems surface on first use.
        """
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        self._initialized = True
        logger.debug(f"etcd client created for {self.base_url}")

    async def shutdown(self) -> None:
        watches = list(self._watches.items())
        for _, task in watches:
            task.cancel()
        if watches:
            await asyncio.gather(*(task for _, task in watches), return_exceptions=True)
        # A task cancelled before it ran never reached its finally block.
        for channel, _ in watches:
            channel.close()
        self._watches.clear()

        if self._client:
            await self._client.aclose()
            self._client = None
        self._initialized = False

    async def health_check(self) -> ProviderHealth:
        if not self._client:
            return ProviderHealth(
                status=ProviderStatus.UNAVAILABLE,
                message="Client not initialized"
            )

        try:
            start = datetime.now()
            response = await self._client.post("/v3/maintenance/status", json={})
            latency = (datetime.now() - start).total_seconds() * 1000
            if response.status_code != 200:
                return ProviderHealth(
                    status=ProviderStatus.DEGRADED,
                    latency_ms=latency,
                    message=f"etcd status returned {response.status_code}"
                )
            version = response.json().get("version", "unknown")
            return ProviderHealth(
                status=ProviderStatus.HEALTHY,
                latency_ms=latency,
                message=f"etcd {version} at {self.config.address}"
            )
        except httpx.HTTPError as e:
            return ProviderHealth(
                status=ProviderStatus.UNAVAILABLE,
                message=str(e)
            )

    async def put(self, key: str, value: str) -> None:
        response = await self._post("/v3/kv/put", {"key": _encode(key), "value": _encode(value)})
        if response.status_code != 200:
            raise WriteRejected(
                f"etcd put of {key} failed ({response.status_code}): {self._error_detail(response)}",
                status_code=response.status_code,
            )

    async def delete(self, key: str) -> None:
        response = await self._post("/v3/kv/deleterange", {"key": _encode(key)})
        if response.status_code != 200:
            raise WriteRejected(
                f"etcd delete of {key} failed ({response.status_code}): {self._error_detail(response)}",
                status_code=response.status_code,
            )

    async def list(self, prefix: str) -> dict[str, str]:
        payload = {"key": _encode(prefix), "range_end": _encode(prefix_range_end(prefix))}
        response = await self._post("/v3/kv/range", payload)
        if response.status_code != 200:
            raise BackendUnavailable(
                f"etcd range on {prefix} failed ({response.status_code}): {self._error_detail(response)}"
            )

        result = {}
        for kv in response.json().get("kvs", []):
            result[_decode(kv["key"])] = _decode(kv.get("value", ""))
        return result

    async def watch(self, prefix: str, buffer_size: int = 100) -> Channel[KVEvent]:
        self._require_client()
        channel: Channel[KVEvent] = Channel(maxsize=buffer_size)
        self._watches[channel] = asyncio.create_task(self._run_watch(prefix, channel))
        return channel

    async def cancel_watch(self, channel: Channel[KVEvent]) -> None:
        task = self._watches.pop(channel, None)
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        channel.close()

    async def _run_watch(self, prefix: str, channel: Channel[KVEvent]) -> None:
        client = self._require_client()
        payload = {
            "create_request": {
                "key": _encode(prefix),
                "range_end": _encode(prefix_range_end(prefix)),
            }
        }
        # Watches stay idle for arbitrary periods, so no read timeout.
        timeout = httpx.Timeout(self.config.timeout_seconds, read=None)
        try:
            async with client.stream("POST", "/v3/watch", json=payload, timeout=timeout) as response:
                if response.status_code != 200:
                    raise _WatchStreamError(f"watch request returned {response.status_code}")
                logger.debug(f"etcd watch established on {prefix}")
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    for event in self._parse_watch_message(line, prefix):
                        await channel.send(event)
            logger.debug(f"etcd watch stream on {prefix} ended")
        except (httpx.HTTPError, _WatchStreamError) as e:
            logger.warning(f"etcd watch on {prefix} lost: {e}")
            await channel.send(KVEvent(KVEventType.CONNECTION_DOWN, prefix))
        finally:
            self._watches.pop(channel, None)
            channel.close()

    def _parse_watch_message(self, line: str, prefix: str) -> "list[KVEvent]":
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            logger.warning(f"Unparseable etcd watch message on {prefix}: {line[:200]}")
            return [KVEvent(KVEventType.UNKNOWN, prefix)]

        if "error" in message:
            raise _WatchStreamError(str(message["error"].get("message", message["error"])))

        result = message.get("result", {})
        if result.get("canceled"):
            raise _WatchStreamError(f"watch canceled: {result.get('cancel_reason', 'no reason given')}")

        events = []
        for raw in result.get("events", []):
            kv = raw.get("kv", {})
            key = _decode(kv.get("key", ""))
            # The gateway omits the type for PUT since it is the enum default.
            kind = raw.get("type", "PUT")
            if kind == "PUT":
                events.append(KVEvent(KVEventType.PUT, key, _decode(kv.get("value", ""))))
            elif kind == "DELETE":
                events.append(KVEvent(KVEventType.DELETE, key))
            else:
                events.append(KVEvent(KVEventType.UNKNOWN, key))
        return events

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        client = self._require_client()
        try:
            return await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise BackendUnavailable(f"etcd request to {path} timed out: {e}") from e
        except httpx.TransportError as e:
            raise BackendUnavailable(f"etcd at {self.config.address} unreachable: {e}") from e

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("Provider not initialized")
        return self._client

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            return str(response.json().get("message", response.text))
        except ValueError:
            return response.text[:200]

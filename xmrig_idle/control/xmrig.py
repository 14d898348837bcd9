"""XMRig JSON-RPC control client."""

from __future__ import annotations

import itertools
import logging

import httpx

from xmrig_idle.engine.errors import RpcError
from xmrig_idle.engine.types import DEFAULT_RPC_TIMEOUT_SECONDS

log = logging.getLogger(__name__)


class XmrigClient:
    """Issue pause/resume/stop to XMRig's HTTP API.

    Requests go to `<url>/json_rpc` with `Authorization: Bearer <token>`.
    The response body is only inspected for success or failure.
    """

    def __init__(
        self,
        *,
        url: str,
        bearer: str,
        timeout: float = DEFAULT_RPC_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = f"{url.rstrip('/')}/json_rpc"
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Authorization": f"Bearer {bearer}"},
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def pause(self) -> None:
        await self._call("pause")

    async def resume(self) -> None:
        await self._call("resume")

    async def stop(self) -> None:
        await self._call("stop")

    async def _call(self, method: str) -> object:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        log.debug("rpc %s -> %s", method, self._endpoint)

        try:
            r = await self._client.post(self._endpoint, json=payload)
        except httpx.HTTPError as e:
            raise RpcError(f"{method}: request failed: {e}") from e

        if r.status_code in (401, 403):
            raise RpcError(f"{method}: authentication rejected (HTTP {r.status_code})")
        if r.is_error:
            raise RpcError(f"{method}: HTTP {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise RpcError(f"{method}: invalid response body: {e}") from e

        if not isinstance(data, dict):
            raise RpcError(f"{method}: unexpected response: {data!r}")

        error = data.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcError(
                    f"{method}: remote error {error.get('code')}: {error.get('message')}"
                )
            raise RpcError(f"{method}: remote error: {error}")

        return data.get("result")

    async def close(self) -> None:
        await self._client.aclose()

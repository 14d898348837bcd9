from __future__ import annotations

import asyncio
import logging

from dbus_next.aio import MessageBus
from dbus_next.constants import BusType
from dbus_next.errors import DBusError, InvalidAddressError

from xmrig_idle.engine.errors import IdleQueryError

log = logging.getLogger(__name__)

BUS_NAME = "org.gnome.Mutter.IdleMonitor"
OBJECT_PATH = "/org/gnome/Mutter/IdleMonitor/Core"
INTERFACE = "org.gnome.Mutter.IdleMonitor"


class MutterIdleSource:
    """GNOME (Mutter) idle monitor over the session bus.

    `GetIdletime` returns milliseconds since the last input event. The bus
    connection is opened on first query and dropped after any failure, so the
    next query reconnects.
    """

    def __init__(self, *, timeout: float = 2.0):
        self._timeout = timeout
        self._bus: MessageBus | None = None
        self._monitor = None

    async def _connect(self) -> None:
        bus = MessageBus(bus_type=BusType.SESSION)
        try:
            await bus.connect()
            introspection = await bus.introspect(BUS_NAME, OBJECT_PATH)
            obj = bus.get_proxy_object(BUS_NAME, OBJECT_PATH, introspection)
            self._monitor = obj.get_interface(INTERFACE)
        except BaseException:
            bus.disconnect()
            raise
        self._bus = bus
        log.debug("connected to %s", BUS_NAME)

    async def query(self) -> int:
        try:
            if self._bus is None:
                await asyncio.wait_for(self._connect(), self._timeout)
            idle_ms = await asyncio.wait_for(
                self._monitor.call_get_idletime(),  # type: ignore[union-attr]
                self._timeout,
            )
        except (DBusError, InvalidAddressError, OSError, asyncio.TimeoutError) as e:
            await self.close()
            raise IdleQueryError(f"mutter idle monitor: {str(e) or type(e).__name__}") from e

        return max(0, int(idle_ms))

    async def close(self) -> None:
        bus = self._bus
        self._bus = None
        self._monitor = None
        if bus is not None:
            bus.disconnect()

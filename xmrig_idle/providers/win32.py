"""Windows idle source (user32 GetLastInputInfo)."""

from __future__ import annotations

import ctypes
import sys

from xmrig_idle.engine.errors import ConfigurationError, IdleQueryError


class _LastInputInfo(ctypes.Structure):
    _fields_ = [
        ("cbSize", ctypes.c_uint),
        ("dwTime", ctypes.c_uint32),
    ]


class Win32IdleSource:
    def __init__(self):
        if sys.platform != "win32":
            raise ConfigurationError("idle source 'win32' is only available on Windows")
        self._user32 = ctypes.windll.user32  # type: ignore[attr-defined]
        self._kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]

    def query_sync(self) -> int:
        lii = _LastInputInfo()
        lii.cbSize = ctypes.sizeof(_LastInputInfo)
        try:
            ok = self._user32.GetLastInputInfo(ctypes.byref(lii))
        except OSError as e:
            raise IdleQueryError(f"GetLastInputInfo: {e}") from e
        if not ok:
            raise IdleQueryError("GetLastInputInfo failed")

        # Both counters are 32-bit milliseconds and wrap every ~49.7 days.
        tick = int(self._kernel32.GetTickCount()) & 0xFFFFFFFF
        return (tick - lii.dwTime) & 0xFFFFFFFF

    async def query(self) -> int:
        return self.query_sync()

    async def close(self) -> None:
        return None

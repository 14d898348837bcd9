import asyncio
import logging
import os
import subprocess
import time

from xmrig_idle.engine.errors import IdleQueryError

log = logging.getLogger(__name__)


class LogindIdleSource:
    """systemd-logind idle source via loginctl.

    Notes:
    - Works wherever systemd-logind is present, independent of the compositor.
    - Idle hints are only as fresh as the session's idle reporting; some
      compositors never set IdleHint, in which case queries fail.
    """

    def __init__(self, *, timeout: float = 2.0):
        self._timeout = timeout
        self._session_id: str | None = None
        self._user: str | None = None

    def _get_user(self) -> str:
        if self._user is None:
            self._user = os.environ.get("USER") or os.environ.get("USERNAME") or ""
        return self._user

    def _find_session_id(self) -> str | None:
        """Find active session for current user."""

        user = self._get_user()
        try:
            result = subprocess.run(
                ["loginctl", "list-sessions", "--no-legend", "--no-pager"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            return None

        user_session_ids: list[str] = []
        for line in result.stdout.strip().split("\n"):
            if not line.strip():
                continue
            parts = line.split()
            if len(parts) >= 3 and parts[2] == user:
                user_session_ids.append(parts[0])

        if not user_session_ids:
            return None

        for session_id in user_session_ids:
            props = self._get_session_properties(session_id)
            if props.get("State") == "active":
                return session_id

        return user_session_ids[0]

    def _get_session_properties(self, session_id: str) -> dict[str, str]:
        """Get session properties from loginctl."""

        try:
            result = subprocess.run(
                [
                    "loginctl",
                    "show-session",
                    session_id,
                    "--property=IdleSinceHintMonotonic",
                    "--property=IdleHint",
                    "--property=State",
                ],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            return {}

        props: dict[str, str] = {}
        for line in result.stdout.strip().split("\n"):
            if "=" in line:
                key, value = line.split("=", 1)
                props[key] = value
        return props

    def query_sync(self) -> int:
        if self._session_id is None:
            self._session_id = self._find_session_id()
            if self._session_id is None:
                raise IdleQueryError("logind: no session found")
            log.debug("using logind session %s", self._session_id)

        props = self._get_session_properties(self._session_id)
        if not props:
            # Session may have gone away; look it up again next time.
            self._session_id = None
            raise IdleQueryError("logind: session properties unavailable")

        idle_hint = props.get("IdleHint")
        if idle_hint == "no":
            return 0
        if idle_hint != "yes":
            raise IdleQueryError(f"logind: unsupported IdleHint {idle_hint!r}")

        try:
            # systemd returns microseconds from CLOCK_MONOTONIC
            idle_since_us = int(props.get("IdleSinceHintMonotonic", ""))
        except ValueError:
            raise IdleQueryError("logind: IdleSinceHintMonotonic missing") from None

        now_us = int(time.monotonic() * 1_000_000)
        if idle_since_us <= 0 or idle_since_us > now_us:
            raise IdleQueryError(f"logind: implausible IdleSinceHintMonotonic {idle_since_us}")

        return (now_us - idle_since_us) // 1000

    async def query(self) -> int:
        return await asyncio.to_thread(self.query_sync)

    async def close(self) -> None:
        self._session_id = None

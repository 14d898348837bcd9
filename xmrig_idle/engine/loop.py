from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from .errors import IdleQueryError, RpcError
from .state import decide
from .types import Config, ControlClient, IdleTimeSource, RunState, StepResult

log = logging.getLogger(__name__)


def _label(state: RunState | None) -> str:
    return state.name if state is not None else "UNKNOWN"


class IdleControlLoop:
    """Pause the miner while the user is active, resume it once they go idle.

    The loop owns the run state. It starts unknown so that the first sample
    always issues a command, and only changes after a command succeeds: a
    failed call is retried on the next iteration that still wants it.
    """

    def __init__(
        self,
        *,
        source: IdleTimeSource,
        client: ControlClient,
        config: Config,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._source = source
        self._client = client
        self._config = config
        self._sleep = sleep

        self._state: RunState | None = None
        self._last_printed: RunState | None = None

    @property
    def state(self) -> RunState | None:
        return self._state

    async def step(self) -> StepResult:
        """Run one iteration: sample, decide, act, log.

        Idle query and RPC failures are returned in the result, never raised.
        """

        try:
            idle_ms = await self._source.query()
        except IdleQueryError as exc:
            return self._failed(exc)

        decision = decide(idle_ms, self._config)

        command: str | None = None
        if self._state != decision.target:
            try:
                if decision.target == RunState.PAUSED:
                    command = "pause"
                    await self._client.pause()
                else:
                    command = "resume"
                    await self._client.resume()
            except RpcError as exc:
                return self._failed(exc, idle_ms=idle_ms, command=command)
            self._state = decision.target

        changed = self._state != self._last_printed
        if changed:
            # Print state change only.
            log.info("State changed: %s", _label(self._state))
            log.debug("Will check again in %dms", decision.sleep_ms)
            self._last_printed = self._state
        else:
            log.debug(
                "State: %s, idle %dms, will check again in %dms",
                _label(self._state),
                idle_ms,
                decision.sleep_ms,
            )

        return StepResult(
            state=self._state,
            sleep_ms=decision.sleep_ms,
            idle_ms=idle_ms,
            command=command,
            changed=changed,
        )

    def _failed(
        self, exc: Exception, *, idle_ms: int | None = None, command: str | None = None
    ) -> StepResult:
        # The delay computed in a failed iteration is not trusted.
        return StepResult(
            state=self._state,
            sleep_ms=self._config.interval_ms,
            idle_ms=idle_ms,
            command=command,
            error=exc,
        )

    async def run(self) -> None:
        """Poll forever. Returns only if cancelled or a sleep raises."""

        while True:
            result = await self.step()
            if not result.ok:
                log.warning(
                    "Iteration failed (state %s, retry in %dms): %s",
                    _label(result.state),
                    result.sleep_ms,
                    result.error,
                    exc_info=result.error,
                )
            await self._sleep(result.sleep_ms / 1000)

from dataclasses import dataclass
from enum import Enum
from typing import Final, Protocol


class RunState(Enum):
    PAUSED = "paused"
    RUNNING = "running"


DEFAULT_INTERVAL_MS: Final[int] = 250
DEFAULT_RPC_TIMEOUT_SECONDS: Final[float] = 5.0
DEFAULT_IDLE_SOURCE: Final[str] = "mutter"
IDLE_SOURCES: Final[tuple[str, ...]] = ("mutter", "logind", "win32")


@dataclass(frozen=True)
class Config:
    url: str = ""
    bearer: str = ""
    threshold_ms: int = 0
    interval_ms: int = DEFAULT_INTERVAL_MS
    idle_source: str = DEFAULT_IDLE_SOURCE
    rpc_timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS
    adaptive: bool = True


@dataclass(frozen=True)
class Decision:
    target: RunState
    sleep_ms: int


@dataclass(frozen=True)
class StepResult:
    state: RunState | None
    sleep_ms: int
    idle_ms: int | None = None
    command: str | None = None
    changed: bool = False
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IdleTimeSource(Protocol):
    async def query(self) -> int: ...

    async def close(self) -> None: ...


class ControlClient(Protocol):
    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def stop(self) -> None: ...

    async def close(self) -> None: ...

from .types import Config, Decision, RunState


def decide(idle_ms: int, config: Config) -> Decision:
    """Decide the target run state and the delay before the next sample.

    Rules:
        1. If idle_ms < threshold → PAUSED, sleep until the threshold would be crossed
        2. If idle_ms >= threshold → RUNNING, sleep the regular poll interval
        3. With adaptive disabled, always sleep the poll interval

    Args:
        idle_ms: Milliseconds since the last user input.
        config: Runtime configuration.

    Returns:
        Decision with the target state and the next delay in milliseconds.
    """
    # Saturating: idle past the threshold leaves no remaining time.
    remaining = max(0, config.threshold_ms - idle_ms)

    if remaining > 0:
        sleep_ms = remaining if config.adaptive else config.interval_ms
        return Decision(target=RunState.PAUSED, sleep_ms=sleep_ms)

    return Decision(target=RunState.RUNNING, sleep_ms=config.interval_ms)

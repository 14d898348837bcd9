import argparse
import asyncio

from xmrig_idle.cli.run import build_source, resolve_config
from xmrig_idle.engine.errors import IdleQueryError
from xmrig_idle.engine.state import decide
from xmrig_idle.engine.types import IdleTimeSource


async def _query_once(source: IdleTimeSource) -> int:
    try:
        return await source.query()
    finally:
        await source.close()


def main(args: argparse.Namespace) -> int:
    """Query the idle source once and print what the loop would do."""

    config = resolve_config(args, require_rpc=False)
    source = build_source(config)

    try:
        idle_ms = asyncio.run(_query_once(source))
    except IdleQueryError as e:
        print(f"idle query failed ({config.idle_source}): {e}")
        return 1

    decision = decide(idle_ms, config)

    print(f"idle source: {config.idle_source}")
    print(f"idle: {idle_ms}ms threshold: {config.threshold_ms}ms interval: {config.interval_ms}ms")
    print(f"target state: {decision.target.name}")
    print(f"next check in: {decision.sleep_ms}ms")
    return 0

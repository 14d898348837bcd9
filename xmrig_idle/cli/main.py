from __future__ import annotations

import argparse
import logging
import os
import sys

from xmrig_idle.engine.errors import ConfigurationError
from xmrig_idle.engine.types import IDLE_SOURCES

LOG_ENV = "XMRIG_IDLE_LOG"


def configure_logging(verbosity: int = 0) -> None:
    """INFO by default, DEBUG with -v; XMRIG_IDLE_LOG=<level> wins if valid."""

    level = logging.DEBUG if verbosity > 0 else logging.INFO

    env_level = os.environ.get(LOG_ENV)
    if env_level:
        named = logging.getLevelName(env_level.strip().upper())
        if isinstance(named, int):
            level = named

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _add_common(p: argparse.ArgumentParser, *, rpc: bool = True, loop: bool = True) -> None:
    p.add_argument("--config", help="Path to config.toml (default: user config dir)")
    if loop:
        p.add_argument("--threshold-ms", type=int, help="Idle threshold in milliseconds")
        p.add_argument("--interval-ms", type=int, help="Polling interval in milliseconds")
        p.add_argument("--idle-source", choices=IDLE_SOURCES, help="Idle time backend")
        p.add_argument(
            "--fixed-interval",
            action="store_true",
            help="Always poll at --interval-ms instead of sleeping until the threshold",
        )
    if rpc:
        p.add_argument("--url", help="URL of XMRig's HTTP API")
        p.add_argument("--bearer", help="Bearer token for the Authorization header")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Debug logging")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xmrig-idle")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Pause/resume the miner on idle (foreground)")
    _add_common(run_p)
    run_p.set_defaults(_handler="run")

    check_p = sub.add_parser("check", help="Query idle time once and print the decision")
    _add_common(check_p, rpc=False)
    check_p.set_defaults(_handler="check")

    stop_p = sub.add_parser("stop", help="Send a single stop command to the miner")
    _add_common(stop_p, loop=False)
    stop_p.set_defaults(_handler="stop")

    init_p = sub.add_parser("init", help="Install + enable systemd user service")
    init_p.add_argument("--force", action="store_true", help="Overwrite existing unit")
    init_p.set_defaults(_handler="init")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(getattr(args, "verbose", 0))

    try:
        if args._handler == "run":
            from xmrig_idle.cli.run import main as run_main

            return int(run_main(args))

        if args._handler == "check":
            from xmrig_idle.cli.check import main as check_main

            return int(check_main(args))

        if args._handler == "stop":
            from xmrig_idle.cli.stop import main as stop_main

            return int(stop_main(args))

        if args._handler == "init":
            from xmrig_idle.cli.init import main as init_main

            return int(init_main(force=bool(getattr(args, "force", False))))
    except ConfigurationError as e:
        print(f"xmrig-idle: configuration error: {e}", file=sys.stderr)
        return 2

    raise RuntimeError(f"Unknown command: {args._handler}")


if __name__ == "__main__":
    raise SystemExit(main())

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from xmrig_idle.control.xmrig import XmrigClient
from xmrig_idle.engine.errors import ConfigurationError
from xmrig_idle.engine.loop import IdleControlLoop
from xmrig_idle.engine.types import Config, IdleTimeSource
from xmrig_idle.store import apply_overrides, load_config, validate_config

log = logging.getLogger(__name__)

BEARER_ENV = "XMRIG_IDLE_BEARER"


def resolve_config(
    args: argparse.Namespace, *, require_rpc: bool = True, require_loop: bool = True
) -> Config:
    """Config file, then XMRIG_IDLE_BEARER, then command-line flags."""

    config_path = Path(args.config) if getattr(args, "config", None) else None
    if config_path is not None and not config_path.exists():
        raise ConfigurationError(f"config file not found: {config_path}")

    config, meta = load_config(config_path)
    if meta.get("error"):
        raise ConfigurationError(meta["error"])
    log.debug("config: %s (loaded=%s)", meta.get("path"), meta.get("loaded"))

    ignored = meta.get("ignored") or []
    if ignored:
        log.warning("config %s: ignored keys with a wrong type: %s", meta["path"], ", ".join(ignored))

    bearer = getattr(args, "bearer", None)
    if bearer is None:
        bearer = os.environ.get(BEARER_ENV)

    config = apply_overrides(
        config,
        url=getattr(args, "url", None),
        bearer=bearer,
        threshold_ms=getattr(args, "threshold_ms", None),
        interval_ms=getattr(args, "interval_ms", None),
        idle_source=getattr(args, "idle_source", None),
        adaptive=False if getattr(args, "fixed_interval", False) else None,
    )

    try:
        return validate_config(config, require_rpc=require_rpc, require_loop=require_loop)
    except ConfigurationError as e:
        if ignored:
            raise ConfigurationError(
                f"{e} (ignored keys with a wrong type in {meta['path']}: {', '.join(ignored)})"
            ) from e
        raise


def build_source(config: Config) -> IdleTimeSource:
    if config.idle_source == "mutter":
        from xmrig_idle.providers.mutter import MutterIdleSource

        return MutterIdleSource()

    if config.idle_source == "logind":
        from xmrig_idle.providers.linux import LogindIdleSource

        return LogindIdleSource()

    if config.idle_source == "win32":
        from xmrig_idle.providers.win32 import Win32IdleSource

        return Win32IdleSource()

    raise ConfigurationError(f"unknown idle source: {config.idle_source}")


def build_client(config: Config) -> XmrigClient:
    return XmrigClient(
        url=config.url,
        bearer=config.bearer,
        timeout=config.rpc_timeout_seconds,
    )


async def _serve(loop: IdleControlLoop, source: IdleTimeSource, client: XmrigClient) -> None:
    if sys.platform != "win32":
        task = asyncio.current_task()
        if task is not None:
            asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, task.cancel)

    try:
        await loop.run()
    finally:
        await source.close()
        await client.close()


def main(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    source = build_source(config)
    client = build_client(config)

    loop = IdleControlLoop(source=source, client=client, config=config)

    log.info(
        "Starting xmrig-idle: rpc=%s threshold=%dms interval=%dms source=%s adaptive=%s",
        client.endpoint,
        config.threshold_ms,
        config.interval_ms,
        config.idle_source,
        config.adaptive,
    )

    try:
        asyncio.run(_serve(loop, source, client))
    except (KeyboardInterrupt, asyncio.CancelledError):
        log.info("Stopping...")

    return 0

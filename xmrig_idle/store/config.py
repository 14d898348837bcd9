from __future__ import annotations

import dataclasses
import tomllib
from pathlib import Path
from urllib.parse import urlsplit

from platformdirs import user_config_dir

from xmrig_idle.engine.errors import ConfigurationError
from xmrig_idle.engine.types import IDLE_SOURCES, Config

APP_NAME = "xmrig-idle"


def get_config_path() -> Path:
    return Path(user_config_dir(APP_NAME)) / "config.toml"


def default_config_toml(config: Config | None = None) -> str:
    cfg = config or Config()
    # Keep it minimal and editable.
    return (
        "# xmrig-idle configuration\n"
        "# Location: ~/.config/xmrig-idle/config.toml (or XDG_CONFIG_HOME)\n"
        "\n"
        "# XMRig HTTP API base URL; RPC calls go to <url>/json_rpc\n"
        f'url = "{cfg.url}"\n'
        "# Bearer token (or set XMRIG_IDLE_BEARER)\n"
        f'bearer = "{cfg.bearer}"\n'
        "\n"
        "# Idle time after which the miner is resumed (required, > 0)\n"
        f"threshold_ms = {cfg.threshold_ms}\n"
        "# Re-check cadence while the miner is running\n"
        f"interval_ms = {cfg.interval_ms}\n"
        "# While active, sleep until the threshold would be crossed\n"
        f"adaptive = {str(cfg.adaptive).lower()}\n"
        "\n"
        '# Idle source: "mutter" (GNOME), "logind" or "win32"\n'
        f'idle_source = "{cfg.idle_source}"\n'
        f"rpc_timeout_seconds = {cfg.rpc_timeout_seconds}\n"
    )


def ensure_default_config_file(path: Path | None = None) -> Path:
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    if not config_path.exists():
        config_path.write_text(default_config_toml(), encoding="utf-8")
    return config_path


def load_config(path: Path | None = None, *, create_if_missing: bool = False) -> tuple[Config, dict]:
    """Load config.toml, returning (Config, meta).

    Unknown keys are ignored. Known keys holding the wrong type are skipped
    and listed in meta["ignored"]. Meta also carries diagnostics for the CLI.
    The result is not validated here.
    """

    config_path = path or get_config_path()
    meta: dict = {"path": str(config_path), "loaded": False, "created": False}

    if create_if_missing:
        before = config_path.exists()
        ensure_default_config_file(config_path)
        meta["created"] = not before

    if not config_path.exists():
        return Config(), meta

    try:
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        meta["error"] = f"config_read_error: {e}"
        return Config(), meta

    values: dict = {}
    ignored: list[str] = []

    def _take(key: str, ok) -> None:
        if key not in raw:
            return
        value = raw[key]
        # bool is an int subclass; `threshold_ms = true` is not a number.
        if isinstance(value, bool) != (ok is bool) or not isinstance(value, ok):
            ignored.append(key)
            return
        values[key] = value

    for key in ("url", "bearer", "idle_source"):
        _take(key, str)
    for key in ("threshold_ms", "interval_ms"):
        _take(key, int)
    _take("rpc_timeout_seconds", int | float)
    _take("adaptive", bool)

    for key in ("url", "bearer", "idle_source"):
        if key in values:
            values[key] = values[key].strip()
    if "rpc_timeout_seconds" in values:
        values["rpc_timeout_seconds"] = float(values["rpc_timeout_seconds"])

    if ignored:
        meta["ignored"] = ignored
    meta["loaded"] = True
    return Config(**values), meta


def apply_overrides(config: Config, **overrides) -> Config:
    """Layer explicitly given values (not None) over a loaded config."""

    unknown = set(overrides) - {f.name for f in dataclasses.fields(Config)}
    if unknown:
        raise TypeError(f"unknown config fields: {sorted(unknown)}")

    given = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(config, **given)


def validate_config(
    config: Config, *, require_rpc: bool = True, require_loop: bool = True
) -> Config:
    """Raise ConfigurationError unless the config can start the loop.

    require_rpc checks url, bearer and timeout; require_loop checks threshold,
    interval and idle source. One-shot commands turn off the half they don't use.
    """

    if require_rpc:
        if not config.url:
            raise ConfigurationError("url is required")
        parts = urlsplit(config.url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigurationError(f"url must be an http(s) URL, got {config.url!r}")

        if not config.bearer:
            raise ConfigurationError("bearer token is required")
        if config.rpc_timeout_seconds <= 0:
            raise ConfigurationError("rpc_timeout_seconds must be > 0")

    if require_loop:
        if config.threshold_ms <= 0:
            raise ConfigurationError("threshold_ms must be > 0")
        if config.interval_ms <= 0:
            raise ConfigurationError("interval_ms must be > 0")

        if config.idle_source not in IDLE_SOURCES:
            raise ConfigurationError(
                f"idle_source must be one of {', '.join(IDLE_SOURCES)}, got {config.idle_source!r}"
            )

    return config

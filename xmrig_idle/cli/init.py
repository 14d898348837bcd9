from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path

from xmrig_idle.engine.errors import ConfigurationError
from xmrig_idle.store import ensure_default_config_file, load_config, validate_config

SERVICE_NAME = "xmrig-idle.service"


def _systemd_user_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "systemd" / "user"
    return Path.home() / ".config" / "systemd" / "user"


def _detect_exec_start(config_path: Path) -> str:
    """Return an ExecStart string usable by systemd.

    Preference:
    1) Absolute path to `xmrig-idle` script on PATH
    2) sys.executable -m xmrig_idle.cli.main
    """

    exe = shutil.which("xmrig-idle")
    command = exe if exe else f"{sys.executable} -m xmrig_idle.cli.main"
    return f"{command} run --config {shlex.quote(str(config_path))}"


def _render_service(*, exec_start: str) -> str:
    # The Mutter idle monitor lives on the session bus, so run inside the
    # graphical session rather than as a system service.
    return (
        "[Unit]\n"
        "Description=xmrig-idle: pause XMRig while the desktop is in use\n"
        "After=graphical-session.target\n"
        "PartOf=graphical-session.target\n"
        "\n"
        "[Service]\n"
        "Type=simple\n"
        f"ExecStart={exec_start}\n"
        "Restart=on-failure\n"
        "RestartSec=3\n"
        "\n"
        "[Install]\n"
        "WantedBy=graphical-session.target\n"
    )


def config_problem(config_path: Path) -> str | None:
    """Why the service could not start from this file, or None if it can.

    Only the file counts: the service does not see XMRIG_IDLE_BEARER or flags.
    """

    config, meta = load_config(config_path)
    if meta.get("error"):
        return str(meta["error"])
    try:
        validate_config(config)
    except ConfigurationError as e:
        return str(e)
    return None


def main(*, force: bool = False) -> int:
    if sys.platform != "linux":
        print("init is currently supported only on Linux (systemd user)")
        return 1

    systemctl = shutil.which("systemctl")
    if not systemctl:
        print("systemctl not found; cannot enable systemd user service")
        return 1

    unit_path = _systemd_user_dir() / SERVICE_NAME
    if unit_path.exists() and not force:
        print(f"Service already exists: {unit_path}")
        print("Re-run with --force to overwrite")
        return 1

    config_path = ensure_default_config_file()
    problem = config_problem(config_path)

    unit_path.parent.mkdir(parents=True, exist_ok=True)
    unit_path.write_text(
        _render_service(exec_start=_detect_exec_start(config_path)), encoding="utf-8"
    )

    # Starting with an unusable config would only crash-loop under Restart=on-failure.
    enable = ["enable", SERVICE_NAME] if problem else ["enable", "--now", SERVICE_NAME]

    try:
        subprocess.run([systemctl, "--user", "daemon-reload"], check=True)
        subprocess.run([systemctl, "--user", *enable], check=True)
    except subprocess.CalledProcessError as e:
        print(f"systemctl failed: {e}")
        print(f"Unit written to: {unit_path}")
        print("You can try manually:")
        print("  systemctl --user daemon-reload")
        print(f"  systemctl --user {' '.join(enable)}")
        return 1

    if problem:
        print(f"Installed and enabled (not started): {unit_path}")
        print(f"Config {config_path} is not usable yet: {problem}")
        print("Set url, bearer and threshold_ms there, then start it:")
        print(f"  systemctl --user start {SERVICE_NAME}")
        return 0

    print(f"Installed, enabled and started: {unit_path}")
    print(f"Config: {config_path}")
    print("Check status:")
    print(f"  systemctl --user status {SERVICE_NAME}")
    return 0

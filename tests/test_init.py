import sys
from unittest.mock import patch

import pytest

from xmrig_idle.cli import init


def test_render_service_runs_in_graphical_session():
    unit = init._render_service(exec_start="/usr/bin/xmrig-idle run")

    assert "ExecStart=/usr/bin/xmrig-idle run\n" in unit
    assert "After=graphical-session.target" in unit
    assert "WantedBy=graphical-session.target" in unit


def test_detect_exec_start_points_at_config(tmp_path):
    config_path = tmp_path / "my config.toml"

    with patch("xmrig_idle.cli.init.shutil.which", return_value="/opt/bin/xmrig-idle"):
        assert (
            init._detect_exec_start(config_path)
            == f"/opt/bin/xmrig-idle run --config '{config_path}'"
        )

    with patch("xmrig_idle.cli.init.shutil.which", return_value=None):
        assert "-m xmrig_idle.cli.main run --config" in init._detect_exec_start(config_path)


def test_config_problem(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('url = "http://127.0.0.1:8080"\nbearer = "t"\n', encoding="utf-8")
    assert "threshold_ms must be > 0" in init.config_problem(path)

    path.write_text("url = [", encoding="utf-8")
    assert init.config_problem(path)

    path.write_text(
        'url = "http://127.0.0.1:8080"\nbearer = "t"\nthreshold_ms = 60000\n', encoding="utf-8"
    )
    assert init.config_problem(path) is None


def _systemctl_calls(mock_run) -> list[list[str]]:
    return [c.args[0] for c in mock_run.call_args_list]


@pytest.mark.skipif(sys.platform != "linux", reason="systemd user services are Linux only")
def test_init_enables_without_starting_on_default_config(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    with patch("xmrig_idle.cli.init.shutil.which", return_value="/usr/bin/systemctl"):
        with patch("xmrig_idle.cli.init.subprocess.run") as mock_run:
            assert init.main() == 0

            # Existing unit is kept without --force.
            assert init.main() == 1

    calls = _systemctl_calls(mock_run)
    assert calls == [
        ["/usr/bin/systemctl", "--user", "daemon-reload"],
        ["/usr/bin/systemctl", "--user", "enable", "xmrig-idle.service"],
    ]

    out = capsys.readouterr().out
    assert "not started" in out
    assert "url is required" in out
    assert "systemctl --user start xmrig-idle.service" in out
    assert (tmp_path / "systemd" / "user" / "xmrig-idle.service").exists()
    assert (tmp_path / "xmrig-idle" / "config.toml").exists()


@pytest.mark.skipif(sys.platform != "linux", reason="systemd user services are Linux only")
def test_init_starts_service_when_config_is_valid(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    config_path = tmp_path / "xmrig-idle" / "config.toml"
    config_path.parent.mkdir(parents=True)
    config_path.write_text(
        'url = "http://127.0.0.1:8080"\nbearer = "t"\nthreshold_ms = 60000\n', encoding="utf-8"
    )

    with patch("xmrig_idle.cli.init.shutil.which", return_value="/usr/bin/systemctl"):
        with patch("xmrig_idle.cli.init.subprocess.run") as mock_run:
            assert init.main(force=True) == 0

    assert _systemctl_calls(mock_run)[-1] == [
        "/usr/bin/systemctl",
        "--user",
        "enable",
        "--now",
        "xmrig-idle.service",
    ]
    assert "started" in capsys.readouterr().out

    unit = (tmp_path / "systemd" / "user" / "xmrig-idle.service").read_text(encoding="utf-8")
    assert f"run --config {config_path}" in unit

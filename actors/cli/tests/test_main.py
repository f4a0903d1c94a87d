"""CLI tests for Urchin Typer commands."""

from __future__ import annotations

import importlib
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Iterator
from urllib.parse import urlsplit

import pytest
from typer.testing import CliRunner


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Drop handlers the CLI installs on the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _install_fake_sdk(monkeypatch: Any) -> ModuleType:
    """Install a fake `packages.urchin_sdk` module for CLI tests."""

    module = ModuleType("packages.urchin_sdk")
    module.calls = []

    class DomainError(Exception):
        """Fake domain-level typed error."""

    class TransportError(Exception):
        """Fake transport-level typed error."""

    @dataclass(frozen=True)
    class UrchinSdkConfig:
        """Fake SDK config mirroring the fields the CLI reads."""

        endpoint: str
        filter: str
        timeout_seconds: float | None

        def validate(self) -> None:
            if "://" not in self.endpoint:
                raise DomainError(f"invalid endpoint: {self.endpoint!r} is not an absolute URL")

        @property
        def endpoint_host(self) -> str:
            return urlsplit(self.endpoint).netloc

        @classmethod
        def from_settings(cls, settings: Any) -> UrchinSdkConfig:
            return cls(
                endpoint=settings.endpoint,
                filter=settings.filter,
                timeout_seconds=settings.timeout_seconds,
            )

    class UrchinClient:
        """Fake SDK client recording constructor inputs."""

        def __init__(self, *, config: UrchinSdkConfig) -> None:
            self.config = config

        def __enter__(self) -> UrchinClient:
            return self

        def __exit__(self, *_: object) -> None:
            return None

    def schedule(
        *,
        client: UrchinClient,
        source_url: str,
        peer: str,
        directory: bool = False,
        overwrite: bool = False,
        byte_range: str = "",
    ) -> dict[str, Any]:
        module.calls.append(
            ("schedule", client.config, source_url, peer, directory, overwrite, byte_range)
        )
        return {
            "status_code": 200,
            "status_msg": "ok",
            "task_id": "task-1",
            "content_length": "1024",
            "content_type": "",
            "signed_url": "http://peer/a?x=1&y=2",
            "data_root": "",
            "data_path": "",
            "data_endpoint": "",
        }

    def check_status(
        *,
        client: UrchinClient,
        source_url: str,
        peer: str,
        directory: bool = False,
        byte_range: str = "",
    ) -> dict[str, Any]:
        module.calls.append(
            ("check_status", client.config, source_url, peer, directory, byte_range)
        )
        return {"status_code": 0, "status_msg": "", "task_id": "task-2"}

    def object_metadata(
        *, client: UrchinClient, source_url: str, peer: str
    ) -> dict[str, Any]:
        module.calls.append(("object_metadata", client.config, source_url, peer))
        return {"key": "a/b.txt", "content_length": 1024, "etag": "abc"}

    module.UrchinClient = UrchinClient
    module.DomainError = DomainError
    module.TransportError = TransportError
    module.schedule = schedule
    module.check_status = check_status
    module.object_metadata = object_metadata

    config_module = ModuleType("packages.urchin_sdk.config")
    config_module.UrchinSdkConfig = UrchinSdkConfig

    monkeypatch.setitem(sys.modules, "packages.urchin_sdk", module)
    monkeypatch.setitem(sys.modules, "packages.urchin_sdk.config", config_module)
    return module


def _load_cli_app(monkeypatch: Any) -> tuple[Any, ModuleType, Any]:
    """Load CLI app with fake SDK module installed."""

    sdk_module = _install_fake_sdk(monkeypatch)
    for key in ("URCHIN_CLIENT__ENDPOINT", "URCHIN_CLIENT__FILTER", "URCHIN_CONFIG_PATH"):
        monkeypatch.delenv(key, raising=False)
    if "actors.cli.main" in sys.modules:
        del sys.modules["actors.cli.main"]
    cli_module = importlib.import_module("actors.cli.main")
    cli_module = importlib.reload(cli_module)
    return cli_module.app, sdk_module, cli_module


def _base_args(tmp_path: Path) -> list[str]:
    """Return global flags pointing at an absent config file."""

    return [
        "--config",
        str(tmp_path / "missing.yaml"),
        "--endpoint",
        "http://10.0.0.5:65004",
        "--timeout",
        "1.5",
    ]


SOURCE = "urfs://obs.example.com/cache/a/b.txt"


def test_schedule_defaults_peer_to_endpoint_host(monkeypatch: Any, tmp_path: Path) -> None:
    """Without --peer the configured endpoint host is the destination."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(app, [*_base_args(tmp_path), "schedule", SOURCE])

    assert result.exit_code == 0
    name, config, source_url, peer, directory, overwrite, byte_range = sdk.calls[0]
    assert name == "schedule"
    assert config.endpoint == "http://10.0.0.5:65004"
    assert config.timeout_seconds == 1.5
    assert (source_url, peer, directory, overwrite, byte_range) == (
        SOURCE,
        "10.0.0.5:65004",
        False,
        False,
        "",
    )
    assert "Status: 200 ok" in result.stdout
    assert "Task: task-1" in result.stdout
    assert "Signed URL: http://peer/a?x=1&y=2" in result.stdout


def test_schedule_passes_command_options(monkeypatch: Any, tmp_path: Path) -> None:
    """--peer, --overwrite, --dir and --range reach the SDK call."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            *_base_args(tmp_path),
            "--filter",
            "X-Amz-Date",
            "schedule",
            SOURCE,
            "--peer",
            "10.0.0.1:9000",
            "--overwrite",
            "--dir",
            "--range",
            "bytes=0-99",
        ],
    )

    assert result.exit_code == 0
    _, config, _, peer, directory, overwrite, byte_range = sdk.calls[0]
    assert config.filter == "X-Amz-Date"
    assert (peer, directory, overwrite, byte_range) == (
        "10.0.0.1:9000",
        True,
        True,
        "bytes=0-99",
    )


def test_status_json_output(monkeypatch: Any, tmp_path: Path) -> None:
    """`--json` should emit compact JSON output."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(
        app, [*_base_args(tmp_path), "--json", "status", SOURCE, "--dir"]
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "status_code": 0,
        "status_msg": "",
        "task_id": "task-2",
    }
    assert sdk.calls[0][0] == "check_status"
    assert sdk.calls[0][4] is True


def test_metadata_human_output(monkeypatch: Any, tmp_path: Path) -> None:
    """Metadata renders key, length and non-empty headers."""

    app, _, _ = _load_cli_app(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(app, [*_base_args(tmp_path), "metadata", SOURCE])

    assert result.exit_code == 0
    assert "Object: a/b.txt" in result.stdout
    assert "Length: 1024" in result.stdout
    assert "ETag: abc" in result.stdout
    assert "Digest" not in result.stdout


def test_yaml_config_supplies_endpoint(monkeypatch: Any, tmp_path: Path) -> None:
    """Endpoint from the YAML file is used when no CLI flag overrides it."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    config_path = tmp_path / "urchin.yaml"
    config_path.write_text(
        "client:\n  endpoint: http://192.168.1.7:65004\n", encoding="utf-8"
    )
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(config_path), "metadata", SOURCE])

    assert result.exit_code == 0
    assert sdk.calls[0][3] == "192.168.1.7:65004"


def test_domain_error_maps_to_exit_code_3(monkeypatch: Any, tmp_path: Path) -> None:
    """Domain errors should map to exit code 3."""

    app, sdk, cli_module = _load_cli_app(monkeypatch)
    runner = CliRunner()

    def fail_domain(*, client: Any, **_: Any) -> Any:
        raise sdk.DomainError("content length inconsistent with meta")

    monkeypatch.setattr(cli_module, "schedule", fail_domain)
    result = runner.invoke(app, [*_base_args(tmp_path), "schedule", SOURCE])

    assert result.exit_code == 3
    assert "content length inconsistent" in result.stderr


def test_transport_error_maps_to_exit_code_4(monkeypatch: Any, tmp_path: Path) -> None:
    """Transport errors should map to exit code 4."""

    app, sdk, cli_module = _load_cli_app(monkeypatch)
    runner = CliRunner()

    def fail_transport(*, client: Any, **_: Any) -> Any:
        raise sdk.TransportError("bad response status 500")

    monkeypatch.setattr(cli_module, "check_status", fail_transport)
    result = runner.invoke(app, [*_base_args(tmp_path), "--json", "status", SOURCE])

    assert result.exit_code == 4
    assert json.loads(result.stderr) == {"error": "bad response status 500"}


def test_invalid_config_file_maps_to_exit_code_2(
    monkeypatch: Any, tmp_path: Path
) -> None:
    """A config file that is not a mapping is reported as a usage error."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    config_path = tmp_path / "urchin.yaml"
    config_path.write_text("- not\n- a mapping\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(app, ["--config", str(config_path), "metadata", SOURCE])

    assert result.exit_code == 2
    assert "top-level mapping" in result.stderr
    assert sdk.calls == []


def test_relative_endpoint_maps_to_exit_code_2(
    monkeypatch: Any, tmp_path: Path
) -> None:
    """An endpoint without scheme fails config validation before any call."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "--config",
            str(tmp_path / "missing.yaml"),
            "--endpoint",
            "foo",
            "--json",
            "schedule",
            SOURCE,
        ],
    )

    assert result.exit_code == 2
    assert "invalid endpoint" in json.loads(result.stderr)["error"]
    assert sdk.calls == []


def test_numeric_filter_from_env_is_kept_as_text(
    monkeypatch: Any, tmp_path: Path
) -> None:
    """URCHIN_CLIENT__FILTER=1 reaches the SDK as the string "1"."""

    app, sdk, _ = _load_cli_app(monkeypatch)
    monkeypatch.setenv("URCHIN_CLIENT__FILTER", "1")
    runner = CliRunner()

    result = runner.invoke(app, [*_base_args(tmp_path), "status", SOURCE])

    assert result.exit_code == 0
    assert sdk.calls[0][1].filter == "1"


def test_typer_usage_errors_are_unchanged(monkeypatch: Any, tmp_path: Path) -> None:
    """Typer validation/usage behavior should remain default."""

    app, _, _ = _load_cli_app(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(app, [*_base_args(tmp_path), "schedule"])

    assert result.exit_code == 2
    assert "Missing argument" in result.stderr


def test_serialize_dataclass(monkeypatch: Any) -> None:
    """Dataclass instances are serialized to dicts recursively."""
    _, _, cli_module = _load_cli_app(monkeypatch)

    @dataclass
    class Inner:
        value: int

    @dataclass
    class Outer:
        name: str
        inner: Inner

    result = cli_module._serialize(Outer(name="x", inner=Inner(value=7)))
    assert result == {"name": "x", "inner": {"value": 7}}


def test_serialize_pydantic_model(monkeypatch: Any) -> None:
    """Objects with model_dump() are serialized via that method."""
    _, _, cli_module = _load_cli_app(monkeypatch)

    class FakeModel:
        def model_dump(self, mode: str = "python") -> dict[str, Any]:
            return {"task_id": "t", "status_code": 1}

    assert cli_module._serialize(FakeModel()) == {"task_id": "t", "status_code": 1}


def test_render_peer_result_skips_empty_fields(monkeypatch: Any) -> None:
    """Empty peer result fields are not rendered."""
    _, _, cli_module = _load_cli_app(monkeypatch)

    output = cli_module._render_peer_result(
        {"status_code": 404, "status_msg": "", "task_id": "", "data_root": "/data"}
    )

    assert output.splitlines() == ["Status: 404", "  Data root: /data"]

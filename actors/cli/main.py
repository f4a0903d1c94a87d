"""Urchin CLI actor implemented with Typer."""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import typer
from packages.urchin_sdk import (
    DomainError,
    TransportError,
    UrchinClient,
    check_status,
    object_metadata,
    schedule,
)
from packages.urchin_sdk.config import UrchinSdkConfig
from packages.urchin_shared.config import DEFAULT_CONFIG_PATH, load_settings
from packages.urchin_shared.logging import configure_logging

SUCCESS_EXIT_CODE = 0
USAGE_ERROR_EXIT_CODE = 2
DOMAIN_ERROR_EXIT_CODE = 3
TRANSPORT_ERROR_EXIT_CODE = 4


class LogLevel(str, Enum):
    """Supported log levels for the ``--log-level`` option."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to SDK calls."""

    sdk: UrchinSdkConfig
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if dataclasses.is_dataclass(value):
        return _serialize(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    if hasattr(value, "__dict__"):
        return _serialize(
            {k: v for k, v in vars(value).items() if not k.startswith("_")}
        )
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(data)
    if rendered is not None:
        typer.echo(rendered)
        return
    if data is None:
        typer.echo("ok")
        return
    typer.echo(str(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render mapped SDK errors to stderr."""

    if as_json:
        typer.echo(json.dumps({"error": str(exc)}), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _render_human(data: Any) -> str | None:
    """Return human-oriented rendering for recognized response shapes."""
    if isinstance(data, dict):
        if _looks_like_peer_result(data):
            return _render_peer_result(data)
        if _looks_like_object_metadata(data):
            return _render_object_metadata(data)
        return json.dumps(data, indent=2, sort_keys=True)
    return None


def _looks_like_peer_result(value: dict[str, Any]) -> bool:
    """Return True for schedule/status payloads."""
    return "status_code" in value and "task_id" in value


def _looks_like_object_metadata(value: dict[str, Any]) -> bool:
    """Return True for object metadata payloads."""
    return "key" in value and "content_length" in value


def _render_peer_result(data: dict[str, Any]) -> str:
    """Render one peer result, skipping empty fields."""
    status_code = data.get("status_code", 0)
    status_msg = str(data.get("status_msg", "")).strip()
    lines = [f"Status: {status_code} {status_msg}".rstrip()]
    for label, key in (
        ("Task", "task_id"),
        ("Length", "content_length"),
        ("Type", "content_type"),
        ("Signed URL", "signed_url"),
        ("Data root", "data_root"),
        ("Data path", "data_path"),
        ("Data endpoint", "data_endpoint"),
    ):
        value = str(data.get(key, "")).strip()
        if value != "":
            lines.append(f"  {label}: {value}")
    return "\n".join(lines)


def _render_object_metadata(data: dict[str, Any]) -> str:
    """Render object metadata headers."""
    lines = [f"Object: {data.get('key', '')}", f"  Length: {data.get('content_length')}"]
    for label, key in (
        ("Type", "content_type"),
        ("Encoding", "content_encoding"),
        ("Language", "content_language"),
        ("Disposition", "content_disposition"),
        ("ETag", "etag"),
        ("Digest", "digest"),
    ):
        value = str(data.get(key, "")).strip()
        if value != "":
            lines.append(f"  {label}: {value}")
    return "\n".join(lines)


def _with_client(cfg: CliConfig) -> UrchinClient:
    """Return one SDK client built from global CLI settings."""
    return UrchinClient(config=cfg.sdk)


def _run_command(cfg: CliConfig, invoke: Callable[[UrchinClient], Any]) -> None:
    """Execute one SDK call and map outputs/errors to process semantics."""
    try:
        with _with_client(cfg) as client:
            result = invoke(client)
    except DomainError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=DOMAIN_ERROR_EXIT_CODE) from exc
    except TransportError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=TRANSPORT_ERROR_EXIT_CODE) from exc

    _emit_output(result, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _resolve_peer(cfg: CliConfig, peer: str | None) -> str:
    """Return the explicit peer or the configured endpoint's host."""
    if peer is not None and peer.strip() != "":
        return peer
    return cfg.sdk.endpoint_host


app = typer.Typer(no_args_is_help=True, help="Urchin command-line interface")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        envvar="URCHIN_CONFIG_PATH",
        help="YAML configuration file",
    ),
    endpoint: str | None = typer.Option(None, help="Urchin service endpoint URL"),
    url_filter: str | None = typer.Option(
        None, "--filter", help="Query params ignored when deriving task ids"
    ),
    timeout: float | None = typer.Option(
        None,
        min=0.001,
        help="Request timeout in seconds",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    log_level: LogLevel | None = typer.Option(
        None, case_sensitive=False, help="Log level"
    ),
) -> None:
    """Resolve settings and store global options for all commands."""

    try:
        settings = load_settings(
            cli_params={
                "client": {
                    "endpoint": endpoint,
                    "filter": url_filter,
                    "timeout_seconds": timeout,
                },
                "logging": {
                    "level": log_level.value if log_level is not None else None
                },
            },
            environ=os.environ,
            config_path=config,
        )
    except ValueError as exc:
        _emit_error(exc, as_json)
        raise typer.Exit(code=USAGE_ERROR_EXIT_CODE) from exc

    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )
    sdk_config = UrchinSdkConfig.from_settings(settings.client)
    try:
        sdk_config.validate()
    except DomainError as exc:
        _emit_error(exc, as_json)
        raise typer.Exit(code=USAGE_ERROR_EXIT_CODE) from exc
    ctx.obj = CliConfig(sdk=sdk_config, as_json=as_json)


@app.command("schedule")
def schedule_command(
    ctx: typer.Context,
    source_url: str = typer.Argument(..., help="urfs://endpoint/bucket/key"),
    peer: str | None = typer.Option(None, help="Destination peer host[:port]"),
    overwrite: bool = typer.Option(False, help="Replace the peer's cached copy"),
    directory: bool = typer.Option(False, "--dir", help="Cache a directory prefix"),
    byte_range: str = typer.Option("", "--range", help="HTTP Range header value"),
) -> None:
    """Ask a peer to cache an object or directory."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda client: schedule(
            client=client,
            source_url=source_url,
            peer=_resolve_peer(cfg, peer),
            directory=directory,
            overwrite=overwrite,
            byte_range=byte_range,
        ),
    )


@app.command("status")
def status_command(
    ctx: typer.Context,
    source_url: str = typer.Argument(..., help="urfs://endpoint/bucket/key"),
    peer: str | None = typer.Option(None, help="Destination peer host[:port]"),
    directory: bool = typer.Option(False, "--dir", help="Check a directory prefix"),
    byte_range: str = typer.Option("", "--range", help="HTTP Range header value"),
) -> None:
    """Report a peer's caching task status."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda client: check_status(
            client=client,
            source_url=source_url,
            peer=_resolve_peer(cfg, peer),
            directory=directory,
            byte_range=byte_range,
        ),
    )


@app.command("metadata")
def metadata_command(
    ctx: typer.Context,
    source_url: str = typer.Argument(..., help="urfs://endpoint/bucket/key"),
    peer: str | None = typer.Option(None, help="Destination peer host[:port]"),
) -> None:
    """Show object metadata as seen by a peer."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda client: object_metadata(
            client=client,
            source_url=source_url,
            peer=_resolve_peer(cfg, peer),
        ),
    )


if __name__ == "__main__":
    app()

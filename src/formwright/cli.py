"""CLI main entry point."""

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError

from .config import Config
from .db import close_db
from .diagnostics import run_form_diagnostics
from .errors import ConfigException, FormwrightException
from .log import setup as setup_log
from .models import FormStructure
from .prefill import PrefillService
from .sales_grid import SalesGridConfig, compute_summary_rows
from .schema import validate_form_schema
from .settings import create_settings_service

logger = logging.getLogger(__name__)


def _load_json(path: str):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}")


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _config(ctx) -> Config:
    return ctx.obj["config"]


@click.group()
@click.option("--config", "-c", default="config.toml", help="Configuration file path")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log debug output to the console")
@click.pass_context
def cli(ctx, config: str, verbose: bool):
    """Formwright - form schema validation, diagnostics and runtime evaluation."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config

    try:
        cfg = Config.load(config)
    except ConfigException as e:
        raise click.ClickException(str(e))

    ctx.obj["config"] = cfg
    setup_log(cfg.log_file, verbose=verbose)


@cli.command(name="validate")
@click.argument("form_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, form_file: str):
    """Validate a form definition against the strict schema."""
    result = validate_form_schema(_load_json(form_file))
    if result.valid:
        click.echo(f"Form schema is valid: {result.data.name}")
        return

    click.echo(f"Form schema is invalid ({len(result.errors)} error(s)):")
    for error in result.errors:
        click.echo(f"  - {error}")
    ctx.exit(1)


@cli.command(name="diagnose")
@click.argument("form_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the report as JSON")
@click.pass_context
def diagnose(ctx, form_file: str, as_json: bool):
    """Run form diagnostics; exits 1 unless the report passes."""
    report = run_form_diagnostics(_load_json(form_file), settings=_config(ctx).diagnostics)

    if as_json:
        _echo_json(report.model_dump(mode="json", by_alias=True, exclude_none=True))
    else:
        click.echo(
            f"Status: {report.status.value} "
            f"({report.page_count} pages, {report.section_count} sections, "
            f"{report.field_count} fields, {report.execution_time}ms)"
        )
        for error in report.errors:
            location = f" [{error.field_id}]" if error.field_id else ""
            click.echo(f"  ERROR {error.type.value}{location}: {error.message}")
        for warning in report.warnings:
            location = f" [{warning.field_id or warning.section_id or warning.page_id}]"
            click.echo(f"  WARN  {warning.type.value}{location}: {warning.message}")

    if not report.passed:
        ctx.exit(1)


@cli.command(name="prefill")
@click.argument("form_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--context-key", default=None, help="Value substituted for :id in API endpoints")
@click.pass_context
def prefill(ctx, form_file: str, context_key: str | None):
    """Resolve the prefill value of every prefill-enabled field."""
    try:
        structure = FormStructure.model_validate(_load_json(form_file))
    except ValidationError as e:
        raise click.ClickException(f"Invalid form structure: {e}")

    service = PrefillService.from_settings(_config(ctx).prefill)
    results = service.prefill_fields(structure.all_fields(), context_key)
    _echo_json({field_id: result.model_dump(mode="json") for field_id, result in results.items()})


@cli.command(name="grid-summary")
@click.argument("grid_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("values_file", type=click.Path(exists=True, dir_okay=False))
def grid_summary(grid_file: str, values_file: str):
    """Evaluate the summary rows of a sales comparison grid."""
    try:
        grid = SalesGridConfig.model_validate(_load_json(grid_file))
    except ValidationError as e:
        raise click.ClickException(f"Invalid grid configuration: {e}")

    values = _load_json(values_file)
    if not isinstance(values, dict):
        raise click.ClickException("Grid values must be an object of {row_id: {column: value}}")

    _echo_json(compute_summary_rows(grid, values))


@cli.group(name="settings")
def settings_group():
    """Read and change application settings."""


@settings_group.command(name="get")
@click.argument("key", required=False)
@click.pass_context
def settings_get(ctx, key: str | None):
    """Print one setting, or all settings when no key is given."""
    try:
        service = create_settings_service(_config(ctx).settings)
        if key is None:
            _echo_json(service.get_all_settings().model_dump())
            return

        value = service.get_setting(key)
        if value is None:
            raise click.ClickException(f"Setting not found: {key}")
        click.echo(value)
    finally:
        close_db()


@settings_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def settings_set(ctx, key: str, value: str):
    """Change one existing setting."""
    try:
        service = create_settings_service(_config(ctx).settings)
        if not service.update_setting(key, value):
            raise click.ClickException(f"Failed to update setting: {key}")
        click.echo(f"{key} = {value}")
    finally:
        close_db()


@cli.command(name="serve")
@click.option("--host", "-h", default=None, help="Override host from config")
@click.option("--port", "-p", default=None, type=int, help="Override port from config")
@click.pass_context
def serve(ctx, host, port):
    """Start the HTTP API server."""
    cfg = _config(ctx)
    host = host or cfg.web.host
    port = port or cfg.web.port

    try:
        import uvicorn

        from .api import create_app

        app = create_app(cfg)
        logger.info(f"Starting API server on {host}:{port}")
        uvicorn.run(app, host=host, port=port, log_level="debug" if cfg.web.debug else "info")
    except FormwrightException as e:
        logger.error(f"Application error: {e}", exc_info=True)
        raise click.ClickException(str(e))


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()

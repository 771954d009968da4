"""Typer based command line entry points for FieldMap."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from fieldmap.config import load_settings
from fieldmap.core.errors import FieldMapError
from fieldmap.core.events import Event, MappingsImported, Notifier, SchemaSelected, Severity, StatusEvent
from fieldmap.core.logger import get_logger
from fieldmap.core.registry import FieldRegistry
from fieldmap.services.workbook import WorkbookService
from fieldmap_io.catalog import Catalog, CatalogError, dump_catalog, load_catalog
from fieldmap_io.errors import WorkbookError
from fieldmap_io.index import MappingIndex
from fieldmap_io.schema import MappingRecord
from fieldmap_io.settings import WorkbookSettings
from fieldmap_io.utils.log import set_level
from fieldmap_io.utils.paths import prepare_output_path

SUMMARY_COLUMNS = ["name", "field_type", "is_mapped", "status_color", "mapped_target_label"]

_SEVERITY_COLORS = {
    Severity.OK: typer.colors.GREEN,
    Severity.WARN: typer.colors.YELLOW,
    Severity.ERROR: typer.colors.RED,
}

app = typer.Typer(help="Mapping workbook utilities for FieldMap.")


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Workbook settings YAML (defaults to $FIELDMAP_CONFIG or the bundled file).",
    ),
) -> None:
    """Configure logging and workbook settings before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")

    logger = get_logger()
    logger.setLevel(level_value)
    set_level(level_value)

    try:
        ctx.obj = load_settings(config)
    except FieldMapError as exc:
        typer.secho(f"Unable to load settings: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _settings(ctx: typer.Context) -> WorkbookSettings:
    return ctx.obj if isinstance(ctx.obj, WorkbookSettings) else WorkbookSettings()


def _echo_status(event: Event) -> None:
    if isinstance(event, StatusEvent):
        typer.secho(event.message, fg=_SEVERITY_COLORS[event.severity], err=True)


def _load_catalog_or_exit(path: Path) -> Catalog:
    try:
        return load_catalog(path)
    except CatalogError as exc:
        typer.secho(f"Unable to load catalog: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _write_bytes(path: Path, data: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@app.command("template")
def cli_template(
    ctx: typer.Context,
    out: Optional[Path] = typer.Argument(None, help="Destination .xlsx (defaults to ~/FieldMap/out)."),
) -> None:
    """Write the blank catalog template for suppliers to fill in."""

    notifier = Notifier()
    notifier.subscribe(_echo_status)
    service = WorkbookService(notifier=notifier, settings=_settings(ctx))
    try:
        data = service.download_template()
    except WorkbookError as exc:
        raise typer.Exit(code=1) from exc
    target = _write_bytes(out or prepare_output_path("fields_template.xlsx"), data)
    typer.echo(str(target))


@app.command("export")
def cli_export(
    ctx: typer.Context,
    catalog_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Catalog YAML file"),
    out: Optional[Path] = typer.Option(None, "--out", help="Destination .xlsx"),
    schema: Optional[str] = typer.Option(None, "--schema", help="Override the schema token stored in the workbook"),
) -> None:
    """Encode a catalog and its saved mappings into a mapping workbook."""

    catalog = _load_catalog_or_exit(catalog_path)
    notifier = Notifier()
    notifier.subscribe(_echo_status)
    try:
        registry = FieldRegistry(catalog.fields)
    except FieldMapError as exc:
        typer.secho(f"Invalid catalog: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    service = WorkbookService(
        registry,
        notifier,
        mapping_source=lambda: catalog.mappings,
        schema_source=lambda: schema or catalog.schema_token,
        settings=_settings(ctx),
    )
    try:
        data = service.download_mapping()
    except WorkbookError as exc:
        raise typer.Exit(code=1) from exc
    target = _write_bytes(out or prepare_output_path(f"{catalog_path.stem}_mapping.xlsx"), data)
    typer.echo(str(target))


@app.command("import")
def cli_import(
    ctx: typer.Context,
    workbook: Path = typer.Argument(..., exists=True, dir_okay=False, help="Mapping workbook (.xlsx/.xlsm)"),
    catalog_path: Optional[Path] = typer.Option(None, "--catalog", help="Existing catalog to merge into"),
    out: Optional[Path] = typer.Option(None, "--out", help="Destination catalog YAML"),
) -> None:
    """Decode a mapping workbook, merge it into a catalog and print a summary."""

    base = _load_catalog_or_exit(catalog_path) if catalog_path else Catalog()
    imported: List[MappingRecord] = []
    selected = {"token": base.schema_token}

    def _on_import(event: Event) -> None:
        if isinstance(event, MappingsImported):
            imported.extend(event.mappings)
        elif isinstance(event, SchemaSelected):
            selected["token"] = event.token

    notifier = Notifier()
    notifier.subscribe(_echo_status, StatusEvent)
    notifier.subscribe(_on_import, MappingsImported, SchemaSelected)
    try:
        registry = FieldRegistry(base.fields)
    except FieldMapError as exc:
        typer.secho(f"Invalid catalog: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    service = WorkbookService(registry, notifier, settings=_settings(ctx))
    try:
        service.upload_mapping(workbook.read_bytes(), workbook.name)
    except (WorkbookError, FieldMapError) as exc:
        raise typer.Exit(code=1) from exc

    frame = registry.to_frame()
    if frame.empty:
        typer.echo("No fields found.")
    else:
        typer.echo(frame[SUMMARY_COLUMNS].to_string(index=False))

    merged = Catalog(
        fields=list(registry.snapshot()),
        mappings=MappingIndex([*base.mappings, *imported]).records(),
        schema_token=selected["token"],
    )
    target = dump_catalog(merged, out or prepare_output_path(f"{workbook.stem}_catalog.yaml"))
    typer.echo(str(target))


@app.command("extract")
def cli_extract(
    ctx: typer.Context,
    template: Path = typer.Argument(..., exists=True, dir_okay=False, help="Filled catalog template"),
    out: Optional[Path] = typer.Option(None, "--out", help="Destination catalog YAML"),
) -> None:
    """Read a filled template into a fresh catalog."""

    notifier = Notifier()
    notifier.subscribe(_echo_status)
    registry = FieldRegistry()
    service = WorkbookService(registry, notifier, settings=_settings(ctx))
    try:
        fields = service.upload_template(template.read_bytes(), template.name)
    except (WorkbookError, FieldMapError) as exc:
        raise typer.Exit(code=1) from exc
    if not fields:
        raise typer.Exit(code=1)
    target = dump_catalog(
        Catalog(fields=list(registry.snapshot())),
        out or prepare_output_path(f"{template.stem}_catalog.yaml"),
    )
    typer.echo(str(target))


if __name__ == "__main__":  # pragma: no cover
    app()

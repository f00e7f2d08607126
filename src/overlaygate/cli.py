"""Typer CLI for overlaygate."""

from __future__ import annotations

import json
import platform
from typing import NoReturn

import typer

from overlaygate.config import load_settings
from overlaygate.core.app import GateContext, build_context
from overlaygate.core.errors import ConfigValidationError, SecurityViolation
from overlaygate.core.modes import OverlayMode
from overlaygate.logging import configure_logging
from overlaygate.main import main as launch
from overlaygate.services.settings_surface import MODE_LABELS, mode_description

app = typer.Typer(no_args_is_help=True)
whitelist_app = typer.Typer(no_args_is_help=True, help="Manage applications allowed in custom_whitelist mode.")
blacklist_app = typer.Typer(no_args_is_help=True, help="Manage applications where the overlay never appears.")
app.add_typer(whitelist_app, name="whitelist")
app.add_typer(blacklist_app, name="blacklist")


def _context() -> GateContext:
    settings = load_settings()
    configure_logging(settings)
    return build_context(settings)


def _reject(exc: Exception) -> NoReturn:
    typer.echo(f"rejected: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def run() -> None:
    """Read focus changes from stdin and print show/hide decisions."""

    launch()


@app.command()
def show(key: str | None = typer.Argument(None)) -> None:
    """Display the overlay config or a single field."""

    data = _context().engine.get_config().model_dump(mode="json")
    if key:
        if key not in data:
            typer.echo(f"unknown field: {key}", err=True)
            raise typer.Exit(code=1)
        data = data[key]
    typer.echo(json.dumps(data, indent=2))


@app.command()
def mode(value: str = typer.Argument(..., help="games_only, all_applications, desktop_mode or custom_whitelist")) -> None:
    """Switch the overlay activation mode."""

    try:
        _context().engine.set_mode(value)
    except ConfigValidationError as exc:
        _reject(exc)
    typer.echo(f"mode: {value}")


@app.command("set")
def set_fields(
    enabled: bool | None = typer.Option(None, "--enabled/--disabled"),
    opacity: float | None = typer.Option(None, help="Between 0.3 and 1.0"),
    hotkey: str | None = typer.Option(None),
    x: int | None = typer.Option(None),
    y: int | None = typer.Option(None),
    click_through: bool | None = typer.Option(None, "--click-through/--no-click-through"),
) -> None:
    """Update overlay appearance and master switch."""

    ctx = _context()
    updates = {
        name: value
        for name, value in (
            ("enabled", enabled),
            ("opacity", opacity),
            ("hotkey", hotkey),
            ("click_through", click_through),
        )
        if value is not None
    }
    if x is not None or y is not None:
        current = ctx.engine.get_config().position
        updates["position"] = (current.x if x is None else x, current.y if y is None else y)
    if not updates:
        typer.echo("nothing to update", err=True)
        raise typer.Exit(code=1)

    try:
        ctx.engine.update_config(updates)
    except ConfigValidationError as exc:
        _reject(exc)
    typer.echo(f"updated: {', '.join(sorted(updates))}")


@whitelist_app.command("add")
def whitelist_add(name: str) -> None:
    if not _context().presenter.add_app(name, whitelist=True):
        typer.echo("application name is blank", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"whitelisted: {name.strip()}")


@whitelist_app.command("remove")
def whitelist_remove(name: str) -> None:
    _context().engine.remove_from_whitelist(name)
    typer.echo(f"removed: {name}")


@blacklist_app.command("add")
def blacklist_add(name: str) -> None:
    if not _context().presenter.add_app(name, whitelist=False):
        typer.echo("application name is blank", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"blacklisted: {name.strip()}")


@blacklist_app.command("remove")
def blacklist_remove(name: str) -> None:
    try:
        _context().engine.remove_from_blacklist(name)
    except SecurityViolation as exc:
        _reject(exc)
    typer.echo(f"removed: {name}")


@blacklist_app.command("list")
def blacklist_list() -> None:
    for name, removable in _context().presenter.blacklist_rows():
        typer.echo(name if removable else f"{name} (locked)")


@app.command()
def check(process: str, title: str = typer.Option("", help="Window title")) -> None:
    """Print whether the overlay would be shown for a focused process."""

    visible = _context().engine.should_show_overlay(process, title)
    typer.echo("show" if visible else "hide")


@app.command()
def modes() -> None:
    """List the activation modes."""

    for item in OverlayMode:
        typer.echo(f"{item.value:<18} {MODE_LABELS[item]} - {mode_description(item)}")


@app.command()
def doctor() -> None:
    """Print environment diagnostics."""

    settings = load_settings()
    configure_logging(settings)
    info = {
        "python": platform.python_version(),
        "platform": platform.platform(),
        "desktop_shell": settings.desktop_shell,
        "paths": {
            "home": str(settings.paths.base_dir),
            "config": str(settings.paths.config_file),
            "logs": str(settings.paths.logs_dir),
        },
    }
    typer.echo(json.dumps(info, indent=2))

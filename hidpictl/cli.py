"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from hidpictl.core.displays import is_apple_silicon
from hidpictl.core.errors import HidpictlError
from hidpictl.core.model import DetectedDisplay, OperationResult
from hidpictl.core.service import HidpiService

app = typer.Typer(help="Enable HiDPI scaled resolutions on external macOS displays")

_state: dict[str, Path | None] = {"config": None}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Path | None = typer.Option(None, "--config", help="Path to a config.yaml"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _state["config"] = config


def _build_service() -> HidpiService:
    service = HidpiService(config_path=_state["config"])
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _resolve(
    service: HidpiService,
    display: str | None,
    vendor: str | None,
    product: str | None,
) -> DetectedDisplay:
    return service.resolve_display(display_hint=display, vendor=vendor, product=product)


def _report(result: OperationResult) -> None:
    if result.success:
        typer.echo(result.message)
        return
    typer.echo(f"Error: {result.message}", err=True)
    if result.failed_step:
        typer.echo(f"Failed step: {result.failed_step}", err=True)
    raise typer.Exit(code=1)


_DISPLAY_OPTION = typer.Option(None, "--display", help="Display index, vendor:product, or partial name")
_VENDOR_OPTION = typer.Option(None, "--vendor", help="Vendor ID in hex, e.g. 10ac")
_PRODUCT_OPTION = typer.Option(None, "--product", help="Product ID in hex, e.g. 40a8")


@app.command("resolutions")
def list_resolutions() -> None:
    """List named resolution ladders."""
    try:
        service = _build_service()
        for name, sizes in service.list_resolutions():
            typer.echo(f"{name}: {', '.join(str(size) for size in sizes)}")
    except HidpictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("displays")
def list_displays() -> None:
    """List attached displays with their vendor and product IDs."""
    try:
        service = _build_service()
        displays = service.list_displays()
        if not displays:
            typer.echo("No displays found")
            return

        typer.echo(f"Apple Silicon: {'yes' if is_apple_silicon() else 'no'}")
        for display in displays:
            typer.echo(f"{display.index}: {display.description}")
    except HidpictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("preview")
def preview(
    resolution: str,
    display: str | None = _DISPLAY_OPTION,
    vendor: str | None = _VENDOR_OPTION,
    product: str | None = _PRODUCT_OPTION,
) -> None:
    """Print the override file that `enable` would install."""
    try:
        service = _build_service()
        target = _resolve(service, display, vendor, product)
        descriptor = service.preview(target, resolution)
        typer.echo(f"# {service.target_path(target)}", err=True)
        typer.echo(descriptor.text, nl=False)
    except HidpictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("enable")
def enable(
    resolution: str,
    display: str | None = _DISPLAY_OPTION,
    vendor: str | None = _VENDOR_OPTION,
    product: str | None = _PRODUCT_OPTION,
) -> None:
    """Install a HiDPI override for a display.

    RESOLUTION is a named ladder (see `resolutions`) or a list of custom
    sizes such as "1856x1044, 1600x900".
    """
    try:
        service = _build_service()
        target = _resolve(service, display, vendor, product)
    except HidpictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    _report(service.apply(target, resolution))


@app.command("disable")
def disable(
    display: str | None = _DISPLAY_OPTION,
    vendor: str | None = _VENDOR_OPTION,
    product: str | None = _PRODUCT_OPTION,
) -> None:
    """Remove HiDPI overrides for a display's vendor."""
    try:
        service = _build_service()
        target = _resolve(service, display, vendor, product)
    except HidpictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    _report(service.remove(target))


@app.command("font-smoothing")
def font_smoothing(
    value: int | None = typer.Option(None, "--set", min=-1, max=3, help="New value, -1 to 3"),
) -> None:
    """Show or set AppleFontSmoothing (-1 uses the system default)."""
    try:
        service = _build_service()
        if value is None:
            current = service.font_smoothing()
            typer.echo(f"AppleFontSmoothing: {'not set' if current is None else current}")
            return
        service.set_font_smoothing(value)
        typer.echo(f"Font smoothing set to {value}. Log out and back in to apply changes.")
    except HidpictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()

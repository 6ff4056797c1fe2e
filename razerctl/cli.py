"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeVar

import typer

from razerctl.core.batched import get_snapshot
from razerctl.core.chroma import (
    BreathingDual,
    BreathingRandom,
    BreathingSingle,
    Color,
    EffectOff,
    LedId,
    LightingEffect,
    ReactiveEffect,
    SpectrumEffect,
    StaticEffect,
)
from razerctl.core.config import load_config
from razerctl.core.device import RazerDevice
from razerctl.core.device_match import profile_for_device
from razerctl.core.errors import RazerctlError, ValidationError
from razerctl.core.model import Dpi, DpiStages
from razerctl.core.service import RazerService

T = TypeVar("T")

app = typer.Typer(help="Configure Razer mice over the vendor HID feature-report protocol")
dpi_app = typer.Typer(help="Read or change sensor DPI and DPI stages")
polling_rate_app = typer.Typer(help="Read or change the polling rate")
led_app = typer.Typer(help="Set the lighting effect")
breathing_app = typer.Typer(help="Breathing lighting effects")

app.add_typer(dpi_app, name="dpi")
app.add_typer(polling_rate_app, name="polling-rate")
app.add_typer(led_app, name="led")
led_app.add_typer(breathing_app, name="breathing")


@dataclass
class _Options:
    device: str | None = None
    settle_delay_ms: int | None = None
    led: str | None = None


@contextmanager
def _cli_errors() -> Iterator[None]:
    try:
        yield
    except RazerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def _options(ctx: typer.Context) -> _Options:
    root = ctx.find_root()
    if isinstance(root.obj, _Options):
        return root.obj
    return _Options()


def _build_service(options: _Options) -> RazerService:
    config = load_config().with_settle_delay_ms(options.settle_delay_ms)
    service = RazerService(config=config)
    for warning in service.load_warnings:
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _with_device(ctx: typer.Context, action: Callable[[RazerDevice], Awaitable[T]]) -> T:
    options = _options(ctx)
    service = _build_service(options)
    device = service.open_device(options.device)
    try:
        return asyncio.run(action(device))
    finally:
        device.close()


def _parse_dpi(text: str) -> Dpi:
    x_text, sep, y_text = text.lower().partition("x")
    try:
        x = int(x_text)
        y = int(y_text) if sep else x
    except ValueError:
        raise ValidationError(f"Invalid DPI '{text}'. Use a number (800) or XxY (800x600)") from None
    return Dpi(x=x, y=y)


@app.callback()
def main(
    ctx: typer.Context,
    device: str | None = typer.Option(None, "--device", help="Product id (hex), bus:address, or partial name"),
    settle_delay_ms: int | None = typer.Option(
        None, "--settle-delay-ms", help="Delay before reads, overrides RAZERCTL_SETTLE_DELAY_MS"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log USB traffic"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    ctx.obj = _Options(device=device, settle_delay_ms=settle_delay_ms)


@app.command("profiles")
def list_profiles(ctx: typer.Context) -> None:
    """List known device profiles and the operations each supports."""
    with _cli_errors():
        service = _build_service(_options(ctx))
        profiles = service.list_profiles()
        if not profiles:
            typer.echo("No profiles loaded")
            raise typer.Exit(code=1)

        for profile in profiles:
            typer.echo(f"{profile.id}: {profile.name} (0x{profile.product_id:04x})")
            typer.echo(f"  operations: {', '.join(sorted(profile.operations))}")
            kinds = ", ".join(kind.value for kind in profile.polling_rate_kinds)
            typer.echo(f"  polling rates: {kinds}")


@app.command("devices")
def list_devices(ctx: typer.Context) -> None:
    """List connected devices and their matched profile."""
    with _cli_errors():
        service = _build_service(_options(ctx))
        devices = service.list_devices()
        if not devices:
            typer.echo("No devices found")
            return

        for device in devices:
            profile = profile_for_device(device, service.profiles)
            matched = profile.id if profile else "<no-profile>"
            typer.echo(f"{device.location} 0x{device.product_id:04x} {device.name} -> {matched}")


def _or_na(value: object | None) -> str:
    return "n/a" if value is None else str(value)


def _echo_stages(stages: DpiStages) -> None:
    typer.echo(f"Active stage: {stages.active}")
    for index, stage in enumerate(stages.stages, start=1):
        marker = "*" if index == stages.active else " "
        typer.echo(f" {marker}{index}: {stage}")


@app.command("info")
def info(ctx: typer.Context) -> None:
    """Print everything the device reports."""
    with _cli_errors():

        async def _run(device: RazerDevice):
            return device.profile, await get_snapshot(device)

        profile, snapshot = _with_device(ctx, _run)
        typer.echo(profile.name)
        typer.echo(f"DPI: {_or_na(snapshot.dpi)}")
        dpi_range = f"{snapshot.dpi_range[0]}-{snapshot.dpi_range[1]}" if snapshot.dpi_range else None
        typer.echo(f"DPI range: {_or_na(dpi_range)}")
        if snapshot.dpi_stages is None:
            typer.echo("DPI stages: n/a")
        else:
            _echo_stages(snapshot.dpi_stages)
        typer.echo(f"Polling rate: {_or_na(snapshot.polling_rate)}")
        battery = f"{snapshot.battery_level:.1f}%" if snapshot.battery_level is not None else None
        typer.echo(f"Battery level: {_or_na(battery)}")
        charging = None if snapshot.charging_status is None else ("yes" if snapshot.charging_status else "no")
        typer.echo(f"Charging: {_or_na(charging)}")


@app.command("battery")
def battery(ctx: typer.Context) -> None:
    """Print battery level and charging status."""
    with _cli_errors():

        async def _run(device: RazerDevice) -> tuple[float, bool]:
            level = await device.get_battery_level()
            await asyncio.sleep(device.config.settle_delay_s)
            return level, await device.get_charging_status()

        level, charging = _with_device(ctx, _run)
        typer.echo(f"Battery level: {level:.1f}%")
        typer.echo(f"Charging: {'yes' if charging else 'no'}")


@dpi_app.command("get")
def dpi_get(ctx: typer.Context) -> None:
    """Print the current DPI."""
    with _cli_errors():
        dpi = _with_device(ctx, lambda device: device.get_dpi())
        typer.echo(f"DPI: {dpi}")


@dpi_app.command("set")
def dpi_set(
    ctx: typer.Context,
    dpi: int = typer.Argument(..., help="DPI for both axes (or X when --y is given)"),
    y: int | None = typer.Option(None, "--y", help="Separate Y-axis DPI"),
) -> None:
    """Set the current DPI."""
    with _cli_errors():
        value = Dpi(x=dpi, y=dpi if y is None else y)
        _with_device(ctx, lambda device: device.set_dpi(value))
        typer.echo(f"DPI set to {value.clamped()}")


@dpi_app.command("get-stages")
def dpi_get_stages(ctx: typer.Context) -> None:
    """Print the DPI stage table."""
    with _cli_errors():
        stages = _with_device(ctx, lambda device: device.get_dpi_stages())
        _echo_stages(stages)


@dpi_app.command("set-stages")
def dpi_set_stages(
    ctx: typer.Context,
    dpis: list[str] = typer.Argument(..., help="Stage DPIs, each N or XxY (max 5)"),
    active: int = typer.Option(1, "--active", help="Active stage (1-indexed)"),
) -> None:
    """Replace the DPI stage table."""
    with _cli_errors():
        stages = DpiStages(active=active, stages=tuple(_parse_dpi(text) for text in dpis))
        _with_device(ctx, lambda device: device.set_dpi_stages(stages))
        typer.echo(f"DPI stages set ({len(stages.stages)} stages, active {stages.active})")


@polling_rate_app.command("get")
def polling_rate_get(ctx: typer.Context) -> None:
    """Print the polling rate in Hz."""
    with _cli_errors():
        rate = _with_device(ctx, lambda device: device.get_polling_rate())
        typer.echo(f"Polling rate: {rate}")


@polling_rate_app.command("set")
def polling_rate_set(
    ctx: typer.Context,
    value: int = typer.Argument(..., help="Polling rate in Hz"),
) -> None:
    """Set the polling rate."""
    with _cli_errors():

        async def _run(device: RazerDevice) -> None:
            await device.set_polling_rate(device.profile.polling_rate_for(value))

        _with_device(ctx, _run)
        typer.echo(f"Polling rate set to {value}")


@led_app.callback()
def led(
    ctx: typer.Context,
    led_name: str | None = typer.Option(None, "--led", help="LED to address (default: profile LED)"),
) -> None:
    _options(ctx).led = led_name


def _apply_effect(ctx: typer.Context, effect: LightingEffect) -> None:
    led_name = _options(ctx).led
    led_id = LedId.from_name(led_name) if led_name else None
    _with_device(ctx, lambda device: device.set_lighting_effect(effect, led=led_id))
    typer.echo(f"Lighting effect set: {type(effect).__name__}")


@led_app.command("off")
def led_off(ctx: typer.Context) -> None:
    """Turn lighting off."""
    with _cli_errors():
        _apply_effect(ctx, EffectOff())


@led_app.command("static")
def led_static(ctx: typer.Context, color: str = typer.Argument(..., help="Color as #RRGGBB")) -> None:
    """Static color."""
    with _cli_errors():
        _apply_effect(ctx, StaticEffect(Color.parse(color)))


@led_app.command("spectrum")
def led_spectrum(ctx: typer.Context) -> None:
    """Cycle through the spectrum."""
    with _cli_errors():
        _apply_effect(ctx, SpectrumEffect())


@led_app.command("reactive")
def led_reactive(
    ctx: typer.Context,
    color: str = typer.Argument(..., help="Color as #RRGGBB"),
    speed: int = typer.Option(2, "--speed", help="Fade speed 1 (short) to 4 (long)"),
) -> None:
    """Light up on input, then fade."""
    with _cli_errors():
        _apply_effect(ctx, ReactiveEffect(Color.parse(color), speed))


@breathing_app.command("random")
def breathing_random(ctx: typer.Context) -> None:
    """Breathe random colors."""
    with _cli_errors():
        _apply_effect(ctx, BreathingRandom())


@breathing_app.command("single")
def breathing_single(ctx: typer.Context, color: str = typer.Argument(..., help="Color as #RRGGBB")) -> None:
    """Breathe one color."""
    with _cli_errors():
        _apply_effect(ctx, BreathingSingle(Color.parse(color)))


@breathing_app.command("dual")
def breathing_dual(
    ctx: typer.Context,
    color1: str = typer.Argument(..., help="First color as #RRGGBB"),
    color2: str = typer.Argument(..., help="Second color as #RRGGBB"),
) -> None:
    """Alternate between two colors."""
    with _cli_errors():
        _apply_effect(ctx, BreathingDual(Color.parse(color1), Color.parse(color2)))


def run() -> None:
    app()


if __name__ == "__main__":
    run()

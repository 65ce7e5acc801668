"""lux entry point — CLI args, async loop, and brightness commands."""

import argparse
import asyncio
import logging
import sys

from rich.console import Console

from lux.config import BACKENDS, get_config
from lux.gateway import BrightnessGateway
from lux.host.base import BrightnessError
from lux.utils.logger import setup_logging

console = Console()

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="lux",
        description="lux — read, set and watch screen brightness",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        help="Host backend (overrides LUX_BACKEND)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("get", help="Print the current brightness")
    sub.add_parser("system", help="Print the brightness recorded at startup")
    set_parser = sub.add_parser("set", help="Set the brightness (0.0 - 1.0)")
    set_parser.add_argument("value", type=float, help="Brightness between 0.0 and 1.0")
    sub.add_parser("reset", help="Restore the brightness recorded at startup")
    sub.add_parser("watch", help="Print every brightness change until Ctrl+C")
    sub.add_parser("check", help="Check which backends are available")
    return parser.parse_args(argv)


def _run_check() -> bool:
    """Report which host backends can reach a display."""
    console.print("\n[bold]lux Backend Check[/]\n")
    all_ok = True

    try:
        from lux.host.sbc import list_displays

        displays = list_displays()
        if displays:
            console.print(f"  [green]✅[/] sbc: {', '.join(displays)}")
        else:
            console.print("  [red]❌[/] sbc: no displays found")
            all_ok = False
    except ImportError:
        console.print(
            "  [yellow]⚠️[/] sbc: screen-brightness-control not installed "
            "(pip install screen-brightness-control)"
        )
        all_ok = False
    except Exception as e:
        console.print(f"  [red]❌[/] sbc: {e}")
        all_ok = False

    from lux.host.sysfs import list_devices

    config = get_config()
    devices = list_devices(config.backlight_root)
    if devices:
        console.print(f"  [green]✅[/] sysfs: {', '.join(devices)}")
    else:
        console.print(f"  [dim]ℹ️[/]  sysfs: no devices under {config.backlight_root}")

    console.print("  [green]✅[/] memory: always available\n")
    return all_ok


async def _watch(gateway: BrightnessGateway) -> None:
    """Print brightness changes until interrupted."""
    console.print("[bold green]Watching brightness[/] (Ctrl+C to stop)\n")
    async for value in gateway.brightness_change_stream():
        console.print(f"  {value:.2f}")


async def _run_command(args: argparse.Namespace, gateway: BrightnessGateway) -> None:
    if args.command == "get":
        value = await gateway.get_current_brightness()
        console.print(f"{value:.2f}")
    elif args.command == "system":
        value = await gateway.get_system_brightness()
        console.print(f"{value:.2f}")
    elif args.command == "set":
        await gateway.set_brightness(args.value)
        console.print(f"[green]Brightness set to {args.value:.2f}[/]")
    elif args.command == "reset":
        await gateway.reset_brightness()
        console.print("[green]Brightness reset[/]")
    elif args.command == "watch":
        await _watch(gateway)


async def _async_main(argv: list[str] | None = None) -> int:
    """Async entry point. Returns the process exit status."""
    args = _parse_args(argv)

    config = get_config()
    if args.backend:
        config.backend = args.backend
    setup_logging(verbose=args.verbose, log_level=config.log_level, log_dir=config.log_dir)

    if args.command == "check":
        return 0 if _run_check() else 1

    from lux.host.factory import create_gateway

    logger.debug("Running %r on %s backend", args.command, config.backend)
    try:
        gateway = create_gateway(config)
        await _run_command(args, gateway)
    except BrightnessError as e:
        console.print(f"[bold red]Brightness error:[/] {e}")
        return 1
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/] {e}")
        return 1
    return 0


def main() -> None:
    """Synchronous entry point."""
    try:
        status = asyncio.run(_async_main())
    except KeyboardInterrupt:
        status = 0
    sys.exit(status)


if __name__ == "__main__":
    main()

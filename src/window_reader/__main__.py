"""Main entry point for window-reader.

This module is executed when running:
- python -m window_reader
- window-reader (via pyproject.toml entry point)
"""

import argparse
import sys

from . import log
from .capture import WindowCapture
from .config import Config
from .errors import ConfigError, HotkeyError
from .hotkey import HotkeyListener, resolve_hotkey
from .pipeline import TranslationPipeline

# How often the main thread wakes up to notice Ctrl+C
JOIN_INTERVAL = 0.5


def list_windows():
    """List all available windows and exit."""
    print("Available windows:")
    print("-" * 60)

    windows = WindowCapture.list_windows()
    for w in windows:
        title = w["title"][:50] + "..." if len(w["title"]) > 50 else w["title"]
        print(f"  {title}")

    print("-" * 60)
    print(f"Total: {len(windows)} windows")


def _parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Capture a window, translate its text and read it aloud"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to config file (default: config.yml)"
    )
    parser.add_argument(
        "--window", "-w",
        type=str,
        default=None,
        help="Window title to capture (overrides config)"
    )
    parser.add_argument(
        "--hotkey", "-k",
        type=str,
        default=None,
        help="Hotkey such as Control+F1 (overrides config)"
    )
    parser.add_argument(
        "--list-windows", "-l",
        action="store_true",
        help="List available windows and exit"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Capture, translate and speak once, then exit"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (includes redacted API traffic)"
    )

    return parser.parse_args(argv)


def _wait_for_exit(listener: HotkeyListener) -> None:
    """Block the main thread until Ctrl+C or the listener dies."""
    while listener.running:
        listener.join(JOIN_INTERVAL)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _parse_arguments(argv)
    log.configure(debug=args.debug)
    logger = log.get_logger()

    if args.list_windows:
        list_windows()
        return 0

    config = Config.load(args.config)
    if args.window:
        config.window_title = args.window
    if args.hotkey:
        config.hotkey = args.hotkey

    if sys.platform != "win32":
        logger.warning("window capture is only supported on Windows", platform=sys.platform)

    try:
        pipeline = TranslationPipeline.from_config(config)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    hotkey = resolve_hotkey(config.hotkey)

    print("Window Text Translator and Speaker")
    print("=" * 50)
    print(f"Target window: {config.window_title}")
    print(f"Hotkey: {config.hotkey}")
    print(f"Model: {config.model} -> {config.target_language}")
    print()

    if args.once:
        pipeline.trigger(wait=True)
        return 0

    listener = HotkeyListener(hotkey, pipeline.trigger)
    try:
        listener.start()
    except HotkeyError as e:
        print(f"Error: {e}")
        print("Try a different key combination or close the application using this hotkey.")
        return 1

    print("Press the hotkey to capture and translate the target window.")
    print("Press Ctrl+C to exit")
    print("-" * 50)

    try:
        _wait_for_exit(listener)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    finally:
        listener.stop()
        pipeline.speaker.stop()
        print("Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())

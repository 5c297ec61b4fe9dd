"""Exceptions raised along the capture, translate and speak cycle."""


class WindowReaderError(Exception):
    """Base class for all window-reader errors."""


class ConfigError(WindowReaderError):
    """Configuration is missing or unusable (e.g. no API key)."""


class WindowNotFoundError(WindowReaderError):
    """No open window matches the configured title."""

    def __init__(self, title: str):
        super().__init__(f"Could not find window with title containing: {title}")
        self.title = title


class CaptureRejectedError(WindowReaderError):
    """The window was found but could not be captured.

    Raised for invalid (non-positive) dimensions, which usually means the
    window is minimized or closing, and for a rejected render call.
    """

    def __init__(self, handle: int, reason: str):
        super().__init__(f"Capture of window {hex(handle)} rejected: {reason}")
        self.handle = handle
        self.reason = reason


class TranslationError(WindowReaderError):
    """The vision-translation service call failed."""


class SpeechError(WindowReaderError):
    """The speech engine failed to speak."""


class HotkeyError(WindowReaderError):
    """The hotkey string could not be parsed or registered."""

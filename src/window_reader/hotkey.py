"""Global hotkey registration using pynput."""

from collections.abc import Callable

from . import log
from .errors import HotkeyError

logger = log.get_logger()

DEFAULT_HOTKEY = "Control+F1"

MODIFIERS = {
    "ctrl": "<ctrl>",
    "control": "<ctrl>",
    "alt": "<alt>",
    "shift": "<shift>",
    "win": "<cmd>",
    "windows": "<cmd>",
}

NAMED_KEYS = {
    "space": "space",
    "tab": "tab",
    "enter": "enter",
    "return": "enter",
    "esc": "esc",
    "escape": "esc",
    "backspace": "backspace",
    "insert": "insert",
    "delete": "delete",
    "del": "delete",
    "home": "home",
    "end": "end",
    "pageup": "page_up",
    "pagedown": "page_down",
    "pause": "pause",
    "printscreen": "print_screen",
    "scrolllock": "scroll_lock",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
}


def _parse_key(part: str) -> str | None:
    lowered = part.lower()
    if len(part) == 1 and part.isascii() and part.isalnum():
        return lowered
    number = lowered[1:]
    # isdigit() alone accepts superscripts and other non-ASCII digits
    if lowered.startswith("f") and number.isascii() and number.isdigit() and 1 <= int(number) <= 24:
        return f"<{lowered}>"
    if lowered in NAMED_KEYS:
        return f"<{NAMED_KEYS[lowered]}>"
    return None


def parse_hotkey(hotkey: str) -> str:
    """Convert a "Control+Shift+T" style string to pynput hotkey format.

    Unknown modifiers are ignored. The last '+'-separated part is the key:
    a letter, a digit, F1-F24 or a named key such as Space or PageUp.

    Args:
        hotkey: Human-readable hotkey string.

    Returns:
        pynput hotkey string, e.g. "<ctrl>+<shift>+t".

    Raises:
        HotkeyError: If the string is empty or the key is not recognized.
    """
    if not hotkey or not hotkey.strip():
        raise HotkeyError("Empty hotkey")

    parts = [p.strip() for p in hotkey.split("+")]
    *modifier_parts, key_part = parts

    modifiers = []
    for part in modifier_parts:
        modifier = MODIFIERS.get(part.lower())
        if modifier is None:
            logger.warning("unknown hotkey modifier ignored", modifier=part)
            continue
        if modifier not in modifiers:
            modifiers.append(modifier)

    key = _parse_key(key_part)
    if key is None:
        raise HotkeyError(f"Invalid hotkey format: {hotkey}")

    return "+".join(modifiers + [key])


def resolve_hotkey(hotkey: str) -> str:
    """Parse a hotkey, falling back to DEFAULT_HOTKEY if it is invalid."""
    try:
        return parse_hotkey(hotkey)
    except HotkeyError as e:
        logger.warning("invalid hotkey, using default", hotkey=hotkey, default=DEFAULT_HOTKEY, err=str(e))
        return parse_hotkey(DEFAULT_HOTKEY)


class HotkeyListener:
    """Calls a function whenever a global key combination is pressed.

    The callback runs on pynput's listener thread, so it must return quickly.
    """

    def __init__(self, hotkey: str, on_activate: Callable[[], None]):
        """Initialize the listener.

        Args:
            hotkey: Hotkey in pynput format (see parse_hotkey).
            on_activate: Called on every press of the combination.
        """
        self.hotkey = hotkey
        self._on_activate = on_activate
        self._listener = None

    def start(self) -> None:
        """Start listening for the hotkey in a background thread.

        Raises:
            HotkeyError: If pynput rejects the hotkey.
        """
        if self._listener is not None:
            return

        from pynput import keyboard

        try:
            self._listener = keyboard.GlobalHotKeys({self.hotkey: self._on_activate})
        except ValueError as e:
            raise HotkeyError(f"Failed to register hotkey {self.hotkey}: {e}") from e
        self._listener.start()
        logger.debug("hotkey listener started", hotkey=self.hotkey)

    def join(self, timeout: float | None = None) -> None:
        """Block until the listener stops."""
        if self._listener is not None:
            self._listener.join(timeout)

    @property
    def running(self) -> bool:
        return self._listener is not None and self._listener.running

    def stop(self) -> None:
        """Stop listening for the hotkey."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

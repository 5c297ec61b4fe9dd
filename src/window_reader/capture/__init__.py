"""Target window capture: locate, restore, render and persist."""

import contextlib
import os
import tempfile
import time
import uuid
from pathlib import Path

from .. import log
from ..errors import CaptureRejectedError, WindowNotFoundError
from .base import CaptureResult
from .convert import encode_png
from .locator import find_window
from .windows import capture_window, get_window_list, is_window_minimized, restore_window

logger = log.get_logger()

DEFAULT_RESTORE_DELAY = 0.2


class WindowCapture:
    """Captures screenshots of a specific window by title.

    Looks for an exact (case-insensitive) title match first and, when
    ``fallback_to_substring_search`` is set, falls back to the first window
    whose title contains the configured title.
    """

    def __init__(
        self,
        window_title: str,
        restore_delay: float = DEFAULT_RESTORE_DELAY,
        fallback_to_substring_search: bool = True,
        last_capture_path: str | os.PathLike = "last_captured.png",
        clear_last_capture_before_attempt: bool = False,
        temp_dir: str | os.PathLike | None = None,
    ):
        """Initialize the window capture.

        Args:
            window_title: Title of the window to capture.
            restore_delay: Seconds to wait after restoring a minimized window.
            fallback_to_substring_search: Retry by partial title when the
                exact match fails.
            last_capture_path: Where a copy of the latest successful capture
                is kept for inspection.
            clear_last_capture_before_attempt: Delete the last capture before
                each attempt instead of only replacing it on success.
            temp_dir: Directory for per-capture temp files (OS default if None).
        """
        self.window_title = window_title
        self.restore_delay = restore_delay
        self.fallback_to_substring_search = fallback_to_substring_search
        self.last_capture_path = Path(last_capture_path)
        self.clear_last_capture_before_attempt = clear_last_capture_before_attempt
        self.temp_dir = Path(temp_dir) if temp_dir is not None else None

    @classmethod
    def from_config(cls, config) -> "WindowCapture":
        return cls(
            window_title=config.window_title,
            restore_delay=config.restore_delay,
            fallback_to_substring_search=config.fallback_to_substring_search,
            last_capture_path=config.last_capture_path,
            clear_last_capture_before_attempt=config.clear_last_capture_before_attempt,
        )

    def capture(self) -> CaptureResult:
        """Locate the target window and capture its client area.

        Returns:
            The captured frame.

        Raises:
            WindowNotFoundError: If no window matches.
            CaptureRejectedError: If the matched window could not be rendered.
        """
        window = find_window(self.window_title, exact_match=True, windows=get_window_list())
        rejected: CaptureRejectedError | None = None

        if window is not None:
            try:
                return self._capture_found(window)
            except CaptureRejectedError as e:
                if not self.fallback_to_substring_search:
                    raise
                logger.warning("exact match capture rejected", title=window["title"], reason=e.reason)
                rejected = e

        if not self.fallback_to_substring_search:
            raise WindowNotFoundError(self.window_title)

        logger.debug("searching by partial title", title=self.window_title)
        candidates = get_window_list()
        if rejected is not None:
            candidates = [w for w in candidates if w["id"] != rejected.handle]

        window = find_window(self.window_title, exact_match=False, windows=candidates)
        if window is None:
            if rejected is not None:
                raise rejected
            raise WindowNotFoundError(self.window_title)

        return self._capture_found(window)

    def _capture_found(self, window: dict) -> CaptureResult:
        """Restore the window if minimized, then capture its client area."""
        window_id = window["id"]
        if is_window_minimized(window_id):
            logger.info("restoring minimized window", title=window["title"], delay=self.restore_delay)
            restore_window(window_id)
            # Let the un-minimize animation and redraw finish
            time.sleep(self.restore_delay)

        result = capture_window(window_id, client_area_only=True)
        logger.info(
            "window captured",
            title=window["title"],
            window_id=hex(window_id),
            width=result.width,
            height=result.height,
        )
        return result

    def capture_to_file(self) -> Path:
        """Capture the target window to a fresh temp PNG file.

        The caller owns the returned file and must delete it. A copy is kept
        at ``last_capture_path``.

        Returns:
            Path of the temp file.

        Raises:
            WindowNotFoundError: If no window matches.
            CaptureRejectedError: If the matched window could not be rendered.
            OSError: If the temp file could not be written.
        """
        if self.clear_last_capture_before_attempt:
            self._clear_last_capture()

        result = self.capture()
        png = encode_png(result.frame)

        temp_dir = self.temp_dir or Path(tempfile.gettempdir())
        temp_path = temp_dir / f"capture_{uuid.uuid4()}.png"
        try:
            temp_path.write_bytes(png)
        except OSError:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise

        self._save_last_capture(png)
        return temp_path

    def _clear_last_capture(self) -> None:
        """Delete the last capture file, ignoring errors."""
        try:
            self.last_capture_path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("could not delete last capture", path=str(self.last_capture_path), err=str(e))

    def _save_last_capture(self, png: bytes) -> None:
        """Atomically replace the last capture file. Failures are only logged."""
        staging = self.last_capture_path.with_name(self.last_capture_path.name + ".tmp")
        try:
            staging.write_bytes(png)
            os.replace(staging, self.last_capture_path)
            logger.info("saved last capture", path=str(self.last_capture_path))
        except OSError as e:
            logger.warning("could not save last capture", path=str(self.last_capture_path), err=str(e))
            with contextlib.suppress(OSError):
                staging.unlink(missing_ok=True)

    @staticmethod
    def list_windows() -> list[dict]:
        """List all available windows.

        Returns:
            List of window dictionaries with id, title, and bounds.
        """
        return get_window_list()


__all__ = ["CaptureResult", "WindowCapture", "capture_window", "find_window"]

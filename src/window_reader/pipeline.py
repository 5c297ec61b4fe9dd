"""The capture, translate and speak cycle triggered by the hotkey."""

import itertools
import threading
from pathlib import Path

from . import log
from .capture import WindowCapture
from .errors import CaptureRejectedError, SpeechError, TranslationError, WindowNotFoundError
from .speech import Speaker
from .vision import VisionTranslator

logger = log.get_logger()

WINDOW_NOT_FOUND_MESSAGE = "Target window not found."
CAPTURE_FAILED_MESSAGE = "Could not capture the target window."
TRANSLATION_FAILED_MESSAGE = "Translation failed."
UNEXPECTED_ERROR_MESSAGE = "Something went wrong."


class TranslationPipeline:
    """Runs one capture, translate and speak cycle at a time.

    A press that arrives while a cycle is running is dropped, not queued.
    """

    def __init__(
        self,
        capture: WindowCapture,
        translator: VisionTranslator,
        speaker: Speaker,
        target_language: str = "English",
        speak_errors: bool = True,
    ):
        self.capture = capture
        self.translator = translator
        self.speaker = speaker
        self.target_language = target_language
        self.speak_errors = speak_errors
        self._busy = threading.Lock()
        self._worker: threading.Thread | None = None
        self._cycles = itertools.count(1)

    @classmethod
    def from_config(cls, config) -> "TranslationPipeline":
        return cls(
            capture=WindowCapture.from_config(config),
            translator=VisionTranslator.from_config(config),
            speaker=Speaker.from_config(config),
            target_language=config.target_language,
            speak_errors=config.speak_errors,
        )

    @property
    def busy(self) -> bool:
        """True while a cycle is running."""
        return self._busy.locked()

    def trigger(self, wait: bool = False) -> bool:
        """Start a cycle unless one is already running.

        Safe to call from the hotkey listener thread: the cycle itself runs
        on a worker thread unless ``wait`` is set.

        Args:
            wait: Run the cycle on the calling thread and return when done.

        Returns:
            True if a cycle was started, False if the press was dropped.
        """
        if not self._busy.acquire(blocking=False):
            logger.info("already processing a request, press ignored")
            return False

        if wait:
            self._run_cycle()
            return True

        try:
            self._worker = threading.Thread(target=self._run_cycle, name="translation-cycle", daemon=True)
            self._worker.start()
        except RuntimeError:
            self._busy.release()
            raise
        return True

    def join(self, timeout: float | None = None) -> None:
        """Wait for the most recently started worker to finish."""
        if self._worker is not None:
            self._worker.join(timeout)

    def _run_cycle(self) -> None:
        """Run one cycle, always releasing the busy flag."""
        try:
            with log.cycle_context(next(self._cycles)):
                try:
                    self.run_once()
                except Exception as e:
                    logger.error("cycle failed", err=str(e))
                    self._report(UNEXPECTED_ERROR_MESSAGE)
        finally:
            self._busy.release()

    def run_once(self) -> str | None:
        """Capture the target window, translate its text and speak it.

        Returns:
            The spoken text, or None if the cycle stopped on an error.
        """
        logger.info("hotkey pressed, starting capture", title=self.capture.window_title)
        capture_file: Path | None = None
        try:
            try:
                capture_file = self.capture.capture_to_file()
            except WindowNotFoundError as e:
                logger.warning("capture failed", err=str(e))
                self._report(WINDOW_NOT_FOUND_MESSAGE)
                return None
            except CaptureRejectedError as e:
                logger.warning("capture failed", err=str(e))
                self._report(CAPTURE_FAILED_MESSAGE)
                return None

            logger.info("sending image for translation", language=self.target_language)
            try:
                text = self.translator.translate_image(capture_file, self.target_language)
            except TranslationError as e:
                logger.error("translation failed", err=str(e))
                self._report(TRANSLATION_FAILED_MESSAGE)
                return None
        finally:
            if capture_file is not None:
                self._delete_temp_file(capture_file)

        logger.info("text extracted", text=text)
        self._speak(text)
        return text

    def _report(self, message: str) -> None:
        if self.speak_errors:
            self._speak(message)

    def _speak(self, text: str) -> None:
        try:
            self.speaker.speak(text)
        except SpeechError as e:
            logger.error("speech failed", err=str(e))

    @staticmethod
    def _delete_temp_file(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("could not delete temp capture", path=str(path), err=str(e))

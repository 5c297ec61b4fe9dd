"""Tests for the hotkey-triggered capture, translate and speak cycle."""

import threading
from unittest.mock import MagicMock

import pytest

from window_reader.errors import (
    CaptureRejectedError,
    SpeechError,
    TranslationError,
    WindowNotFoundError,
)
from window_reader.pipeline import (
    CAPTURE_FAILED_MESSAGE,
    TRANSLATION_FAILED_MESSAGE,
    UNEXPECTED_ERROR_MESSAGE,
    WINDOW_NOT_FOUND_MESSAGE,
    TranslationPipeline,
)


@pytest.fixture
def capture_file(tmp_path):
    path = tmp_path / "capture_test.png"
    path.write_bytes(b"png")
    return path


@pytest.fixture
def parts(capture_file):
    capture = MagicMock()
    capture.window_title = "Notepad"
    capture.capture_to_file.return_value = capture_file
    translator = MagicMock()
    translator.translate_image.return_value = "Hello world"
    speaker = MagicMock()
    return capture, translator, speaker


def _pipeline(parts, **kwargs) -> TranslationPipeline:
    capture, translator, speaker = parts
    return TranslationPipeline(capture, translator, speaker, target_language="English", **kwargs)


class TestRunOnce:
    """Tests for a single cycle."""

    def test_success_speaks_translation(self, parts, capture_file):
        capture, translator, speaker = parts

        text = _pipeline(parts).run_once()

        assert text == "Hello world"
        translator.translate_image.assert_called_once_with(capture_file, "English")
        speaker.speak.assert_called_once_with("Hello world")
        assert not capture_file.exists()

    def test_translation_error_speaks_error_only(self, parts, capture_file):
        """The extracted text is never spoken when translation fails."""
        _, translator, speaker = parts
        translator.translate_image.side_effect = TranslationError("HTTP 500")

        assert _pipeline(parts).run_once() is None

        speaker.speak.assert_called_once_with(TRANSLATION_FAILED_MESSAGE)
        assert not capture_file.exists()

    def test_window_not_found(self, parts):
        capture, translator, speaker = parts
        capture.capture_to_file.side_effect = WindowNotFoundError("Notepad")

        assert _pipeline(parts).run_once() is None

        translator.translate_image.assert_not_called()
        speaker.speak.assert_called_once_with(WINDOW_NOT_FOUND_MESSAGE)

    def test_capture_rejected(self, parts):
        capture, translator, speaker = parts
        capture.capture_to_file.side_effect = CaptureRejectedError(0x10, "PrintWindow failed")

        assert _pipeline(parts).run_once() is None

        translator.translate_image.assert_not_called()
        speaker.speak.assert_called_once_with(CAPTURE_FAILED_MESSAGE)

    def test_errors_not_spoken_when_disabled(self, parts):
        capture, _, speaker = parts
        capture.capture_to_file.side_effect = WindowNotFoundError("Notepad")

        _pipeline(parts, speak_errors=False).run_once()

        speaker.speak.assert_not_called()

    def test_speech_failure_is_not_fatal(self, parts, capture_file):
        _, _, speaker = parts
        speaker.speak.side_effect = SpeechError("no audio device")

        assert _pipeline(parts).run_once() == "Hello world"
        assert not capture_file.exists()


class TestTrigger:
    """Tests for the busy flag around cycles."""

    def test_wait_runs_inline_and_releases(self, parts):
        _, _, speaker = parts
        pipeline = _pipeline(parts)

        assert pipeline.trigger(wait=True) is True

        speaker.speak.assert_called_once_with("Hello world")
        assert not pipeline.busy

    def test_press_during_cycle_is_dropped(self, parts, capture_file):
        capture, translator, _ = parts
        started = threading.Event()
        release = threading.Event()

        def slow_capture():
            started.set()
            release.wait(5)
            return capture_file

        capture.capture_to_file.side_effect = slow_capture
        pipeline = _pipeline(parts)

        assert pipeline.trigger() is True
        assert started.wait(5)
        assert pipeline.busy
        assert pipeline.trigger() is False

        release.set()
        pipeline.join(5)

        assert capture.capture_to_file.call_count == 1
        translator.translate_image.assert_called_once()
        assert not pipeline.busy

    def test_flag_released_after_unexpected_error(self, parts):
        capture, _, speaker = parts
        capture.capture_to_file.side_effect = OSError("disk full")
        pipeline = _pipeline(parts)

        assert pipeline.trigger(wait=True) is True

        assert not pipeline.busy
        speaker.speak.assert_called_once_with(UNEXPECTED_ERROR_MESSAGE)

    def test_next_press_accepted_after_cycle(self, parts):
        capture, _, _ = parts
        pipeline = _pipeline(parts)

        pipeline.trigger()
        pipeline.join(5)
        assert pipeline.trigger() is True
        pipeline.join(5)

        assert capture.capture_to_file.call_count == 2

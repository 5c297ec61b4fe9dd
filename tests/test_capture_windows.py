"""Tests for Win32 window rendering and client-area cropping.

The Win32 calls are patched at the module seams, so these run on any OS.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from window_reader.capture.windows import PW_RENDERFULLCONTENT, _render_window, capture_window
from window_reader.errors import CaptureRejectedError

MODULE = "window_reader.capture.windows"

WINDOW_BOUNDS = {"x": 100, "y": 50, "width": 200, "height": 150}
# 8px borders, 31px title bar
CLIENT_BOUNDS = {"x": 108, "y": 81, "width": 184, "height": 111}


def _frame(width: int, height: int) -> np.ndarray:
    return np.zeros((height, width, 4), dtype=np.uint8)


class TestCaptureWindow:
    """Tests for capture_window."""

    def test_full_window_matches_window_size(self):
        with (
            patch(f"{MODULE}._get_window_bounds", return_value=WINDOW_BOUNDS),
            patch(f"{MODULE}._get_client_bounds") as mock_client,
            patch(f"{MODULE}._render_window", return_value=_frame(200, 150)) as mock_render,
        ):
            result = capture_window(0x1234, client_area_only=False)

        mock_client.assert_not_called()
        mock_render.assert_called_once_with(0x1234, 200, 150)
        assert (result.width, result.height) == (200, 150)
        assert result.crop is None

    def test_client_area_crop(self):
        """The frame is cropped at the client origin relative to the window."""
        frame = _frame(200, 150)
        frame[31, 8] = [1, 2, 3, 255]  # first client pixel
        frame[0, 0] = [9, 9, 9, 255]  # title bar corner

        with (
            patch(f"{MODULE}._get_window_bounds", return_value=WINDOW_BOUNDS),
            patch(f"{MODULE}._get_client_bounds", return_value=CLIENT_BOUNDS),
            patch(f"{MODULE}._render_window", return_value=frame),
        ):
            result = capture_window(0x1234, client_area_only=True)

        assert (result.width, result.height) == (184, 111)
        assert result.crop == {"x": 8, "y": 31, "width": 184, "height": 111}
        assert result.frame[0, 0].tolist() == [1, 2, 3, 255]
        assert result.window_bounds == WINDOW_BOUNDS

    @pytest.mark.parametrize(
        "window_bounds, client_bounds",
        [
            ({"x": 0, "y": 0, "width": 0, "height": 100}, CLIENT_BOUNDS),
            ({"x": 0, "y": 0, "width": 100, "height": -5}, CLIENT_BOUNDS),
            (WINDOW_BOUNDS, {"x": 0, "y": 0, "width": 184, "height": 0}),
        ],
    )
    def test_non_positive_dimensions_rejected(self, window_bounds, client_bounds):
        """Minimized or closing windows report empty rects and are not rendered."""
        with (
            patch(f"{MODULE}._get_window_bounds", return_value=window_bounds),
            patch(f"{MODULE}._get_client_bounds", return_value=client_bounds),
            patch(f"{MODULE}._render_window") as mock_render,
        ):
            with pytest.raises(CaptureRejectedError, match="invalid dimensions"):
                capture_window(0x1234)

        mock_render.assert_not_called()

    def test_missing_window_rect_rejected(self):
        with patch(f"{MODULE}._get_window_bounds", return_value=None):
            with pytest.raises(CaptureRejectedError) as exc_info:
                capture_window(0x1234)

        assert exc_info.value.handle == 0x1234

    def test_missing_client_rect_rejected(self):
        with (
            patch(f"{MODULE}._get_window_bounds", return_value=WINDOW_BOUNDS),
            patch(f"{MODULE}._get_client_bounds", return_value=None),
        ):
            with pytest.raises(CaptureRejectedError, match="client rect"):
                capture_window(0x1234)

    def test_render_failure_rejected(self):
        with (
            patch(f"{MODULE}._get_window_bounds", return_value=WINDOW_BOUNDS),
            patch(f"{MODULE}._get_client_bounds", return_value=CLIENT_BOUNDS),
            patch(f"{MODULE}._render_window", return_value=None),
        ):
            with pytest.raises(CaptureRejectedError) as exc_info:
                capture_window(0x1234)

        assert exc_info.value.reason == "PrintWindow failed"


class TestGetWindowList:
    """Tests for get_window_list."""

    def test_unavailable_platform_returns_empty(self):
        from window_reader.capture.windows import get_window_list

        with patch(f"{MODULE}.WINDOWS_AVAILABLE", False):
            assert get_window_list() == []


class TestCropFrame:
    """Tests for crop_frame."""

    def test_crop_clamped_to_frame(self):
        from window_reader.capture.convert import crop_frame

        frame = np.arange(10 * 8 * 4, dtype=np.uint8).reshape((10, 8, 4))

        cropped = crop_frame(frame, x=-2, y=6, width=5, height=10)

        assert cropped.shape == (4, 3, 4)
        assert (cropped == frame[6:10, 0:3]).all()
        assert cropped.flags["C_CONTIGUOUS"]


HWND = 0x1234
WINDOW_DC = 0x10
MEM_DC = 0x20
BITMAP = 0x30
OLD_BITMAP = 0x40


@pytest.fixture
def windll():
    """ctypes.windll with GDI calls that succeed unless a test says otherwise."""
    mock = MagicMock()
    mock.user32.GetWindowDC.return_value = WINDOW_DC
    mock.user32.PrintWindow.return_value = 1
    mock.gdi32.CreateCompatibleDC.return_value = MEM_DC
    mock.gdi32.CreateCompatibleBitmap.return_value = BITMAP
    mock.gdi32.SelectObject.return_value = OLD_BITMAP
    mock.gdi32.GetDIBits.return_value = 2
    with patch("ctypes.windll", mock, create=True):
        yield mock


def _assert_all_released(windll):
    windll.gdi32.DeleteObject.assert_called_once_with(BITMAP)
    windll.gdi32.DeleteDC.assert_called_once_with(MEM_DC)
    windll.user32.ReleaseDC.assert_called_once_with(HWND, WINDOW_DC)


class TestRenderWindow:
    """Tests for _render_window handle cleanup."""

    def test_success_returns_frame_and_releases_handles(self, windll):
        frame = _render_window(HWND, 3, 2)

        assert frame.shape == (2, 3, 4)
        windll.user32.PrintWindow.assert_called_once_with(HWND, MEM_DC, PW_RENDERFULLCONTENT)
        # Old bitmap is selected back before the bitmap is read and deleted
        assert windll.gdi32.SelectObject.call_args.args == (MEM_DC, OLD_BITMAP)
        _assert_all_released(windll)

    def test_print_window_failure_releases_handles(self, windll):
        windll.user32.PrintWindow.return_value = 0

        assert _render_window(HWND, 3, 2) is None

        windll.gdi32.GetDIBits.assert_not_called()
        _assert_all_released(windll)

    def test_get_dibits_failure_releases_handles(self, windll):
        windll.gdi32.GetDIBits.return_value = 0

        assert _render_window(HWND, 3, 2) is None

        _assert_all_released(windll)

    def test_bitmap_failure_releases_dcs(self, windll):
        windll.gdi32.CreateCompatibleBitmap.return_value = 0

        assert _render_window(HWND, 3, 2) is None

        windll.gdi32.DeleteObject.assert_not_called()
        windll.gdi32.DeleteDC.assert_called_once_with(MEM_DC)
        windll.user32.ReleaseDC.assert_called_once_with(HWND, WINDOW_DC)

    def test_window_dc_failure_releases_nothing(self, windll):
        windll.user32.GetWindowDC.return_value = 0

        assert _render_window(HWND, 3, 2) is None

        windll.gdi32.CreateCompatibleDC.assert_not_called()
        windll.user32.ReleaseDC.assert_not_called()

    def test_print_window_error_releases_handles(self, windll):
        windll.user32.PrintWindow.side_effect = OSError("access denied")

        with pytest.raises(OSError):
            _render_window(HWND, 3, 2)

        _assert_all_released(windll)

"""Windows-specific window capture using Win32 API.

Uses PrintWindow with PW_RENDERFULLCONTENT to render a window's content
off-screen, so the capture is correct even when the window is covered by
other windows.
"""

import ctypes
import sys
from ctypes import wintypes

import numpy as np
from numpy.typing import NDArray

from .. import log
from ..errors import CaptureRejectedError
from .base import CaptureResult
from .convert import crop_frame

logger = log.get_logger()

# Windows-specific imports (pygetwindow refuses to import elsewhere)
try:
    import pygetwindow as gw

    WINDOWS_AVAILABLE = sys.platform == "win32"
except (ImportError, NotImplementedError):
    WINDOWS_AVAILABLE = False

# Win32 API constants
DIB_RGB_COLORS = 0
BI_RGB = 0
PW_RENDERFULLCONTENT = 2  # Render via DWM, works for occluded/composited windows
SW_RESTORE = 9


class RECT(ctypes.Structure):
    """Windows RECT structure."""

    _fields_ = [
        ("left", wintypes.LONG),
        ("top", wintypes.LONG),
        ("right", wintypes.LONG),
        ("bottom", wintypes.LONG),
    ]


class POINT(ctypes.Structure):
    """Windows POINT structure."""

    _fields_ = [
        ("x", wintypes.LONG),
        ("y", wintypes.LONG),
    ]


class BITMAPINFOHEADER(ctypes.Structure):
    _fields_ = [
        ("biSize", wintypes.DWORD),
        ("biWidth", wintypes.LONG),
        ("biHeight", wintypes.LONG),
        ("biPlanes", wintypes.WORD),
        ("biBitCount", wintypes.WORD),
        ("biCompression", wintypes.DWORD),
        ("biSizeImage", wintypes.DWORD),
        ("biXPelsPerMeter", wintypes.LONG),
        ("biYPelsPerMeter", wintypes.LONG),
        ("biClrUsed", wintypes.DWORD),
        ("biClrImportant", wintypes.DWORD),
    ]


class BITMAPINFO(ctypes.Structure):
    _fields_ = [
        ("bmiHeader", BITMAPINFOHEADER),
        ("bmiColors", wintypes.DWORD * 3),
    ]


_signatures_applied = False


def _apply_signatures() -> None:
    """Declare argument/return types so 64-bit handles are not truncated."""
    global _signatures_applied
    if _signatures_applied:
        return

    user32 = ctypes.windll.user32
    gdi32 = ctypes.windll.gdi32
    signatures = [
        (user32, "GetWindowRect", [wintypes.HWND, ctypes.POINTER(RECT)], wintypes.BOOL),
        (user32, "GetClientRect", [wintypes.HWND, ctypes.POINTER(RECT)], wintypes.BOOL),
        (user32, "ClientToScreen", [wintypes.HWND, ctypes.POINTER(POINT)], wintypes.BOOL),
        (user32, "IsIconic", [wintypes.HWND], wintypes.BOOL),
        (user32, "ShowWindow", [wintypes.HWND, ctypes.c_int], wintypes.BOOL),
        (user32, "GetWindowDC", [wintypes.HWND], wintypes.HDC),
        (user32, "ReleaseDC", [wintypes.HWND, wintypes.HDC], ctypes.c_int),
        (user32, "PrintWindow", [wintypes.HWND, wintypes.HDC, wintypes.UINT], wintypes.BOOL),
        (gdi32, "CreateCompatibleDC", [wintypes.HDC], wintypes.HDC),
        (gdi32, "CreateCompatibleBitmap", [wintypes.HDC, ctypes.c_int, ctypes.c_int], wintypes.HBITMAP),
        (gdi32, "SelectObject", [wintypes.HDC, wintypes.HGDIOBJ], wintypes.HGDIOBJ),
        (gdi32, "DeleteObject", [wintypes.HGDIOBJ], wintypes.BOOL),
        (gdi32, "DeleteDC", [wintypes.HDC], wintypes.BOOL),
        (
            gdi32,
            "GetDIBits",
            [
                wintypes.HDC,
                wintypes.HBITMAP,
                wintypes.UINT,
                wintypes.UINT,
                ctypes.c_void_p,
                ctypes.POINTER(BITMAPINFO),
                wintypes.UINT,
            ],
            ctypes.c_int,
        ),
    ]
    for dll, name, args, res in signatures:
        fn = getattr(dll, name)
        fn.argtypes = args
        fn.restype = res

    _signatures_applied = True


def get_window_list() -> list[dict]:
    """Get list of all titled top-level windows, in enumeration order.

    Returns:
        List of window dictionaries with keys: id, title, bounds
    """
    if not WINDOWS_AVAILABLE:
        return []

    windows = []
    for win in gw.getAllWindows():
        if win.title:  # Skip windows without titles
            windows.append(
                {
                    "id": win._hWnd,
                    "title": win.title,
                    "bounds": {
                        "x": win.left,
                        "y": win.top,
                        "width": win.width,
                        "height": win.height,
                    },
                }
            )
    return windows


def _get_window_bounds(window_id: int) -> dict | None:
    """Get the current bounds of a window (full window including chrome).

    Args:
        window_id: The window handle (HWND).

    Returns:
        Dictionary with x, y, width, height or None if failed.
    """
    _apply_signatures()
    rect = RECT()
    if ctypes.windll.user32.GetWindowRect(window_id, ctypes.byref(rect)):
        return {
            "x": rect.left,
            "y": rect.top,
            "width": rect.right - rect.left,
            "height": rect.bottom - rect.top,
        }
    return None


def _get_client_bounds(window_id: int) -> dict | None:
    """Get the client area bounds (content without title bar/borders).

    Args:
        window_id: The window handle (HWND).

    Returns:
        Dictionary with x, y, width, height in screen coordinates, or None if failed.
    """
    _apply_signatures()
    user32 = ctypes.windll.user32

    # Client rect is in client coordinates, so left/top are 0
    client_rect = RECT()
    if not user32.GetClientRect(window_id, ctypes.byref(client_rect)):
        return None

    point = POINT(0, 0)
    if not user32.ClientToScreen(window_id, ctypes.byref(point)):
        return None

    return {
        "x": point.x,
        "y": point.y,
        "width": client_rect.right,
        "height": client_rect.bottom,
    }


def is_window_minimized(window_id: int) -> bool:
    """Check whether the window is minimized (iconic)."""
    _apply_signatures()
    return bool(ctypes.windll.user32.IsIconic(window_id))


def restore_window(window_id: int) -> None:
    """Restore a minimized window to its previous size and position."""
    _apply_signatures()
    ctypes.windll.user32.ShowWindow(window_id, SW_RESTORE)


def _render_window(window_id: int, width: int, height: int) -> NDArray[np.uint8] | None:
    """Render the full window into an off-screen bitmap with PrintWindow.

    Every DC and bitmap acquired here is released before returning, on
    success and on every failure path.

    Args:
        window_id: The window handle (HWND).
        width: Full window width in pixels.
        height: Full window height in pixels.

    Returns:
        Numpy array (H, W, 4) in BGRA format, or None if rendering failed.
    """
    _apply_signatures()
    user32 = ctypes.windll.user32
    gdi32 = ctypes.windll.gdi32

    # Window DC covers the whole window, including title bar and borders
    window_dc = user32.GetWindowDC(window_id)
    if not window_dc:
        return None

    try:
        mem_dc = gdi32.CreateCompatibleDC(window_dc)
        if not mem_dc:
            return None

        try:
            bitmap = gdi32.CreateCompatibleBitmap(window_dc, width, height)
            if not bitmap:
                return None

            try:
                old_bitmap = gdi32.SelectObject(mem_dc, bitmap)
                try:
                    if not user32.PrintWindow(window_id, mem_dc, PW_RENDERFULLCONTENT):
                        return None
                finally:
                    # GetDIBits requires the bitmap not to be selected into a DC
                    gdi32.SelectObject(mem_dc, old_bitmap)

                bmi = BITMAPINFO()
                bmi.bmiHeader.biSize = ctypes.sizeof(BITMAPINFOHEADER)
                bmi.bmiHeader.biWidth = width
                bmi.bmiHeader.biHeight = -height  # Negative for top-down
                bmi.bmiHeader.biPlanes = 1
                bmi.bmiHeader.biBitCount = 32
                bmi.bmiHeader.biCompression = BI_RGB

                buffer = ctypes.create_string_buffer(width * height * 4)
                lines = gdi32.GetDIBits(mem_dc, bitmap, 0, height, buffer, ctypes.byref(bmi), DIB_RGB_COLORS)
                if lines == 0:
                    return None

                return np.frombuffer(buffer, dtype=np.uint8).reshape((height, width, 4)).copy()
            finally:
                gdi32.DeleteObject(bitmap)
        finally:
            gdi32.DeleteDC(mem_dc)
    finally:
        user32.ReleaseDC(window_id, window_dc)


def capture_window(window_id: int, client_area_only: bool = True) -> CaptureResult:
    """Capture a window's content, even when it is covered by other windows.

    Args:
        window_id: The window handle (HWND).
        client_area_only: Crop away the title bar and borders.

    Returns:
        The rendered frame, cropped to the client area if requested.

    Raises:
        CaptureRejectedError: If the window reports non-positive dimensions
            (minimized, closing or invalid) or the render call fails.
    """
    window_bounds = _get_window_bounds(window_id)
    if not window_bounds:
        raise CaptureRejectedError(window_id, "window rect unavailable")

    client_bounds = None
    if client_area_only:
        client_bounds = _get_client_bounds(window_id)
        if not client_bounds:
            raise CaptureRejectedError(window_id, "client rect unavailable")

    for bounds in (window_bounds, client_bounds):
        if bounds is not None and (bounds["width"] <= 0 or bounds["height"] <= 0):
            raise CaptureRejectedError(
                window_id, f"invalid dimensions {bounds['width']}x{bounds['height']}"
            )

    frame = _render_window(window_id, window_bounds["width"], window_bounds["height"])
    if frame is None:
        logger.warning("window render failed", hwnd=hex(window_id))
        raise CaptureRejectedError(window_id, "PrintWindow failed")

    if client_bounds is None:
        return CaptureResult(frame=frame, window_bounds=window_bounds)

    crop = {
        "x": client_bounds["x"] - window_bounds["x"],
        "y": client_bounds["y"] - window_bounds["y"],
        "width": client_bounds["width"],
        "height": client_bounds["height"],
    }
    frame = crop_frame(frame, crop["x"], crop["y"], crop["width"], crop["height"])
    return CaptureResult(frame=frame, window_bounds=window_bounds, crop=crop)

"""Frame format conversion utilities.

Capture stores frames as numpy arrays in native BGRA format.
These utilities crop them and convert BGRA to formats needed by consumers.
"""

import io

import numpy as np
from numpy.typing import NDArray

# Type alias for BGRA frame (height, width, 4 channels)
BGRAFrame = NDArray[np.uint8]


def bgra_to_rgb(frame: BGRAFrame) -> NDArray[np.uint8]:
    """Convert BGRA numpy array to RGB numpy array.

    Args:
        frame: numpy array of shape (H, W, 4) in BGRA format.

    Returns:
        numpy array of shape (H, W, 3) in RGB format.
    """
    # Reorder channels: B=0, G=1, R=2, A=3 -> R=2, G=1, B=0
    rgb = frame[:, :, [2, 1, 0]]
    return np.ascontiguousarray(rgb)


def bgra_to_rgb_pil(frame: BGRAFrame):
    """Convert BGRA numpy array to PIL RGB Image."""
    from PIL import Image

    return Image.fromarray(bgra_to_rgb(frame))


def crop_frame(frame: BGRAFrame, x: int, y: int, width: int, height: int) -> BGRAFrame:
    """Crop a frame to the given rectangle, clamped to the frame edges.

    Args:
        frame: numpy array of shape (H, W, 4).
        x: Left edge of the crop, relative to the frame.
        y: Top edge of the crop, relative to the frame.
        width: Crop width in pixels.
        height: Crop height in pixels.

    Returns:
        A contiguous copy of the cropped region.
    """
    frame_h, frame_w = frame.shape[:2]
    left = max(0, x)
    top = max(0, y)
    right = min(frame_w, x + width)
    bottom = min(frame_h, y + height)
    return np.ascontiguousarray(frame[top:bottom, left:right])


def encode_png(frame: BGRAFrame) -> bytes:
    """Encode a BGRA frame as PNG bytes (RGB, alpha dropped)."""
    buffer = io.BytesIO()
    bgra_to_rgb_pil(frame).save(buffer, format="PNG")
    return buffer.getvalue()

"""Data types shared by the capture modules."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass
class CaptureResult:
    """A rendered window raster.

    Attributes:
        frame: numpy array (H, W, 4) in BGRA format.
        window_bounds: Full window rectangle in screen coordinates.
        crop: Client-area rectangle relative to the window origin, or None
            if the full window was kept.
    """

    frame: NDArray[np.uint8]
    window_bounds: dict
    crop: dict | None = None

    @property
    def width(self) -> int:
        return int(self.frame.shape[1])

    @property
    def height(self) -> int:
        return int(self.frame.shape[0])

"""window-reader - Read a window's text aloud in your language.

On a global hotkey press this application captures a target window,
sends the image to a vision model for OCR and translation, and speaks
the result with the system speech synthesizer.
"""

__version__ = "0.1.0"

# Public API
from .__main__ import list_windows, main

__all__ = ["main", "list_windows", "__version__"]

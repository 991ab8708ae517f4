"""Screen Overlay: transient overlays and live bounding boxes drawn above all windows."""

from screen_overlay.version import __version__

__all__ = ["__version__"]

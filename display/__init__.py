"""On-screen status and alert views."""

from .overlay import NullRenderer, OverlayRenderer, OverlayView, alert_label

__all__ = ["NullRenderer", "OverlayRenderer", "OverlayView", "alert_label"]

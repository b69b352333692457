"""
ROI helpers

Clipping, full-frame fallback, and translation of a rectangle drawn on the
letter-boxed preview into image pixel coordinates.
"""
import math
from typing import Optional, Tuple

from .types import Roi

MIN_ROI_SIDE = 8          # Smaller evaluated regions fall back to the full frame
MIN_VIEW_SELECTION = 4    # Rubber-band selections smaller than this are ignored


def clamp_roi(roi: Optional[Roi], frame_width: int, frame_height: int) -> Roi:
    """Intersect roi with the frame bounds (null roi stays null)."""
    if roi is None:
        return Roi()
    return roi.intersected(Roi.full(frame_width, frame_height))


def effective_roi(roi: Optional[Roi], frame_width: int, frame_height: int) -> Roi:
    """Region actually evaluated: the clipped roi, or the full frame if it is too small."""
    clipped = clamp_roi(roi, frame_width, frame_height)
    if clipped.width < MIN_ROI_SIDE or clipped.height < MIN_ROI_SIDE:
        return Roi.full(frame_width, frame_height)
    return clipped


def _scaled_to_fit(image_size: Tuple[int, int], view_size: Tuple[int, int]) -> Tuple[int, int]:
    # Same integer arithmetic as Qt's QSize.scale(..., KeepAspectRatio)
    img_w, img_h = image_size
    view_w, view_h = view_size
    rw = view_h * img_w // img_h
    if rw <= view_w:
        return rw, view_h
    return view_w, view_w * img_h // img_w


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def map_view_rect_to_image(view_rect: Optional[Roi], view_size: Tuple[int, int],
                           image_size: Tuple[int, int]) -> Roi:
    """
    Map a rectangle drawn on the preview widget to image coordinates.

    The preview shows the image scaled to fit and centred (letter-boxed).
    Returns a null Roi when the selection misses the image, is a stray
    click, or maps to fewer than MIN_ROI_SIDE pixels (meaning "whole frame").

    Args:
        view_rect: Selection in widget coordinates
        view_size: (width, height) of the widget
        image_size: (width, height) of the frame

    Returns:
        Roi in image pixel coordinates, or a null Roi
    """
    if view_rect is None or view_rect.is_null:
        return Roi()
    view_w, view_h = view_size
    img_w, img_h = image_size
    if view_w <= 0 or view_h <= 0 or img_w <= 0 or img_h <= 0:
        return Roi()

    scaled_w, scaled_h = _scaled_to_fit(image_size, view_size)
    if scaled_w <= 0 or scaled_h <= 0:
        return Roi()
    offset_x = (view_w - scaled_w) // 2
    offset_y = (view_h - scaled_h) // 2
    image_rect = Roi(offset_x, offset_y, scaled_w, scaled_h)

    clipped = view_rect.intersected(image_rect)
    if clipped.width < MIN_VIEW_SELECTION or clipped.height < MIN_VIEW_SELECTION:
        return Roi()

    scale_x = img_w / scaled_w
    scale_y = img_h / scaled_h
    x = _round_half_up((clipped.x - offset_x) * scale_x)
    y = _round_half_up((clipped.y - offset_y) * scale_y)
    w = _round_half_up(clipped.width * scale_x)
    h = _round_half_up(clipped.height * scale_y)

    x = min(max(x, 0), img_w - 1)
    y = min(max(y, 0), img_h - 1)
    w = min(max(w, 0), img_w - x)
    h = min(max(h, 0), img_h - y)

    if w < MIN_ROI_SIDE or h < MIN_ROI_SIDE:
        return Roi()
    return Roi(x, y, w, h)


def describe_roi(frame_size: Optional[Tuple[int, int]], roi: Optional[Roi]) -> str:
    """One-line summary of the evaluated region for the panel header"""
    if not frame_size:
        return "ROI: full frame"
    frame_w, frame_h = frame_size
    if roi is None or roi.width < MIN_ROI_SIDE or roi.height < MIN_ROI_SIDE:
        return f"ROI: full frame ({frame_w} x {frame_h})"
    return (f"ROI: ({roi.x}, {roi.y}) {roi.width} x {roi.height}"
            f" / frame {frame_w} x {frame_h}")

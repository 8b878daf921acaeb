# pipeline/visualize.py
from __future__ import annotations

import cv2
import numpy as np

from .models import FrameResult

GREEN = (50, 205, 50)
RED = (0, 0, 255)
WHITE = (255, 255, 255)


def set_label(img: np.ndarray, label: str, p: tuple[float, float]) -> None:
    """Filled label box with white text, kept inside the image."""
    font = cv2.FONT_HERSHEY_SIMPLEX
    scale = 0.7
    (tw, th), baseline = cv2.getTextSize(label, font, scale, 1)
    x = max(0, int(p[0]))
    y = max(th, int(p[1]))
    cv2.rectangle(img, (x, y + baseline), (x + tw, y - th), GREEN, cv2.FILLED)
    cv2.putText(img, label, (x, y), font, scale, WHITE, 1, cv2.LINE_8)


def annotate(image: np.ndarray, result: FrameResult, fps: int, recognition_enabled: bool,
             central_crop: bool = False) -> np.ndarray:
    """Region outlines, labels at the anchor vertex, and the fps/found overlay."""
    vis = image.copy()
    for rec in result.records:
        pts = rec.region.as_array()
        # the synthesized centre box is always shown, in red
        if central_crop and result.synthetic:
            cv2.polylines(vis, [pts.astype(np.int32)], True, RED, 2)
        if rec.text or not recognition_enabled:
            cv2.polylines(vis, [pts.astype(np.int32)], True, GREEN, 2)
        if rec.text:
            set_label(vis, rec.text, rec.region.points[rec.anchor_index])

    cv2.putText(
        vis,
        f"fps: {fps} found: {result.found}",
        (50, 50),
        cv2.FONT_HERSHEY_COMPLEX,
        1,
        RED,
        1,
    )
    return vis

# pipeline/text_detector.py
from __future__ import annotations

import logging

import cv2
import numpy as np

from .models import DetectionThresholds, OrientedRegion
from .utils import load_net

log = logging.getLogger(__name__)

# (dx, dy) of the 8 link channels, PixelLink order
NEIGHBOURS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))


def _pair_softmax(logits: np.ndarray) -> np.ndarray:
    """Positive-class probability for channel pairs (neg, pos)."""
    neg = logits[0::2]
    pos = logits[1::2]
    return 1.0 / (1.0 + np.exp(neg - pos))


def _shift(mask: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """out[y, x] = mask[y + dy, x + dx], False outside."""
    h, w = mask.shape
    padded = np.pad(mask, 1, constant_values=False)
    return padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]


def pixel_link_regions(
    segm_logits: np.ndarray,
    link_logits: np.ndarray,
    image_size: tuple[int, int],
    thresholds: DetectionThresholds,
    min_area: float = 300.0,
    min_height: float = 10.0,
) -> list[OrientedRegion]:
    """
    Turn PixelLink score maps ([2,h,w] and [16,h,w] logits) into regions.

    A positive pixel is kept when at least one of its links to a positive
    neighbour is strong enough; kept pixels are grouped by 8-connectivity.
    """
    cls_prob = _pair_softmax(segm_logits)[0]
    link_prob = _pair_softmax(link_logits)

    positive = cls_prob >= thresholds.cls_pixel
    linked = np.zeros_like(positive)
    for k, (dx, dy) in enumerate(NEIGHBOURS):
        linked |= (link_prob[k] >= thresholds.link_pixel) & _shift(positive, dx, dy)
    mask = (positive & linked).astype(np.uint8)

    n, labels = cv2.connectedComponents(mask, connectivity=8)
    mh, mw = mask.shape
    img_w, img_h = image_size
    sx, sy = img_w / float(mw), img_h / float(mh)

    regions: list[OrientedRegion] = []
    for label in range(1, n):
        ys, xs = np.nonzero(labels == label)
        # all four corners of every cell, so the box covers whole cells
        cx = np.concatenate([xs, xs + 1, xs, xs + 1]) * sx
        cy = np.concatenate([ys, ys, ys + 1, ys + 1]) * sy
        pts = np.stack([cx, cy], axis=1).astype(np.float32)
        rect = cv2.minAreaRect(pts)
        w, h = rect[1]
        if min(w, h) < min_height or w * h < min_area:
            continue
        regions.append(OrientedRegion.from_rotated_rect(rect))
    return regions


class DnnTextDetector:
    """PixelLink-style text detection network run through cv2.dnn."""

    def __init__(self, model_path, input_size: tuple[int, int] = (1280, 768)):
        self.net = load_net(model_path)
        self.input_size = input_size
        self.output_names = self.net.getUnconnectedOutLayersNames()

    def infer(self, image_bgr: np.ndarray, thresholds: DetectionThresholds):
        blob = cv2.dnn.blobFromImage(image_bgr, size=self.input_size)
        self.net.setInput(blob)
        return self.net.forward(self.output_names)

    def postprocess(self, raw, image_size, thresholds):
        segm = link = None
        for out in raw:
            out = out[0] if out.ndim == 4 else out
            if out.shape[0] == 2:
                segm = out
            elif out.shape[0] == 16:
                link = out
        if segm is None or link is None:
            raise RuntimeError(
                f"Unexpected detection outputs: {[tuple(o.shape) for o in raw]}"
            )
        return pixel_link_regions(segm, link, image_size, thresholds)


class EasyOCRTextDetector:
    """CRAFT detector from EasyOCR; no model file needed."""

    def __init__(self, langs: tuple[str, ...] = ("en",), gpu: bool = False):
        import easyocr

        self.reader = easyocr.Reader(list(langs), gpu=gpu, recognizer=False)
        log.info("EasyOCR text detector initialized.")

    def infer(self, image_bgr: np.ndarray, thresholds: DetectionThresholds):
        horizontal, free = self.reader.detect(
            image_bgr,
            text_threshold=thresholds.cls_pixel,
            link_threshold=thresholds.link_pixel,
        )
        return horizontal[0], free[0]

    def postprocess(self, raw, image_size, thresholds):
        horizontal, free = raw
        regions: list[OrientedRegion] = []
        for x_min, x_max, y_min, y_max in horizontal:
            regions.append(OrientedRegion.from_box(x_min, y_min, x_max, y_max))
        for quad in free:
            regions.append(OrientedRegion(tuple((float(x), float(y)) for x, y in quad)))
        return regions

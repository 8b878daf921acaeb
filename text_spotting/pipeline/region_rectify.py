# pipeline/region_rectify.py
from __future__ import annotations

import math
from typing import Sequence

import cv2
import numpy as np

from .models import OrientedRegion


def select_anchor(points: Sequence[tuple[float, float]]) -> int:
    """
    Index of the vertex treated as the top-left corner.

    Of the two leftmost points, the higher one (smaller y) wins. Equal x values
    are resolved by scan order.
    """
    most_left = (math.inf, math.inf)
    almost_most_left = (math.inf, math.inf)
    most_left_idx = -1
    almost_most_left_idx = -1

    for i, (x, y) in enumerate(points):
        p = (float(x), float(y))
        if most_left[0] > p[0]:
            if most_left[0] != math.inf:
                almost_most_left = most_left
                almost_most_left_idx = most_left_idx
            most_left = p
            most_left_idx = i
        if almost_most_left[0] > p[0] and p != most_left:
            almost_most_left = p
            almost_most_left_idx = i

    if almost_most_left[1] < most_left[1]:
        most_left_idx = almost_most_left_idx

    # all-NaN input never enters the scan
    return max(most_left_idx, 0)


def region_affine(
    points: Sequence[tuple[float, float]], anchor_index: int, target_size: tuple[int, int]
) -> np.ndarray:
    """2x3 map: anchor -> (0,0), next -> (w-1,0), next+1 -> (w-1,h-1)."""
    w, h = target_size
    src = np.float32([
        points[anchor_index],
        points[(anchor_index + 1) % 4],
        points[(anchor_index + 2) % 4],
    ])
    dst = np.float32([[0, 0], [w - 1, 0], [w - 1, h - 1]])
    return cv2.getAffineTransform(src, dst)


def normalize_region(
    image: np.ndarray,
    points: Sequence[tuple[float, float]],
    anchor_index: int,
    target_size: tuple[int, int],
) -> np.ndarray:
    """
    Fixed-size upright crop of a quadrilateral.

    Only three vertices drive the warp, so a non-parallelogram region is
    approximated rather than fully rectified.
    """
    m = region_affine(points, anchor_index, target_size)
    return cv2.warpAffine(
        image,
        m,
        target_size,
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )


def cap_regions(regions: Sequence[OrientedRegion], max_count: int | None) -> list[OrientedRegion]:
    """Keep the `max_count` largest regions; ties keep input order."""
    regions = list(regions)
    if max_count is None or max_count < 0 or len(regions) <= max_count:
        return regions
    return sorted(regions, key=lambda r: r.area, reverse=True)[:max_count]


def central_box(img_w: int, img_h: int) -> OrientedRegion:
    """Small centred box: 5% of the width, half as tall."""
    w = int(img_w * 0.05)
    h = int(w * 0.5)
    x1 = int(img_w * 0.5 - w * 0.5)
    y1 = int(img_h * 0.5 - h * 0.5)
    # corners are inclusive pixels: the box covers exactly w x h
    return OrientedRegion.from_box(x1, y1, x1 + w - 1, y1 + h - 1)


def full_frame(img_w: int, img_h: int) -> OrientedRegion:
    return OrientedRegion.from_box(0, 0, img_w - 1, img_h - 1)


def crop_box(image: np.ndarray, region: OrientedRegion) -> np.ndarray:
    """Plain axis-aligned slice of the region's bounding box."""
    pts = region.as_array()
    x1, y1 = np.floor(pts.min(axis=0)).astype(int)
    x2, y2 = np.floor(pts.max(axis=0)).astype(int)
    h, w = image.shape[:2]
    x1, y1 = max(0, x1), max(0, y1)
    crop = image[y1:min(h, y2 + 1), x1:min(w, x2 + 1)]
    if crop.size == 0:
        return np.zeros((1, 1) + image.shape[2:], dtype=image.dtype)
    return crop.copy()

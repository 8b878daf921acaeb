# pipeline/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Protocol

import cv2
import numpy as np


@dataclass(frozen=True)
class FramePacket:
    index: int
    timestamp_s: float
    image: np.ndarray  # BGR image


@dataclass(frozen=True)
class OrientedRegion:
    """Four-point text line candidate. Points come in any winding order."""
    points: tuple[tuple[float, float], ...]

    def __post_init__(self) -> None:
        if len(self.points) != 4:
            raise ValueError(f"OrientedRegion needs exactly 4 points, got {len(self.points)}")
        object.__setattr__(
            self, "points", tuple((float(x), float(y)) for x, y in self.points)
        )

    @classmethod
    def from_rotated_rect(cls, rect) -> "OrientedRegion":
        """Build from a cv2 ((cx, cy), (w, h), angle) tuple."""
        return cls(tuple(map(tuple, cv2.boxPoints(rect))))

    @classmethod
    def from_box(cls, x1: float, y1: float, x2: float, y2: float) -> "OrientedRegion":
        return cls(((x1, y1), (x2, y1), (x2, y2), (x1, y2)))

    @property
    def area(self) -> float:
        # area of the bounding rotated rectangle
        (_, _), (w, h), _ = cv2.minAreaRect(self.as_array())
        return float(w * h)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.points, dtype=np.float32)

    def clipped_int_points(self, w: int, h: int) -> list[tuple[int, int]]:
        return [(clip(int(x), w - 1), clip(int(y), h - 1)) for x, y in self.points]


def clip(v: int, max_val: int) -> int:
    return min(max(v, 0), max_val)


@dataclass(frozen=True)
class DetectionThresholds:
    cls_pixel: float = 0.8
    link_pixel: float = 0.8


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float


@dataclass(frozen=True)
class RegionRecord:
    region: OrientedRegion
    anchor_index: int
    text: str = ""
    confidence: float = 1.0
    recognized: bool = False

    def to_line(self, w: int, h: int) -> str:
        """Machine-readable form: x0,y0,...,x3,y3[,text]."""
        parts = [f"{x},{y}" for x, y in self.region.clipped_int_points(w, h)]
        if self.recognized:
            parts.append(self.text)
        return ",".join(parts)


@dataclass(frozen=True)
class FrameResult:
    frame_index: int
    image_size: tuple[int, int]  # width, height
    records: list[RegionRecord] = field(default_factory=list)
    found: int = 0
    latency_ms: float = 0.0
    synthetic: bool = False  # detection off: one region stands in for the frame

    def lines(self) -> list[str]:
        w, h = self.image_size
        return [rec.to_line(w, h) for rec in self.records]


class TextDetector(Protocol):
    """Detector plugin interface (cv2.dnn PixelLink, EasyOCR CRAFT, ...)."""
    def infer(self, image_bgr: np.ndarray, thresholds: DetectionThresholds) -> Any:
        ...

    def postprocess(
        self, raw: Any, image_size: tuple[int, int], thresholds: DetectionThresholds
    ) -> list[OrientedRegion]:
        ...


class TextRecognizer(Protocol):
    """Recognizer plugin interface: crop in, [T, A] score matrix out."""
    input_size: tuple[int, int]  # width, height

    def recognize(self, crop_bgr: np.ndarray) -> np.ndarray:
        ...

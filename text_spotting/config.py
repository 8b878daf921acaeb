# config.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from pipeline.ctc_decoder import CONFIDENCE_MODES, DEFAULT_SYMBOLS, PAD_SYMBOL
from pipeline.errors import ConfigurationError

DETECTOR_BACKENDS = ("dnn", "easyocr")


@dataclass(frozen=True)
class AppConfig:
    # IO
    input: str
    raw_output: bool = False  # print "x,y,...,text" lines instead of the summary
    no_show: bool = False

    # Frame sampling
    frame_stride: int = 1
    max_frames: int | None = None

    # Text detection
    detection_model: Path | None = None
    detector_backend: str = "dnn"  # or "easyocr" (no model file)
    detection_input_size: tuple[int, int] = (1280, 768)  # width, height
    cls_pixel_threshold: float = 0.8
    link_pixel_threshold: float = 0.8
    max_rect_num: int = -1  # <0 means no limit
    ocr_langs: tuple[str, ...] = ("en",)

    # Text recognition
    recognition_model: Path | None = None
    recognition_input_size: tuple[int, int] = (120, 32)  # width, height
    symbols: str = DEFAULT_SYMBOLS
    pad_symbol: str = PAD_SYMBOL
    min_recognition_confidence: float = 0.2
    confidence_mode: str = "mean"  # or "product"

    # Without detection: centre box instead of the whole frame
    central_crop: bool = False

    # Runtime
    region_workers: int = 1
    fps_decay: float = 0.8

    # Logging
    logging_level: str = "INFO"

    @property
    def detection_enabled(self) -> bool:
        return self.detection_model is not None or self.detector_backend == "easyocr"

    @property
    def recognition_enabled(self) -> bool:
        return self.recognition_model is not None

    def validate(self) -> "AppConfig":
        if not str(self.input).strip():
            raise ConfigurationError("Input is not set")
        if not self.detection_enabled and not self.recognition_enabled:
            raise ConfigurationError("Neither a text detection nor a text recognition model is set")
        if self.detector_backend not in DETECTOR_BACKENDS:
            raise ConfigurationError(f"Unknown detector backend: {self.detector_backend}")
        if len(self.pad_symbol) != 1:
            raise ConfigurationError("Pad symbol must be a single character")
        if self.pad_symbol in self.symbols:
            raise ConfigurationError(
                f"Symbols set for text recognition must not contain reserved symbol {self.pad_symbol!r}"
            )
        for name in ("cls_pixel_threshold", "link_pixel_threshold"):
            v = getattr(self, name)
            if not 0.0 <= v <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {v}")
        if not 0.0 <= self.fps_decay < 1.0:
            raise ConfigurationError(f"fps_decay must be within [0, 1), got {self.fps_decay}")
        if self.confidence_mode not in CONFIDENCE_MODES:
            raise ConfigurationError(f"Unknown confidence mode: {self.confidence_mode}")
        for name in ("detection_input_size", "recognition_input_size"):
            w, h = getattr(self, name)
            if w <= 0 or h <= 0:
                raise ConfigurationError(f"{name} must be positive, got {(w, h)}")
        if self.region_workers < 1:
            raise ConfigurationError("region_workers must be >= 1")
        if self.frame_stride < 1:
            raise ConfigurationError("frame_stride must be >= 1")
        return self

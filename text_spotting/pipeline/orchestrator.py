# pipeline/orchestrator.py
from __future__ import annotations

import logging
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Iterable, TextIO

import cv2
import numpy as np

from config import AppConfig
from .ctc_decoder import Alphabet, ctc_greedy_decode
from .models import (
    DetectionThresholds,
    FramePacket,
    FrameResult,
    OrientedRegion,
    RegionRecord,
    TextDetector,
    TextRecognizer,
)
from .region_rectify import cap_regions, central_box, crop_box, full_frame, normalize_region, select_anchor
from .stats import (
    CROP,
    DETECTION_INFERENCE,
    DETECTION_POSTPROCESS,
    RECOGNITION_INFERENCE,
    RECOGNITION_POSTPROCESS,
    RunningStats,
)
from .utils import timed
from .visualize import annotate

log = logging.getLogger(__name__)

WINDOW_NAME = "Press ESC to exit"
ESC_KEY = 27


class TextSpottingPipeline:
    """
    Per frame: detect (optional) -> cap -> anchor + crop -> recognize
    (optional) -> decode -> confidence gate.
    """

    def __init__(
        self,
        cfg: AppConfig,
        detector: TextDetector | None = None,
        recognizer: TextRecognizer | None = None,
    ):
        self.cfg = cfg
        self.detector = detector
        self.recognizer = recognizer
        self.detection_enabled = detector is not None
        self.recognition_enabled = recognizer is not None

        self.alphabet = Alphabet(cfg.symbols, cfg.pad_symbol)
        self.thresholds = DetectionThresholds(cfg.cls_pixel_threshold, cfg.link_pixel_threshold)
        self.crop_size = recognizer.input_size if recognizer is not None else cfg.recognition_input_size

        # stage capabilities are bound once here
        self._find_regions = self._detect_regions if self.detection_enabled else self._default_region
        self._make_crop = self._normalize if self.detection_enabled else self._direct_crop
        self._read = self._recognize if self.recognition_enabled else self._unread

        self._executor = (
            ThreadPoolExecutor(max_workers=cfg.region_workers) if cfg.region_workers > 1 else None
        )
        self.stop_event = threading.Event()

        log.info(
            f"TextSpottingPipeline initialized (detection={self.detection_enabled}, "
            f"recognition={self.recognition_enabled}, max_rect_num={cfg.max_rect_num})."
        )

    # ---------- regions ----------
    def _detect_regions(self, image: np.ndarray, timings: dict) -> list[OrientedRegion]:
        h, w = image.shape[:2]
        with timed(timings, DETECTION_INFERENCE):
            raw = self.detector.infer(image, self.thresholds)
        with timed(timings, DETECTION_POSTPROCESS):
            return self.detector.postprocess(raw, (w, h), self.thresholds)

    def _default_region(self, image: np.ndarray, timings: dict) -> list[OrientedRegion]:
        h, w = image.shape[:2]
        return [central_box(w, h) if self.cfg.central_crop else full_frame(w, h)]

    # ---------- crops ----------
    def _normalize(self, image, region, timings):
        with timed(timings, CROP):
            anchor = select_anchor(region.points)
            crop = normalize_region(image, region.points, anchor, self.crop_size)
        return anchor, crop

    def _direct_crop(self, image, region, timings):
        # synthesized regions start at their top-left corner
        return 0, (crop_box(image, region) if self.cfg.central_crop else image)

    # ---------- recognition ----------
    def _recognize(self, crop, region, anchor, timings) -> RegionRecord:
        with timed(timings, RECOGNITION_INFERENCE):
            matrix = self.recognizer.recognize(crop)
        with timed(timings, RECOGNITION_POSTPROCESS):
            res = ctc_greedy_decode(matrix, self.alphabet, self.cfg.confidence_mode)

        text = res.text if res.confidence >= self.cfg.min_recognition_confidence else ""
        log.debug(f"region {region.points}: {res.text!r} conf={res.confidence:.3f} -> {text!r}")
        return RegionRecord(region, anchor, text=text, confidence=res.confidence, recognized=True)

    def _unread(self, crop, region, anchor, timings) -> RegionRecord:
        return RegionRecord(region, anchor)

    def _process_region(self, image: np.ndarray, region: OrientedRegion) -> tuple[RegionRecord, dict]:
        timings: dict[str, float] = {}
        anchor, crop = self._make_crop(image, region, timings)
        return self._read(crop, region, anchor, timings), timings

    # ---------- frame ----------
    def process_frame(self, frame: FramePacket, stats: RunningStats) -> FrameResult:
        begin = time.perf_counter()
        image = frame.image
        h, w = image.shape[:2]

        frame_timings: dict[str, float] = {}
        regions = self._find_regions(image, frame_timings)
        stats.merge(frame_timings)

        regions = cap_regions(regions, self.cfg.max_rect_num)

        work = partial(self._process_region, image)
        if self._executor is not None and len(regions) > 1:
            outcomes = list(self._executor.map(work, regions))  # keeps region order
        else:
            outcomes = [work(r) for r in regions]

        records: list[RegionRecord] = []
        for record, timings in outcomes:
            stats.merge(timings)
            records.append(record)

        if self.recognition_enabled:
            found = sum(1 for r in records if r.text)
        else:
            found = len(records)

        latency_ms = 1000.0 * (time.perf_counter() - begin)
        stats.update_frame_latency(latency_ms)

        return FrameResult(
            frame_index=frame.index,
            image_size=(w, h),
            records=records,
            found=found,
            latency_ms=latency_ms,
            synthetic=not self.detection_enabled,
        )

    def stop(self) -> None:
        """Finish the current frame, then stop."""
        self.stop_event.set()

    def run(
        self,
        frames: Iterable[FramePacket],
        stats: RunningStats | None = None,
        out: TextIO | None = None,
    ) -> RunningStats:
        stats = stats if stats is not None else RunningStats(decay=self.cfg.fps_decay)
        out = out or sys.stdout
        show = not self.cfg.no_show

        if show:
            log.info("To close the application, press 'CTRL+C' or ESC with focus on the output window")

        try:
            for frame in frames:
                result = self.process_frame(frame, stats)

                if frame.index % 50 == 0:
                    log.info(
                        f"frame {frame.index}: regions={len(result.records)} found={result.found} "
                        f"fps={stats.fps}"
                    )

                if self.cfg.raw_output:
                    for line in result.lines():
                        print(line, file=out)

                if show:
                    vis = annotate(
                        frame.image, result, stats.fps, self.recognition_enabled, self.cfg.central_crop
                    )
                    cv2.imshow(WINDOW_NAME, vis)
                    if cv2.waitKey(3) & 0xFF == ESC_KEY:
                        log.info("Stopped from the output window.")
                        break

                if self.stop_event.is_set():
                    log.info("Stop requested, finishing.")
                    break
        except KeyboardInterrupt:
            log.info("Interrupted, stopping.")
        finally:
            self.close()

        return stats

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if not self.cfg.no_show:
            cv2.destroyAllWindows()

# main.py
from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

from config import AppConfig
from pipeline.orchestrator import TextSpottingPipeline
from pipeline.stats import RunningStats
from pipeline.text_detector import DnnTextDetector, EasyOCRTextDetector
from pipeline.text_recognizer import DnnTextRecognizer
from pipeline.utils import setup_logging
from pipeline.video_io import iter_frames

log = logging.getLogger("text_spotting")


def build_detector(cfg: AppConfig):
    if cfg.detection_model is not None:
        return DnnTextDetector(cfg.detection_model, input_size=cfg.detection_input_size)
    if cfg.detector_backend == "easyocr":
        return EasyOCRTextDetector(cfg.ocr_langs)
    return None


def build_recognizer(cfg: AppConfig):
    if cfg.recognition_model is None:
        return None
    return DnnTextRecognizer(cfg.recognition_model, input_size=cfg.recognition_input_size)


def run(cfg: AppConfig) -> RunningStats:
    setup_logging(cfg.logging_level)
    cfg.validate()

    # 1) Models
    pipeline = TextSpottingPipeline(cfg, build_detector(cfg), build_recognizer(cfg))

    # 2) Frames (lazy; the next one is read only after the current is done)
    frames = iter_frames(cfg.input, stride=cfg.frame_stride, max_frames=cfg.max_frames)

    previous = signal.signal(signal.SIGINT, lambda *_: pipeline.stop())
    try:
        # 3) Detect + crop + recognize
        stats = pipeline.run(frames)
    finally:
        signal.signal(signal.SIGINT, previous)
    log.info(f"Processed {stats.frames} frames.")

    # 4) Summary
    lines = stats.summary()
    if not cfg.raw_output:
        for line in lines:
            print(line)
    return stats


def _size(text: str) -> tuple[int, int]:
    w, _, h = text.lower().partition("x")
    return int(w), int(h)


def parse_args(argv: list[str] | None = None) -> AppConfig:
    p = argparse.ArgumentParser(description="Detect and recognize text in images, videos or camera streams")
    p.add_argument("-i", "--input", required=True,
                   help="Image, image list (.txt), directory, video file, or camera index")
    p.add_argument("--m-td", dest="detection_model", default=None, help="Text detection model (cv2.dnn)")
    p.add_argument("--detector", default="dnn", choices=("dnn", "easyocr"),
                   help="Detector when no detection model is given: 'easyocr' uses CRAFT")
    p.add_argument("--m-tr", dest="recognition_model", default=None, help="Text recognition model (cv2.dnn)")
    p.add_argument("--m-tr-ss", dest="symbols", default=AppConfig.symbols, help="Recognizable symbols")
    p.add_argument("--size-td", default="1280x768", help="Detection input WxH")
    p.add_argument("--size-tr", default="120x32", help="Recognition input WxH")
    p.add_argument("--cls-pixel-thr", type=float, default=0.8, help="Pixel classification threshold")
    p.add_argument("--link-pixel-thr", type=float, default=0.8, help="Pixel linkage threshold")
    p.add_argument("--thr", type=float, default=0.2, help="Minimum recognition confidence")
    p.add_argument("--conf-mode", default="mean", choices=("mean", "product"))
    p.add_argument("--max-rect-num", type=int, default=-1, help="Max regions per frame (<0: no limit)")
    p.add_argument("--cc", action="store_true", help="Without detection, read a small centre box")
    p.add_argument("-r", "--raw", action="store_true", help="Print region coordinates and text")
    p.add_argument("--no-show", action="store_true", help="Do not open a preview window")
    p.add_argument("--workers", type=int, default=1, help="Threads for per-region work")
    p.add_argument("--stride", type=int, default=1, help="Process every Nth frame")
    p.add_argument("--max-frames", type=int, default=0, help="0 means no limit")
    p.add_argument("--langs", default="en", help="EasyOCR languages, comma separated")
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args(argv)

    return AppConfig(
        input=args.input,
        raw_output=args.raw,
        no_show=args.no_show,
        frame_stride=max(1, args.stride),
        max_frames=(None if args.max_frames == 0 else args.max_frames),
        detection_model=Path(args.detection_model) if args.detection_model else None,
        detector_backend=args.detector,
        detection_input_size=_size(args.size_td),
        cls_pixel_threshold=args.cls_pixel_thr,
        link_pixel_threshold=args.link_pixel_thr,
        max_rect_num=args.max_rect_num,
        ocr_langs=tuple(s.strip() for s in args.langs.split(",") if s.strip()),
        recognition_model=Path(args.recognition_model) if args.recognition_model else None,
        recognition_input_size=_size(args.size_tr),
        symbols=args.symbols,
        min_recognition_confidence=args.thr,
        confidence_mode=args.conf_mode,
        central_crop=args.cc,
        region_workers=args.workers,
        logging_level=args.log_level,
    )


def main(argv: list[str] | None = None) -> int:
    try:
        run(parse_args(argv))
    except Exception as ex:
        print(ex, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

# pipeline/video_io.py
from __future__ import annotations

import cv2
from pathlib import Path
from typing import Iterable, Iterator

from .models import FramePacket

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff", ".webp"}


def _sample(frames: Iterable[FramePacket], stride: int, max_frames: int | None) -> Iterator[FramePacket]:
    yielded = 0
    for frame in frames:
        if frame.index % stride != 0:
            continue
        yield frame
        yielded += 1
        if max_frames is not None and yielded >= max_frames:
            break


def _read_image(path: Path):
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        raise RuntimeError(f"Could not read image: {path}")
    return img


def _iter_images(paths: list[Path]) -> Iterator[FramePacket]:
    # images are read lazily, one per request
    for idx, path in enumerate(paths):
        yield FramePacket(index=idx, timestamp_s=0.0, image=_read_image(path))


def _iter_capture(source) -> Iterator[FramePacket]:
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open video: {source}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 25.0

    idx = -1
    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                break
            idx += 1
            yield FramePacket(index=idx, timestamp_s=idx / fps, image=frame)
    finally:
        cap.release()


def list_images(source: Path) -> list[Path]:
    """Images of a directory (sorted) or of a text file listing one path per line."""
    if source.is_dir():
        return sorted(p for p in source.iterdir() if p.suffix.lower() in IMAGE_EXTS)
    base = source.parent
    paths = []
    for line in source.read_text().splitlines():
        line = line.strip()
        if line:
            p = Path(line)
            paths.append(p if p.is_absolute() else base / p)
    return paths


def iter_frames(source: str | Path, stride: int = 1, max_frames: int | None = None) -> Iterator[FramePacket]:
    """
    Lazy frames from a camera index ("0"), an image, an image list (.txt),
    a directory of images, or a video file.
    """
    text = str(source)
    if text.isdigit():
        frames = _iter_capture(int(text))
    else:
        path = Path(text)
        if not path.exists():
            raise RuntimeError(f"Input not found: {path}")
        if path.is_dir() or path.suffix.lower() == ".txt":
            frames = _iter_images(list_images(path))
        elif path.suffix.lower() in IMAGE_EXTS:
            frames = _iter_images([path])
        else:
            frames = _iter_capture(str(path))
    return _sample(frames, max(1, stride), max_frames)

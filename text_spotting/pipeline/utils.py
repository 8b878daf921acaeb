# pipeline/utils.py
import logging
import time
from contextlib import contextmanager
from pathlib import Path

import cv2

from .errors import ConfigurationError

log = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def load_net(model_path) -> "cv2.dnn.Net":
    path = Path(model_path)
    if not path.exists():
        raise ConfigurationError(f"Model file not found: {path}")
    # OpenVINO IR: .xml topology + .bin weights next to it
    if path.suffix == ".xml":
        net = cv2.dnn.readNet(str(path), str(path.with_suffix(".bin")))
    else:
        net = cv2.dnn.readNet(str(path))
    log.info(f"Loaded network {path.name}")
    return net


@contextmanager
def timed(timings: dict, stage: str):
    """Add the block's wall time (seconds) to timings[stage]."""
    begin = time.perf_counter()
    try:
        yield
    finally:
        timings[stage] = timings.get(stage, 0.0) + (time.perf_counter() - begin)

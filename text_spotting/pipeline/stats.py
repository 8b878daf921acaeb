# pipeline/stats.py
from __future__ import annotations
from dataclasses import dataclass, field

from .errors import TimingInvariantError

DETECTION_INFERENCE = "detection_inference"
DETECTION_POSTPROCESS = "detection_postprocess"
RECOGNITION_INFERENCE = "recognition_inference"
RECOGNITION_POSTPROCESS = "recognition_postprocess"
CROP = "crop"

STAGES = (
    DETECTION_INFERENCE,
    DETECTION_POSTPROCESS,
    RECOGNITION_INFERENCE,
    RECOGNITION_POSTPROCESS,
    CROP,
)

# stages whose accumulated time must be non-zero once they ran
NONZERO_STAGES = (DETECTION_POSTPROCESS, RECOGNITION_POSTPROCESS, CROP)

STAGE_LABELS = {
    DETECTION_INFERENCE: "text detection model inference",
    DETECTION_POSTPROCESS: "text detection postprocessing",
    RECOGNITION_INFERENCE: "text recognition model inference",
    RECOGNITION_POSTPROCESS: "text recognition postprocessing",
    CROP: "text crop",
}


@dataclass
class StageTiming:
    total_s: float = 0.0
    calls: int = 0

    def add(self, elapsed_s: float) -> None:
        self.total_s += elapsed_s
        self.calls += 1


@dataclass
class RunningStats:
    decay: float = 0.8
    avg_frame_ms: float | None = None
    frames: int = 0
    stages: dict[str, StageTiming] = field(
        default_factory=lambda: {s: StageTiming() for s in STAGES}
    )

    def record(self, stage: str, elapsed_s: float) -> None:
        self.stages[stage].add(elapsed_s)

    def merge(self, timings: dict[str, float]) -> None:
        for stage, elapsed_s in timings.items():
            self.record(stage, elapsed_s)

    def update_frame_latency(self, current_ms: float) -> float:
        """Exponential smoothing; the first frame seeds the average."""
        if self.avg_frame_ms is None:
            self.avg_frame_ms = current_ms
        else:
            self.avg_frame_ms = self.avg_frame_ms * self.decay + (1.0 - self.decay) * current_ms
        self.frames += 1
        return self.avg_frame_ms

    @property
    def fps(self) -> int:
        if not self.avg_frame_ms:
            return 0
        return int(1000.0 / self.avg_frame_ms)

    def summary(self) -> list[str]:
        """
        One line per stage that ran: average ms and calls per second.
        Raises TimingInvariantError when a postprocess/crop stage ran but
        accumulated no time.
        """
        lines: list[str] = []
        for stage in STAGES:
            t = self.stages[stage]
            if not t.calls:
                continue
            if stage in NONZERO_STAGES and t.total_s <= 0.0:
                raise TimingInvariantError(f"{stage} time can't be equal to zero")
            avg_ms = 1000.0 * t.total_s / t.calls
            per_s = t.calls / t.total_s if t.total_s > 0 else float("inf")
            lines.append(f"{STAGE_LABELS[stage]} (ms) (fps): {avg_ms:.3f} {per_s:.1f}")
        return lines

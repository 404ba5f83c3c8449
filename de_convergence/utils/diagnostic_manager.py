import time
from typing import Any, Dict, Optional


def format_hms(seconds: float) -> str:
    """Whole seconds as H:M:S, e.g. 3725 -> '1:2:5'."""
    s = int(seconds)
    return f"{s // 3600}:{(s // 60) % 60}:{s % 60}"


class DiagnosticManager:
    """
    Collects simple run diagnostics: wall-clock time, step count and
    arbitrary named records (last switching time, sweep size, ...).
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0
        self.steps: int = 0
        self.records: Dict[str, Any] = {}

    def start(self, at: Optional[float] = None) -> None:
        """Mark the beginning of a run (optionally at a given timestamp)."""
        self.start_time = self._clock() if at is None else float(at)

    def stop(self) -> None:
        """Mark the end of a run and compute elapsed time."""
        self.end_time = self._clock()
        self.elapsed = self.end_time - self.start_time

    def tick(self) -> None:
        """Increment the step counter."""
        self.steps += 1

    def record(self, key: str, value: Any) -> None:
        self.records[key] = value

    def elapsed_hms(self) -> str:
        return format_hms(self.elapsed)

    def summary(self) -> Dict[str, Any]:
        """Return all diagnostics in a single dict."""
        return {
            "steps": self.steps,
            "elapsed_s": round(self.elapsed, 6),
            "records": self.records,
        }

    def __repr__(self) -> str:
        return f"DiagnosticManager(steps={self.steps}, elapsed={self.elapsed:.3f}s)"

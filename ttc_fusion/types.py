from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple


# -----------------------------
# Per-frame primitives
# -----------------------------

@dataclass(frozen=True)
class RangePoint:
    x: float   # forward (m)
    y: float   # left (m)
    z: float   # up (m)
    r: float = 0.0  # reflectivity


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle, half-open on the right/bottom edges."""
    x: float
    y: float
    width: float
    height: float

    def contains(self, u: float, v: float) -> bool:
        return self.x <= u < self.x + self.width and self.y <= v < self.y + self.height

    def shrunk(self, factor: float) -> "Rect":
        return Rect(
            x=self.x + factor * self.width / 2.0,
            y=self.y + factor * self.height / 2.0,
            width=self.width * (1.0 - factor),
            height=self.height * (1.0 - factor),
        )


@dataclass(frozen=True)
class DetectedRegion:
    region_id: int
    roi: Rect
    class_id: Optional[int] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class FeatureKeypoint:
    x: float
    y: float


@dataclass(frozen=True)
class FeatureCorrespondence:
    prev_idx: int  # index into the previous frame's keypoints
    curr_idx: int  # index into the current frame's keypoints


@dataclass(frozen=True)
class FramePayload:
    frame_id: int
    t_ns: int
    keypoints: Tuple[FeatureKeypoint, ...] = ()
    regions: Tuple[DetectedRegion, ...] = ()
    range_points: Tuple[RangePoint, ...] = ()


# -----------------------------
# Events from a frame provider
# -----------------------------

@dataclass(frozen=True)
class FrameEvent:
    frame: FramePayload
    correspondences: Tuple[FeatureCorrespondence, ...] = ()  # previous -> this frame


class IFrameProvider(Protocol):
    """Yields FrameEvent in non-decreasing timestamp order."""
    def has_next(self) -> bool: ...
    def next_event(self) -> FrameEvent: ...


# -----------------------------
# Errors and contract checks
# -----------------------------

class PreconditionViolation(RuntimeError):
    pass


class TimestampError(RuntimeError):
    pass


def require(cond: bool, msg: str) -> None:
    if not cond:
        raise PreconditionViolation(msg)


def check_correspondence_bounds(
    correspondences,
    n_prev: int,
    n_curr: int,
    name: str,
) -> None:
    for c in correspondences:
        if not (0 <= c.prev_idx < n_prev and 0 <= c.curr_idx < n_curr):
            raise PreconditionViolation(
                f"{name}: correspondence ({c.prev_idx}, {c.curr_idx}) out of bounds "
                f"for {n_prev} previous / {n_curr} current keypoints"
            )


def assert_non_decreasing(prev_t_ns: Optional[int], new_t_ns: int, name: str) -> int:
    if prev_t_ns is not None and new_t_ns < prev_t_ns:
        raise TimestampError(f"{name}: timestamps decreased ({new_t_ns} < {prev_t_ns})")
    return new_t_ns

from typing import Sequence, Tuple

from ttc_fusion.types import DetectedRegion, FeatureKeypoint, FramePayload, Rect


def make_region(region_id: int, x: float, y: float, w: float, h: float) -> DetectedRegion:
    return DetectedRegion(region_id=region_id, roi=Rect(x, y, w, h))


def make_keypoints(xy: Sequence[Tuple[float, float]]) -> Tuple[FeatureKeypoint, ...]:
    return tuple(FeatureKeypoint(float(u), float(v)) for u, v in xy)


def make_frame(frame_id: int, keypoints=(), regions=(), range_points=()) -> FramePayload:
    return FramePayload(
        frame_id=frame_id,
        t_ns=frame_id * 100_000_000,
        keypoints=tuple(keypoints),
        regions=tuple(regions),
        range_points=tuple(range_points),
    )

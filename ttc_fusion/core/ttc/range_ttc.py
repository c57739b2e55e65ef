'''
TTC from two range point sets under a constant-velocity model.
Distance to the preceding object is taken from the K closest points (partial
heap selection, O(N log K)); the K-P nearest of those are skipped as potential
near outliers (road returns, noise) and the remaining P are averaged.
'''
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, TypeVar
import heapq
import logging
import math

from ttc_fusion.types import RangePoint, require

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RangeTTCParams:
    k: int = 13   # closest candidates
    p: int = 5    # averaged out of the k


def select_k_smallest(items: Iterable[T], k: int, key: Callable[[T], float]) -> List[T]:
    """K smallest items by key, ascending."""
    return heapq.nsmallest(k, items, key=key)


def closest_distance(points: Sequence[RangePoint], params: RangeTTCParams = RangeTTCParams()) -> float:
    require(1 <= params.p <= params.k, f"need 1 <= p <= k, got p={params.p} k={params.k}")
    require(len(points) >= params.k,
            f"need at least {params.k} range points, got {len(points)}")

    closest = select_k_smallest(points, params.k, key=lambda pt: pt.x)
    window = closest[params.k - params.p:]
    return sum(pt.x for pt in window) / params.p


def compute_ttc_range(
    prev_points: Sequence[RangePoint],
    curr_points: Sequence[RangePoint],
    frame_rate: float,
    params: RangeTTCParams = RangeTTCParams(),
) -> float:
    """
    TTC = d_curr * dT / (d_prev - d_curr).
    Not clamped: receding objects give a negative value, equal distances inf
    (nan when both distances are zero).
    """
    require(frame_rate > 0, f"frame_rate must be > 0, got {frame_rate}")

    d_prev = closest_distance(prev_points, params)
    d_curr = closest_distance(curr_points, params)
    dT = 1.0 / frame_rate

    closing = d_prev - d_curr
    if closing == 0.0:
        # 0/0 when the object sits at the sensor in both frames
        ttc = math.nan if d_curr == 0.0 else math.copysign(math.inf, d_curr * dT)
    else:
        ttc = d_curr * dT / closing

    logger.debug(f"[RangeTTC] d_prev={d_prev:.3f}m d_curr={d_curr:.3f}m ttc={ttc:.3f}s")
    return ttc

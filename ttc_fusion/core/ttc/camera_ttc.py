'''
TTC from the scale change of matched keypoints between two frames.
For every unordered pair of correspondences the ratio of their pixel distance in
the current frame to that in the previous frame is collected; the median ratio
gives the scale change, TTC = -dT / (1 - median).
'''
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import logging
import math
import numpy as np

from ttc_fusion.types import (
    FeatureCorrespondence,
    FeatureKeypoint,
    check_correspondence_bounds,
    require,
)

logger = logging.getLogger(__name__)


@dataclass
class CameraTTCParams:
    min_dist_px: float = 100.0   # min current-frame distance for a pair to count


def distance_ratios(
    kpts_prev: Sequence[FeatureKeypoint],
    kpts_curr: Sequence[FeatureKeypoint],
    correspondences: Sequence[FeatureCorrespondence],
    params: CameraTTCParams = CameraTTCParams(),
) -> np.ndarray:
    """Valid curr/prev distance ratios over all unordered correspondence pairs, unsorted."""
    check_correspondence_bounds(correspondences, len(kpts_prev), len(kpts_curr), "distance_ratios")

    n = len(correspondences)
    if n < 2:
        return np.zeros(0, dtype=np.float64)

    prev = np.array([[kpts_prev[c.prev_idx].x, kpts_prev[c.prev_idx].y] for c in correspondences], dtype=np.float64)
    curr = np.array([[kpts_curr[c.curr_idx].x, kpts_curr[c.curr_idx].y] for c in correspondences], dtype=np.float64)

    i, j = np.triu_indices(n, k=1)
    d_prev = np.linalg.norm(prev[i] - prev[j], axis=1)
    d_curr = np.linalg.norm(curr[i] - curr[j], axis=1)

    ok = (d_prev > np.finfo(np.float64).eps) & (d_curr >= params.min_dist_px)
    return d_curr[ok] / d_prev[ok]


def compute_ttc_camera(
    kpts_prev: Sequence[FeatureKeypoint],
    kpts_curr: Sequence[FeatureKeypoint],
    correspondences: Sequence[FeatureCorrespondence],
    frame_rate: float,
    params: CameraTTCParams = CameraTTCParams(),
) -> float:
    """Returns TTC in seconds, or nan when no valid keypoint pair exists."""
    require(frame_rate > 0, f"frame_rate must be > 0, got {frame_rate}")

    ratios = distance_ratios(kpts_prev, kpts_curr, correspondences, params)
    if ratios.size == 0:
        logger.debug(f"[CameraTTC] no valid distance ratios from {len(correspondences)} correspondences")
        return math.nan

    med = float(np.median(ratios))
    dT = 1.0 / frame_rate

    scale = 1.0 - med
    if scale == 0.0:
        ttc = -math.inf
    else:
        ttc = -dT / scale

    logger.debug(f"[CameraTTC] ratios={ratios.size} median={med:.4f} ttc={ttc:.3f}s")
    return ttc

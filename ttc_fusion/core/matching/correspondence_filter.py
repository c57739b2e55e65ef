# ttc_fusion/core/matching/correspondence_filter.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import logging
import math
import numpy as np

from ttc_fusion.types import (
    DetectedRegion,
    FeatureCorrespondence,
    FeatureKeypoint,
    check_correspondence_bounds,
    require,
)

logger = logging.getLogger(__name__)


@dataclass
class CorrespondenceFilterParams:
    outlier_ratio: float = 0.2   # share of the largest displacements discarded


@dataclass(frozen=True)
class RegionCorrespondences:
    region_id: int
    correspondences: Tuple[FeatureCorrespondence, ...]  # retained, input order
    keypoints: Tuple[FeatureKeypoint, ...]              # retained current keypoints
    n_before: int
    n_after: int
    mean_displacement: Optional[float]  # None when no correspondence is in the region
    std_displacement: Optional[float]


def displacement(a: FeatureKeypoint, b: FeatureKeypoint) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def displacement_cutoff(sorted_disp: np.ndarray, outlier_ratio: float) -> float:
    """
    sorted_disp: ascending, non-empty.
    Returns the (r+1)-th largest value with r = round(outlier_ratio * n),
    so keeping values <= cutoff discards the r largest.
    """
    n = sorted_disp.size
    r = int(math.floor(outlier_ratio * n + 0.5))
    r = min(r, n - 1)
    return float(sorted_disp[n - 1 - r])


def filter_region_correspondences(
    region: DetectedRegion,
    kpts_prev: Sequence[FeatureKeypoint],
    kpts_curr: Sequence[FeatureKeypoint],
    correspondences: Sequence[FeatureCorrespondence],
    params: CorrespondenceFilterParams = CorrespondenceFilterParams(),
) -> RegionCorrespondences:
    """
    Keeps the correspondences whose current keypoint lies inside the region
    and whose displacement is not among the largest outlier_ratio share.
    """
    require(0.0 <= params.outlier_ratio < 1.0,
            f"outlier_ratio must be in [0, 1), got {params.outlier_ratio}")
    check_correspondence_bounds(correspondences, len(kpts_prev), len(kpts_curr), "filter_region_correspondences")

    in_region = []
    disp = []
    for c in correspondences:
        kc = kpts_curr[c.curr_idx]
        if region.roi.contains(kc.x, kc.y):
            in_region.append(c)
            disp.append(displacement(kpts_prev[c.prev_idx], kc))

    if not in_region:
        logger.debug(f"[RegionFilter] region {region.region_id}: no correspondences inside ROI")
        return RegionCorrespondences(
            region_id=region.region_id,
            correspondences=(),
            keypoints=(),
            n_before=0,
            n_after=0,
            mean_displacement=None,
            std_displacement=None,
        )

    d = np.asarray(disp, dtype=np.float64)
    mean = float(d.mean())
    std = float(d.std())

    # one displacement has no spread to reject against
    if len(in_region) < 2:
        logger.debug(f"[RegionFilter] region {region.region_id}: single correspondence inside ROI, none kept")
        return RegionCorrespondences(
            region_id=region.region_id,
            correspondences=(),
            keypoints=(),
            n_before=len(in_region),
            n_after=0,
            mean_displacement=mean,
            std_displacement=std,
        )

    cutoff = displacement_cutoff(np.sort(d), params.outlier_ratio)

    kept = [c for c, di in zip(in_region, disp) if di <= cutoff]

    logger.debug(
        f"[RegionFilter] region {region.region_id}: before={len(in_region)} after={len(kept)} "
        f"mean={mean:.2f}px std={std:.2f}px cutoff={cutoff:.2f}px"
    )
    return RegionCorrespondences(
        region_id=region.region_id,
        correspondences=tuple(kept),
        keypoints=tuple(kpts_curr[c.curr_idx] for c in kept),
        n_before=len(in_region),
        n_after=len(kept),
        mean_displacement=mean,
        std_displacement=std,
    )

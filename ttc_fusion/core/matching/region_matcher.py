'''
Region association between the previous and current frame.
Each feature correspondence votes for every (previous region, current region) pair
enclosing its two keypoints. The vote matrix is then reduced along the smaller
dimension so that the result maps at most min(Pn, Cn) regions.
Region ids are resolved through positional lookups; they need not be contiguous.
'''
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence
import logging
import numpy as np

from ttc_fusion.types import (
    DetectedRegion,
    FeatureCorrespondence,
    FeatureKeypoint,
    FramePayload,
    check_correspondence_bounds,
)

logger = logging.getLogger(__name__)


@dataclass
class RegionMatchParams:
    min_votes: int = 0   # picks with fewer votes are dropped; 0 keeps the index-0 fallback


def regions_containing(kp: FeatureKeypoint, regions: Sequence[DetectedRegion]) -> List[int]:
    """Positional indices of the regions whose rectangle contains kp."""
    return [i for i, reg in enumerate(regions) if reg.roi.contains(kp.x, kp.y)]


def count_region_votes(
    correspondences: Sequence[FeatureCorrespondence],
    prev_frame: FramePayload,
    curr_frame: FramePayload,
) -> np.ndarray:
    """(Pn, Cn) vote counts, indexed by region position within each frame."""
    check_correspondence_bounds(
        correspondences, len(prev_frame.keypoints), len(curr_frame.keypoints), "count_region_votes"
    )

    votes = np.zeros((len(prev_frame.regions), len(curr_frame.regions)), dtype=np.int64)
    for c in correspondences:
        prev_ids = regions_containing(prev_frame.keypoints[c.prev_idx], prev_frame.regions)
        if not prev_ids:
            continue
        curr_ids = regions_containing(curr_frame.keypoints[c.curr_idx], curr_frame.regions)
        for pi in prev_ids:
            for ci in curr_ids:
                votes[pi, ci] += 1
    return votes


def _best_per_column(votes: np.ndarray, min_votes: int) -> Dict[int, int]:
    """
    For every column pick the argmax row (first index on ties), then keep
    the strongest column per row so the result is injective.
    returns row -> col
    """
    best_rows = votes.argmax(axis=0)
    chosen: Dict[int, int] = {}
    for col, row in enumerate(best_rows.tolist()):
        n = int(votes[row, col])
        if n < min_votes:
            continue
        if row in chosen and votes[row, chosen[row]] >= n:
            continue
        chosen[row] = col
    return chosen


def match_regions(
    correspondences: Sequence[FeatureCorrespondence],
    prev_frame: FramePayload,
    curr_frame: FramePayload,
    params: RegionMatchParams = RegionMatchParams(),
) -> Dict[int, int]:
    """
    Returns previous region_id -> current region_id.
    A region with no votes at all still picks index 0 unless params.min_votes > 0.
    """
    prev_ids = [reg.region_id for reg in prev_frame.regions]
    curr_ids = [reg.region_id for reg in curr_frame.regions]
    if not prev_ids or not curr_ids:
        return {}

    votes = count_region_votes(correspondences, prev_frame, curr_frame)
    Pn, Cn = votes.shape

    if Pn <= Cn:
        # iterate current regions: best previous region per column
        pairs = _best_per_column(votes, params.min_votes)
    else:
        # iterate previous regions: best current region per row
        pairs = {pi: ci for ci, pi in _best_per_column(votes.T, params.min_votes).items()}

    mapping = {prev_ids[pi]: curr_ids[ci] for pi, ci in sorted(pairs.items())}

    n_zero = sum(1 for pi, ci in pairs.items() if votes[pi, ci] == 0)
    logger.debug(
        f"[RegionMatch] prev={Pn} curr={Cn} matches={len(mapping)} "
        f"zero_vote_matches={n_zero} total_votes={int(votes.sum())}"
    )
    return mapping

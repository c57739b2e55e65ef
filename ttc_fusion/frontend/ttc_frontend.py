# ttc_fusion/frontend/ttc_frontend.py
# Frame-pair orchestrator: clustering, region matching, filtering and both TTC estimates
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import logging
import math
import numpy as np

from ttc_fusion.types import FeatureCorrespondence, FramePayload, IFrameProvider, RangePoint, require
from ttc_fusion.core.fusion.calib import ProjectionCalib
from ttc_fusion.core.fusion.clustering import (
    RegionPoints,
    cluster_range_points,
    crop_range_points,
    points_for_region,
)
from ttc_fusion.core.matching.region_matcher import match_regions
from ttc_fusion.core.matching.correspondence_filter import (
    RegionCorrespondences,
    filter_region_correspondences,
)
from ttc_fusion.core.ttc.range_ttc import compute_ttc_range
from ttc_fusion.core.ttc.camera_ttc import compute_ttc_camera
from ttc_fusion.frontend.config import FusionConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairTTC:
    prev_id: int
    curr_id: int
    ttc_range: float     # s, nan if not enough range points
    ttc_camera: float    # s, nan if no usable keypoint pairs
    n_points_prev: int
    n_points_curr: int
    filter: RegionCorrespondences


@dataclass
class FusionResult:
    frame_id: int
    mapping: Dict[int, int] = field(default_factory=dict)
    pairs: List[PairTTC] = field(default_factory=list)
    assignments: RegionPoints = field(default_factory=dict)


@dataclass
class _FrameState:
    frame: FramePayload
    points: Tuple[RangePoint, ...]
    assignments: RegionPoints


class TTCFrontend:
    # Keeps the previous frame only; every call processes one frame pair
    def __init__(self, calib: ProjectionCalib | np.ndarray, config: Optional[FusionConfig] = None):
        config = config or FusionConfig()
        require(config.frame_rate > 0, f"frame_rate must be > 0, got {config.frame_rate}")
        self.calib = calib
        self.cfg = config
        self._prev: Optional[_FrameState] = None

    def reset(self) -> None:
        self._prev = None

    def process(
        self,
        frame: FramePayload,
        correspondences: Sequence[FeatureCorrespondence] = (),
    ) -> FusionResult:
        state = self._cluster(frame)
        prev = self._prev
        self._prev = state

        if prev is None:
            return FusionResult(frame_id=frame.frame_id, assignments=state.assignments)

        mapping = match_regions(correspondences, prev.frame, frame, self.cfg.region_match)
        curr_regions = {reg.region_id: reg for reg in frame.regions}

        pairs: List[PairTTC] = []
        for prev_id, curr_id in mapping.items():
            pts_prev = points_for_region(prev.assignments, prev_id, prev.points)
            pts_curr = points_for_region(state.assignments, curr_id, state.points)

            filtered = filter_region_correspondences(
                curr_regions[curr_id],
                prev.frame.keypoints,
                frame.keypoints,
                correspondences,
                self.cfg.correspondence_filter,
            )

            pairs.append(PairTTC(
                prev_id=prev_id,
                curr_id=curr_id,
                ttc_range=self._range_ttc(pts_prev, pts_curr, prev_id, curr_id),
                ttc_camera=self._camera_ttc(prev.frame, frame, filtered),
                n_points_prev=len(pts_prev),
                n_points_curr=len(pts_curr),
                filter=filtered,
            ))

        return FusionResult(
            frame_id=frame.frame_id,
            mapping=mapping,
            pairs=pairs,
            assignments=state.assignments,
        )

    def run(self, provider: IFrameProvider) -> Iterator[FusionResult]:
        while provider.has_next():
            ev = provider.next_event()
            yield self.process(ev.frame, ev.correspondences)

    # ---------- helpers ----------

    def _cluster(self, frame: FramePayload) -> _FrameState:
        points = frame.range_points
        if self.cfg.crop_points:
            points = crop_range_points(points, self.cfg.crop)
        assignments = cluster_range_points(frame.regions, points, self.calib, self.cfg.cluster)
        return _FrameState(frame=frame, points=tuple(points), assignments=assignments)

    def _range_ttc(self, pts_prev: List[RangePoint], pts_curr: List[RangePoint], prev_id: int, curr_id: int) -> float:
        k = self.cfg.range_ttc.k
        if len(pts_prev) < k or len(pts_curr) < k:
            logger.info(
                f"[TTC] pair {prev_id}->{curr_id}: skipping range TTC "
                f"({len(pts_prev)}/{len(pts_curr)} points, need {k})"
            )
            return math.nan
        return compute_ttc_range(pts_prev, pts_curr, self.cfg.frame_rate, self.cfg.range_ttc)

    def _camera_ttc(self, prev_frame: FramePayload, curr_frame: FramePayload, filtered: RegionCorrespondences) -> float:
        if filtered.n_after == 0:
            return math.nan
        return compute_ttc_camera(
            prev_frame.keypoints,
            curr_frame.keypoints,
            filtered.correspondences,
            self.cfg.frame_rate,
            self.cfg.camera_ttc,
        )

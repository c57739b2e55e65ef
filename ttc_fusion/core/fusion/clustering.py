'''
Range point -> detected region association.
Every point is projected into the image and assigned to the single region whose
shrunk rectangle encloses it. Points enclosed by zero or several regions are dropped.
'''
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple
import logging
import numpy as np

from ttc_fusion.types import DetectedRegion, RangePoint, require
from ttc_fusion.core.fusion.calib import ProjectionCalib
from ttc_fusion.core.fusion.projection import points_to_array, projection_matrix, project_points

logger = logging.getLogger(__name__)

RegionPoints = Dict[int, Tuple[int, ...]]  # region_id -> point indices


@dataclass
class ClusterParams:
    shrink_factor: float = 0.10   # fraction of width/height removed, centered


@dataclass
class CropParams:
    min_x: float = 2.0     # m, forward
    max_x: float = 20.0
    max_y: float = 2.0     # m, |lateral| (ego lane)
    min_z: float = -1.5    # m, road surface cut
    max_z: float = -0.9
    min_r: float = 0.1     # reflectivity


def crop_range_points(points: Sequence[RangePoint], params: CropParams = CropParams()) -> Tuple[RangePoint, ...]:
    kept = tuple(
        p for p in points
        if params.min_x <= p.x <= params.max_x
        and abs(p.y) <= params.max_y
        and params.min_z <= p.z <= params.max_z
        and p.r >= params.min_r
    )
    logger.debug(f"[RangeCrop] kept {len(kept)}/{len(points)} points")
    return kept


def _shrunk_bounds(regions: Sequence[DetectedRegion], shrink_factor: float) -> np.ndarray:
    """(R,4) array of [x0, y0, x1, y1] for the shrunk rectangles."""
    out = np.zeros((len(regions), 4), dtype=np.float64)
    for i, reg in enumerate(regions):
        r = reg.roi.shrunk(shrink_factor)
        out[i] = (r.x, r.y, r.x + r.width, r.y + r.height)
    return out


def enclosing_region_mask(uv: np.ndarray, bounds: np.ndarray) -> np.ndarray:
    """(N,R) bool, True where pixel n lies inside rectangle r (half-open)."""
    u = uv[:, 0:1]
    v = uv[:, 1:2]
    return (
        (u >= bounds[None, :, 0]) & (u < bounds[None, :, 2])
        & (v >= bounds[None, :, 1]) & (v < bounds[None, :, 3])
    )


def cluster_range_points(
    regions: Sequence[DetectedRegion],
    points: Sequence[RangePoint],
    calib: ProjectionCalib | np.ndarray,
    params: ClusterParams = ClusterParams(),
) -> RegionPoints:
    """
    Returns region_id -> indices into `points` of the points assigned to that region.
    Every region gets an entry, possibly empty. No point is assigned twice.
    """
    require(0.0 <= params.shrink_factor < 1.0,
            f"shrink_factor must be in [0, 1), got {params.shrink_factor}")

    if not regions:
        return {}

    P = projection_matrix(calib)
    uv = project_points(P, points_to_array(points))
    inside = enclosing_region_mask(uv, _shrunk_bounds(regions, params.shrink_factor))

    n_enclosing = inside.sum(axis=1)
    unique = np.flatnonzero(n_enclosing == 1)
    owner = inside[unique].argmax(axis=1)

    assigned: Dict[int, list] = {reg.region_id: [] for reg in regions}
    for pt_idx, reg_idx in zip(unique.tolist(), owner.tolist()):
        assigned[regions[reg_idx].region_id].append(pt_idx)

    n_ambiguous = int(np.count_nonzero(n_enclosing > 1))
    logger.debug(
        f"[RegionCluster] points={len(points)} assigned={unique.size} "
        f"ambiguous={n_ambiguous} regions={len(regions)}"
    )
    return {rid: tuple(idx) for rid, idx in assigned.items()}


def points_for_region(assignment: RegionPoints, region_id: int, points: Sequence[RangePoint]) -> list[RangePoint]:
    return [points[i] for i in assignment.get(region_id, ())]

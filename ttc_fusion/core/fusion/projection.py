# ttc_fusion/core/fusion/projection.py
from __future__ import annotations
from typing import Sequence
import numpy as np

from ttc_fusion.types import RangePoint
from ttc_fusion.core.fusion.calib import ProjectionCalib


def points_to_array(points: Sequence[RangePoint]) -> np.ndarray:
    """(N,3) float64 array of x, y, z."""
    if not points:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array([[p.x, p.y, p.z] for p in points], dtype=np.float64)


def projection_matrix(calib: ProjectionCalib | np.ndarray) -> np.ndarray:
    if isinstance(calib, ProjectionCalib):
        return calib.matrix()
    P = np.asarray(calib, dtype=np.float64)
    if P.shape != (3, 4):
        raise ValueError(f"projection matrix must be (3,4), got {P.shape}")
    return P


def project_points(P: np.ndarray, xyz: np.ndarray, min_depth: float = 1e-6) -> np.ndarray:
    """
    P:   (3,4) composed projection.
    xyz: (N,3) points in the range sensor frame.
    returns (N,2) pixel coordinates; rows are NaN where the depth
    component is <= min_depth (point behind the image plane).
    """
    n = xyz.shape[0]
    if n == 0:
        return np.zeros((0, 2), dtype=np.float64)

    X = np.hstack([xyz, np.ones((n, 1), dtype=np.float64)])  # (N,4)
    Y = X @ P.T                                              # (N,3)

    w = Y[:, 2]
    uv = np.full((n, 2), np.nan, dtype=np.float64)
    front = w > min_depth
    uv[front] = Y[front, :2] / w[front, None]
    return uv

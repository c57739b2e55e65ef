'''
Camera/range-sensor calibration used for projecting range points.
Matrices are supplied by the caller (KITTI-style: P_rect 3x4, R_rect 3x3, RT 3x4),
padded here into homogeneous 4x4 form so they chain as P_rect @ R_rect @ RT.
'''

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np
import yaml


@dataclass(frozen=True)
class ProjectionCalib:
    P_rect: np.ndarray   # (3,4) rectified intrinsics
    R_rect: np.ndarray   # (4,4) rectifying rotation
    RT: np.ndarray       # (4,4) range sensor -> camera

    def matrix(self) -> np.ndarray:
        """Composed (3,4) mapping from homogeneous sensor coordinates to image."""
        return self.P_rect @ self.R_rect @ self.RT


def P_rect_from_yaml_data(data_list: list[float]) -> np.ndarray:
    return np.array(data_list, dtype=np.float64).reshape(3, 4)


def R_rect_from_yaml_data(data_list: list[float]) -> np.ndarray:
    R = np.eye(4, dtype=np.float64)
    R[:3, :3] = np.array(data_list, dtype=np.float64).reshape(3, 3)
    return R


def RT_from_yaml_data(data_list: list[float]) -> np.ndarray:
    T = np.eye(4, dtype=np.float64)
    T[:3, :] = np.array(data_list, dtype=np.float64).reshape(3, 4)
    return T


def load_projection_calib(path: str | Path) -> ProjectionCalib:
    path = Path(path)
    with path.open("r") as f:
        data = yaml.safe_load(f) or {}

    missing = [k for k in ("P_rect", "R_rect", "RT") if k not in data]
    if missing:
        raise KeyError(f"{path}: missing calibration keys {missing}")

    return ProjectionCalib(
        P_rect=P_rect_from_yaml_data(data["P_rect"]),
        R_rect=R_rect_from_yaml_data(data["R_rect"]),
        RT=RT_from_yaml_data(data["RT"]),
    )

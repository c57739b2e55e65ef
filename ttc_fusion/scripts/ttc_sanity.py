'''
Synthetic sanity check for the fusion pipeline:
-a vehicle rear surface approaches the sensor at constant speed
-range points and keypoints are generated on that surface and projected with a pinhole camera
-both TTC estimates are printed next to the ground truth d / v
'''

from __future__ import annotations

import argparse
import logging
import math
from typing import List, Tuple

import numpy as np

from ttc_fusion.types import (
    DetectedRegion,
    FeatureCorrespondence,
    FeatureKeypoint,
    FramePayload,
    RangePoint,
    Rect,
)
from ttc_fusion.core.fusion.calib import ProjectionCalib
from ttc_fusion.core.fusion.projection import project_points
from ttc_fusion.frontend.config import FusionConfig
from ttc_fusion.frontend.ttc_frontend import TTCFrontend


def pinhole_calib(f: float = 1000.0, cx: float = 640.0, cy: float = 360.0) -> ProjectionCalib:
    P_rect = np.array([[f, 0.0, cx, 0.0],
                       [0.0, f, cy, 0.0],
                       [0.0, 0.0, 1.0, 0.0]], dtype=np.float64)
    # sensor (x fwd, y left, z up) -> camera (x right, y down, z fwd)
    RT = np.array([[0.0, -1.0, 0.0, 0.0],
                   [0.0, 0.0, -1.0, 0.0],
                   [1.0, 0.0, 0.0, 0.0],
                   [0.0, 0.0, 0.0, 1.0]], dtype=np.float64)
    return ProjectionCalib(P_rect=P_rect, R_rect=np.eye(4), RT=RT)


def synthetic_frame(
    frame_id: int,
    dist_m: float,
    calib: ProjectionCalib,
    rng: np.random.Generator,
    half_width: float = 0.8,
    z_range: Tuple[float, float] = (-1.4, -1.0),
    n_points: int = 200,
) -> FramePayload:
    P = calib.matrix()

    ys = rng.uniform(-half_width, half_width, n_points)
    zs = rng.uniform(z_range[0], z_range[1], n_points)
    xs = dist_m + np.abs(rng.normal(0.0, 0.01, n_points))
    points = tuple(RangePoint(float(x), float(y), float(z), 0.5) for x, y, z in zip(xs, ys, zs))

    # keypoints on a fixed surface grid, same order every frame
    gy, gz = np.meshgrid(np.linspace(-half_width, half_width, 6), np.linspace(z_range[0], z_range[1], 3))
    surf = np.stack([np.full(gy.size, dist_m), gy.ravel(), gz.ravel()], axis=1)
    uv = project_points(P, surf)
    keypoints = tuple(FeatureKeypoint(float(u), float(v)) for u, v in uv)

    corners = np.array([[dist_m, half_width, z_range[1]],
                        [dist_m, -half_width, z_range[0]]], dtype=np.float64)
    c = project_points(P, corners)
    margin = 20.0
    x0, y0 = c.min(axis=0) - margin
    x1, y1 = c.max(axis=0) + margin
    region = DetectedRegion(region_id=0, roi=Rect(float(x0), float(y0), float(x1 - x0), float(y1 - y0)))

    return FramePayload(
        frame_id=frame_id,
        t_ns=int(frame_id * 1e8),
        keypoints=keypoints,
        regions=(region,),
        range_points=points,
    )


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--start", default=12.0, type=float, help="Initial distance (m)")
    ap.add_argument("--speed", default=5.0, type=float, help="Closing speed (m/s)")
    ap.add_argument("--frames", default=10, type=int)
    ap.add_argument("--seed", default=0, type=int)
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    cfg = FusionConfig()
    calib = pinhole_calib()
    rng = np.random.default_rng(args.seed)
    frontend = TTCFrontend(calib, cfg)
    dT = 1.0 / cfg.frame_rate

    errs: List[float] = []
    for k in range(args.frames):
        d = args.start - args.speed * dT * k
        frame = synthetic_frame(k, d, calib, rng)
        corr = tuple(FeatureCorrespondence(i, i) for i in range(len(frame.keypoints))) if k > 0 else ()
        res = frontend.process(frame, corr)

        for pair in res.pairs:
            gt = d / args.speed
            print(
                f"[frame {k}] d={d:.2f}m  gt={gt:.3f}s  "
                f"lidar={pair.ttc_range:.3f}s  camera={pair.ttc_camera:.3f}s"
            )
            if math.isfinite(pair.ttc_range):
                errs.append(abs(pair.ttc_range - gt))

    if errs:
        print(f"\nlidar TTC |err|: mean={np.mean(errs):.3f}s  max={np.max(errs):.3f}s")
    else:
        print("\nNo finite lidar TTC produced.")


if __name__ == "__main__":
    main()

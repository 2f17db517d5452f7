#!/usr/bin/env python3
"""
三角形バウンディングボックス

各三角形の3頂点を囲む軸並行ボックスを一括計算します。
スイープ検索の x 区間イベントと y 区間の事前判定に使用します。
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np


@dataclass
class TriangleBounds:
    """三角形ごとの軸並行バウンディングボックス"""
    xmin: np.ndarray   # (M,)
    xmax: np.ndarray   # (M,)
    ymin: np.ndarray   # (M,)
    ymax: np.ndarray   # (M,)

    @property
    def num_triangles(self) -> int:
        """三角形数を取得"""
        return len(self.xmin)

    def contains_y(self, tri_idx: int, y: float) -> bool:
        """y が三角形の y 区間に含まれるか"""
        return self.ymin[tri_idx] <= y <= self.ymax[tri_idx]

    def box(self, tri_idx: int) -> Tuple[float, float, float, float]:
        """(xmin, xmax, ymin, ymax) を取得"""
        return (
            float(self.xmin[tri_idx]), float(self.xmax[tri_idx]),
            float(self.ymin[tri_idx]), float(self.ymax[tri_idx])
        )


def compute_triangle_bounds(uvs: np.ndarray, triangles: np.ndarray) -> TriangleBounds:
    """
    各三角形のバウンディングボックスを計算

    Args:
        uvs: 頂点UV座標 (N, 2)
        triangles: 三角形インデックス (M, 3)

    Returns:
        三角形ごとのバウンディングボックス
    """
    if len(triangles) == 0:
        empty = np.zeros(0, dtype=np.float64)
        return TriangleBounds(empty, empty.copy(), empty.copy(), empty.copy())

    corners = uvs[triangles]          # (M, 3, 2)
    mins = corners.min(axis=1)
    maxs = corners.max(axis=1)
    return TriangleBounds(
        xmin=np.ascontiguousarray(mins[:, 0]),
        xmax=np.ascontiguousarray(maxs[:, 0]),
        ymin=np.ascontiguousarray(mins[:, 1]),
        ymax=np.ascontiguousarray(maxs[:, 1]),
    )

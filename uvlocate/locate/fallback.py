#!/usr/bin/env python3
"""
最近傍境界エッジ・フォールバック

スイープで三角形が見つからなかったクエリ点に対して、最も近い境界エッジを
総当たりで探索し、そのエッジに隣接する三角形を割り当てます。
重心座標は計算しません（三角形の割り当てのみ）。

既知の制限: 長さ0のエッジでは射影パラメータが inf/NaN になる。
NaN の距離は比較で選ばれないため、そのエッジは事実上無視される。
"""

import time
from typing import Optional, Tuple
import numpy as np

from ..numba_config import create_optimized_jit
from ..data_types import (
    ArrayLike, ResolveResult, as_points_2d, as_edge_indices
)
from ..constants import NO_EDGE
from .. import get_logger

logger = get_logger(__name__)


@create_optimized_jit()
def _closest_edge_kernel(px, py, starts, directions, lengths2):
    """
    JIT最適化された最近傍エッジ探索（nopython mode）

    Args:
        px, py: 検査点
        starts: エッジ始点 (E, 2)
        directions: 始点→終点ベクトル (E, 2)
        lengths2: エッジ長の2乗 (E,)

    Returns:
        (エッジインデックス, 距離の2乗)。該当なしは (-1, inf)
    """
    best_idx = -1
    best_d2 = np.inf
    for i in range(starts.shape[0]):
        ax = starts[i, 0]
        ay = starts[i, 1]
        dx = directions[i, 0]
        dy = directions[i, 1]

        # 射影パラメータ dot(p - a, d) / |d|^2 を [0, 1] にクランプ
        t = ((px - ax) * dx + (py - ay) * dy) / lengths2[i]
        if t < 0.0:
            t = 0.0
        elif t > 1.0:
            t = 1.0

        cx = dx * t + ax - px
        cy = dy * t + ay - py
        d2 = cx * cx + cy * cy

        if d2 < best_d2:
            best_d2 = d2
            best_idx = i
    return best_idx, best_d2


@create_optimized_jit()
def _closest_edges_batch(points, starts, directions, lengths2):
    """
    JIT最適化された最近傍エッジのバッチ探索

    Args:
        points: 検査点 (K, 2)

    Returns:
        (エッジインデックス (K,), 距離の2乗 (K,))
    """
    k = points.shape[0]
    indices = np.empty(k, dtype=np.int64)
    dists2 = np.empty(k, dtype=np.float64)
    for j in range(k):
        idx, d2 = _closest_edge_kernel(points[j, 0], points[j, 1], starts, directions, lengths2)
        indices[j] = idx
        dists2[j] = d2
    return indices, dists2


def prepare_boundary_segments(
    uv_vertices: np.ndarray,
    edges: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    境界エッジを線分表現に変換

    Args:
        uv_vertices: 頂点UV座標 (N, 2)
        edges: 境界エッジ (E, 2)

    Returns:
        (始点 (E, 2), 方向ベクトル (E, 2), 長さの2乗 (E,))
    """
    starts = np.ascontiguousarray(uv_vertices[edges[:, 0]], dtype=np.float64)
    ends = uv_vertices[edges[:, 1]]
    directions = np.ascontiguousarray(ends - starts, dtype=np.float64)
    lengths2 = np.einsum('ij,ij->i', directions, directions)
    return starts, directions, np.ascontiguousarray(lengths2)


def closest_boundary_edge(
    point: np.ndarray,
    starts: np.ndarray,
    directions: np.ndarray,
    lengths2: np.ndarray
) -> Tuple[int, float]:
    """
    点に最も近い境界エッジを総当たりで探索

    同距離のエッジが複数ある場合はインデックスが最小のものを返す。

    Returns:
        (エッジインデックス, 距離の2乗)。有限距離のエッジがなければ (-1, inf)
    """
    idx, d2 = _closest_edge_kernel(float(point[0]), float(point[1]), starts, directions, lengths2)
    return int(idx), float(d2)


def resolve_missing(
    query_points: ArrayLike,
    uv_vertices: ArrayLike,
    boundary_edges: ArrayLike,
    missing: ArrayLike,
    edge_to_triangle: ArrayLike,
    triangle_for_point: np.ndarray,
    max_distance: Optional[float] = None
) -> ResolveResult:
    """
    未解決のクエリ点に最近傍境界エッジの隣接三角形を割り当て

    triangle_for_point をその場で書き換える。

    Args:
        query_points: クエリ点 (Q, 2)
        uv_vertices: 頂点UV座標 (N, 2)
        boundary_edges: 境界エッジ (E, 2)
        missing: 未解決クエリ点のインデックス
        edge_to_triangle: 各境界エッジの隣接三角形 (E,)
        triangle_for_point: クエリ点ごとの三角形 (Q,)（入出力、整数の np.ndarray）
        max_distance: 許容距離（Noneなら無制限）。超過した点は未割り当てのまま

    Returns:
        フォールバック結果
    """
    if not isinstance(triangle_for_point, np.ndarray) or triangle_for_point.ndim != 1:
        raise ValueError("triangle_for_point must be a 1-D numpy array (it is updated in place)")

    start_time = time.perf_counter()

    missing_idx = np.asarray(missing, dtype=np.int64).reshape(-1)
    if len(missing_idx) == 0:
        empty = np.zeros(0, dtype=np.int64)
        return ResolveResult(
            resolved=empty, unresolved=empty.copy(),
            nearest_edge=empty.copy(), distances=np.zeros(0, dtype=np.float64)
        )

    points = as_points_2d(query_points, name="query_points")
    uvs = as_points_2d(uv_vertices, name="uv_vertices")
    edges = as_edge_indices(boundary_edges, num_vertices=len(uvs))
    edge_tris = np.asarray(edge_to_triangle, dtype=np.int64).reshape(-1)

    if len(edge_tris) != len(edges):
        raise ValueError(
            f"edge_to_triangle length {len(edge_tris)} does not match edge count {len(edges)}"
        )
    if len(edges) == 0:
        raise ValueError(f"Cannot resolve {len(missing_idx)} missing points without boundary edges")
    if len(triangle_for_point) != len(points):
        raise ValueError(
            f"triangle_for_point length {len(triangle_for_point)} does not match "
            f"query point count {len(points)}"
        )
    if np.any(missing_idx < 0) or np.any(missing_idx >= len(points)):
        raise ValueError(f"Missing indices out of range [0, {len(points)})")

    starts, directions, lengths2 = prepare_boundary_segments(uvs, edges)
    nearest, dists2 = _closest_edges_batch(
        np.ascontiguousarray(points[missing_idx]), starts, directions, lengths2
    )
    distances = np.sqrt(dists2)

    accept = nearest != NO_EDGE
    if max_distance is not None:
        accept &= distances <= max_distance

    resolved = missing_idx[accept]
    unresolved = missing_idx[~accept]
    triangle_for_point[resolved] = edge_tris[nearest[accept]]

    if len(unresolved):
        logger.warning(
            f"{len(unresolved)}/{len(missing_idx)} missing points left unresolved "
            f"(max_distance={max_distance})"
        )

    resolve_time = (time.perf_counter() - start_time) * 1000
    logger.debug(
        f"Resolved {len(resolved)}/{len(missing_idx)} missing points against "
        f"{len(edges)} boundary edges in {resolve_time:.2f}ms"
    )

    return ResolveResult(
        resolved=resolved,
        unresolved=unresolved,
        nearest_edge=nearest,
        distances=distances,
        resolve_time_ms=resolve_time
    )

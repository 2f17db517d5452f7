"""
三角形内外判定と重心座標

スイープ検索が候補三角形ごとに呼び出す判定関数を提供します。
Numba JIT コンパイル済みのスカラーカーネルで計算します。
"""

from typing import Optional
import numpy as np

from ..numba_config import create_optimized_jit
from ..constants import BARYCENTRIC_TOLERANCE, DEGENERATE_AREA_EPSILON


@create_optimized_jit()
def _barycentric_2d(px, py, ax, ay, bx, by, cx, cy):
    """
    JIT最適化された2D重心座標計算（nopython mode）

    Returns:
        (wa, wb, wc, valid) - 退化三角形では valid=False
    """
    denom = (by - cy) * (ax - cx) + (cx - bx) * (ay - cy)
    if abs(denom) < DEGENERATE_AREA_EPSILON:
        return 0.0, 0.0, 0.0, False
    wa = ((by - cy) * (px - cx) + (cx - bx) * (py - cy)) / denom
    wb = ((cy - ay) * (px - cx) + (ax - cx) * (py - cy)) / denom
    wc = 1.0 - wa - wb
    return wa, wb, wc, True


def barycentric_coordinates(
    point: np.ndarray,
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray
) -> Optional[np.ndarray]:
    """
    点の重心座標を計算

    Args:
        point: 検査点 (2,)
        a, b, c: 三角形の頂点 (2,)

    Returns:
        (wa, wb, wc)。退化三角形の場合は None
    """
    wa, wb, wc, valid = _barycentric_2d(
        float(point[0]), float(point[1]),
        float(a[0]), float(a[1]),
        float(b[0]), float(b[1]),
        float(c[0]), float(c[1])
    )
    if not valid:
        return None
    return np.array([wa, wb, wc], dtype=np.float64)


def point_in_triangle(
    point: np.ndarray,
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    tolerance: float = BARYCENTRIC_TOLERANCE
) -> Optional[np.ndarray]:
    """
    点が三角形に含まれる場合に重心座標を返す

    辺・頂点上の点は含まれる（全ての重み >= -tolerance）。

    Args:
        point: 検査点 (2,)
        a, b, c: 三角形の頂点 (2,)
        tolerance: 許容誤差

    Returns:
        含まれる場合は (wa, wb, wc)、それ以外は None
    """
    wa, wb, wc, valid = _barycentric_2d(
        float(point[0]), float(point[1]),
        float(a[0]), float(a[1]),
        float(b[0]), float(b[1]),
        float(c[0]), float(c[1])
    )
    if not valid:
        return None
    if wa < -tolerance or wb < -tolerance or wc < -tolerance:
        return None
    return np.array([wa, wb, wc], dtype=np.float64)


def make_point_in_triangle(tolerance: float = BARYCENTRIC_TOLERANCE):
    """許容誤差を固定した判定関数を作成"""
    def predicate(point, a, b, c):
        return point_in_triangle(point, a, b, c, tolerance)
    return predicate

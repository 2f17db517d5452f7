#!/usr/bin/env python3
"""
UV点検索ファサード

三角形分割を一度だけ検証・前処理し、スイープ検索とフォールバックを
まとめて実行するクラスと便利関数を提供します。
"""

import time
from typing import Optional
import numpy as np

from ..data_types import (
    ArrayLike, BoundaryEdges, LocateReport, LocateResult, ResolveResult,
    UVTriangulation, as_points_2d
)
from ..config import UVLocateConfig, get_config
from ..constants import BATCH_SUMMARY_THRESHOLD, MISSING_TRIANGLE
from ..mesh.bounds import TriangleBounds, compute_triangle_bounds
from ..mesh.boundary import extract_boundary_edges
from .predicate import make_point_in_triangle
from .sweep import SweepState
from .fallback import resolve_missing
from .. import get_logger

logger = get_logger(__name__)


class UVPointLocator:
    """UV三角形分割に対するクエリ点検索クラス"""

    def __init__(
        self,
        uv_vertices: ArrayLike,
        triangles: ArrayLike,
        boundary: Optional[BoundaryEdges] = None,
        config: Optional[UVLocateConfig] = None
    ):
        """
        初期化

        Args:
            uv_vertices: 頂点UV座標 (N, 2)
            triangles: 三角形インデックス (M, 3) またはフラット (3M,)
            boundary: 境界エッジ（Noneの場合は三角形分割から抽出）
            config: 設定（Noneの場合は設定ファイルから取得）
        """
        self.config = config if config is not None else get_config()
        locator_config = self.config.locator

        self.triangulation = UVTriangulation.from_arrays(
            uv_vertices, triangles, validate=locator_config.validate_input
        )
        self.bounds: TriangleBounds = compute_triangle_bounds(
            self.triangulation.uvs, self.triangulation.triangles
        )
        self.predicate = make_point_in_triangle(locator_config.edge_tolerance)

        self._boundary = boundary
        if self._boundary is None and not locator_config.lazy_boundary:
            self._boundary = extract_boundary_edges(self.triangulation.triangles)

        # パフォーマンス統計
        self.stats = {
            'total_batches': 0,
            'total_points': 0,
            'total_missing': 0,
            'total_resolved_by_fallback': 0,
            'total_time_ms': 0.0,
            'average_time_ms': 0.0,
            'last_num_points': 0,
            'last_max_active': 0
        }

    @property
    def boundary(self) -> BoundaryEdges:
        """境界エッジ（未指定なら初回アクセス時に抽出）"""
        if self._boundary is None:
            self._boundary = extract_boundary_edges(self.triangulation.triangles)
        return self._boundary

    def locate(self, query_points: ArrayLike) -> LocateResult:
        """
        スイープ検索のみ実行

        Args:
            query_points: クエリ点 (Q, 2)

        Returns:
            検索結果
        """
        points = as_points_2d(
            query_points, name="query_points",
            check_finite=self.config.locator.validate_input
        )
        state = SweepState(points, self.triangulation, bounds=self.bounds, predicate=self.predicate)
        result = state.run()
        self.stats['last_max_active'] = state.max_active
        return result

    def resolve(self, query_points: ArrayLike, locate_result: LocateResult) -> ResolveResult:
        """
        未解決点にフォールバックを適用

        locate_result.triangle_for_point をその場で更新する。
        """
        boundary = self.boundary
        return resolve_missing(
            query_points,
            self.triangulation.uvs,
            boundary.edges,
            locate_result.missing,
            boundary.edge_to_triangle,
            locate_result.triangle_for_point,
            max_distance=self.config.fallback.max_distance
        )

    def locate_and_resolve(self, query_points: ArrayLike) -> LocateReport:
        """
        スイープ検索とフォールバックを実行

        Args:
            query_points: クエリ点 (Q, 2)

        Returns:
            総合結果
        """
        start_time = time.perf_counter()
        points = as_points_2d(
            query_points, name="query_points",
            check_finite=self.config.locator.validate_input
        )

        locate_result = self.locate(points)
        report = LocateReport(
            triangle_for_point=locate_result.triangle_for_point,
            barycentrics=locate_result.barycentrics,
            locate=locate_result
        )

        if locate_result.num_missing > 0:
            if self.boundary.num_edges == 0:
                message = f"{locate_result.num_missing} points missing and triangulation has no boundary edges"
                logger.warning(message)
                report.warnings.append(message)
            else:
                report.resolve = self.resolve(points, locate_result)
                if len(report.resolve.unresolved):
                    report.warnings.append(
                        f"{len(report.resolve.unresolved)} points beyond fallback tolerance"
                    )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._update_stats(report, elapsed_ms)
        return report

    def _update_stats(self, report: LocateReport, elapsed_ms: float):
        """統計を更新"""
        num_points = len(report.triangle_for_point)
        self.stats['total_batches'] += 1
        self.stats['total_points'] += num_points
        self.stats['total_missing'] += report.locate.num_missing
        if report.resolve is not None:
            self.stats['total_resolved_by_fallback'] += report.resolve.num_resolved
        self.stats['total_time_ms'] += elapsed_ms
        self.stats['average_time_ms'] = self.stats['total_time_ms'] / self.stats['total_batches']
        self.stats['last_num_points'] = num_points

        if not self.config.enable_performance_logging:
            return
        message = (
            f"Located {num_points} points on {self.triangulation.num_triangles} triangles: "
            f"sweep_missing={report.locate.num_missing}, "
            f"fallback={report.resolve.num_resolved if report.resolve else 0}, "
            f"time={elapsed_ms:.2f}ms"
        )
        if num_points >= BATCH_SUMMARY_THRESHOLD:
            logger.info(message)
        else:
            logger.debug(message)

    def get_performance_stats(self) -> dict:
        """パフォーマンス統計取得"""
        return self.stats.copy()

    def reset_stats(self):
        """統計リセット"""
        for key in self.stats:
            self.stats[key] = 0.0 if isinstance(self.stats[key], float) else 0


# 便利関数

def locate_and_resolve(
    query_points: ArrayLike,
    uv_vertices: ArrayLike,
    triangles: ArrayLike,
    boundary: Optional[BoundaryEdges] = None,
    config: Optional[UVLocateConfig] = None
) -> LocateReport:
    """
    スイープ検索とフォールバックを一括実行（簡単なインターフェース）

    Args:
        query_points: クエリ点 (Q, 2)
        uv_vertices: 頂点UV座標 (N, 2)
        triangles: 三角形インデックス
        boundary: 境界エッジ（Noneなら抽出）
        config: 設定

    Returns:
        総合結果
    """
    locator = UVPointLocator(uv_vertices, triangles, boundary=boundary, config=config)
    return locator.locate_and_resolve(query_points)


def interpolate_vertex_values(
    values: ArrayLike,
    triangles: ArrayLike,
    triangle_for_point: np.ndarray,
    barycentrics: np.ndarray
) -> np.ndarray:
    """
    頂点ごとの値をクエリ点へ重心座標で補間

    三角形または重心座標が未定義の点は NaN になる。

    Args:
        values: 頂点ごとの値 (N,) または (N, C)
        triangles: 三角形インデックス (M, 3)
        triangle_for_point: クエリ点ごとの三角形 (Q,)
        barycentrics: 重心座標 (Q, 3)

    Returns:
        補間値 (Q,) または (Q, C)
    """
    vals = np.asarray(values, dtype=np.float64)
    tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    tri_idx = np.asarray(triangle_for_point, dtype=np.int64)
    barys = np.asarray(barycentrics, dtype=np.float64)

    out_shape = (len(tri_idx),) + vals.shape[1:]
    out = np.full(out_shape, np.nan, dtype=np.float64)

    valid = (tri_idx != MISSING_TRIANGLE) & np.all(np.isfinite(barys), axis=1)
    if not np.any(valid):
        return out

    corner_values = vals[tris[tri_idx[valid]]]              # (K, 3) or (K, 3, C)
    weights = barys[valid]
    out[valid] = np.einsum('kj,kj...->k...', weights, corner_values)
    return out

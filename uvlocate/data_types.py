#!/usr/bin/env python3
"""
共通型定義

検索・フォールバックで使用される型定義と入力配列の正規化を一元管理し、
モジュール間の循環依存を解消します。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Optional, Union, Iterator, Callable
import numpy as np

from .constants import MISSING_TRIANGLE

# 型エイリアス
ArrayLike = Union[np.ndarray, List, Tuple]

# 点・三角形頂点 (2,) を受け取り、重心座標 (3,) または None を返す判定関数
TrianglePredicate = Callable[[np.ndarray, np.ndarray, np.ndarray, np.ndarray], Optional[np.ndarray]]


# =============================================================================
# 入力配列の正規化
# =============================================================================

def as_points_2d(points: ArrayLike, name: str = "points", check_finite: bool = True) -> np.ndarray:
    """UV座標列を (N, 2) float64 配列に変換"""
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"{name} must be (N, 2), got {arr.shape}")
    if check_finite and not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite coordinates")
    return arr


def as_triangle_indices(triangles: ArrayLike, num_vertices: Optional[int] = None) -> np.ndarray:
    """
    三角形インデックスを (M, 3) int64 配列に変換

    フラット配列 (3M,) と (M, 3) の両方を受け付ける。
    """
    arr = np.asarray(triangles)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.int64)
    if not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"Triangle indices must be integers, got {arr.dtype}")
    if arr.ndim == 1:
        if arr.shape[0] % 3 != 0:
            raise ValueError(f"Flattened triangle indices length must be a multiple of 3, got {arr.shape[0]}")
        arr = arr.reshape(-1, 3)
    elif arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Triangles must be (M, 3) or flattened (3M,), got {arr.shape}")
    arr = arr.astype(np.int64, copy=False)
    if num_vertices is not None and (np.any(arr < 0) or np.any(arr >= num_vertices)):
        raise ValueError(f"Triangle indices out of range [0, {num_vertices})")
    return arr


def as_edge_indices(edges: ArrayLike, num_vertices: Optional[int] = None) -> np.ndarray:
    """境界エッジを (E, 2) int64 配列に変換"""
    arr = np.asarray(edges)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Edges must be (E, 2), got {arr.shape}")
    arr = arr.astype(np.int64, copy=False)
    if num_vertices is not None and (np.any(arr < 0) or np.any(arr >= num_vertices)):
        raise ValueError(f"Edge indices out of range [0, {num_vertices})")
    return arr


# =============================================================================
# メッシュ型定義
# =============================================================================

@dataclass
class UVTriangulation:
    """UV平面の三角形分割"""
    uvs: np.ndarray            # 頂点UV座標 (N, 2)
    triangles: np.ndarray      # 三角形インデックス (M, 3)

    @property
    def num_vertices(self) -> int:
        """頂点数を取得"""
        return len(self.uvs)

    @property
    def num_triangles(self) -> int:
        """三角形数を取得"""
        return len(self.triangles)

    def triangle_vertices(self, tri_idx: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """三角形の3頂点を取得"""
        a, b, c = self.triangles[tri_idx]
        return self.uvs[a], self.uvs[b], self.uvs[c]

    @staticmethod
    def from_arrays(uvs: ArrayLike, triangles: ArrayLike, validate: bool = True) -> 'UVTriangulation':
        """配列から三角形分割を作成（検証付き）"""
        uv_arr = as_points_2d(uvs, name="uv_vertices", check_finite=validate)
        tri_arr = as_triangle_indices(triangles, num_vertices=len(uv_arr) if validate else None)
        return UVTriangulation(uvs=uv_arr, triangles=tri_arr)


@dataclass
class BoundaryEdges:
    """境界エッジと隣接三角形"""
    edges: np.ndarray              # 頂点インデックス対 (E, 2)
    edge_to_triangle: np.ndarray   # 各エッジに隣接する唯一の三角形 (E,)

    def __post_init__(self):
        if len(self.edges) != len(self.edge_to_triangle):
            raise ValueError(
                f"edge_to_triangle length {len(self.edge_to_triangle)} "
                f"does not match edge count {len(self.edges)}"
            )

    @property
    def num_edges(self) -> int:
        """境界エッジ数を取得"""
        return len(self.edges)


# =============================================================================
# 結果型定義
# =============================================================================

class SweepEvent(Enum):
    """スイープ1ステップで実行された処理"""
    ACTIVATE = "activate"        # xmin カーソル: 三角形を有効化
    TEST = "test"                # クエリカーソル: 有効三角形との内外判定
    DEACTIVATE = "deactivate"    # xmax カーソル: 三角形を無効化
    FINISHED = "finished"        # 全クエリ点を処理済み


@dataclass
class LocateResult:
    """スイープ検索結果

    ``tri, missing, barys = result`` の形で展開できる。
    """
    triangle_for_point: np.ndarray   # クエリ点ごとの三角形 (Q,)、未解決は -1
    missing: np.ndarray              # 未解決クエリ点のインデックス（スイープ順）
    barycentrics: np.ndarray         # 重心座標 (Q, 3)、未解決は NaN
    search_time_ms: float = 0.0
    num_predicate_calls: int = 0

    def __iter__(self) -> Iterator[np.ndarray]:
        yield self.triangle_for_point
        yield self.missing
        yield self.barycentrics

    @property
    def num_points(self) -> int:
        """クエリ点数を取得"""
        return len(self.triangle_for_point)

    @property
    def num_missing(self) -> int:
        """未解決点数を取得"""
        return len(self.missing)

    @property
    def found_mask(self) -> np.ndarray:
        """スイープで解決された点のマスク"""
        mask = np.ones(self.num_points, dtype=bool)
        mask[self.missing] = False
        return mask


@dataclass
class ResolveResult:
    """フォールバック結果"""
    resolved: np.ndarray             # 三角形が割り当てられたクエリ点
    unresolved: np.ndarray           # 許容距離外などで未割り当てのクエリ点
    nearest_edge: np.ndarray         # missing と同順の最近傍エッジ (-1 は該当なし)
    distances: np.ndarray            # missing と同順の最近傍エッジまでの距離
    resolve_time_ms: float = 0.0

    @property
    def num_resolved(self) -> int:
        """割り当て済み点数を取得"""
        return len(self.resolved)


@dataclass
class LocateReport:
    """スイープ + フォールバックの総合結果"""
    triangle_for_point: np.ndarray
    barycentrics: np.ndarray
    locate: LocateResult
    resolve: Optional[ResolveResult] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def found_by_sweep(self) -> np.ndarray:
        """スイープで解決された点のマスク"""
        return self.locate.found_mask

    @property
    def unresolved(self) -> np.ndarray:
        """最終的に三角形を持たない点"""
        return np.flatnonzero(self.triangle_for_point == MISSING_TRIANGLE)

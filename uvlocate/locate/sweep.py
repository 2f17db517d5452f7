#!/usr/bin/env python3
"""
スイープライン検索

クエリ点群の各点について、その点を含む三角形を x 軸方向のスイープで検索します。
3本のソート済みカーソル（クエリ点 x / 三角形 xmin / 三角形 xmax）を同期して進め、
現在のスイープ位置を跨ぐ三角形だけを有効集合として保持することで、
O(N·M) の総当たり判定を避けます。
"""

import time
from typing import Optional, Iterator, Dict
import numpy as np

from ..data_types import (
    ArrayLike, LocateResult, SweepEvent, TrianglePredicate,
    UVTriangulation, as_points_2d
)
from ..constants import EXHAUSTED_CURSOR_KEY, MISSING_TRIANGLE
from ..mesh.bounds import TriangleBounds, compute_triangle_bounds
from .ordering import stable_argsort
from .predicate import point_in_triangle, make_point_in_triangle
from .. import get_logger

logger = get_logger(__name__)


class SortedCursor:
    """ソート済み順列を先頭から走査するカーソル"""

    def __init__(self, keys: np.ndarray, name: str = "cursor"):
        """
        初期化

        Args:
            keys: 走査対象のキー (K,)
            name: デバッグ用の名前
        """
        self.name = name
        self.keys = keys
        self.order = stable_argsort(keys)
        self.position = 0

    @property
    def exhausted(self) -> bool:
        """全要素を走査済みか"""
        return self.position >= len(self.order)

    @property
    def index(self) -> int:
        """現在位置の元インデックス"""
        if self.exhausted:
            raise IndexError(f"{self.name} is exhausted")
        return int(self.order[self.position])

    @property
    def value(self) -> float:
        """現在位置のキー（枯渇後は番兵値）"""
        if self.exhausted:
            return EXHAUSTED_CURSOR_KEY
        return float(self.keys[self.order[self.position]])

    def advance(self) -> None:
        """1つ進める"""
        self.position += 1

    def __len__(self) -> int:
        return len(self.order)


class ActiveSet:
    """
    有効三角形の集合

    在籍フラグ配列と挿入順を保持する辞書の組で、
    O(1) の追加・削除・所属判定と決定的な（挿入順の）走査を提供する。
    """

    def __init__(self, capacity: int):
        self._present = np.zeros(capacity, dtype=bool)
        self._members: Dict[int, None] = {}

    def add(self, tri_idx: int) -> bool:
        """追加（既に在籍していれば False）"""
        if self._present[tri_idx]:
            return False
        self._present[tri_idx] = True
        self._members[tri_idx] = None
        return True

    def discard(self, tri_idx: int) -> bool:
        """削除（在籍していなければ False）"""
        if not self._present[tri_idx]:
            return False
        self._present[tri_idx] = False
        del self._members[tri_idx]
        return True

    def __contains__(self, tri_idx: int) -> bool:
        return bool(self._present[tri_idx])

    def __iter__(self) -> Iterator[int]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)


class SweepState:
    """
    スイープ検索の状態機械

    step() を呼ぶごとにいずれか1本のカーソルだけが進む。
    優先順位は 有効化 → 判定 → 無効化。
    """

    def __init__(
        self,
        query_points: np.ndarray,
        triangulation: UVTriangulation,
        bounds: Optional[TriangleBounds] = None,
        predicate: Optional[TrianglePredicate] = None
    ):
        """
        初期化

        Args:
            query_points: クエリ点 (Q, 2)
            triangulation: UV三角形分割
            bounds: 事前計算済みバウンディングボックス（Noneなら計算）
            predicate: 三角形内外判定関数（Noneなら既定の判定）
        """
        self.query_points = query_points
        self.triangulation = triangulation
        self.bounds = bounds if bounds is not None else compute_triangle_bounds(
            triangulation.uvs, triangulation.triangles
        )
        self.predicate = predicate if predicate is not None else point_in_triangle

        num_points = len(query_points)
        num_tris = triangulation.num_triangles

        # 3本のカーソル
        self.query_cursor = SortedCursor(query_points[:, 0], name="query")
        self.min_cursor = SortedCursor(self.bounds.xmin, name="xmin")
        self.max_cursor = SortedCursor(self.bounds.xmax, name="xmax")

        # 最初のクエリ点より左で閉じる三角形はスイープ全体で無視
        if num_points > 0:
            self.skip = self.bounds.xmax < self.query_cursor.value
        else:
            self.skip = np.ones(num_tris, dtype=bool)

        self.active = ActiveSet(num_tris)

        # 結果
        self.triangle_for_point = np.full(num_points, MISSING_TRIANGLE, dtype=np.int64)
        self.barycentrics = np.full((num_points, 3), np.nan, dtype=np.float64)
        self.missing = []

        # 統計
        self.num_steps = 0
        self.num_predicate_calls = 0
        self.max_active = 0

    @property
    def finished(self) -> bool:
        """全クエリ点を処理済みか"""
        return self.query_cursor.exhausted

    def step(self) -> SweepEvent:
        """
        スイープを1ステップ進める

        Returns:
            実行した処理
        """
        if self.finished:
            return SweepEvent.FINISHED

        self.num_steps += 1
        qp = self.query_cursor.value
        mn = self.min_cursor.value
        mx = self.max_cursor.value

        if mn <= mx and mn <= qp:
            self._activate()
            return SweepEvent.ACTIVATE
        if qp <= mx:
            self._test_query_point()
            return SweepEvent.TEST
        self._deactivate()
        return SweepEvent.DEACTIVATE

    def run(self) -> LocateResult:
        """スイープを最後まで実行"""
        start_time = time.perf_counter()

        while self.step() is not SweepEvent.FINISHED:
            pass

        search_time = (time.perf_counter() - start_time) * 1000
        return self.result(search_time)

    def result(self, search_time_ms: float = 0.0) -> LocateResult:
        """現在の結果を取得"""
        return LocateResult(
            triangle_for_point=self.triangle_for_point,
            missing=np.asarray(self.missing, dtype=np.int64),
            barycentrics=self.barycentrics,
            search_time_ms=search_time_ms,
            num_predicate_calls=self.num_predicate_calls
        )

    def _activate(self):
        """xmin カーソルの三角形を有効化"""
        tri_idx = self.min_cursor.index
        if not self.skip[tri_idx] and self.active.add(tri_idx):
            self.max_active = max(self.max_active, len(self.active))
        self.min_cursor.advance()

    def _test_query_point(self):
        """クエリカーソルの点を有効三角形と照合"""
        q_idx = self.query_cursor.index
        point = self.query_points[q_idx]
        y = point[1]
        uvs = self.triangulation.uvs
        triangles = self.triangulation.triangles

        # 線形探索（有効集合は局所的な三角形密度程度に小さい）
        for tri_idx in self.active:
            if not self.bounds.contains_y(tri_idx, y):
                continue
            a, b, c = triangles[tri_idx]
            self.num_predicate_calls += 1
            barys = self.predicate(point, uvs[a], uvs[b], uvs[c])
            if barys is not None:
                self.triangle_for_point[q_idx] = tri_idx
                self.barycentrics[q_idx] = barys
                break
        else:
            self.missing.append(q_idx)

        self.query_cursor.advance()

    def _deactivate(self):
        """xmax カーソルの三角形を無効化"""
        tri_idx = self.max_cursor.index
        if not self.skip[tri_idx]:
            self.active.discard(tri_idx)
        self.max_cursor.advance()


def locate_points(
    query_points: ArrayLike,
    uv_vertices: ArrayLike,
    triangles: ArrayLike,
    predicate: Optional[TrianglePredicate] = None,
    edge_tolerance: Optional[float] = None,
    validate: bool = True
) -> LocateResult:
    """
    クエリ点群の所属三角形と重心座標を検索

    Args:
        query_points: クエリ点 (Q, 2)
        uv_vertices: 頂点UV座標 (N, 2)
        triangles: 三角形インデックス (M, 3) またはフラット (3M,)
        predicate: 三角形内外判定関数（Noneなら既定の判定）
        edge_tolerance: 既定の判定に使う許容誤差（predicate 指定時は無視）
        validate: 入力を検証するか

    Returns:
        検索結果（``tri, missing, barys`` として展開可能）
    """
    points = as_points_2d(query_points, name="query_points", check_finite=validate)
    triangulation = UVTriangulation.from_arrays(uv_vertices, triangles, validate=validate)

    if predicate is None and edge_tolerance is not None:
        predicate = make_point_in_triangle(edge_tolerance)

    state = SweepState(points, triangulation, predicate=predicate)
    result = state.run()

    logger.debug(
        f"Sweep located {result.num_points - result.num_missing}/{result.num_points} points "
        f"over {triangulation.num_triangles} triangles in {result.search_time_ms:.2f}ms "
        f"(steps={state.num_steps}, predicate_calls={state.num_predicate_calls}, "
        f"max_active={state.max_active})"
    )
    return result

"""
uvlocate クエリ点検索フェーズ

このパッケージはUV三角形分割に対してクエリ点群の所属三角形と重心座標を求め、
見つからなかった点に最近傍境界エッジの三角形を割り当てる機能を提供します。

処理フロー:
1. 安定ソート (ordering.py) - クエリ点 x / 三角形 xmin / xmax の順列
2. スイープ検索 (sweep.py) - 有効三角形集合と内外判定 (predicate.py)
3. フォールバック (fallback.py) - 最近傍境界エッジの隣接三角形
4. ファサード (locator.py) - 前処理の再利用と統計
"""

# 安定ソート
from .ordering import stable_argsort

# 内外判定
from .predicate import (
    barycentric_coordinates,
    point_in_triangle,
    make_point_in_triangle
)

# スイープ検索
from .sweep import (
    SortedCursor,
    ActiveSet,
    SweepState,
    locate_points
)

# フォールバック
from .fallback import (
    prepare_boundary_segments,
    closest_boundary_edge,
    resolve_missing
)

# ファサード
from .locator import (
    UVPointLocator,
    locate_and_resolve,
    interpolate_vertex_values
)

__all__ = [
    # 安定ソート
    'stable_argsort',

    # 内外判定
    'barycentric_coordinates',
    'point_in_triangle',
    'make_point_in_triangle',

    # スイープ検索
    'SortedCursor',
    'ActiveSet',
    'SweepState',
    'locate_points',

    # フォールバック
    'prepare_boundary_segments',
    'closest_boundary_edge',
    'resolve_missing',

    # ファサード
    'UVPointLocator',
    'locate_and_resolve',
    'interpolate_vertex_values'
]

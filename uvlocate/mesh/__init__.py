"""
uvlocate 三角形分割データ準備

このパッケージはUV三角形分割から、検索に必要な派生データを構築する機能を提供します。

処理フロー:
1. 三角形バウンディングボックス (bounds.py)
2. 境界エッジと隣接三角形の抽出 (boundary.py)
"""

# バウンディングボックス
from .bounds import (
    TriangleBounds,
    compute_triangle_bounds
)

# 境界エッジ
from .boundary import (
    extract_boundary_edges
)

__all__ = [
    # バウンディングボックス
    'TriangleBounds',
    'compute_triangle_bounds',

    # 境界エッジ
    'extract_boundary_edges'
]

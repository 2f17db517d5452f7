#!/usr/bin/env python3
"""
境界エッジ抽出

三角形分割から、ちょうど1つの三角形にのみ属するエッジ（外周・穴の縁）と
その隣接三角形を抽出します。フォールバックの入力データを生成します。
"""

import numpy as np

from ..data_types import BoundaryEdges
from .. import get_logger

logger = get_logger(__name__)


def extract_boundary_edges(triangles: np.ndarray) -> BoundaryEdges:
    """
    境界エッジを抽出

    エッジは所属三角形内での向き (ab, bc, ca) のまま返し、
    三角形番号→三角形内エッジ番号の順に並べる。

    Args:
        triangles: 三角形インデックス (M, 3)

    Returns:
        境界エッジと隣接三角形
    """
    num_tris = len(triangles)
    if num_tris == 0:
        return BoundaryEdges(
            edges=np.zeros((0, 2), dtype=np.int64),
            edge_to_triangle=np.zeros(0, dtype=np.int64)
        )

    # 有向エッジ (3M, 2): 三角形ごとに ab, bc, ca
    directed = np.stack([
        triangles[:, [0, 1]],
        triangles[:, [1, 2]],
        triangles[:, [2, 0]],
    ], axis=1).reshape(-1, 2)
    owners = np.repeat(np.arange(num_tris, dtype=np.int64), 3)

    # 無向キーで出現回数を数える
    undirected = np.sort(directed, axis=1)
    _, inverse, counts = np.unique(undirected, axis=0, return_inverse=True, return_counts=True)
    inverse = np.asarray(inverse).reshape(-1)
    boundary_mask = counts[inverse] == 1

    nonmanifold = int(np.count_nonzero(counts > 2))
    if nonmanifold:
        logger.warning(f"Triangulation has {nonmanifold} non-manifold edges (shared by >2 triangles)")

    edges = np.ascontiguousarray(directed[boundary_mask].astype(np.int64))
    edge_to_triangle = np.ascontiguousarray(owners[boundary_mask])

    logger.debug(f"Extracted {len(edges)} boundary edges from {num_tris} triangles")

    return BoundaryEdges(edges=edges, edge_to_triangle=edge_to_triangle)

#!/usr/bin/env python3
"""
三角形分割データ準備のテスト

安定ソート、バウンディングボックス構築、境界エッジ抽出、
入力配列の正規化をテストします。
"""

import unittest
import numpy as np

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from uvlocate.mesh import TriangleBounds, compute_triangle_bounds, extract_boundary_edges
from uvlocate.locate import stable_argsort
from uvlocate.data_types import (
    BoundaryEdges, UVTriangulation, as_points_2d, as_triangle_indices, as_edge_indices
)
from mesh_factory import make_grid_mesh, make_random_mesh


class TestStableArgsort(unittest.TestCase):
    """安定ソートテスト"""

    def test_sorted_order(self):
        """昇順になることを確認"""
        keys = np.array([0.3, -1.0, 2.5, 0.0])
        order = stable_argsort(keys)
        self.assertEqual(order.tolist(), [1, 3, 0, 2])
        self.assertTrue(np.all(np.diff(keys[order]) >= 0))

    def test_ties_keep_original_order(self):
        """同値キーは元の位置順"""
        keys = [1.0, 0.5, 1.0, 0.5, 1.0]
        order = stable_argsort(keys)
        self.assertEqual(order.tolist(), [1, 3, 0, 2, 4])

    def test_permutation(self):
        """出力が順列であることを確認"""
        keys = np.random.default_rng(3).integers(0, 5, size=100).astype(np.float64)
        order = stable_argsort(keys)
        self.assertEqual(len(order), len(keys))
        self.assertEqual(sorted(order.tolist()), list(range(len(keys))))
        self.assertEqual(order.dtype, np.int64)

    def test_empty(self):
        """空入力"""
        self.assertEqual(len(stable_argsort(np.zeros(0))), 0)

    def test_rejects_2d(self):
        """2次元キーは拒否"""
        with self.assertRaises(ValueError):
            stable_argsort(np.zeros((2, 2)))


class TestTriangleBounds(unittest.TestCase):
    """バウンディングボックステスト"""

    def test_single_triangle(self):
        """単一三角形のボックス"""
        uvs = np.array([[0.2, 0.5], [1.0, -0.5], [0.4, 2.0]])
        bounds = compute_triangle_bounds(uvs, np.array([[0, 1, 2]]))

        self.assertIsInstance(bounds, TriangleBounds)
        self.assertEqual(bounds.num_triangles, 1)
        self.assertEqual(bounds.box(0), (0.2, 1.0, -0.5, 2.0))
        self.assertTrue(bounds.contains_y(0, 0.0))
        self.assertTrue(bounds.contains_y(0, 2.0))
        self.assertFalse(bounds.contains_y(0, 2.1))

    def test_grid_invariants(self):
        """xmin <= xmax, ymin <= ymax"""
        uvs, triangles = make_grid_mesh(6)
        bounds = compute_triangle_bounds(uvs, triangles)

        self.assertEqual(bounds.num_triangles, len(triangles))
        self.assertTrue(np.all(bounds.xmin <= bounds.xmax))
        self.assertTrue(np.all(bounds.ymin <= bounds.ymax))

        corners = uvs[triangles]
        np.testing.assert_allclose(bounds.xmin, corners[:, :, 0].min(axis=1))
        np.testing.assert_allclose(bounds.ymax, corners[:, :, 1].max(axis=1))

    def test_empty_triangulation(self):
        """三角形なし"""
        bounds = compute_triangle_bounds(np.zeros((0, 2)), np.zeros((0, 3), dtype=np.int64))
        self.assertEqual(bounds.num_triangles, 0)


class TestBoundaryEdges(unittest.TestCase):
    """境界エッジ抽出テスト"""

    def test_unit_square(self):
        """2三角形の正方形: 共有対角線以外の4辺"""
        triangles = np.array([[0, 1, 3], [1, 2, 3]])
        boundary = extract_boundary_edges(triangles)

        self.assertIsInstance(boundary, BoundaryEdges)
        self.assertEqual(boundary.num_edges, 4)
        self.assertEqual(boundary.edges.tolist(), [[0, 1], [3, 0], [1, 2], [2, 3]])
        self.assertEqual(boundary.edge_to_triangle.tolist(), [0, 0, 1, 1])

    def test_single_triangle(self):
        """単一三角形は3辺すべてが境界"""
        boundary = extract_boundary_edges(np.array([[0, 1, 2]]))
        self.assertEqual(boundary.edges.tolist(), [[0, 1], [1, 2], [2, 0]])
        self.assertEqual(boundary.edge_to_triangle.tolist(), [0, 0, 0])

    def test_grid_boundary_count(self):
        """n x n グリッドの境界エッジ数は 4(n-1)"""
        n = 7
        uvs, triangles = make_grid_mesh(n)
        boundary = extract_boundary_edges(triangles)
        self.assertEqual(boundary.num_edges, 4 * (n - 1))

        # 境界エッジは外周上にある
        mids = uvs[boundary.edges].mean(axis=1)
        on_border = (
            np.isclose(mids[:, 0], 0.0) | np.isclose(mids[:, 0], 1.0) |
            np.isclose(mids[:, 1], 0.0) | np.isclose(mids[:, 1], 1.0)
        )
        self.assertTrue(np.all(on_border))

    def test_edge_belongs_to_its_triangle(self):
        """隣接三角形はそのエッジの両頂点を含む"""
        _, triangles, delaunay = make_random_mesh(100, seed=1)
        boundary = extract_boundary_edges(triangles)

        for (a, b), t in zip(boundary.edges, boundary.edge_to_triangle):
            self.assertIn(a, triangles[t])
            self.assertIn(b, triangles[t])

        # Delaunay の境界 = 凸包
        self.assertEqual(boundary.num_edges, len(delaunay.convex_hull))

    def test_empty(self):
        """三角形なし"""
        boundary = extract_boundary_edges(np.zeros((0, 3), dtype=np.int64))
        self.assertEqual(boundary.num_edges, 0)

    def test_mismatched_lengths_rejected(self):
        """エッジ数と隣接三角形数の不一致"""
        with self.assertRaises(ValueError):
            BoundaryEdges(edges=np.zeros((2, 2), dtype=np.int64), edge_to_triangle=np.zeros(3))


class TestInputNormalization(unittest.TestCase):
    """入力配列の正規化テスト"""

    def test_flattened_triangles(self):
        """フラット配列を (M, 3) に変換"""
        tris = as_triangle_indices([0, 1, 3, 1, 2, 3], num_vertices=4)
        self.assertEqual(tris.shape, (2, 3))
        self.assertEqual(tris.dtype, np.int64)

    def test_invalid_triangles(self):
        """不正な三角形インデックス"""
        with self.assertRaises(ValueError):
            as_triangle_indices([0, 1, 2, 3])
        with self.assertRaises(ValueError):
            as_triangle_indices(np.zeros((2, 4), dtype=np.int64))
        with self.assertRaises(ValueError):
            as_triangle_indices([[0, 1, 5]], num_vertices=3)
        with self.assertRaises(ValueError):
            as_triangle_indices([[0.0, 1.0, 2.0]])

    def test_points(self):
        """UV座標の検証"""
        self.assertEqual(as_points_2d([]).shape, (0, 2))
        self.assertEqual(as_points_2d([[1, 2]]).dtype, np.float64)
        with self.assertRaises(ValueError):
            as_points_2d([[1.0, 2.0, 3.0]])
        with self.assertRaises(ValueError):
            as_points_2d([[np.nan, 0.0]])

    def test_edges(self):
        """境界エッジの検証"""
        self.assertEqual(as_edge_indices([]).shape, (0, 2))
        with self.assertRaises(ValueError):
            as_edge_indices([[0, 9]], num_vertices=3)

    def test_triangulation_from_arrays(self):
        """三角形分割の作成"""
        tri = UVTriangulation.from_arrays([[0, 0], [1, 0], [0, 1]], [0, 1, 2])
        self.assertEqual(tri.num_vertices, 3)
        self.assertEqual(tri.num_triangles, 1)
        a, b, c = tri.triangle_vertices(0)
        np.testing.assert_array_equal(b, [1.0, 0.0])


if __name__ == '__main__':
    unittest.main()

#!/usr/bin/env python3
"""
安定ソート

スイープの3本のカーソル（クエリ点 x / 三角形 xmin / 三角形 xmax）が
走査する順列を作成します。同値キーは元の位置順を保ちます。
"""

import numpy as np

from ..data_types import ArrayLike


def stable_argsort(keys: ArrayLike) -> np.ndarray:
    """
    キーを昇順に並べる位置の順列を取得

    Args:
        keys: ソートキー (K,)

    Returns:
        順列 (K,)。同値キーは元の位置順
    """
    arr = np.asarray(keys)
    if arr.ndim != 1:
        raise ValueError(f"keys must be 1-D, got shape {arr.shape}")
    return np.argsort(arr, kind="stable").astype(np.int64, copy=False)

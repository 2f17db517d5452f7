"""
Numba JIT configuration

全モジュールで統一されたNumba設定を提供します。
三角形内外判定と最近傍エッジ探索のカーネルはこの設定でコンパイルされます。
"""

from typing import Dict, Any

import numba
from numba import njit

from . import get_logger

logger = get_logger(__name__)


def get_numba_status() -> Dict[str, Any]:
    """Numba状態を取得"""
    return {
        'version': numba.__version__,
        'njit_function': njit,
        'jit_config': get_optimized_jit_config(),
    }


def get_optimized_jit_config() -> Dict[str, Any]:
    """
    最適化されたJIT設定を取得

    fastmath は NaN/inf の比較を壊すため無効。
    error_model="numpy" でゼロ除算は例外ではなく inf/NaN になる。

    Returns:
        dict: JIT設定辞書
    """
    return {
        'cache': False,
        'fastmath': False,
        'nogil': True,
        'error_model': 'numpy',
    }


def create_optimized_jit(**overrides):
    """
    最適化されたJITデコレータを作成

    Args:
        overrides: 既定設定を上書きするオプション

    Returns:
        decorator: JITデコレータ
    """
    config = get_optimized_jit_config()
    config.update(overrides)
    logger.debug(f"Creating njit decorator (numba {numba.__version__}): {config}")
    return njit(**config)

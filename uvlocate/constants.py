#!/usr/bin/env python3
"""
共通定数・設定値

検索・フォールバック処理で使用される定数や閾値を一元管理し、
モジュール間の循環依存を解消します。
"""

from typing import Final

# =============================================================================
# 数値精度・許容誤差
# =============================================================================

# 重心座標の内外判定に使う許容誤差（負側へのはみ出し量）
BARYCENTRIC_TOLERANCE: Final[float] = 1e-12

# この値未満の符号付き面積(x2)を持つ三角形は退化とみなす
DEGENERATE_AREA_EPSILON: Final[float] = 1e-300

# =============================================================================
# スイープ検索関連
# =============================================================================

# 未解決のクエリ点に割り当てる三角形インデックス
MISSING_TRIANGLE: Final[int] = -1

# 枯渇したカーソルの番兵値（全ての実座標より大きい）
EXHAUSTED_CURSOR_KEY: Final[float] = float("inf")

# =============================================================================
# フォールバック（最近傍境界エッジ）関連
# =============================================================================

# 最近傍境界エッジまでの許容距離（UV単位）。有効化時のみ適用
FALLBACK_TOLERANCE: Final[float] = 1.0

# 最近傍エッジが見つからない場合のエッジインデックス
NO_EDGE: Final[int] = -1

# =============================================================================
# パフォーマンス監視
# =============================================================================

# この件数以上のバッチは INFO でサマリを出力
BATCH_SUMMARY_THRESHOLD: Final[int] = 1000

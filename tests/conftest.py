#!/usr/bin/env python3
"""
pytest共通設定とフィクスチャ

テスト実行時の共通設定、パフォーマンス計測、アサーション拡張を提供します。
"""

import pytest
import logging
import sys
import os
import numpy as np
from typing import Optional
from dataclasses import dataclass

# パッケージのパス追加
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from uvlocate import setup_logging, get_logger

# =============================================================================
# テストロギング設定
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """テスト全体のロギング設定"""
    setup_logging(level="DEBUG")
    logger = get_logger("test")
    logger.info("=== テストセッション開始 ===")
    yield
    logger.info("=== テストセッション終了 ===")


@pytest.fixture
def test_logger():
    """テスト用ロガー"""
    return get_logger("test")


# =============================================================================
# パフォーマンス計測
# =============================================================================

@dataclass
class PerformanceMeasurement:
    """パフォーマンス計測結果"""
    execution_time_ms: float
    memory_usage_mb: float
    operations_per_second: Optional[float] = None
    target_met: bool = False

    def log_results(self, logger: logging.Logger, test_name: str, target_ms: float = None):
        """結果をログ出力"""
        logger.info(f"=== {test_name} パフォーマンス結果 ===")
        logger.info(f"実行時間: {self.execution_time_ms:.3f}ms")
        logger.info(f"メモリ使用量: {self.memory_usage_mb:.2f}MB")
        if self.operations_per_second:
            logger.info(f"処理速度: {self.operations_per_second:.1f} ops/sec")
        if target_ms:
            self.target_met = self.execution_time_ms <= target_ms
            status = "✓ 達成" if self.target_met else "✗ 未達成"
            logger.info(f"目標時間: {target_ms}ms {status}")


@pytest.fixture
def performance_tracker():
    """パフォーマンス計測ユーティリティ"""
    import time
    import psutil
    import gc

    class PerformanceTracker:
        def __init__(self):
            self.start_time = None
            self.start_memory = None

        def start(self):
            """計測開始"""
            gc.collect()
            self.start_time = time.perf_counter()
            self.start_memory = psutil.Process().memory_info().rss / 1024 / 1024

        def stop(self, operations_count: int = None) -> PerformanceMeasurement:
            """計測終了"""
            end_time = time.perf_counter()
            end_memory = psutil.Process().memory_info().rss / 1024 / 1024

            execution_time_ms = (end_time - self.start_time) * 1000
            memory_usage_mb = end_memory - self.start_memory

            ops_per_sec = None
            if operations_count and execution_time_ms > 0:
                ops_per_sec = operations_count / (execution_time_ms / 1000)

            return PerformanceMeasurement(
                execution_time_ms=execution_time_ms,
                memory_usage_mb=memory_usage_mb,
                operations_per_second=ops_per_sec
            )

    return PerformanceTracker()


# =============================================================================
# テストスイート選択
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """テスト収集時の自動マーカー付与"""
    for item in items:
        if "performance" in item.nodeid:
            item.add_marker(pytest.mark.performance)
            item.add_marker(pytest.mark.slow)
        elif "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# アサーション拡張
# =============================================================================

class TestAssertions:
    """拡張アサーション関数"""

    @staticmethod
    def assert_performance_target(measurement: PerformanceMeasurement, target_ms: float, operation_name: str):
        """パフォーマンス目標のアサーション"""
        assert measurement.execution_time_ms <= target_ms, (
            f"{operation_name} パフォーマンス目標未達成: "
            f"{measurement.execution_time_ms:.3f}ms > {target_ms}ms"
        )

    @staticmethod
    def assert_valid_barycentrics(barycentrics: np.ndarray, tolerance: float = 1e-9):
        """重心座標が非負かつ和が1であることのアサーション"""
        assert np.all(barycentrics >= -tolerance), f"負の重心座標: {barycentrics.min()}"
        sums = barycentrics.sum(axis=-1)
        assert np.allclose(sums, 1.0, atol=tolerance), f"重心座標の和が1でない: {sums}"


@pytest.fixture
def assert_helper():
    """アサーション拡張のヘルパー"""
    return TestAssertions()

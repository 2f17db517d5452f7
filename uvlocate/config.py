#!/usr/bin/env python3
"""
uvlocate 設定管理システム

スイープ検索とフォールバック処理で使用される設定値を統一管理し、
Magic Numberのハードコーディングを解消します。
"""

import yaml
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any
from pathlib import Path

from . import get_logger
from .constants import BARYCENTRIC_TOLERANCE, FALLBACK_TOLERANCE

logger = get_logger(__name__)


@dataclass
class LocatorConfig:
    """スイープ検索設定"""
    # 三角形内外判定の許容誤差
    edge_tolerance: float = BARYCENTRIC_TOLERANCE

    # 入力検証（形状・有限値・インデックス範囲）
    validate_input: bool = True

    # 境界エッジを初回フォールバック時に抽出するか
    lazy_boundary: bool = True


@dataclass
class FallbackConfig:
    """最近傍境界エッジ・フォールバック設定"""
    # 許容距離を適用するか（無効時は常に最近傍エッジの三角形を割り当て）
    enforce_tolerance: bool = False
    tolerance: float = FALLBACK_TOLERANCE

    @property
    def max_distance(self) -> Optional[float]:
        """resolve_missing に渡す最大距離"""
        return self.tolerance if self.enforce_tolerance else None


@dataclass
class UVLocateConfig:
    """プロジェクト全体設定"""
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)

    # ログ設定
    log_level: str = "INFO"
    log_format_style: str = "detailed"
    enable_performance_logging: bool = True


class ConfigManager:
    """設定管理クラス"""

    def __init__(self):
        self._config: Optional[UVLocateConfig] = None
        self._config_file_path: Optional[Path] = None

    def load_config(self, config_file: Optional[Path] = None) -> UVLocateConfig:
        """
        設定ファイルを読み込み

        Args:
            config_file: 設定ファイルパス（Noneの場合はデフォルト設定）

        Returns:
            読み込まれた設定
        """
        if config_file is None:
            project_root = Path(__file__).parent.parent
            default_paths = [
                project_root / "uvlocate.yaml",
                project_root / "config.yaml",
                Path.home() / ".uvlocate" / "config.yaml"
            ]

            for path in default_paths:
                if path.exists():
                    config_file = path
                    break

        if config_file and Path(config_file).exists():
            config_file = Path(config_file)
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    config_dict = yaml.safe_load(f) or {}

                self._config = self._dict_to_config(config_dict)
                self._config_file_path = config_file
                logger.info(f"Configuration loaded from {config_file}")

            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {config_file}: {e}")
                logger.info("Using default configuration")
                self._config = UVLocateConfig()
        else:
            logger.info("No config file found, using default configuration")
            self._config = UVLocateConfig()

        return self._config

    def save_config(self, config_file: Optional[Path] = None) -> bool:
        """
        設定をファイルに保存

        Args:
            config_file: 保存先ファイルパス

        Returns:
            保存成功したかどうか
        """
        if self._config is None:
            logger.error("No configuration to save")
            return False

        if config_file is None:
            config_file = self._config_file_path or Path("uvlocate.yaml")
        config_file = Path(config_file)

        try:
            config_dict = self._config_to_dict(self._config)

            config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(config_file, 'w', encoding='utf-8') as f:
                yaml.dump(config_dict, f, default_flow_style=False,
                          allow_unicode=True, indent=2)

            logger.info(f"Configuration saved to {config_file}")
            return True

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save config to {config_file}: {e}")
            return False

    def get_config(self) -> UVLocateConfig:
        """現在の設定を取得"""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def set_config(self, config: UVLocateConfig) -> None:
        """設定を差し替え"""
        self._config = config

    def _dict_to_config(self, config_dict: Any) -> UVLocateConfig:
        """辞書を設定オブジェクトに変換"""
        config = UVLocateConfig()

        if not isinstance(config_dict, dict):
            logger.warning(
                f"Config root must be a mapping, got {type(config_dict).__name__}; using defaults"
            )
            return config

        for section in ('locator', 'fallback'):
            section_dict = config_dict.get(section)
            if section_dict is None:
                continue
            if not isinstance(section_dict, dict):
                logger.warning(f"Config section '{section}' must be a mapping, ignored")
                continue
            target = getattr(config, section)
            for key, value in section_dict.items():
                if hasattr(target, key):
                    self._set_field(target, f"{section}.{key}", key, value)
                else:
                    logger.warning(f"Unknown config key ignored: {section}.{key}")

        for key in ('log_level', 'log_format_style', 'enable_performance_logging'):
            if key in config_dict:
                self._set_field(config, key, key, config_dict[key])

        return config

    def _set_field(self, target: Any, label: str, key: str, value: Any) -> None:
        """既定値の型に変換して設定（変換できない値は無視）"""
        expected = type(getattr(target, key))
        if expected is bool:
            if not isinstance(value, bool):
                logger.warning(f"Config value {label}={value!r} is not a boolean, ignored")
                return
        elif expected is float:
            if isinstance(value, bool):
                logger.warning(f"Config value {label}={value!r} is not a number, ignored")
                return
            try:
                value = float(value)
            except (TypeError, ValueError):
                logger.warning(f"Config value {label}={value!r} is not a number, ignored")
                return
        elif expected is str:
            if not isinstance(value, str):
                logger.warning(f"Config value {label}={value!r} is not a string, ignored")
                return
        setattr(target, key, value)

    def _config_to_dict(self, config: UVLocateConfig) -> Dict[str, Any]:
        """設定オブジェクトを辞書に変換"""
        return {
            'locator': {f.name: getattr(config.locator, f.name) for f in fields(config.locator)},
            'fallback': {f.name: getattr(config.fallback, f.name) for f in fields(config.fallback)},
            'log_level': config.log_level,
            'log_format_style': config.log_format_style,
            'enable_performance_logging': config.enable_performance_logging,
        }


# グローバル設定マネージャー
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """グローバル設定マネージャーを取得"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def get_config() -> UVLocateConfig:
    """現在の設定を取得"""
    return get_config_manager().get_config()

def load_config(config_file: Optional[Path] = None) -> UVLocateConfig:
    """設定を読み込み"""
    return get_config_manager().load_config(config_file)

def save_config(config_file: Optional[Path] = None) -> bool:
    """設定を保存"""
    return get_config_manager().save_config(config_file)

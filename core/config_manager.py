# core/config_manager.py
# 负责加载和重新加载 config.yml 配置

import os
from typing import Any, Dict, Optional

import yaml

from logger_config import get_logger, LOG_LEVEL_MAP

CONFIG_FILE = "config.yml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "log_level": "INFO",
    "log_dir": "logs",
    "log_max_bytes": 1024 * 1024 * 5,  # 5MB
    "log_backup_count": 5,
    "no_colorama": False,
}

# 缓存已加载的配置
_cached_config: Optional[Dict[str, Any]] = None

logger = get_logger("ConfigManager")


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """从 config.yml 加载配置，缺失的配置项使用默认值

    Args:
        path: 配置文件路径，默认为当前目录下的 config.yml

    Returns:
        配置字典；文件不存在或验证失败时返回默认配置
    """
    global _cached_config

    config = dict(DEFAULT_CONFIG)
    _load_config_file(path or CONFIG_FILE, config)

    if not _validate_config(config):
        logger.error("配置文件验证失败，使用默认配置")
        config = dict(DEFAULT_CONFIG)

    _cached_config = config
    return config


def reload_config(path: Optional[str] = None) -> Dict[str, Any]:
    """重新加载配置文件"""
    logger.info("开始重新加载配置文件")
    config = load_config(path)
    logger.info("配置文件重新加载完成并已生效")
    return config


def get_config() -> Dict[str, Any]:
    """获取缓存的配置，尚未加载时先加载"""
    if _cached_config is None:
        return load_config()
    return _cached_config


def _validate_config(config: Dict[str, Any]) -> bool:
    """验证配置是否有效"""
    level = config.get("log_level")
    if not isinstance(level, str) or level.upper() not in LOG_LEVEL_MAP:
        logger.error(f"log_level 配置项无效: {level!r}")
        return False

    log_dir = config.get("log_dir")
    if log_dir is not None and not isinstance(log_dir, str):
        logger.error(f"log_dir 配置项格式错误: {log_dir!r}")
        return False

    for key in ("log_max_bytes", "log_backup_count"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            logger.error(f"{key} 配置项必须是非负整数: {value!r}")
            return False

    if not isinstance(config.get("no_colorama"), bool):
        logger.error("no_colorama 配置项必须是布尔值")
        return False

    return True


def _load_config_file(file_path: str, config: Dict[str, Any]):
    """加载单个配置文件并合并到 config 中"""
    if not os.path.exists(file_path):
        logger.warning(f"配置文件 {file_path} 不存在，使用默认配置")
        return

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            file_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"解析配置文件 {file_path} 失败: {e}")
        return

    if file_config is None:
        return
    if not isinstance(file_config, dict):
        logger.error(f"配置文件 {file_path} 顶层必须是映射")
        return

    config.update(file_config)
    logger.debug(f"已加载配置文件 {file_path}")

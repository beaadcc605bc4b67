"""
配置模块 (config)
================
本模块是 Cubicsvr 配置系统的入口，负责：
1. 定义配置数据模型（schema.py）—— 使用 Pydantic 定义服务端 TOML 配置的结构和默认值
2. 编解码与保存（loader.py）—— TOML 文本 ↔ 配置对象，保存时写出绝对路径视图
3. 宿主环境设置（settings.py）—— 标准文档目录的位置
"""

from cubicsvr_config.config.errors import (
    ConfigError,
    ConfigParseError,
    ConfigSerializationError,
    ConfigWriteError,
    EnvironmentUnavailableError,
)
from cubicsvr_config.config.loader import load, load_file, save, to_text
from cubicsvr_config.config.schema import CubicsvrConfig, ModelConfig, PathConfiguration

__all__ = [
    "ConfigError",
    "ConfigParseError",
    "ConfigSerializationError",
    "ConfigWriteError",
    "CubicsvrConfig",
    "EnvironmentUnavailableError",
    "ModelConfig",
    "PathConfiguration",
    "load",
    "load_file",
    "save",
    "to_text",
]

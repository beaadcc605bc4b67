"""
配置编解码与保存 (config/loader.py)
=================================
本模块负责 Cubicsvr 配置在 TOML 文本与 CubicsvrConfig 对象之间的转换：
- 解码：tomllib 解析文本 → Pydantic 按别名验证 → 可选地注入路径配置
- 编码：model_dump(by_alias=True, exclude_none=True) → tomli_w 生成文本
- 保存：写出绝对路径视图（服务进程读取），返回相对路径视图（供编辑）

布局修正：
tomli_w 对只含子表的 server 段不会输出 [server] 标题，也不会输出缺省的
可选段。服务端的手写配置约定是：

    [server]
    [server.http]
    [server.grpc]
    ...
    [logging]

    [recognizer]

    [storage]

因此 save() 在编码后把 [server.grpc] 标记替换成三行标题，
并在末尾为缺失的 logging / recognizer / storage 段补上空标题，
方便手工编辑时看到所有可配置的段落。
有数据的 logging / recognizer / storage 段保留在编码器输出的位置，
不再补标题，所以文件末尾不一定同时出现这三个标题。

接口分两层：
- 严格接口 encode / parse / render：失败时抛出 ConfigError 子类
- 公开接口 to_text / load / save：失败时记录日志并返回 None
"""

import re
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from loguru import logger
from pydantic import ValidationError

from cubicsvr_config.config.errors import (
    ConfigError,
    ConfigParseError,
    ConfigSerializationError,
    ConfigWriteError,
    EnvironmentUnavailableError,
)
from cubicsvr_config.config.schema import CubicsvrConfig, PathConfiguration
from cubicsvr_config.utils.helpers import ResourceRoots, resolve_roots, write_text_atomic

CONFIG_FILENAME = "config.toml"  # 相对路径视图（可编辑、可分享）
LIVE_CONFIG_FILENAME = "cubicsvr.toml"  # 绝对路径视图（服务进程读取）

GRPC_MARKER = "[server.grpc]"
SERVER_HEADERS = "[server]\n[server.http]\n[server.grpc]"
PLACEHOLDER_SECTIONS = ("logging", "recognizer", "storage")


def get_config_path(roots: ResourceRoots) -> Path:
    """相对路径视图的默认保存位置: <资源根目录>/config.toml"""
    return roots.resource_root / CONFIG_FILENAME


def get_live_config_path(roots: ResourceRoots) -> Path:
    """绝对路径视图的默认保存位置: <资源根目录>/cubicsvr.toml"""
    return roots.resource_root / LIVE_CONFIG_FILENAME


# ==============================================================================
# 严格接口
# ==============================================================================


def encode(config: CubicsvrConfig) -> str:
    """
    把配置编码为 TOML 文本（不做布局修正）。

    path_configuration 是排除字段，不会出现在输出中；值为 None 的可选字段省略。

    异常:
        ConfigSerializationError: 存在无法编码的值
    """
    return _dumps(config.model_dump(by_alias=True, exclude_none=True))


def parse(text: str) -> CubicsvrConfig:
    """
    把 TOML 文本解码为配置对象。

    只按文件键名（别名）匹配字段：version、key_file 这类 Python 字段名会被忽略。

    异常:
        ConfigParseError: 语法错误，或缺少必填字段 / 字段类型不符
    """
    try:
        data = tomllib.loads(text)
        # 路径配置只能在构造时提供或解码后注入，文件里的同名表一律忽略
        data.pop("path_configuration", None)
        return CubicsvrConfig.model_validate(data, by_alias=True, by_name=False)
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigParseError(str(e)) from e


def apply_layout(text: str) -> str:
    """
    把编码结果修正为服务端手写配置的段落布局。

    1. 第一个 [server.grpc] 替换为 [server] / [server.http] / [server.grpc] 三行标题
    2. 文本中没有出现的 logging / recognizer / storage 段，在末尾补空标题
    """
    text = text.replace(GRPC_MARKER, SERVER_HEADERS, 1)
    missing = [name for name in PLACEHOLDER_SECTIONS if not _has_section(text, name)]
    if not missing:
        return text
    return text.rstrip("\n") + "".join(f"\n\n[{name}]" for name in missing) + "\n"


def render(config: CubicsvrConfig) -> str:
    """
    编码并应用布局修正，得到写入文件的最终文本。

    空的 server.http 表在编码前剔除，避免与布局修正插入的 [server.http] 重复定义。

    异常:
        ConfigSerializationError: 存在无法编码的值
    """
    data = config.model_dump(by_alias=True, exclude_none=True)
    if not data["server"].get("http"):
        data["server"].pop("http", None)
    return apply_layout(_dumps(data))


def _dumps(data: dict[str, Any]) -> str:
    try:
        return tomli_w.dumps(data)
    except (TypeError, ValueError) as e:
        raise ConfigSerializationError(str(e)) from e


def _has_section(text: str, name: str) -> bool:
    return re.search(rf"^\[{re.escape(name)}\]\s*$", text, re.MULTILINE) is not None


# ==============================================================================
# 公开接口
# ==============================================================================


def to_text(config: CubicsvrConfig) -> str | None:
    """获取配置的 TOML 文本（相对路径视图，编码器原始输出）。失败时返回 None。"""
    try:
        return encode(config)
    except ConfigSerializationError as e:
        logger.error(f"Failed to encode config: {e}")
        return None


def load(
    text: str,
    path_configuration: PathConfiguration | None = None,
) -> CubicsvrConfig | None:
    """
    从 TOML 文本加载配置。

    加载流程：
    1. tomllib 解析文本，Pydantic 按别名验证
    2. 若提供了 path_configuration，整体替换解码结果中的路径配置，并创建资源目录

    参数:
        text: TOML 文本
        path_configuration: 可选的路径配置覆盖

    返回:
        配置对象；文本无法解析时返回 None（不会返回部分填充的对象）
    """
    try:
        config = parse(text)
    except ConfigParseError as e:
        logger.error(f"Failed to parse config: {e}")
        return None

    if path_configuration is not None:
        config = config.with_path_configuration(path_configuration)
    logger.debug(f"Loaded config: {config!r}")
    return config


def load_file(
    path: Path,
    path_configuration: PathConfiguration | None = None,
) -> CubicsvrConfig | None:
    """读取文件并调用 load()。文件不存在或无法读取时返回 None。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to read config from {path}: {e}")
        return None
    return load(text, path_configuration)


def save_strict(config: CubicsvrConfig, path: Path) -> str:
    """
    save() 的严格版本，失败时抛出异常。

    异常:
        EnvironmentUnavailableError: 标准文档目录不可用
        ConfigSerializationError: 编码失败
        ConfigWriteError: 写入失败
    """
    roots = resolve_roots(config.path_configuration)
    if roots is None:
        raise EnvironmentUnavailableError("Standard document directory is unavailable")

    live_text = render(config.with_absolute_paths(roots))
    relative_text = render(config)
    try:
        write_text_atomic(path, live_text)
    except OSError as e:
        raise ConfigWriteError(path, e) from e
    return relative_text


def save(config: CubicsvrConfig, path: Path) -> str | None:
    """
    保存配置。

    写入 path 的是绝对路径视图（license.KeyFile、ModelConfigPath、
    FormatterConfigPath 解析到资源目录下），返回值是同一次保存的相对路径视图。
    两份文本都经过布局修正。config 本身不会被修改。

    保存流程：
    1. 根据 path_configuration 解析许可证目录和模型目录
    2. 派生绝对路径副本并编码、修正布局
    3. 对原始（相对路径）配置做同样的编码和修正
    4. 通过临时文件 + 原子替换写出绝对路径文本

    对同一个 path 的并发 save 不做互斥，需要时由调用方加锁。

    参数:
        config: 要保存的配置
        path: 目标文件路径

    返回:
        相对路径视图的文本；任何一步失败时返回 None
    """
    try:
        return save_strict(config, path)
    except ConfigError as e:
        logger.error(f"Failed to save config to {path}: {e}")
        return None

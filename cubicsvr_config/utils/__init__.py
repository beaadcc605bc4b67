"""
工具函数模块 - 资源目录解析与文件系统辅助函数。

本模块包含：
- ResourceRoots：解析后的资源根目录 / 许可证目录 / 模型目录
- resolve_roots：根据路径配置计算三个资源目录
- ensure_directories：尽力创建资源目录
- to_absolute：相对路径 → 绝对路径
"""

from cubicsvr_config.utils.helpers import (
    ResourceRoots,
    ensure_dir,
    ensure_directories,
    get_documents_path,
    resolve_roots,
    to_absolute,
    write_text_atomic,
)

__all__ = [
    "ResourceRoots",
    "ensure_dir",
    "ensure_directories",
    "get_documents_path",
    "resolve_roots",
    "to_absolute",
    "write_text_atomic",
]

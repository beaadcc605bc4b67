"""
工具函数集合 - 资源目录的路径解析与文件系统辅助函数。

Cubicsvr 的资源文件按如下结构组织（<文档目录> 由宿主环境决定）：

    <文档目录>/
    └── Cubicsvr/            资源根目录（resource_root）
        ├── license/         许可证目录（license_subdir）
        └── models/          模型目录（models_subdir）

函数分类：
- 路径解析：get_documents_path, resolve_roots, to_absolute
- 目录管理：ensure_dir, ensure_directories
- 文件写入：write_text_atomic

除 ensure_* 和 write_text_atomic 外，这里的函数都不访问文件系统。
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Callable, Iterable

from loguru import logger

if TYPE_CHECKING:
    from cubicsvr_config.config.schema import PathConfiguration


@dataclass(frozen=True)
class ResourceRoots:
    """
    解析后的三个资源目录（均为绝对路径）。

    属性:
        resource_root: 资源根目录，<文档目录>/<resource_root>
        license_dir: 许可证目录，<资源根目录>/<license_subdir>
        models_dir: 模型目录，<资源根目录>/<models_subdir>
    """
    resource_root: Path
    license_dir: Path
    models_dir: Path

    @property
    def directories(self) -> tuple[Path, Path, Path]:
        """按创建顺序返回三个目录。"""
        return (self.resource_root, self.license_dir, self.models_dir)


def ensure_dir(path: Path) -> Path:
    """
    确保目录存在，不存在则递归创建。

    参数:
        path: 目标目录路径

    返回:
        创建后的目录路径（原样返回）
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_documents_path() -> Path | None:
    """获取宿主环境的标准文档目录。无法确定时返回 None。"""
    from cubicsvr_config.config.settings import HostSettings
    return HostSettings().resolve_documents_dir()


def resolve_roots(path_configuration: "PathConfiguration") -> ResourceRoots | None:
    """
    根据路径配置计算资源根目录、许可证目录和模型目录。

    参数:
        path_configuration: 路径配置（三个相对目录名）

    返回:
        ResourceRoots；标准文档目录不可用时返回 None
    """
    documents = get_documents_path()
    if documents is None:
        logger.error("Standard document directory is unavailable")
        return None

    resource_root = documents / path_configuration.resource_root
    return ResourceRoots(
        resource_root=resource_root,
        license_dir=resource_root / path_configuration.license_subdir,
        models_dir=resource_root / path_configuration.models_subdir,
    )


def _log_directory_error(path: Path, error: OSError) -> None:
    logger.warning(f"Failed to create directory {path}: {error}")


def ensure_directories(
    dirs: Iterable[Path],
    on_error: Callable[[Path, OSError], None] | None = None,
) -> list[Path]:
    """
    尽力创建一组目录（含所有缺失的上级目录）。

    某个目录创建失败不会中断其余目录的创建：失败信息交给 on_error，
    默认写入 warning 日志。

    参数:
        dirs: 需要存在的目录
        on_error: 失败回调，接收 (目录, 异常)

    返回:
        创建失败的目录列表（全部成功时为空列表）
    """
    report = on_error or _log_directory_error
    failed: list[Path] = []
    for path in dirs:
        if path.is_dir():
            continue
        try:
            ensure_dir(path)
        except OSError as e:
            report(path, e)
            failed.append(path)
    return failed


def to_absolute(root: Path, relative: str) -> str:
    """
    把相对路径拼接到根目录下。纯字符串运算，不要求路径存在。

    relative 即使以根目录开头（如 "/etc/key.lic"）也会嵌套在 root 之下，
    relative 为空字符串时返回 root。

    参数:
        root: 根目录
        relative: 相对于根目录的路径

    返回:
        拼接后的路径字符串
    """
    path = PurePath(relative)
    if path.is_absolute():
        path = path.relative_to(path.anchor)
    return str(root / path)


def write_text_atomic(path: Path, text: str) -> None:
    """
    以 UTF-8 整体替换文件内容。

    先写入同目录下的临时文件，再用 os.replace 原子替换目标文件，
    中途失败时旧文件保持不变。父目录不存在时自动创建。

    异常:
        OSError: 创建目录、写入或替换失败
    """
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

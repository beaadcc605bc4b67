"""
宿主环境配置 (config/settings.py)
=================================
描述宿主应用的"标准文档目录"位置。资源根目录（Cubicsvr/）就建在这个目录下。

- 默认位置: ~/Documents
- 环境变量覆盖: CUBICSVR_DOCUMENTS_DIR=/srv/cubicsvr-docs

对于 Java 开发者：
- 类似 Spring 的 @ConfigurationProperties，字段值可以被环境变量覆盖
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class HostSettings(BaseSettings):
    """宿主应用的环境设置。只在需要解析文档目录时临时构造，不做全局缓存。"""

    documents_dir: Path | None = None  # 显式指定的文档目录（为空时使用 ~/Documents）

    model_config = SettingsConfigDict(
        env_prefix="CUBICSVR_",  # 环境变量前缀
    )

    def resolve_documents_dir(self) -> Path | None:
        """
        返回标准文档目录。

        返回:
            文档目录路径；无法确定用户主目录时返回 None
        """
        if self.documents_dir is not None:
            return self.documents_dir.expanduser()
        try:
            return Path.home() / "Documents"
        except RuntimeError:
            # Path.home() 在没有 HOME 且查不到用户记录时抛出 RuntimeError
            return None

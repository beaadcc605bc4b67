"""
配置数据模型定义 (config/schema.py)
=================================
本模块使用 Pydantic 定义 Cubicsvr 服务端配置文件的完整结构。
字段别名（alias）就是 TOML 文件中的键名，大小写与服务端约定保持一致，
例如 Version、server.grpc.Address、license.KeyFile、models[].ModelConfigPath。

整体配置结构（树形）：
CubicsvrConfig (根配置)
├── Version       - 配置格式版本号（仅作标记，不做迁移）
├── server        - 服务监听配置
│   ├── grpc      - gRPC 端点（必有，字段均可选）
│   └── http      - HTTP 端点（可选：api / ops 两个子块）
├── logging       - 日志开关（可选）
├── license       - 许可证（KeyFile 相对于许可证目录）
├── recognizer    - 识别器限制（可选）
├── storage       - 存储配置（可选）
└── models        - 模型列表（有序，顺序决定运行时的识别器优先级）

路径的两种视图：
- 相对视图：内存中的模型始终保存相对路径（license.KeyFile、ModelConfigPath、
  FormatterConfigPath），便于编辑和分享
- 绝对视图：保存时由 with_absolute_paths() 临时派生，供服务进程直接使用

对于 Java 开发者：
- Pydantic 的 BaseModel 类似于 Java 的 POJO/Record，但自带字段验证和默认值
- Field(alias=...) 类似于 Jackson 的 @JsonProperty
"""

from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cubicsvr_config.utils.helpers import ResourceRoots, ensure_directories, resolve_roots, to_absolute


class PathConfiguration(BaseModel):
    """
    资源目录的相对路径配置（不可变值对象）。

    不会写入 TOML 文件：由宿主应用在创建配置时提供，或在解码后注入。
    """
    resource_root: str = "Cubicsvr"  # 文档目录下的资源根目录名
    license_subdir: str = "license"  # 资源根目录下的许可证子目录
    models_subdir: str = "models"  # 资源根目录下的模型子目录

    model_config = ConfigDict(frozen=True)

    @field_validator("resource_root", "license_subdir", "models_subdir")
    @classmethod
    def _relative_segment(cls, value: str) -> str:
        if not value:
            raise ValueError("path segment must not be empty")
        if PurePath(value).is_absolute():
            raise ValueError(f"path segment must be relative: {value}")
        return value


class _Section(BaseModel):
    """TOML 段落的公共基类：既能用别名（文件键名）也能用字段名构造。"""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


# ==============================================================================
# server 段
# ==============================================================================


class GrpcConfig(_Section):
    """gRPC 端点配置。"""
    address: str | None = Field(None, alias="Address")  # 监听地址，如 "localhost:2727"
    cert_file: str | None = Field(None, alias="CertFile")  # TLS 证书
    key_file: str | None = Field(None, alias="KeyFile")  # TLS 私钥


class HttpApiConfig(_Section):
    """HTTP API 端点配置。"""
    address: str = Field(alias="Address")
    cert_file: str | None = Field(None, alias="CertFile")
    key_file: str | None = Field(None, alias="KeyFile")
    enable_web_demo: bool | None = Field(None, alias="EnableWebDemo")  # 是否启用网页演示
    web_root_path: str | None = Field(None, alias="WebRootPath")


class HttpOpsConfig(_Section):
    """HTTP 运维端点配置（健康检查、指标等）。"""
    address: str = Field(alias="Address")
    cert_file: str | None = Field(None, alias="CertFile")
    key_file: str | None = Field(None, alias="KeyFile")


class HttpConfig(_Section):
    """HTTP 端点配置，api 与 ops 均可选。"""
    api: HttpApiConfig | None = None
    ops: HttpOpsConfig | None = None


class ServerConfig(_Section):
    """服务监听配置。grpc 始终存在，http 可选。"""
    grpc: GrpcConfig = Field(default_factory=GrpcConfig)
    http: HttpConfig | None = None


# ==============================================================================
# 其他顶层段
# ==============================================================================


class LoggingConfig(_Section):
    """服务端日志开关。"""
    disable_info: bool | None = Field(None, alias="DisableInfo")
    enable_debug: bool | None = Field(None, alias="EnableDebug")
    enable_trace: bool | None = Field(None, alias="EnableTrace")


class LicenseConfig(_Section):
    """许可证配置。key_file 是相对于许可证目录的文件名。"""
    key_file: str = Field("", alias="KeyFile")
    usage_log: str | None = Field(None, alias="UsageLog")


class RecognizerConfig(_Section):
    """识别器资源限制。时长单位为纳秒。"""
    max_ttl: int | None = Field(None, alias="MaxTTL")  # 单个识别流的最长存活时间
    max_idle_timeout: int | None = Field(None, alias="MaxIdleTimeout")  # 最长空闲时间
    max_audio_bytes: int | None = Field(None, alias="MaxAudioBytes", ge=0)  # 单流音频字节上限


class StorageConfig(_Section):
    """识别结果存储配置。"""
    type: str | None = Field(None, alias="Type")
    base_path: str | None = Field(None, alias="BasePath")


class ConfidenceConfig(_Section):
    """置信度模型路径。按原样写入文件，保存时不做路径解析。"""
    model_path: str = Field(alias="ModelPath")
    lm_path: str = Field(alias="LMPath")


class ModelConfig(_Section):
    """
    单个识别模型。

    model_config_path 和 formatter_config_path 是相对于模型目录的路径，
    保存时会被解析为绝对路径；confidence 中的路径保持原样。
    """
    id: str = Field(alias="ID")  # 模型标识（约定唯一，但不强制）
    name: str = Field(alias="Name")  # 展示名称
    model_config_path: str = Field(alias="ModelConfigPath")
    formatter_config_path: str | None = Field(None, alias="FormatterConfigPath")
    confidence: ConfidenceConfig | None = None


# ==============================================================================
# 根配置类
# ==============================================================================


class CubicsvrConfig(_Section):
    """
    Cubicsvr 根配置类。

    构造函数不访问文件系统。需要同时准备资源目录时使用：
    - CubicsvrConfig.create(path_configuration)：新建配置并创建目录
    - config.with_path_configuration(path_configuration)：切换路径配置并创建目录

    本类不做并发控制；多线程共享同一个实例时由调用方加锁。
    """
    path_configuration: PathConfiguration = Field(default_factory=PathConfiguration, exclude=True)

    version: int = Field(5, alias="Version")
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig | None = None
    license: LicenseConfig = Field(default_factory=LicenseConfig)
    recognizer: RecognizerConfig | None = None
    storage: StorageConfig | None = None
    models: list[ModelConfig] = Field(default_factory=list)

    @classmethod
    def create(cls, path_configuration: PathConfiguration | None = None) -> "CubicsvrConfig":
        """新建一份默认配置（空模型列表），并创建对应的资源目录。"""
        config = cls(path_configuration=path_configuration or PathConfiguration())
        config.provision_directories()
        return config

    def provision_directories(self) -> ResourceRoots | None:
        """
        解析当前路径配置对应的三个资源目录，并尽力创建它们。

        返回:
            解析出的 ResourceRoots；标准文档目录不可用时返回 None
        """
        roots = resolve_roots(self.path_configuration)
        if roots is None:
            return None
        ensure_directories(roots.directories)
        return roots

    def with_path_configuration(self, path_configuration: PathConfiguration) -> "CubicsvrConfig":
        """
        返回一份使用新路径配置的副本，并创建新配置对应的资源目录。

        整体替换，不做逐字段合并；原对象不变。
        """
        config = self.model_copy(update={"path_configuration": path_configuration}, deep=True)
        config.provision_directories()
        return config

    def with_absolute_paths(self, roots: ResourceRoots) -> "CubicsvrConfig":
        """
        派生绝对路径视图（深拷贝，原对象保持相对路径）。

        改写的字段：
        - license.key_file → <许可证目录>/<key_file>
        - models[].model_config_path → <模型目录>/<路径>
        - models[].formatter_config_path → <模型目录>/<路径>（存在时）
        """
        result = self.model_copy(deep=True)
        result.license.key_file = to_absolute(roots.license_dir, result.license.key_file)
        for model in result.models:
            model.model_config_path = to_absolute(roots.models_dir, model.model_config_path)
            if model.formatter_config_path is not None:
                model.formatter_config_path = to_absolute(roots.models_dir, model.formatter_config_path)
        return result

    def add_model(self, model_id: str, name: str, path: str) -> ModelConfig:
        """
        在模型列表末尾追加一个模型（不检查 ID 是否重复）。

        参数:
            model_id: 模型 ID
            name: 展示名称
            path: 模型配置文件路径（相对于模型目录）

        返回:
            新追加的 ModelConfig
        """
        model = ModelConfig(id=model_id, name=name, model_config_path=path)
        self.models.append(model)
        return model

    def remove_model(self, model_id: str) -> None:
        """删除所有 ID 匹配的模型。没有匹配时什么也不做。"""
        self.models[:] = [m for m in self.models if m.id != model_id]

    def get_model(self, model_id: str) -> ModelConfig | None:
        """按 ID 查找第一个匹配的模型。"""
        return next((m for m in self.models if m.id == model_id), None)

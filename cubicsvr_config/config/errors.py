"""
配置相关异常定义 (config/errors.py)

严格接口（encode / parse / render）直接抛出这些异常；
公开操作（to_text / load / save）在边界处捕获、记录日志并返回 None。
"""


class ConfigError(Exception):
    """所有配置异常的基类。"""


class EnvironmentUnavailableError(ConfigError):
    """无法确定标准文档目录，任何依赖路径的操作都无法继续。"""


class ConfigParseError(ConfigError):
    """配置文本格式错误，或缺少必填字段。"""


class ConfigSerializationError(ConfigError):
    """配置模型无法编码为 TOML。"""


class ConfigWriteError(ConfigError):
    """写入配置文件失败。"""

    def __init__(self, path, cause: OSError):
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause

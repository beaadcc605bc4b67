"""
cubicsvr_config - Cubicsvr 语音识别服务的配置模型

模块概述：
    本文件是 cubicsvr_config 包的入口文件（__init__.py），定义了包的元信息。
    Cubicsvr 服务端读取一个 TOML 配置文件，本包负责该文件的数据模型、
    读写以及路径解析。

    核心功能包括：
    - 类型安全的配置模型（server / logging / license / recognizer / storage / models）
    - TOML 文本的编码与解码，并修正输出文件的段落布局
    - 相对路径视图（便于编辑和分享）与绝对路径视图（供服务进程运行时使用）
    - 资源目录（license、models）的自动创建
"""

# 版本号，遵循语义化版本规范（主版本.次版本.修订号）
__version__ = "0.1.0"

# 项目 logo 表情符号，用于 CLI 输出等场景的品牌标识
__logo__ = "🎙"

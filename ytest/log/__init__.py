"""日志模块

提供测试事务生命周期的日志配置：
- 日志记录器获取（自动推断模块名）
- 控制台 / 文件输出配置
- 微秒精度时间戳

使用示例:
    from ytest.log import setup_logger, get_logger

    # 打开事务生命周期的调试日志
    setup_logger("ytest.transaction", level="DEBUG")

    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    LoggingConfigProtocol,
    DEFAULT_LOG_FORMAT,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "LoggingConfigProtocol",
    "DEFAULT_LOG_FORMAT",
    "logger",
    "get_logger",
]

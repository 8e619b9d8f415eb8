"""
日志工具

ytest 所有模块通过 get_logger 获取日志器，日志器统一挂在 "ytest" 命名空间下。
默认不添加任何处理器，输出交给 pytest 的日志捕获；需要单独落盘时调用 setup_logger。
"""

import inspect
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Protocol, runtime_checkable


ROOT_LOGGER_NAME = "ytest"

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d) %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@runtime_checkable
class LoggingConfigProtocol(Protocol):
    """setup_root_logger 可接收的日志配置对象（LoggingSettings 满足该协议）"""
    level: str
    file_path: str
    enable_console: bool


class MicrosecondFormatter(logging.Formatter):
    """时间戳精确到微秒的格式化器"""

    def formatTime(self, record, datefmt=None):
        moment = datetime.fromtimestamp(record.created)
        return f"{moment.strftime(datefmt or DEFAULT_DATE_FORMAT)}.{moment.microsecond:06d}"


def create_formatter(log_format: Optional[str] = None, use_microseconds: bool = True) -> logging.Formatter:
    fmt = log_format or DEFAULT_LOG_FORMAT
    formatter_class = MicrosecondFormatter if use_microseconds else logging.Formatter
    return formatter_class(fmt=fmt, datefmt=DEFAULT_DATE_FORMAT)


def _level_of(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _build_handlers(console: bool, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def setup_logger(
    name: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    log_format: Optional[str] = None,
    use_microseconds: bool = True,
    propagate: bool = True,
) -> logging.Logger:
    """配置日志器的级别和处理器

    重复调用会替换之前添加的处理器，不会重复输出。

    Args:
        name: 日志器名称，None 表示根日志器
        level: 日志级别名称，无法识别时按 INFO 处理
        log_file: 日志文件路径，目录不存在时自动创建
        console: 是否输出到 stderr
        log_format: 日志格式，默认 DEFAULT_LOG_FORMAT
        use_microseconds: 时间戳是否带微秒
        propagate: 是否继续传给父日志器

    使用示例:
        # 查看事务开启、回滚决策等调试日志
        setup_logger("ytest.transaction", level="DEBUG", log_file="logs/test_tx.log")
    """
    target = logging.getLogger(name)
    target.setLevel(_level_of(level))
    target.propagate = propagate

    for handler in list(target.handlers):
        target.removeHandler(handler)

    formatter = create_formatter(log_format, use_microseconds)
    for handler in _build_handlers(console, log_file):
        handler.setFormatter(formatter)
        target.addHandler(handler)
    return target


def setup_root_logger(
    config: Any = None,
    config_path: Optional[str] = None,
    base_dir: Optional[str] = None,
    level: str = "INFO",
) -> logging.Logger:
    """按日志配置设置根日志器

    config 与 config_path 二选一；config_path 指向的 YAML 文件只读取其中的 logging 段。
    都不提供时只按 level 输出到控制台。
    """
    if config is None and config_path is not None:
        from ..config import ConfigLoader, LoggingSettings

        section = ConfigLoader.load(config_path, base_dir=base_dir).get("logging") or {}
        config = LoggingSettings(**section)

    if config is None:
        return setup_logger(level=level, propagate=False)

    return setup_logger(
        level=config.level,
        log_file=config.file_path or None,
        console=config.enable_console,
        propagate=False,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """获取日志器

    - 不传参数：使用调用方模块的 __name__
    - 不带点号的简写（如 "transaction"）：补全为 "ytest.transaction"
    - 其余名称原样使用，如 "ytest.transaction"、"sqlalchemy.engine"
    """
    if name is None:
        caller = inspect.currentframe().f_back
        name = caller.f_globals.get("__name__", ROOT_LOGGER_NAME) if caller else ROOT_LOGGER_NAME
    elif name != ROOT_LOGGER_NAME and "." not in name:
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


logger = logging.getLogger(ROOT_LOGGER_NAME)

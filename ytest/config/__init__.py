"""配置模块

提供配置管理功能：
- TransactionSettings: 测试事务默认配置（默认回滚、默认事务管理器、严格模式）
- LoggingSettings: 日志配置
- AppSettings: 聚合配置，支持 YAML + 环境变量
- ConfigLoader: YAML 配置加载器

快速开始:
    from ytest.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/ytest.yaml", AppSettings)

配置优先级: 环境变量 > YAML 文件 > 默认值
"""

from .settings import (
    AppSettings,
    TransactionSettings,
    LoggingSettings,
    DEFAULT_ROLLBACK,
    DEFAULT_TRANSACTION_MANAGER_NAME,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "AppSettings",
    "TransactionSettings",
    "LoggingSettings",
    "DEFAULT_ROLLBACK",
    "DEFAULT_TRANSACTION_MANAGER_NAME",

    "ConfigLoader",
    "load_yaml_config",
]

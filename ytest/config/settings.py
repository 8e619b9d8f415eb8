"""
配置模块
提供测试事务的默认配置，业务项目可以继承并覆盖
"""

from pydantic import Field
from pydantic_settings import BaseSettings


# 未声明 @transaction_configuration 时使用的默认值
# 装饰器默认参数与 TransactionSettings 默认值都引用这两个常量
DEFAULT_TRANSACTION_MANAGER_NAME = ""
DEFAULT_ROLLBACK = True


class TransactionSettings(BaseSettings):
    """测试事务配置

    使用示例:
        from ytest.config import TransactionSettings

        tx_config = TransactionSettings(
            default_rollback=True,
            transaction_manager="primary_db",
            strict_manager_lookup=True,   # 声明了事务但找不到管理器时直接报错
        )

    配置说明:
        - default_rollback: 测试类没有声明 @transaction_configuration 时的默认回滚策略
        - transaction_manager: 测试类没有声明时使用的事务管理器名称，空字符串表示使用唯一/主管理器
        - strict_manager_lookup: 严格模式。关闭时（默认）找不到事务管理器会静默跳过事务；
                                 开启后抛出 TransactionConfigurationError
    """
    default_rollback: bool = Field(default=DEFAULT_ROLLBACK, description="默认是否回滚测试事务")
    transaction_manager: str = Field(
        default=DEFAULT_TRANSACTION_MANAGER_NAME,
        description="默认事务管理器名称，空表示唯一或主管理器"
    )
    strict_manager_lookup: bool = Field(
        default=False,
        description="声明了事务但找不到事务管理器时是否报错"
    )

    class Config:
        env_prefix = "YTEST_TX_"


class LoggingSettings(BaseSettings):
    """日志配置

    使用示例:
        from ytest.config import LoggingSettings

        log_config = LoggingSettings(level="DEBUG", file_path="logs/test_tx.log")
    """
    level: str = Field(default="INFO", description="日志级别")
    file_path: str = Field(default="", description="日志文件路径，空表示不写文件")
    enable_console: bool = Field(default=True, description="是否启用控制台输出")

    class Config:
        env_prefix = "YTEST_LOG_"


class AppSettings(BaseSettings):
    """应用基础配置

    将各子配置类聚合为嵌套结构。

    配置优先级（从高到低）:
        环境变量 > YAML 配置文件 > 代码中的默认值

    内置子配置及环境变量前缀:
        - transaction: TransactionSettings (YTEST_TX_)
        - logging:     LoggingSettings     (YTEST_LOG_)

    使用示例:
        from ytest.config import AppSettings, load_yaml_config

        settings = load_yaml_config("config/ytest.yaml", AppSettings)

    YAML 配置示例 (config/ytest.yaml):
        transaction:
          default_rollback: true
          strict_manager_lookup: false
        logging:
          level: "DEBUG"
    """
    transaction: TransactionSettings = Field(default_factory=TransactionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

"""
ytest - 测试事务基础类库

为测试方法提供托管的数据库事务：测试前开启、测试后回滚（或提交），
并在事务边界前后执行测试类上声明的钩子方法。
"""

__version__ = "0.1.0"
__author__ = "yafo-ai"
__description__ = "测试方法的托管事务：自动回滚、事务钩子、事务管理器查找"

# 导出事务模块
from .transaction import (
    # 装饰器
    transactional,
    rollback,
    commit,
    transaction_configuration,
    before_transaction,
    after_transaction,
    # 传播行为与属性
    TransactionPropagation,
    TransactionAttribute,
    # 事务管理器
    PlatformTransactionManager,
    SessionTransactionManager,
    TransactionManagerRegistry,
    transaction_manager_registry,
    # 生命周期
    TestContext,
    TransactionLifecycleController,
    TestTransaction,
    get_current_transaction,
    # 异常
    TransactionError,
    IllegalTransactionStateError,
    TransactionManagerLookupError,
    NoSuchTransactionManagerError,
    NoUniqueTransactionManagerError,
    TransactionConfigurationError,
    HookDefinitionError,
)

# 导出配置
from .config import (
    AppSettings,
    TransactionSettings,
    LoggingSettings,
    load_yaml_config,
)

# 导出日志
from .log import (
    setup_logger,
    get_logger,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",

    # Transaction - 装饰器
    "transactional",
    "rollback",
    "commit",
    "transaction_configuration",
    "before_transaction",
    "after_transaction",
    # Transaction - 属性
    "TransactionPropagation",
    "TransactionAttribute",
    # Transaction - 事务管理器
    "PlatformTransactionManager",
    "SessionTransactionManager",
    "TransactionManagerRegistry",
    "transaction_manager_registry",
    # Transaction - 生命周期
    "TestContext",
    "TransactionLifecycleController",
    "TestTransaction",
    "get_current_transaction",
    # Transaction - 异常
    "TransactionError",
    "IllegalTransactionStateError",
    "TransactionManagerLookupError",
    "NoSuchTransactionManagerError",
    "NoUniqueTransactionManagerError",
    "TransactionConfigurationError",
    "HookDefinitionError",

    # Config
    "AppSettings",
    "TransactionSettings",
    "LoggingSettings",
    "load_yaml_config",

    # Log
    "setup_logger",
    "get_logger",
]

"""测试事务模块

为单个测试方法包裹一个数据库事务，测试结束后回滚（或按配置提交），
并在事务边界前后执行测试类上声明的钩子方法：
- 事务声明（@transactional，方法覆盖类，类声明可继承）
- 回滚策略（@transaction_configuration 默认值 + 方法级 @rollback / @commit 覆盖）
- 事务钩子（@before_transaction 遇错即停，@after_transaction 全部执行）
- 每个测试线程同一时间只有一个测试事务

使用示例:
    from ytest.transaction import (
        transactional, before_transaction, after_transaction,
        SessionTransactionManager, transaction_manager_registry,
    )

    transaction_manager_registry.register(
        "transaction_manager",
        SessionTransactionManager(sessionmaker(bind=engine)),
    )

    @transactional
    class TestUserRepository:

        @before_transaction
        def check_empty(self):
            assert count_users() == 0

        def test_create(self):
            create_user("tom")     # 结束后自动回滚

        @after_transaction
        def check_rolled_back(self):
            assert count_users() == 0
"""

from .state import TransactionState
from .exceptions import (
    TransactionError,
    IllegalTransactionStateError,
    TransactionManagerLookupError,
    NoSuchTransactionManagerError,
    NoUniqueTransactionManagerError,
    TransactionConfigurationError,
    HookDefinitionError,
)
from .propagation import TransactionPropagation
from .attribute import (
    TransactionAttribute,
    TransactionAttributeResolver,
)
from .configuration import (
    ConfigurationAttributes,
    ConfigurationResolver,
)
from .rollback import RollbackPolicyResolver
from .hooks import (
    HookPhase,
    HookMethod,
    HookRunner,
)
from .metadata import (
    transactional,
    rollback,
    commit,
    transaction_configuration,
    before_transaction,
    after_transaction,
    TransactionMetadataSource,
    AnnotationMetadataResolver,
    annotation_metadata,
)
from .manager import (
    PlatformTransactionManager,
    TransactionStatus,
    SessionTransactionManager,
)
from .lookup import (
    TransactionManagerContainer,
    TransactionManagerRegistry,
    TransactionManagerLookup,
    transaction_manager_registry,
    DEFAULT_TRANSACTION_MANAGER_BEAN_NAME,
)
from .context import (
    TransactionContext,
    TransactionContextHolder,
    transaction_context_holder,
    get_current_transaction,
)
from .execution import TestContext
from .lifecycle import TransactionLifecycleController
from .facade import TestTransaction

__all__ = [
    # 状态
    "TransactionState",

    # 异常
    "TransactionError",
    "IllegalTransactionStateError",
    "TransactionManagerLookupError",
    "NoSuchTransactionManagerError",
    "NoUniqueTransactionManagerError",
    "TransactionConfigurationError",
    "HookDefinitionError",

    # 事务属性与配置
    "TransactionPropagation",
    "TransactionAttribute",
    "TransactionAttributeResolver",
    "ConfigurationAttributes",
    "ConfigurationResolver",
    "RollbackPolicyResolver",

    # 钩子
    "HookPhase",
    "HookMethod",
    "HookRunner",

    # 装饰器与元数据
    "transactional",
    "rollback",
    "commit",
    "transaction_configuration",
    "before_transaction",
    "after_transaction",
    "TransactionMetadataSource",
    "AnnotationMetadataResolver",
    "annotation_metadata",

    # 事务管理器
    "PlatformTransactionManager",
    "TransactionStatus",
    "SessionTransactionManager",
    "TransactionManagerContainer",
    "TransactionManagerRegistry",
    "TransactionManagerLookup",
    "transaction_manager_registry",
    "DEFAULT_TRANSACTION_MANAGER_BEAN_NAME",

    # 上下文
    "TransactionContext",
    "TransactionContextHolder",
    "transaction_context_holder",
    "get_current_transaction",
    "TestContext",

    # 生命周期
    "TransactionLifecycleController",
    "TestTransaction",
]

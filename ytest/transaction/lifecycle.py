"""测试事务生命周期控制器

在每个测试方法前后被调用：
- before_test: 判断是否需要事务 → 查找事务管理器 → before 钩子 → 开启事务并发布到当前线程
- after_test: 取出并清除当前线程的事务上下文 → 结束事务 → after 钩子（总会执行）

使用示例:
    controller = TransactionLifecycleController()
    test_context = TestContext(TestOrders, TestOrders.test_create, instance)

    controller.before_test(test_context)
    try:
        instance.test_create()
    finally:
        controller.after_test(test_context)
"""

from __future__ import annotations

from typing import Any, Optional

from ytest.config import TransactionSettings
from ytest.log import get_logger

from .attribute import TransactionAttributeResolver
from .configuration import ConfigurationAttributes, ConfigurationResolver
from .context import TransactionContext, TransactionContextHolder, transaction_context_holder
from .exceptions import IllegalTransactionStateError, TransactionConfigurationError
from .execution import TestContext
from .hooks import HookRunner
from .lookup import TransactionManagerLookup
from .metadata import TransactionMetadataSource, annotation_metadata
from .propagation import TransactionPropagation
from .rollback import RollbackPolicyResolver

logger = get_logger("ytest.transaction")


class TransactionLifecycleController:
    """测试事务生命周期控制器

    一个控制器实例服务于一个测试类的运行（配置按测试类缓存在实例中）。
    当前事务上下文保存在注入的持有器中，按线程隔离。

    Args:
        metadata: 元数据解析器，默认读取装饰器声明
        settings: 事务配置，未声明 @transaction_configuration 时使用其默认值
        holder: 当前事务上下文持有器，默认使用全局持有器
        manager_lookup: 事务管理器查找
        hook_runner: 钩子执行器
    """

    def __init__(
        self,
        metadata: TransactionMetadataSource = None,
        settings: TransactionSettings = None,
        holder: TransactionContextHolder = None,
        manager_lookup: TransactionManagerLookup = None,
        hook_runner: HookRunner = None
    ):
        if metadata is None:
            metadata = annotation_metadata
        self._metadata = metadata
        self._settings = settings if settings is not None else TransactionSettings()
        self._holder = holder if holder is not None else transaction_context_holder

        self.attribute_resolver = TransactionAttributeResolver(metadata)
        self.configuration_resolver = ConfigurationResolver(metadata, self._settings)
        self.rollback_resolver = RollbackPolicyResolver()
        self.manager_lookup = manager_lookup if manager_lookup is not None else TransactionManagerLookup()
        self.hook_runner = hook_runner if hook_runner is not None else HookRunner(metadata)

    @property
    def holder(self) -> TransactionContextHolder:
        return self._holder

    @property
    def settings(self) -> TransactionSettings:
        return self._settings

    # ==================== 生命周期 ====================

    def before_test(self, test_context: TestContext) -> None:
        """测试方法执行前调用

        Raises:
            IllegalTransactionStateError: 当前线程上一个测试事务尚未结束
            TransactionManagerLookupError: 显式指定的限定符无法解析
            TransactionConfigurationError: 严格模式下声明了事务但没有事务管理器
            Exception: before 钩子抛出的原始异常
        """
        self._require_test_method(test_context)

        if self._holder.take_current() is not None:
            raise IllegalTransactionStateError(
                "无法开启新的测试事务：当前线程上一个测试事务尚未结束"
            )

        attribute = self.attribute_resolver.resolve(test_context.test_method, test_context.test_class)
        if attribute is None:
            logger.debug(f"测试 {test_context} 没有声明事务")
            return

        logger.debug(f"测试 {test_context} 声明了事务: {attribute}")
        if attribute.propagation == TransactionPropagation.NOT_SUPPORTED:
            return

        manager = self.get_transaction_manager(test_context, attribute.qualifier)
        if manager is None:
            if self._settings.strict_manager_lookup:
                raise TransactionConfigurationError(
                    f"测试 {test_context} 声明了事务，但没有可用的事务管理器"
                )
            logger.warning(f"测试 {test_context} 声明了事务，但没有可用的事务管理器，跳过事务")
            return

        self.hook_runner.run_before(test_context)

        tx_context = TransactionContext(
            test_context,
            manager,
            attribute,
            self.is_rollback(test_context),
        )
        tx_context.start_transaction()
        self._holder.publish(tx_context)

    def after_test(self, test_context: TestContext) -> None:
        """测试方法执行后调用

        当前线程的事务上下文总会被清除。结束事务失败时 after 钩子仍然执行；
        after 钩子失败时抛出第一个钩子异常，否则抛出结束事务的异常。
        """
        self._require_test_method(test_context)

        tx_context = self._holder.take_current()
        if tx_context is None:
            return

        try:
            if tx_context.is_active:
                tx_context.end_transaction()
        except Exception:
            logger.error(f"结束测试事务失败，测试: {test_context}", exc_info=True)
            raise
        finally:
            self.hook_runner.run_after(test_context)

    # ==================== 解析 ====================

    def get_transaction_manager(self, test_context: TestContext, qualifier: Optional[str] = None) -> Any:
        """获取测试使用的事务管理器，限定符优先，其次是测试类配置的名称"""
        config = self.retrieve_configuration_attributes(test_context)
        return self.manager_lookup.lookup(test_context, qualifier, config.transaction_manager_name)

    def retrieve_configuration_attributes(self, test_context: TestContext) -> ConfigurationAttributes:
        return self.configuration_resolver.resolve(test_context.test_class)

    def is_default_rollback(self, test_context: TestContext) -> bool:
        return self.retrieve_configuration_attributes(test_context).default_rollback

    def is_rollback(self, test_context: TestContext) -> bool:
        """计算测试事务是否回滚：方法级 @rollback 覆盖类默认值"""
        default_rollback = self.is_default_rollback(test_context)
        override = self._metadata.find_rollback_override(test_context.test_method)
        if override is not None:
            logger.debug(
                f"方法级 @rollback({override}) 覆盖默认回滚策略 [{default_rollback}]，测试: {test_context}"
            )
        else:
            logger.debug(f"没有方法级 @rollback，使用默认回滚策略 [{default_rollback}]，测试: {test_context}")
        return self.rollback_resolver.decide(default_rollback, override)

    @staticmethod
    def _require_test_method(test_context: TestContext) -> None:
        if test_context.test_method is None:
            raise ValueError("测试上下文中的测试方法不能为空")

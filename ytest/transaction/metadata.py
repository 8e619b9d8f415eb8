"""测试事务元数据

提供声明测试事务意图的装饰器，以及读取这些声明的元数据解析器。

使用示例:
    from ytest.transaction import (
        transactional, rollback, commit, transaction_configuration,
        before_transaction, after_transaction,
    )

    @transaction_configuration(transaction_manager="primary_db", default_rollback=True)
    @transactional
    class TestOrderService:

        @before_transaction
        def verify_initial_state(self):
            assert count_orders() == 0

        def test_create_order(self):
            ...  # 结束后自动回滚

        @commit
        def test_create_order_and_keep(self):
            ...  # 结束后提交

        @transactional(propagation=TransactionPropagation.NOT_SUPPORTED)
        def test_without_transaction(self):
            ...

        @after_transaction
        def verify_final_state(self):
            assert count_orders() == 0
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from ytest.config import DEFAULT_ROLLBACK, DEFAULT_TRANSACTION_MANAGER_NAME

from .attribute import TransactionAttribute
from .configuration import ConfigurationAttributes
from .hooks import HookPhase
from .propagation import TransactionPropagation


TRANSACTIONAL_ATTR = "__ytest_transactional__"
ROLLBACK_ATTR = "__ytest_rollback__"
CONFIGURATION_ATTR = "__ytest_transaction_configuration__"
HOOK_ATTR = "__ytest_transaction_hook__"


# ==================== 装饰器 ====================

def transactional(
    target: Any = None,
    *,
    propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
    read_only: bool = False,
    transaction_manager: str = ""
):
    """声明测试方法或测试类在事务中运行

    可以直接使用 @transactional，也可以带参数 @transactional(...)。
    方法上的声明覆盖类上的声明，类上的声明会被子类继承。

    Args:
        target: 被装饰的函数或类（无参使用时由 Python 传入）
        propagation: 事务传播行为，NOT_SUPPORTED 表示不开启事务
        read_only: 是否只读事务
        transaction_manager: 事务管理器限定符，空表示使用类配置或默认管理器
    """
    attribute = TransactionAttribute(
        propagation=TransactionPropagation(propagation),
        read_only=read_only,
        qualifier=transaction_manager,
    )

    def decorator(obj):
        setattr(obj, TRANSACTIONAL_ATTR, attribute)
        return obj

    if target is not None:
        return decorator(target)
    return decorator


def rollback(value: bool = True):
    """声明测试方法结束后是否回滚，覆盖测试类的默认策略

    Args:
        value: True 回滚，False 提交
    """
    def decorator(func: Callable) -> Callable:
        setattr(func, ROLLBACK_ATTR, bool(value))
        return func
    return decorator


def commit(func: Callable) -> Callable:
    """声明测试方法结束后提交事务，等价于 @rollback(False)"""
    return rollback(False)(func)


def transaction_configuration(
    transaction_manager: str = DEFAULT_TRANSACTION_MANAGER_NAME,
    default_rollback: bool = DEFAULT_ROLLBACK
):
    """声明测试类的事务配置

    Args:
        transaction_manager: 事务管理器名称，空表示使用唯一/主事务管理器
        default_rollback: 测试方法默认是否回滚
    """
    attributes = ConfigurationAttributes(
        transaction_manager_name=transaction_manager,
        default_rollback=default_rollback,
    )

    def decorator(cls: type) -> type:
        setattr(cls, CONFIGURATION_ATTR, attributes)
        return cls
    return decorator


def before_transaction(func: Callable) -> Callable:
    """标记在测试事务开启前执行的方法（无参数）"""
    setattr(_unwrap(func), HOOK_ATTR, HookPhase.BEFORE)
    return func


def after_transaction(func: Callable) -> Callable:
    """标记在测试事务结束后执行的方法（无参数）"""
    setattr(_unwrap(func), HOOK_ATTR, HookPhase.AFTER)
    return func


def _unwrap(obj: Any) -> Any:
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj


# ==================== 元数据解析 ====================

@runtime_checkable
class TransactionMetadataSource(Protocol):
    """元数据解析协议

    所有查找都是纯函数，未声明时返回 None。
    """

    def find_transaction_attribute(
        self, method: Optional[Callable], cls: Optional[type]
    ) -> Optional[TransactionAttribute]: ...

    def find_rollback_override(self, method: Optional[Callable]) -> Optional[bool]: ...

    def find_class_config(self, cls: Optional[type]) -> Optional[ConfigurationAttributes]: ...

    def is_hook(self, obj: Any, phase: HookPhase) -> bool: ...


class AnnotationMetadataResolver:
    """基于装饰器的元数据解析器

    查找优先级: 方法 > 类 > 父类（按 MRO，最近的祖先优先）
    """

    def find_transaction_attribute(
        self,
        method: Optional[Callable],
        cls: Optional[type]
    ) -> Optional[TransactionAttribute]:
        if method is not None:
            attribute = getattr(method, TRANSACTIONAL_ATTR, None)
            if attribute is not None:
                return attribute
        return self._find_on_class(cls, TRANSACTIONAL_ATTR)

    def find_rollback_override(self, method: Optional[Callable]) -> Optional[bool]:
        if method is None:
            return None
        return getattr(method, ROLLBACK_ATTR, None)

    def find_class_config(self, cls: Optional[type]) -> Optional[ConfigurationAttributes]:
        return self._find_on_class(cls, CONFIGURATION_ATTR)

    def is_hook(self, obj: Any, phase: HookPhase) -> bool:
        return getattr(_unwrap(obj), HOOK_ATTR, None) == phase

    @staticmethod
    def _find_on_class(cls: Optional[type], attr_name: str) -> Any:
        # 只看各个类自己的 __dict__，避免把同名的方法属性误认为类声明
        if cls is None:
            return None
        for klass in cls.__mro__:
            if attr_name in vars(klass):
                return vars(klass)[attr_name]
        return None


annotation_metadata = AnnotationMetadataResolver()

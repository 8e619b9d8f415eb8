"""事务管理器查找

TransactionManagerLookup 负责把限定符或配置的名称解析为事务管理器实例，
具体的查找规则由容器实现。TransactionManagerRegistry 是默认的容器实现。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Protocol, TYPE_CHECKING, runtime_checkable

from ytest.config import DEFAULT_TRANSACTION_MANAGER_NAME
from ytest.log import get_logger

from .exceptions import (
    NoSuchTransactionManagerError,
    NoUniqueTransactionManagerError,
    TransactionManagerLookupError,
)

if TYPE_CHECKING:
    from .execution import TestContext

logger = get_logger("ytest.transaction")

# 存在多个事务管理器时，按此名称注册的管理器作为默认管理器
DEFAULT_TRANSACTION_MANAGER_BEAN_NAME = "transaction_manager"


@runtime_checkable
class TransactionManagerContainer(Protocol):
    """事务管理器容器协议

    查找失败时抛出 TransactionManagerLookupError 的子类。
    """

    def lookup_by_qualifier(self, qualifier: str) -> Any: ...

    def lookup_by_name_or_primary(self, name: str) -> Optional[Any]: ...


@dataclass
class _Registration:
    name: str
    manager: Any
    qualifiers: FrozenSet[str] = field(default_factory=frozenset)
    primary: bool = False


class TransactionManagerRegistry:
    """事务管理器注册表

    使用示例:
        registry = TransactionManagerRegistry()
        registry.register("main", main_tm, primary=True)
        registry.register("audit", audit_tm, qualifiers=["audit_db"])

        # 多个管理器时也可以注册选择钩子
        @registry.manager_selector
        def select():
            return main_tm
    """

    def __init__(self):
        self._registrations: Dict[str, _Registration] = {}
        self._manager_selector: Optional[Callable[[], Any]] = None

    @property
    def names(self) -> List[str]:
        """已注册的名称（按注册顺序）"""
        return list(self._registrations)

    def register(
        self,
        name: str,
        manager: Any,
        qualifiers: Iterable[str] = (),
        primary: bool = False
    ) -> Any:
        """注册事务管理器

        Args:
            name: 注册名称，同名注册会覆盖
            manager: 事务管理器实例
            qualifiers: 额外的限定符
            primary: 是否为主事务管理器

        Returns:
            传入的事务管理器
        """
        self._registrations[name] = _Registration(
            name=name,
            manager=manager,
            qualifiers=frozenset(qualifiers),
            primary=primary,
        )
        logger.debug(f"注册事务管理器: {name} (primary={primary})")
        return manager

    def unregister(self, name: str) -> None:
        self._registrations.pop(name, None)

    def get(self, name: str) -> Optional[Any]:
        registration = self._registrations.get(name)
        return registration.manager if registration is not None else None

    def set_manager_selector(self, selector: Optional[Callable[[], Any]]) -> None:
        """设置事务管理器选择钩子，存在多个管理器且未指定名称时调用"""
        self._manager_selector = selector

    def manager_selector(self, func: Callable[[], Any]) -> Callable[[], Any]:
        """以装饰器方式注册事务管理器选择钩子"""
        self.set_manager_selector(func)
        return func

    def clear(self) -> None:
        """清空所有注册和选择钩子"""
        self._registrations.clear()
        self._manager_selector = None

    def lookup_by_qualifier(self, qualifier: str) -> Any:
        """按限定符查找

        先匹配声明的限定符，找不到时匹配注册名称。

        Raises:
            NoSuchTransactionManagerError: 没有匹配项
            NoUniqueTransactionManagerError: 匹配到多个
        """
        matches = [r for r in self._registrations.values() if qualifier in r.qualifiers]
        if not matches and qualifier in self._registrations:
            matches = [self._registrations[qualifier]]

        if not matches:
            raise NoSuchTransactionManagerError(qualifier)
        if len(matches) > 1:
            raise NoUniqueTransactionManagerError([r.name for r in matches], qualifier)
        return matches[0].manager

    def lookup_by_name_or_primary(self, name: str) -> Optional[Any]:
        """按名称查找，名称为空时解析默认事务管理器

        名称为空时的顺序：唯一注册项 > 选择钩子 > 主管理器 > 默认名称。
        没有任何注册时返回 None。

        Raises:
            NoSuchTransactionManagerError: 指定的名称不存在
            NoUniqueTransactionManagerError: 多个候选且无法决定
        """
        if name:
            registration = self._registrations.get(name)
            if registration is None:
                raise NoSuchTransactionManagerError(name)
            return registration.manager

        registrations = list(self._registrations.values())
        if not registrations:
            return None
        if len(registrations) == 1:
            return registrations[0].manager

        if self._manager_selector is not None:
            return self._manager_selector()

        primaries = [r for r in registrations if r.primary]
        if len(primaries) == 1:
            return primaries[0].manager

        default = self._registrations.get(DEFAULT_TRANSACTION_MANAGER_BEAN_NAME)
        if default is not None:
            return default.manager

        raise NoUniqueTransactionManagerError([r.name for r in registrations])


# 全局注册表，TestContext 默认使用
transaction_manager_registry = TransactionManagerRegistry()


class TransactionManagerLookup:
    """事务管理器查找

    - 指定了限定符：按限定符查找，任何失败原样抛出
    - 未指定限定符：按配置的名称或主管理器查找，查找失败时返回 None
    """

    def lookup(
        self,
        test_context: 'TestContext',
        qualifier: Optional[str] = None,
        manager_name: str = DEFAULT_TRANSACTION_MANAGER_NAME
    ) -> Optional[Any]:
        """查找事务管理器

        Args:
            test_context: 测试上下文，提供容器
            qualifier: 事务声明中的限定符
            manager_name: 测试类配置的事务管理器名称

        Returns:
            事务管理器；未指定限定符且找不到时返回 None
        """
        container = test_context.container

        if qualifier:
            if container is None:
                raise NoSuchTransactionManagerError(qualifier)
            try:
                return container.lookup_by_qualifier(qualifier)
            except Exception:
                logger.warning(
                    f"按限定符 '{qualifier}' 获取事务管理器失败，测试: {test_context}",
                    exc_info=True
                )
                raise

        if container is None:
            return None

        try:
            return container.lookup_by_name_or_primary(manager_name)
        except TransactionManagerLookupError as e:
            logger.warning(f"获取事务管理器失败，测试: {test_context}: {e}")
            return None

"""事务上下文

管理单次测试方法调用的事务状态，以及按线程保存当前事务上下文的持有器
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Hashable, Optional, TYPE_CHECKING

from ytest.log import get_logger

from .attribute import TransactionAttribute
from .exceptions import IllegalTransactionStateError

if TYPE_CHECKING:
    from .manager import PlatformTransactionManager
    from .execution import TestContext

logger = get_logger("ytest.transaction")


class TransactionContext:
    """事务上下文

    在 before 阶段创建，after 阶段结束后丢弃，只属于执行该测试方法的线程。

    包含：
    - 事务管理器与事务属性
    - 回滚标记（可在测试方法中通过 TestTransaction 修改）
    - 事务句柄（start_transaction 返回值，结束后重置为 None）
    """

    def __init__(
        self,
        test_context: 'TestContext',
        transaction_manager: 'PlatformTransactionManager',
        transaction_attribute: TransactionAttribute,
        default_rollback: bool
    ):
        """初始化事务上下文

        Args:
            test_context: 测试上下文
            transaction_manager: 事务管理器
            transaction_attribute: 事务属性
            default_rollback: 计算出的回滚策略
        """
        self._test_context = test_context
        self._transaction_manager = transaction_manager
        self._transaction_attribute = transaction_attribute
        self._flagged_for_rollback = default_rollback
        self._transaction_status: Any = None
        self._transactions_started = 0

    # ==================== 属性 ====================

    @property
    def test_context(self) -> 'TestContext':
        return self._test_context

    @property
    def transaction_manager(self) -> 'PlatformTransactionManager':
        return self._transaction_manager

    @property
    def transaction_attribute(self) -> TransactionAttribute:
        return self._transaction_attribute

    @property
    def transaction_status(self) -> Any:
        """当前事务句柄，没有进行中的事务时为 None"""
        return self._transaction_status

    @property
    def transactions_started(self) -> int:
        """该上下文中已开启过的事务数"""
        return self._transactions_started

    @property
    def flagged_for_rollback(self) -> bool:
        return self._flagged_for_rollback

    @flagged_for_rollback.setter
    def flagged_for_rollback(self, value: bool) -> None:
        self._flagged_for_rollback = value

    @property
    def is_active(self) -> bool:
        """是否有尚未结束的事务"""
        status = self._transaction_status
        return status is not None and not self._transaction_manager.is_completed(status)

    # ==================== 事务生命周期 ====================

    def start_transaction(self) -> None:
        """开启事务

        Raises:
            IllegalTransactionStateError: 已有事务尚未结束
        """
        if self._transaction_status is not None:
            raise IllegalTransactionStateError(
                "无法开启新事务：当前测试的事务尚未结束"
            )

        self._transaction_status = self._transaction_manager.begin(self._transaction_attribute)
        self._transactions_started += 1
        logger.info(
            f"已开启测试事务 (#{self._transactions_started})，测试: {self._test_context}，"
            f"事务管理器: {self._transaction_manager!r}，回滚: {self._flagged_for_rollback}"
        )

    def end_transaction(self) -> None:
        """按回滚标记回滚或提交事务

        Raises:
            IllegalTransactionStateError: 没有进行中的事务
        """
        if self._transaction_status is None:
            raise IllegalTransactionStateError("无法结束事务：没有进行中的事务")

        rollback = self._flagged_for_rollback
        try:
            self._transaction_manager.end(self._transaction_status, rollback)
        finally:
            self._transaction_status = None

        logger.info(
            f"已{'回滚' if rollback else '提交'}测试事务，测试: {self._test_context}"
        )

    def __repr__(self) -> str:
        return (
            f"TransactionContext("
            f"name={self._transaction_attribute.name!r}, "
            f"active={self.is_active}, "
            f"flagged_for_rollback={self._flagged_for_rollback})"
        )


class TransactionContextHolder:
    """当前事务上下文持有器

    以线程（或自定义的任务键）为键保存事务上下文，供测试方法内部的代码
    获取当前测试事务。键函数可以注入，测试中可以模拟多个"线程"。

    使用示例:
        holder = TransactionContextHolder()
        holder.publish(tx_context)
        holder.current()        # 查看，不移除
        holder.take_current()   # 取出并移除
    """

    def __init__(self, key_func: Callable[[], Hashable] = threading.get_ident):
        self._key_func = key_func
        self._contexts: Dict[Hashable, TransactionContext] = {}

    def publish(self, context: TransactionContext) -> None:
        """设置当前线程的事务上下文"""
        self._contexts[self._key_func()] = context

    def current(self) -> Optional[TransactionContext]:
        """获取当前线程的事务上下文（不移除）"""
        return self._contexts.get(self._key_func())

    def take_current(self) -> Optional[TransactionContext]:
        """取出并移除当前线程的事务上下文"""
        return self._contexts.pop(self._key_func(), None)

    def clear(self) -> None:
        """清空所有线程的事务上下文"""
        self._contexts.clear()

    def __len__(self) -> int:
        return len(self._contexts)


# 全局持有器
transaction_context_holder = TransactionContextHolder()


def get_current_transaction() -> Optional[TransactionContext]:
    """获取当前线程的测试事务上下文

    Returns:
        当前事务上下文，如果当前测试不在事务中则返回 None

    使用示例:
        tx = get_current_transaction()
        if tx and tx.is_active:
            # 在测试事务中
            pass
    """
    return transaction_context_holder.current()

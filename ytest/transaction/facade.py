"""测试方法内操作当前测试事务

使用示例:
    from ytest.transaction import TestTransaction

    @transactional
    class TestOrders:
        def test_visible_after_commit(self):
            create_order()
            TestTransaction.flag_for_commit()
            TestTransaction.end()           # 立即提交
            assert not TestTransaction.is_active()

            TestTransaction.start()         # 开启新事务，after 阶段按标记结束
            TestTransaction.flag_for_rollback()
"""

from typing import Optional

from .context import TransactionContext, TransactionContextHolder, transaction_context_holder
from .exceptions import IllegalTransactionStateError


class TestTransaction:
    """当前测试事务的静态操作入口

    所有方法都接受可选的 holder 参数，默认使用全局持有器。
    """
    __test__ = False

    @staticmethod
    def is_active(holder: Optional[TransactionContextHolder] = None) -> bool:
        """当前测试是否有进行中的事务"""
        context = _holder(holder).current()
        return context is not None and context.is_active

    @staticmethod
    def is_flagged_for_rollback(holder: Optional[TransactionContextHolder] = None) -> bool:
        """当前测试事务是否标记为回滚"""
        return _require_context(holder).flagged_for_rollback

    @staticmethod
    def flag_for_rollback(holder: Optional[TransactionContextHolder] = None) -> None:
        """标记当前测试事务在结束时回滚"""
        _require_context(holder).flagged_for_rollback = True

    @staticmethod
    def flag_for_commit(holder: Optional[TransactionContextHolder] = None) -> None:
        """标记当前测试事务在结束时提交"""
        _require_context(holder).flagged_for_rollback = False

    @staticmethod
    def end(holder: Optional[TransactionContextHolder] = None) -> None:
        """立即按当前标记结束测试事务"""
        _require_context(holder).end_transaction()

    @staticmethod
    def start(holder: Optional[TransactionContextHolder] = None) -> None:
        """开启新的测试事务，当前事务必须已经结束"""
        _require_context(holder).start_transaction()


def _holder(holder: Optional[TransactionContextHolder]) -> TransactionContextHolder:
    return holder if holder is not None else transaction_context_holder


def _require_context(holder: Optional[TransactionContextHolder]) -> TransactionContext:
    context = _holder(holder).current()
    if context is None:
        raise IllegalTransactionStateError(
            "当前测试没有托管的事务，请确认测试声明了 @transactional 且存在可用的事务管理器"
        )
    return context

"""事务管理器

定义测试生命周期使用的事务管理器协议，并提供基于 SQLAlchemy Session 的实现
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from ytest.log import get_logger

from .attribute import TransactionAttribute
from .exceptions import IllegalTransactionStateError
from .state import TransactionState

logger = get_logger("ytest.transaction")


@runtime_checkable
class PlatformTransactionManager(Protocol):
    """事务管理器协议

    - begin: 按事务属性开启事务，返回事务句柄
    - end: 回滚或提交事务，同一个句柄只能结束一次
    - is_completed: 句柄对应的事务是否已经结束

    实现需要能被多个测试线程同时使用，测试生命周期不做额外同步。
    """

    def begin(self, attribute: TransactionAttribute) -> Any: ...

    def end(self, status: Any, rollback: bool) -> None: ...

    def is_completed(self, status: Any) -> bool: ...


class TransactionStatus:
    """SessionTransactionManager 返回的事务句柄"""

    def __init__(self, session: Session, name: str = "", read_only: bool = False):
        self.session = session
        self.name = name
        self.read_only = read_only
        self.state = TransactionState.ACTIVE
        self.owner_thread = threading.get_ident()

    @property
    def completed(self) -> bool:
        """事务是否已结束"""
        return self.state.is_terminal()

    def __repr__(self) -> str:
        return (
            f"TransactionStatus("
            f"name={self.name!r}, "
            f"state={self.state.value}, "
            f"read_only={self.read_only})"
        )


class SessionTransactionManager:
    """基于 SQLAlchemy Session 的事务管理器

    每个测试事务使用一个新的 Session，结束时回滚或提交并关闭 Session。

    使用示例:
        from sqlalchemy import create_engine
        from sqlalchemy.orm import sessionmaker
        from ytest.transaction import SessionTransactionManager, transaction_manager_registry

        engine = create_engine("sqlite:///test.db")
        tm = SessionTransactionManager(sessionmaker(bind=engine))
        transaction_manager_registry.register("transaction_manager", tm)

        # 被测代码中获取当前测试事务的 session
        session = tm.get_session()
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """初始化事务管理器

        Args:
            session_factory: 返回新 Session 的无参可调用对象，通常是 sessionmaker
        """
        self._session_factory = session_factory
        # 各测试线程当前进行中的事务
        self._active: Dict[int, TransactionStatus] = {}

    def begin(self, attribute: TransactionAttribute) -> TransactionStatus:
        """开启事务"""
        session = self._session_factory()
        session.begin()
        status = TransactionStatus(session, attribute.name, attribute.read_only)
        self._active[status.owner_thread] = status
        logger.debug(f"Session 事务已开启: {status}")
        return status

    def end(self, status: TransactionStatus, rollback: bool) -> None:
        """结束事务

        Args:
            status: begin 返回的事务句柄
            rollback: True 回滚，False 提交

        Raises:
            IllegalTransactionStateError: 事务已经结束
        """
        if status.completed:
            raise IllegalTransactionStateError(f"事务已结束，不能重复结束: {status}")

        session = status.session
        try:
            if rollback:
                session.rollback()
                status.state = TransactionState.ROLLED_BACK
            else:
                session.commit()
                status.state = TransactionState.COMMITTED
        except Exception:
            status.state = TransactionState.FAILED
            raise
        finally:
            # close 会回滚未完成的事务并归还连接
            session.close()
            if self._active.get(status.owner_thread) is status:
                del self._active[status.owner_thread]

    def is_completed(self, status: TransactionStatus) -> bool:
        return status.completed

    def get_session(self) -> Session:
        """获取当前线程进行中的测试事务的 Session

        Raises:
            IllegalTransactionStateError: 当前线程没有进行中的测试事务
        """
        status = self._active.get(threading.get_ident())
        if status is None:
            raise IllegalTransactionStateError("当前线程没有进行中的测试事务")
        return status.session

    def current_status(self) -> Optional[TransactionStatus]:
        """获取当前线程进行中的事务句柄"""
        return self._active.get(threading.get_ident())

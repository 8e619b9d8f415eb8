"""测试事务辅助工具

提供记录调用顺序的事务管理器和测试上下文构造函数
"""

from typing import Any, List, Optional

from ytest.transaction import (
    TestContext,
    TransactionAttribute,
    TransactionLifecycleController,
)


class RecordingStatus:
    """RecordingTransactionManager 返回的事务句柄"""

    def __init__(self, name: str):
        self.name = name
        self.completed = False
        self.rolled_back: Optional[bool] = None


class RecordingTransactionManager:
    """记录 begin / end 调用的事务管理器

    Args:
        events: 共享的事件列表，钩子方法可以写入同一个列表以校验顺序
        label: 事件前缀，用于区分多个管理器
        fail_on_end: 结束事务时抛出的异常
    """

    def __init__(self, events: List[str] = None, label: str = "tm", fail_on_end: Exception = None):
        self.events = events if events is not None else []
        self.label = label
        self.fail_on_end = fail_on_end
        self.begun: List[TransactionAttribute] = []
        self.ended: List[RecordingStatus] = []

    def begin(self, attribute: TransactionAttribute) -> RecordingStatus:
        self.begun.append(attribute)
        self.events.append(f"{self.label}:begin")
        return RecordingStatus(attribute.name)

    def end(self, status: RecordingStatus, rollback: bool) -> None:
        self.events.append(f"{self.label}:{'rollback' if rollback else 'commit'}")
        status.completed = True
        status.rolled_back = rollback
        self.ended.append(status)
        if self.fail_on_end is not None:
            raise self.fail_on_end

    def is_completed(self, status: RecordingStatus) -> bool:
        return status.completed

    def __repr__(self) -> str:
        return f"RecordingTransactionManager({self.label!r})"


def make_test_context(
    test_class: Optional[type],
    method_name: str,
    container: Any = None,
    instance: Any = None
) -> TestContext:
    """构造测试上下文

    Args:
        test_class: 测试类
        method_name: 测试方法名
        container: 事务管理器容器
        instance: 测试实例，默认新建一个
    """
    if instance is None:
        instance = test_class()
    return TestContext(
        test_class=test_class,
        test_method=getattr(test_class, method_name),
        test_instance=instance,
        container=container,
    )


def make_controller(holder, **kwargs) -> TransactionLifecycleController:
    """构造使用独立持有器的控制器"""
    return TransactionLifecycleController(holder=holder, **kwargs)

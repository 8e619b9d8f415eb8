"""测试上下文

测试运行器传给生命周期控制器的测试信息
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .attribute import describe_test
from .lookup import transaction_manager_registry


@dataclass
class TestContext:
    """测试上下文

    Attributes:
        test_class: 测试类，模块级测试函数为 None
        test_method: 测试方法（未绑定的函数）
        test_instance: 测试实例，钩子方法在该实例上调用
        container: 事务管理器容器，默认使用全局注册表
    """
    __test__ = False

    test_class: Optional[type]
    test_method: Optional[Callable]
    test_instance: Any = None
    container: Any = field(default_factory=lambda: transaction_manager_registry)

    def __str__(self) -> str:
        return f"[{describe_test(self.test_method, self.test_class)}]"

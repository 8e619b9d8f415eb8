"""事务属性

描述测试方法声明的事务意图，以及从测试元数据解析事务属性的解析器
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, TYPE_CHECKING

from .propagation import TransactionPropagation

if TYPE_CHECKING:
    from .metadata import TransactionMetadataSource


@dataclass(frozen=True)
class TransactionAttribute:
    """事务属性（不可变）

    Attributes:
        propagation: 事务传播行为
        read_only: 是否只读事务
        qualifier: 事务管理器限定符，空字符串表示未指定
        name: 事务名称，由解析器按 "测试类.测试方法" 生成，用于日志
    """
    propagation: TransactionPropagation = TransactionPropagation.REQUIRED
    read_only: bool = False
    qualifier: str = ""
    name: str = ""


def describe_test(test_method: Optional[Callable], test_class: Optional[type]) -> str:
    """生成 "测试类.测试方法" 形式的描述"""
    method_name = getattr(test_method, "__name__", repr(test_method))
    if test_class is None:
        return getattr(test_method, "__qualname__", method_name)
    return f"{test_class.__qualname__}.{method_name}"


class TransactionAttributeResolver:
    """事务属性解析器

    按 "方法 > 类 > 父类" 的优先级查找事务声明，没有任何声明时返回 None。
    本身不做查找，委托给元数据解析器。
    """

    def __init__(self, metadata: 'TransactionMetadataSource' = None):
        if metadata is None:
            from .metadata import annotation_metadata
            metadata = annotation_metadata
        self._metadata = metadata

    def resolve(
        self,
        test_method: Optional[Callable],
        test_class: Optional[type]
    ) -> Optional[TransactionAttribute]:
        """解析测试方法的事务属性

        Args:
            test_method: 测试方法
            test_class: 测试类（模块级测试函数为 None）

        Returns:
            带名称的事务属性；没有声明事务时返回 None
        """
        attribute: Any = self._metadata.find_transaction_attribute(test_method, test_class)
        if attribute is None:
            return None
        return replace(attribute, name=describe_test(test_method, test_class))

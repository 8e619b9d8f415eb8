"""测试类级别的事务配置

解析 @transaction_configuration 声明（事务管理器名称、默认回滚策略），
未声明时回退到 TransactionSettings 中的默认值。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING

from ytest.config import (
    TransactionSettings,
    DEFAULT_ROLLBACK,
    DEFAULT_TRANSACTION_MANAGER_NAME,
)
from ytest.log import get_logger

if TYPE_CHECKING:
    from .metadata import TransactionMetadataSource

logger = get_logger("ytest.transaction")


@dataclass(frozen=True)
class ConfigurationAttributes:
    """测试类的事务配置

    Attributes:
        transaction_manager_name: 事务管理器名称，空字符串表示使用唯一/主事务管理器
        default_rollback: 测试方法没有 @rollback 声明时是否回滚
    """
    transaction_manager_name: str = DEFAULT_TRANSACTION_MANAGER_NAME
    default_rollback: bool = DEFAULT_ROLLBACK


class ConfigurationResolver:
    """配置解析器

    每个测试类只解析一次，结果缓存在解析器实例中（按测试类区分）。
    一个控制器实例持有一个解析器，因此同一控制器内同一测试类的所有方法
    看到的配置是稳定的。

    注意：缓存不加锁。多个线程并发运行不同测试类时不要共享同一个控制器实例。
    """

    def __init__(
        self,
        metadata: 'TransactionMetadataSource' = None,
        settings: TransactionSettings = None
    ):
        if metadata is None:
            from .metadata import annotation_metadata
            metadata = annotation_metadata
        self._metadata = metadata
        self._settings = settings if settings is not None else TransactionSettings()
        self._cache: Dict[Optional[type], ConfigurationAttributes] = {}

    def resolve(self, test_class: Optional[type]) -> ConfigurationAttributes:
        """解析测试类的事务配置

        Args:
            test_class: 测试类，模块级测试函数传 None

        Returns:
            配置属性
        """
        cached = self._cache.get(test_class)
        if cached is not None:
            return cached

        declared = self._metadata.find_class_config(test_class) if test_class is not None else None
        if declared is not None:
            attributes = declared
        else:
            attributes = ConfigurationAttributes(
                transaction_manager_name=self._settings.transaction_manager,
                default_rollback=self._settings.default_rollback,
            )
        logger.debug(f"测试类 {_class_name(test_class)} 的事务配置: {attributes}")

        self._cache[test_class] = attributes
        return attributes


def _class_name(test_class: Optional[type]) -> str:
    return test_class.__qualname__ if test_class is not None else "<module>"

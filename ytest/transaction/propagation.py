"""事务传播行为

定义测试方法声明的事务与已有事务之间的关系
"""

from enum import Enum


class TransactionPropagation(str, Enum):
    """事务传播行为

    测试生命周期只对 NOT_SUPPORTED 做特殊处理：声明为 NOT_SUPPORTED 的
    测试方法不开启事务，也不执行事务钩子。其余取值原样交给事务管理器。

    使用示例:
        @transactional(propagation=TransactionPropagation.NOT_SUPPORTED)
        def test_without_transaction(self):
            pass
    """

    REQUIRED = "required"
    """如果当前有事务则加入，没有则新建（默认）"""

    REQUIRES_NEW = "requires_new"
    """总是新建事务"""

    SUPPORTS = "supports"
    """如果当前有事务则加入，没有则以非事务方式执行"""

    NOT_SUPPORTED = "not_supported"
    """以非事务方式执行，测试生命周期不会为该方法开启事务"""

    MANDATORY = "mandatory"
    """必须在事务中执行"""

    NEVER = "never"
    """必须不在事务中执行"""

    NESTED = "nested"
    """如果当前有事务则创建嵌套事务（savepoint）"""

"""事务异常类

定义测试事务生命周期相关的异常层次结构
"""

from typing import Sequence


class TransactionError(Exception):
    """事务错误基类

    所有测试事务相关的异常都继承自此类
    """
    pass


class IllegalTransactionStateError(TransactionError):
    """事务状态非法错误

    编程错误，例如同一线程上一个测试事务尚未结束就开启新的事务，
    或者对没有进行中事务的上下文调用结束操作。不会被重试或抑制。
    """

    def __init__(self, message: str = "事务状态非法"):
        super().__init__(message)


class TransactionManagerLookupError(TransactionError):
    """事务管理器查找错误基类"""
    pass


class NoSuchTransactionManagerError(TransactionManagerLookupError):
    """事务管理器不存在错误

    当按名称或限定符找不到事务管理器时抛出
    """

    def __init__(self, name_or_qualifier: str):
        self.name_or_qualifier = name_or_qualifier
        super().__init__(f"找不到事务管理器 '{name_or_qualifier}'")


class NoUniqueTransactionManagerError(TransactionManagerLookupError):
    """事务管理器不唯一错误

    当存在多个候选事务管理器且无法决定使用哪一个时抛出
    """

    def __init__(self, candidates: Sequence[str], qualifier: str = ""):
        self.candidates = list(candidates)
        self.qualifier = qualifier
        target = f"限定符 '{qualifier}'" if qualifier else "默认事务管理器"
        super().__init__(f"{target} 匹配到多个事务管理器: {', '.join(self.candidates)}")


class TransactionConfigurationError(TransactionError):
    """事务配置错误

    严格模式下，测试声明了事务但无法解析出事务管理器时抛出
    """

    def __init__(self, message: str = "测试声明了事务，但没有可用的事务管理器"):
        super().__init__(message)


class HookDefinitionError(TransactionError):
    """钩子定义错误

    @before_transaction / @after_transaction 方法无法以无参方式调用时抛出。
    与钩子本身执行时抛出的业务异常区分开。
    """

    def __init__(self, hook_name: str, message: str = "事务钩子方法不能声明必填参数"):
        self.hook_name = hook_name
        super().__init__(f"钩子 '{hook_name}' 定义错误: {message}")

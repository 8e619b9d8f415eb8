"""事务钩子

发现并执行测试类上的 @before_transaction / @after_transaction 方法。

执行规则:
    - before 钩子：父类钩子先于子类钩子执行；第一个失败的钩子终止后续钩子，
      事务不会开启，原始异常原样抛出
    - after 钩子：按发现顺序（子类在前）全部执行；每个失败都记录日志，
      全部执行完后抛出第一个异常
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from ytest.log import get_logger

from .exceptions import HookDefinitionError, IllegalTransactionStateError

if TYPE_CHECKING:
    from .metadata import TransactionMetadataSource
    from .execution import TestContext

logger = get_logger("ytest.transaction")


class HookPhase(str, Enum):
    """钩子阶段"""

    BEFORE = "before_transaction"
    """事务开启前"""

    AFTER = "after_transaction"
    """事务结束后"""


@dataclass(frozen=True)
class HookMethod:
    """发现到的钩子方法

    Attributes:
        owner: 声明该方法的类
        name: 方法名
        target: 类 __dict__ 中的原始对象（函数 / staticmethod / classmethod）
        phase: 钩子阶段
        parameter_types: 除 self/cls 外的参数类型注解，按声明顺序
    """
    owner: type
    name: str
    target: Any
    phase: HookPhase
    parameter_types: Tuple[Any, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"

    def invoke(self, instance: Any) -> Any:
        """在测试实例上调用钩子

        Raises:
            IllegalTransactionStateError: 测试上下文中没有测试实例
        """
        if instance is None:
            raise IllegalTransactionStateError(
                f"无法执行钩子 [{self.qualified_name}]：测试上下文中没有测试实例"
            )
        # 绑定到声明该方法的那个函数，不经过实例属性查找
        return self.target.__get__(instance, type(instance))()


_BOUND_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)
_VARIADIC_KINDS = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
)


def _is_routine(value: Any) -> bool:
    return inspect.isfunction(value) or isinstance(value, (staticmethod, classmethod))


def _parameters(target: Any) -> List[inspect.Parameter]:
    """除 self/cls 外的参数"""
    func = target.__func__ if isinstance(target, (staticmethod, classmethod)) else target
    params = list(inspect.signature(func).parameters.values())
    if not isinstance(target, staticmethod) and params and params[0].kind in _BOUND_KINDS:
        params = params[1:]
    return params


def _parameter_types(target: Any) -> Tuple[Any, ...]:
    return tuple(param.annotation for param in _parameters(target))


def _validate_hook(target: Any, hook_name: str) -> None:
    """校验钩子可以无参调用"""
    if not isinstance(target, staticmethod):
        func = target.__func__ if isinstance(target, classmethod) else target
        params = list(inspect.signature(func).parameters.values())
        if not params or params[0].kind not in _BOUND_KINDS:
            raise HookDefinitionError(hook_name, "缺少 self/cls 参数")

    for param in _parameters(target):
        if param.default is inspect.Parameter.empty and param.kind not in _VARIADIC_KINDS:
            raise HookDefinitionError(hook_name)


@dataclass
class _Member:
    owner: type
    name: str
    target: Any
    parameter_types: Tuple[Any, ...]
    is_hook: bool

    def shadows(self, other: '_Member') -> bool:
        """是否遮蔽另一个方法：方法名与参数类型列表完全相同"""
        return self.name == other.name and self.parameter_types == other.parameter_types


class HookRunner:
    """钩子执行器

    钩子发现结果按 (测试类, 阶段) 缓存。
    """

    def __init__(self, metadata: 'TransactionMetadataSource' = None):
        if metadata is None:
            from .metadata import annotation_metadata
            metadata = annotation_metadata
        self._metadata = metadata
        self._cache: Dict[Tuple[type, HookPhase], Tuple[HookMethod, ...]] = {}

    def collect(self, test_class: Optional[type], phase: HookPhase) -> List[HookMethod]:
        """发现测试类及其所有父类（不含 object）上的钩子

        顺序：子类在前、父类在后；同一个类中按声明顺序。
        与子类方法同名且参数类型相同的父类方法视为被遮蔽，不再单独收集；
        被遮蔽的父类方法是钩子时，子类的覆盖方法同样视为钩子。

        Returns:
            钩子列表（每次返回新列表，调用方可以修改）

        Raises:
            HookDefinitionError: 钩子方法不能无参调用
        """
        if test_class is None:
            return []

        key = (test_class, phase)
        cached = self._cache.get(key)
        if cached is None:
            members: List[_Member] = []
            for klass in test_class.__mro__:
                if klass is object:
                    continue
                for name, value in vars(klass).items():
                    if not _is_routine(value):
                        continue
                    member = _Member(
                        owner=klass,
                        name=name,
                        target=value,
                        parameter_types=_parameter_types(value),
                        is_hook=self._metadata.is_hook(value, phase),
                    )
                    shadowing = next((m for m in members if m.shadows(member)), None)
                    if shadowing is None:
                        members.append(member)
                    elif member.is_hook:
                        shadowing.is_hook = True

            results: List[HookMethod] = []
            for member in members:
                if not member.is_hook:
                    continue
                _validate_hook(member.target, f"{member.owner.__qualname__}.{member.name}")
                results.append(HookMethod(
                    owner=member.owner,
                    name=member.name,
                    target=member.target,
                    phase=phase,
                    parameter_types=member.parameter_types,
                ))
            cached = tuple(results)
            self._cache[key] = cached
        return list(cached)

    def run_before(self, test_context: 'TestContext') -> None:
        """执行 before 钩子（父类优先，遇错即停）

        Raises:
            钩子抛出的原始异常
        """
        methods = self.collect(test_context.test_class, HookPhase.BEFORE)
        methods.reverse()
        for method in methods:
            logger.debug(f"执行 @before_transaction 方法 [{method.qualified_name}]，测试: {test_context}")
            try:
                method.invoke(test_context.test_instance)
            except BaseException:
                logger.error(
                    f"执行 @before_transaction 方法 [{method.qualified_name}] 出错，测试: {test_context}",
                    exc_info=True
                )
                raise

    def run_after(self, test_context: 'TestContext') -> None:
        """执行 after 钩子（全部执行，最后抛出第一个异常）

        Raises:
            第一个失败钩子抛出的原始异常
        """
        first_error: Optional[BaseException] = None
        for method in self.collect(test_context.test_class, HookPhase.AFTER):
            logger.debug(f"执行 @after_transaction 方法 [{method.qualified_name}]，测试: {test_context}")
            try:
                method.invoke(test_context.test_instance)
            except BaseException as e:
                if isinstance(e, (KeyboardInterrupt, SystemExit)):
                    raise
                if first_error is None:
                    first_error = e
                logger.error(
                    f"执行 @after_transaction 方法 [{method.qualified_name}] 出错，测试: {test_context}",
                    exc_info=True
                )

        if first_error is not None:
            raise first_error

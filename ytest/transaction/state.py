"""事务状态枚举

定义测试事务句柄的生命周期状态
"""

from enum import Enum


class TransactionState(str, Enum):
    """事务状态

    状态转换图:

        ACTIVE → COMMITTED
           ↓
        ROLLED_BACK

        ACTIVE → FAILED （提交失败）
    """

    ACTIVE = "active"
    """活跃状态：事务已开启，测试方法正在其中执行"""

    COMMITTED = "committed"
    """已提交状态：测试配置为不回滚，变更已提交"""

    ROLLED_BACK = "rolled_back"
    """已回滚状态：测试中产生的变更已撤销"""

    FAILED = "failed"
    """失败状态：结束事务时发生错误"""

    def is_terminal(self) -> bool:
        """判断是否为终态（事务已完成）"""
        return self in (
            TransactionState.COMMITTED,
            TransactionState.ROLLED_BACK,
            TransactionState.FAILED
        )

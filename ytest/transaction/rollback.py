"""回滚策略"""

from typing import Optional


class RollbackPolicyResolver:
    """回滚策略解析器

    方法级 @rollback 声明总是覆盖测试类的默认回滚策略。
    """

    def decide(self, default_rollback: bool, method_override: Optional[bool]) -> bool:
        """计算测试事务最终是否回滚

        Args:
            default_rollback: 测试类的默认回滚策略
            method_override: 方法级覆盖，None 表示未声明

        Returns:
            True 表示回滚，False 表示提交
        """
        if method_override is not None:
            return method_override
        return default_rollback

"""测试辅助工具模块

提供测试专用的辅助类和函数，避免在核心代码中添加测试专用方法。
"""

from .transaction_helpers import (
    RecordingStatus,
    RecordingTransactionManager,
    make_test_context,
    make_controller,
)

__all__ = [
    'RecordingStatus',
    'RecordingTransactionManager',
    'make_test_context',
    'make_controller',
]

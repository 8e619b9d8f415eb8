"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 内存数据库连接
- 独立的事务管理器注册表 / 事务上下文持有器
- 全局状态清理
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ytest.config import ConfigLoader
from ytest.transaction import (
    TransactionContextHolder,
    TransactionManagerRegistry,
    SessionTransactionManager,
    transaction_context_holder,
    transaction_manager_registry,
)
from tests.helpers.models import Base


# ==================== 全局状态清理 ====================

@pytest.fixture(autouse=True)
def reset_global_state():
    """每个测试前后清理全局注册表、持有器和配置缓存"""
    transaction_manager_registry.clear()
    transaction_context_holder.clear()
    ConfigLoader.clear_cache()
    yield
    transaction_manager_registry.clear()
    transaction_context_holder.clear()
    ConfigLoader.clear_cache()


# ==================== 数据库 Fixtures ====================

@pytest.fixture
def memory_engine():
    """内存数据库引擎（所有连接共享同一个数据库）"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(memory_engine):
    return sessionmaker(autoflush=False, bind=memory_engine)


@pytest.fixture
def session_manager(session_factory):
    """基于内存数据库的 SessionTransactionManager"""
    return SessionTransactionManager(session_factory)


# ==================== 事务 Fixtures ====================

@pytest.fixture
def registry():
    """独立的事务管理器注册表"""
    return TransactionManagerRegistry()


@pytest.fixture
def holder():
    """独立的事务上下文持有器"""
    return TransactionContextHolder()

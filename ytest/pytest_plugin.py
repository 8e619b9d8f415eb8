"""pytest 插件

把测试事务生命周期接入 pytest：
- setup 阶段（所有 fixture 准备好之后）执行 before_test
- teardown 阶段（fixture 清理之前）执行 after_test

启用方式:
    # conftest.py
    pytest_plugins = ["ytest.pytest_plugin"]

    # 或命令行
    pytest -p ytest.pytest_plugin

可选的 ini 配置:
    [pytest]
    ytest_config = config/ytest.yaml   # 读取 transaction / logging 配置段

before 阶段的错误作为 setup 错误上报，after 阶段的错误作为 teardown 错误上报。
"""

import os
from typing import Dict, Optional

import pytest

from ytest.config import AppSettings, load_yaml_config
from ytest.log import get_logger, setup_logger
from ytest.transaction import (
    TestContext,
    TestTransaction,
    TransactionLifecycleController,
)

logger = get_logger("ytest.pytest_plugin")

_settings_key = pytest.StashKey[AppSettings]()
_controllers_key = pytest.StashKey[Dict[Optional[type], TransactionLifecycleController]]()


# ==================== Pytest Hook ====================

def pytest_addoption(parser):
    parser.addini(
        "ytest_config",
        help="ytest 配置文件路径（YAML），相对路径基于 rootdir",
        default="",
    )


def pytest_configure(config):
    """读取配置，初始化控制器缓存

    配置了 logging.file_path 时为 ytest 日志器设置处理器，
    否则日志交给 pytest 的日志捕获处理。
    """
    config_path = config.getini("ytest_config")
    if config_path:
        settings = load_yaml_config(config_path, AppSettings, base_dir=str(config.rootpath))
        log_config = settings.logging
        if log_config.file_path:
            setup_logger(
                "ytest",
                level=log_config.level,
                log_file=log_config.file_path,
                console=log_config.enable_console,
            )
    else:
        settings = AppSettings()

    config.stash[_settings_key] = settings
    config.stash[_controllers_key] = {}


@pytest.hookimpl(wrapper=True)
def pytest_runtest_setup(item):
    result = yield
    if isinstance(item, pytest.Function):
        _controller(item).before_test(_test_context(item))
    return result


@pytest.hookimpl(wrapper=True)
def pytest_runtest_teardown(item, nextitem):
    error = None
    if isinstance(item, pytest.Function):
        try:
            _controller(item).after_test(_test_context(item))
        except BaseException as e:
            # 包括 pytest.fail 等结果异常：先完成 fixture 清理，再上报
            error = e

    try:
        return (yield)
    finally:
        if error is not None:
            raise error


# ==================== Fixtures ====================

@pytest.fixture
def managed_transaction():
    """当前测试事务的操作入口

    使用示例:
        @transactional
        class TestOrders:
            def test_commit(self, managed_transaction):
                managed_transaction.flag_for_commit()
                managed_transaction.end()
    """
    return TestTransaction


# ==================== 内部函数 ====================

def _controller(item) -> TransactionLifecycleController:
    """每个测试类一个控制器，模块级测试函数共用一个"""
    controllers = item.config.stash[_controllers_key]
    controller = controllers.get(item.cls)
    if controller is None:
        settings = item.config.stash[_settings_key]
        controller = TransactionLifecycleController(settings=settings.transaction)
        controllers[item.cls] = controller
        logger.debug(f"创建测试事务控制器: {item.cls.__qualname__ if item.cls else os.path.basename(str(item.path))}")
    return controller


def _test_context(item) -> TestContext:
    return TestContext(
        test_class=item.cls,
        test_method=item.function,
        test_instance=item.instance,
    )

"""pytest 插件测试

使用 pytester 在独立的 pytest 会话中运行测试模块，
验证测试事务在 fixture 之后开启、在 fixture 清理之前结束，
以及 before / after 阶段的失败分别作为 setup / teardown 错误上报。
"""

import pytest


MANAGER_SOURCE = """
import pytest
from ytest.transaction import transaction_manager_registry

EVENTS = []


class RecordingManager:
    def begin(self, attribute):
        EVENTS.append("begin:" + attribute.name)
        return {"done": False}

    def end(self, status, rollback):
        EVENTS.append("rollback" if rollback else "commit")
        status["done"] = True

    def is_completed(self, status):
        return status["done"]


@pytest.fixture(scope="session")
def events():
    return EVENTS


@pytest.fixture(autouse=True, scope="session")
def register_manager():
    transaction_manager_registry.register("transaction_manager", RecordingManager())
    yield
    transaction_manager_registry.clear()
"""


def _run(pytester, *args):
    return pytester.runpytest("-p", "ytest.pytest_plugin", *args)


class TestPytestPlugin:
    """测试 pytest 插件"""

    def test_transaction_wraps_test_body(self, pytester):
        """测试顺序：fixture → before 钩子 → 开启 → 测试 → 结束 → after 钩子 → fixture 清理"""
        pytester.makeconftest(MANAGER_SOURCE)
        pytester.makepyfile(
            """
            import pytest
            from ytest.transaction import (
                transactional, commit, before_transaction, after_transaction, TestTransaction,
            )


            @transactional
            class TestOrders:
                @pytest.fixture(autouse=True)
                def prepare(self, events):
                    self.events = events
                    events.append("fixture")
                    yield
                    events.append("fixture_teardown")

                @before_transaction
                def before(self):
                    self.events.append("before")

                @after_transaction
                def after(self):
                    self.events.append("after")

                def test_default(self, managed_transaction):
                    assert managed_transaction.is_active()
                    assert managed_transaction.is_flagged_for_rollback()

                @commit
                def test_commit(self):
                    assert not TestTransaction.is_flagged_for_rollback()


            def test_events(events):
                assert not TestTransaction.is_active()
                assert events == [
                    "fixture", "before", "begin:TestOrders.test_default",
                    "rollback", "after", "fixture_teardown",
                    "fixture", "before", "begin:TestOrders.test_commit",
                    "commit", "after", "fixture_teardown",
                ]
            """
        )

        result = _run(pytester)

        result.assert_outcomes(passed=3)

    def test_module_level_functions(self, pytester):
        """测试模块级测试函数同样可以声明事务"""
        pytester.makeconftest(MANAGER_SOURCE)
        pytester.makepyfile(
            """
            from ytest.transaction import transactional, TestTransaction


            @transactional
            def test_in_transaction():
                assert TestTransaction.is_active()


            def test_without_transaction():
                assert not TestTransaction.is_active()
            """
        )

        result = _run(pytester)

        result.assert_outcomes(passed=2)

    def test_before_hook_failure_is_setup_error(self, pytester):
        """测试 before 钩子失败作为 setup 错误上报，测试方法不执行"""
        pytester.makeconftest(MANAGER_SOURCE)
        pytester.makepyfile(
            """
            from ytest.transaction import transactional, before_transaction


            @transactional
            class TestBroken:
                @before_transaction
                def broken(self):
                    raise RuntimeError("before hook failed")

                def test_never_runs(self):
                    raise AssertionError("test body must not run")
            """
        )

        result = _run(pytester)

        result.assert_outcomes(errors=1)
        result.stdout.fnmatch_lines(["*ERROR at setup of TestBroken.test_never_runs*"])
        result.stdout.no_fnmatch_line("*test body must not run*")

    def test_after_hook_failure_is_teardown_error(self, pytester):
        """测试 after 钩子失败作为 teardown 错误上报，测试本身通过"""
        pytester.makeconftest(MANAGER_SOURCE)
        pytester.makepyfile(
            """
            from ytest.transaction import transactional, after_transaction


            @transactional
            class TestBroken:
                @after_transaction
                def broken(self):
                    raise RuntimeError("after hook failed")

                def test_body_runs(self):
                    pass
            """
        )

        result = _run(pytester)

        result.assert_outcomes(passed=1, errors=1)
        result.stdout.fnmatch_lines(["*ERROR at teardown of TestBroken.test_body_runs*"])

    @pytest.mark.parametrize("statement", [
        'raise RuntimeError("after hook failed")',
        'pytest.fail("after hook failed")',
    ])
    def test_fixture_teardown_runs_when_after_hook_fails(self, pytester, statement):
        """测试 after 钩子失败（包括 pytest.fail）时 fixture 清理照常执行"""
        pytester.makeconftest(MANAGER_SOURCE)
        pytester.makepyfile(
            """
            import pytest
            from ytest.transaction import transactional, after_transaction

            TEARDOWNS = []


            @pytest.fixture
            def resource():
                yield "resource"
                TEARDOWNS.append("resource")


            @transactional
            class TestBroken:
                @after_transaction
                def broken(self):
                    {statement}

                def test_body_runs(self, resource):
                    pass


            def test_z_after_broken():
                assert TEARDOWNS == ["resource"]
            """.format(statement=statement)
        )

        result = _run(pytester)

        result.assert_outcomes(passed=2, errors=1)
        result.stdout.fnmatch_lines(["*ERROR at teardown of TestBroken.test_body_runs*"])
        result.stdout.no_fnmatch_line("*not torn down properly*")

    def test_missing_manager_skips_transaction(self, pytester):
        """测试没有注册事务管理器时测试照常运行，不开启事务"""
        pytester.makepyfile(
            """
            from ytest.transaction import transactional, TestTransaction


            @transactional
            class TestWithoutManager:
                def test_runs(self):
                    assert not TestTransaction.is_active()
            """
        )

        result = _run(pytester)

        result.assert_outcomes(passed=1)

    def test_ini_config_file(self, pytester):
        """测试通过 ytest_config 读取 YAML 配置"""
        pytester.makeconftest(MANAGER_SOURCE)
        pytester.makeini(
            """
            [pytest]
            ytest_config = ytest.yaml
            """
        )
        pytester.makefile(
            ".yaml",
            ytest="transaction:\n  default_rollback: false\n",
        )
        pytester.makepyfile(
            """
            from ytest.transaction import transactional, TestTransaction


            @transactional
            class TestConfigured:
                def test_commit_by_default(self):
                    assert TestTransaction.is_active()
                    assert not TestTransaction.is_flagged_for_rollback()
            """
        )

        result = _run(pytester)

        result.assert_outcomes(passed=1)

    @pytest.mark.parametrize("strict, outcome", [
        ("true", {"errors": 1}),
        ("false", {"passed": 1}),
    ])
    def test_strict_manager_lookup(self, pytester, monkeypatch, strict, outcome):
        """测试严格模式通过环境变量开启"""
        monkeypatch.setenv("YTEST_TX_STRICT_MANAGER_LOOKUP", strict)
        pytester.makepyfile(
            """
            from ytest.transaction import transactional


            @transactional
            class TestWithoutManager:
                def test_runs(self):
                    pass
            """
        )

        result = _run(pytester)

        result.assert_outcomes(**outcome)

"""测试类事务配置与回滚策略测试"""

from unittest.mock import Mock

import pytest

from ytest.config import TransactionSettings, DEFAULT_ROLLBACK, DEFAULT_TRANSACTION_MANAGER_NAME
from ytest.transaction import (
    transaction_configuration,
    ConfigurationAttributes,
    ConfigurationResolver,
    RollbackPolicyResolver,
)


@transaction_configuration(transaction_manager="primary", default_rollback=False)
class SampleConfigured:
    pass


class SamplePlain:
    pass


class TestConfigurationResolver:
    """测试配置解析器"""

    def test_defaults_without_declaration(self):
        """测试未声明时使用默认值：名称为空、默认回滚"""
        config = ConfigurationResolver().resolve(SamplePlain)

        assert config.transaction_manager_name == DEFAULT_TRANSACTION_MANAGER_NAME == ""
        assert config.default_rollback is DEFAULT_ROLLBACK is True

    def test_declared_configuration(self):
        config = ConfigurationResolver().resolve(SampleConfigured)

        assert config == ConfigurationAttributes("primary", False)

    def test_settings_fallback(self):
        """测试未声明时使用 TransactionSettings 中的默认值"""
        settings = TransactionSettings(default_rollback=False, transaction_manager="from_settings")

        config = ConfigurationResolver(settings=settings).resolve(SamplePlain)

        assert config.transaction_manager_name == "from_settings"
        assert config.default_rollback is False

    def test_declaration_overrides_settings(self):
        """测试类声明优先于 TransactionSettings"""
        settings = TransactionSettings(default_rollback=True, transaction_manager="from_settings")

        config = ConfigurationResolver(settings=settings).resolve(SampleConfigured)

        assert config.transaction_manager_name == "primary"
        assert config.default_rollback is False

    def test_module_level_tests(self):
        """测试模块级测试函数（没有测试类）使用默认值"""
        config = ConfigurationResolver().resolve(None)

        assert config == ConfigurationAttributes()

    def test_resolved_once_per_class(self):
        """测试同一测试类只解析一次"""
        metadata = Mock()
        metadata.find_class_config.return_value = ConfigurationAttributes("primary", False)
        resolver = ConfigurationResolver(metadata=metadata)

        first = resolver.resolve(SampleConfigured)
        second = resolver.resolve(SampleConfigured)

        assert first is second
        assert metadata.find_class_config.call_count == 1

    def test_cache_keyed_by_class(self):
        """测试缓存按测试类区分"""
        resolver = ConfigurationResolver()

        assert resolver.resolve(SampleConfigured).default_rollback is False
        assert resolver.resolve(SamplePlain).default_rollback is True

    def test_debug_log(self, caplog):
        """测试解析结果记录调试日志"""
        with caplog.at_level("DEBUG", logger="ytest.transaction"):
            ConfigurationResolver().resolve(SampleConfigured)

        assert "SampleConfigured" in caplog.text


class TestRollbackPolicyResolver:
    """测试回滚策略：方法级覆盖总是优先"""

    @pytest.mark.parametrize("default_rollback, override, expected", [
        (True, None, True),
        (False, None, False),
        (True, False, False),
        (False, True, True),
    ])
    def test_decide(self, default_rollback, override, expected):
        assert RollbackPolicyResolver().decide(default_rollback, override) is expected

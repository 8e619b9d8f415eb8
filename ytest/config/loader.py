"""YAML 配置加载

pytest 插件通过 ini 选项 ytest_config 指定配置文件，文件内容按段映射到 AppSettings：

    transaction:
      default_rollback: true
      transaction_manager: primary
    logging:
      level: DEBUG
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml


SettingsT = TypeVar("SettingsT")


class ConfigLoader:
    """读取 YAML 配置文件，按绝对路径缓存解析结果

    缓存不会感知文件变化，文件修改后需要调用 reload。
    """

    _cache: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def resolve(config_path: str, base_dir: Optional[str] = None) -> str:
        """相对路径优先基于 base_dir 解析，否则基于当前工作目录"""
        path = Path(config_path)
        if not path.is_absolute():
            path = Path(base_dir) / path if base_dir else path.absolute()
        return str(path)

    @classmethod
    def load(
        cls,
        config_path: str,
        base_dir: Optional[str] = None,
        use_cache: bool = True,
    ) -> Dict[str, Any]:
        """加载配置文件，空文件返回空字典

        Raises:
            FileNotFoundError: 配置文件不存在
            yaml.YAMLError: 文件不是合法的 YAML
        """
        key = cls.resolve(config_path, base_dir)
        if use_cache and key in cls._cache:
            return cls._cache[key]

        path = Path(key)
        if not path.is_file():
            raise FileNotFoundError(f"配置文件不存在: {key}")

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if use_cache:
            cls._cache[key] = data
        return data

    @classmethod
    def reload(cls, config_path: str, base_dir: Optional[str] = None) -> Dict[str, Any]:
        cls._cache.pop(cls.resolve(config_path, base_dir), None)
        return cls.load(config_path, base_dir)

    @classmethod
    def clear_cache(cls):
        cls._cache.clear()

    @classmethod
    def get_cached_paths(cls) -> List[str]:
        return list(cls._cache)


def load_yaml_config(
    config_path: str,
    settings_class: Type[SettingsT],
    base_dir: Optional[str] = None,
    **overrides,
) -> SettingsT:
    """用 YAML 文件内容实例化 Settings 类，overrides 优先于文件中的值

    使用示例:
        settings = load_yaml_config("config/ytest.yaml", AppSettings)
        tx = load_yaml_config("config/tx.yaml", TransactionSettings, strict_manager_lookup=True)
    """
    values = {**ConfigLoader.load(config_path, base_dir), **overrides}
    return settings_class(**values)

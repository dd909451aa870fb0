"""Tests for settings loading"""

import pytest

from maidrive.utils.config import ApiSettings, ConfigManager, Settings
from maidrive.utils.exceptions import ConfigError


def write_settings(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_file_uses_defaults(tmp_path):
    settings = ConfigManager(tmp_path / "missing.yaml").load_settings()
    assert settings == Settings()
    assert settings.api.resolve_base_url() == "http://localhost:5399"
    assert settings.i18n.default_language == "fa"


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("MAIDRIVE_API_URL", "https://drive.example.com")
    monkeypatch.delenv("MAIDRIVE_TOKEN_KEY", raising=False)
    path = write_settings(tmp_path, """
api:
  base_url: "${MAIDRIVE_API_URL:http://localhost:5399}"
  read_timeout: 5
storage:
  token_key: "${MAIDRIVE_TOKEN_KEY:}"
""")

    settings = ConfigManager(path).load_settings()

    assert settings.api.base_url == "https://drive.example.com"
    assert settings.api.read_timeout == 5
    assert settings.storage.token_key is None


def test_platform_url_override(tmp_path, monkeypatch):
    monkeypatch.setenv("MAIDRIVE_PLATFORM", "android")
    path = write_settings(tmp_path, """
api:
  base_url: "http://localhost:5399"
  platform: "${MAIDRIVE_PLATFORM:}"
  platform_urls:
    android: "http://10.0.2.2:5399"
""")

    settings = ConfigManager(path).load_settings()

    assert settings.api.resolve_base_url() == "http://10.0.2.2:5399"


def test_unknown_platform_falls_back_to_base_url():
    api = ApiSettings(base_url="http://host:1", platform="web", platform_urls={"android": "http://a"})
    assert api.resolve_base_url() == "http://host:1"


def test_storage_paths(tmp_path):
    path = write_settings(tmp_path, f"""
storage:
  data_dir: "{tmp_path.as_posix()}/data"
""")
    settings = ConfigManager(path).load_settings()
    assert settings.storage.token_path == tmp_path / "data" / "auth_token.json"
    assert settings.storage.language_path == tmp_path / "data" / "language.yaml"


def test_invalid_yaml_raises_config_error(tmp_path):
    path = write_settings(tmp_path, "api: [broken")
    with pytest.raises(ConfigError):
        ConfigManager(path).load_settings()


def test_invalid_values_raise_config_error(tmp_path):
    path = write_settings(tmp_path, "api:\n  read_timeout: soon\n")
    with pytest.raises(ConfigError):
        ConfigManager(path).load_settings()


def test_non_mapping_raises_config_error(tmp_path):
    path = write_settings(tmp_path, "- just\n- a list\n")
    with pytest.raises(ConfigError):
        ConfigManager(path).load_settings()


def test_empty_env_var_falls_back_to_inline_default(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "")
    path = write_settings(tmp_path, """
logging:
  level: "${LOG_LEVEL:WARNING}"
""")

    settings = ConfigManager(path).load_settings()

    assert settings.logging.level == "WARNING"


def test_empty_env_var_without_default_uses_model_default(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "")
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    path = write_settings(tmp_path, """
logging:
  level: "${LOG_LEVEL}"
  format: "${LOG_FORMAT:}"
""")

    settings = ConfigManager(path).load_settings()

    assert settings.logging.level == "INFO"
    assert settings.logging.format == "json"

"""Unit tests for settings.loaders module."""

import pytest
from unittest.mock import patch

from confluence_publisher.settings.errors import ConfigError
from confluence_publisher.settings.loaders import (
    SettingsLoader,
    argument_settings,
    config_file_settings,
    default_loaders,
    default_settings,
    environment_settings,
    resolve_config_path,
    static_settings,
)
from tests.fixtures.settings import settings_values

ENV_VARS = (
    "CONFLUENCE_BASE_URL",
    "CONFLUENCE_PARENT_ID",
    "CONFLUENCE_SPACE_KEY",
    "ATLASSIAN_USERNAME",
    "ATLASSIAN_API_TOKEN",
    "FOLDER_TO_PUBLISH",
    "CONFLUENCE_CONTENT_ROOT",
    "CONFLUENCE_FIRST_HEADING_PAGE_TITLE",
    "CONFLUENCE_CONFIG_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every settings variable from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestPartialLoaders:
    """Test cases for the individual partial loaders."""

    def test_default_settings_uses_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        settings = default_settings()

        assert settings['content_root'] == str(tmp_path)
        assert settings['folder_to_publish'] == "Confluence Pages"
        assert settings['first_heading_page_title'] is False

    def test_config_file_settings_reads_known_keys(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(
            "confluence_base_url: https://example.atlassian.net\n"
            "confluence_parent_id: 12345\n"
            "unknown_key: ignored\n"
            "folder_to_publish: ''\n"
        )

        settings = config_file_settings(str(config))

        assert settings == {
            'confluence_base_url': "https://example.atlassian.net",
            'confluence_parent_id': "12345",
        }

    def test_config_file_missing_contributes_nothing(self, tmp_path):
        assert config_file_settings(str(tmp_path / "missing.yaml")) == {}

    def test_config_file_empty_contributes_nothing(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("")

        assert config_file_settings(str(config)) == {}

    def test_config_file_invalid_yaml_raises(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("key: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            config_file_settings(str(config))

    def test_config_file_not_a_mapping_raises(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            config_file_settings(str(config))

    def test_resolve_config_path_prefers_explicit_then_env(self, clean_env, tmp_path):
        clean_env.setenv("CONFLUENCE_CONFIG_FILE", "/from/env.yaml")

        assert resolve_config_path("/explicit.yaml") == "/explicit.yaml"
        assert resolve_config_path() == "/from/env.yaml"

    @patch('confluence_publisher.settings.loaders.load_dotenv')
    def test_environment_settings(self, mock_load_dotenv, clean_env):
        clean_env.setenv("CONFLUENCE_BASE_URL", "https://env.atlassian.net")
        clean_env.setenv("ATLASSIAN_API_TOKEN", "env-token")
        clean_env.setenv("CONFLUENCE_FIRST_HEADING_PAGE_TITLE", "True")

        settings = environment_settings()

        mock_load_dotenv.assert_called_once()
        assert settings == {
            'confluence_base_url': "https://env.atlassian.net",
            'atlassian_api_token': "env-token",
            'first_heading_page_title': True,
        }

    @patch('confluence_publisher.settings.loaders.load_dotenv')
    def test_environment_settings_empty(self, mock_load_dotenv, clean_env):
        assert environment_settings() == {}

    def test_argument_settings_drops_unset_values(self):
        settings = argument_settings(
            confluence_base_url=None,
            confluence_parent_id="42",
            folder_to_publish="",
            first_heading_page_title=False,
        )

        assert settings == {'confluence_parent_id': "42", 'first_heading_page_title': False}


class TestSettingsLoader:
    """Test cases for SettingsLoader."""

    def test_later_loaders_win(self, tmp_path):
        loader = SettingsLoader([
            static_settings(settings_values(tmp_path)),
            static_settings({'confluence_parent_id': "999"}),
        ])

        assert loader.load().confluence_parent_id == "999"

    def test_wrong_type_is_ignored(self, tmp_path):
        loader = SettingsLoader([
            static_settings(settings_values(tmp_path)),
            static_settings({'first_heading_page_title': "yes", 'confluence_parent_id': 5}),
        ])

        settings = loader.load()

        assert settings.first_heading_page_title is False
        assert settings.confluence_parent_id == "100"

    def test_missing_required_field_raises(self, tmp_path):
        values = settings_values(tmp_path)
        del values['atlassian_api_token']
        loader = SettingsLoader([static_settings(values)])

        with pytest.raises(ConfigError) as exc_info:
            loader.load()

        assert exc_info.value.config_field == 'atlassian_api_token'
        assert "Atlassian API token is required" in str(exc_info.value)

    def test_first_missing_field_is_reported(self):
        with pytest.raises(ConfigError) as exc_info:
            SettingsLoader([static_settings({})]).load()

        assert exc_info.value.config_field == 'confluence_base_url'

    def test_normalizes_values(self, tmp_path):
        loader = SettingsLoader([static_settings(settings_values(
            tmp_path,
            confluence_base_url="https://example.atlassian.net/",
            confluence_space_key="",
        ))])

        settings = loader.load()

        assert settings.confluence_base_url == "https://example.atlassian.net"
        assert settings.content_root == f"{tmp_path}/"
        assert settings.confluence_space_key is None

    @patch('confluence_publisher.settings.loaders.load_dotenv')
    def test_default_chain_precedence(self, mock_load_dotenv, clean_env, tmp_path):
        """Arguments beat environment, environment beats the config file."""
        config = tmp_path / "config.yaml"
        config.write_text(
            "confluence_base_url: https://file.atlassian.net\n"
            "confluence_parent_id: '1'\n"
            "atlassian_user_name: file-user\n"
            "atlassian_api_token: file-token\n"
        )
        clean_env.setenv("ATLASSIAN_USERNAME", "env-user")
        clean_env.setenv("CONFLUENCE_PARENT_ID", "2")

        loader = SettingsLoader(default_loaders(str(config), {'confluence_parent_id': "3"}))
        settings = loader.load()

        assert settings.confluence_base_url == "https://file.atlassian.net"
        assert settings.atlassian_user_name == "env-user"
        assert settings.confluence_parent_id == "3"
        assert settings.atlassian_api_token == "file-token"

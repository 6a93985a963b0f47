"""Layered settings loading.

Settings come from several sources, each expressed as a partial loader: a
callable returning a dict with zero or more settings fields. SettingsLoader
folds the partial loaders left to right (later sources win per field) and
validates the result:

    1. default_settings()         - baseline defaults
    2. config_file_settings(path) - YAML config file
    3. environment_settings()     - .env file and environment variables
    4. argument_settings(...)     - command-line options

static_settings() wraps a fixed dict for programmatic use and tests.
"""

import logging
import os
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .models import DEFAULT_SETTINGS, ConfluenceSettings

logger = logging.getLogger(__name__)

PartialLoader = Callable[[], Dict[str, Any]]

DEFAULT_CONFIG_FILE = ".confluence-publish.yaml"
CONFIG_FILE_ENV_VAR = "CONFLUENCE_CONFIG_FILE"

# Environment variable per settings field
ENVIRONMENT_VARIABLES = {
    'confluence_base_url': "CONFLUENCE_BASE_URL",
    'confluence_parent_id': "CONFLUENCE_PARENT_ID",
    'confluence_space_key': "CONFLUENCE_SPACE_KEY",
    'atlassian_user_name': "ATLASSIAN_USERNAME",
    'atlassian_api_token': "ATLASSIAN_API_TOKEN",
    'folder_to_publish': "FOLDER_TO_PUBLISH",
    'content_root': "CONFLUENCE_CONTENT_ROOT",
}
FIRST_HEADING_ENV_VAR = "CONFLUENCE_FIRST_HEADING_PAGE_TITLE"

# Required fields with the message used when one is missing
REQUIRED_FIELDS = (
    ('confluence_base_url', "Confluence base URL is required"),
    ('confluence_parent_id', "Confluence parent ID is required"),
    ('atlassian_user_name', "Atlassian user name is required"),
    ('atlassian_api_token', "Atlassian API token is required"),
    ('folder_to_publish', "Folder to publish is required"),
    ('content_root', "Content root is required"),
)


def default_settings() -> Dict[str, Any]:
    """Baseline defaults, with content_root set to the working directory."""
    settings = dict(DEFAULT_SETTINGS)
    settings['content_root'] = settings['content_root'] or os.getcwd()
    return settings


def resolve_config_path(config_path: Optional[str] = None) -> str:
    """Pick the config file: explicit path, then env var, then the default."""
    if config_path:
        return config_path
    return os.environ.get(CONFIG_FILE_ENV_VAR) or os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)


def config_file_settings(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from a YAML config file.

    A missing or unreadable file contributes nothing. Unknown keys and empty
    values are ignored.

    Raises:
        ConfigError: If the file exists but is not a YAML mapping
    """
    path = resolve_config_path(config_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError:
        logger.debug(f"No config file read from {path}")
        return {}

    try:
        config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {path}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config file {path} must contain a YAML mapping")

    logger.debug(f"Loaded config file {path}")
    settings = {
        key: value
        for key, value in config.items()
        if key in DEFAULT_SETTINGS and value not in (None, "")
    }
    # YAML reads bare page IDs as integers
    if isinstance(settings.get('confluence_parent_id'), int):
        settings['confluence_parent_id'] = str(settings['confluence_parent_id'])
    return settings


def environment_settings(dotenv_path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from environment variables (after reading a .env file)."""
    load_dotenv(dotenv_path)

    settings: Dict[str, Any] = {}
    for key, env_var in ENVIRONMENT_VARIABLES.items():
        value = os.environ.get(env_var)
        if value:
            settings[key] = value

    first_heading = os.environ.get(FIRST_HEADING_ENV_VAR)
    if first_heading is not None:
        settings['first_heading_page_title'] = first_heading.strip().lower() == "true"

    return settings


def argument_settings(**values: Any) -> Dict[str, Any]:
    """Settings given as command-line options; None means "not given"."""
    return {
        key: value
        for key, value in values.items()
        if key in DEFAULT_SETTINGS and value is not None and value != ""
    }


def static_settings(values: Dict[str, Any]) -> PartialLoader:
    """Partial loader returning a fixed set of settings."""
    return lambda: dict(values)


def default_loaders(
    config_path: Optional[str] = None,
    arguments: Optional[Dict[str, Any]] = None,
) -> List[PartialLoader]:
    """The standard precedence chain: defaults, config file, environment, arguments."""
    return [
        default_settings,
        partial(config_file_settings, config_path),
        environment_settings,
        partial(argument_settings, **(arguments or {})),
    ]


class SettingsLoader:
    """Combines partial loaders into validated ConfluenceSettings.

    Example:
        >>> loader = SettingsLoader([default_settings, static_settings({...})])
        >>> settings = loader.load()
    """

    def __init__(self, loaders: Optional[Sequence[PartialLoader]] = None):
        """Initialize with partial loaders in precedence order (lowest first).

        Args:
            loaders: Partial loaders; the standard chain when omitted or empty
        """
        self.loaders: List[PartialLoader] = list(loaders) if loaders else default_loaders()

    def load_partial(self) -> Dict[str, Any]:
        """Fold all partial loaders, last write wins per field.

        Values whose type differs from the field's default type are ignored.
        """
        settings: Dict[str, Any] = {}
        for loader in self.loaders:
            for key, value in loader().items():
                if key not in DEFAULT_SETTINGS or value is None:
                    continue
                if not isinstance(value, type(DEFAULT_SETTINGS[key])):
                    logger.warning(
                        f"Ignoring setting '{key}': expected "
                        f"{type(DEFAULT_SETTINGS[key]).__name__}, got {type(value).__name__}"
                    )
                    continue
                settings[key] = value
        return settings

    def load(self) -> ConfluenceSettings:
        """Load and validate complete settings.

        Raises:
            ConfigError: If any required setting is missing
        """
        return self.validate(self.load_partial())

    @staticmethod
    def validate(settings: Dict[str, Any]) -> ConfluenceSettings:
        """Check required fields and normalize values.

        content_root is normalized to end with a path separator.

        Raises:
            ConfigError: Naming the first missing required field
        """
        for key, message in REQUIRED_FIELDS:
            if not settings.get(key):
                raise ConfigError(message, config_field=key)

        content_root = settings['content_root']
        if not content_root.endswith(('/', '\\')):
            content_root = f"{content_root}/"

        return ConfluenceSettings(
            confluence_base_url=settings['confluence_base_url'].rstrip('/'),
            confluence_parent_id=str(settings['confluence_parent_id']),
            atlassian_user_name=settings['atlassian_user_name'],
            atlassian_api_token=settings['atlassian_api_token'],
            folder_to_publish=settings['folder_to_publish'],
            content_root=content_root,
            first_heading_page_title=bool(settings.get('first_heading_page_title', False)),
            confluence_space_key=settings.get('confluence_space_key') or None,
        )

"""Main CLI entry point for the confluence-publish command.

A single command publishes every markdown file below the configured folder
(or one given file) to Confluence. Settings come from the config file,
environment variables and the options below, later sources winning.
"""

import logging
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .. import __version__
from ..confluence_client.api_wrapper import APIWrapper
from ..confluence_client.auth import Authenticator
from ..confluence_client.errors import APIUnreachableError, InvalidCredentialsError, SyncError
from ..file_mapper.filesystem_adaptor import FileSystemAdaptor
from ..processing_plugins import MermaidCliRenderer, MermaidRendererPlugin
from ..processing_plugins.types import ADFProcessingPlugin
from ..publisher.publisher import Publisher
from ..settings.errors import ConfigError
from ..settings.loaders import SettingsLoader, default_loaders
from .models import ExitCode
from .output import OutputHandler

app = typer.Typer(
    name="confluence-publish",
    help="""Publish a folder of Markdown files to Confluence as a page tree.

QUICK START:
  confluence-publish                       # Publish everything in the configured folder
  confluence-publish docs/guide.md         # Republish a single file
  confluence-publish -v 1                  # Show unchanged pages too""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)

APP_LOGGER_NAME = "confluence_publisher"


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the package logger; the root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"confluence-publish_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _default_plugins() -> List[ADFProcessingPlugin]:
    """Mermaid rendering when the mermaid CLI is installed."""
    if shutil.which("mmdc"):
        return [MermaidRendererPlugin(MermaidCliRenderer())]
    logger.debug("mmdc not found - mermaid diagrams are published as code blocks")
    return []


def _run_publish(
    file: Optional[str],
    config: Optional[str],
    arguments: dict,
    logdir: Optional[str],
    verbosity: int,
    no_color: bool,
) -> None:
    """Run the publish operation and exit with its exit code."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        settings_loader = SettingsLoader(default_loaders(config, arguments))
        settings = settings_loader.load()
        api = APIWrapper(Authenticator.from_settings(settings))
        publisher = Publisher(
            FileSystemAdaptor(settings),
            settings_loader,
            api,
            _default_plugins(),
        )
        output.info(f"Publishing to {settings.confluence_base_url} below page {settings.confluence_parent_id}")
        with output.spinner("Publishing pages..."):
            results = publisher.publish(file)

    except ConfigError as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    except InvalidCredentialsError as e:
        logger.error(f"Authentication failed: {e}")
        output.error(f"Authentication failed: {e}")
        raise typer.Exit(ExitCode.AUTH_ERROR)

    except APIUnreachableError as e:
        logger.error(f"Network error: {e}")
        output.error(f"Network error: {e}")
        raise typer.Exit(ExitCode.NETWORK_ERROR)

    except SyncError as e:
        logger.error(f"Publish failed: {e}")
        output.error(f"Publish failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    except Exception as e:
        logger.exception("Unexpected error during publish")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.print_publish_summary(results)

    if any(not result.succeeded for result in results):
        raise typer.Exit(ExitCode.PUBLISH_FAILURES)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def main_command(
    file: Optional[str] = typer.Argument(
        None,
        help="Optional markdown file to publish (publishes only this file)",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Config file (default: $CONFLUENCE_CONFIG_FILE or ./.confluence-publish.yaml)",
        metavar="PATH",
    ),
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="Confluence base URL (e.g. https://company.atlassian.net)",
        metavar="URL",
    ),
    parent_id: Optional[str] = typer.Option(
        None,
        "--parent-id",
        help="ID of the Confluence page to publish below",
        metavar="ID",
    ),
    space_key: Optional[str] = typer.Option(
        None,
        "--space-key",
        help="Fallback space key for pages whose space the API does not report",
        metavar="KEY",
    ),
    user_name: Optional[str] = typer.Option(
        None,
        "--user-name",
        help="Atlassian account email",
    ),
    api_token: Optional[str] = typer.Option(
        None,
        "--api-token",
        help="Atlassian API token",
    ),
    folder: Optional[str] = typer.Option(
        None,
        "--folder",
        help="Folder below the content root whose files are published",
    ),
    content_root: Optional[str] = typer.Option(
        None,
        "--content-root",
        help="Directory searched for markdown files (default: current directory)",
    ),
    first_heading_title: Optional[bool] = typer.Option(
        None,
        "--first-heading-title/--no-first-heading-title",
        help="Use the first level-1 heading as page title",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Publish Markdown files to Confluence.

    \b
    EXIT CODES:
      0  all pages published
      1  configuration or general error
      2  one or more pages failed
      3  authentication failed
      4  Confluence unreachable
    """
    if version:
        typer.echo(f"confluence-publish version {__version__}")
        raise typer.Exit()

    arguments = {
        'confluence_base_url': base_url,
        'confluence_parent_id': parent_id,
        'confluence_space_key': space_key,
        'atlassian_user_name': user_name,
        'atlassian_api_token': api_token,
        'folder_to_publish': folder,
        'content_root': content_root,
        'first_heading_page_title': first_heading_title,
    }
    _run_publish(file, config, arguments, logdir, verbosity, no_color)


def main() -> None:
    """Main entry point for the console script."""
    app()


if __name__ == "__main__":
    main()

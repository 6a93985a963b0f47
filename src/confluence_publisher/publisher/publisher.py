"""Publish a local markdown tree to Confluence.

A run loads settings, resolves the acting account and the top page, builds
the local tree, resolves it against Confluence and then publishes every
page independently and concurrently. A page is only written when its body
or metadata changed, and never when someone else edited it last.
"""

import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from ..adf.equality import adf_equal, is_equal
from ..confluence_client.api_wrapper import APIWrapper
from ..content_converter.markdown_converter import MarkdownTransformer
from ..file_mapper.filesystem_adaptor import LoaderAdaptor
from ..processing_plugins import ALWAYS_ADF_PROCESSING_PLUGINS
from ..processing_plugins.types import (
    ADFProcessingPlugin,
    create_publisher_functions,
    execute_adf_processing_pipeline,
)
from ..settings.loaders import SettingsLoader
from ..settings.models import ConfluenceSettings
from .attachments import current_attachments_from_api
from .errors import (
    ContentTypeConversionError,
    LastUpdatedByAnotherUserError,
    MissingSpaceKeyError,
    PublishError,
)
from .models import FilePublishResult, PublishUnit, UploadAdfFileResult
from .tree_confluence import ensure_all_files_exist_in_confluence
from .tree_local import create_folder_structure

logger = logging.getLogger(__name__)

MAX_WORKERS = 10


class Publisher:
    """Orchestrates publishing of markdown files to Confluence.

    The acting account ID is fetched on the first run and reused for the
    lifetime of the instance.

    Example:
        >>> publisher = Publisher(FileSystemAdaptor(settings), SettingsLoader(), api)
        >>> results = publisher.publish()
    """

    def __init__(
        self,
        adaptor: LoaderAdaptor,
        settings_loader: SettingsLoader,
        api: APIWrapper,
        adf_processing_plugins: Optional[List[ADFProcessingPlugin]] = None,
        transformer: Optional[MarkdownTransformer] = None,
    ):
        """Initialize the publisher.

        Args:
            adaptor: Local file access
            settings_loader: Provides validated settings on every run
            api: Confluence API wrapper
            adf_processing_plugins: Plugins run before the built-in image uploader
            transformer: Markdown to ADF converter; created from settings when omitted
        """
        self.adaptor = adaptor
        self.settings_loader = settings_loader
        self.api = api
        self.adf_processing_plugins: List[ADFProcessingPlugin] = list(adf_processing_plugins or []) + [
            plugin_class() for plugin_class in ALWAYS_ADF_PROCESSING_PLUGINS
        ]
        self.transformer = transformer
        self.my_account_id: Optional[str] = None

    def _get_my_account_id(self) -> str:
        if self.my_account_id is None:
            current_user = self.api.get_current_user()
            self.my_account_id = current_user.get("accountId", "")
            logger.debug(f"Publishing as account {self.my_account_id}")
        return self.my_account_id

    def publish(self, publish_filter: Optional[str] = None) -> List[FilePublishResult]:
        """Publish all discovered files, or only the one at publish_filter.

        Args:
            publish_filter: Absolute path of the single file to publish

        Returns:
            One result per publish unit, in tree (pre-order) order

        Raises:
            ConfigError: If settings are incomplete
            MissingSpaceKeyError: If the top page has no space
            DuplicatePageTitleError: If local page titles collide
            PublishError: If no files were found to publish
            ConfluenceError: If the account or top page cannot be read
        """
        settings = self.settings_loader.load()
        my_account_id = self._get_my_account_id()

        parent_page = self.api.get_content_by_id(
            settings.confluence_parent_id,
            expand=["body.atlas_doc_format", "space"],
        )
        space_key = (parent_page.get("space") or {}).get("key")
        if not space_key:
            raise MissingSpaceKeyError(settings.confluence_parent_id, "Missing Space Key")
        parent_page_id = str(parent_page["id"])

        files = self.adaptor.get_markdown_files_to_upload()
        if not files:
            raise PublishError(f"No markdown files found to publish below {settings.content_root}")

        transformer = self.transformer or MarkdownTransformer(settings.confluence_base_url)
        folder_tree = create_folder_structure(files, settings, transformer)

        units = ensure_all_files_exist_in_confluence(
            self.api,
            self.adaptor,
            folder_tree,
            space_key,
            parent_page_id,
            parent_page_id,
            settings,
        )

        if publish_filter:
            target = os.path.abspath(publish_filter)
            units = [unit for unit in units if unit.file.absolute_file_path == target]

        logger.info(f"Publishing {len(units)} page(s) to space {space_key}")
        with ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
            futures = [
                executor.submit(self._publish_file, unit, my_account_id, settings)
                for unit in units
            ]
            results = [future.result() for future in futures]

        failed = sum(1 for result in results if not result.succeeded)
        logger.info(f"Publish complete: {len(results) - failed} succeeded, {failed} failed")
        return results

    def _publish_file(
        self,
        unit: PublishUnit,
        my_account_id: str,
        settings: ConfluenceSettings,
    ) -> FilePublishResult:
        """Publish one unit, converting any failure into a result."""
        if unit.error is not None:
            return FilePublishResult(node=unit, reason=str(unit.error) or type(unit.error).__name__)

        try:
            upload_result = self._update_page_content(unit, my_account_id)
        except Exception as e:
            logger.error(f"Failed to publish {unit.file.absolute_file_path}: {e}")
            return FilePublishResult(node=unit, reason=str(e) or type(e).__name__)

        logger.debug(
            f"Published {unit.file.absolute_file_path}: content={upload_result.content_result}, "
            f"image={upload_result.image_result}, label={upload_result.label_result}"
        )
        return FilePublishResult(node=unit, successful_upload_result=upload_result)

    def _update_page_content(self, unit: PublishUnit, my_account_id: str) -> UploadAdfFileResult:
        """Update body, metadata, attachments and labels of one page as needed.

        Raises:
            LastUpdatedByAnotherUserError: If someone else edited the page last
            ContentTypeConversionError: If the local and remote content types differ
        """
        adf_file = unit.file
        existing = unit.existing_page

        if unit.last_updated_by != my_account_id:
            raise LastUpdatedByAnotherUserError(my_account_id, unit.last_updated_by)
        if existing.content_type != adf_file.content_type:
            raise ContentTypeConversionError(existing.content_type, adf_file.content_type)

        result = UploadAdfFileResult(adf_file=adf_file)

        current_attachments = current_attachments_from_api(self.api.get_attachments(unit.page_id))
        support_functions = create_publisher_functions(
            self.api,
            self.adaptor,
            unit.page_id,
            adf_file.absolute_file_path,
            current_attachments,
        )
        adf_to_upload = execute_adf_processing_pipeline(
            self.adf_processing_plugins,
            adf_file.contents,
            support_functions,
        )
        if support_functions.uploaded_any:
            result.image_result = "updated"

        existing_details: Dict[str, Any] = {"title": existing.title, "type": existing.content_type}
        new_details: Dict[str, Any] = {"title": adf_file.page_title, "type": adf_file.content_type}
        manage_ancestors = adf_file.content_type != "blogpost" and not adf_file.dont_change_parent_page_id
        if manage_ancestors:
            # Remote ancestors run from the space root; only the managed part is compared
            depth = len(unit.ancestors)
            existing_details["ancestors"] = existing.ancestors[-depth:] if depth else []
            new_details["ancestors"] = list(unit.ancestors)

        if not adf_equal(existing.adf, adf_to_upload) or not is_equal(existing_details, new_details):
            result.content_result = "updated"
            payload: Dict[str, Any] = {
                "id": unit.page_id,
                "type": adf_file.content_type,
                "title": adf_file.page_title,
                "version": {"number": unit.version + 1},
                "body": {
                    "atlas_doc_format": {
                        "value": json.dumps(adf_to_upload),
                        "representation": "atlas_doc_format",
                    },
                },
            }
            if manage_ancestors and unit.ancestors:
                payload["ancestors"] = [{"id": unit.ancestors[-1]}]
            self.api.update_content(unit.page_id, payload)
            logger.info(f"Updated page {unit.page_id} ({adf_file.page_title})")

        if self._update_labels(unit.page_id, adf_file.tags):
            result.label_result = "updated"

        return result

    def _update_labels(self, page_id: str, tags: List[str]) -> bool:
        """Make the page's labels match tags.

        Returns:
            True if any label was added or removed
        """
        changed = False
        current_labels = self.api.get_labels(page_id)

        for label in current_labels:
            if label.get("label") not in tags:
                self.api.remove_label(page_id, label.get("name", label.get("label")))
                changed = True

        existing = {label.get("label") for label in current_labels}
        labels_to_add: List[Dict[str, str]] = []
        for tag in tags:
            if tag not in existing and all(item["name"] != tag for item in labels_to_add):
                labels_to_add.append({"prefix": "global", "name": tag})

        if labels_to_add:
            self.api.add_labels(page_id, labels_to_add)
            changed = True

        return changed

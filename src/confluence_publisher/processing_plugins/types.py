"""Plugin protocol and pipeline driver for ADF processing.

A plugin rewrites one page's ADF in three stages:

- extract(adf, functions): collect work items, no side effects
- transform(items, functions): do the expensive work (render, upload)
- load(adf, transformed, functions): return the rewritten ADF, no side effects

extract and transform run concurrently across plugins; load is folded over
the plugins in registration order so overlapping rewrites compose
deterministically.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Protocol, TypeVar

from ..confluence_client.api_wrapper import APIWrapper
from ..file_mapper.filesystem_adaptor import LoaderAdaptor
from ..publisher.attachments import upload_buffer, upload_file
from ..publisher.models import CurrentAttachments, UploadedImageData

logger = logging.getLogger(__name__)

AdfNode = Dict[str, Any]

E = TypeVar("E")
T = TypeVar("T")


class PublisherFunctions:
    """Upload helpers bound to one page, handed to plugins.

    Every attachment result is recorded so the publisher can tell whether
    anything was actually uploaded.
    """

    def __init__(
        self,
        api: APIWrapper,
        adaptor: LoaderAdaptor,
        page_id: str,
        page_file_path: str,
        current_attachments: CurrentAttachments,
    ):
        self.api = api
        self.adaptor = adaptor
        self.page_id = page_id
        self.page_file_path = page_file_path
        self.current_attachments = current_attachments
        self.results: List[UploadedImageData] = []
        self._lock = threading.Lock()

    def _record(self, result: Optional[UploadedImageData]) -> Optional[UploadedImageData]:
        if result is not None:
            with self._lock:
                self.results.append(result)
        return result

    def upload_buffer(self, upload_filename: str, buffer: bytes) -> Optional[UploadedImageData]:
        return self._record(upload_buffer(
            self.api, self.page_id, upload_filename, buffer, self.current_attachments
        ))

    def upload_file(self, file_name_to_upload: str) -> Optional[UploadedImageData]:
        return self._record(upload_file(
            self.api,
            self.adaptor,
            self.page_id,
            self.page_file_path,
            file_name_to_upload,
            self.current_attachments,
        ))

    @property
    def uploaded_any(self) -> bool:
        return any(result.status == "uploaded" for result in self.results)


class ADFProcessingPlugin(Protocol[E, T]):
    """Three-stage ADF rewrite: extract, transform, load."""

    def extract(self, adf: AdfNode, support_functions: PublisherFunctions) -> E:
        ...

    def transform(self, items: E, support_functions: PublisherFunctions) -> T:
        ...

    def load(self, adf: AdfNode, transformed_items: T, support_functions: PublisherFunctions) -> AdfNode:
        ...


def create_publisher_functions(
    api: APIWrapper,
    adaptor: LoaderAdaptor,
    page_id: str,
    page_file_path: str,
    current_attachments: CurrentAttachments,
) -> PublisherFunctions:
    return PublisherFunctions(api, adaptor, page_id, page_file_path, current_attachments)


def execute_adf_processing_pipeline(
    plugins: List[ADFProcessingPlugin],
    adf: AdfNode,
    support_functions: PublisherFunctions,
) -> AdfNode:
    """Run extract and transform for all plugins concurrently, then fold load.

    Raises:
        Exception: The first plugin failure, in plugin order
    """
    if not plugins:
        return adf

    with ThreadPoolExecutor(max_workers=len(plugins)) as executor:
        extract_futures = [
            executor.submit(plugin.extract, adf, support_functions) for plugin in plugins
        ]
        extracted = [future.result() for future in extract_futures]

        transform_futures = [
            executor.submit(plugin.transform, items, support_functions)
            for plugin, items in zip(plugins, extracted)
        ]
        transformed = [future.result() for future in transform_futures]

    result = adf
    for plugin, items in zip(plugins, transformed):
        result = plugin.load(result, items, support_functions)
    return result

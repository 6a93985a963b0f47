"""Publish decision engine: local tree, remote tree, attachments and results.

The Publisher orchestrator lives in confluence_publisher.publisher.publisher;
it is not re-exported here because the processing plugins import this
package's attachment helpers.
"""

from .errors import (
    AttachmentUploadError,
    ContentTypeConversionError,
    CrossTreeCollisionError,
    DuplicatePageTitleError,
    LastUpdatedByAnotherUserError,
    MissingSpaceKeyError,
    PublishError,
    UnresolvedParentError,
)
from .models import (
    ConfluenceTreeNode,
    CurrentAttachment,
    FilePublishResult,
    LocalAdfFileTreeNode,
    PublishUnit,
    UploadAdfFileResult,
    UploadedImageData,
)

__all__ = [
    'AttachmentUploadError',
    'ContentTypeConversionError',
    'CrossTreeCollisionError',
    'DuplicatePageTitleError',
    'LastUpdatedByAnotherUserError',
    'MissingSpaceKeyError',
    'PublishError',
    'UnresolvedParentError',
    'ConfluenceTreeNode',
    'CurrentAttachment',
    'FilePublishResult',
    'LocalAdfFileTreeNode',
    'PublishUnit',
    'UploadAdfFileResult',
    'UploadedImageData',
]

"""Exceptions raised while publishing a page tree."""

from ..confluence_client.errors import SyncError


class PublishError(SyncError):
    """Base exception for publish decision errors."""
    pass


class DuplicatePageTitleError(PublishError):
    """Raised when two local documents resolve to the same page title."""

    def __init__(self, title: str):
        super().__init__(f'Page title "{title}" is not unique across all files.')
        self.title = title


class MissingSpaceKeyError(PublishError):
    """Raised when a page's space cannot be determined."""

    def __init__(self, page_id: str, detail: str = ""):
        message = f"Unable to determine the space of page {page_id}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.page_id = page_id


class CrossTreeCollisionError(PublishError):
    """Raised when a title matches a page outside the managed page tree."""

    def __init__(self, title: str):
        super().__init__(
            f"{title} is trying to overwrite a page outside the page tree from the selected top page"
        )
        self.title = title


class LastUpdatedByAnotherUserError(PublishError):
    """Raised when the remote page was last edited by someone else."""

    def __init__(self, my_account_id: str, last_updated_by: str):
        super().__init__(
            "Page last updated by another user. Won't publish over their changes. "
            f"MyAccountId: {my_account_id}, Last Updated By: {last_updated_by}"
        )
        self.my_account_id = my_account_id
        self.last_updated_by = last_updated_by


class ContentTypeConversionError(PublishError):
    """Raised when the local and remote content types differ."""

    def __init__(self, from_type: str, to_type: str):
        super().__init__(f"Cannot convert between content types. From {from_type} to {to_type}")
        self.from_type = from_type
        self.to_type = to_type


class AttachmentUploadError(PublishError):
    """Raised when Confluence does not confirm an attachment upload."""

    def __init__(self, filename: str, page_id: str):
        super().__init__(f"Issue uploading {filename} to page {page_id}")
        self.filename = filename
        self.page_id = page_id


class UnresolvedParentError(PublishError):
    """Raised for pages whose parent page could not be resolved."""

    def __init__(self, title: str, parent_title: str):
        super().__init__(f"Parent page \"{parent_title}\" of \"{title}\" could not be resolved")
        self.title = title
        self.parent_title = parent_title

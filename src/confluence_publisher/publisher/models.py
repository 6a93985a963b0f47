"""Data models for the publish run: trees, publish units and results."""

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from ..models.confluence_page import ConfluencePage
from ..models.local_adf_file import LocalAdfFile

ChangeResult = Literal["same", "updated"]
AttachmentStatus = Literal["existing", "uploaded"]


@dataclass
class LocalAdfFileTreeNode:
    """Folder or file in the local hierarchy.

    Attributes:
        name: Path segment (the common root path for the tree root)
        children: Child nodes
        file: Document for this node; assigned to every node once the tree is built
        directory: Absolute directory this node stands for (folders only)
    """
    name: str
    children: List['LocalAdfFileTreeNode'] = field(default_factory=list)
    file: Optional[LocalAdfFile] = None
    directory: Optional[str] = None


@dataclass
class ConfluenceTreeNode:
    """A local node matched to its remote page.

    Attributes:
        file: Local document
        page_id: Resolved Confluence page ID (empty when resolution failed)
        space_key: Space the page lives in
        page_url: Canonical page URL
        version: Remote version number (0 for the synthetic root)
        last_updated_by: Account ID of the last remote editor
        existing_page: Snapshot of the remote page before publishing
        children: Resolved child nodes
        error: Resolution failure; set instead of the remote fields
    """
    file: LocalAdfFile
    page_id: str = ""
    space_key: str = ""
    page_url: str = ""
    version: int = 0
    last_updated_by: str = ""
    existing_page: Optional[ConfluencePage] = None
    children: List['ConfluenceTreeNode'] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass
class PublishUnit:
    """One flattened page, processed independently of all others.

    Attributes:
        file: Local document (contents already link-rewritten)
        page_id: Resolved Confluence page ID
        space_key: Space the page lives in
        page_url: Canonical page URL
        version: Remote version number
        last_updated_by: Account ID of the last remote editor
        existing_page: Snapshot of the remote page before publishing
        ancestors: Ancestor page IDs from the top page down, excluding this page
        error: Resolution failure carried from the remote tree
    """
    file: LocalAdfFile
    page_id: str
    space_key: str
    page_url: str
    version: int
    last_updated_by: str
    existing_page: Optional[ConfluencePage]
    ancestors: List[str] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass
class UploadedImageData:
    """Attachment as referenced from ADF media nodes."""
    filename: str
    id: str
    collection: str
    width: int
    height: int
    status: AttachmentStatus


@dataclass
class CurrentAttachment:
    """Attachment already present on a page, keyed by upload filename."""
    filehash: str
    attachment_id: str
    collection_name: str


CurrentAttachments = Dict[str, CurrentAttachment]


@dataclass
class UploadAdfFileResult:
    """What changed when a page was published."""
    adf_file: LocalAdfFile
    content_result: ChangeResult = "same"
    image_result: ChangeResult = "same"
    label_result: ChangeResult = "same"


@dataclass
class FilePublishResult:
    """Outcome of one publish unit: either an upload result or a failure reason."""
    node: PublishUnit
    successful_upload_result: Optional[UploadAdfFileResult] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.successful_upload_result is not None

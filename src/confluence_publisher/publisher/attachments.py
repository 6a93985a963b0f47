"""Content-hash based attachment upload.

Every upload stores the MD5 of its bytes as the attachment comment. Before
uploading, the page's current attachments are checked for the same upload
filename with the same hash; a match is reused without any network call.
"""

import hashlib
import logging
from io import BytesIO
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote

from PIL import Image, UnidentifiedImageError

from ..confluence_client.api_wrapper import APIWrapper
from ..file_mapper.filesystem_adaptor import LoaderAdaptor
from .errors import AttachmentUploadError
from .models import CurrentAttachment, CurrentAttachments, UploadedImageData

logger = logging.getLogger(__name__)


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def image_size(data: bytes) -> Tuple[int, int]:
    """Width and height of an image, (0, 0) if the bytes are not an image."""
    try:
        with Image.open(BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, ValueError):
        return 0, 0


def current_attachments_from_api(attachments: Any) -> CurrentAttachments:
    """Index attachment records by title.

    Args:
        attachments: Attachment records as returned by APIWrapper.get_attachments
    """
    index: CurrentAttachments = {}
    for attachment in attachments:
        extensions = attachment.get("extensions") or {}
        metadata = attachment.get("metadata") or {}
        index[attachment.get("title", "")] = CurrentAttachment(
            filehash=metadata.get("comment", ""),
            attachment_id=extensions.get("fileId", ""),
            collection_name=extensions.get("collectionName", ""),
        )
    return index


def _upload(
    api: APIWrapper,
    page_id: str,
    upload_filename: str,
    data: bytes,
    filehash: str,
    content_type: str,
) -> Dict[str, Any]:
    response = api.upload_attachment(
        page_id,
        upload_filename,
        data,
        comment=filehash,
        content_type=content_type,
    )
    extensions = response.get("extensions") or {}
    if not extensions.get("fileId"):
        raise AttachmentUploadError(upload_filename, page_id)
    return response


def _collection(response: Dict[str, Any], page_id: str) -> str:
    container_id = (response.get("container") or {}).get("id") or page_id
    return f"contentId-{container_id}"


def upload_buffer(
    api: APIWrapper,
    page_id: str,
    upload_filename: str,
    buffer: bytes,
    current_attachments: CurrentAttachments,
) -> UploadedImageData:
    """Upload in-memory PNG bytes under upload_filename unless already present.

    Raises:
        AttachmentUploadError: If Confluence does not confirm the upload
    """
    filehash = md5_hex(buffer)
    width, height = image_size(buffer)

    existing = current_attachments.get(upload_filename)
    if existing and existing.filehash == filehash:
        logger.debug(f"Attachment {upload_filename} unchanged on page {page_id}")
        return UploadedImageData(
            filename=upload_filename,
            id=existing.attachment_id,
            collection=existing.collection_name,
            width=width,
            height=height,
            status="existing",
        )

    response = _upload(api, page_id, upload_filename, buffer, filehash, "image/png")
    uploaded = UploadedImageData(
        filename=upload_filename,
        id=response["extensions"]["fileId"],
        collection=_collection(response, page_id),
        width=width,
        height=height,
        status="uploaded",
    )
    current_attachments[upload_filename] = CurrentAttachment(filehash, uploaded.id, uploaded.collection)
    logger.info(f"Uploaded attachment {upload_filename} to page {page_id}")
    return uploaded


def upload_file(
    api: APIWrapper,
    adaptor: LoaderAdaptor,
    page_id: str,
    page_file_path: str,
    file_name_to_upload: str,
    current_attachments: CurrentAttachments,
) -> Optional[UploadedImageData]:
    """Upload a file referenced from a page unless already present.

    The file is read through the adaptor, retrying once with the name
    percent-decoded. The upload filename combines the MD5 of the resolved
    path with the file name, so one file referenced from several pages or
    spellings maps to one attachment per page.

    Returns:
        Attachment data, or None if the file cannot be read

    Raises:
        AttachmentUploadError: If Confluence does not confirm the upload
    """
    file_name = file_name_to_upload
    binary = adaptor.read_binary(file_name, page_file_path)
    if binary is None:
        file_name = unquote(file_name)
        binary = adaptor.read_binary(file_name, page_file_path)
    if binary is None:
        logger.warning(f"Attachment {file_name_to_upload} referenced from {page_file_path} not found")
        return None

    filehash = md5_hex(binary.contents)
    upload_filename = f"{md5_hex(binary.file_path.encode('utf-8'))}-{binary.filename}"
    width, height = image_size(binary.contents)

    existing = current_attachments.get(upload_filename)
    if existing and existing.filehash == filehash:
        logger.debug(f"Attachment {upload_filename} unchanged on page {page_id}")
        return UploadedImageData(
            filename=file_name,
            id=existing.attachment_id,
            collection=existing.collection_name,
            width=width,
            height=height,
            status="existing",
        )

    response = _upload(api, page_id, upload_filename, binary.contents, filehash, binary.mime_type)
    uploaded = UploadedImageData(
        filename=file_name,
        id=response["extensions"]["fileId"],
        collection=_collection(response, page_id),
        width=width,
        height=height,
        status="uploaded",
    )
    current_attachments[upload_filename] = CurrentAttachment(filehash, uploaded.id, uploaded.collection)
    logger.info(f"Uploaded attachment {binary.filename} to page {page_id}")
    return uploaded

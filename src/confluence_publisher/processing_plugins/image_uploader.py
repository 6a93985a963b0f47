"""Upload local images referenced by media nodes."""

import logging
from typing import Dict, List, Optional

from ..adf.traverse import filter_nodes, traverse
from ..publisher.models import UploadedImageData
from .types import AdfNode, PublisherFunctions

logger = logging.getLogger(__name__)

ImageMap = Dict[str, Optional[UploadedImageData]]


def _is_local_media(node: AdfNode) -> bool:
    attrs = node.get("attrs") or {}
    return node.get("type") == "media" and attrs.get("type") == "file" and bool(attrs.get("url"))


def _reference(url: str) -> str:
    """Path part of a file:// media URL."""
    return url.split("://", 1)[1] if "://" in url else url


class ImageUploaderPlugin:
    """Uploads images referenced as file:// media and points the media at the attachment.

    Media whose file cannot be found keeps its URL and is left unchanged.
    """

    def extract(self, adf: AdfNode, support_functions: PublisherFunctions) -> List[str]:
        urls: List[str] = []
        for node in filter_nodes(adf, _is_local_media):
            url = node["attrs"]["url"]
            if url not in urls:
                urls.append(url)
        return urls

    def transform(self, urls: List[str], support_functions: PublisherFunctions) -> ImageMap:
        image_map: ImageMap = {}
        for url in urls:
            image_map[url] = support_functions.upload_file(_reference(url))
        return image_map

    def load(self, adf: AdfNode, image_map: ImageMap, support_functions: PublisherFunctions) -> AdfNode:
        def replace_media(node: AdfNode, _parent: Optional[AdfNode]) -> Optional[AdfNode]:
            if not _is_local_media(node):
                return None
            uploaded = image_map.get(node["attrs"]["url"])
            if uploaded is None:
                return None

            attrs = dict(node["attrs"])
            del attrs["url"]
            attrs.update({
                "type": "file",
                "collection": uploaded.collection,
                "id": uploaded.id,
                "width": uploaded.width,
                "height": uploaded.height,
            })
            return {**node, "attrs": attrs}

        return traverse(adf, {"media": replace_media})

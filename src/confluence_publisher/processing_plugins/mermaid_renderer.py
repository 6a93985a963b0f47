"""Render mermaid code blocks to images and embed them as attachments."""

import hashlib
import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from ..adf.traverse import filter_nodes, traverse
from ..confluence_client.errors import ConversionError
from ..publisher.models import UploadedImageData
from .types import AdfNode, PublisherFunctions

logger = logging.getLogger(__name__)

MISSING_CHART = "flowchart LR\nid1[Missing Chart]"
MMDC_TIMEOUT = 60

ImageMap = Dict[str, Optional[UploadedImageData]]


@dataclass(frozen=True)
class ChartData:
    """A mermaid chart and the attachment name of its rendering."""
    name: str
    data: str


def get_mermaid_file_name(mermaid_content: Optional[str]) -> ChartData:
    """Name rendered charts by content hash, so unchanged charts keep their attachment."""
    mermaid_text = mermaid_content if mermaid_content is not None else MISSING_CHART
    digest = hashlib.md5(mermaid_text.encode("utf-8")).hexdigest()
    return ChartData(name=f"RenderedMermaidChart-{digest}.png", data=mermaid_text)


def _is_mermaid(node: AdfNode) -> bool:
    return node.get("type") == "codeBlock" and (node.get("attrs") or {}).get("language") == "mermaid"


def _code_text(node: AdfNode) -> Optional[str]:
    content = node.get("content") or []
    return content[0].get("text") if content else None


class MermaidRenderer(Protocol):
    def capture_mermaid_charts(self, charts: List[ChartData]) -> Dict[str, bytes]:
        """Render charts to PNG bytes keyed by chart name."""
        ...


class MermaidCliRenderer:
    """Renders charts with the mermaid CLI (mmdc)."""

    def __init__(self, mmdc_path: Optional[str] = None):
        """Initialize and verify mmdc is available.

        Raises:
            ConversionError: If mmdc is not found
        """
        self.mmdc_path = mmdc_path or shutil.which("mmdc")
        if not self.mmdc_path:
            raise ConversionError(
                "Mermaid CLI not found. Install: npm install -g @mermaid-js/mermaid-cli"
            )

    def capture_mermaid_charts(self, charts: List[ChartData]) -> Dict[str, bytes]:
        """Render each chart to PNG.

        Raises:
            ConversionError: If mmdc fails or times out
        """
        images: Dict[str, bytes] = {}
        with tempfile.TemporaryDirectory(prefix="confluence-mermaid-") as temp_dir:
            for index, chart in enumerate(charts):
                input_path = os.path.join(temp_dir, f"chart-{index}.mmd")
                output_path = os.path.join(temp_dir, f"chart-{index}.png")
                with open(input_path, "w", encoding="utf-8") as f:
                    f.write(chart.data)

                try:
                    subprocess.run(
                        [self.mmdc_path, "-i", input_path, "-o", output_path, "-b", "white"],
                        text=True,
                        capture_output=True,
                        check=True,
                        timeout=MMDC_TIMEOUT
                    )
                except subprocess.CalledProcessError as e:
                    raise ConversionError(f"Mermaid rendering failed for {chart.name}: {e.stderr}")
                except subprocess.TimeoutExpired:
                    raise ConversionError(f"Mermaid rendering timed out (>{MMDC_TIMEOUT}s)")

                with open(output_path, "rb") as f:
                    images[chart.name] = f.read()
                logger.debug(f"Rendered mermaid chart {chart.name}")
        return images


class MermaidRendererPlugin:
    """Replaces mermaid code blocks with images of the rendered charts."""

    def __init__(self, mermaid_renderer: MermaidRenderer):
        self.mermaid_renderer = mermaid_renderer

    def extract(self, adf: AdfNode, support_functions: PublisherFunctions) -> List[ChartData]:
        charts: List[ChartData] = []
        for node in filter_nodes(adf, _is_mermaid):
            chart = get_mermaid_file_name(_code_text(node))
            if chart not in charts:
                charts.append(chart)
        return charts

    def transform(self, charts: List[ChartData], support_functions: PublisherFunctions) -> ImageMap:
        image_map: ImageMap = {}
        if not charts:
            return image_map

        for name, image in self.mermaid_renderer.capture_mermaid_charts(charts).items():
            image_map[name] = support_functions.upload_buffer(name, image)
        return image_map

    def load(self, adf: AdfNode, image_map: ImageMap, support_functions: PublisherFunctions) -> AdfNode:
        def replace_chart(node: AdfNode, _parent: Optional[AdfNode]) -> Optional[AdfNode]:
            if not _is_mermaid(node):
                return None
            mermaid_content = _code_text(node)
            if not mermaid_content:
                return None
            uploaded = image_map.get(get_mermaid_file_name(mermaid_content).name)
            if uploaded is None:
                return None

            attrs = {key: value for key, value in node["attrs"].items() if key != "language"}
            attrs["layout"] = "center"
            return {
                "type": "mediaSingle",
                "attrs": attrs,
                "content": [{
                    "type": "media",
                    "attrs": {
                        "type": "file",
                        "collection": uploaded.collection,
                        "id": uploaded.id,
                        "width": uploaded.width,
                        "height": uploaded.height,
                    },
                }],
            }

        return traverse(adf, {"codeBlock": replace_chart})

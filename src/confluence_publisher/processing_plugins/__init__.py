"""ADF processing plugins run on every page before publishing."""

from .image_uploader import ImageUploaderPlugin
from .mermaid_renderer import (
    ChartData,
    MermaidCliRenderer,
    MermaidRenderer,
    MermaidRendererPlugin,
    get_mermaid_file_name,
)
from .types import (
    ADFProcessingPlugin,
    PublisherFunctions,
    create_publisher_functions,
    execute_adf_processing_pipeline,
)

# Plugins appended after any caller-supplied plugins on every publish
ALWAYS_ADF_PROCESSING_PLUGINS = [ImageUploaderPlugin]

__all__ = [
    'ImageUploaderPlugin',
    'ChartData',
    'MermaidCliRenderer',
    'MermaidRenderer',
    'MermaidRendererPlugin',
    'get_mermaid_file_name',
    'ADFProcessingPlugin',
    'PublisherFunctions',
    'create_publisher_functions',
    'execute_adf_processing_pipeline',
    'ALWAYS_ADF_PROCESSING_PLUGINS',
]

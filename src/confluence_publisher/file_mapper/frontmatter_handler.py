"""YAML frontmatter parsing and generation for markdown files.

Frontmatter holds the per-page publish settings (see page_config) and the
confluence_page_id written back after a page is first resolved, so later
runs look pages up by id instead of by title.
"""

import re
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import FrontmatterError


class FrontmatterHandler:
    """Handles YAML frontmatter operations for markdown files.

    Frontmatter format:
        - A YAML mapping between two '---' lines at the very start of the file
        - No frontmatter: treated as an empty mapping

    When values are updated, all other user fields and the markdown body are
    preserved; keys set to None are removed.
    """

    # Regex pattern to match YAML frontmatter (between --- delimiters)
    FRONTMATTER_PATTERN = re.compile(
        r'^---\s*\n(.*?)\n---\s*\n',
        re.DOTALL
    )

    # Maximum allowed depth for YAML structures to prevent DoS attacks
    MAX_YAML_DEPTH = 10

    @classmethod
    def _validate_yaml_depth(cls, obj, current_depth: int = 0, max_depth: int = MAX_YAML_DEPTH) -> None:
        """Validate that YAML structure depth doesn't exceed maximum.

        Args:
            obj: YAML object (dict, list, or primitive)
            current_depth: Current nesting depth
            max_depth: Maximum allowed depth

        Raises:
            FrontmatterError: If depth exceeds maximum
        """
        if current_depth > max_depth:
            raise FrontmatterError(
                "<yaml>",
                f"YAML structure exceeds maximum depth of {max_depth}"
            )

        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, current_depth + 1, max_depth)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, current_depth + 1, max_depth)

    @classmethod
    def extract_frontmatter_and_content(
        cls,
        content: str,
        file_path: str = "<unknown>",
    ) -> Tuple[Dict[str, Any], str]:
        """Extract frontmatter dict and content separately.

        Args:
            content: Full markdown content including frontmatter
            file_path: Path used in error messages

        Returns:
            Tuple of (frontmatter_dict, markdown_content).
            Returns ({}, content) if no frontmatter found.

        Raises:
            FrontmatterError: If frontmatter is malformed or has invalid YAML
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        frontmatter_str = match.group(1)
        markdown_content = content[match.end():]

        try:
            frontmatter = yaml.safe_load(frontmatter_str)
        except yaml.YAMLError as e:
            raise FrontmatterError(
                file_path,
                f"Invalid YAML syntax: {str(e)}"
            )

        if frontmatter is None:
            return {}, markdown_content

        if not isinstance(frontmatter, dict):
            raise FrontmatterError(
                file_path,
                f"Frontmatter must be a YAML dictionary, got {type(frontmatter).__name__}"
            )

        try:
            cls._validate_yaml_depth(frontmatter)
        except FrontmatterError as e:
            # Re-raise with correct file path
            raise FrontmatterError(file_path, e.message)

        return frontmatter, markdown_content

    @classmethod
    def generate(cls, frontmatter: Dict[str, Any], markdown_content: str) -> str:
        """Generate markdown content with YAML frontmatter.

        Args:
            frontmatter: Frontmatter fields in output order
            markdown_content: Markdown body

        Returns:
            Full markdown content; the body alone when frontmatter is empty
        """
        if not frontmatter:
            return markdown_content

        yaml_str = yaml.safe_dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        return f"---\n{yaml_str}---\n{markdown_content}"

    @classmethod
    def update_values(
        cls,
        content: str,
        values: Dict[str, Optional[Any]],
        file_path: str = "<unknown>",
    ) -> str:
        """Set or remove frontmatter fields, keeping everything else.

        Args:
            content: Full markdown content including frontmatter
            values: Fields to set; a value of None removes the field
            file_path: Path used in error messages

        Returns:
            Updated markdown content
        """
        frontmatter, markdown_content = cls.extract_frontmatter_and_content(content, file_path)
        updated = dict(frontmatter)
        for key, value in values.items():
            if value is None:
                updated.pop(key, None)
            else:
                updated[key] = value
        return cls.generate(updated, markdown_content)

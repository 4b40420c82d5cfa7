"""Skill document schema and frontmatter parsing.

This module defines Pydantic models for SKILL.md documents and the parser
that splits a document into its YAML header and markdown body.

The SKILL.md format follows this structure:
```yaml
---
name: skill-name
description: Brief description of the skill
license: MIT
metadata:
  author: someone
  version: "1.0"
---

# Skill Documentation
Markdown instructions for using the skill...
```

Header scalars are always read as strings. The only nesting allowed is a
single-level map under a key (used for ``metadata``). Headers that are not
valid YAML, such as ``description: Use when: ...``, are read line by line
as ``key: value`` pairs instead.
"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from skillhub.errors import InvalidSkillError, SkillManifestError

logger = logging.getLogger(__name__)

SKILL_FILE_NAME = "SKILL.md"

_METADATA_KEYS = {"name", "description", "license", "compatibility", "allowed-tools"}

_FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)(.*)", re.DOTALL
)


class ParsedDocument(BaseModel):
    """Header and body of a skill document."""

    frontmatter: dict[str, Any] = Field(default_factory=dict)
    body: str = ""


class SkillMetadata(BaseModel):
    """Pydantic model for SKILL.md frontmatter.

    Required fields:
        name: Skill identifier
        description: What the skill does and when to use it

    Optional fields:
        license: License identifier (e.g., "MIT")
        compatibility: Environment requirements
        allowed_tools: Space-delimited tool allowlist (``allowed-tools`` in YAML)
        metadata: Open string-to-string map (author, version, ...)

    Example:
        >>> metadata = SkillMetadata(name="pdf", description="Work with PDF files")
    """

    name: str
    description: str
    license: str | None = None
    compatibility: str | None = None
    allowed_tools: str | None = Field(default=None, alias="allowed-tools")
    metadata: dict[str, str] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @property
    def version(self) -> str | None:
        """Version recorded in the metadata map, if any."""
        return self.metadata.get("version")

    @property
    def author(self) -> str | None:
        """Author recorded in the metadata map, if any."""
        return self.metadata.get("author")


class SkillRef(BaseModel):
    """Level 1 reference produced by discovery (body not read)."""

    name: str
    description: str
    path: Path


class Skill(BaseModel):
    """Level 2 fully loaded skill.

    Instances are frozen; reloading re-reads the document from disk.
    """

    metadata: SkillMetadata
    body: str
    path: Path
    skill_md_path: Path

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        return self.metadata.name


class SkillResources(BaseModel):
    """File names found in a skill's resource subdirectories."""

    scripts: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)
    assets: list[str] = Field(default_factory=list)


def _normalize_value(key: str, value: Any, nested: bool = False) -> Any:
    """Coerce a loaded YAML node into the supported header grammar."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        if nested or not all(isinstance(item, str) for item in value):
            raise SkillManifestError(f"Unsupported nested list under '{key}' in frontmatter")
        return " ".join(item.strip() for item in value)
    if isinstance(value, dict):
        if nested:
            raise SkillManifestError(
                f"Frontmatter key '{key}' nests deeper than one level"
            )
        return {
            str(sub_key): _normalize_value(f"{key}.{sub_key}", sub_value, nested=True)
            for sub_key, sub_value in value.items()
        }
    return str(value)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_key_values(header: str) -> dict[str, Any]:
    """Parse a header line by line as ``key: value`` pairs.

    Used when the header is not valid YAML but still follows the simple
    grammar (for example ``description: Use when: ...``). A bare ``key:``
    followed by indented ``sub: value`` lines becomes a one-level map.

    Raises:
        SkillManifestError: If a line is not a key/value pair or nesting is malformed
    """
    data: dict[str, Any] = {}
    parent: str | None = None
    nested_indent: int | None = None

    for number, raw in enumerate(header.splitlines(), start=1):
        line = raw.rstrip()
        if not line.strip() or line.lstrip().startswith("#"):
            continue

        indent = len(line) - len(line.lstrip())
        key, sep, value = line.strip().partition(":")
        if not sep or not key.strip():
            raise SkillManifestError(f"Invalid frontmatter line {number}: {line.strip()}")
        key = key.strip()

        if indent == 0:
            data[key] = _unquote(value)
            parent = key if not value.strip() else None
            nested_indent = None
            continue

        if parent is None:
            raise SkillManifestError(
                f"Invalid frontmatter line {number}: indented value without a parent key"
            )
        if nested_indent is None:
            nested_indent = indent
            data[parent] = {}
        elif indent != nested_indent:
            raise SkillManifestError(f"Frontmatter key '{parent}' nests deeper than one level")
        data[parent][key] = _unquote(value)

    return data


def parse_frontmatter(content: str) -> ParsedDocument | None:
    """Split SKILL.md content into frontmatter and body.

    Args:
        content: Full SKILL.md file content

    Returns:
        ParsedDocument, or None if the document has no ``---`` delimited header

    Raises:
        SkillManifestError: If the header is not a valid key/value document
    """
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return None

    header = match.group(1) or ""
    body = (match.group(2) or "").strip()

    try:
        # BaseLoader keeps every scalar a string ("1.0" stays "1.0")
        data = yaml.load(header, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.debug(f"Header is not valid YAML, parsing as key/value lines: {e}")
        data = _parse_key_values(header)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SkillManifestError("YAML frontmatter must be a mapping")

    frontmatter = {str(key): _normalize_value(str(key), value) for key, value in data.items()}
    return ParsedDocument(frontmatter=frontmatter, body=body)


def build_metadata(frontmatter: dict[str, Any]) -> SkillMetadata:
    """Build SkillMetadata from parsed frontmatter.

    Args:
        frontmatter: Normalized header mapping from parse_frontmatter()

    Returns:
        SkillMetadata with required fields populated

    Raises:
        InvalidSkillError: If name or description is missing or empty
    """
    missing = [field for field in ("name", "description") if not frontmatter.get(field)]
    if missing:
        raise InvalidSkillError(f"Missing required field(s): {', '.join(missing)}")

    metadata = frontmatter.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise InvalidSkillError("Field 'metadata' must be a mapping")

    data = {key: value for key, value in frontmatter.items() if key in _METADATA_KEYS}
    data["metadata"] = metadata

    try:
        return SkillMetadata(**data)
    except ValidationError as e:
        raise InvalidSkillError(f"Invalid skill metadata: {e}") from e


def read_skill_document(skill_md_path: Path) -> ParsedDocument:
    """Read and parse a SKILL.md file.

    Raises:
        InvalidSkillError: If the file has no frontmatter or is not UTF-8
        SkillManifestError: If the frontmatter is malformed
    """
    try:
        content = skill_md_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise InvalidSkillError(f"{SKILL_FILE_NAME} must be UTF-8 encoded: {skill_md_path}") from e

    parsed = parse_frontmatter(content)
    if parsed is None:
        raise InvalidSkillError(f"{skill_md_path} has no frontmatter")
    return parsed

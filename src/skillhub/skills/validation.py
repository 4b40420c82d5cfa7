"""Validation of skill metadata and body content.

Errors block a skill from being considered valid. Warnings are advisory
and never change the ``valid`` flag.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from skillhub.config.constants import (
    MAX_BODY_LINES,
    MAX_BODY_TOKENS,
    MAX_COMPATIBILITY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MIN_DESCRIPTION_LENGTH,
    RESERVED_WORDS,
)
from skillhub.skills.manifest import SkillMetadata

NAME_PATTERN = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
_TAG_PATTERN = re.compile(r"<[^>]+>")


class ValidationIssue(BaseModel):
    """Single validation error or warning."""

    field: str
    message: str
    value: Any = None


class ValidationResult(BaseModel):
    """Outcome of a validation pass.

    ``valid`` depends only on ``errors``.
    """

    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Combine two results into a new one."""
        return ValidationResult(
            errors=[*self.errors, *other.errors],
            warnings=[*self.warnings, *other.warnings],
        )


def _as_mapping(metadata: SkillMetadata | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(metadata, SkillMetadata):
        return metadata.model_dump(by_alias=True)
    return metadata


def validate_metadata(metadata: SkillMetadata | Mapping[str, Any]) -> ValidationResult:
    """Validate skill metadata against the naming and length rules.

    Accepts either a SkillMetadata or a raw (possibly partial) frontmatter
    mapping, so documents missing required fields can still be reported.

    Args:
        metadata: Skill metadata to check

    Returns:
        ValidationResult with errors and warnings

    Example:
        >>> validate_metadata({"name": "pdf-tools", "description": "x"}).valid
        True
    """
    data = _as_mapping(metadata)
    result = ValidationResult()
    errors = result.errors
    warnings = result.warnings

    values: dict[str, str] = {}
    for field in ("name", "description", "compatibility"):
        value = data.get(field)
        if value is None or isinstance(value, str):
            values[field] = value or ""
        else:
            errors.append(
                ValidationIssue(field=field, message=f"{field.capitalize()} must be a string")
            )

    name = values.get("name")
    if name == "":
        errors.append(ValidationIssue(field="name", message="Name is required"))
    elif name:
        if len(name) > MAX_NAME_LENGTH:
            errors.append(
                ValidationIssue(
                    field="name",
                    message=f"Name must be {MAX_NAME_LENGTH} characters or less",
                    value=len(name),
                )
            )
        if not NAME_PATTERN.match(name):
            errors.append(
                ValidationIssue(
                    field="name",
                    message=(
                        "Name must contain only lowercase letters, numbers, and hyphens. "
                        "Cannot start/end with hyphen or have consecutive hyphens."
                    ),
                    value=name,
                )
            )
        lowered = name.lower()
        for word in RESERVED_WORDS:
            if word in lowered:
                errors.append(
                    ValidationIssue(
                        field="name",
                        message=f"Name cannot contain reserved word: {word}",
                        value=name,
                    )
                )
        if _TAG_PATTERN.search(name):
            errors.append(
                ValidationIssue(field="name", message="Name cannot contain XML tags", value=name)
            )

    description = values.get("description")
    if description == "":
        errors.append(ValidationIssue(field="description", message="Description is required"))
    elif description:
        if len(description) > MAX_DESCRIPTION_LENGTH:
            errors.append(
                ValidationIssue(
                    field="description",
                    message=f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less",
                    value=len(description),
                )
            )
        if _TAG_PATTERN.search(description):
            errors.append(
                ValidationIssue(field="description", message="Description cannot contain XML tags")
            )
        if len(description) < MIN_DESCRIPTION_LENGTH:
            warnings.append(
                ValidationIssue(
                    field="description",
                    message=(
                        "Description is short. Consider adding more detail about "
                        "when to use this skill."
                    ),
                    value=len(description),
                )
            )

    compatibility = values.get("compatibility")
    if compatibility and len(compatibility) > MAX_COMPATIBILITY_LENGTH:
        errors.append(
            ValidationIssue(
                field="compatibility",
                message=f"Compatibility must be {MAX_COMPATIBILITY_LENGTH} characters or less",
                value=len(compatibility),
            )
        )

    return result


def validate_body(body: str) -> ValidationResult:
    """Check body size heuristics. Only ever produces warnings."""
    result = ValidationResult()

    if not body or not body.strip():
        result.warnings.append(
            ValidationIssue(
                field="body", message="Skill body is empty. Consider adding instructions."
            )
        )

    line_count = len(body.split("\n"))
    if line_count > MAX_BODY_LINES:
        result.warnings.append(
            ValidationIssue(
                field="body",
                message=(
                    f"Skill body has {line_count} lines. Consider using progressive "
                    "disclosure (splitting into separate files) for optimal performance."
                ),
                value=line_count,
            )
        )

    estimated_tokens = math.ceil(len(body) / 4)
    if estimated_tokens > MAX_BODY_TOKENS:
        result.warnings.append(
            ValidationIssue(
                field="body",
                message=(
                    f"Skill body is large (~{estimated_tokens} tokens). "
                    "This may consume significant context when activated."
                ),
                value=estimated_tokens,
            )
        )

    return result


def format_validation_result(result: ValidationResult, skill_name: str | None = None) -> str:
    """Render a validation result as plain text for display."""
    lines: list[str] = []

    if skill_name:
        lines.append(f"Validation result for: {skill_name}")
        lines.append("─" * 40)

    lines.append("✓ Valid" if result.valid else "✗ Invalid")

    if result.errors:
        lines.append("\nErrors:")
        for error in result.errors:
            lines.append(f"  ✗ {error.field}: {error.message}")

    if result.warnings:
        lines.append("\nWarnings:")
        for warning in result.warnings:
            lines.append(f"  ⚠ {warning.field}: {warning.message}")

    return "\n".join(lines)

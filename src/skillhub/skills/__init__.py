"""Local skill documents: parsing, validation, discovery and export."""

from skillhub.skills.loader import SkillStore
from skillhub.skills.manifest import Skill, SkillMetadata, SkillRef, parse_frontmatter
from skillhub.skills.validation import ValidationResult, validate_body, validate_metadata

__all__ = [
    "Skill",
    "SkillMetadata",
    "SkillRef",
    "SkillStore",
    "ValidationResult",
    "parse_frontmatter",
    "validate_body",
    "validate_metadata",
]

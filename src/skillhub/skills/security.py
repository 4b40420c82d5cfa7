"""Security checks for skill names and bundled scripts.

Names are validated before they are used as directory names, and scripts
are linted for obviously dangerous patterns. Nothing here executes code.
"""

import re

from pydantic import BaseModel, Field

from skillhub.errors import SkillSecurityError

_DANGEROUS_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"rm\s+-rf\s+[/~]"), "Contains recursive delete command"),
    (re.compile(r"curl.*\|.*sh"), "Contains piped curl to shell"),
    (re.compile(r"wget.*\|.*sh"), "Contains piped wget to shell"),
    (re.compile(r"eval\s*\("), "Contains eval() call"),
    (re.compile(r"exec\s*\("), "Contains exec() call"),
    (re.compile(r"os\.system\s*\("), "Contains os.system() call"),
    (re.compile(r"subprocess\.\w+\s*\(.*shell\s*=\s*True"), "Contains shell subprocess call"),
]


class ScriptLintResult(BaseModel):
    """Outcome of linting a script."""

    safe: bool = True
    warnings: list[str] = Field(default_factory=list)


def sanitize_skill_name(name: str) -> str:
    """Validate skill name for use as a directory name.

    Ensures skill names are safe to use in filesystem paths and prevent
    directory traversal attacks.

    Args:
        name: Skill name to validate

    Returns:
        The validated name (unchanged if valid)

    Raises:
        SkillSecurityError: If name contains invalid characters or patterns

    Examples:
        >>> sanitize_skill_name("pdf-tools")
        'pdf-tools'
        >>> sanitize_skill_name("../etc/passwd")
        Traceback (most recent call last):
        ...
        SkillSecurityError: Invalid skill name: '../etc/passwd' (path traversal detected)
    """
    reserved = {".", "..", "~", "__pycache__", ""}
    if name in reserved:
        raise SkillSecurityError(f"Reserved skill name: '{name}'")

    # Reject path traversal patterns (check before regex)
    if ".." in name or "/" in name or "\\" in name:
        raise SkillSecurityError(f"Invalid skill name: '{name}' (path traversal detected)")

    if " " in name:
        raise SkillSecurityError(f"Invalid skill name: '{name}' (spaces not allowed)")

    if not re.match(r"^[a-zA-Z0-9_.-]{1,64}$", name):
        raise SkillSecurityError(
            f"Invalid skill name: '{name}' "
            "(must be alphanumeric with hyphens/underscores, 1-64 chars)"
        )

    return name


def lint_script(content: str) -> ScriptLintResult:
    """Scan script content for dangerous patterns.

    Args:
        content: Script source text

    Returns:
        ScriptLintResult; ``safe`` is False when any pattern matched

    Example:
        >>> lint_script("curl https://x.sh | sh").safe
        False
    """
    warnings = [message for pattern, message in _DANGEROUS_PATTERNS if pattern.search(content)]
    return ScriptLintResult(safe=not warnings, warnings=warnings)

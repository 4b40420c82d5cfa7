"""Custom exceptions for skillhub.

This module defines a hierarchy of domain-specific exceptions shared by the
local skill store, the marketplace resolver and the install pipeline.

Exception Hierarchy:
    SkillError (base)
    ├── SkillNotFoundError
    │   ├── SourceNotFoundError
    │   └── NotInstalledError
    ├── SkillManifestError
    ├── InvalidSkillError
    ├── InvalidInstallError
    ├── AlreadyInstalledError
    ├── DuplicateSourceError
    ├── ProtectedSourceError
    ├── SkillSecurityError
    └── RemoteUnavailableError
"""


class SkillError(Exception):
    """Base exception for all skillhub errors.

    All custom exceptions inherit from this base class, allowing for
    catch-all error handling in the CLI.

    Example:
        >>> try:
        ...     # some skill operation
        ...     pass
        ... except SkillError as e:
        ...     print(f"Skill error: {e}")
    """

    pass


class SkillNotFoundError(SkillError, LookupError):
    """Name or id lookup miss.

    Raised when a skill cannot be resolved in any registered source.

    Example:
        >>> raise SkillNotFoundError("Skill 'pdf' not found in any source")
    """

    pass


class SourceNotFoundError(SkillNotFoundError):
    """Marketplace source id is not registered."""

    pass


class NotInstalledError(SkillNotFoundError):
    """Skill has no entry in the installed manifest."""

    pass


class SkillManifestError(SkillError):
    """SKILL.md frontmatter is malformed.

    Raised when the header block is not a valid key/value document or
    nests deeper than the supported grammar allows.

    Example:
        >>> raise SkillManifestError("Invalid frontmatter line 2: just some text")
    """

    pass


class InvalidSkillError(SkillError):
    """Skill document is missing required metadata (name, description)."""

    pass


class InvalidInstallError(SkillError):
    """Fetched skill failed validation after promotion.

    The promoted directory has already been removed when this is raised.
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class AlreadyInstalledError(SkillError):
    """A skill with the same name is already recorded in the manifest."""

    pass


class DuplicateSourceError(SkillError):
    """A marketplace source with the same id is already registered."""

    pass


class ProtectedSourceError(SkillError):
    """Verified marketplace sources cannot be removed."""

    pass


class SkillSecurityError(SkillError):
    """Skill name or path failed safety checks.

    Raised when a name would escape the install directory or collide with
    a reserved filesystem entry.

    Example:
        >>> raise SkillSecurityError("Invalid skill name: '../etc/passwd'")
    """

    pass


class RemoteUnavailableError(SkillError):
    """Network or remote API failure.

    Raised for transport errors, timeouts and non-success HTTP statuses
    from GitHub, the raw content host or the search API.
    """

    pass

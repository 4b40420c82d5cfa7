"""Scaffolding for new skills."""

from pathlib import Path

from skillhub.errors import InvalidSkillError, SkillError
from skillhub.skills.manifest import SKILL_FILE_NAME
from skillhub.skills.validation import NAME_PATTERN, validate_metadata

RESOURCE_DIRS = ("scripts", "references", "assets")

SKILL_TEMPLATE = """\
---
name: {name}
description: Brief description of what this skill does and when to use it.
license: MIT
metadata:
  author: your-name
  version: "1.0"
---

# {title}

## When to use this skill

Use this skill when the user needs to...

## Instructions

1. First step
2. Second step
3. Third step

## Examples

### Example 1

```
Example input or command
```

## Best practices

- Best practice 1
- Best practice 2
"""


def scaffold_skill(name: str, directory: Path) -> Path:
    """Create ``<directory>/<name>`` with a template SKILL.md and resource folders.

    Args:
        name: Skill name (must satisfy the naming rules)
        directory: Parent directory for the new skill

    Returns:
        Path to the created skill directory

    Raises:
        InvalidSkillError: If the name is not a valid skill name
        SkillError: If the skill directory already exists
    """
    name_errors = [
        issue.message
        for issue in validate_metadata({"name": name, "description": "placeholder"}).errors
        if issue.field == "name"
    ]
    if name_errors or not NAME_PATTERN.match(name):
        raise InvalidSkillError(f"Invalid skill name '{name}': {'; '.join(name_errors)}")

    skill_dir = directory / name
    if skill_dir.exists():
        raise SkillError(f"Directory already exists: {skill_dir}")

    for subdir in RESOURCE_DIRS:
        (skill_dir / subdir).mkdir(parents=True, exist_ok=True)

    title = " ".join(word.capitalize() for word in name.split("-"))
    (skill_dir / SKILL_FILE_NAME).write_text(
        SKILL_TEMPLATE.format(name=name, title=title), encoding="utf-8"
    )
    return skill_dir

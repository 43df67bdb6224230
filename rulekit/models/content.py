"""
Content models.

Plugin content follows the directory layout:
  agents/                 agent definitions (*.md)
  skills/{name}/SKILL.md  skill entry points, plus supplementary files
  commands/               slash commands
  rules/{scope}/          rule files (common/, php/, ...)
  hooks/                  hook configs and scripts
  examples/               example files (no frontmatter)
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from rulekit.lib.typed_errors import ErrorCode

FrontmatterValue = Union[str, list[str]]


class ContentKind(str, Enum):
    """Category of a discovered file, derived from its top-level directory."""

    AGENT = "agent"
    SKILL = "skill"
    COMMAND = "command"
    RULE = "rule"
    HOOK = "hook"
    EXAMPLE = "example"


# Top-level directory name -> kind
KIND_DIRECTORIES: dict[str, ContentKind] = {
    "agents": ContentKind.AGENT,
    "skills": ContentKind.SKILL,
    "commands": ContentKind.COMMAND,
    "rules": ContentKind.RULE,
    "hooks": ContentKind.HOOK,
    "examples": ContentKind.EXAMPLE,
}

# Case-sensitive entry point filename inside skills/{name}/
SKILL_ENTRY_POINT = "SKILL.md"


class ContentItem(BaseModel):
    """One discovered file. Immutable once created."""

    path: Path  # Absolute path on disk
    kind: ContentKind
    frontmatter: dict[str, FrontmatterValue] = Field(default_factory=dict)
    relative_path: str  # POSIX path relative to the discovery root
    scope: Optional[str] = None  # Rule scope directory (rules/{scope}/)
    supplementary: list[Path] = Field(default_factory=list)  # Skill siblings

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        declared = self.frontmatter.get("name")
        if isinstance(declared, str) and declared:
            return declared
        if self.kind == ContentKind.SKILL:
            return self.path.parent.name
        return self.path.stem

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "path": self.relative_path,
            "scope": self.scope,
            "frontmatter": self.frontmatter,
            "supplementary": [str(p) for p in self.supplementary],
        }


class DiscoveryFailure(BaseModel):
    """A file skipped during discovery because its frontmatter did not parse."""

    path: str
    code: ErrorCode
    message: str


class DiscoveryReport(BaseModel):
    """Result of a discovery pass: items by kind plus per-file failures."""

    root: Path
    items: dict[ContentKind, list[ContentItem]]
    failures: list[DiscoveryFailure] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return sum(len(entries) for entries in self.items.values())

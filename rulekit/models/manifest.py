"""
Manifest models.

The manifest lives at {plugin}/.claude-plugin/plugin.json and declares which
content a host should load.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from rulekit.lib.typed_errors import ErrorCode


class Manifest(BaseModel):
    """A validated plugin.json."""

    version: str
    name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[Any] = None
    agents: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    commands: list[str] = Field(default_factory=list)
    hooks: Optional[list[Any]] = None

    model_config = {"frozen": True, "extra": "ignore"}


class ValidationError(BaseModel):
    """One manifest defect."""

    kind: ErrorCode
    field: Optional[str] = None
    value: Optional[Any] = None
    message: str

    def __str__(self) -> str:
        location = f" {self.field}" if self.field else ""
        return f"{self.kind.value}{location}: {self.message}"


class ValidationResult(BaseModel):
    """Outcome of validating a manifest."""

    ok: bool
    errors: list[ValidationError] = Field(default_factory=list)
    manifest: Optional[Manifest] = None

    def errors_of(self, kind: ErrorCode) -> list[ValidationError]:
        return [e for e in self.errors if e.kind == kind]

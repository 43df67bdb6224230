"""
Installer models.
"""

from pathlib import Path

from pydantic import BaseModel, Field


class InstallPlan(BaseModel):
    """Work computed before the installer touches the destination."""

    source_dirs: dict[str, Path]  # Rule set name -> source directory, in copy order
    destination_root: Path
    conflicts: list[str] = Field(default_factory=list)  # Relative to destination_root


class InstallReport(BaseModel):
    """What an install run did."""

    destination_root: Path
    files_copied: list[str] = Field(default_factory=list)  # Relative to destination_root
    conflicts: list[str] = Field(default_factory=list)

    def listing(self) -> list[str]:
        """Absolute paths of installed files, sorted for display."""
        return sorted(str(self.destination_root / rel) for rel in self.files_copied)

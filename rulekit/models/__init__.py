"""
Pydantic models for rulekit.
"""

from rulekit.models.content import (
    ContentItem,
    ContentKind,
    DiscoveryFailure,
    DiscoveryReport,
    KIND_DIRECTORIES,
    SKILL_ENTRY_POINT,
)
from rulekit.models.install import InstallPlan, InstallReport
from rulekit.models.manifest import Manifest, ValidationError, ValidationResult

__all__ = [
    # Content
    "ContentItem",
    "ContentKind",
    "DiscoveryFailure",
    "DiscoveryReport",
    "KIND_DIRECTORIES",
    "SKILL_ENTRY_POINT",
    # Install
    "InstallPlan",
    "InstallReport",
    # Manifest
    "Manifest",
    "ValidationError",
    "ValidationResult",
]

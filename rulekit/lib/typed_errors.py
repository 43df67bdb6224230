"""
Typed errors for discovery, validation, and installation.

Fatal conditions are raised as RulekitError subclasses carrying an ErrorCode.
Manifest defects are not raised; the validator returns them as data so a
caller can fix them in one pass.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ErrorCode(str, Enum):
    """Error codes for programmatic handling."""

    # Manifest
    MALFORMED_MANIFEST = "MalformedManifest"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_FIELD_SHAPE = "InvalidFieldShape"
    AGENT_PATH_MUST_BE_FILE = "AgentPathMustBeFile"
    DUPLICATE_HOOK_DECLARATION = "DuplicateHookDeclaration"
    PATH_NOT_FOUND = "PathNotFound"

    # Discovery
    ROOT_NOT_FOUND = "RootNotFound"
    FILE_UNREADABLE = "FileUnreadable"

    # Frontmatter
    MALFORMED_FRONTMATTER = "MalformedFrontmatter"
    UNSUPPORTED_FRONTMATTER_FEATURE = "UnsupportedFrontmatterFeature"

    # Installer
    SYMLINK_RESOLUTION_ERROR = "SymlinkResolutionError"
    INSTALL_COPY_FAILED = "InstallCopyFailed"


class RulekitError(Exception):
    """Base class for fatal rulekit errors."""

    code: ErrorCode

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        code: Optional[ErrorCode] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        if self.path:
            return f"{self.code.value}: {self.message} ({self.path})"
        return f"{self.code.value}: {self.message}"


class ManifestError(RulekitError):
    """The manifest file could not be read or parsed."""

    code = ErrorCode.MALFORMED_MANIFEST


class RootNotFound(RulekitError):
    """The discovery root is missing or not a directory."""

    code = ErrorCode.ROOT_NOT_FOUND


class FrontmatterError(RulekitError):
    """A file's frontmatter block could not be parsed.

    The code is either MALFORMED_FRONTMATTER or UNSUPPORTED_FRONTMATTER_FEATURE.
    """

    code = ErrorCode.MALFORMED_FRONTMATTER

    def __init__(self, message: str, line: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.line = line

    @classmethod
    def unsupported(cls, feature: str, line: int) -> "FrontmatterError":
        return cls(
            f"Unsupported frontmatter feature on line {line}: {feature}",
            line=line,
            code=ErrorCode.UNSUPPORTED_FRONTMATTER_FEATURE,
        )

    @classmethod
    def malformed(cls, reason: str, line: Optional[int] = None) -> "FrontmatterError":
        if line is not None:
            reason = f"{reason} (line {line})"
        return cls(reason, line=line, code=ErrorCode.MALFORMED_FRONTMATTER)


class SymlinkResolutionError(RulekitError):
    """The installer could not resolve its own invocation path."""

    code = ErrorCode.SYMLINK_RESOLUTION_ERROR


class InstallCopyFailed(RulekitError):
    """A rule set could not be copied to the destination."""

    code = ErrorCode.INSTALL_COPY_FAILED

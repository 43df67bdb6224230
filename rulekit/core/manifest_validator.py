"""
Plugin manifest validation.

Validates {plugin}/.claude-plugin/plugin.json before a host accepts it:

1. version is present and looks like semver
2. agents, commands, skills, hooks are arrays, never bare strings
3. every agents entry is a file under agents/
4. skills and commands entries exist (file or directory)
5. hooks never redeclares hooks/hooks.json, which the host loads by convention

Defects are returned together in a ValidationResult. Only an unreadable or
unparseable manifest short-circuits, as a single MalformedManifest error.
"""

import json
import logging
import os
import posixpath
import re
from pathlib import Path
from typing import Any, Union

from rulekit.core.discovery import classify
from rulekit.lib.typed_errors import ErrorCode, ManifestError
from rulekit.models.content import ContentKind
from rulekit.models.manifest import Manifest, ValidationError, ValidationResult

logger = logging.getLogger(__name__)

MANIFEST_DIR = ".claude-plugin"
MANIFEST_FILENAME = "plugin.json"

# Loaded by the host automatically; declaring it again double-registers hooks
RESERVED_HOOKS_PATH = "./hooks/hooks.json"

SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(-[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?"
    r"(\+[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?$"
)

LIST_FIELDS = ("agents", "commands", "skills", "hooks")
STRING_FIELDS = ("name", "description")


def find_manifest(plugin_root: Union[str, Path]) -> Path:
    """Path of the manifest for a plugin root."""
    return Path(plugin_root) / MANIFEST_DIR / MANIFEST_FILENAME


def plugin_root_for(manifest_path: Path) -> Path:
    """Directory that manifest paths are relative to."""
    parent = manifest_path.parent
    if parent.name == MANIFEST_DIR:
        return parent.parent
    return parent


def load_manifest(manifest_path: Union[str, Path]) -> Any:
    """Read and parse a manifest file.

    Raises ManifestError if the file cannot be read or is not valid JSON.
    """
    path = Path(manifest_path)
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read manifest: {e}", path=path) from e
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(
            f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}",
            path=path,
        ) from e


def validate_manifest_file(manifest_path: Union[str, Path]) -> ValidationResult:
    """Load and validate a manifest file."""
    path = Path(manifest_path)
    try:
        document = load_manifest(path)
    except ManifestError as e:
        logger.warning(f"Malformed manifest {path}: {e.message}")
        return ValidationResult(
            ok=False,
            errors=[ValidationError(
                kind=ErrorCode.MALFORMED_MANIFEST,
                value=str(path),
                message=e.message,
            )],
        )
    return validate(document, plugin_root_for(path))


def validate(document: Any, plugin_root: Union[str, Path]) -> ValidationResult:
    """Validate a parsed manifest document.

    Paths in the manifest are resolved against plugin_root. Never mutates
    the filesystem and never raises for manifest defects.
    """
    if not isinstance(document, dict):
        return ValidationResult(
            ok=False,
            errors=[ValidationError(
                kind=ErrorCode.MALFORMED_MANIFEST,
                value=type(document).__name__,
                message="Manifest must be a JSON object",
            )],
        )

    root = Path(plugin_root)
    errors: list[ValidationError] = []

    errors.extend(_check_version(document))

    shape_errors = _check_shapes(document)
    errors.extend(shape_errors)
    # A field with the wrong shape has no entries to check
    bad_fields = {e.field for e in shape_errors}

    if "agents" not in bad_fields:
        errors.extend(_check_agents(document.get("agents", []), root))
    for field_name in ("skills", "commands"):
        if field_name not in bad_fields:
            errors.extend(_check_paths_exist(field_name, document.get(field_name, []), root))
    if "hooks" not in bad_fields:
        errors.extend(_check_hooks(document.get("hooks", [])))

    if errors:
        logger.debug(f"Manifest has {len(errors)} errors")
        return ValidationResult(ok=False, errors=errors)

    return ValidationResult(ok=True, manifest=Manifest.model_validate(document))


def _check_version(document: dict[str, Any]) -> list[ValidationError]:
    version = document.get("version")
    if version is None:
        return [ValidationError(
            kind=ErrorCode.MISSING_REQUIRED_FIELD,
            field="version",
            message="Missing required field 'version'",
        )]
    if not isinstance(version, str) or not SEMVER_PATTERN.match(version):
        return [ValidationError(
            kind=ErrorCode.INVALID_FIELD_SHAPE,
            field="version",
            value=version,
            message=f"Version {version!r} is not MAJOR.MINOR.PATCH semver",
        )]
    return []


def _check_shapes(document: dict[str, Any]) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for field_name in LIST_FIELDS:
        if field_name in document and not isinstance(document[field_name], list):
            value = document[field_name]
            errors.append(ValidationError(
                kind=ErrorCode.INVALID_FIELD_SHAPE,
                field=field_name,
                value=value,
                message=f"'{field_name}' must be an array, got {type(value).__name__}",
            ))
    for field_name in STRING_FIELDS:
        value = document.get(field_name)
        if value is not None and not isinstance(value, str):
            errors.append(ValidationError(
                kind=ErrorCode.INVALID_FIELD_SHAPE,
                field=field_name,
                value=value,
                message=f"'{field_name}' must be a string, got {type(value).__name__}",
            ))
    return errors


def _check_agents(entries: list[Any], root: Path) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for entry in entries:
        reason = _agent_path_problem(entry, root)
        if reason:
            errors.append(ValidationError(
                kind=ErrorCode.AGENT_PATH_MUST_BE_FILE,
                field="agents",
                value=entry,
                message=reason,
            ))
    return errors


def _agent_path_problem(entry: Any, root: Path) -> str:
    """Why an agents entry is invalid, or "" when it is fine."""
    if not isinstance(entry, str) or not entry:
        return f"Agent entry must be a file path, got {entry!r}"
    if entry.endswith("/") or entry.endswith(os.sep):
        return f"Agent path is a directory reference: {entry}"
    if not Path(entry).suffix:
        return f"Agent path has no file extension: {entry}"

    target = root / entry
    if target.is_dir():
        return f"Agent path is a directory: {entry}"
    if not target.is_file():
        return f"Agent file does not exist: {entry}"
    if classify(root, target) != ContentKind.AGENT:
        return f"Agent file is not inside agents/: {entry}"
    return ""


def _check_paths_exist(field_name: str, entries: list[Any], root: Path) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for entry in entries:
        if not isinstance(entry, str) or not entry:
            errors.append(ValidationError(
                kind=ErrorCode.INVALID_FIELD_SHAPE,
                field=field_name,
                value=entry,
                message=f"'{field_name}' entries must be path strings, got {entry!r}",
            ))
        elif not (root / entry).exists():
            errors.append(ValidationError(
                kind=ErrorCode.PATH_NOT_FOUND,
                field=field_name,
                value=entry,
                message=f"Referenced path does not exist: {entry}",
            ))
    return errors


def _check_hooks(entries: list[Any]) -> list[ValidationError]:
    reserved = _normalize(RESERVED_HOOKS_PATH)
    errors: list[ValidationError] = []
    for entry in entries:
        # Inline hook objects are allowed; only path strings can collide
        if isinstance(entry, str) and _normalize(entry) == reserved:
            errors.append(ValidationError(
                kind=ErrorCode.DUPLICATE_HOOK_DECLARATION,
                field="hooks",
                value=entry,
                message=f"{RESERVED_HOOKS_PATH} is loaded automatically; remove it from 'hooks'",
            ))
    return errors


def _normalize(entry: str) -> str:
    return posixpath.normpath(entry.replace("\\", "/"))

"""
Rule installation.

Rules are not distributed by the plugin host, so they are copied by hand
into the per-user rules directory:

    {source}/rules/common/  -> {dest}/common/
    {source}/rules/php/     -> {dest}/php/

{dest} is $CLAUDE_RULES_DIR, or ~/.claude/rules. Existing files are
overwritten: they are reported as conflicts first, but never block the
install. A failed copy stops the run; rule sets already copied stay in
place, and re-running is safe.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from rulekit.config import DEFAULT_MAX_SYMLINK_HOPS, get_settings
from rulekit.lib.typed_errors import InstallCopyFailed, SymlinkResolutionError
from rulekit.models.install import InstallPlan, InstallReport

logger = logging.getLogger(__name__)

RULES_DIRNAME = "rules"

# Shown in --help
RULE_SET_DESCRIPTIONS = {
    "common": "git workflow, development workflow",
    "php": "coding style, testing, security, performance",
}


# ---------------------------------------------------------------------------
# Self-location
# ---------------------------------------------------------------------------

def resolve_invocation_path(
    path: Union[str, Path],
    max_hops: int = DEFAULT_MAX_SYMLINK_HOPS,
) -> Path:
    """Follow a chain of symlinks from path to the real file.

    Relative link targets are resolved against the directory holding the
    link. Raises SymlinkResolutionError on a cycle, on more than max_hops
    links, or when the chain ends at nothing.
    """
    current = Path(os.path.abspath(path))
    seen: set[str] = set()

    while current.is_symlink():
        key = str(current)
        if key in seen:
            raise SymlinkResolutionError(f"Symlink cycle at {current}", path=path)
        if len(seen) >= max_hops:
            raise SymlinkResolutionError(
                f"Gave up after {max_hops} symlinks", path=path
            )
        seen.add(key)

        try:
            target = Path(os.readlink(current))
        except OSError as e:
            raise SymlinkResolutionError(f"Cannot read link {current}: {e}", path=path) from e
        if not target.is_absolute():
            target = current.parent / target
        current = Path(os.path.abspath(target))

    if not current.exists():
        raise SymlinkResolutionError(f"Link target does not exist: {current}", path=path)

    return current


def locate_source_root(
    invocation_path: Union[str, Path],
    max_hops: int = DEFAULT_MAX_SYMLINK_HOPS,
) -> Path:
    """Directory containing the resolved invocation path."""
    return resolve_invocation_path(invocation_path, max_hops).parent


def default_destination() -> Path:
    """$CLAUDE_RULES_DIR if set, else ~/.claude/rules."""
    return get_settings().destination_root


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def _iter_files(directory: Path) -> Iterator[Path]:
    """Files under directory in a stable order. Symlinked dirs are not followed."""
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for filename in sorted(filenames):
            yield Path(dirpath) / filename


def plan_install(
    source_root: Union[str, Path],
    destination_root: Optional[Union[str, Path]] = None,
    rule_sets: Optional[list[str]] = None,
) -> InstallPlan:
    """Work out what an install would copy and what it would overwrite.

    Touches nothing on disk.
    """
    source_root = Path(source_root)
    destination = Path(destination_root).expanduser() if destination_root else default_destination()
    names = rule_sets if rule_sets is not None else get_settings().rule_sets

    source_dirs = {name: source_root / RULES_DIRNAME / name for name in names}

    conflicts: list[str] = []
    for name in names:
        target = destination / name
        if target.is_dir():
            conflicts.extend(
                existing.relative_to(destination).as_posix()
                for existing in _iter_files(target)
            )

    if conflicts:
        logger.info(f"{len(conflicts)} existing files under {destination} will be overwritten")

    return InstallPlan(
        source_dirs=source_dirs,
        destination_root=destination,
        conflicts=conflicts,
    )


# ---------------------------------------------------------------------------
# Copying
# ---------------------------------------------------------------------------

def _copy_rule_set(name: str, source: Path, destination_root: Path) -> list[str]:
    """Copy one rule set. Returns paths relative to destination_root."""
    if not source.is_dir():
        raise InstallCopyFailed(f"Rule set '{name}' not found", path=source)

    target = destination_root / name
    copied: list[str] = []

    for src in _iter_files(source):
        relative = src.relative_to(source)
        dst = target / relative
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
        except OSError as e:
            raise InstallCopyFailed(
                f"Failed to copy {name}/{relative.as_posix()}: {e.strerror or e}",
                path=dst,
            ) from e
        copied.append((Path(name) / relative).as_posix())
        logger.debug(f"Installed rule: {name}/{relative.as_posix()}")

    logger.info(f"Installed {len(copied)} files from rule set '{name}'")
    return copied


def execute_plan(
    plan: InstallPlan,
    on_rule_set: Optional[Callable[[str, Path], None]] = None,
) -> InstallReport:
    """Copy every rule set in the plan, in order.

    on_rule_set(name, target_dir) is called before each rule set is copied.
    Raises InstallCopyFailed on the first failure.
    """
    files_copied: list[str] = []

    for name, source in plan.source_dirs.items():
        if on_rule_set:
            on_rule_set(name, plan.destination_root / name)
        files_copied.extend(_copy_rule_set(name, source, plan.destination_root))

    return InstallReport(
        destination_root=plan.destination_root,
        files_copied=files_copied,
        conflicts=plan.conflicts,
    )


def install(
    source_root: Union[str, Path],
    destination_root: Optional[Union[str, Path]] = None,
    rule_sets: Optional[list[str]] = None,
) -> InstallReport:
    """Install rule sets from source_root/rules/ into destination_root."""
    plan = plan_install(source_root, destination_root, rule_sets)
    return execute_plan(plan)

"""
Content discovery.

Walks a plugin root once and classifies files by the top-level directory
that contains them:

    agents/**                 -> agent
    skills/{name}/SKILL.md    -> skill (other files in the directory are supplementary)
    commands/**               -> command
    rules/{scope}/**          -> rule
    hooks/**                  -> hook
    examples/**               -> example

Files outside these directories are ignored. Symlinked directories are not
traversed. A file whose frontmatter does not parse, or that cannot be read,
is reported as a failure and skipped; the rest of the pass continues.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from rulekit.core.frontmatter_parser import parse_frontmatter
from rulekit.lib.typed_errors import ErrorCode, FrontmatterError, RootNotFound
from rulekit.models.content import (
    KIND_DIRECTORIES,
    SKILL_ENTRY_POINT,
    ContentItem,
    ContentKind,
    DiscoveryFailure,
    DiscoveryReport,
)

logger = logging.getLogger(__name__)

# Only markdown files carry frontmatter
FRONTMATTER_SUFFIXES = {".md"}


@dataclass
class _PendingSkill:
    """A skill directory seen during the walk, finalized after it."""

    entry: Optional[Path] = None
    supplementary: list[Path] = field(default_factory=list)


def classify_parts(parts: tuple[str, ...]) -> Optional[ContentKind]:
    """Classify a root-relative path given as its parts."""
    if len(parts) < 2 or any(part.startswith(".") for part in parts):
        return None

    kind = KIND_DIRECTORIES.get(parts[0])
    if kind is None:
        return None
    if kind == ContentKind.SKILL:
        # Only skills/{name}/SKILL.md, case-sensitive
        if len(parts) == 3 and parts[2] == SKILL_ENTRY_POINT:
            return kind
        return None
    if kind == ContentKind.RULE and len(parts) < 3:
        # Files directly under rules/ belong to no scope
        return None
    return kind


def classify(root: Path, path: Path) -> Optional[ContentKind]:
    """Return the kind discovery would assign to path, or None.

    A symlinked file is classified by where the link sits, as the walk sees it.
    """
    located = path.parent.resolve() / path.name
    try:
        relative = located.relative_to(root.resolve())
    except ValueError:
        return None
    return classify_parts(relative.parts)


def scan(root_dir: Union[str, Path]) -> DiscoveryReport:
    """Discover all content under root_dir, collecting per-file failures.

    Raises RootNotFound when root_dir is missing or not a directory.
    """
    root = Path(root_dir)
    if not root.is_dir():
        raise RootNotFound("Discovery root does not exist or is not a directory", path=root)
    root = root.resolve()

    items: dict[ContentKind, list[ContentItem]] = {kind: [] for kind in ContentKind}
    failures: list[DiscoveryFailure] = []
    skills: dict[str, _PendingSkill] = {}

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).parts

        # Prune hidden directories, and anything at the root that holds no content
        dirnames[:] = [
            d for d in dirnames
            if not d.startswith(".") and (rel_dir or d in KIND_DIRECTORIES)
        ]
        if not rel_dir:
            continue

        for filename in filenames:
            if filename.startswith("."):
                continue
            path = current / filename
            if not path.is_file():
                # Broken symlink or special file
                continue

            parts = rel_dir + (filename,)

            if parts[0] == "skills":
                if len(parts) < 3:
                    continue
                pending = skills.setdefault(parts[1], _PendingSkill())
                if len(parts) == 3 and filename == SKILL_ENTRY_POINT:
                    pending.entry = path
                else:
                    pending.supplementary.append(path)
                continue

            kind = classify_parts(parts)
            if kind is None:
                continue

            item = _build_item(root, path, kind, failures)
            if item:
                items[kind].append(item)

    for name, pending in skills.items():
        if pending.entry is None:
            logger.debug(f"Skill directory without {SKILL_ENTRY_POINT}: skills/{name}")
            continue
        item = _build_item(
            root, pending.entry, ContentKind.SKILL, failures,
            supplementary=pending.supplementary,
        )
        if item:
            items[ContentKind.SKILL].append(item)

    report = DiscoveryReport(root=root, items=items, failures=failures)
    logger.info(
        f"Discovered {report.count} content files in {root} "
        f"({len(failures)} failed)"
    )
    return report


def discover(root_dir: Union[str, Path]) -> dict[ContentKind, list[ContentItem]]:
    """Discover content under root_dir, grouped by kind.

    Lists follow directory traversal order; callers needing a stable order
    must sort. Files with bad frontmatter are logged and left out.
    """
    return scan(root_dir).items


def summarize(items: dict[ContentKind, list[ContentItem]]) -> dict[str, int]:
    """Count discovered items per kind."""
    return {kind.value: len(items.get(kind, [])) for kind in ContentKind}


def _build_item(
    root: Path,
    path: Path,
    kind: ContentKind,
    failures: list[DiscoveryFailure],
    supplementary: Optional[list[Path]] = None,
) -> Optional[ContentItem]:
    """Parse one file into a ContentItem, recording a failure instead of raising."""
    relative = path.relative_to(root)
    relative_path = relative.as_posix()

    frontmatter = {}
    if path.suffix in FRONTMATTER_SUFFIXES:
        try:
            frontmatter = parse_frontmatter(path.read_text(encoding="utf-8"))
        except FrontmatterError as e:
            logger.warning(f"Skipping {relative_path}: {e}")
            failures.append(DiscoveryFailure(path=relative_path, code=e.code, message=e.message))
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"Skipping {relative_path}: not UTF-8 text ({e})")
            failures.append(DiscoveryFailure(
                path=relative_path,
                code=FrontmatterError.code,
                message=f"File is not UTF-8 text: {e}",
            ))
            return None
        except OSError as e:
            logger.warning(f"Skipping {relative_path}: cannot read ({e})")
            failures.append(DiscoveryFailure(
                path=relative_path,
                code=ErrorCode.FILE_UNREADABLE,
                message=f"Cannot read file: {e.strerror or e}",
            ))
            return None

    scope = relative.parts[1] if kind == ContentKind.RULE else None

    return ContentItem(
        path=path,
        kind=kind,
        frontmatter=frontmatter,
        relative_path=relative_path,
        scope=scope,
        supplementary=supplementary or [],
    )

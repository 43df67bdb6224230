"""
Pytest configuration and fixtures.
"""

import os
import tempfile
from pathlib import Path

import pytest

# Set test environment before rulekit.config builds its settings
os.environ["RULEKIT_CONFIG"] = os.path.join(
    tempfile.mkdtemp(prefix="rulekit-test-"), "rulekit.yaml"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("CLAUDE_RULES_DIR", None)
os.environ.pop("RULEKIT_SOURCE_ROOT", None)


def write(path: Path, content: str = "") -> Path:
    """Write a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def plugin_root(tmp_path: Path) -> Path:
    """Create a plugin tree with one of each kind of content."""
    root = tmp_path / "plugin"
    root.mkdir()

    write(
        root / "agents" / "php-reviewer.md",
        """---
name: php-reviewer
description: Reviews PHP code for quality and security
tools: ["Read", "Grep", "Glob"]
model: sonnet
---

You are a senior PHP reviewer.
""",
    )
    write(
        root / "skills" / "tdd-workflow" / "SKILL.md",
        """---
name: tdd-workflow
description: Drive features test-first with PHPUnit
---

# TDD Workflow
""",
    )
    write(root / "skills" / "tdd-workflow" / "reference.md", "# Reference\n")
    write(
        root / "commands" / "php-review.md",
        """---
description: Review the current PHP changes
---

Run the php-reviewer agent.
""",
    )
    write(
        root / "rules" / "common" / "git-workflow.md",
        """---
paths: ["**/*"]
---

# Git Workflow
""",
    )
    write(
        root / "rules" / "php" / "coding-style.md",
        """---
paths: ["**/*.php"]
---

# PHP Coding Style
""",
    )
    write(root / "hooks" / "hooks.json", '{"hooks": {}}\n')
    write(root / "examples" / "Controller.php", "<?php\n")
    write(root / "README.md", "# PHP plugin\n")

    write(
        root / ".claude-plugin" / "plugin.json",
        """{
  "name": "php-plugin",
  "version": "1.2.0",
  "agents": ["./agents/php-reviewer.md"],
  "skills": ["./skills/"],
  "commands": ["./commands/php-review.md"]
}
""",
    )
    return root


@pytest.fixture
def rules_source(tmp_path: Path) -> Path:
    """Create an installer source root with common and php rule sets."""
    source = tmp_path / "source"
    write(source / "rules" / "common" / "git-workflow.md", "# Git workflow\n")
    write(source / "rules" / "common" / "development-workflow.md", "# Development workflow\n")
    write(source / "rules" / "php" / "coding-style.md", "# Coding style\n")
    write(source / "rules" / "php" / "testing.md", "# Testing\n")
    write(source / "rules" / "php" / "security" / "input-validation.md", "# Input validation\n")
    return source


@pytest.fixture
def write_file():
    """Helper that writes a file, creating parent directories."""
    return write

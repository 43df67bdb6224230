"""
rulekit CLI.

Usage:
    rulekit-install                    # Install common + php rules to ~/.claude/rules/
    rulekit-install --help             # Show usage
    rulekit install                    # Same as rulekit-install
    rulekit validate [PLUGIN_DIR]      # Validate .claude-plugin/plugin.json
    rulekit discover [ROOT] [--json]   # List agents, skills, commands, rules, hooks, examples
    rulekit config show                # Show rulekit.yaml
    rulekit config set KEY VALUE       # Set a config value
    rulekit config get KEY             # Get a config value
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional

from rulekit import __version__
from rulekit.config import (
    CONFIG_KEYS,
    _load_yaml_config,
    get_config_path,
    get_settings,
    save_yaml_config,
)
from rulekit.core.discovery import scan, summarize
from rulekit.core.installer import (
    RULES_DIRNAME,
    RULE_SET_DESCRIPTIONS,
    execute_plan,
    locate_source_root,
    plan_install,
)
from rulekit.core.manifest_validator import find_manifest, validate_manifest_file
from rulekit.lib.logger import get_logger, setup_logging
from rulekit.lib.typed_errors import RulekitError
from rulekit.models.content import ContentKind

logger = get_logger(__name__)


# --- Helpers ---


def _install_epilog() -> str:
    lines = ["Installed rule sets:"]
    for name in get_settings().rule_sets:
        description = RULE_SET_DESCRIPTIONS.get(name, "")
        lines.append(f"  {name + '/':<8} {description}".rstrip())
    return "\n".join(lines)


def _resolve_source_root() -> Path:
    """RULEKIT_SOURCE_ROOT, else the running script's directory, else the cwd.

    A console script lives in the environment's bin/, which holds no rules/,
    so the current directory is tried when the script's directory has none.
    """
    settings = get_settings()
    if settings.rulekit_source_root:
        return settings.rulekit_source_root.expanduser()
    script_dir = locate_source_root(sys.argv[0], settings.max_symlink_hops)
    if (script_dir / RULES_DIRNAME).is_dir():
        return script_dir
    cwd = Path.cwd()
    if (cwd / RULES_DIRNAME).is_dir():
        logger.debug(f"No {RULES_DIRNAME}/ next to {script_dir}, using {cwd}")
        return cwd
    return script_dir


def _resolve_manifest_path(target: str) -> Path:
    path = Path(target)
    if path.is_dir():
        return find_manifest(path)
    return path


# --- Commands ---


def cmd_install(args: argparse.Namespace) -> int:
    """Install rule sets, printing conflicts first and the installed files last."""
    try:
        source_root = _resolve_source_root()
        plan = plan_install(source_root)
    except RulekitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    destination = plan.destination_root
    if plan.conflicts:
        print(f"Note: {destination}/ already exists. Existing files will be overwritten.")
        print("      Back up any local customizations before proceeding.")
        for conflict in plan.conflicts:
            print(f"  {conflict}")
        print("")

    def announce(name: str, target: Path) -> None:
        print(f"Installing {name} rules -> {target}/")

    try:
        report = execute_plan(plan, on_rule_set=announce)
    except RulekitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("")
    print(f"Done. Rules installed to {destination}/")
    print("")
    print("Installed files:")
    for path in report.listing():
        print(f"  {path}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a plugin manifest."""
    manifest_path = _resolve_manifest_path(args.path)
    result = validate_manifest_file(manifest_path)

    if result.ok:
        print(f"OK: {manifest_path} (version {result.manifest.version})")
        return 0

    print(f"Invalid: {manifest_path}")
    for error in result.errors:
        print(f"  {error}")
    return 1


def cmd_discover(args: argparse.Namespace) -> int:
    """List discovered content."""
    try:
        report = scan(args.root)
    except RulekitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        payload = {
            "root": str(report.root),
            "counts": summarize(report.items),
            "items": {
                kind.value: [
                    item.to_dict()
                    for item in sorted(entries, key=lambda i: i.relative_path)
                ]
                for kind, entries in report.items.items()
            },
            "failures": [f.model_dump(mode="json") for f in report.failures],
        }
        print(json.dumps(payload, indent=2))
        return 0

    for kind in ContentKind:
        entries = sorted(report.items[kind], key=lambda i: i.relative_path)
        if not entries:
            continue
        print(f"{kind.value} ({len(entries)})")
        for item in entries:
            print(f"  {item.relative_path}  {item.name}")

    if report.failures:
        print(f"failed ({len(report.failures)})")
        for failure in report.failures:
            print(f"  {failure.path}: {failure.code.value}: {failure.message}")

    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Config management: show, set, get."""
    action = getattr(args, "action", None)

    if action == "show":
        return _config_show()
    elif action == "set":
        return _config_set(args.key, args.value)
    elif action == "get":
        return _config_get(args.key)

    print("Usage: rulekit config {show|set|get}")
    return 1


def _config_show() -> int:
    config = _load_yaml_config()

    print(f"Config: {get_config_path()}")
    if not config:
        print("  (empty, using defaults)")
        return 0

    for key, value in config.items():
        env_val = os.environ.get(key.upper())
        override = f" (overridden by env: {key.upper()})" if env_val else ""
        print(f"  {key}: {value}{override}")
    return 0


def _config_set(key: str, value: str) -> int:
    if key not in CONFIG_KEYS:
        print(f"Unknown key: {key}", file=sys.stderr)
        print(f"Valid keys: {', '.join(sorted(CONFIG_KEYS))}", file=sys.stderr)
        return 1

    config = _load_yaml_config()

    # Type conversion
    if key == "max_symlink_hops":
        try:
            converted = int(value)
        except ValueError:
            print(f"Error: {key} must be an integer, got '{value}'", file=sys.stderr)
            return 1
        if converted < 1:
            print(f"Error: {key} must be at least 1", file=sys.stderr)
            return 1
    elif key == "rule_sets":
        converted = [name.strip() for name in value.split(",") if name.strip()]
    elif key == "log_level":
        converted = value.upper()
    else:
        converted = value

    config[key] = converted
    config_file = save_yaml_config(config)
    logger.info(f"Wrote {key} to {config_file}")
    print(f"Set {key} = {converted}")
    return 0


def _config_get(key: str) -> int:
    if key not in CONFIG_KEYS:
        print(f"Unknown key: {key}", file=sys.stderr)
        return 1

    value = getattr(get_settings(), key)
    if isinstance(value, list):
        value = ",".join(value)
    print("" if value is None else value)
    return 0


# --- Parsers ---


def _build_install_parser(prog: str = "rulekit-install") -> argparse.ArgumentParser:
    destination = get_settings().destination_root
    return argparse.ArgumentParser(
        prog=prog,
        allow_abbrev=False,
        description=f"Installs rules to {destination}/ (override with CLAUDE_RULES_DIR)",
        epilog=_install_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )


def install_main(argv: Optional[list[str]] = None) -> int:
    """Entry point for rulekit-install. Unknown arguments are ignored."""
    parser = _build_install_parser()
    args, ignored = parser.parse_known_args(argv)
    setup_logging()
    if ignored:
        logger.debug(f"Ignoring arguments: {ignored}")
    return cmd_install(args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulekit",
        allow_abbrev=False,
        description="rulekit: discover, validate, and install plugin content",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level", type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command")

    # install
    subparsers.add_parser(
        "install",
        help="Install rule sets",
        allow_abbrev=False,
        epilog=_install_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate a plugin manifest")
    validate_parser.add_argument(
        "path", nargs="?", default=".",
        help="Plugin directory or manifest file (default: current directory)",
    )

    # discover
    discover_parser = subparsers.add_parser("discover", help="List plugin content")
    discover_parser.add_argument(
        "root", nargs="?", default=".",
        help="Plugin root (default: current directory)",
    )
    discover_parser.add_argument("--json", action="store_true", help="Output JSON")

    # config
    config_parser = subparsers.add_parser("config", help="Manage rulekit.yaml")
    config_sub = config_parser.add_subparsers(dest="action")
    config_sub.add_parser("show", help="Show current config")
    set_parser = config_sub.add_parser("set", help="Set a config value")
    set_parser.add_argument("key", help="Config key")
    set_parser.add_argument("value", help="Config value")
    get_parser = config_sub.add_parser("get", help="Get a config value")
    get_parser.add_argument("key", help="Config key")

    return parser


def run(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)

    # install mirrors rulekit-install and ignores stray arguments
    if extra and args.command != "install":
        parser.error(f"unrecognized arguments: {' '.join(extra)}")

    setup_logging(level=args.log_level)

    if args.command == "install":
        return cmd_install(args)
    elif args.command == "validate":
        return cmd_validate(args)
    elif args.command == "discover":
        return cmd_discover(args)
    elif args.command == "config":
        return cmd_config(args)

    parser.print_help()
    return 0


def main() -> None:
    sys.exit(run())


def install_entry() -> None:
    sys.exit(install_main())


if __name__ == "__main__":
    main()

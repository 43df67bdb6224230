"""Tests for CLI commands (install, validate, discover, config)."""

import errno
import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from rulekit.cli import install_entry, install_main, run
from rulekit.config import reload_settings


@pytest.fixture
def install_env(monkeypatch, rules_source, tmp_path):
    """Point the installer at the test source tree and a temp destination."""
    dest = tmp_path / "dest"
    monkeypatch.setenv("RULEKIT_SOURCE_ROOT", str(rules_source))
    monkeypatch.setenv("CLAUDE_RULES_DIR", str(dest))
    reload_settings()
    yield dest
    monkeypatch.undo()
    reload_settings()


class TestInstallCommand:
    def test_help_exits_zero(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            install_main(["--help"])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "Installed rule sets:" in out
        assert "common/" in out
        assert "php/" in out

    def test_short_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            install_main(["-h"])
        assert exc_info.value.code == 0

    def test_help_does_not_install(self, install_env, capsys):
        with pytest.raises(SystemExit):
            install_main(["-h"])
        assert not install_env.exists()

    def test_install_prints_sorted_listing(self, install_env, capsys):
        assert install_main([]) == 0

        out = capsys.readouterr().out
        assert f"Installing common rules -> {install_env / 'common'}/" in out
        listed = [line.strip() for line in out.split("Installed files:")[1].splitlines() if line.strip()]
        assert listed == sorted(listed)
        assert str(install_env / "php" / "testing.md") in listed
        assert "already exists" not in out

    def test_second_install_warns_about_overwrite(self, install_env, capsys):
        install_main([])
        capsys.readouterr()

        assert install_main([]) == 0

        out = capsys.readouterr().out
        assert "Existing files will be overwritten" in out
        assert out.index("overwritten") < out.index("Installed files:")

    def test_unknown_arguments_ignored(self, install_env):
        assert install_main(["--force", "extra"]) == 0
        assert (install_env / "common" / "git-workflow.md").exists()

    def test_subcommand_install(self, install_env):
        assert run(["install", "--whatever"]) == 0
        assert (install_env / "php" / "coding-style.md").exists()

    def test_missing_rules_exit_nonzero(self, install_env, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("RULEKIT_SOURCE_ROOT", str(tmp_path / "empty"))
        reload_settings()

        assert install_main([]) == 1
        assert "InstallCopyFailed" in capsys.readouterr().err

    def test_source_from_script_location(self, install_env, monkeypatch, rules_source):
        monkeypatch.delenv("RULEKIT_SOURCE_ROOT")
        reload_settings()
        script = rules_source / "install.py"
        script.write_text("")

        with patch("sys.argv", [str(script)]):
            assert install_main([]) == 0

        assert (install_env / "common" / "git-workflow.md").exists()

    def test_console_script_falls_back_to_cwd(self, install_env, monkeypatch, rules_source, tmp_path, write_file):
        """An entry point installed in bin/ finds rules/ in the working directory."""
        monkeypatch.delenv("RULEKIT_SOURCE_ROOT")
        reload_settings()
        script = write_file(tmp_path / "venv" / "bin" / "rulekit-install", "")
        monkeypatch.chdir(rules_source)

        with patch("sys.argv", [str(script)]):
            with pytest.raises(SystemExit) as exc_info:
                install_entry()

        assert exc_info.value.code == 0
        assert (install_env / "php" / "testing.md").exists()

    def test_script_directory_preferred_over_cwd(self, install_env, monkeypatch, rules_source, tmp_path, write_file):
        monkeypatch.delenv("RULEKIT_SOURCE_ROOT")
        reload_settings()
        write_file(tmp_path / "other" / "rules" / "common" / "other.md", "# Other\n")
        monkeypatch.chdir(tmp_path / "other")
        script = write_file(rules_source / "install.py", "")

        with patch("sys.argv", [str(script)]):
            assert install_main([]) == 0

        assert (install_env / "common" / "git-workflow.md").exists()
        assert not (install_env / "common" / "other.md").exists()

    def test_no_rules_anywhere_exits_nonzero(self, install_env, monkeypatch, tmp_path, write_file, capsys):
        monkeypatch.delenv("RULEKIT_SOURCE_ROOT")
        reload_settings()
        script = write_file(tmp_path / "venv" / "bin" / "rulekit-install", "")
        monkeypatch.chdir(tmp_path)

        with patch("sys.argv", [str(script)]):
            assert install_main([]) == 1

        assert "InstallCopyFailed" in capsys.readouterr().err

    @pytest.mark.parametrize("argument", ["--he", "--hel"])
    def test_abbreviated_help_is_ignored(self, install_env, argument):
        assert install_main([argument]) == 0
        assert (install_env / "common" / "git-workflow.md").exists()

    def test_subcommand_abbreviated_help_is_ignored(self, install_env):
        assert run(["install", "--he"]) == 0
        assert (install_env / "php" / "coding-style.md").exists()


class TestValidateCommand:
    def test_valid_plugin(self, plugin_root, capsys):
        assert run(["validate", str(plugin_root)]) == 0
        assert "version 1.2.0" in capsys.readouterr().out

    def test_invalid_plugin(self, tmp_path, write_file, capsys):
        write_file(
            tmp_path / ".claude-plugin" / "plugin.json",
            json.dumps({"skills": "./skills/", "hooks": ["./hooks/hooks.json"]}),
        )

        assert run(["validate", str(tmp_path)]) == 1

        out = capsys.readouterr().out
        assert "MissingRequiredField version" in out
        assert "InvalidFieldShape skills" in out
        assert "DuplicateHookDeclaration hooks" in out

    def test_manifest_file_argument(self, plugin_root):
        manifest = plugin_root / ".claude-plugin" / "plugin.json"
        assert run(["validate", str(manifest)]) == 0

    def test_missing_manifest(self, tmp_path, capsys):
        assert run(["validate", str(tmp_path)]) == 1
        assert "MalformedManifest" in capsys.readouterr().out


class TestDiscoverCommand:
    def test_text_output(self, plugin_root, capsys):
        assert run(["discover", str(plugin_root)]) == 0

        out = capsys.readouterr().out
        assert "agent (1)" in out
        assert "agents/php-reviewer.md  php-reviewer" in out
        assert "README.md" not in out

    def test_json_output(self, plugin_root, capsys):
        assert run(["discover", str(plugin_root), "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["counts"]["rule"] == 2
        assert payload["items"]["skill"][0]["name"] == "tdd-workflow"
        assert payload["failures"] == []

    def test_reports_failures(self, tmp_path, write_file, capsys):
        write_file(tmp_path / "agents" / "broken.md", "---\nname: broken\n")

        assert run(["discover", str(tmp_path)]) == 0
        assert "agents/broken.md: MalformedFrontmatter" in capsys.readouterr().out

    def test_unreadable_file_reported(self, tmp_path, write_file, capsys):
        write_file(tmp_path / "agents" / "good.md", "---\nname: good\n---\n")
        write_file(tmp_path / "agents" / "bad.md", "---\nname: bad\n---\n")
        real_read_text = Path.read_text

        def read_text(self, *args, **kwargs):
            if self.name == "bad.md":
                raise OSError(errno.EIO, "Input/output error")
            return real_read_text(self, *args, **kwargs)

        with patch.object(Path, "read_text", read_text):
            assert run(["discover", str(tmp_path)]) == 0

        out = capsys.readouterr().out
        assert "agents/good.md  good" in out
        assert "agents/bad.md: FileUnreadable" in out

    def test_missing_root(self, tmp_path, capsys):
        assert run(["discover", str(tmp_path / "missing")]) == 1
        assert "RootNotFound" in capsys.readouterr().err

    def test_unknown_argument_rejected(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run(["discover", ".", "--bogus"])
        assert exc_info.value.code == 2


class TestConfigCommand:
    @pytest.fixture(autouse=True)
    def config_file(self, tmp_path, monkeypatch):
        path = tmp_path / "rulekit.yaml"
        monkeypatch.setenv("RULEKIT_CONFIG", str(path))
        yield path
        monkeypatch.undo()
        reload_settings()

    def test_show_empty(self, config_file, capsys):
        assert run(["config", "show"]) == 0

        out = capsys.readouterr().out
        assert str(config_file) in out
        assert "(empty, using defaults)" in out

    def test_set_writes_yaml(self, config_file):
        assert run(["config", "set", "claude_rules_dir", "~/my-rules"]) == 0
        assert run(["config", "set", "rule_sets", "common, php,python"]) == 0
        assert run(["config", "set", "max_symlink_hops", "8"]) == 0

        data = yaml.safe_load(config_file.read_text())
        assert data == {
            "claude_rules_dir": "~/my-rules",
            "rule_sets": ["common", "php", "python"],
            "max_symlink_hops": 8,
        }

    def test_set_then_get(self, config_file, capsys):
        run(["config", "set", "rule_sets", "php"])
        reload_settings()
        capsys.readouterr()

        assert run(["config", "get", "rule_sets"]) == 0
        assert capsys.readouterr().out.strip() == "php"

    def test_set_then_show(self, config_file, capsys):
        run(["config", "set", "log_level", "debug"])
        capsys.readouterr()

        assert run(["config", "show"]) == 0
        assert "log_level: DEBUG" in capsys.readouterr().out

    def test_unknown_key(self, config_file, capsys):
        assert run(["config", "set", "port", "3333"]) == 1
        assert "Unknown key: port" in capsys.readouterr().err
        assert not config_file.exists()

    def test_bad_integer(self, config_file, capsys):
        assert run(["config", "set", "max_symlink_hops", "lots"]) == 1
        assert "must be an integer" in capsys.readouterr().err

    def test_no_action(self, capsys):
        assert run(["config"]) == 1
        assert "Usage: rulekit config" in capsys.readouterr().out

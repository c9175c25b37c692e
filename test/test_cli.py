"""Tests for the cubekit CLI."""

import io
import json
import os
import shutil
import subprocess
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from cubekit.cli import main
from cubekit.config import CUBEKIT_CONFIG_ENV
from cubekit.templates import EIDE_FILE

MAKEFILE = Path(__file__).parent / "data" / "Makefile"


def run_cli(*args: str) -> tuple[int | str, str, str]:
    """Run CLI in-process and capture output.

    Returns:
        tuple of (exit_code, stdout, stderr)
    """
    stdout_capture = io.StringIO()
    stderr_capture = io.StringIO()

    with redirect_stdout(stdout_capture), redirect_stderr(stderr_capture):
        try:
            exit_code = main(list(args))
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0

    return exit_code, stdout_capture.getvalue(), stderr_capture.getvalue()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    shutil.copy(MAKEFILE, tmp_path / "Makefile")
    return tmp_path


class TestCLIHelp:
    """Test CLI help output."""

    def test_main_help(self):
        exit_code, stdout, stderr = run_cli("--help")
        assert exit_code == 0
        assert "cubekit" in stdout
        for command in ("init", "patch", "parse", "eide", "generate"):
            assert command in stdout

    def test_no_command(self):
        """Test that running without a command prints help and fails."""
        exit_code, stdout, stderr = run_cli()
        assert exit_code == 1
        assert "usage" in stdout.lower()

    def test_generate_help_lists_toolchains(self):
        exit_code, stdout, stderr = run_cli("generate", "--help")
        assert exit_code == 0
        assert "STM32CubeIDE" in stdout

    def test_invalid_toolchain(self):
        exit_code, stdout, stderr = run_cli("generate", "--toolchain", "Ninja")
        assert exit_code == 2


class TestParseCommand:
    """Test the parse subcommand."""

    def test_parse_json(self, project: Path):
        exit_code, stdout, stderr = run_cli("-C", str(project), "parse")
        assert exit_code == 0
        data = json.loads(stdout)
        assert data["target"] == "blinky"
        assert data["defines"] == ["USE_HAL_DRIVER", "STM32F407xx"]

    def test_parse_yaml(self, project: Path):
        exit_code, stdout, stderr = run_cli(
            "parse", str(project / "Makefile"), "--format", "yaml"
        )
        assert exit_code == 0
        data = yaml.safe_load(stdout)
        assert data["asm_sources"] == ["startup_stm32f407xx.s"]

    def test_parse_missing_makefile(self, tmp_path: Path):
        exit_code, stdout, stderr = run_cli("-C", str(tmp_path), "parse")
        assert exit_code == 1


class TestInitCommand:
    """Test the init and patch subcommands."""

    def test_init(self, project: Path):
        with patch("cubekit.generator.get_author", return_value="Jane Doe"):
            exit_code, stdout, stderr = run_cli("-C", str(project), "init")
        assert exit_code == 0
        assert (project / "UserCode" / "app" / "app.h").is_file()
        assert (project / ".gitignore").is_file()
        assert "UserCode/app/app.c \\" in (project / "Makefile").read_text()

    def test_patch_with_custom_config(self, project: Path):
        config = project / "patches.yml"
        config.write_text(
            "patches:\n"
            "  - mode: replace\n"
            "    file: Makefile\n"
            "    find: 'TARGET = blinky'\n"
            "    insert: 'TARGET = demo'\n"
        )
        exit_code, stdout, stderr = run_cli(
            "-C", str(project), "patch", "--config", str(config)
        )
        assert exit_code == 0
        assert "TARGET = demo" in (project / "Makefile").read_text()
        assert not (project / "UserCode").exists()

    def test_patch_config_from_env(self, project: Path):
        config = project / "patches.yml"
        config.write_text(
            "patches:\n"
            "  - mode: replace\n"
            "    file: Makefile\n"
            "    find: '-Og'\n"
            "    insert: '-O2'\n"
        )
        with patch.dict(os.environ, {CUBEKIT_CONFIG_ENV: str(config)}):
            exit_code, stdout, stderr = run_cli("-C", str(project), "patch")
        assert exit_code == 0
        assert "OPT = -O2" in (project / "Makefile").read_text()

    def test_invalid_regex_fails(self, project: Path):
        """Test that a malformed pattern aborts the run."""
        config = project / "patches.yml"
        config.write_text(
            "patches:\n"
            "  - mode: regex_replace\n"
            "    file: Makefile\n"
            "    pattern: '(unclosed'\n"
            "    insert: x\n"
        )
        original = (project / "Makefile").read_text()
        exit_code, stdout, stderr = run_cli(
            "-C", str(project), "patch", "--config", str(config)
        )
        assert exit_code == 1
        assert (project / "Makefile").read_text() == original

    def test_missing_config(self, project: Path):
        exit_code, stdout, stderr = run_cli(
            "-C", str(project), "patch", "--config", str(project / "nope.yml")
        )
        assert exit_code == 1


class TestEideCommand:
    """Test the eide subcommand."""

    def test_eide(self, project: Path):
        exit_code, stdout, stderr = run_cli("-C", str(project), "eide", "--name", "demo")
        assert exit_code == 0
        data = yaml.safe_load((project / EIDE_FILE).read_text())
        assert data["name"] == "demo"


class TestGenerateCommand:
    """Test the generate subcommand."""

    def test_generate(self, tmp_path: Path):
        (tmp_path / "blinky.ioc").touch()
        done = subprocess.CompletedProcess([], 0)
        with patch("cubekit.cubemx.subprocess.run", return_value=done) as run:
            exit_code, stdout, stderr = run_cli(
                "-C", str(tmp_path), "generate", "-t", "CMake", "--cubemx", "mx"
            )
        assert exit_code == 0
        assert run.call_args.args[0][0] == "mx"

    def test_generate_without_ioc(self, tmp_path: Path):
        exit_code, stdout, stderr = run_cli("-C", str(tmp_path), "generate")
        assert exit_code == 1

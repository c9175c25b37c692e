"""Project scaffolding orchestration."""

from __future__ import annotations

import getpass
import logging
import subprocess
from datetime import datetime
from pathlib import Path

from jinja2 import Environment

from .eide import eide_context
from .makefile import load_makefile
from .models import PatchOutcome, ProjectConfig, ProjectContext
from .patches import apply_patches
from .templates import EIDE_FILE, EIDE_TEMPLATE, SCAFFOLD_FILES, get_env, render_file


def get_author() -> str:
    """Return the git user name, falling back to the login name."""
    try:
        result = subprocess.run(
            ["git", "config", "user.name"],
            capture_output=True,
            text=True,
        )
    except OSError:
        result = None

    if result is not None and result.returncode == 0 and result.stdout.strip():
        return result.stdout.strip()

    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return "unknown"


class ProjectGenerator:
    """Bootstraps and maintains an STM32 project tree.

    The workflow is:
    1. Create the configured directories
    2. Render the user-code scaffolding files
    3. Apply the configured patches to CubeMX-generated files

    Example:
        >>> from cubekit.config import load_config
        >>> from cubekit.generator import ProjectGenerator
        >>>
        >>> project = ProjectGenerator(Path("."), load_config())
        >>> project.run()
    """

    def __init__(self, root: Path | str, config: ProjectConfig, force: bool = False):
        """Initialize the project generator.

        Args:
            root: Project root directory.
            config: Directories and patches to apply.
            force: Overwrite existing scaffolding files.
        """
        self.root = Path(root).resolve()
        self.config = config
        self.force = force
        self._env: Environment | None = None
        self._log = logging.getLogger("cubekit")

    @property
    def env(self) -> Environment:
        """Get or create the Jinja2 environment."""
        if self._env is None:
            self._env = get_env()
        return self._env

    def context(self) -> ProjectContext:
        now = datetime.now()
        return ProjectContext(
            author=get_author(),
            date=now.strftime("%Y-%m-%d"),
            year=now.strftime("%Y"),
        )

    def create_directories(self) -> list[Path]:
        """Create the configured directories, returning those that were new."""
        created = []
        for directory in self.config.directories:
            path = self.root / directory
            if not path.exists():
                self._log.debug(f"Creating directory {directory}")
                path.mkdir(parents=True)
                created.append(path)
        return created

    def render_scaffold(self, context: ProjectContext | None = None) -> list[str]:
        """Render the user-code scaffolding files.

        Returns:
            Relative paths of the files that were written.
        """
        context = context or self.context()
        written = []
        for output, template_name in SCAFFOLD_FILES.items():
            if render_file(
                self.root / output,
                template_name,
                context.model_dump(),
                force=self.force,
                env=self.env,
            ):
                written.append(output)
        return written

    def apply_patches(self) -> list[PatchOutcome]:
        """Apply the configured patches in order."""
        outcomes = apply_patches(self.config.patches, self.root)
        applied = outcomes.count(PatchOutcome.APPLIED)
        self._log.info(
            f"Applied {applied} of {len(outcomes)} patches "
            f"({len(outcomes) - applied} already applied or skipped)"
        )
        return outcomes

    def generate_eide(
        self, makefile: Path | str = "Makefile", project_name: str | None = None
    ) -> bool:
        """Render the EIDE project descriptor from the project Makefile.

        Returns:
            True if the descriptor was written.
        """
        makefile = Path(makefile)
        if not makefile.is_absolute():
            makefile = self.root / makefile

        build_config = load_makefile(makefile)
        context = eide_context(build_config, project_name, fallback_name=self.root.name)
        return render_file(
            self.root / EIDE_FILE,
            EIDE_TEMPLATE,
            context.model_dump(),
            force=self.force,
            env=self.env,
        )

    def run(self) -> list[str]:
        """Create directories, render the scaffold and apply patches.

        Returns:
            Relative paths of the scaffolding files that were written.
        """
        self._log.info(f"Bootstrapping project in {self.root.as_posix()}")
        self.create_directories()
        written = self.render_scaffold()
        self.apply_patches()
        return written

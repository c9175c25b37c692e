"""Template environment and file rendering."""

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from .config import RESOURCES_PATH

TEMPLATES_PATH = RESOURCES_PATH / "templates"

# Output path (relative to the project root) -> template name
SCAFFOLD_FILES = {
    ".gitignore": "gitignore.j2",
    ".clang-format": "clang-format.j2",
    "UserCode/app/app.h": "app.h.j2",
    "UserCode/app/app.c": "app.c.j2",
    "UserCode/README.md": "README.md.j2",
}

EIDE_FILE = ".eide/eide.yml"
EIDE_TEMPLATE = "eide.yml.j2"


def get_env(templates_path: Path = TEMPLATES_PATH) -> Environment:
    """Create a Jinja2 environment for a given templates directory."""
    return Environment(
        loader=FileSystemLoader(templates_path),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_string(
    template_name: str, context: dict[str, Any], env: Environment | None = None
) -> str:
    """Render a packaged template to a string."""
    env = env or get_env()
    return env.get_template(template_name).render(**context)


def render_file(
    path: Path | str,
    template_name: str,
    context: dict[str, Any],
    force: bool = False,
    env: Environment | None = None,
) -> bool:
    """Render a template to `path`.

    Existing files are left alone unless `force` is set.

    Returns:
        True if the file was written.
    """
    log = logging.getLogger("cubekit")

    path = Path(path)
    if path.exists() and not force:
        log.warning(f"Skip existing {path.as_posix()}")
        return False

    content = render_string(template_name, context, env)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    log.info(f"Generated {path.as_posix()}")
    return True

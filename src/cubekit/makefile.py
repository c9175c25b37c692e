"""Extraction of a BuildConfig from a CubeMX-generated Makefile.

Only plain assignments (``KEY = VALUE``, ``KEY := VALUE``, ``KEY += VALUE``)
of a fixed set of keys are understood. Conditionals, functions, includes and
variable expansion are not modelled; anything that is not recognised is
ignored rather than rejected.
"""

import logging
import re
from pathlib import Path
from typing import Iterable

from .models import BuildConfig

ASSIGNMENT_RE = re.compile(r"^([A-Z0-9_-]+)\s*[:+]?=\s*(.*)$")

CONTINUATION = "\\"
COMMENT = "#"
INCLUDE_PREFIX = "-I"
DEFINE_PREFIX = "-D"
FORCE_INCLUDE_PREFIX = "-include"

SCALAR_KEYS = {
    "TARGET": "target",
    "BUILD_DIR": "build_dir",
    "LDSCRIPT": "ldscript",
}

LIST_KEYS = {
    "C_SOURCES": "c_sources",
    "ASM_SOURCES": "asm_sources",
    "CFLAGS": "cflags",
    "ASFLAGS": "asflags",
    "LDFLAGS": "ldflags",
    "LIBS": "libs",
}

INCLUDE_KEYS = ("C_INCLUDES", "AS_INCLUDES")
DEFINE_KEYS = ("C_DEFS", "AS_DEFS")


class _OrderedSet:
    """Insertion-ordered collection that drops repeated values."""

    def __init__(self) -> None:
        self.items: list[str] = []
        self._seen: set[str] = set()

    def add(self, value: str) -> None:
        if value not in self._seen:
            self._seen.add(value)
            self.items.append(value)


def unfold_lines(lines: Iterable[str]) -> list[str]:
    """Join continuation lines into logical lines.

    A physical line ending in a backslash has the backslash, and any blanks
    before it, replaced by a single space and is concatenated with the
    following line, so ``A \\``, ``B \\``, ``C`` unfold to ``A B C``. A
    dangling continuation at the end of the input is still emitted.
    """
    result: list[str] = []
    current = ""
    for line in lines:
        trimmed = line.rstrip()
        if trimmed.endswith(CONTINUATION):
            current += trimmed[: -len(CONTINUATION)].rstrip() + " "
        else:
            result.append(current + trimmed)
            current = ""
    if current:
        result.append(current)
    return result


def _define_name(token: str) -> str:
    if token.startswith(DEFINE_PREFIX):
        return token[len(DEFINE_PREFIX) :]
    if token.startswith(FORCE_INCLUDE_PREFIX):
        return token[len(FORCE_INCLUDE_PREFIX) :].strip()
    return token


def parse_makefile(content: str) -> BuildConfig:
    """Parse Makefile text into a BuildConfig.

    Args:
        content: Raw Makefile content.

    Returns:
        The extracted configuration. Never raises on malformed input.
    """
    scalars: dict[str, str] = {}
    lists: dict[str, list[str]] = {field: [] for field in LIST_KEYS.values()}
    includes = _OrderedSet()
    defines = _OrderedSet()

    for line in unfold_lines(content.splitlines()):
        line = line.strip()
        if not line or line.startswith(COMMENT):
            continue

        match = ASSIGNMENT_RE.match(line)
        if match is None:
            continue

        key, value = match.group(1), match.group(2)
        tokens = value.split()

        if key in SCALAR_KEYS:
            scalars[SCALAR_KEYS[key]] = value
        elif key in LIST_KEYS:
            lists[LIST_KEYS[key]].extend(tokens)
        elif key in INCLUDE_KEYS:
            for token in tokens:
                if token.startswith(INCLUDE_PREFIX):
                    includes.add(token[len(INCLUDE_PREFIX) :])
        elif key in DEFINE_KEYS:
            for token in tokens:
                name = _define_name(token)
                if name:
                    defines.add(name)

    return BuildConfig(
        **scalars,
        **lists,
        includes=includes.items,
        defines=defines.items,
    )


def load_makefile(path: Path | str) -> BuildConfig:
    """Read a Makefile from disk and extract its BuildConfig."""
    log = logging.getLogger("cubekit")

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Makefile {path} does not exist")

    log.debug(f"Parsing build configuration from {path.as_posix()}")
    return parse_makefile(path.read_text(encoding="utf-8"))

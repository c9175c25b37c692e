"""Idempotent text patches applied to files generated by earlier pipeline stages.

Each patch kind carries its own "already applied" check so the tool can be
re-run against an evolving project tree without stacking edits:

- append: skipped when the file already contains `marker`
- replace: skipped when the file already contains `insert`
- regex_replace: skipped when `pattern` matches and the file already
  contains `insert`

A patch whose target file does not exist is skipped silently.
"""

import logging
import re
from pathlib import Path
from typing import Iterable

from .models import (
    AppendPatch,
    PatchOutcome,
    PatchSpec,
    RegexReplacePatch,
    ReplacePatch,
)


class PatchError(RuntimeError):
    """A patch description is malformed (e.g. its regex does not compile)."""


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatchError(f"Invalid regex pattern {pattern!r}: {e}") from e


def _split_lines(content: str) -> list[str]:
    """Split on line feeds only, dropping carriage returns and the empty tail."""
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def patch_content(content: str, spec: PatchSpec) -> str | None:
    """Compute the patched content of a file.

    Args:
        content: Current file content.
        spec: The patch to apply.

    Returns:
        The new content, or None if the patch is already applied.

    Raises:
        PatchError: If a regex pattern is invalid.
    """
    match spec:
        case AppendPatch(after=after, insert=insert, marker=marker):
            if marker in content:
                return None
            lines: list[str] = []
            for line in _split_lines(content):
                lines.append(line)
                if after in line:
                    lines.append(insert)
            return "\n".join(lines) + "\n"

        case ReplacePatch(find=find, insert=insert):
            if insert in content:
                return None
            return content.replace(find, insert)

        case RegexReplacePatch(pattern=pattern, insert=insert):
            regex = _compile(pattern)
            if regex.search(content) and insert in content:
                return None
            try:
                return regex.sub(insert, content)
            except re.error as e:
                raise PatchError(f"Invalid replacement {insert!r}: {e}") from e

    raise PatchError(f"Unsupported patch: {spec!r}")


def resolve_path(spec: PatchSpec, root: Path | str | None = None) -> Path:
    """Resolve a patch's target file against `root` (default: working directory)."""
    path = Path(spec.file)
    if root is not None and not path.is_absolute():
        path = Path(root) / path
    return path


def apply_patch(spec: PatchSpec, root: Path | str | None = None) -> PatchOutcome:
    """Apply a single patch to its target file.

    The file is only rewritten when the patch was not already applied and the
    computed content differs from what is on disk.

    Args:
        spec: The patch to apply.
        root: Directory that relative `file` paths are resolved against.

    Returns:
        PatchOutcome.APPLIED if the file was rewritten, else PatchOutcome.SKIPPED.

    Raises:
        PatchError: If the patch description is invalid.
        OSError: If the file cannot be read or written.
    """
    log = logging.getLogger("cubekit")

    # Malformed patterns fail even when the target file is absent
    if isinstance(spec, RegexReplacePatch):
        _compile(spec.pattern)

    path = resolve_path(spec, root)
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            content = f.read()
    except FileNotFoundError:
        log.debug(f"Skipping {spec.mode} patch, {path.as_posix()} does not exist")
        return PatchOutcome.SKIPPED

    new_content = patch_content(content, spec)
    if new_content is None or new_content == content:
        log.debug(f"Skipping {spec.mode} patch on {path.as_posix()}, already applied")
        return PatchOutcome.SKIPPED

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(new_content)
    log.info(f"Patched {spec.file} ({spec.mode})")
    return PatchOutcome.APPLIED


def apply_patches(
    specs: Iterable[PatchSpec], root: Path | str | None = None
) -> list[PatchOutcome]:
    """Apply patches in order, stopping at the first error."""
    return [apply_patch(spec, root) for spec in specs]

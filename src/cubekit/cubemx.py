"""Headless code generation with STM32CubeMX.

STM32CubeMX is driven through a command script passed with ``-q``: the script
loads the single ``.ioc`` file of the project, optionally selects a toolchain
and generates the code.
"""

import logging
import os
import subprocess
import tempfile
from enum import StrEnum
from pathlib import Path


class CubeMXError(RuntimeError):
    """STM32CubeMX could not be run or reported a failure."""


class Toolchain(StrEnum):
    """Toolchain labels understood by ``project toolchain``."""

    EWARM_V832 = "EWARM V8.32"
    EWARM_V800 = "EWARM V8"
    EWARM_V700 = "EWARM V7"
    MDK_ARM_V532 = "MDK-ARM V5.32"
    MDK_ARM_V527 = "MDK-ARM V5.27"
    MDK_ARM_V500 = "MDK-ARM V5"
    MDK_ARM_V400 = "MDK-ARM V4"
    STM32CUBEIDE = "STM32CubeIDE"
    MAKEFILE = "Makefile"
    CMAKE = "CMake"


def find_ioc_files(directory: Path | str) -> list[Path]:
    """Return the ``.ioc`` files directly inside `directory`, sorted by name."""
    return sorted(
        path for path in Path(directory).iterdir() if path.suffix == ".ioc"
    )


def build_script(ioc_file: Path | str, toolchain: Toolchain | None = None) -> str:
    """Create the STM32CubeMX command script for a project."""
    lines = [f"config load {Path(ioc_file).as_posix()}"]
    if toolchain is not None:
        lines.append(f'project toolchain "{toolchain}"')
        if toolchain == Toolchain.STM32CUBEIDE:
            lines.append("project generateunderroot 1")
    # One .c/.h pair per peripheral
    lines.append("project couplefilesbyip 1")
    lines.append("project generate")
    lines.append("exit")
    return "\n".join(lines) + "\n"


def generate_code(
    directory: Path | str,
    toolchain: Toolchain | None = None,
    executable: str = "stm32cubemx",
) -> Path:
    """Run STM32CubeMX on the project in `directory`.

    Args:
        directory: Project directory containing exactly one ``.ioc`` file.
        toolchain: Toolchain to generate for; keeps the ``.ioc`` setting if None.
        executable: STM32CubeMX executable.

    Returns:
        The ``.ioc`` file that was used.

    Raises:
        CubeMXError: If there is not exactly one ``.ioc`` file, or if
            STM32CubeMX cannot be started or fails.
    """
    log = logging.getLogger("cubekit")

    ioc_files = find_ioc_files(directory)
    if len(ioc_files) != 1:
        raise CubeMXError(
            f"Expected exactly one .ioc file in {directory}, found {len(ioc_files)}"
        )
    ioc_file = ioc_files[0].resolve()

    script = build_script(ioc_file, toolchain)
    log.debug(f"STM32CubeMX script:\n{script}")

    fd, script_path = tempfile.mkstemp(prefix="cubekit-", suffix=".txt", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(script)

        log.info(f"Generating code from {ioc_file.name}")
        try:
            result = subprocess.run(
                [executable, "-q", script_path],
                cwd=directory,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise CubeMXError(f"Failed to execute {executable}: {e}") from e
    finally:
        os.remove(script_path)

    if result.returncode != 0:
        raise CubeMXError(f"Generate failed with status: {result.returncode}")

    return ioc_file

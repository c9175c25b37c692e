"""Command-line interface for cubekit."""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import yaml
from rich.logging import RichHandler

from .config import CUBEKIT_CONFIG_ENV, load_config
from .cubemx import Toolchain, generate_code
from .generator import ProjectGenerator
from .makefile import load_makefile
from .models import ProjectConfig


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="cubekit",
        description="Bootstrap and maintain STM32CubeMX project trees",
    )
    ap.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    ap.add_argument(
        "-C",
        "--directory",
        type=Path,
        default=Path.cwd(),
        metavar="DIR",
        help="Project directory (default: current directory)",
    )

    subparsers = ap.add_subparsers(dest="command", help="Command to run")

    config_help = (
        f"Project configuration file (also: {CUBEKIT_CONFIG_ENV} env var, "
        "default: built-in configuration)"
    )

    init_sub = subparsers.add_parser(
        "init", help="Create directories, scaffold user code and apply patches"
    )
    init_sub.add_argument("-c", "--config", type=Path, default=None, help=config_help)
    init_sub.add_argument(
        "-f", "--force", action="store_true", help="Overwrite existing files"
    )

    patch_sub = subparsers.add_parser("patch", help="Apply patches only")
    patch_sub.add_argument("-c", "--config", type=Path, default=None, help=config_help)

    parse_sub = subparsers.add_parser(
        "parse", help="Print the build configuration extracted from a Makefile"
    )
    parse_sub.add_argument(
        "makefile", nargs="?", default="Makefile", help="Makefile to parse"
    )
    parse_sub.add_argument(
        "--format", choices=("json", "yaml"), default="json", help="Output format"
    )

    eide_sub = subparsers.add_parser(
        "eide", help="Generate an EIDE project descriptor from a Makefile"
    )
    eide_sub.add_argument(
        "makefile", nargs="?", default="Makefile", help="Makefile to parse"
    )
    eide_sub.add_argument("-n", "--name", default=None, help="Project name")
    eide_sub.add_argument(
        "-f", "--force", action="store_true", help="Overwrite an existing descriptor"
    )

    generate_sub = subparsers.add_parser(
        "generate", help="Generate code with STM32CubeMX from the project's .ioc file"
    )
    generate_sub.add_argument(
        "-t",
        "--toolchain",
        type=Toolchain,
        choices=list(Toolchain),
        default=None,
        metavar="TOOLCHAIN",
        help=f"Toolchain to generate for ({', '.join(Toolchain)})",
    )
    generate_sub.add_argument(
        "--cubemx",
        default="stm32cubemx",
        metavar="PATH",
        help="STM32CubeMX executable",
    )

    return ap


def run_command(args: argparse.Namespace) -> None:
    log = logging.getLogger("cubekit")
    root: Path = args.directory

    if args.command == "init":
        project = ProjectGenerator(root, load_config(args.config), force=args.force)
        written = project.run()
        log.info(f"Wrote {len(written)} files")

    elif args.command == "patch":
        project = ProjectGenerator(root, load_config(args.config))
        project.apply_patches()

    elif args.command == "parse":
        makefile = Path(args.makefile)
        if not makefile.is_absolute():
            makefile = root / makefile
        data = load_makefile(makefile).model_dump()
        if args.format == "yaml":
            print(yaml.safe_dump(data, sort_keys=False), end="")
        else:
            print(json.dumps(data, indent=2))

    elif args.command == "eide":
        project = ProjectGenerator(root, ProjectConfig(), force=args.force)
        project.generate_eide(args.makefile, args.name)

    elif args.command == "generate":
        ioc_file = generate_code(root, args.toolchain, args.cubemx)
        log.info(f"Generated code from {ioc_file.name}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for cubekit CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()

    ap = build_parser()
    args = ap.parse_args(argv)

    # Setup logging
    log = logging.getLogger("cubekit")
    log_level = logging.DEBUG if args.debug else logging.INFO
    log.handlers = [RichHandler(rich_tracebacks=True, show_path=False, show_time=False)]
    log.setLevel(log_level)

    if args.command is None:
        ap.print_help()
        return 1

    try:
        run_command(args)
    except Exception as e:
        log.error(f"{args.command.capitalize()} failed: {e}")
        if args.debug:
            raise
        return 1

    end_time = time.time()
    log.debug(f"Done after {end_time - start_time:.2f} seconds.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

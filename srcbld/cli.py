# SPDX-License-Identifier: MIT
"""Command-line interface for srcbld."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from srcbld.core.errors import SrcbldError
from srcbld.core.finder import DEFAULT_PROJECT_FILE, find_project_file, project_root
from srcbld.core.options import Opt, format_version
from srcbld.core.project import ProjectModel
from srcbld.core.target import Compiler
from srcbld.core.writer import update_project, write_project
from srcbld.generators.generator import default_build_dir
from srcbld.generators.help import HelpGenerator
from srcbld.generators.makefile import MakefileGenerator
from srcbld.generators.ninja import NinjaGenerator, build_matrix

# Set up logging
logger = logging.getLogger("srcbld")

COMMANDS = ("generate", "init", "info")

EXE_TYPES = ("console", "window", "lib", "dll", "ocx")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def load_project(location: str | None) -> tuple[ProjectModel, list[str]]:
    """Read the project named on the command line.

    Args:
        location: A project file, a directory to search, or None for the
            current directory.

    Raises:
        ProjectFileError: If no project file can be found or read.
    """
    path = Path(location) if location else Path.cwd()
    if path.is_file():
        return ProjectModel.parse(path, root_dir=project_root(path))
    return ProjectModel.from_directory(path)


def selected_compilers(names: list[str] | None) -> list[Compiler] | None:
    if not names:
        return None
    compilers = []
    for name in names:
        compiler = Compiler.from_name(name)
        if compiler is not None and compiler not in compilers:
            compilers.append(compiler)
    return compilers


def report_errors(errors: list[str]) -> None:
    """Log recoverable errors once each."""
    seen: set[str] = set()
    for error in errors:
        if error not in seen:
            seen.add(error)
            logger.warning("%s", error)


def cmd_generate(args: argparse.Namespace) -> int:
    """Run the generate phase.

    This command:
    1. Finds and reads the project file
    2. Optionally rewrites the project file with its required options
    3. Writes one ninja script per build tuple into the build directory
    4. Writes the HTML Help script if the project lists an .hhp file
    5. Writes the makefile as the Makefile option (or --makefile) asks
    """
    setup_logging(args.verbose, args.debug)

    try:
        model, errors = load_project(args.project)
        if args.update_project and model.path is not None:
            update_project(model, model.path, dry_run=args.dry_run)

        compilers = selected_compilers(args.compiler)
        ninja = NinjaGenerator(model, builddir=args.build_dir, compilers=compilers)
        errors += ninja.write(dry_run=args.dry_run, force=args.force)

        help_script = HelpGenerator(model, builddir=args.build_dir)
        errors += help_script.write(dry_run=args.dry_run, force=args.force)

        makefile = MakefileGenerator(
            model,
            builddir=args.build_dir,
            compilers=compilers,
            mode="always" if args.makefile else None,
        )
        errors += makefile.write(dry_run=args.dry_run, force=args.force)
    except SrcbldError as e:
        logger.error("%s", e)
        return 1

    report_errors(errors)
    if not args.dry_run:
        total = len(ninja.build_matrix())
        print(f"{len(ninja.written)} of {total} ninja scripts updated")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Create a starter project file.

    The file lists the C/C++ sources and resource script found in the
    directory, so most projects can be generated right away.
    """
    setup_logging(args.verbose, args.debug)

    directory = Path(args.project) if args.project else Path.cwd()
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    existing = find_project_file(directory)
    if existing is not None and not args.force:
        logger.error("%s already exists (use --force to overwrite)", existing)
        return 1

    model, errors = ProjectModel.create(directory, name=args.name)
    if args.type:
        model.set_option(Opt.EXE_TYPE, args.type)
    if args.pch:
        model.set_option(Opt.PCH, args.pch)

    path = existing or directory / DEFAULT_PROJECT_FILE
    try:
        write_project(model, path, dry_run=args.dry_run)
    except SrcbldError as e:
        logger.error("%s", e)
        return 1

    report_errors(errors)
    if not args.dry_run:
        print(f"Created {path}")
        print("Next steps:")
        print(f"  1. Edit {path.name} to adjust options and files")
        print("  2. Run 'srcbld' to generate the ninja scripts")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show what srcbld read from the project file."""
    setup_logging(args.verbose, args.debug)

    try:
        model, errors = load_project(args.project)
    except SrcbldError as e:
        logger.error("%s", e)
        return 1

    report_errors(errors)
    print(f"Project file: {model.path}")
    print(f"Root:         {model.root_dir}")
    print(f"Project:      {model.project_name} ({model.exe_type})")
    if model.required_version is not None:
        print(f"Requires:     srcbld {format_version(model.required_version)}")
    if model.pch_header:
        print(f"PCH:          {model.pch_header} (built from {model.pch_source})")
    if model.rc_file:
        print(f"Resources:    {model.rc_file}")
    if model.help_file:
        print(f"Help:         {model.help_file}")
    print(f"Sources:      {len(model.source_files)} files")
    if model.debug_files:
        print(f"Debug only:   {len(model.debug_files)} files")
    for option in model.unrecognized_options:
        print(f"Unrecognized: {option.raw}")

    print()
    print("Build scripts:")
    for target in build_matrix(model, selected_compilers(args.compiler)):
        print(f"  {target.script_name(args.build_dir)} -> {target.target_path(model)}")
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "-B",
        "--build-dir",
        default=default_build_dir(),
        help="Directory for ninja scripts (default: bld, or $SRCBLD_BUILD_DIR)",
    )
    parser.add_argument(
        "--compiler",
        action="append",
        choices=[compiler.value for compiler in Compiler],
        help="Only generate for this compiler (may be repeated)",
    )


def add_generate_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments for the generate command."""
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Show changes without writing"
    )
    parser.add_argument(
        "-f", "--force", action="store_true", help="Write files even if unchanged"
    )
    parser.add_argument(
        "--makefile", action="store_true", help="Always (re)generate the makefile"
    )
    parser.add_argument(
        "--update-project",
        action="store_true",
        help="Rewrite the project file with its required options filled in",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srcbld",
        description="Generate ninja build scripts from a .srcfiles.yaml project.",
        epilog="Run 'srcbld <command> --help' for command-specific help.",
    )
    from srcbld import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # srcbld generate
    gen_parser = subparsers.add_parser(
        "generate", help="Generate ninja scripts (the default command)"
    )
    gen_parser.add_argument(
        "project", nargs="?", help="Project file or directory (default: cwd)"
    )
    add_common_args(gen_parser)
    add_generate_args(gen_parser)
    gen_parser.set_defaults(func=cmd_generate)

    # srcbld init
    init_parser = subparsers.add_parser("init", help="Create a .srcfiles.yaml file")
    init_parser.add_argument(
        "project", nargs="?", help="Directory to initialize (default: cwd)"
    )
    init_parser.add_argument("--name", help="Project name (default: directory name)")
    init_parser.add_argument("--type", choices=EXE_TYPES, help="Target type")
    init_parser.add_argument("--pch", metavar="HEADER", help="Precompiled header")
    init_parser.add_argument(
        "-f", "--force", action="store_true", help="Overwrite an existing file"
    )
    init_parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Show the file without writing"
    )
    add_common_args(init_parser)
    init_parser.set_defaults(func=cmd_init)

    # srcbld info
    info_parser = subparsers.add_parser("info", help="Show the parsed project")
    info_parser.add_argument(
        "project", nargs="?", help="Project file or directory (default: cwd)"
    )
    add_common_args(info_parser)
    info_parser.set_defaults(func=cmd_info)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the srcbld CLI."""
    args_list = list(sys.argv[1:] if argv is None else argv)

    # No subcommand means generate, e.g. "srcbld -n ../proj".
    top_level = ("-h", "--help", "--version")
    if not args_list or args_list[0] not in COMMANDS + top_level:
        args_list.insert(0, "generate")

    parser = build_parser()
    args = parser.parse_args(args_list)

    # Run the specified command
    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line interface for git-version.

Main entry point that orchestrates all components: configuration, subproject
discovery, version resolution and output.
"""

import argparse
import json
import sys
from typing import List, Optional

from loguru import logger
from rich.console import Console

from .changelog import generate_changelog
from .config import Config, load_config
from .logging_config import setup_logging
from .models import VersionRecord
from .resolver import GitVersion, raw_offset_provider

# Results go to stdout, diagnostics to stderr
console = Console(highlight=False)
log_console = Console(stderr=True)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog='git-version',
        description='Derive a version for a project from its git tags and history'
    )

    # Repository layout
    parser.add_argument('--working', help='Working (project) directory to use (default: current directory)')
    parser.add_argument('--gitdir', help='Forces the git root to be the specified directory')

    # Tag matching
    parser.add_argument('--tag-prefix', help="Prefix of this project's tags (a '-' is always appended; "
                                             "pass an empty string to disable, default: project path)")
    parser.add_argument('--match', action='append', metavar='GLOB',
                        help='Glob the tag must match, replaces the tag prefix glob (repeatable)')

    # Subproject detection
    parser.add_argument('--marker', action='append', metavar='NAME',
                        help='Marker file name indicating the root of a subproject (repeatable)')
    parser.add_argument('--ignore', action='append', metavar='NAME',
                        help='File name that stops a directory from counting as a subproject '
                             '(repeatable, default: .gitversion.ignore)')
    parser.add_argument('--ignore-dir', action='append', metavar='NAME',
                        help='Directory name never treated as a subproject (repeatable)')

    # Output
    parser.add_argument('--format', help='Output template using the fields tag, offset, hash, branch, commit, '
                                         'abbreviated_id (default: "{tag}.{offset}")')
    parser.add_argument('--json', action='store_true', default=None, help='Print the full version record as JSON')
    parser.add_argument('--changelog', action='store_true', default=None,
                        help='Print the changelog of the whole history instead of the version')
    parser.add_argument('--raw-offset', action='store_true', default=None,
                        help='Use the plain describe offset instead of counting the project\'s own commits')

    # Logging
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'debug', 'info', 'warning', 'error'],
                        help='Logging level (default: INFO)')

    return parser.parse_args(argv)


def setup_application(argv: Optional[List[str]] = None) -> Optional[Config]:
    """Set up logging, parse arguments and load the configuration."""
    setup_logging(console=log_console)

    args = parse_arguments(argv)

    if args.log_level:
        setup_logging(args.log_level.upper(), console=log_console)

    config = load_config(args)
    if config is None:
        return None

    setup_logging(config.log_level, console=log_console)
    return config


def create_git_version(config: Config) -> GitVersion:
    """Create the GitVersion for the configured project."""
    return GitVersion(
        config.project,
        root=config.root,
        markers=config.markers,
        ignore_files=config.ignore_files,
        ignore_dirs=config.ignore_dirs,
        tag_prefix=config.tag_prefix,
        match_filters=config.match_filters,
        commit_count_provider=raw_offset_provider if config.raw_offset else None,
    )


def format_version(record: VersionRecord, template: str) -> str:
    """
    Format a version record with a ``str.format`` template.

    Raises:
        KeyError: If the template uses an unknown field
    """
    return template.format(**record.to_dict())


def run(config: Config) -> int:
    """
    Resolve and print the version (or changelog) for the configured project.

    Returns:
        int: Process exit code
    """
    git_version = create_git_version(config)
    logger.debug(f'Subprojects: {git_version.subproject_paths}')

    if config.changelog:
        changelog = generate_changelog(git_version.repository(), git_version.tag_prefix, git_version.local_path or None,
                                       git_version.subproject_paths)
        console.print(changelog, end='', markup=False, soft_wrap=True)
        return 0

    record = git_version.info
    if record.is_empty:
        logger.warning('⚠️  No git information available, using placeholder version')

    if config.json_output:
        console.print(json.dumps(record.to_dict(), indent=2), markup=False, soft_wrap=True)
        return 0

    try:
        console.print(format_version(record, config.output_format), markup=False, soft_wrap=True)
    except (KeyError, IndexError, ValueError) as e:
        logger.error(f'Invalid output format "{config.output_format}": {e}')
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the application."""
    config = setup_application(argv)
    if config is None:
        sys.exit(1)

    try:
        exit_code = run(config)
    except Exception as e:
        logger.error(f'Unexpected error: {e}')
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


if __name__ == '__main__':
    main()

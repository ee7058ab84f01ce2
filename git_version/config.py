"""
Configuration management for git-version.

Handles environment variable loading, validation, and provides a centralized
configuration object for the command-line tool.
"""

import os
import shutil
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv
from loguru import logger

from .subprojects import DEFAULT_IGNORE_FILES
from .utils import find_git_root, is_git_root, is_inside

# Load environment variables from .env file
load_dotenv()

DEFAULT_FORMAT = '{tag}.{offset}'
VALID_LOG_LEVELS = ['DEBUG', 'VERBOSE', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def get_config_value(cli_args, field_name: str, env_key: str, default, value_type: type = str):
    """
    Get configuration value with proper precedence: CLI args > env vars > defaults.

    Args:
        cli_args: CLI arguments object or None
        field_name: Name of the CLI argument field
        env_key: Environment variable key
        default: Default value if neither CLI nor env var is set
        value_type: Type to convert the value to (str, int, bool, list)

    Returns:
        The configuration value converted to the specified type
    """
    cli_value = getattr(cli_args, field_name, None) if cli_args else None
    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(env_key)
    if env_value is None:
        return default

    if value_type == bool:
        if env_value.strip().lower() in ('true', '1', 'yes'):
            return True
        elif env_value.strip().lower() in ('false', '0', 'no'):
            return False
        return default

    # Comma-separated lists; an empty variable means an empty list
    if value_type == list:
        return [item.strip() for item in env_value.split(',') if item.strip()]

    # Strings may be set to "" on purpose (an empty tag prefix disables filtering)
    if value_type == str:
        return env_value

    if not env_value:
        return default

    try:
        return value_type(env_value)
    except (ValueError, TypeError):
        return default


def get_config_value_str(cli_args, field_name: str, env_key: str, default: Optional[str] = '') -> Optional[str]:
    """Get string configuration value."""
    return get_config_value(cli_args, field_name, env_key, default, str)


def get_config_value_bool(cli_args, field_name: str, env_key: str, default: bool = False) -> bool:
    """Get boolean configuration value."""
    return get_config_value(cli_args, field_name, env_key, default, bool)


def get_config_value_list(cli_args, field_name: str, env_key: str, default: Optional[List[str]] = None) -> List[str]:
    """Get list configuration value (repeated CLI flag or comma-separated env var)."""
    return list(get_config_value(cli_args, field_name, env_key, default or [], list))


@dataclass
class Config:
    """Configuration object containing all application settings."""

    # Repository layout
    project: str
    root: Optional[str]

    # Subproject detection
    markers: List[str] = field(default_factory=list)
    ignore_files: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_FILES))
    ignore_dirs: List[str] = field(default_factory=list)

    # Tag matching
    tag_prefix: Optional[str] = None
    match_filters: List[str] = field(default_factory=list)

    # Output
    output_format: str = DEFAULT_FORMAT
    json_output: bool = False
    changelog: bool = False
    raw_offset: bool = False

    # Logging
    log_level: str = 'INFO'


def _validate_paths(project: str, root: Optional[str], validation_errors: list) -> Optional[str]:
    """
    Validate the project and root directories.

    Args:
        project: Project directory
        root: Forced repository root, or None to discover it
        validation_errors: List to append validation errors

    Returns:
        str: The repository root to use, or None if validation failed
    """
    if not os.path.isdir(project):
        validation_errors.append(f'Working directory does not exist or is not a directory: {project}')
        return None

    if root is None:
        root = find_git_root(project)
    elif not os.path.isdir(root):
        validation_errors.append(f'Git directory does not exist or is not a directory: {root}')
        return None

    if not is_git_root(root):
        validation_errors.append(f'No git repository found at {root} (or any parent of {project})')
        return None

    if not is_inside(root, project):
        validation_errors.append(f'Working directory ({project}) must be inside the git root ({root})')
        return None

    return root


def load_config(cli_args=None) -> Optional[Config]:
    """
    Load and validate configuration from CLI arguments and environment variables.
    CLI arguments take precedence over environment variables.

    Args:
        cli_args: Parsed CLI arguments or None

    Returns:
        Config: Validated configuration object, or None if validation failed
    """
    project = os.path.abspath(get_config_value_str(cli_args, 'working', 'GITVER_PROJECT', '.') or '.')
    root = get_config_value_str(cli_args, 'gitdir', 'GITVER_ROOT', None)
    root = os.path.abspath(root) if root else None

    markers = get_config_value_list(cli_args, 'marker', 'GITVER_MARKERS')
    ignore_files = get_config_value_list(cli_args, 'ignore', 'GITVER_IGNORE_FILES', list(DEFAULT_IGNORE_FILES))
    ignore_dirs = get_config_value_list(cli_args, 'ignore_dir', 'GITVER_IGNORE_DIRS')

    tag_prefix = get_config_value_str(cli_args, 'tag_prefix', 'GITVER_TAG_PREFIX', None)
    match_filters = get_config_value_list(cli_args, 'match', 'GITVER_MATCH')

    output_format = get_config_value_str(cli_args, 'format', 'GITVER_FORMAT', DEFAULT_FORMAT)
    json_output = get_config_value_bool(cli_args, 'json', 'GITVER_JSON', False)
    changelog = get_config_value_bool(cli_args, 'changelog', 'GITVER_CHANGELOG', False)
    raw_offset = get_config_value_bool(cli_args, 'raw_offset', 'GITVER_RAW_OFFSET', False)

    # Handle log_level (case insensitive)
    log_level = get_config_value_str(cli_args, 'log_level', 'LOG_LEVEL', 'INFO').upper()

    validation_errors = []

    if log_level not in VALID_LOG_LEVELS:
        validation_errors.append(f'LOG_LEVEL must be one of {VALID_LOG_LEVELS} (got: {log_level})')

    if not output_format:
        validation_errors.append('Output format must not be empty')

    if not shutil.which('git'):
        validation_errors.append('git not found. git must be installed and available in PATH.')

    root = _validate_paths(project, root, validation_errors)

    if validation_errors:
        logger.error('❌ Configuration Error:')
        for i, error_msg in enumerate(validation_errors, 1):
            logger.error(f'   {i}. {error_msg}')
        return None

    config = Config(
        project=project,
        root=root,
        markers=markers,
        ignore_files=ignore_files,
        ignore_dirs=ignore_dirs,
        tag_prefix=tag_prefix,
        match_filters=match_filters,
        output_format=output_format,
        json_output=json_output,
        changelog=changelog,
        raw_offset=raw_offset,
        log_level=log_level,
    )

    logger.debug(f'GITVER_PROJECT = {config.project}')
    logger.debug(f'GITVER_ROOT = {config.root}')
    logger.debug(f'GITVER_MARKERS = {config.markers}')
    logger.debug(f'GITVER_IGNORE_FILES = {config.ignore_files}')
    logger.debug(f'GITVER_IGNORE_DIRS = {config.ignore_dirs}')
    logger.debug(f'GITVER_TAG_PREFIX = {config.tag_prefix}')
    logger.debug(f'GITVER_MATCH = {config.match_filters}')
    logger.debug(f'GITVER_FORMAT = {config.output_format}')

    return config

"""
Utility functions for git-version.

Path handling, ref name shortening and tag name normalization shared by
the resolver, the subproject scanner and the changelog generator.
"""

import os
import re
from typing import List, Optional

_REF_PREFIXES = ('refs/heads/', 'refs/tags/', 'refs/remotes/')
_VERSION_V_PREFIX = re.compile(r'^v(?=\d)')


def is_git_root(directory: str) -> bool:
    """Check if the directory holds a ``.git`` entry (directory or file)."""
    return os.path.exists(os.path.join(directory, '.git'))


def find_git_root(working: str) -> str:
    """
    Find the root of the git repository containing ``working``.

    Walks up the parent directories until one contains ``.git``. When no
    such directory exists the working directory itself is returned.

    Args:
        working: Directory to start searching from

    Returns:
        str: Absolute path of the repository root
    """
    working = os.path.abspath(working)
    directory = working
    while True:
        if is_git_root(directory):
            return directory
        parent = os.path.dirname(directory)
        if parent == directory:
            return working
        directory = parent


def get_local_path(root: str, sub_project: str) -> str:
    """
    Get the path of ``sub_project`` relative to ``root``.

    Returns an empty string when both point at the same directory. The
    result always uses forward slashes, since it is handed to git as a
    pathspec.
    """
    root = os.path.abspath(root)
    sub_project = os.path.abspath(sub_project)
    if root == sub_project:
        return ''

    result = os.path.relpath(sub_project, root)
    return result.replace(os.sep, '/').lstrip('/')


def is_inside(root: str, path: str) -> bool:
    """Check if ``path`` is ``root`` or one of its descendants."""
    root = os.path.abspath(root)
    path = os.path.abspath(path)
    try:
        return os.path.commonpath([root, path]) == root
    except ValueError:
        # Different drives on Windows
        return False


def sanitize_tag_prefix(tag_prefix: Optional[str]) -> str:
    """
    Normalize a tag prefix.

    A non-empty prefix always ends with ``-``; an empty or missing prefix
    becomes the empty string, which disables prefix filtering.
    """
    if not tag_prefix:
        return ''

    return tag_prefix if tag_prefix.endswith('-') else tag_prefix + '-'


def strip_tag_name(tag_name: str, tag_prefix: str = '') -> str:
    """
    Turn a tag name into its version part.

    The tag prefix is cut off, then a leading ``v`` is dropped when a digit
    follows it: ``mod-v2.3`` with prefix ``mod-`` becomes ``2.3``, while
    ``vanilla`` stays as is.
    """
    if tag_prefix and tag_name.startswith(tag_prefix):
        tag_name = tag_name[len(tag_prefix):]
    return _VERSION_V_PREFIX.sub('', tag_name, count=1)


def shorten_ref_name(ref_name: str) -> str:
    """Shorten ``refs/heads/main`` to ``main`` (also tags and remotes)."""
    for prefix in _REF_PREFIXES:
        if ref_name.startswith(prefix):
            return ref_name[len(prefix):]
    return ref_name


def rsplit(value: Optional[str], delimiter: str, limit: int = -1) -> Optional[List[str]]:
    """
    Split a string from the right.

    Mirrors ``str.rsplit`` but passes ``None`` through, so callers can
    chain it onto lookups that may have found nothing.

    Args:
        value: String to split, or None
        delimiter: Separator to split on
        limit: Maximum number of splits, -1 for no limit

    Returns:
        List of parts, or None if ``value`` was None
    """
    if value is None:
        return None
    return value.rsplit(delimiter, limit)

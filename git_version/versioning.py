"""
Version maps for whole commit histories.

All functions here are pure: they take a commit list ordered youngest to
oldest (Commit objects or plain hashes) plus a map of tagged commit hashes
to version names, and never touch the repository.

Versioning scheme:
- A tagged commit gets its tag version with a ``.0`` patch section.
- Each following untagged commit bumps the patch section by one.
- Commits before the first tag are pre-releases of the oldest tagged
  version (or ``1.0``): ``1.0-pre-1``, ``1.0-pre-2``, ...
"""

from typing import Collection, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from loguru import logger

from .models import Commit

DEFAULT_VERSION = '1.0'

CommitLike = Union[Commit, str]


def _hash(commit: CommitLike) -> str:
    return commit.hash if isinstance(commit, Commit) else commit


def get_first_released_version(commits: Iterable[CommitLike], commit_hash_to_versions: Mapping[str, str]) -> str:
    """
    Find the oldest tagged version in a commit list.

    Args:
        commits: Commits ordered youngest to oldest
        commit_hash_to_versions: Map of tagged commit hashes to version names

    Returns:
        str: The version of the oldest tagged commit, or "1.0" if none is tagged
    """
    current_version = DEFAULT_VERSION
    for commit in commits:
        version = commit_hash_to_versions.get(_hash(commit))
        if version is not None:
            current_version = version
    return current_version


def build_version_map(commits: Sequence[CommitLike], commit_hash_to_versions: Mapping[str, str]) -> Dict[str, str]:
    """
    Build a map of commit hash to full version.

    The patch section counts commits since the last tagged commit, which
    itself gets patch 0. Commits older than the first tag get
    ``<first released version>-pre-<offset>`` instead.

    Args:
        commits: Commits ordered youngest to oldest
        commit_hash_to_versions: Map of tagged commit hashes to version names

    Returns:
        Dict with exactly one version per input commit
    """
    commits = list(commits)
    prerelease_target_version = get_first_released_version(commits, commit_hash_to_versions)

    current_version = ''
    offset = 0
    version_map = {}
    for commit in reversed(commits):
        commit_hash = _hash(commit)
        version = commit_hash_to_versions.get(commit_hash)
        if version is not None:
            current_version = version
            offset = 0
        else:
            offset += 1

        if current_version:
            version_map[commit_hash] = f'{current_version}.{offset}'
        else:
            version_map[commit_hash] = f'{prerelease_target_version}-pre-{offset}'

    return version_map


def get_primary_version_map(commits: Iterable[CommitLike], commit_hash_to_versions: Mapping[str, str]) -> Dict[str, str]:
    """
    Map every commit to its primary version, the release window it belongs to.

    Walking from youngest to oldest, commits are collected until a tagged
    commit closes the window; all collected commits (tagged one included)
    get that tag's version. Commits older than the oldest tag become
    ``<oldest version>-pre``, or ``1.0-pre`` when there are no tags at all.

    Args:
        commits: Commits ordered youngest to oldest
        commit_hash_to_versions: Map of tagged commit hashes to version names

    Returns:
        Dict mapping commit hash to primary version
    """
    last_version: Optional[str] = None
    pending: List[str] = []
    primary_version_map = {}

    for commit in commits:
        commit_hash = _hash(commit)
        pending.append(commit_hash)
        version = commit_hash_to_versions.get(commit_hash)
        if version is not None:
            for pending_hash in pending:
                primary_version_map[pending_hash] = version
            last_version = version
            pending.clear()

    # Untagged repositories are all pre-releases of 1.0
    if not commit_hash_to_versions:
        last_version = DEFAULT_VERSION

    if last_version is not None:
        for pending_hash in pending:
            primary_version_map[pending_hash] = f'{last_version}-pre'
    elif pending:
        logger.debug(f'{len(pending)} commit(s) have no primary version: none of the known tags is in their history')

    return primary_version_map


def determine_prefix_length_per_primary_version(available_versions: Iterable[str],
                                                available_primary_versions: Collection[str]) -> Dict[str, int]:
    """
    Determine the display width needed per primary version.

    The width is the length of the longest version in that release window,
    so versions line up when printed under each other. Primary versions
    are tried in reverse sorted order so a short one ("1.0") never claims
    a version belonging to a longer one it prefixes ("1.0.1").

    Args:
        available_versions: All full versions, in any order
        available_primary_versions: All primary versions, in any order

    Returns:
        Dict mapping primary version to width
    """
    result: Dict[str, int] = {}
    primary_versions = sorted(available_primary_versions, reverse=True)

    for version in available_versions:
        for primary_version in primary_versions:
            if not version.startswith(primary_version):
                continue

            length = len(version.strip())
            if result.get(primary_version, -1) < length:
                result[primary_version] = length
            break

    return result


def process_commit_body(body: str) -> str:
    """Strip ``Signed-off-by:`` trailers and blank lines from a commit body."""
    lines = [
        line for line in body.split('\n')
        if not line.startswith('Signed-off-by: ') and line.strip()
    ]
    return '\n'.join(lines).strip()


def primary_versions(primary_version_map: Mapping[str, str]) -> Set[str]:
    """Get the distinct primary versions of a primary version map."""
    return set(primary_version_map.values())

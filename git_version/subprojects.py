"""
Subproject discovery and scoped commit counting.

A subproject is a directory below the project holding a marker file (for
example ``build.gradle`` or ``pyproject.toml``) and no ignore file. Commits
that only touch subprojects are not counted towards the parent project.
"""

import os
from typing import Collection, Dict, Iterable, List

from loguru import logger

from .history import get_first_commit_in_repository, get_tag_to_commit_map, walk
from .repository import GitError, GitRepository
from .utils import get_local_path

DEFAULT_IGNORE_FILES = ('.gitversion.ignore',)

# Never descend into these, they cannot hold subprojects
_SKIPPED_DIRS = {'.git'}


def find_subprojects(project: str, root: str, markers: Iterable[str], ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES,
                     ignore_dirs: Iterable[str] = ()) -> Dict[str, str]:
    """
    Find the subprojects below a project directory.

    Args:
        project: Project directory to scan
        root: Repository root the returned paths are relative to
        markers: File names marking a directory as a project
        ignore_files: File names that stop a marked directory from counting
        ignore_dirs: Directory names, or paths relative to the root, to skip

    Returns:
        Dict mapping each subproject's absolute path to its path relative to root
    """
    markers = set(markers)
    ignore_files = set(ignore_files)
    ignore_dirs = {path.strip('/') for path in ignore_dirs}
    project = os.path.abspath(project)

    subprojects = {}
    if not markers:
        return subprojects

    for directory, dir_names, file_names in os.walk(project):
        dir_names[:] = sorted(
            name for name in dir_names
            if name not in _SKIPPED_DIRS
            and name not in ignore_dirs
            and get_local_path(root, os.path.join(directory, name)) not in ignore_dirs
        )

        if directory == project:
            continue

        files = set(file_names)
        if files & markers and not files & ignore_files:
            subprojects[directory] = get_local_path(root, directory)
            logger.debug(f'Found subproject: {subprojects[directory]}')

    return subprojects


class SubprojectCommitCounter:
    """
    Counts a project's own commits since a tag.

    The walk is limited to the project's directory and leaves out every
    subproject, so commits to nested modules do not bump the parent's
    version.

    Args:
        local_path: Project path relative to the repository root ("" for the root)
        subproject_paths: Subproject paths relative to the repository root
    """

    def __init__(self, local_path: str, subproject_paths: Collection[str]) -> None:
        self.local_path = local_path or ''
        self.subproject_paths = sorted(subproject_paths or ())

    def __call__(self, repo: GitRepository, tag: str) -> int:
        return self.count(repo, tag)

    def count(self, repo: GitRepository, tag: str) -> int:
        """
        Count the project's commits since ``tag``.

        The walk includes the tagged commit and one is subtracted for it, even
        when the tagged commit lies outside the project directory and so is
        not part of the walk; such counts come out one lower.

        Returns:
            int: The commit count, or -1 when there is nothing to scope by
            or the walk failed
        """
        if not self.local_path and not self.subproject_paths:
            return -1

        try:
            count = self._count(repo, tag)
        except GitError as e:
            logger.warning(f'Failed to count commits for tag {tag}: {e}')
            return -1

        if count < 0:
            logger.warning(f'Failed to count commits for tag {tag}!')
        return count

    def _count(self, repo: GitRepository, tag: str) -> int:
        commit_id = get_tag_to_commit_map(repo).get(tag)
        if commit_id is not None:
            start = repo.get_commit(commit_id)
        else:
            logger.debug(f'Tag {tag} not found, counting from the first commit')
            start = get_first_commit_in_repository(repo)
            if start is None:
                return -1

        commits = walk(
            repo,
            start,
            'HEAD',
            path_filter=self.local_path,
            exclude_paths=self.subproject_paths,
        )

        # The walk includes the start commit itself
        return sum(1 for _ in commits) - 1


def subproject_paths(subprojects: Dict[str, str]) -> List[str]:
    """Get the relative paths of located subprojects, sorted."""
    return sorted(subprojects.values())


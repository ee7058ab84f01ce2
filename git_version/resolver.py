"""
Version resolution for a (possibly nested) project in a git repository.

GitVersion ties the pieces together: it locates subprojects, matches the
nearest tag to HEAD under the project's tag prefix and counts the
project's own commits since that tag.

Resolution is best effort. Any failure is logged and yields
VersionRecord.EMPTY, so computing a version never aborts a build.
"""

import os
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .models import DescribeResult, VersionRecord, short_id
from .repository import GitRepository, GitSession
from .subprojects import DEFAULT_IGNORE_FILES, SubprojectCommitCounter, find_subprojects, subproject_paths
from .utils import find_git_root, get_local_path, is_inside, sanitize_tag_prefix, shorten_ref_name, strip_tag_name

# Without a tag prefix, skip tags of other modules ("module-1.0")
UNPREFIXED_EXCLUDE = '*-*'

CommitCountProvider = Callable[[GitRepository, str], int]


def raw_offset_provider(repo: GitRepository, tag: str) -> int:
    """Commit count provider that always defers to the describe offset."""
    return -1


def commit_count_as_string(provider: CommitCountProvider, repo: GitRepository, tag: str, fallback: str) -> str:
    """
    Ask a commit count provider for the offset, falling back to ``fallback``.

    The fallback is used when the provider raises or returns a count that
    is not positive.
    """
    try:
        result = provider(repo, tag)
        if result > 0:
            return str(result)
    except Exception as e:
        logger.debug(f'Commit count provider failed for tag {tag}: {e}')

    return fallback


def describe_patterns(tag_prefix: str, match_filters: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Build the include and exclude globs for the nearest-tag match.

    A tag prefix only admits ``<prefix>**``. Without one, tags containing a
    ``-`` are excluded so plain release tags win over other modules' tags.
    Explicit match filters replace the prefix glob.

    Returns:
        tuple: (match globs, exclude globs)
    """
    match = [tag_prefix + '**'] if tag_prefix else []
    exclude = [] if tag_prefix else [UNPREFIXED_EXCLUDE]
    if match_filters:
        match = list(match_filters)
    return match, exclude


class GitVersion:
    """
    Version information for one project inside a git repository.

    Args:
        project: Project directory
        root: Repository root; found by walking up from ``project`` if None
        markers: Marker file names identifying subprojects
        ignore_files: File names that stop a marked directory from being a subproject
        ignore_dirs: Directory names never treated as subprojects
        tag_prefix: Tag prefix; None derives it from the project's path
            relative to the root, "" disables prefix filtering
        match_filters: Globs overriding the prefix glob
        session: Git session settings for every command of this project
        commit_count_provider: Offset source; defaults to the subproject counter

    Raises:
        ValueError: If the project directory is not inside the root
    """

    def __init__(self, project: str, root: Optional[str] = None, markers: Iterable[str] = (),
                 ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES, ignore_dirs: Iterable[str] = (),
                 tag_prefix: Optional[str] = None, match_filters: Optional[Sequence[str]] = None,
                 session: Optional[GitSession] = None,
                 commit_count_provider: Optional[CommitCountProvider] = None) -> None:
        self.project = os.path.abspath(project)
        self.root = os.path.abspath(root) if root is not None else find_git_root(self.project)
        self.git_dir = os.path.join(self.root, '.git')
        if not is_inside(self.root, self.project):
            raise ValueError('Project directory must be a subdirectory of the root directory!')

        self.local_path = get_local_path(self.root, self.project)
        self.tag_prefix = sanitize_tag_prefix(tag_prefix if tag_prefix is not None else self.local_path)
        self.match_filters = list(match_filters or [])
        self.session = session if session is not None else GitSession()
        self.subprojects: Dict[str, str] = find_subprojects(
            self.project, self.root, markers, ignore_files, ignore_dirs
        )
        self._commit_count_provider = commit_count_provider
        self._info: Optional[VersionRecord] = None

    def __repr__(self) -> str:
        return f'GitVersion(project={self.project!r}, tag_prefix={self.tag_prefix!r})'

    @property
    def info(self) -> VersionRecord:
        """The resolved version record, computed on first access."""
        if self._info is None:
            self._info = self.resolve()
        return self._info

    def set_tag_prefix(self, tag_prefix: Optional[str]) -> None:
        """Change the tag prefix and drop the cached version record."""
        self.tag_prefix = sanitize_tag_prefix(tag_prefix)
        self._info = None

    def set_match_filters(self, match_filters: Optional[Sequence[str]]) -> None:
        """Change the match filters and drop the cached version record."""
        self.match_filters = list(match_filters or [])
        self._info = None

    @property
    def subproject_paths(self) -> List[str]:
        return subproject_paths(self.subprojects)

    def repository(self) -> GitRepository:
        """Open the repository with this project's session settings."""
        return GitRepository(self.root, self.session)

    def get_subproject_commit_count(self, repo: GitRepository, tag: str) -> int:
        """Count this project's own commits since ``tag``; -1 if unknown."""
        return SubprojectCommitCounter(self.local_path, self.subproject_paths).count(repo, tag)

    def resolve(self, commit_count_provider: Optional[CommitCountProvider] = None) -> VersionRecord:
        """
        Resolve the version record for HEAD.

        Args:
            commit_count_provider: Offset source for this call only

        Returns:
            VersionRecord: The resolved record, or VersionRecord.EMPTY on failure
        """
        provider = commit_count_provider or self._commit_count_provider or self.get_subproject_commit_count
        try:
            return self._resolve(self.repository(), provider)
        except Exception as e:
            logger.error(f'Failed to resolve git info for {self.project}: {e}')
            return VersionRecord.EMPTY

    def _describe(self, repo: GitRepository) -> Optional[DescribeResult]:
        match, exclude = describe_patterns(self.tag_prefix, self.match_filters)
        return repo.describe(match=match, exclude=exclude, long=True)

    def _resolve(self, repo: GitRepository, provider: CommitCountProvider) -> VersionRecord:
        described = self._describe(repo)
        if described is None:
            logger.error(
                f'Failed to describe git info! Incorrect filters? Tag prefix: {self.tag_prefix}, '
                f"glob filters: {', '.join(self.match_filters)}"
            )
            return VersionRecord.EMPTY

        head_ref = repo.head_ref()
        head_id = repo.resolve_ref('HEAD')
        if head_id is None:
            logger.error('HEAD does not point at a commit')
            return VersionRecord.EMPTY

        tag = strip_tag_name(described.tag, self.tag_prefix)
        offset = commit_count_as_string(provider, repo, described.tag, described.offset)
        branch = shorten_ref_name(head_ref) if head_ref is not None else VersionRecord.DEFAULT_BRANCH

        record = VersionRecord(
            tag=tag,
            offset=offset,
            hash=described.hash,
            branch=branch,
            commit=head_id,
            abbreviated_id=short_id(head_id),
        )
        logger.debug(f'Resolved {self.local_path or "root project"}: {record}')
        return record

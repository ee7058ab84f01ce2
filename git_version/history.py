"""
Commit history walking and tag lookups.

Builds the ancestry walks and tag maps used by the subproject counter and
the changelog generator on top of GitRepository.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Union

from .models import Commit, Tag
from .repository import GitRepository

Revision = Union[Commit, str]


def _revision_id(revision: Revision) -> str:
    return revision.hash if isinstance(revision, Commit) else revision


def walk(repo: GitRepository, start: Optional[Commit], end: Revision = 'HEAD', path_filter: Optional[str] = None,
         exclude_paths: Iterable[str] = (), exclude_ancestors_of: Iterable[Revision] = ()) -> Iterator[Commit]:
    """
    Walk the history from ``end`` back to ``start``, youngest first.

    When ``start`` has parents, everything reachable from those parents is
    left out, so ``start`` itself is the oldest commit returned. A root
    commit (or no ``start`` at all) walks the full history of ``end``.

    Args:
        repo: Repository to walk
        start: Oldest commit to include, typically a tagged commit
        end: Youngest revision to walk from
        path_filter: Only keep commits touching this path
        exclude_paths: Drop commits that only touch these subtrees
        exclude_ancestors_of: Further revisions whose history is left out

    Returns:
        Iterator of Commit objects

    Raises:
        GitError: If the repository cannot be read
    """
    exclude = list(start.parents) if start is not None else []
    exclude.extend(_revision_id(rev) for rev in exclude_ancestors_of)

    return repo.log(
        [_revision_id(end)],
        exclude=exclude,
        path_filter=path_filter or None,
        exclude_paths=list(exclude_paths),
    )


def get_commit_log_from_to(repo: GitRepository, start: Commit, end: Revision,
                           path_filter: Optional[str] = None) -> Iterator[Commit]:
    """Get the commits from ``start`` (oldest, inclusive) to ``end``, youngest first."""
    return walk(repo, start, end, path_filter=path_filter)


def get_head(repo: GitRepository) -> Commit:
    """Get the commit HEAD points at."""
    return repo.head_commit()


def get_first_commit_in_repository(repo: GitRepository) -> Optional[Commit]:
    """
    Get the oldest commit reachable from HEAD.

    Returns:
        Commit: The last commit of a full walk, or None for an empty history
    """
    commit = None
    for commit in repo.log(['HEAD']):
        pass
    return commit


def get_commit_to_tag_map(repo: GitRepository, tag_prefix: Optional[str] = None) -> Dict[str, str]:
    """
    Build a map of commit hashes to tag names.

    When several tags point at one commit the last one by name wins.

    Args:
        repo: Repository to read tags from
        tag_prefix: Only keep tags whose name starts with this prefix

    Returns:
        Dict mapping commit hash to tag name
    """
    return {tag.commit: tag.name for tag in _tags(repo, tag_prefix)}


def get_tag_to_commit_map(repo: GitRepository, tag_prefix: Optional[str] = None) -> Dict[str, str]:
    """Build a map of tag names to the commit hashes they point at."""
    return {tag.name: tag.commit for tag in _tags(repo, tag_prefix)}


def _tags(repo: GitRepository, tag_prefix: Optional[str]) -> List[Tag]:
    tags = repo.list_tags()
    if tag_prefix:
        tags = [tag for tag in tags if tag.name.startswith(tag_prefix)]
    return tags

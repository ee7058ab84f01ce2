"""
Merge base lookups across branches.

Used to find where the current branch split off, which seeds pre-release
numbering in multi-branch workflows.
"""

from typing import Optional, Union

from loguru import logger

from .models import BranchRef, Commit
from .repository import GitRepository, MissingObjectError


def get_merge_base(repo: GitRepository, other: Union[BranchRef, Commit, str],
                   head: Optional[Union[Commit, str]] = None) -> Optional[Commit]:
    """
    Get the merge base commit between HEAD (or ``head``) and another revision.

    A missing object on either side counts as "no merge base"; any other
    repository failure propagates.

    Args:
        repo: Repository to search
        other: Branch, commit or revision to find the merge base with
        head: Revision to use instead of HEAD

    Returns:
        Commit: The merge base, or None if there is none
    """
    other_id = other.commit if isinstance(other, BranchRef) else getattr(other, 'hash', other)
    head_id = getattr(head, 'hash', head) or 'HEAD'
    try:
        merge_base_id = repo.merge_base(other_id, head_id)
        if merge_base_id is None:
            return None
        return repo.get_commit(merge_base_id)
    except MissingObjectError as e:
        logger.debug(f'No merge base between {head_id} and {other_id}: {e}')
        return None


def get_merge_base_commit(repo: GitRepository) -> Optional[Commit]:
    """
    Find the youngest merge base between HEAD and the remote branches.

    Branches sitting on HEAD itself are skipped, as are merge bases equal
    to HEAD (branches that HEAD already contains). Of the rest, the one
    with the newest commit time wins; ties go to the first branch listed.

    Args:
        repo: Repository to search

    Returns:
        Commit: The youngest merge base, or None if no remote branch qualifies
    """
    head = repo.head_commit()
    youngest = None
    for branch in repo.list_remote_branches():
        if branch.commit == head.hash:
            continue

        merge_base = get_merge_base(repo, branch, head)
        if merge_base is None or merge_base.hash == head.hash:
            continue

        logger.debug(f'Merge base with {branch.name}: {merge_base.hash[:8]} ({merge_base.timestamp})')
        if youngest is None or merge_base.timestamp > youngest.timestamp:
            youngest = merge_base

    return youngest

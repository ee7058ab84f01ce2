"""
Tests for merge_base.py module.

Tests merge base lookups between HEAD and remote branches.
"""

from unittest.mock import MagicMock

from git_version.merge_base import get_merge_base, get_merge_base_commit
from git_version.models import BranchRef, Commit
from git_version.repository import GitRepository, MissingObjectError


def mock_repo(head, branches, merge_bases):
    """Build a repository mock; ``merge_bases`` maps branch commit -> Commit or None."""
    repo = MagicMock()
    repo.head_commit.return_value = head
    repo.list_remote_branches.return_value = branches
    commits = {c.hash: c for c in merge_bases.values() if c is not None}
    repo.merge_base.side_effect = lambda other, _head: getattr(merge_bases.get(other), 'hash', None)
    repo.get_commit.side_effect = lambda commit_id: commits[commit_id]
    return repo


class TestGetMergeBase:
    """Test the merge base between two revisions."""

    def test_merge_base_of_forked_branch(self, git_repo):
        """Test finding the fork point."""
        git_repo.commit('First')
        fork = git_repo.commit('Second')
        git_repo.commit('Third')
        git_repo.checkout(fork)
        side = git_repo.commit('Side')
        git_repo.checkout('master')

        result = get_merge_base(GitRepository(git_repo.path), side)
        assert result.hash == fork

    def test_accepts_branch_refs_and_commits(self, git_repo):
        first = git_repo.commit('First')
        git_repo.commit('Second')
        repo = GitRepository(git_repo.path)

        assert get_merge_base(repo, BranchRef('refs/remotes/origin/old', first)).hash == first
        assert get_merge_base(repo, repo.get_commit(first)).hash == first

    def test_unrelated_histories(self, git_repo):
        """Test that unrelated histories have no merge base."""
        git_repo.commit('First')
        git_repo.git('checkout', '-q', '--orphan', 'other')
        orphan = git_repo.commit('Orphan')
        git_repo.checkout('master')

        assert get_merge_base(GitRepository(git_repo.path), orphan) is None

    def test_missing_object_is_no_merge_base(self, log_messages):
        """Test that a missing commit counts as no merge base."""
        repo = MagicMock()
        repo.merge_base.side_effect = MissingObjectError('missing')

        assert get_merge_base(repo, 'deadbeef') is None
        assert any('No merge base' in message for message in log_messages)


class TestGetMergeBaseCommit:
    """Test the youngest merge base across remote branches."""

    def test_youngest_merge_base_wins(self, git_repo):
        """Test selection across several remote branches."""
        first = git_repo.commit('First')
        fork = git_repo.commit('Second')
        git_repo.commit('Third')
        git_repo.remote_branch('origin/current')
        git_repo.commit('Fourth')
        git_repo.remote_branch('origin/head')
        git_repo.remote_branch('origin/old', first)

        git_repo.checkout(fork)
        git_repo.commit('Side work')
        git_repo.remote_branch('origin/side')
        git_repo.checkout('master')

        result = get_merge_base_commit(GitRepository(git_repo.path))
        # origin/current (Third) is an ancestor of HEAD and younger than the fork
        assert result.subject == 'Third'

    def test_branches_on_head_and_ahead_are_skipped(self, git_repo):
        """Test that HEAD itself never counts as a merge base."""
        git_repo.commit('First')
        git_repo.remote_branch('origin/main')
        git_repo.branch('base')
        git_repo.commit('Ahead')
        git_repo.remote_branch('origin/ahead')
        git_repo.checkout('base')

        assert get_merge_base_commit(GitRepository(git_repo.path)) is None

    def test_no_remote_branches(self, git_repo):
        git_repo.commit('First')
        assert get_merge_base_commit(GitRepository(git_repo.path)) is None

    def test_ties_go_to_first_branch(self):
        """Test that equal timestamps keep the first candidate."""
        head = Commit(hash='head', timestamp=100)
        a = Commit(hash='mb-a', timestamp=50)
        b = Commit(hash='mb-b', timestamp=50)
        repo = mock_repo(head, [BranchRef('refs/remotes/origin/a', 'a'), BranchRef('refs/remotes/origin/b', 'b')],
                         {'a': a, 'b': b})

        assert get_merge_base_commit(repo) == a

    def test_unrelated_branch_is_skipped(self):
        head = Commit(hash='head', timestamp=100)
        a = Commit(hash='mb-a', timestamp=10)
        repo = mock_repo(head, [BranchRef('refs/remotes/origin/x', 'x'), BranchRef('refs/remotes/origin/a', 'a')],
                         {'x': None, 'a': a})

        assert get_merge_base_commit(repo) == a

"""
Repository query interface for git-version.

Everything the engine needs to know about a repository goes through
GitRepository, which runs the ``git`` executable and parses its output.
The engine itself never reads repository storage directly.

Error behavior:
- A ref or object that does not exist raises MissingObjectError. Callers
  that can treat this as "no result" (merge base search, tag lookups)
  catch it; others let it propagate.
- Any other non-zero git exit, or a missing git executable, raises
  GitError and is fatal to the current operation.
"""

import os
import subprocess
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from loguru import logger

from .models import BranchRef, Commit, DescribeResult, Tag
from .utils import rsplit

# hash, parents, committer timestamp, raw body
_LOG_FORMAT = '%H%x1f%P%x1f%ct%x1f%B%x1e'
_FIELD_SEP = '\x1f'
_RECORD_SEP = '\x1e'

_MISSING_OBJECT_MARKERS = (
    'unknown revision',
    'bad revision',
    'bad object',
    'not a valid object name',
    'not a valid commit name',
    'invalid object name',
)

_NO_DESCRIPTION_MARKERS = (
    'no names found',
    'no tags can describe',
    'cannot describe',
)


class GitError(RuntimeError):
    """Raised when a git command fails."""

    def __init__(self, message: str, args: Sequence[str] = (), returncode: Optional[int] = None,
                 stderr: str = '') -> None:
        self.git_args = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class MissingObjectError(GitError):
    """Raised when a ref or object id does not exist in the repository."""


@dataclass
class GitSession:
    """
    Git settings applied to every command of one repository session.

    The system-level git configuration is switched off through the
    environment of the commands this session runs, never through process
    wide state, so sessions with different settings can run side by side.

    Attributes:
        disable_system_config: Ignore the system gitconfig (GIT_CONFIG_NOSYSTEM)
        safe_directory: Mark the repository root as safe, for checkouts owned
            by another user (CI containers, sudo)
        config: Extra ``key=value`` configuration entries for every command
    """

    disable_system_config: bool = True
    safe_directory: bool = True
    config: Dict[str, str] = field(default_factory=dict)

    def environment(self, root: str) -> Dict[str, str]:
        """Build the environment for a git command run inside ``root``."""
        env = os.environ.copy()
        env['LC_ALL'] = 'C'
        env['GIT_TERMINAL_PROMPT'] = '0'
        if self.disable_system_config:
            env['GIT_CONFIG_NOSYSTEM'] = '1'

        entries = dict(self.config)
        if self.safe_directory:
            entries.setdefault('safe.directory', os.path.abspath(root))

        # Append after any GIT_CONFIG_* entries the caller already exported
        try:
            count = int(env.get('GIT_CONFIG_COUNT', '0'))
        except ValueError:
            count = 0
        for key, value in entries.items():
            env[f'GIT_CONFIG_KEY_{count}'] = key
            env[f'GIT_CONFIG_VALUE_{count}'] = value
            count += 1
        if count:
            env['GIT_CONFIG_COUNT'] = str(count)

        return env


class GitRepository:
    """Read-only view of a git repository backed by the git executable."""

    def __init__(self, root: str, session: Optional[GitSession] = None) -> None:
        self.root = os.path.abspath(root)
        self.session = session if session is not None else GitSession()

    def __repr__(self) -> str:
        return f'GitRepository({self.root!r})'

    def run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        """
        Run a git command inside the repository.

        Args:
            *args: Arguments after ``git``
            check: Raise GitError (or MissingObjectError) on a non-zero exit

        Returns:
            subprocess.CompletedProcess: The finished process with text output

        Raises:
            GitError: If git cannot be started, or exits non-zero with check=True
        """
        logger.debug(f"git {' '.join(args)} (in {self.root})")
        try:
            result = subprocess.run(
                ['git', *args],
                cwd=self.root,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                env=self.session.environment(self.root),
            )
        except FileNotFoundError as e:
            raise GitError(f'Cannot run git in {self.root}: {e}', args) from e
        except OSError as e:
            raise GitError(f'Failed to run git in {self.root}: {e}', args) from e

        if check and result.returncode != 0:
            raise self._error(args, result)
        return result

    @staticmethod
    def _error(args: Sequence[str], result: subprocess.CompletedProcess) -> GitError:
        stderr = (result.stderr or '').strip()
        message = f"git {' '.join(args)} failed with exit code {result.returncode}: {stderr}"
        lowered = stderr.lower()
        if any(marker in lowered for marker in _MISSING_OBJECT_MARKERS):
            return MissingObjectError(message, args, result.returncode, stderr)
        return GitError(message, args, result.returncode, stderr)

    def is_repository(self) -> bool:
        """Check if the root is inside a git work tree."""
        try:
            result = self.run('rev-parse', '--is-inside-work-tree', check=False)
        except GitError:
            return False
        return result.returncode == 0 and result.stdout.strip() == 'true'

    def resolve_ref(self, name: str) -> Optional[str]:
        """
        Resolve a ref, tag or abbreviated id to a full commit id.

        Returns:
            str: The commit id, or None if nothing by that name exists
        """
        result = self.run('rev-parse', '--verify', '--quiet', f'{name}^{{commit}}', check=False)
        if result.returncode == 0:
            return result.stdout.strip()
        if result.returncode == 1:
            return None
        raise self._error(('rev-parse', '--verify', name), result)

    def get_commit(self, commit_id: str) -> Commit:
        """
        Load a single commit.

        Raises:
            MissingObjectError: If the commit does not exist
        """
        result = self.run('log', '-1', f'--format={_LOG_FORMAT}', f'{commit_id}^{{commit}}', '--')
        commits = list(self._parse_log(result.stdout))
        if not commits:
            raise MissingObjectError(f'Commit not found: {commit_id}', ('log', commit_id))
        return commits[0]

    def head_commit(self) -> Commit:
        """Load the commit HEAD points at."""
        return self.get_commit('HEAD')

    def head_ref(self) -> Optional[str]:
        """
        Get the full ref name HEAD points at, e.g. ``refs/heads/main``.

        Returns:
            str: The symbolic target, or None when HEAD is detached
        """
        result = self.run('symbolic-ref', '-q', 'HEAD', check=False)
        if result.returncode == 0:
            return result.stdout.strip() or None
        if result.returncode == 1:
            return None
        raise self._error(('symbolic-ref', 'HEAD'), result)

    def log(self, include: Sequence[str], exclude: Sequence[str] = (), path_filter: Optional[str] = None,
            exclude_paths: Sequence[str] = ()) -> Iterator[Commit]:
        """
        List commits reachable from ``include`` but not from ``exclude``.

        Commits come youngest first; no parent is listed before all of its
        children. The git command runs immediately, so a broken repository
        fails here rather than on first iteration.

        Args:
            include: Revisions to walk from
            exclude: Revisions whose whole history is left out
            path_filter: Only keep commits touching this path
            exclude_paths: Drop commits that only touch these paths

        Returns:
            Iterator of Commit objects
        """
        args = ['log', f'--format={_LOG_FORMAT}', '--date-order']
        args.extend(include)
        args.extend(f'^{rev}' for rev in exclude)
        args.append('--')
        if path_filter:
            args.append(path_filter)
        if exclude_paths:
            if not path_filter:
                args.append('.')
            args.extend(f':(exclude){path}' for path in exclude_paths)

        result = self.run(*args)
        return iter(list(self._parse_log(result.stdout)))

    @staticmethod
    def _parse_log(output: str) -> Iterator[Commit]:
        for record in output.split(_RECORD_SEP):
            record = record.lstrip('\n')
            if not record.strip():
                continue
            commit_hash, parents, timestamp, body = record.split(_FIELD_SEP, 3)
            yield Commit(
                hash=commit_hash,
                parents=tuple(parents.split()),
                timestamp=int(timestamp or 0),
                body=body.rstrip('\n'),
            )

    def list_tags(self) -> List[Tag]:
        """List all tags, with annotated tags peeled to their commit."""
        result = self.run('for-each-ref', '--format=%(refname)%1f%(objectname)%1f%(*objectname)', 'refs/tags')
        tags = []
        for line in result.stdout.splitlines():
            if not line:
                continue
            ref_name, object_id, peeled_id = line.split(_FIELD_SEP)
            tags.append(Tag(name=ref_name[len('refs/tags/'):], commit=peeled_id or object_id))
        return tags

    def list_remote_branches(self) -> List[BranchRef]:
        """List remote tracking branches (``refs/remotes/*``)."""
        result = self.run('for-each-ref', '--format=%(refname)%1f%(objectname)%1f%(symref)', 'refs/remotes')
        branches = []
        for line in result.stdout.splitlines():
            if not line:
                continue
            ref_name, object_id, symref = line.split(_FIELD_SEP)
            # origin/HEAD only duplicates the branch it points at
            if symref:
                continue
            branches.append(BranchRef(name=ref_name, commit=object_id))
        return branches

    def merge_base(self, ref_a: str, ref_b: str) -> Optional[str]:
        """
        Find the best common ancestor of two revisions.

        Returns:
            str: Commit id of the merge base, or None if the histories are unrelated

        Raises:
            MissingObjectError: If either revision does not exist
        """
        result = self.run('merge-base', ref_a, ref_b, check=False)
        if result.returncode == 0:
            return result.stdout.split()[0] if result.stdout.strip() else None
        if result.returncode == 1 and not result.stderr.strip():
            return None
        raise self._error(('merge-base', ref_a, ref_b), result)

    def describe(self, match: Sequence[str] = (), exclude: Sequence[str] = (), long: bool = True,
                 rev: str = 'HEAD') -> Optional[DescribeResult]:
        """
        Find the nearest tag reachable from ``rev``.

        Args:
            match: Globs a tag must match (any of them)
            exclude: Globs that disqualify a tag
            long: Always report the offset and hash, even on a tagged commit
            rev: Revision to describe

        Returns:
            DescribeResult: Tag name, commit offset and abbreviated hash, or
            None if no eligible tag exists
        """
        args = ['describe', '--tags']
        if long:
            args.append('--long')
        for pattern in match:
            args.extend(('--match', pattern))
        for pattern in exclude:
            args.extend(('--exclude', pattern))
        args.append(rev)

        result = self.run(*args, check=False)
        if result.returncode != 0:
            lowered = result.stderr.lower()
            if any(marker in lowered for marker in _NO_DESCRIPTION_MARKERS):
                logger.debug(f'No tag describes {rev}: {result.stderr.strip()}')
                return None
            raise self._error(args, result)

        parts = rsplit(result.stdout.strip(), '-', 2)
        if parts is None or len(parts) != 3:
            logger.debug(f'Unexpected describe output: {result.stdout.strip()!r}')
            return None
        return DescribeResult(tag=parts[0], offset=parts[1], hash=parts[2])

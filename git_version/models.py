"""
Value objects shared by the version derivation engine.

Commits, tags and refs are read-only snapshots of repository state taken at
query time. VersionRecord is the derived result handed to build tooling.
"""

from dataclasses import dataclass, field, asdict
from typing import ClassVar, Dict, Optional, Tuple


@dataclass(frozen=True)
class Commit:
    """A single commit as reported by the repository."""

    hash: str
    parents: Tuple[str, ...] = ()
    timestamp: int = 0
    body: str = field(default='', compare=False, repr=False)

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self.body.split('\n', 1)[0].strip()


@dataclass(frozen=True)
class Tag:
    """A tag name and the commit it points at after peeling."""

    name: str
    commit: str


@dataclass(frozen=True)
class BranchRef:
    """A branch ref, e.g. ``refs/remotes/origin/main``."""

    name: str
    commit: str


@dataclass(frozen=True)
class DescribeResult:
    """Nearest-tag match in long form: ``<tag>-<offset>-<hash>``."""

    tag: str
    offset: str
    hash: str


@dataclass(frozen=True)
class VersionRecord:
    """
    Git information describing the current position of a project.

    Attributes:
        tag: Tag version with the tag prefix and a leading ``v`` removed
        offset: Commits since the tag, as a string
        hash: Abbreviated hash suffix from the nearest-tag match
        branch: Short branch name, or the default branch when HEAD is detached
        commit: Full id of the HEAD commit
        abbreviated_id: First eight characters of the HEAD commit id
    """

    EMPTY: ClassVar['VersionRecord']
    DEFAULT_BRANCH: ClassVar[str] = 'master'

    tag: str
    offset: str
    hash: str
    branch: str
    commit: str
    abbreviated_id: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @property
    def is_empty(self) -> bool:
        return self == VersionRecord.EMPTY


VersionRecord.EMPTY = VersionRecord(
    tag='0.0',
    offset='0',
    hash='00000000',
    branch=VersionRecord.DEFAULT_BRANCH,
    commit='0' * 40,
    abbreviated_id='00000000',
)


def short_id(commit_id: Optional[str], length: int = 8) -> str:
    """Abbreviate a commit id to its first ``length`` characters."""
    return (commit_id or '')[:length]

"""
Changelog generation from the commit history.

Every commit reachable from HEAD gets its derived version; commits are
grouped by primary version (release window), youngest window first, and
versions are padded so the messages line up within a window.
"""

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional

from loguru import logger

from .history import get_commit_to_tag_map, walk
from .merge_base import get_merge_base_commit
from .models import Commit
from .repository import GitRepository
from .resolver import UNPREFIXED_EXCLUDE
from .utils import sanitize_tag_prefix, strip_tag_name
from .versioning import (
    build_version_map,
    determine_prefix_length_per_primary_version,
    get_primary_version_map,
    primary_versions,
    process_commit_body,
)


@dataclass
class ChangelogEntry:
    version: str
    commit: Commit
    message: str


@dataclass
class ChangelogSection:
    primary_version: str
    width: int
    entries: List[ChangelogEntry] = field(default_factory=list)


@dataclass
class Changelog:
    sections: List[ChangelogSection] = field(default_factory=list)
    merge_base: Optional[Commit] = None

    def render(self) -> str:
        lines = []
        if self.merge_base is not None:
            lines.append(f'Pre-release builds since merge base {self.merge_base.hash[:8]}')
            lines.append('')

        for section in self.sections:
            lines.append(section.primary_version)
            lines.append('=' * len(section.primary_version))
            for entry in section.entries:
                message_lines = entry.message.split('\n') if entry.message else ['']
                lines.append(f'{entry.version.ljust(section.width)} {message_lines[0]}'.rstrip())
                indent = ' ' * (section.width + 1)
                lines.extend(f'{indent}{line}' for line in message_lines[1:])
            lines.append('')

        return '\n'.join(lines).rstrip() + '\n' if lines else ''


def get_commit_to_version_name_map(repo: GitRepository, tag_prefix: str = '') -> Dict[str, str]:
    """
    Map tagged commits to the version names of their tags.

    Only tags starting with ``tag_prefix`` count; the prefix and a leading
    ``v`` are stripped from the names. Without a prefix, tags of other
    modules (``mod-1.0``) are skipped, the same way the resolver skips them.
    """
    tag_prefix = sanitize_tag_prefix(tag_prefix)
    if tag_prefix:
        commit_to_tag = get_commit_to_tag_map(repo, tag_prefix)
    else:
        commit_to_tag = {
            tag.commit: tag.name for tag in repo.list_tags()
            if not fnmatchcase(tag.name, UNPREFIXED_EXCLUDE)
        }
    return {commit_hash: strip_tag_name(tag_name, tag_prefix) for commit_hash, tag_name in commit_to_tag.items()}


def build_changelog(repo: GitRepository, tag_prefix: str = '', path_filter: Optional[str] = None,
                    exclude_paths: Iterable[str] = ()) -> Changelog:
    """
    Build the changelog for everything reachable from HEAD.

    A project's tags often sit on commits outside its directory, so the
    full history is walked to find them. Versions are numbered over the
    project's own commits plus the tagged ones.

    Args:
        repo: Repository to read
        tag_prefix: Only tags with this prefix mark releases
        path_filter: Only list commits touching this path
        exclude_paths: Leave out commits that only touch these paths (subprojects)

    Returns:
        Changelog: Sections per primary version, youngest first

    Raises:
        GitError: If the history cannot be read
    """
    history = list(walk(repo, None, 'HEAD'))
    exclude_paths = list(exclude_paths)
    if path_filter or exclude_paths:
        own = {c.hash for c in walk(repo, None, 'HEAD', path_filter=path_filter, exclude_paths=exclude_paths)}
    else:
        own = {c.hash for c in history}

    history_hashes = {c.hash for c in history}
    tagged = {
        commit_hash: version
        for commit_hash, version in get_commit_to_version_name_map(repo, tag_prefix).items()
        if commit_hash in history_hashes
    }
    commits = [c for c in history if c.hash in own or c.hash in tagged]
    logger.debug(f'Building changelog for {len(commits)} of {len(history)} commit(s) and {len(tagged)} tag(s)')

    version_map = build_version_map(commits, tagged)
    primary_version_map = get_primary_version_map(commits, tagged)
    widths = determine_prefix_length_per_primary_version(version_map.values(), primary_versions(primary_version_map))

    changelog = Changelog()
    if not tagged:
        changelog.merge_base = get_merge_base_commit(repo)

    sections: Dict[str, ChangelogSection] = {}
    for commit in commits:
        version = version_map[commit.hash]
        primary_version = primary_version_map.get(commit.hash)
        if primary_version is None:
            continue

        section = sections.get(primary_version)
        if section is None:
            section = ChangelogSection(primary_version, widths.get(primary_version, len(version)))
            sections[primary_version] = section
            changelog.sections.append(section)
        section.entries.append(ChangelogEntry(version, commit, process_commit_body(commit.body)))

    return changelog


def generate_changelog(repo: GitRepository, tag_prefix: str = '', path_filter: Optional[str] = None,
                       exclude_paths: Iterable[str] = ()) -> str:
    """Build and render the changelog as plain text."""
    return build_changelog(repo, tag_prefix, path_filter, exclude_paths).render()


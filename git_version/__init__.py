"""
git-version

Derives reproducible version strings for projects in (possibly multi-module)
git repositories from their tags and commit history.
"""

from ._version import __version__
from .models import Commit, Tag, VersionRecord
from .repository import GitError, GitRepository, GitSession, MissingObjectError
from .resolver import GitVersion

__author__ = "git-version contributors"
__description__ = "Derive project versions from git tags and history"

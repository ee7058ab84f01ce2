"""
Pytest configuration and shared fixtures for test suite.

Provides a builder for throw-away git repositories (skipped when git is not
installed), lightweight commit lists for the pure version algorithms and a
loguru sink that captures log messages.
"""

import os
import shutil
import subprocess
import tempfile
import pytest

from loguru import logger

from git_version.models import Commit


class GitRepoBuilder:
    """Creates commits, tags and branches in a temporary repository."""

    BASE_TIME = 1700000000

    def __init__(self, path):
        self.path = path
        self._clock = 0
        self.git('init', '-q')
        # Pin the branch name regardless of init.defaultBranch
        self.git('symbolic-ref', 'HEAD', 'refs/heads/master')

    def env(self):
        env = os.environ.copy()
        timestamp = f'{self.BASE_TIME + self._clock} +0000'
        env.update({
            'GIT_AUTHOR_NAME': 'Test Author',
            'GIT_AUTHOR_EMAIL': 'author@example.com',
            'GIT_COMMITTER_NAME': 'Test Author',
            'GIT_COMMITTER_EMAIL': 'author@example.com',
            'GIT_AUTHOR_DATE': timestamp,
            'GIT_COMMITTER_DATE': timestamp,
            'GIT_CONFIG_NOSYSTEM': '1',
            'GIT_CONFIG_GLOBAL': os.devnull,
        })
        return env

    def git(self, *args):
        result = subprocess.run(
            ['git', *args], cwd=self.path, capture_output=True, text=True, env=self.env(), check=True
        )
        return result.stdout.strip()

    def commit(self, message, files=None):
        """Write ``files`` (path -> content) and commit them; returns the commit id."""
        self._clock += 60
        files = files or {f'file_{self._clock}.txt': message}
        for name, content in files.items():
            full_path = os.path.join(self.path, name)
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            with open(full_path, 'w', encoding='utf-8') as f:
                f.write(content)
            self.git('add', name)
        self.git('commit', '-q', '--allow-empty', '-m', message)
        return self.head()

    def tag(self, name, annotated=False, rev='HEAD'):
        if annotated:
            self.git('tag', '-a', name, '-m', f'Release {name}', rev)
        else:
            self.git('tag', name, rev)

    def branch(self, name, rev='HEAD'):
        self.git('branch', name, rev)

    def checkout(self, rev):
        self.git('checkout', '-q', rev)

    def remote_branch(self, name, rev='HEAD'):
        """Create ``refs/remotes/<name>`` without any actual remote."""
        self.git('update-ref', f'refs/remotes/{name}', rev)

    def head(self):
        return self.git('rev-parse', 'HEAD')


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests that is cleaned up afterwards."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield os.path.realpath(tmpdir)


@pytest.fixture
def git_repo(temp_dir):
    """Create an empty git repository with deterministic commit times."""
    if shutil.which('git') is None:
        pytest.skip('git is not installed')
    return GitRepoBuilder(temp_dir)


@pytest.fixture
def commits():
    """Youngest-to-oldest commit list C4, C3, C2, C1."""
    return [Commit(hash=f'C{i}', timestamp=i) for i in (4, 3, 2, 1)]


@pytest.fixture
def log_messages():
    """Capture loguru messages as "LEVEL message" strings."""
    messages = []
    handler_id = logger.add(lambda msg: messages.append(f'{msg.record["level"].name} {msg.record["message"]}'),
                            level='DEBUG')
    yield messages
    logger.remove(handler_id)

"""
Tests for utils.py module.

Tests path handling, tag prefix normalization, tag name stripping and ref
name shortening.
"""

import os
import pytest

from git_version.utils import (
    find_git_root,
    get_local_path,
    is_git_root,
    is_inside,
    rsplit,
    sanitize_tag_prefix,
    shorten_ref_name,
    strip_tag_name,
)


class TestFindGitRoot:
    """Test repository root discovery."""

    def test_finds_root_from_nested_directory(self, temp_dir):
        os.makedirs(os.path.join(temp_dir, '.git'))
        nested = os.path.join(temp_dir, 'a', 'b')
        os.makedirs(nested)

        assert find_git_root(nested) == temp_dir

    def test_git_file_counts(self, temp_dir):
        """Test worktrees and submodules, where .git is a file."""
        with open(os.path.join(temp_dir, '.git'), 'w', encoding='utf-8') as f:
            f.write('gitdir: /elsewhere\n')

        assert is_git_root(temp_dir)
        assert find_git_root(temp_dir) == temp_dir

    def test_no_repository_returns_working_directory(self, temp_dir):
        nested = os.path.join(temp_dir, 'a')
        os.makedirs(nested)

        # Only valid when nothing above the temp dir is a repository
        if find_git_root(temp_dir) != temp_dir:
            pytest.skip('temporary directory is inside a git repository')
        assert find_git_root(nested) == nested


class TestGetLocalPath:
    """Test project paths relative to the root."""

    def test_same_directory(self):
        assert get_local_path('/repo', '/repo') == ''
        assert get_local_path('/repo/', '/repo') == ''

    def test_nested(self):
        assert get_local_path('/repo', '/repo/libs/core') == 'libs/core'

    def test_trailing_separator(self):
        assert get_local_path('/repo', '/repo/libs/') == 'libs'


class TestIsInside:
    """Test directory containment."""

    @pytest.mark.parametrize('path,expected', [
        ('/repo', True),
        ('/repo/a/b', True),
        ('/repository', False),
        ('/other', False),
    ])
    def test_is_inside(self, path, expected):
        assert is_inside('/repo', path) is expected


class TestSanitizeTagPrefix:
    """Test tag prefix normalization."""

    @pytest.mark.parametrize('prefix,expected', [
        (None, ''),
        ('', ''),
        ('mod', 'mod-'),
        ('mod-', 'mod-'),
        ('libs/core', 'libs/core-'),
    ])
    def test_sanitize_tag_prefix(self, prefix, expected):
        assert sanitize_tag_prefix(prefix) == expected


class TestStripTagName:
    """Test turning tag names into versions."""

    @pytest.mark.parametrize('tag,prefix,expected', [
        ('1.0', '', '1.0'),
        ('v1.0', '', '1.0'),
        ('vanilla', '', 'vanilla'),
        ('v', '', 'v'),
        ('mod-v2.3', 'mod-', '2.3'),
        ('mod-2.3', 'mod-', '2.3'),
        ('other-2.3', 'mod-', 'other-2.3'),
        ('vv1', '', 'vv1'),
    ])
    def test_strip_tag_name(self, tag, prefix, expected):
        assert strip_tag_name(tag, prefix) == expected


class TestShortenRefName:
    """Test ref name shortening."""

    @pytest.mark.parametrize('ref,expected', [
        ('refs/heads/main', 'main'),
        ('refs/heads/feature/x', 'feature/x'),
        ('refs/tags/1.0', '1.0'),
        ('refs/remotes/origin/main', 'origin/main'),
        ('HEAD', 'HEAD'),
    ])
    def test_shorten_ref_name(self, ref, expected):
        assert shorten_ref_name(ref) == expected


class TestRsplit:
    """Test right splitting."""

    def test_limit(self):
        assert rsplit('mod-a-1.2-5-gabc', '-', 2) == ['mod-a-1.2', '5', 'gabc']

    def test_unlimited(self):
        assert rsplit('a-b-c', '-') == ['a', 'b', 'c']

    def test_none_passes_through(self):
        assert rsplit(None, '-', 2) is None

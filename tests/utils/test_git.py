"""Tests for utils/git.py - GitPython helpers."""

from unittest.mock import Mock, patch

import git
import pytest

from scaffolder.utils.git import find_repository, init_repository, is_recoverable


@pytest.fixture
def repo(tmp_path):
    """A real repository with one committed file."""
    repository = git.Repo.init(tmp_path, initial_branch="main")
    with repository.config_writer() as cw:
        cw.set_value("user", "name", "Test")
        cw.set_value("user", "email", "test@example.com")
    (tmp_path / "tracked.txt").write_text("original\n")
    repository.index.add(["tracked.txt"])
    repository.index.commit("initial")
    return repository


class TestFindRepository:

    def test_not_a_repository(self, tmp_path):
        with patch("scaffolder.utils.git.git.Repo", side_effect=git.exc.InvalidGitRepositoryError):
            assert find_repository(tmp_path) is None

    def test_missing_path(self, tmp_path):
        with patch("scaffolder.utils.git.git.Repo", side_effect=git.exc.NoSuchPathError):
            assert find_repository(tmp_path / "missing") is None

    def test_searches_parents(self, repo, tmp_path):
        nested = tmp_path / "src" / "lib"
        nested.mkdir(parents=True)
        found = find_repository(nested)
        assert found is not None
        assert found.working_dir == repo.working_dir


class TestIsRecoverable:

    def test_clean_tracked_file(self, repo, tmp_path):
        assert is_recoverable(tmp_path / "tracked.txt") is True

    def test_modified_file(self, repo, tmp_path):
        (tmp_path / "tracked.txt").write_text("changed\n")
        assert is_recoverable(tmp_path / "tracked.txt") is False

    def test_staged_change(self, repo, tmp_path):
        (tmp_path / "tracked.txt").write_text("changed\n")
        repo.index.add(["tracked.txt"])
        assert is_recoverable(tmp_path / "tracked.txt") is False

    def test_untracked_file(self, repo, tmp_path):
        (tmp_path / "new.txt").write_text("new\n")
        assert is_recoverable(tmp_path / "new.txt") is False

    def test_outside_repository(self, tmp_path):
        with patch("scaffolder.utils.git.find_repository", return_value=None):
            assert is_recoverable(tmp_path / "file.txt") is False


class TestInitRepository:

    @pytest.fixture(autouse=True)
    def quiet(self):
        with patch("scaffolder.utils.git.message") as mock_msg:
            yield mock_msg

    def test_initializes(self, tmp_path):
        with patch("scaffolder.utils.git.find_repository", return_value=None):
            repo = init_repository(tmp_path, "trunk")

        assert repo is not None
        assert (tmp_path / ".git").is_dir()
        assert repo.head.reference.name == "trunk"

    def test_existing_repository(self, repo, tmp_path):
        (tmp_path / "sub").mkdir()
        with patch("scaffolder.utils.git.git.Repo.init") as mock_init:
            assert init_repository(tmp_path / "sub") is None
        mock_init.assert_not_called()

    def test_git_failure_is_warning(self, tmp_path, quiet):
        with patch("scaffolder.utils.git.find_repository", return_value=None), \
             patch("scaffolder.utils.git.git.Repo.init", side_effect=git.exc.GitCommandError("init", 128)):
            assert init_repository(tmp_path) is None

        texts = [c[0][0] for c in quiet.call_args_list]
        assert any(t.startswith("Failed to initialize git repository") for t in texts)

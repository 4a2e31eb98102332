"""Git helpers built on GitPython."""

from pathlib import Path

import git

from scaffolder.output import MessageType, VerbosityLevel, message


def find_repository(path: Path) -> git.Repo | None:
    """Return the repository containing *path*, or ``None``."""
    try:
        return git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return None


def is_recoverable(file_path: Path) -> bool:
    """Check whether *file_path* can be restored with ``git checkout``.

    A file is recoverable when it is tracked and has no uncommitted
    changes, staged or unstaged.

    Args:
        file_path: Absolute path to the file

    Returns:
        True if tracked and clean, False otherwise
    """
    repo = find_repository(file_path.parent)
    if repo is None:
        return False

    try:
        rel = str(file_path.resolve().relative_to(Path(repo.working_dir).resolve()))
    except ValueError:
        return False

    try:
        repo.git.ls_files("--error-unmatch", rel)
    except git.exc.GitCommandError:
        return False

    if repo.is_dirty(path=rel):
        return False

    if not repo.head.is_valid():
        return False
    staged = {d.a_path for d in repo.index.diff("HEAD")}
    return rel not in staged


def init_repository(path: Path, branch: str = "main") -> git.Repo | None:
    """Initialise a git repository at *path* unless one already contains it.

    Returns:
        The new repository, or ``None`` if *path* was already inside one
        or git could not be run
    """
    if find_repository(path) is not None:
        message(f"Git repository already present for {path}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return None

    try:
        repo = git.Repo.init(path, initial_branch=branch)
    except (git.exc.GitCommandError, OSError) as e:
        message(f"Failed to initialize git repository: {e}", MessageType.WARNING, VerbosityLevel.ALWAYS)
        return None
    message(f"Initialized git repository ({branch}) in {path}", MessageType.SUCCESS, VerbosityLevel.VERBOSE)
    return repo

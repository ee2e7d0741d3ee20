"""Version-control access."""

from .fake import FakeGit
from .repository import GitClient, GitError, Repository

__all__ = ["FakeGit", "GitClient", "GitError", "Repository"]

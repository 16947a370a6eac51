"""
Git Operations Module - Clones the repository under analysis

Used when driftive is given a repository URL instead of a local checkout.
"""

import os
import shutil
import tempfile
import logging
from typing import Optional

import git
from git.exc import GitCommandError

from .errors import DriftiveError
from .utils import remove_url_credentials

logger = logging.getLogger(__name__)


class GitOperationError(DriftiveError):
    """Cloning or preparing the repository failed"""
    pass


def setup_git_auth(repo_url: str, token: Optional[str] = None) -> str:
    """
    Add token authentication to an HTTPS repository URL.

    URLs that already carry credentials, and non-HTTPS URLs, are returned unchanged.

    Args:
        repo_url: Repository URL
        token: Optional GitHub token

    Returns:
        Authenticated repository URL
    """
    if not token:
        return repo_url
    if not repo_url.startswith('https://'):
        return repo_url
    if '@' in repo_url[len('https://'):].split('/')[0]:
        return repo_url

    logger.info("Using GitHub token for repository authentication")
    return repo_url.replace('https://', f'https://x-access-token:{token}@', 1)


def clone_repo(repo_url: str, branch: str, dest_dir: str, token: Optional[str] = None) -> git.Repo:
    """
    Shallow-clone a single branch of a repository.

    Args:
        repo_url: Repository URL
        branch: Branch to check out
        dest_dir: Target directory (must be empty or not exist)
        token: Optional token injected into HTTPS URLs

    Returns:
        The cloned repository

    Raises:
        GitOperationError: The clone failed
    """
    safe_url = remove_url_credentials(repo_url)
    logger.info(f"Cloning {safe_url} ({branch}) into {dest_dir}")
    try:
        repo = git.Repo.clone_from(
            setup_git_auth(repo_url, token),
            dest_dir,
            branch=branch,
            depth=1,
            single_branch=True,
        )
    except GitCommandError as e:
        # GitCommandError includes the command line, which includes the URL
        raise GitOperationError(f"Failed to clone {safe_url} ({branch}): exit code {e.status}") from None

    logger.info(f"✅ Cloned {safe_url} to {dest_dir}")
    return repo


def create_temp_clone_dir() -> str:
    return tempfile.mkdtemp(prefix="driftive_")


def cleanup_dir(path: str) -> None:
    """Remove a temporary clone directory, logging instead of failing."""
    if path and os.path.exists(path):
        try:
            shutil.rmtree(path)
            logger.debug(f"Cleaned up temp directory: {path}")
        except OSError as e:
            logger.warning(f"Failed to cleanup temp directory {path}: {e}")

"""
Project auto-discovery.

Finds every directory containing files that match the configured inclusion
patterns (and no exclusion pattern), then assigns each directory a planning
tool using the first matching project rule.
"""

import fnmatch
import logging
import os
import re
from typing import Dict, List, Pattern

from .models import Project
from .repo_config import DriftiveRepoConfig

logger = logging.getLogger(__name__)


def _compile_pattern(pattern: str) -> Pattern:
    """
    Translate a docker-style path pattern into a regex.

    `*` and `?` never cross a `/`; `**/` matches zero or more directories and a
    trailing `**` matches everything below.
    """
    pattern = pattern.strip().strip("/")
    regex = ""
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            regex += "(?:.*/)?"
            i += 3
        elif pattern.startswith("**", i):
            regex += ".*"
            i += 2
        elif pattern[i] == "*":
            regex += "[^/]*"
            i += 1
        elif pattern[i] == "?":
            regex += "[^/]"
            i += 1
        else:
            regex += re.escape(pattern[i])
            i += 1
    return re.compile(f"^{regex}$")


def _matches_or_parent_matches(path: str, patterns: List[Pattern]) -> bool:
    """True if `path` or one of its parent directories matches any pattern."""
    parts = path.split("/")
    for end in range(len(parts), 0, -1):
        candidate = "/".join(parts[:end])
        if any(p.match(candidate) for p in patterns):
            return True
    return False


def get_all_files(root: str) -> List[str]:
    """List every file under root, relative to it with forward slashes."""
    files = []
    for dirpath, _dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        for name in filenames:
            rel = name if rel_dir == os.curdir else os.path.join(rel_dir, name)
            files.append(rel.replace(os.sep, "/"))
    return files


def filter_paths(paths: List[str], inclusions: List[str], exclusions: List[str]) -> List[str]:
    included = [_compile_pattern(p) for p in inclusions]
    excluded = [_compile_pattern(p) for p in exclusions]
    return [
        path for path in paths
        if _matches_or_parent_matches(path, included) and not _matches_or_parent_matches(path, excluded)
    ]


def get_candidate_project_dirs(root: str, repo_config: DriftiveRepoConfig) -> List[str]:
    """Directories (relative to root) holding at least one included file. The root itself is never one."""
    auto_discover = repo_config.auto_discover
    files = filter_paths(get_all_files(root), auto_discover.inclusions, auto_discover.exclusions)

    project_dirs: List[str] = []
    for file_path in files:
        folder = file_path.rsplit("/", 1)[0] if "/" in file_path else ""
        if folder and folder not in project_dirs:
            project_dirs.append(folder)
    return project_dirs


def discover_projects(root: str, repo_config: DriftiveRepoConfig) -> List[Project]:
    """
    Auto-discover projects in a repository.

    Args:
        root: Repository root
        repo_config: Repository configuration (inclusions, exclusions, rules)

    Returns:
        Projects with directories relative to root, sorted by directory
    """
    if not repo_config.auto_discover.enabled:
        logger.info("Auto-discovery disabled in repository config")
        return []

    projects: Dict[str, Project] = {}
    rules = repo_config.auto_discover.project_rules

    for project_dir in get_candidate_project_dirs(root, repo_config):
        full_dir = os.path.join(root, project_dir)
        try:
            file_names = [n for n in os.listdir(full_dir) if os.path.isfile(os.path.join(full_dir, n))]
        except OSError as e:
            logger.error(f"Error listing {full_dir}: {e}")
            continue

        for rule in rules:
            if any(fnmatch.fnmatchcase(name, rule.pattern) for name in file_names):
                projects[project_dir] = Project(dir=project_dir, kind=rule.executable)
                break

    discovered = [projects[d] for d in sorted(projects)]
    logger.info(f"Discovered {len(discovered)} projects in {root}")
    for project in discovered:
        logger.debug(f"  {project.dir} ({project.kind.value})")
    return discovered

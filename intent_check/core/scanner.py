"""
Source file discovery.

Walks a directory tree, skips excluded directory names and paths ignored by
``.gitignore`` files, and returns the candidate files sorted so that runs do
not depend on filesystem ordering.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple


# --- Gitignore Pattern Matching ---

def get_gitignore_patterns(directory: Path) -> List[Tuple[str, Path]]:
    """
    Collect .gitignore patterns from the directory and its parents, also returning the directory
    where the .gitignore file was found.

    Args:
        directory: Directory to start searching from

    Returns:
        List of (pattern, gitignore_directory) tuples
    """
    patterns_with_dirs: List[Tuple[str, Path]] = []
    current_dir = directory.resolve()
    while True:
        gitignore_path = current_dir / ".gitignore"
        if gitignore_path.is_file():
            with open(gitignore_path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and not line.startswith("!"):
                        patterns_with_dirs.append((line, current_dir))
        if current_dir == current_dir.parent:
            break
        current_dir = current_dir.parent
    return patterns_with_dirs


def is_gitignored(file_path: Path, pattern: str, gitignore_dir: Path) -> bool:
    """
    Match a file against one gitignore pattern, relative to the directory holding the .gitignore.

    Supports directory patterns ("build/"), root-relative patterns ("/dist") and
    glob patterns that match either the whole relative path or any path segment.
    """
    pattern = pattern.replace("\\", "/")
    anchored = pattern.startswith("/")
    pattern = pattern.lstrip("/")
    try:
        relative = file_path.resolve().relative_to(gitignore_dir).as_posix()
    except ValueError:
        return False

    parts = relative.split("/")
    if pattern.endswith("/"):
        dir_pattern = pattern.rstrip("/")
        directories = parts[:-1]
        if anchored or "/" in dir_pattern:
            return relative.startswith(dir_pattern + "/")
        return any(fnmatch.fnmatch(part, dir_pattern) for part in directories)

    if fnmatch.fnmatch(relative, pattern):
        return True
    if anchored or "/" in pattern:
        return relative.startswith(pattern + "/")
    return any(fnmatch.fnmatch(part, pattern) for part in parts)


def find_source_files(
    directory: Path,
    extensions: Iterable[str],
    exclude: Optional[Iterable[str]] = None,
    respect_gitignore: bool = True,
) -> List[str]:
    """Recursively list files under ``directory`` whose extension is in ``extensions``."""
    root = Path(directory)
    if not root.is_dir():
        raise NotADirectoryError(f"{directory} is not a directory")

    wanted = {ext.lower() for ext in extensions}
    excluded = set(exclude or ())
    gitignore_patterns = get_gitignore_patterns(root) if respect_gitignore else []

    results: List[str] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in filenames:
            file_path = Path(current) / filename
            if file_path.suffix.lower() not in wanted:
                continue
            if any(is_gitignored(file_path, pattern, where) for pattern, where in gitignore_patterns):
                continue
            results.append(str(file_path))

    results.sort()
    logging.info(f"Found {len(results)} source files to analyze under {directory} (after filtering .gitignore).")
    return results

"""Core parser orchestration - selects the parser for each file."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from lineagegraph.config import ProjectConfig
from lineagegraph.parser.models import FileRoutines, detect_language

logger = logging.getLogger("lineagegraph.parser")


def parse_file(file_path: str, source: str | None = None) -> FileRoutines | None:
    """Parse a single file, auto-detecting its language.

    Returns None if the file's language is not supported.

    - Python: uses stdlib ast
    - Java: uses tree-sitter with the Java grammar
    """
    language = detect_language(file_path)
    if language == "python":
        from lineagegraph.parser.python_parser import parse_python_file

        return _dedupe_ids(parse_python_file(file_path, source))

    if language == "java":
        from lineagegraph.parser.java_parser import is_available, parse_java_file

        if is_available():
            return _dedupe_ids(parse_java_file(file_path, source))
        logger.warning("tree-sitter-java is not installed; skipping %s", file_path)

    return None


def _dedupe_ids(result: FileRoutines) -> FileRoutines:
    """Give overloads with the same qualified name distinct ids."""
    seen: set[str] = set()
    for routine in result.routines:
        if routine.id in seen:
            routine.id = f"{routine.id}@{routine.line_start}"
        seen.add(routine.id)
    return result


def parse_directory(
    root: str | Path,
    config: ProjectConfig | None = None,
    progress_callback: callable | None = None,
) -> list[FileRoutines]:
    """Parse all supported source files in a directory tree.

    Args:
        root: Root directory to scan.
        config: Project configuration for exclusion patterns and size limits.
        progress_callback: Optional callback(file_path, current, total) for progress.

    Returns:
        List of FileRoutines for each parsed file.
    """
    root = Path(root).resolve()
    if config is None:
        config = ProjectConfig()

    files = collect_files(root, config)

    results = []
    total = len(files)
    for i, file_path in enumerate(files):
        if progress_callback:
            progress_callback(str(file_path), i + 1, total)

        rel_path = file_path.relative_to(root).as_posix()
        try:
            source = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", rel_path, e)
            continue
        parsed = parse_file(rel_path, source)
        if parsed is None:
            continue
        for error in parsed.errors:
            logger.debug("%s: %s", rel_path, error)
        results.append(parsed)

    return results


def collect_files(root: str | Path, config: ProjectConfig | None = None) -> list[Path]:
    """Collect all parseable files, respecting exclusion patterns."""
    root = Path(root).resolve()
    if config is None:
        config = ProjectConfig()

    files = []
    max_size = config.max_file_size_kb * 1024
    exclude = config.exclude_patterns + _read_gitignore(root)

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)

        dirnames[:] = [
            d
            for d in dirnames
            if not _should_exclude(os.path.join(rel_dir, d) if rel_dir != "." else d, exclude)
        ]

        for filename in filenames:
            rel_path = os.path.join(rel_dir, filename) if rel_dir != "." else filename
            if _should_exclude(rel_path, exclude):
                continue
            if detect_language(filename) is None:
                continue

            full_path = Path(dirpath) / filename
            try:
                if full_path.stat().st_size > max_size:
                    continue
            except OSError:
                continue

            files.append(full_path)

    return sorted(files)


def _should_exclude(path: str, patterns: list[str]) -> bool:
    """Check if a path matches any exclusion pattern."""
    path_parts = Path(path).parts
    for pattern in patterns:
        if fnmatch.fnmatch(path, pattern):
            return True
        for part in path_parts:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False


def _read_gitignore(root: Path) -> list[str]:
    """Read .gitignore patterns from the project root."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return []

    patterns = []
    try:
        for line in gitignore.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                if line.endswith("/"):
                    line = line[:-1]
                patterns.append(line)
    except OSError:
        pass
    return patterns

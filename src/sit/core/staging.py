"""Staging area management for sit.

``add`` copies file contents into the object store and points index entries
at them; ``remove`` drops index entries. Working tree files are never
deleted here.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from sit.constants import MAX_FILE_SIZE, WARN_FILE_SIZE
from sit.core.repository import Repository
from sit.errors import SitError
from sit.utils.logger import get_logger

logger = get_logger("core.staging")

PathLike = Union[str, Path]


class AddResult:
    """Outcome of an add operation.

    Attributes:
        added: Paths staged for the first time
        updated: Paths whose index entry was replaced
        errors: "path: reason" strings for files that could not be added
        warnings: "path: reason" strings for files added with a warning
    """

    def __init__(self) -> None:
        self.added: List[str] = []
        self.updated: List[str] = []
        self.errors: List[str] = []
        self.warnings: List[str] = []

    @property
    def staged(self) -> List[str]:
        return self.added + self.updated

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def __repr__(self) -> str:
        return (
            f"AddResult(added={len(self.added)}, updated={len(self.updated)}, "
            f"errors={len(self.errors)}, warnings={len(self.warnings)})"
        )


class StagingManager:
    """Add files to and remove files from the staging index.

    Attributes:
        repo: Repository context
        max_file_size: Files larger than this abort the whole add
        warn_file_size: Files larger than this are added with a warning
    """

    def __init__(
        self,
        repo: Repository,
        max_file_size: int = MAX_FILE_SIZE,
        warn_file_size: int = WARN_FILE_SIZE,
    ) -> None:
        self.repo = repo
        self.max_file_size = max_file_size
        self.warn_file_size = warn_file_size

    def add(self, paths: Sequence[PathLike], cwd: Optional[PathLike] = None) -> AddResult:
        """Stage files, recursing into directories.

        Every file's size is checked before anything is written, so an
        oversized file leaves the index untouched. Per-file I/O failures are
        recorded and skipped; the index is saved once at the end.

        Args:
            paths: Files or directories, absolute or relative to ``cwd``
            cwd: Base for relative paths (default: process cwd)

        Returns:
            AddResult describing what happened to each file

        Raises:
            SitError: If a path lies outside the repository or a file exceeds
                max_file_size
        """
        result = AddResult()
        candidates = self._collect_files(paths, cwd, result)
        sized = self._check_sizes(candidates, result)

        index = self.repo.index
        for rel_path, abs_path in sized:
            try:
                content = abs_path.read_bytes()
                object_id = self.repo.store.write_object(content)
            except OSError as e:
                logger.warning("Failed to add file", path=rel_path, error=str(e))
                result.errors.append(f"{rel_path}: {e}")
                continue

            if index.contains(rel_path):
                result.updated.append(rel_path)
            else:
                result.added.append(rel_path)
            index.insert(rel_path, object_id)

        index.save()
        return result

    def remove(self, paths: Sequence[PathLike], cwd: Optional[PathLike] = None) -> Dict[str, List[str]]:
        """Unstage paths. A directory path unstages everything beneath it.

        Returns:
            {"removed": [...], "not_staged": [...]}
        """
        stats: Dict[str, List[str]] = {"removed": [], "not_staged": []}
        index = self.repo.index

        for path in paths:
            rel_path = self.repo.relative_path(path, cwd)
            targets = [rel_path] if index.contains(rel_path) else list(index.list_under(rel_path))
            if not rel_path or not targets:
                stats["not_staged"].append(rel_path or ".")
                continue
            for target in targets:
                index.remove(target)
                stats["removed"].append(target)
            index.save()

        return stats

    def _collect_files(
        self,
        paths: Sequence[PathLike],
        cwd: Optional[PathLike],
        result: AddResult,
    ) -> List[Tuple[str, Path]]:
        files: Dict[str, Path] = {}
        for path in paths:
            rel_path = self.repo.relative_path(path, cwd)
            abs_path = self.repo.working_path(rel_path)

            if self.repo.is_internal(abs_path):
                continue
            if not abs_path.exists():
                result.errors.append(f"{rel_path or '.'}: file not found")
                continue

            if abs_path.is_dir():
                for item in self.repo.iter_working_files(rel_path):
                    files[item] = self.repo.working_path(item)
            else:
                files[rel_path] = abs_path

        return sorted(files.items())

    def _check_sizes(
        self,
        candidates: List[Tuple[str, Path]],
        result: AddResult,
    ) -> List[Tuple[str, Path]]:
        checked = []
        for rel_path, abs_path in candidates:
            try:
                size = abs_path.stat().st_size
            except OSError as e:
                logger.warning("Failed to stat file", path=rel_path, error=str(e))
                result.errors.append(f"{rel_path}: {e}")
                continue

            if size > self.max_file_size:
                raise SitError(
                    f"Try to add a file larger than {self.max_file_size >> 20}MB",
                    rel_path,
                )
            if size > self.warn_file_size:
                logger.warning("Adding a large file", path=rel_path, size=size)
                result.warnings.append(
                    f"{rel_path}: larger than {self.warn_file_size >> 20}MB"
                )
            checked.append((rel_path, abs_path))
        return checked

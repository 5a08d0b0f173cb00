"""Repository context shared by every operation.

A ``Repository`` is opened once per command. It owns the object store, the
refs, the configuration database and the staging index, which is loaded on
open and saved by the operations at their defined checkpoints.
"""

import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from sit.constants import (
    COMMIT_MSG_FILE,
    EMPTY_REF,
    HEAD_REF,
    HEADS_DIR,
    INDEX_FILE,
    LOCK_FILE,
    MASTER_BRANCH,
    OBJECTS_DIR,
    REFS_DIR,
    SIT_DIR,
)
from sit.core.index import Index
from sit.core.refs import Refs
from sit.errors import RepositoryLockedError, RepositoryNotFoundError, SitError
from sit.storage.config_db import ConfigDB
from sit.storage.object_store import ObjectStore
from sit.utils.logger import get_logger

logger = get_logger("core.repository")

PathLike = Union[str, Path]


class Repository:
    """A working tree plus its ``.sit`` directory.

    Attributes:
        root: Working tree root
        sit_dir: Path to the .sit directory
        store: ObjectStore for blobs and records
        refs: Refs for HEAD and master
        index: The staging Index, loaded on construction
        config: ConfigDB, opened on construction
    """

    def __init__(self, root: PathLike) -> None:
        self.root = Path(root).resolve()
        self.sit_dir = self.root / SIT_DIR

        if not self.sit_dir.is_dir():
            raise RepositoryNotFoundError(
                f"Not a sit repository (no {SIT_DIR}/ found in {self.root})"
            )

        self.store = ObjectStore(self.sit_dir)
        self.refs = Refs(self.sit_dir)
        self.index = Index(self.sit_dir / INDEX_FILE).load()
        self.config = ConfigDB(self.sit_dir)
        self.config.open()

    @classmethod
    def find(cls, start: Optional[PathLike] = None) -> "Repository":
        """Open the repository containing ``start`` (default: cwd).

        Raises:
            RepositoryNotFoundError: If no ancestor has a .sit directory
        """
        current = Path(start or Path.cwd()).resolve()
        for candidate in [current, *current.parents]:
            if (candidate / SIT_DIR).is_dir():
                return cls(candidate)
        raise RepositoryNotFoundError(
            f"Not a sit repository (or any of the parent directories): {SIT_DIR}"
        )

    @classmethod
    def init(cls, root: PathLike, force: bool = False) -> "Repository":
        """Create a fresh repository at ``root``.

        Raises:
            SitError: If .sit already exists (without ``force``) or is not a directory
        """
        root = Path(root).resolve()
        sit_dir = root / SIT_DIR

        if sit_dir.exists():
            if not sit_dir.is_dir():
                raise SitError(f"{SIT_DIR} exists but is not a directory, please check it.")
            if not force:
                raise SitError(
                    f"sit repository already exists in {root}",
                    "use --force to reinitialize",
                )
            shutil.rmtree(sit_dir)

        try:
            (sit_dir / OBJECTS_DIR).mkdir(parents=True)
            (sit_dir / REFS_DIR / HEADS_DIR).mkdir(parents=True)
            refs = Refs(sit_dir)
            refs.set(HEAD_REF, EMPTY_REF)
            refs.set(Refs.local(MASTER_BRANCH), EMPTY_REF)
            (sit_dir / COMMIT_MSG_FILE).write_text("", encoding="utf-8")
            with ConfigDB(sit_dir):
                pass
        except Exception:
            if sit_dir.exists():
                shutil.rmtree(sit_dir)
            raise

        logger.info("Repository initialized", root=str(root))
        return cls(root)

    def close(self) -> None:
        self.config.close()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the advisory single-writer lock for the enclosed block.

        Raises:
            RepositoryLockedError: If another process holds the lock
        """
        lock_path = self.sit_dir / LOCK_FILE
        try:
            fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise RepositoryLockedError(
                "Repository is locked by another sit process",
                f"remove {lock_path} if no other process is running",
            ) from None
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        try:
            yield
        finally:
            try:
                lock_path.unlink()
            except FileNotFoundError:
                pass

    @property
    def commit_msg_path(self) -> Path:
        return self.sit_dir / COMMIT_MSG_FILE

    def head(self) -> str:
        return self.refs.head()

    def master(self) -> str:
        return self.refs.branch(MASTER_BRANCH)

    def set_head(self, object_id: str) -> None:
        self.refs.set(HEAD_REF, object_id)

    def set_master(self, object_id: str) -> None:
        self.refs.set(Refs.local(MASTER_BRANCH), object_id)

    def resolve_commit(self, name: str, default: str = HEAD_REF) -> str:
        """Turn a user-supplied revision into a full commit id.

        Accepts ``master``, ``HEAD``, a full id or a unique short prefix.
        An empty name resolves ``default``.
        """
        name = (name or "").strip() or default
        if name == MASTER_BRANCH:
            return self.master()
        if name == HEAD_REF:
            return self.head()
        if name == EMPTY_REF:
            return EMPTY_REF
        return self.store.resolve_prefix(name)

    def relative_path(self, path: PathLike, cwd: Optional[PathLike] = None) -> str:
        """Repository-relative POSIX path of a user-supplied path.

        Relative paths are taken from ``cwd`` (default: the process cwd).

        Raises:
            SitError: If the path lies outside the working tree
        """
        path = Path(path)
        if not path.is_absolute():
            path = Path(cwd or Path.cwd()) / path
        absolute = Path(os.path.normpath(str(path)))
        try:
            relative = absolute.relative_to(self.root)
        except ValueError:
            # cwd may be reached through a symlink
            try:
                relative = absolute.resolve().relative_to(self.root)
            except ValueError:
                raise SitError(
                    f"Path {path} is outside repository root {self.root}"
                ) from None
        posix = relative.as_posix()
        return "" if posix == "." else posix

    def working_path(self, rel_path: str) -> Path:
        return self.root / rel_path

    def is_internal(self, abs_path: Path) -> bool:
        """Check whether a path is inside the .sit directory."""
        try:
            abs_path.relative_to(self.sit_dir)
            return True
        except ValueError:
            return False

    def iter_working_files(self, rel_prefix: str = "") -> Iterator[str]:
        """Yield repository-relative paths of working tree files, sorted."""
        base = self.root / rel_prefix if rel_prefix else self.root
        if base.is_file():
            yield self.relative_path(base)
            return
        if not base.is_dir():
            return
        found = []
        for dirpath, dirnames, filenames in os.walk(base):
            current = Path(dirpath)
            dirnames[:] = [d for d in dirnames if not self.is_internal(current / d)]
            for name in filenames:
                found.append((current / name).relative_to(self.root).as_posix())
        yield from sorted(found)

"""Named pointers to commit ids.

Only two refs exist: ``HEAD`` and ``refs/heads/master``. HEAD stores a
literal commit id, never a symbolic pointer, so after checking out an older
commit HEAD and master diverge.
"""

from pathlib import Path

from sit.constants import EMPTY_REF, HEAD_FILE, HEAD_REF, HEADS_DIR, REFS_DIR


class Refs:
    """Read and write ref files under the .sit directory."""

    def __init__(self, sit_dir: Path) -> None:
        self.sit_dir = Path(sit_dir)

    @staticmethod
    def local(name: str) -> str:
        """Ref path of a local branch, e.g. ``refs/heads/master``."""
        return f"{REFS_DIR}/{HEADS_DIR}/{name}"

    def is_ref(self, name: str) -> bool:
        return name == HEAD_REF or name.startswith(f"{REFS_DIR}/")

    def get(self, name: str) -> str:
        """Resolve a ref name or pass a literal id through.

        A missing or empty ref file reads as EMPTY_REF.
        """
        if not self.is_ref(name):
            return name

        ref_file = self._ref_file(name)
        if not ref_file.exists():
            return EMPTY_REF
        value = ref_file.read_text(encoding="utf-8").strip()
        return value or EMPTY_REF

    def set(self, name: str, object_id: str) -> None:
        ref_file = self._ref_file(name)
        ref_file.parent.mkdir(parents=True, exist_ok=True)
        ref_file.write_text(object_id + "\n", encoding="utf-8")

    def head(self) -> str:
        return self.get(HEAD_REF)

    def branch(self, name: str) -> str:
        return self.get(self.local(name))

    def _ref_file(self, name: str) -> Path:
        if name == HEAD_REF:
            return self.sit_dir / HEAD_FILE
        return self.sit_dir / name

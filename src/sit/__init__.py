"""sit - a minimal, single-branch, content-addressable version control system.

sit keeps an immutable object store, a staging index, two refs (HEAD and
master) and a linear commit history under a hidden ``.sit/`` directory.
"""

__version__ = "0.1.0"
__author__ = "sit Contributors"

__all__ = ["__version__", "__author__"]

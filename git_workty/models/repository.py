"""Repository handle model."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union


def same_path(a: Union[str, Path], b: Union[str, Path]) -> bool:
    """Compare two filesystem paths after resolving symlinks."""
    return os.path.realpath(a) == os.path.realpath(b)


@dataclass(frozen=True)
class Repository:
    """One repository instance, discovered once per invocation."""

    root: Path  # Main working tree
    common_dir: Path  # Shared metadata, identical across all worktrees
    toplevel: Path  # Working tree containing the start path

    @property
    def name(self) -> str:
        """Directory name of the main working tree."""
        return self.root.name

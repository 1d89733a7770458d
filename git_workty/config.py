"""Configuration handling for git-workty"""

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from git_workty.exceptions import ConfigError
from git_workty.logging_config import get_logger
from git_workty.models import Repository

logger = get_logger(__name__)

CONFIG_FILENAME = "workty.toml"
DEFAULT_ROOT = "~/.workty/{repo}"


@dataclass
class Config:
    """Configuration for git-workty with validation."""

    # Default merge target and base for new branches
    base: str = "main"

    # Where new worktrees are created; {repo} expands to the repository name
    root: str = DEFAULT_ROOT

    # External command run with the worktree path on --open
    open_cmd: Optional[str] = None

    # Create-time upstream handling
    fetch_base: bool = False  # Fetch the base's upstream and branch from it
    push_new: bool = False  # Publish new branches with a tracking upstream

    # Status collection
    workers: Optional[int] = None  # None = auto-detect
    sequential: bool = False

    # GitHub integration
    github_token: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_base()
        self._validate_root()
        self._validate_workers()

    def _validate_base(self):
        """Validate base is not empty."""
        if not self.base or not str(self.base).strip():
            raise ConfigError("base cannot be empty")
        self.base = str(self.base).strip()

    def _validate_root(self):
        """Validate root is not empty."""
        if not self.root or not str(self.root).strip():
            raise ConfigError("root cannot be empty")

    def _validate_workers(self):
        """Validate workers is positive when given."""
        if self.workers is not None and self.workers <= 0:
            raise ConfigError(f"workers must be positive, got {self.workers}")

    def workspace_root(self, repo: Repository) -> Path:
        """Expand the configured root for the given repository."""
        expanded = self.root.replace("{repo}", repo.name)
        path = Path(os.path.expanduser(expanded))
        if not path.is_absolute():
            path = repo.root / path
        return path

    def worktree_path(self, repo: Repository, slug: str) -> Path:
        """Default location of the worktree for a slug."""
        return self.workspace_root(repo) / slug

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known_fields
        if unknown:
            logger.debug(f"Ignoring unknown config keys: {sorted(unknown)}")
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def config_path(repo: Repository) -> Path:
    """Location of the per-repository config file."""
    return repo.common_dir / CONFIG_FILENAME


def config_exists(repo: Repository) -> bool:
    return config_path(repo).is_file()


def load_config(repo: Repository) -> Config:
    """Load the repository's config, falling back to defaults."""
    path = config_path(repo)
    if not path.is_file():
        logger.debug(f"No config at {path}, using defaults")
        return Config()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Could not read {path}: {e}")

    logger.debug(f"Loaded config from {path}")
    try:
        return Config.from_dict(data)
    except TypeError as e:
        raise ConfigError(f"Invalid config in {path}: {e}")

"""Configuration handling for git-worktree-keeper"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional, List, Union

from worktree_keeper.constants import DEFAULT_DEBOUNCE_MS
from worktree_keeper.logging_config import LOG_DIR, get_logger

logger = get_logger(__name__)

USER_CONFIG_FILE = LOG_DIR / "config.json"
REPO_CONFIG_NAME = ".git-worktree-keeper.json"


@dataclass
class Config:
    """Configuration for git-worktree-keeper with validation."""

    git_executable: str = "git"

    # Refresh coalescing window
    debounce_ms: int = DEFAULT_DEBOUNCE_MS

    # Delete behaviour
    delete_branch_with_worktree: bool = False
    force_remove: bool = True

    # Ignored-file propagation
    copy_ignored_files: bool = False
    default_selected_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)

    # Scanner parallelism
    workers: Optional[int] = None  # None = auto-detect
    sequential: bool = False

    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_git_executable()
        self._validate_debounce_ms()
        self._validate_patterns()
        self._validate_workers()

    def _validate_git_executable(self):
        """Validate git_executable is not empty."""
        if not self.git_executable or not self.git_executable.strip():
            raise ValueError("git_executable cannot be empty")
        self.git_executable = self.git_executable.strip()

    def _validate_debounce_ms(self):
        """Validate debounce_ms is not negative."""
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must not be negative, got {self.debounce_ms}")

    def _validate_patterns(self):
        """Validate pattern lists."""
        for name in ("default_selected_patterns", "exclude_patterns"):
            if not isinstance(getattr(self, name), list):
                raise ValueError(f"{name} must be a list")

    def _validate_workers(self):
        """Validate workers is positive when given."""
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary."""
        # Extract only known fields
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def _read_config_file(path: Path) -> dict:
    """Read a JSON config file, returning an empty dict when missing or invalid."""
    if not path.is_file():
        return {}
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in config file {path}: {e}")
        return {}
    except OSError as e:
        logger.warning(f"Could not read config file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Config file {path} does not contain an object, ignoring it")
        return {}
    logger.debug(f"Loaded config from {path}")
    return data


def load_config(
    repo_root: Optional[Union[str, Path]] = None,
    path: Optional[Union[str, Path]] = None,
    **overrides,
) -> Config:
    """Build a Config from the user file, the repository file, an explicit file and overrides.

    Later sources win. Overrides with a value of None are ignored.
    """
    merged: dict = {}
    merged.update(_read_config_file(USER_CONFIG_FILE))
    if repo_root is not None:
        merged.update(_read_config_file(Path(repo_root) / REPO_CONFIG_NAME))
    if path is not None:
        explicit = Path(path)
        if not explicit.is_file():
            raise ValueError(f"Config file not found: {explicit}")
        merged.update(_read_config_file(explicit))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return Config.from_dict(merged)

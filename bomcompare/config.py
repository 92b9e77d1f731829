"""
Comparison settings.

Defaults can be overridden through environment variables, optionally loaded
from a .env file:

    BOMCOMPARE_MAX_DEPTH=12
    BOMCOMPARE_EXCLUDE_FIELDS=modified_datetime,modified_by_user_id
    BOMCOMPARE_IDENTITY_KEYS=entry_id,bom_item_id
    BOMCOMPARE_PARENT_PATH_SEPARATOR=" / "
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv

from .schema import DEFAULT_MAX_DEPTH, IDENTITY_KEY_CANDIDATES, PARENT_PATH_SEPARATOR

logger = logging.getLogger(__name__)

ENV_PREFIX = "BOMCOMPARE_"


def _split_list(raw: str) -> List[str]:
    """Parse a comma-separated setting, dropping blanks."""
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class CompareSettings:
    """Settings shared by the BOM comparer and the generic deep comparator."""
    max_depth: int = DEFAULT_MAX_DEPTH
    exclude_fields: List[str] = field(default_factory=list)
    identity_keys: List[str] = field(default_factory=lambda: list(IDENTITY_KEY_CANDIDATES))
    parent_path_separator: str = PARENT_PATH_SEPARATOR

    def __post_init__(self):
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {self.max_depth!r}")

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "CompareSettings":
        """
        Build settings from BOMCOMPARE_* environment variables.

        Args:
            env_file: Optional .env file to load first. Variables already set
                in the environment take precedence over the file.

        Raises:
            ValueError: If BOMCOMPARE_MAX_DEPTH is not a positive integer
        """
        if env_file is not None:
            env_path = Path(env_file)
            if env_path.exists():
                load_dotenv(env_path)
                logger.debug(f"Loaded settings from {env_path}")
            else:
                logger.warning(f"No .env file found at {env_path}")

        settings = cls()

        max_depth = os.environ.get(f"{ENV_PREFIX}MAX_DEPTH", "").strip()
        if max_depth:
            try:
                depth = int(max_depth)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}MAX_DEPTH must be an integer, got {max_depth!r}") from None
            if depth < 1:
                raise ValueError(f"{ENV_PREFIX}MAX_DEPTH must be a positive integer, got {depth}")
            settings.max_depth = depth

        exclude_fields = os.environ.get(f"{ENV_PREFIX}EXCLUDE_FIELDS")
        if exclude_fields is not None:
            settings.exclude_fields = _split_list(exclude_fields)

        identity_keys = os.environ.get(f"{ENV_PREFIX}IDENTITY_KEYS")
        if identity_keys is not None and _split_list(identity_keys):
            settings.identity_keys = _split_list(identity_keys)

        separator = os.environ.get(f"{ENV_PREFIX}PARENT_PATH_SEPARATOR")
        if separator:
            settings.parent_path_separator = separator

        return settings

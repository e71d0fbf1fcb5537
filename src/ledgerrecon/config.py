"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ledgerrecon.domain.errors import ValidationError

SCOPE_ENV_VAR = "LEDGERRECON_SCOPE"
LOG_LEVEL_ENV_VAR = "LEDGERRECON_LOG_LEVEL"
CHUNK_SIZE_ENV_VAR = "LEDGERRECON_CHUNK_SIZE"
SIMILARITY_THRESHOLD_ENV_VAR = "LEDGERRECON_SIMILARITY_THRESHOLD"

DEFAULT_SCOPE = "default"


@dataclass(frozen=True)
class ImportSettings:
    """Tunables of the import pipeline."""

    chunk_size: int = 100
    similarity_threshold: float = 0.7
    description_max_length: int = 500

    def __post_init__(self):
        if self.chunk_size < 1:
            raise ValidationError(f"Chunk size must be at least 1, got {self.chunk_size}")
        if not 0 <= self.similarity_threshold <= 1:
            raise ValidationError(
                f"Similarity threshold must be between 0 and 1, got {self.similarity_threshold}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ImportSettings":
        """Build settings from LEDGERRECON_* environment variables.

        Raises:
            ValidationError: If a variable is set to an invalid value
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        try:
            chunk_size = int(env.get(CHUNK_SIZE_ENV_VAR, defaults.chunk_size))
        except ValueError:
            raise ValidationError(f"{CHUNK_SIZE_ENV_VAR} must be an integer")
        try:
            threshold = float(env.get(SIMILARITY_THRESHOLD_ENV_VAR, defaults.similarity_threshold))
        except ValueError:
            raise ValidationError(f"{SIMILARITY_THRESHOLD_ENV_VAR} must be a number")

        return cls(chunk_size=chunk_size, similarity_threshold=threshold)

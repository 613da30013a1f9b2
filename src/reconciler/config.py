"""
Settings for the reconciliation engine.

Settings are declarative JSON - edit the file, not the code. Every field
has a default, so an empty file (or no file) gives the stock behaviour.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from .parsers import ProductNameNormalizer


class Settings(BaseModel):
    """Matching thresholds, synonym table and store locations."""

    similarity_threshold: float = Field(
        default=0.4,
        ge=0,
        le=1,
        description="Minimum Jaccard score for a similarity match (inclusive)",
    )
    min_token_overlap: int = Field(
        default=2,
        ge=1,
        description="Shared tokens needed for the overlap fallback",
    )
    low_confidence_warning: float = Field(
        default=0.6,
        ge=0,
        le=1,
        description="Accepted matches below this score are logged",
    )
    synonyms: dict[str, str] = Field(
        default_factory=lambda: dict(ProductNameNormalizer.DEFAULT_SYNONYMS)
    )
    ledger_path: Path | None = None
    inventory_path: Path | None = None
    log_level: str = "INFO"


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from a JSON file.

    Args:
        config_path: Path to a settings JSON file, or None for defaults

    Returns:
        Validated Settings (raises pydantic.ValidationError on bad values)
    """
    if config_path is None:
        return Settings()

    path = Path(config_path)
    with open(path, "r") as f:
        data = json.load(f)

    return Settings.model_validate(data)

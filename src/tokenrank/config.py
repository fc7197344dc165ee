"""Configuration system for tokenrank.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (TOKENRANK_*) -> .env file -> field defaults.

Per-call overrides are applied via resolve_config() which creates a new
config instance without mutating the defaults. Infrastructure fields
(predictor backend, model, logging) are fixed for the lifetime of an analyzer.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenrank.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

# Fields that can be overridden for a single analyze() call.
_PER_CALL_FIELDS: frozenset[str] = frozenset(
    {
        "max_length",
        "initial_tokens_count",
    }
)

# All known config field names (populated after class definition).
_ALL_FIELDS: frozenset[str] = frozenset()


class TokenRankConfig(BaseSettings):
    """Configuration for tokenrank.

    Resolution order: init kwargs -> env vars (TOKENRANK_*) -> .env file -> defaults.

    Fields are divided into two groups:
    - **Analysis**: truncation and prefix length, overridable per call.
    - **Infrastructure**: predictor backend, model, tokenizer and logging,
      fixed once an analyzer is built.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKENRANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Analysis (per-call overridable) ---

    max_length: int | None = Field(
        default=None,
        gt=0,
        description="Truncate the token sequence to its first N tokens (None = no limit)",
    )
    initial_tokens_count: int = Field(
        default=3,
        ge=0,
        description="Number of leading tokens recorded without prediction",
    )

    # --- Predictor (NOT per-call overridable) ---

    predictor_type: str = Field(
        default="transformers",
        description="Registered predictor backend: 'transformers', 'logits', 'mock'",
    )
    model_name: str = Field(
        default="HuggingFaceTB/SmolLM2-135M",
        description="Model identifier or path for the predictor and tokenizer",
    )
    tokenizer_path: str = Field(
        default="",
        description="Local tokenizer directory tried before model_name (empty = skip)",
    )
    max_sequence_length: int = Field(
        default=8192,
        gt=0,
        description="Longest context the predictor accepts",
    )
    device: str = Field(
        default="cpu",
        description="Torch device for the transformers predictor",
    )

    # --- Logging (NOT per-call overridable) ---

    log_level: str = Field(
        default="summary",
        description="Per-token logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Keep all per-token records in memory for analysis",
    )


# Populate _ALL_FIELDS now that the class is defined.
_ALL_FIELDS = frozenset(TokenRankConfig.model_fields.keys())


def validate_overrides(overrides: Mapping[str, Any]) -> None:
    """Validate per-call override keys without creating a config.

    Args:
        overrides: Mapping of field names to override values.

    Raises:
        ConfigValidationError: If any key is unknown or non-overridable.
    """
    for key in overrides:
        if key not in _ALL_FIELDS:
            raise ConfigValidationError(f"Unknown config field: '{key}'")
        if key not in _PER_CALL_FIELDS:
            raise ConfigValidationError(
                f"Field '{key}' is an infrastructure field and cannot be overridden per call"
            )


def resolve_config(
    defaults: TokenRankConfig,
    overrides: Mapping[str, Any] | None,
) -> TokenRankConfig:
    """Create a new config instance merging defaults with per-call overrides.

    Args:
        defaults: The base configuration loaded from environment.
        overrides: Per-call overrides keyed by field name.

    Returns:
        ``defaults`` itself when there is nothing to override, otherwise a
        new validated TokenRankConfig.

    Raises:
        ConfigValidationError: If any key is unknown or non-overridable.
        pydantic.ValidationError: If an override value fails field validation.
    """
    if not overrides:
        return defaults

    validate_overrides(overrides)

    # model_copy(update=...) skips validation, so run the full validator on
    # a merged dump instead.
    merged = defaults.model_dump()
    merged.update(overrides)
    return TokenRankConfig.model_validate(merged)


def config_hash(config: TokenRankConfig) -> str:
    """Compute a short hash of the config for logging.

    Args:
        config: The configuration to hash.

    Returns:
        First 16 hex characters of the SHA-256 digest of the config dump.
    """
    raw = config.model_dump_json().encode("utf-8")
    return hashlib.sha256(raw).hexdigest()[:16]

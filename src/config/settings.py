# src/config/settings.py - v1
"""Deployment settings for training, checkpoint storage, the job queue and logging.

Values come from the environment or a .env file (TRANSE_DIMENSIONS=45, ...).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kgembed.core.models import TrainingConfig


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """kgembed settings; field names map to upper-case environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === TransE training ===
    transe_dimensions: int = 45
    transe_learning_rate: float = 0.01
    transe_margin: float = 1.0
    epochs_per_invocation: int = 20
    total_epoch_budget: int = 200
    max_batch_size: int = 1000
    training_seed: int | None = None

    # === Contextual augmentation ===
    context_dimensions: int = 5
    embedding_total_dimensions: int = 50

    # === Orchestration ===
    stale_job_seconds: float = 35.0

    # === Persistence retry ===
    persist_max_retries: int = 3
    persist_base_delay_s: float = 1.0

    # === Prediction ===
    predictor_top_k: int = 10
    evaluation_candidate_limit: int = 1000

    # === Checkpoint storage ===
    checkpoint_writer: Literal["local", "s3"] = "local"
    checkpoint_root: Path = Path("~/.kgembed/checkpoints")
    checkpoint_s3_bucket: str = ""
    checkpoint_s3_prefix: str = "embedding-models/"
    checkpoint_s3_region: str = ""

    # === Job queue ===
    job_queue_backend: Literal["memory", "sqlite"] = "sqlite"
    job_queue_path: Path = Path("~/.kgembed/jobs.db")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("transe_learning_rate", "transe_margin")
    @classmethod
    def validate_positive(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.transe_dimensions + self.context_dimensions != self.embedding_total_dimensions:
            errors.append(
                "EMBEDDING_TOTAL_DIMENSIONS must equal TRANSE_DIMENSIONS + CONTEXT_DIMENSIONS"
            )

        if self.epochs_per_invocation < 1:
            errors.append("EPOCHS_PER_INVOCATION must be >= 1")
        elif self.epochs_per_invocation > self.total_epoch_budget:
            errors.append("EPOCHS_PER_INVOCATION must be <= TOTAL_EPOCH_BUDGET")

        if self.max_batch_size < 1:
            errors.append("MAX_BATCH_SIZE must be >= 1")

        if self.checkpoint_writer == "s3" and not self.checkpoint_s3_bucket:
            errors.append("CHECKPOINT_S3_BUCKET must be set when CHECKPOINT_WRITER=s3")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    def training_config(self, triplet_count: int) -> TrainingConfig:
        """Build the per-job training config for a graph of triplet_count edges."""
        return TrainingConfig(
            dimensions=self.transe_dimensions,
            learning_rate=self.transe_learning_rate,
            margin=self.transe_margin,
            epochs=self.epochs_per_invocation,
            batch_size=max(1, min(self.max_batch_size, triplet_count)),
        )


def load_settings(**overrides: object) -> Settings:
    """Settings from the environment, with keyword overrides taking precedence.

    Raises:
        ConfigurationError: If dimensions, epoch budget or storage settings disagree.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

# Copyright (c) US Inc. All rights reserved.
"""Application configuration settings"""

import os
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    APP_NAME: str = "Tuneforge API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Persistence
    DATABASE_URL: str = "sqlite:///./data/tuneforge.db"
    UPLOAD_DIR: Path = Path("/app/data/uploads") if os.path.exists("/app") else Path("./uploads/documents")
    MAX_UPLOAD_SIZE_MB: int = 10

    # =========================================================================
    # Remote training host
    # =========================================================================
    # Leaving REMOTE_HOST unset switches the orchestrator to simulated
    # training, where the batch waits for its estimated duration instead.
    # =========================================================================
    REMOTE_HOST: Optional[str] = None
    REMOTE_PORT: int = 22
    REMOTE_USER: str = "root"
    REMOTE_KEY_PATH: Optional[Path] = None
    # None disables host key verification
    REMOTE_KNOWN_HOSTS: Optional[str] = None
    REMOTE_CONNECT_TIMEOUT_SECONDS: float = 30.0
    REMOTE_STAGING_DIR: str = "/tmp/datasets"
    REMOTE_DATASET_PATH: str = "/tmp/combined_dataset.csv"
    REMOTE_TRAIN_COMMAND: str = "cd /tmp && python3 /workspace/train_model.py combined_dataset.csv"
    REMOTE_ARTIFACT_PATH: str = "/workspace/finetuned-model"

    # Training estimate
    TRAINING_THROUGHPUT_PER_SECOND: float = 100.0
    MIN_TRAINING_SECONDS: float = 5.0
    JOB_TIMEOUT_SECONDS: float = 6 * 3600
    SIMULATED_ARTIFACT_ROOT: str = "/workspace"

    # Generative model (OpenAI-compatible chat completions)
    LLM_API_BASE: str = "https://api.openai.com/v1"
    LLM_API_KEY: Optional[str] = None
    LLM_MODEL: str = "gpt-4o-mini"
    PROMPT_MODEL: str = "gpt-4.1-mini"
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Output normalization
    NORMALIZER_CAP: int = 10
    RAW_PREVIEW_CHARS: int = 500

    # Usage reporting
    ESTIMATED_COST_PER_1K_TOKENS: float = 0.03

    @property
    def remote_dispatch_enabled(self) -> bool:
        """Whether a remote training host is configured."""
        return bool(self.REMOTE_HOST)

    @property
    def generation_enabled(self) -> bool:
        """Whether an API key for the generative model is configured."""
        return bool(self.LLM_API_KEY)

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def estimate_training_seconds(self, total_records: int) -> float:
        """Estimated training duration for a batch of ``total_records``."""
        return max(total_records / self.TRAINING_THROUGHPUT_PER_SECOND, self.MIN_TRAINING_SECONDS)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

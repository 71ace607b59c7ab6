from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class ToolBackendConfig(BaseModel):
    """Configuration for the simulated tool backend."""

    min_delay: float = 0.5
    max_delay: float = 2.5
    history_limit: int = 100


class EvaflowConfig(BaseModel):
    """Top-level configuration model."""

    log_level: str = "INFO"
    database_url: Optional[str] = None
    catalog_path: Optional[str] = None
    tools_path: Optional[str] = None
    role: str = "universal"
    tools: ToolBackendConfig = Field(default_factory=ToolBackendConfig)


def load_config(path: Optional[str] = None) -> EvaflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to EVAFLOW_CONFIG env
            variable or 'evaflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("EVAFLOW_CONFIG", "evaflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = EvaflowConfig(**data)
    else:
        config = EvaflowConfig()

    env_db_url = os.getenv("EVAFLOW_DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config

"""Config loader: parse and validate astrastore.yaml."""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from contracts.config import AstraStoreConfig

TOKEN_ENV = "ASTRA_DB_APPLICATION_TOKEN"
ENDPOINT_ENV = "ASTRA_DB_API_ENDPOINT"


def load_config(path: str) -> AstraStoreConfig:
    """Load a YAML config file and return a validated AstraStoreConfig.

    ``token`` and ``api_endpoint`` fall back to the ASTRA_DB_APPLICATION_TOKEN
    and ASTRA_DB_API_ENDPOINT environment variables when the file omits them.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    raw = p.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a YAML mapping, got {type(data).__name__}")

    if not data.get("token") and os.environ.get(TOKEN_ENV):
        data["token"] = os.environ[TOKEN_ENV]
    if not data.get("api_endpoint") and os.environ.get(ENDPOINT_ENV):
        data["api_endpoint"] = os.environ[ENDPOINT_ENV]

    return AstraStoreConfig(**data)

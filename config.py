"""Environment-driven settings for the poem pipeline."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass

from errors import ConfigMissing

DEFAULT_CMA_API_URL = "https://openaccess-api.clevelandart.org/api"
DEFAULT_BEDROCK_MODEL_ID = "anthropic.claude-3-haiku-20240307-v1:0"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_AWS_REGION = "us-east-1"

STORE_BACKENDS = ("dynamodb", "csv")
GENERATOR_BACKENDS = ("bedrock", "openai")


@dataclass(frozen=True, slots=True)
class Settings:
    store_backend: str = "dynamodb"
    poems_table_name: str | None = None
    poems_csv_path: str = "poems.csv"
    generator_backend: str = "bedrock"
    aws_region: str = DEFAULT_AWS_REGION
    bedrock_model_id: str = DEFAULT_BEDROCK_MODEL_ID
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_api_key: str | None = None
    cma_api_url: str = DEFAULT_CMA_API_URL
    request_timeout_seconds: float = 20.0
    log_level: str = "INFO"


def load_settings(
    store_backend: str | None = None,
    generator_backend: str | None = None,
) -> Settings:
    """Read settings from the environment.

    Explicit arguments override ``POEM_STORE`` / ``POEM_GENERATOR``. A DynamoDB
    store without ``POEMS_TABLE_NAME`` is a startup error, as is an OpenAI
    generator without ``OPENAI_API_KEY``.
    """
    store = (store_backend or os.getenv("POEM_STORE", "dynamodb")).strip().lower()
    generator = (generator_backend or os.getenv("POEM_GENERATOR", "bedrock")).strip().lower()

    if store not in STORE_BACKENDS:
        raise ConfigMissing(f"POEM_STORE must be one of {', '.join(STORE_BACKENDS)}, got {store!r}")
    if generator not in GENERATOR_BACKENDS:
        raise ConfigMissing(
            f"POEM_GENERATOR must be one of {', '.join(GENERATOR_BACKENDS)}, got {generator!r}"
        )

    table_name = os.getenv("POEMS_TABLE_NAME") or None
    if store == "dynamodb" and not table_name:
        raise ConfigMissing("POEMS_TABLE_NAME not set")

    openai_api_key = os.getenv("OPENAI_API_KEY") or None
    if generator == "openai" and not openai_api_key:
        raise ConfigMissing("OPENAI_API_KEY environment variable is required")

    raw_timeout = os.getenv("REQUEST_TIMEOUT_SECONDS", "20")
    try:
        timeout = float(raw_timeout)
    except ValueError as exc:
        raise ConfigMissing(f"REQUEST_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}") from exc
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigMissing(f"REQUEST_TIMEOUT_SECONDS must be positive, got {raw_timeout!r}")

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelNamesMapping().get(log_level), int):
        raise ConfigMissing(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

    return Settings(
        store_backend=store,
        poems_table_name=table_name,
        poems_csv_path=os.getenv("POEMS_CSV_PATH", "poems.csv"),
        generator_backend=generator,
        aws_region=os.getenv("AWS_REGION", DEFAULT_AWS_REGION),
        bedrock_model_id=os.getenv("BEDROCK_MODEL_ID", DEFAULT_BEDROCK_MODEL_ID),
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        openai_api_key=openai_api_key,
        cma_api_url=os.getenv("CMA_API_URL", DEFAULT_CMA_API_URL).rstrip("/"),
        request_timeout_seconds=timeout,
        log_level=log_level,
    )


def cap_timeout(call_timeout: float | None, configured: float | None) -> float | None:
    """Per-call timeout: the tighter of the caller's budget and the configured limit."""
    candidates = [t for t in (call_timeout, configured) if t]
    return min(candidates) if candidates else None

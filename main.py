"""Entrypoints: AWS Lambda handler for API Gateway and a local CLI."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from typing import Any

from dotenv import load_dotenv

from anthropic_client import BedrockPoemGenerator
from cma_client import CMAArtworkSource
from config import Settings, load_settings
from csv_store import CsvPoemStore
from errors import PoemPipelineError
from llm_client import OpenAIPoemGenerator
from pipeline import GenerationPipeline
from poem_store import DynamoDBPoemStore, make_dynamodb_client

LOGGER = logging.getLogger(__name__)

# Stop starting new external calls this long before Lambda kills the invocation.
DEADLINE_MARGIN_SECONDS = 1.0

_PIPELINE: GenerationPipeline | None = None


def build_pipeline(settings: Settings) -> GenerationPipeline:
    """Construct every collaborator once from settings."""
    source = CMAArtworkSource(base_url=settings.cma_api_url, timeout=settings.request_timeout_seconds)

    if settings.generator_backend == "openai":
        generator = OpenAIPoemGenerator(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.request_timeout_seconds,
        )
    else:
        generator = BedrockPoemGenerator(
            model_id=settings.bedrock_model_id,
            aws_region=settings.aws_region,
            timeout=settings.request_timeout_seconds,
        )

    if settings.store_backend == "csv":
        store = CsvPoemStore(settings.poems_csv_path)
    else:
        store = DynamoDBPoemStore(
            settings.poems_table_name,
            client=make_dynamodb_client(settings.aws_region, settings.request_timeout_seconds),
        )

    LOGGER.info(
        "Pipeline ready: store=%s generator=%s",
        settings.store_backend,
        settings.generator_backend,
    )
    return GenerationPipeline(source=source, generator=generator, store=store)


def _get_pipeline() -> GenerationPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        settings = load_settings()
        logging.getLogger().setLevel(settings.log_level)
        _PIPELINE = build_pipeline(settings)
    return _PIPELINE


def init_lambda() -> GenerationPipeline:
    """Build the pipeline during the Lambda init phase.

    Configuration errors such as a missing ``POEMS_TABLE_NAME`` propagate, so
    the function fails to start instead of answering every request with a 500.
    """
    pipeline = _get_pipeline()
    LOGGER.info("Lambda cold start complete")
    return pipeline


def _json_response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def error_response(exc: PoemPipelineError) -> dict[str, Any]:
    """Map a pipeline error to its status code and ``{"error", "errorKind"}`` body."""
    return _json_response(exc.status_code, {"error": str(exc), "errorKind": exc.kind.value})


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """API Gateway proxy handler: ``GET /?id=<artwork id or accession number>``."""
    params = (event or {}).get("queryStringParameters") or {}
    identifier = params.get("id")

    deadline = None
    if context is not None and hasattr(context, "get_remaining_time_in_millis"):
        remaining = context.get_remaining_time_in_millis() / 1000.0
        deadline = time.monotonic() + remaining - DEADLINE_MARGIN_SECONDS

    try:
        result = _get_pipeline().run(identifier, deadline=deadline)
    except PoemPipelineError as exc:
        LOGGER.error("Request for id=%r failed (%s): %s", identifier, exc.kind.value, exc)
        return error_response(exc)
    except Exception:
        LOGGER.exception("Unexpected failure for id=%r", identifier)
        return _json_response(500, {"error": "internal error", "errorKind": "InternalError"})

    return _json_response(200, result.to_body())


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Get (or generate and cache) a poem for an artwork")
    parser.add_argument("identifier", help="CMA artwork id (e.g. 160729) or accession number (e.g. 1916.1018)")
    parser.add_argument("--store", choices=["dynamodb", "csv"], default=None, help="Override POEM_STORE")
    parser.add_argument(
        "--generator",
        choices=["bedrock", "openai"],
        default=None,
        help="Override POEM_GENERATOR",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Load config, run the pipeline once and print the JSON response."""
    load_dotenv()
    args = parse_args(argv)

    try:
        settings = load_settings(store_backend=args.store, generator_backend=args.generator)
    except PoemPipelineError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
        LOGGER.error("Configuration error: %s", exc)
        print(json.dumps({"error": str(exc), "errorKind": exc.kind.value}))
        return 2

    level = logging.DEBUG if args.verbose else settings.log_level
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    try:
        result = build_pipeline(settings).run(args.identifier)
    except PoemPipelineError as exc:
        LOGGER.error("Failed (%s): %s", exc.kind.value, exc)
        print(json.dumps({"error": str(exc), "errorKind": exc.kind.value}))
        return 1

    LOGGER.info("Served %s poem for id=%s", "cached" if result.cached else "new", result.id)
    print(json.dumps(result.to_body(), indent=2, ensure_ascii=False))
    return 0


if os.getenv("AWS_LAMBDA_FUNCTION_NAME"):
    init_lambda()


if __name__ == "__main__":
    sys.exit(main())

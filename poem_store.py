"""DynamoDB-backed poem cache."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from boto3.dynamodb.types import TypeDeserializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from config import DEFAULT_AWS_REGION
from errors import AlreadyExists, ConfigMissing, StoreCorrupt, StoreUnavailable
from models import AccessionNumber, LookupKey, Poem, PrimaryId

ACCESSION_NUMBER_INDEX = "AccessionNumberIndex"

LOGGER = logging.getLogger(__name__)

_DESERIALIZER = TypeDeserializer()


def make_dynamodb_client(region: str = DEFAULT_AWS_REGION, timeout: float = 10.0) -> Any:
    """Build a low-level DynamoDB client with bounded connect/read timeouts."""
    boto3_cfg = Config(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": 2, "mode": "standard"},
    )
    return boto3.client("dynamodb", region_name=region, config=boto3_cfg)


class DynamoDBPoemStore:
    """Table keyed by ``id`` with a GSI on ``accession_number``.

    ``put`` is a conditional write, so a second writer for the same id gets
    ``AlreadyExists`` instead of overwriting the first poem.
    """

    def __init__(self, table_name: str | None, client: Any | None = None) -> None:
        if not table_name:
            raise ConfigMissing("POEMS_TABLE_NAME not set")
        self.table_name = table_name
        self.client = client or make_dynamodb_client()

    def lookup(self, key: LookupKey) -> Poem | None:
        """Return the stored poem for ``key``, or None when there is none.

        A primary id is a direct ``GetItem``; an accession number queries
        ``AccessionNumberIndex`` and takes the first match.

        Raises:
            StoreUnavailable: Any DynamoDB or transport error.
            StoreCorrupt: The record does not decode into a poem.
        """
        if isinstance(key, PrimaryId):
            return self._get_by_id(key.value)
        if isinstance(key, AccessionNumber):
            return self._query_by_accession_number(key.value)
        raise TypeError(f"unsupported lookup key: {key!r}")

    def put(self, poem: Poem) -> None:
        """Insert ``poem`` if its id is not stored yet.

        Raises:
            AlreadyExists: Another writer stored this id first.
            StoreUnavailable: Any other DynamoDB or transport error.
        """
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item={
                    "id": {"S": poem.id},
                    "accession_number": {"S": poem.accession_number},
                    "poem": {"S": poem.text},
                },
                ConditionExpression="attribute_not_exists(id)",
            )
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                raise AlreadyExists(f"a poem for id {poem.id} is already stored") from exc
            raise StoreUnavailable(f"could not write poem to the database: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreUnavailable(f"could not write poem to the database: {exc}") from exc

        LOGGER.info("Stored poem id=%s accession_number=%s", poem.id, poem.accession_number)

    def _get_by_id(self, poem_id: str) -> Poem | None:
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key={"id": {"S": poem_id}},
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailable(f"error talking to the database: {exc}") from exc

        item = response.get("Item")
        if not item:
            return None
        return decode_item(item)

    def _query_by_accession_number(self, accession_number: str) -> Poem | None:
        try:
            response = self.client.query(
                TableName=self.table_name,
                IndexName=ACCESSION_NUMBER_INDEX,
                KeyConditionExpression="#an = :an",
                ExpressionAttributeNames={"#an": "accession_number"},
                ExpressionAttributeValues={":an": {"S": accession_number}},
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreUnavailable(f"error talking to the database: {exc}") from exc

        items = response.get("Items") or []
        if not items:
            return None

        poems = [decode_item(item) for item in items]
        poems = [poem for poem in poems if poem is not None]
        if len(poems) > 1:
            LOGGER.warning(
                "Accession number %s maps to %s poems (ids=%s); using the first",
                accession_number,
                len(poems),
                ", ".join(poem.id for poem in poems),
            )
        return poems[0] if poems else None


def decode_item(item: dict[str, Any]) -> Poem | None:
    """Decode a DynamoDB attribute map. An item without an id counts as absent."""
    try:
        data = {name: _DESERIALIZER.deserialize(value) for name, value in item.items()}
    except (TypeError, ValueError) as exc:
        raise StoreCorrupt(f"could not decode poem record: {exc}") from exc

    poem_id = data.get("id")
    if poem_id in (None, ""):
        return None

    accession_number = data.get("accession_number", "")
    text = data.get("poem")
    if not isinstance(poem_id, str) or not isinstance(accession_number, str) or not isinstance(text, str):
        raise StoreCorrupt(f"poem record {poem_id!r} does not match the expected shape")

    return Poem(id=poem_id, accession_number=accession_number, text=text)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")

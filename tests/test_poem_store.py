"""Tests for DynamoDBPoemStore against a mocked low-level client."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from errors import AlreadyExists, ConfigMissing, StoreCorrupt, StoreUnavailable
from models import AccessionNumber, Poem, PrimaryId
from poem_store import ACCESSION_NUMBER_INDEX, DynamoDBPoemStore, decode_item


def _item(poem_id: str, accession_number: str, text: str) -> dict:
    return {
        "id": {"S": poem_id},
        "accession_number": {"S": accession_number},
        "poem": {"S": text},
    }


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutItem")


def _store(client: MagicMock) -> DynamoDBPoemStore:
    return DynamoDBPoemStore("poems", client=client)


def test_store_requires_table_name() -> None:
    with pytest.raises(ConfigMissing, match="POEMS_TABLE_NAME"):
        DynamoDBPoemStore("", client=MagicMock())


def test_primary_lookup_uses_get_item() -> None:
    client = MagicMock()
    client.get_item.return_value = {"Item": _item("42", "A1", "verse")}

    poem = _store(client).lookup(PrimaryId("42"))

    assert poem == Poem(id="42", accession_number="A1", text="verse")
    client.get_item.assert_called_once_with(TableName="poems", Key={"id": {"S": "42"}})
    client.query.assert_not_called()


def test_primary_lookup_miss_returns_none() -> None:
    client = MagicMock()
    client.get_item.return_value = {}

    assert _store(client).lookup(PrimaryId("42")) is None


def test_accession_lookup_queries_secondary_index() -> None:
    client = MagicMock()
    client.query.return_value = {"Items": [_item("160729", "1916.1018", "verse")]}

    poem = _store(client).lookup(AccessionNumber("1916.1018"))

    assert poem is not None and poem.id == "160729"
    kwargs = client.query.call_args.kwargs
    assert kwargs["TableName"] == "poems"
    assert kwargs["IndexName"] == ACCESSION_NUMBER_INDEX
    assert kwargs["ExpressionAttributeValues"] == {":an": {"S": "1916.1018"}}
    assert kwargs["ExpressionAttributeNames"] == {"#an": "accession_number"}
    client.get_item.assert_not_called()


def test_accession_lookup_miss_returns_none() -> None:
    client = MagicMock()
    client.query.return_value = {"Items": []}

    assert _store(client).lookup(AccessionNumber("X")) is None


def test_accession_collision_takes_first_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    client = MagicMock()
    client.query.return_value = {"Items": [_item("1", "A1", "first"), _item("2", "A1", "second")]}

    with caplog.at_level(logging.WARNING, logger="poem_store"):
        poem = _store(client).lookup(AccessionNumber("A1"))

    assert poem is not None and poem.text == "first"
    assert "maps to 2 poems" in caplog.text


def test_put_is_conditional_write() -> None:
    client = MagicMock()

    _store(client).put(Poem(id="42", accession_number="A1", text="verse"))

    client.put_item.assert_called_once_with(
        TableName="poems",
        Item=_item("42", "A1", "verse"),
        ConditionExpression="attribute_not_exists(id)",
    )


def test_put_condition_failure_is_already_exists() -> None:
    client = MagicMock()
    client.put_item.side_effect = _client_error("ConditionalCheckFailedException")

    with pytest.raises(AlreadyExists):
        _store(client).put(Poem(id="42", accession_number="A1", text="verse"))


def test_put_other_client_error_is_store_unavailable() -> None:
    client = MagicMock()
    client.put_item.side_effect = _client_error("ResourceNotFoundException")

    with pytest.raises(StoreUnavailable):
        _store(client).put(Poem(id="42", accession_number="A1", text="verse"))


def test_lookup_transport_error_is_store_unavailable() -> None:
    client = MagicMock()
    client.get_item.side_effect = EndpointConnectionError(endpoint_url="https://dynamodb.test")

    with pytest.raises(StoreUnavailable):
        _store(client).lookup(PrimaryId("42"))


def test_round_trip_through_fake_table() -> None:
    """Put followed by primary lookup returns an equal poem."""
    table: dict[str, dict] = {}
    client = MagicMock()
    client.put_item.side_effect = lambda **kw: table.__setitem__(kw["Item"]["id"]["S"], kw["Item"])
    client.get_item.side_effect = lambda **kw: (
        {"Item": table[kw["Key"]["id"]["S"]]} if kw["Key"]["id"]["S"] in table else {}
    )
    store = _store(client)
    poem = Poem(id="42", accession_number="A1", text="...")

    store.put(poem)

    assert store.lookup(PrimaryId("42")) == poem


def test_decode_item_without_id_is_absent() -> None:
    assert decode_item({"id": {"S": ""}, "poem": {"S": "x"}}) is None


def test_decode_item_missing_accession_number_defaults_to_empty() -> None:
    poem = decode_item({"id": {"S": "42"}, "poem": {"S": "x"}})

    assert poem == Poem(id="42", accession_number="", text="x")


@pytest.mark.parametrize(
    "item",
    [
        {"id": {"S": "42"}, "accession_number": {"S": "A1"}},
        {"id": {"S": "42"}, "accession_number": {"S": "A1"}, "poem": {"N": "7"}},
        {"id": {"S": "42"}, "poem": {"ZZ": "x"}},
    ],
)
def test_decode_item_wrong_shape_is_store_corrupt(item: dict) -> None:
    with pytest.raises(StoreCorrupt):
        decode_item(item)

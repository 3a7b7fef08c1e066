"""Store adapter for a DynamoDB table."""

import asyncio
import functools
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, ConditionBase
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from leaselock.errors import ConditionFailedError
from leaselock.store import Absent, AllOf, AnyOf, AtMost, Condition, Equals, Store
from leaselock.types import Item

_CONDITION_FAILED = "ConditionalCheckFailedException"


def _is_condition_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == _CONDITION_FAILED


def _to_dynamodb(value: Any) -> Any:
    """Replace floats with Decimals; the resource serializer rejects float."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamodb(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamodb(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {_to_dynamodb(v) for v in value}
    return value


def _from_dynamodb(value: Any) -> Any:
    """Turn Decimals back into int (when integral) or float, so reads match what was written."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamodb(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamodb(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {_from_dynamodb(v) for v in value}
    return value


class DynamoDBStore(Store):
    """
    Store backed by a DynamoDB table whose partition key holds the physical key.

    boto3 is blocking, so every call runs in the event loop's default executor.
    """

    def __init__(
        self,
        table_name: str,
        *,
        client: Any = None,
        key_attribute: str = "k",
    ) -> None:
        """
        Initialize the store.

        Args:
            table_name: Name of the DynamoDB table
            client: A boto3 DynamoDB service resource or an already-built
                Table (a new resource is created from the default session if omitted)
            key_attribute: Name of the table's string partition key

        Raises:
            TypeError: If ``client`` is a low-level boto3 client
        """
        if client is None:
            client = boto3.resource("dynamodb")
        if isinstance(client, BaseClient):
            raise TypeError(
                "DynamoDBStore needs a DynamoDB service resource or Table, not a low-level client; "
                "use boto3.resource(\"dynamodb\")"
            )
        self._table = client.Table(table_name) if hasattr(client, "Table") else client
        self.table_name = table_name
        self.key_attribute = key_attribute

    async def _call(self, method: Callable[..., Any], **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(method, **kwargs))

    def _key(self, key: str) -> Item:
        return {self.key_attribute: key}

    def _expression(self, condition: Condition) -> ConditionBase:
        if isinstance(condition, Absent):
            return Attr(self.key_attribute).not_exists()
        if isinstance(condition, Equals):
            return Attr(condition.field).eq(_to_dynamodb(condition.value))
        if isinstance(condition, AtMost):
            return Attr(condition.field).lte(_to_dynamodb(condition.value))
        if isinstance(condition, (AnyOf, AllOf)):
            parts = [self._expression(part) for part in condition.conditions]
            combine = (lambda a, b: a | b) if isinstance(condition, AnyOf) else (lambda a, b: a & b)
            return functools.reduce(combine, parts)
        raise TypeError(f"Unsupported condition: {condition!r}")

    async def read(self, key: str, *, consistent: bool = True) -> Item | None:
        response = await self._call(
            self._table.get_item, Key=self._key(key), ConsistentRead=consistent
        )
        item = response.get("Item")
        if item is None:
            return None
        item = _from_dynamodb(dict(item))
        item.pop(self.key_attribute, None)
        return item

    async def put(self, key: str, fields: Item) -> None:
        await self._call(self._table.put_item, Item={**_to_dynamodb(fields), **self._key(key)})

    async def conditional_upsert(self, key: str, fields: Item, condition: Condition) -> None:
        names = {f"#f_{i}": name for i, name in enumerate(fields)}
        values = {f":f_{i}": _to_dynamodb(value) for i, value in enumerate(fields.values())}
        assignments = ", ".join(f"#f_{i} = :f_{i}" for i in range(len(fields)))
        try:
            await self._call(
                self._table.update_item,
                Key=self._key(key),
                UpdateExpression=f"SET {assignments}",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression=self._expression(condition),
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                raise ConditionFailedError(key) from exc
            raise

    async def conditional_delete(self, key: str, condition: Condition) -> None:
        try:
            await self._call(
                self._table.delete_item,
                Key=self._key(key),
                ConditionExpression=self._expression(condition),
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                raise ConditionFailedError(key) from exc
            raise

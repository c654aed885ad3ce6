"""DynamoDB service wrapper for the orders, finance and users tables."""

from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError


class DynamoDBService:
    """Service for DynamoDB operations with prefixed table names."""

    ORDERS_TABLE = "orders"
    FINANCE_TABLE = "finance"
    USERS_TABLE = "users"
    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(self, table_prefix: str, resource: Any | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            table_prefix: Prefix prepended to every table name (e.g. delvind-dev).
            resource: Optional boto3 DynamoDB resource (created if omitted).
        """
        self.name_prefix = table_prefix
        self._dynamodb = resource or boto3.resource("dynamodb")

    def _table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        """Get DynamoDB table resource."""
        return self._dynamodb.Table(self._table_name(table))

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(Key=key)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write
            expression_attribute_values: Values referenced by the condition

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def create_item(self, table: str, item: dict[str, Any], key_name: str) -> bool:
        """Insert an item only if no item with the same key exists.

        Args:
            table: Table name without prefix
            item: Item to store (must include ``key_name``)
            key_name: Partition key attribute name

        Returns:
            True if created, False if an item with that key already existed
        """
        return self.put_item(
            table,
            item,
            condition_expression=f"attribute_not_exists({key_name})",
        )

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Update an item with expressions.

        Args:
            table: Table name without prefix
            key: Primary key dict
            update_expression: DynamoDB update expression
            expression_attribute_values: Values for expression
            expression_attribute_names: Names for expression (for reserved words)
            condition_expression: Optional condition for update

        Returns:
            Updated attributes or None if condition failed
        """
        try:
            kwargs: dict[str, Any] = {
                "Key": key,
                "UpdateExpression": update_expression,
                "ExpressionAttributeValues": expression_attribute_values,
                "ReturnValues": "ALL_NEW",
            }
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            response = self._get_table(table).update_item(**kwargs)
            attrs: dict[str, Any] | None = response.get("Attributes")
            return attrs
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Query a GSI by partition key.

        Args:
            table: Table name without prefix
            index_name: GSI name
            partition_key_name: Name of partition key attribute
            partition_key_value: Value to query
            limit: Max items to return

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(partition_key_name).eq(partition_key_value),
        }
        if limit:
            kwargs["Limit"] = limit

        response = self._get_table(table).query(**kwargs)
        items: list[dict[str, Any]] = response.get("Items", [])
        return items

    # =========================================================================
    # User directory (read-only)
    # =========================================================================

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        """Get a user by exact email address using GSI.

        Args:
            email: User email address

        Returns:
            First matching user dict or None if not found
        """
        results = self.query_by_gsi(
            table=self.USERS_TABLE,
            index_name="email-index",
            partition_key_name="email",
            partition_key_value=email,
            limit=1,
        )
        return results[0] if results else None

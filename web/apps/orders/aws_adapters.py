"""AWS adapters: DynamoDB-backed ``StorePort`` and Lambda ``TaskInvokerPort``.

``DynamoStore`` talks to the ``Order``, ``ProductMapping``, ``Region`` and
``PromoCode`` tables through the boto3 resource API. Numbers come back from
DynamoDB as ``Decimal``; they are converted to ``int``/``float`` before
leaving the adapter, and numeric writes are converted back to ``Decimal``.

``LambdaTaskInvoker`` dispatches fulfillment tasks with the ``Event``
invocation type, so Lambda queues the call and returns without waiting for
the function to run.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from django.conf import settings

from .domain import StorePort, TaskInvokerPort

logger = logging.getLogger("gateway.aws")

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def to_plain(value: Any) -> Any:
    """Recursively convert DynamoDB ``Decimal`` values to int/float."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_plain(v) for v in value)
    return value


def _is_conditional_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED


class DynamoStore(StorePort):
    """DynamoDB implementation of ``StorePort``.

    Args:
        resource: Optional boto3 DynamoDB service resource. When omitted one
            is created for ``AWS_REGION`` from a session owned by this store.

    Instances must not be shared between threads.
    """

    def __init__(self, resource=None, region: str | None = None):
        if resource is None:
            session = boto3.session.Session()
            resource = session.resource("dynamodb", region_name=region or settings.AWS_REGION)
        self._resource = resource
        self.orders_table = settings.ORDERS_TABLE_NAME
        self.product_mapping_table = settings.PRODUCT_MAPPING_TABLE_NAME
        self.region_table = settings.REGION_TABLE_NAME
        self.promo_code_table = settings.PROMO_CODE_TABLE_NAME
        self.status_index = settings.ORDER_STATUS_CREATED_AT_INDEX

    def _table(self, name: str):
        return self._resource.Table(name)

    def _scan_all(self, table_name: str, **kwargs) -> list[dict]:
        table = self._table(table_name)
        items: list[dict] = []
        while True:
            resp = table.scan(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return [to_plain(i) for i in items]
            kwargs["ExclusiveStartKey"] = last_key

    def _update_order(self, order_id: str, **kwargs) -> Optional[dict]:
        try:
            resp = self._table(self.orders_table).update_item(
                Key={"orderId": order_id}, ReturnValues="ALL_NEW", **kwargs
            )
        except ClientError as e:
            if _is_conditional_failure(e):
                return None
            raise
        return to_plain(resp.get("Attributes", {}))

    def get_order(self, order_id: str) -> Optional[dict]:
        resp = self._table(self.orders_table).get_item(Key={"orderId": order_id})
        item = resp.get("Item")
        return to_plain(item) if item is not None else None

    def update_order_status(self, order_id, status, expected_status=None):
        condition = "attribute_exists(#orderId)"
        values = {":status": status.value}
        if expected_status is not None:
            condition += " AND #status = :expected"
            values[":expected"] = expected_status.value
        return self._update_order(
            order_id,
            UpdateExpression="SET #status = :status",
            ConditionExpression=condition,
            ExpressionAttributeNames={"#status": "status", "#orderId": "orderId"},
            ExpressionAttributeValues=values,
        )

    def set_force_refund(self, order_id, amount):
        return self._update_order(
            order_id,
            UpdateExpression="SET #refund = :refund, #forceRefund = :forceRefund",
            ConditionExpression="attribute_exists(#orderId)",
            ExpressionAttributeNames={
                "#refund": "refund",
                "#forceRefund": "forceRefund",
                "#orderId": "orderId",
            },
            ExpressionAttributeValues={":refund": Decimal(str(amount)), ":forceRefund": True},
        )

    def scan_partner_orders(self, start, end):
        return self._scan_all(
            self.orders_table,
            FilterExpression=Attr("createdAt").between(start, end) & Attr("partner").exists(),
        )

    def query_orders_by_status(self, status, start, end, cursor=None):
        kwargs = {
            "IndexName": self.status_index,
            "KeyConditionExpression": Key("status").eq(status) & Key("createdAt").between(start, end),
        }
        if cursor:
            kwargs["ExclusiveStartKey"] = cursor
        resp = self._table(self.orders_table).query(**kwargs)
        # the cursor goes back to DynamoDB untouched
        return [to_plain(i) for i in resp.get("Items", [])], resp.get("LastEvaluatedKey")

    def find_product_by_code(self, code):
        resp = self._table(self.product_mapping_table).query(
            KeyConditionExpression=Key("code").eq(code), Limit=1
        )
        items = resp.get("Items", [])
        return to_plain(items[0]) if items else None

    def get_promo_code(self, code):
        item = self._table(self.promo_code_table).get_item(Key={"code": code}).get("Item")
        return to_plain(item) if item is not None else None

    def scan_product_mappings(self):
        return self._scan_all(self.product_mapping_table)

    def scan_regions(self):
        return self._scan_all(self.region_table)


class LambdaTaskInvoker(TaskInvokerPort):
    """Dispatch tasks as asynchronous Lambda invocations.

    The Lambda function name is ``TASK_FUNCTION_PREFIX`` + task name.
    """

    def __init__(self, client=None, region: str | None = None, function_prefix: str | None = None):
        if client is None:
            session = boto3.session.Session()
            client = session.client("lambda", region_name=region or settings.AWS_REGION)
        self._client = client
        self.function_prefix = (
            function_prefix if function_prefix is not None else settings.TASK_FUNCTION_PREFIX
        )

    def invoke(self, task_name: str, payload: dict) -> None:
        function_name = f"{self.function_prefix}{task_name}"
        self._client.invoke(
            FunctionName=function_name,
            InvocationType="Event",
            Payload=json.dumps(payload).encode("utf-8"),
        )
        logger.info("task dispatched", extra={"task": task_name, "function_name": function_name})

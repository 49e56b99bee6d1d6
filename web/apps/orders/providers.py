"""Service provider helpers for wiring the order workflows with ports.

The ``get_*`` factories return services built on the AWS/HTTP adapters
(``DynamoStore``, ``HttpMidtransClient``, ``LambdaTaskInvoker``) when
``settings.USE_AWS_ADAPTERS`` is truthy. Otherwise they fall back to the
in-process stubs, sharing one ``InMemoryStore`` per process so local
development sees its own writes.

The AWS adapters hold boto3 sessions, which are not thread-safe. They are
built once per worker thread and reused by every request on that thread.

Views call these factories through the module (``providers.get_...``) so
tests can monkeypatch them.
"""

import threading
from functools import lru_cache

from django.conf import settings

from .adapters import InMemoryStore, PaymentStatusStub, RecordingTaskInvoker
from .aws_adapters import DynamoStore, LambdaTaskInvoker
from .domain import (
    ForceRefundService,
    OrderListingService,
    OrderRecoveryService,
    PaymentStatusPort,
    StorePort,
    TaskInvokerPort,
)
from .http_adapters import HttpMidtransClient

_thread_adapters = threading.local()


def _use_aws() -> bool:
    return bool(getattr(settings, "USE_AWS_ADAPTERS", True))


@lru_cache(maxsize=1)
def _local_store() -> InMemoryStore:
    return InMemoryStore()


def _per_thread(name: str, factory):
    adapter = getattr(_thread_adapters, name, None)
    if adapter is None:
        adapter = factory()
        setattr(_thread_adapters, name, adapter)
    return adapter


def get_store() -> StorePort:
    if _use_aws():
        return _per_thread("store", DynamoStore)
    return _local_store()


def get_payment_client() -> PaymentStatusPort:
    if _use_aws():
        return HttpMidtransClient()
    return PaymentStatusStub()


def get_task_invoker() -> TaskInvokerPort:
    if _use_aws():
        return _per_thread("task_invoker", LambdaTaskInvoker)
    return RecordingTaskInvoker()


def get_recovery_service() -> OrderRecoveryService:
    return OrderRecoveryService(
        store=get_store(),
        payments=get_payment_client(),
        tasks=get_task_invoker(),
    )


def get_refund_service() -> ForceRefundService:
    return ForceRefundService(store=get_store())


def get_listing_service() -> OrderListingService:
    return OrderListingService(
        store=get_store(),
        in_progress_statuses=settings.IN_PROGRESS_STATUSES,
    )

import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def use_stubs_for_tests(settings):
    settings.USE_AWS_ADAPTERS = False


@pytest.fixture(autouse=True)
def reset_throttles():
    # throttle counters live in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def store():
    from apps.orders.adapters import InMemoryStore

    return InMemoryStore(
        orders=[
            {"orderId": "A", "status": "CREATED", "price": 100, "productCode": "P1",
             "orderType": "topup", "createdAt": "2024-05-02T10:00:00.000Z"},
            {"orderId": "B", "status": "PAID", "price": 50, "productCode": "P2",
             "orderType": "esim", "createdAt": "2024-05-03T10:00:00.000Z", "partner": "acme"},
        ],
        products=[
            {"code": "P1", "provider": "ESIM_ACCESS", "price": 100, "name": "Asia 5GB",
             "mayaProductId": "m-1", "esimAccessProductId": "e-1"},
            {"code": "P2", "provider": "MAYA", "price": 50, "name": "Europe 3GB",
             "mayaProductId": "m-2"},
        ],
        promos=[{"code": "HALF", "discountPercentage": 50, "maxPriceCut": 10}],
        regions=[{"code": "ASIA", "name": "Asia"}],
    )


@pytest.fixture
def payments():
    from apps.orders.adapters import PaymentStatusStub

    return PaymentStatusStub(transaction_status="settlement")


@pytest.fixture
def tasks():
    from apps.orders.adapters import RecordingTaskInvoker

    return RecordingTaskInvoker()


@pytest.fixture
def wired(monkeypatch, store, payments, tasks):
    """Point the providers at the given stubs for view tests."""
    monkeypatch.setattr("apps.orders.providers.get_store", lambda: store)
    monkeypatch.setattr("apps.orders.providers.get_payment_client", lambda: payments)
    monkeypatch.setattr("apps.orders.providers.get_task_invoker", lambda: tasks)
    return store, payments, tasks

import threading

import pytest

from apps.orders import providers


class FakeStore:
    orders_table = "Order"


class FakeInvoker:
    def invoke(self, task_name, payload):
        pass


@pytest.fixture
def aws_mode(settings, monkeypatch):
    settings.USE_AWS_ADAPTERS = True
    built = {"store": 0, "invoker": 0}

    def make_store():
        built["store"] += 1
        return FakeStore()

    def make_invoker():
        built["invoker"] += 1
        return FakeInvoker()

    monkeypatch.setattr(providers, "DynamoStore", make_store)
    monkeypatch.setattr(providers, "LambdaTaskInvoker", make_invoker)
    providers._thread_adapters.__dict__.clear()
    yield built
    providers._thread_adapters.__dict__.clear()


def test_aws_adapters_are_reused_within_a_thread(aws_mode):
    assert providers.get_store() is providers.get_store()
    assert providers.get_task_invoker() is providers.get_task_invoker()
    providers.get_recovery_service()
    assert aws_mode == {"store": 1, "invoker": 1}


def test_each_thread_gets_its_own_store(aws_mode):
    seen = []
    worker = threading.Thread(target=lambda: seen.append(providers.get_store()))
    worker.start()
    worker.join()

    assert seen[0] is not providers.get_store()
    assert aws_mode["store"] == 2


def test_stub_mode_shares_one_in_memory_store():
    assert providers.get_store() is providers.get_store()
    assert providers.get_task_invoker() is not providers.get_task_invoker()

"""Unit tests for promotion pricing and the catalog listings."""

import pytest

from apps.catalog.domain import CatalogService, PromoQuote, PromotionService
from apps.orders.adapters import InMemoryStore
from apps.orders.domain import Failure, FailureReason


def make_store(price=100, discount=50, cap=10, products=None, promos=None):
    return InMemoryStore(
        products=products if products is not None else [{"code": "P1", "provider": "MAYA", "price": price}],
        promos=promos if promos is not None else [{"code": "HALF", "discountPercentage": discount, "maxPriceCut": cap}],
    )


def test_price_cut_is_capped_and_amounts_scaled():
    """Scenario: 50% off a price of 100 with a cap of 10."""
    quote = PromotionService(make_store()).validate("P1", "HALF")

    assert isinstance(quote, PromoQuote)
    assert quote.price == 100000
    assert quote.price_cut == 10000
    assert quote.final_price == 90000


def test_uncapped_discount():
    quote = PromotionService(make_store(price=80, discount=25, cap=1000)).validate("P1", "HALF")
    assert (quote.price, quote.price_cut, quote.final_price) == (80000, 20000, 60000)


def test_fractional_amounts_stay_float():
    quote = PromotionService(make_store(price="1.2345", discount=10, cap=100)).validate("P1", "HALF")
    assert quote.price == pytest.approx(1234.5)
    assert isinstance(quote.price, float)


def test_zero_discount_keeps_price():
    quote = PromotionService(make_store(discount=0)).validate("P1", "HALF")
    assert quote.price_cut == 0
    assert quote.final_price == quote.price


@pytest.mark.parametrize("cap", [0, 5, 10, 40, 1000])
def test_final_price_never_increases_with_discount(cap):
    finals = []
    for discount in range(0, 101, 10):
        quote = PromotionService(make_store(discount=discount, cap=cap)).validate("P1", "HALF")
        assert quote.price_cut <= cap * 1000
        finals.append(quote.final_price)
    assert finals == sorted(finals, reverse=True)


def test_product_not_found():
    out = PromotionService(make_store(products=[])).validate("P1", "HALF")
    assert out == Failure(FailureReason.PRODUCT_NOT_FOUND)


@pytest.mark.parametrize("price", [0, -1, "abc", None, "inf"])
def test_product_price_invalid(price):
    out = PromotionService(make_store(price=price)).validate("P1", "HALF")
    assert out == Failure(FailureReason.PRODUCT_PRICE_INVALID)


def test_promo_not_found():
    out = PromotionService(make_store(promos=[])).validate("P1", "HALF")
    assert out == Failure(FailureReason.PROMO_NOT_FOUND)


@pytest.mark.parametrize("discount,cap", [(-5, 10), (50, -1), ("abc", 10), (50, None), ("nan", 10)])
def test_promo_invalid(discount, cap):
    out = PromotionService(make_store(discount=discount, cap=cap)).validate("P1", "HALF")
    assert out == Failure(FailureReason.PROMO_INVALID)


def test_product_mappings_hide_provider_fields():
    store = InMemoryStore(products=[
        {"code": "P1", "provider": "ESIM_ACCESS", "price": 100, "mayaProductId": "m", "esimAccessProductId": "e"},
    ])
    result = CatalogService(store).product_mappings()
    assert result.table_name == "ProductMapping"
    assert result.items == [{"code": "P1", "price": 100}]


def test_regions_are_returned_as_is():
    store = InMemoryStore(regions=[{"code": "ASIA", "name": "Asia"}])
    result = CatalogService(store).regions()
    assert result.table_name == "Region"
    assert result.items == [{"code": "ASIA", "name": "Asia"}]

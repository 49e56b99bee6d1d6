"""Promotion pricing and catalog listings.

``PromotionService`` prices a product under a promo code. ``CatalogService``
lists product mappings (with provider routing fields removed) and regions.
Both read through the orders ``StorePort``.
"""

import math
from dataclasses import dataclass

from apps.orders.domain import Failure, FailureReason, ListingResult, StorePort, to_number

# Fields that route orders to a provider and must not reach API consumers.
HIDDEN_PRODUCT_FIELDS = ("provider", "mayaProductId", "esimAccessProductId")

# Prices are stored in thousands of the smallest currency unit.
PRICE_SCALE = 1000


def _scaled(value: float) -> int | float:
    scaled = value * PRICE_SCALE
    return int(scaled) if float(scaled).is_integer() else scaled


@dataclass(frozen=True)
class PromoQuote:
    """Discounted price of a product, already scaled by ``PRICE_SCALE``.

    Attributes:
        product: The product mapping item.
        promo: The promo code item.
        price: Product price.
        price_cut: Discount applied, capped at the promo's ``maxPriceCut``.
        final_price: ``price - price_cut``.
    """

    product: dict
    promo: dict
    price: int | float
    price_cut: int | float
    final_price: int | float


class PromotionService:
    def __init__(self, store: StorePort):
        self.store = store

    def validate(self, product_code: str, promo_code: str) -> PromoQuote | Failure:
        """Price ``product_code`` under ``promo_code``.

        ``priceCut = price * discountPercentage / 100``, capped at
        ``maxPriceCut``; every returned amount is multiplied by 1000.

        Returns:
            ``PromoQuote`` or a ``Failure`` tagged ``PRODUCT_NOT_FOUND``,
            ``PRODUCT_PRICE_INVALID``, ``PROMO_NOT_FOUND`` or
            ``PROMO_INVALID``.
        """
        product = self.store.find_product_by_code(product_code)
        if product is None:
            return Failure(FailureReason.PRODUCT_NOT_FOUND)

        price = to_number(product.get("price"))
        if not math.isfinite(price) or price <= 0:
            return Failure(FailureReason.PRODUCT_PRICE_INVALID)

        promo = self.store.get_promo_code(promo_code)
        if promo is None:
            return Failure(FailureReason.PROMO_NOT_FOUND)

        discount_percentage = to_number(promo.get("discountPercentage"))
        max_price_cut = to_number(promo.get("maxPriceCut"))
        if (
            not math.isfinite(discount_percentage)
            or not math.isfinite(max_price_cut)
            or discount_percentage < 0
            or max_price_cut < 0
        ):
            return Failure(FailureReason.PROMO_INVALID)

        price_cut = min(price * discount_percentage / 100, max_price_cut)
        final_price = price - price_cut

        return PromoQuote(
            product=product,
            promo=promo,
            price=_scaled(price),
            price_cut=_scaled(price_cut),
            final_price=_scaled(final_price),
        )


def sanitize_product_mapping(item: dict) -> dict:
    return {k: v for k, v in item.items() if k not in HIDDEN_PRODUCT_FIELDS}


class CatalogService:
    def __init__(self, store: StorePort):
        self.store = store

    def product_mappings(self) -> ListingResult:
        """All product mappings without provider routing fields."""
        items = [sanitize_product_mapping(i) for i in self.store.scan_product_mappings()]
        return ListingResult(self.store.product_mapping_table, items)

    def regions(self) -> ListingResult:
        return ListingResult(self.store.region_table, self.store.scan_regions())

"""Factories for the catalog services, sharing the orders store wiring."""

from apps.orders import providers as order_providers

from .domain import CatalogService, PromotionService


def get_promotion_service() -> PromotionService:
    return PromotionService(store=order_providers.get_store())


def get_catalog_service() -> CatalogService:
    return CatalogService(store=order_providers.get_store())

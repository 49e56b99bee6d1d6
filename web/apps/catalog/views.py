"""HTTP views for product mappings, promotions and regions."""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.orders.domain import Failure
from apps.orders.responses import bad_request, failure_response, internal_error, listing_response

from . import providers


class ProductMappingsView(APIView):
    throttle_scope = "catalog_read"

    def get(self, request):
        try:
            result = providers.get_catalog_service().product_mappings()
        except Exception as e:
            return internal_error("failed to read product mappings from DynamoDB", e)
        return listing_response(result)


class RegionsView(APIView):
    throttle_scope = "catalog_read"

    def get(self, request):
        try:
            result = providers.get_catalog_service().regions()
        except Exception as e:
            return internal_error("failed to read regions from DynamoDB", e)
        return listing_response(result)


class PromoValidateView(APIView):
    """Price a product under a promo code.

    Responses:
        - 200 with ``{success, productCode, promoCode, price, priceCut, finalPrice}``.
        - 400 on blank path params or invalid product/promo data.
        - 404 when the product or the promo code does not exist.
        - 500 on unexpected store errors.
    """

    throttle_scope = "catalog_read"

    def get(self, request, product_code: str, promo_code: str):
        product_code = product_code.strip()
        promo_code = promo_code.strip()
        if not product_code or not promo_code:
            return bad_request("path params productCode and promoCode are required")

        try:
            result = providers.get_promotion_service().validate(product_code, promo_code)
        except Exception as e:
            return internal_error("failed to validate promo code", e)

        if isinstance(result, Failure):
            return failure_response(result)
        return Response(
            {
                "success": True,
                "productCode": product_code,
                "promoCode": promo_code,
                "price": result.price,
                "priceCut": result.price_cut,
                "finalPrice": result.final_price,
            },
            status=status.HTTP_200_OK,
        )

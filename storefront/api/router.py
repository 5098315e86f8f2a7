from fastapi import APIRouter

from storefront.domains.ecommerce.api.routes import (
    basket_router,
    catalog_router,
    download_router,
    order_router,
    payment_router,
)

api_router = APIRouter()

# All routes get the /api/v1 prefix from the app factory
api_router.include_router(catalog_router)
api_router.include_router(basket_router)
api_router.include_router(order_router)
api_router.include_router(payment_router)
api_router.include_router(download_router)

from fastapi import APIRouter

from delivery.app.api.v1.endpoints import (
    cash_register,
    costs,
    customers,
    orders,
    pix,
    products,
    reports,
    returns,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(returns.router, prefix="/returns", tags=["returns"])
api_router.include_router(cash_register.router, prefix="/cash-register", tags=["cash-register"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(costs.router, prefix="/costs", tags=["costs"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(pix.router, prefix="/pix", tags=["pix"])

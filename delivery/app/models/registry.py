# delivery/app/models/registry.py: imports every mapped class
#
# Relationships are declared by class name across modules, so the mapper
# registry must see all of them before first use. Import this module from
# entry points (app, migrations, tests) instead of listing models by hand.

from delivery.app.models.audit import AuditLog
from delivery.app.models.cash_register import CashMovement, CashRegisterDay
from delivery.app.models.cost import Cost
from delivery.app.models.customer import Customer, CustomerTransaction
from delivery.app.models.inventory import Product, StockMovement
from delivery.app.models.order import Order, OrderLine, OrderPayment, TripCost
from delivery.app.models.returns import OrderReturn, ReturnItem

__all__ = [
    "AuditLog",
    "CashMovement",
    "CashRegisterDay",
    "Cost",
    "Customer",
    "CustomerTransaction",
    "Product",
    "StockMovement",
    "Order",
    "OrderLine",
    "OrderPayment",
    "TripCost",
    "OrderReturn",
    "ReturnItem",
]

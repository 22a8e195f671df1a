"""Stock ledger: products, their running stock and the movement history."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from delivery.app.core.config import settings
from delivery.app.core.database import commit_or_conflict, money, utcnow
from delivery.app.core.errors import InsufficientStock, NotFound, ValidationError
from delivery.app.models.inventory import MovementType, Product, StockMovement
from delivery.app.services.audit import log_action

logger = logging.getLogger(__name__)

INITIAL_STOCK_REASON = "Estoque inicial"
STOCK_IN_REASON = "Entrada de estoque"
STOCK_OUT_REASON = "Saída de estoque"
NEW_VARIANT_REASON = "Nova variante com preço de custo atualizado"


def _get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound(f"Product {product_id} not found")
    return product


def _movement_type(value: MovementType | str) -> MovementType:
    try:
        return MovementType(value)
    except ValueError:
        raise ValidationError(f"Unknown movement type: {value!r}") from None


def _non_negative_price(value: Decimal | int | str, field: str) -> Decimal:
    amount = money(value)
    if amount < 0:
        raise ValidationError(f"{field} must be non-negative")
    return amount


def append_movement(
    db: Session,
    product: Product,
    movement_type: MovementType,
    quantity: int,
    reason: str,
) -> StockMovement:
    """Add a movement row and move `product.stock` with it. Does not commit."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer")

    if movement_type == MovementType.INCREASE:
        new_stock = product.stock + quantity
    else:
        new_stock = product.stock - quantity
        if new_stock < 0:
            if not settings.ALLOW_NEGATIVE_STOCK:
                raise InsufficientStock(
                    f"Insufficient stock for '{product.name}': "
                    f"{product.stock} available, {quantity} requested"
                )
            logger.warning(
                "Stock of %s (%s) goes negative: %d -> %d",
                product.name, product.id, product.stock, new_stock,
            )

    now = utcnow()
    product.stock = new_stock
    product.updated_at = now
    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
        created_at=now,
    )
    db.add(movement)
    return movement


# ─── Products ───────────────────────────────────────────────────────────────


def create_product(
    db: Session,
    *,
    name: str,
    cost_price: Decimal,
    selling_price: Decimal,
    description: str = "",
    stock: int = 0,
    actor: str | None = None,
) -> Product:
    """Create a product; a positive initial stock is booked as a movement."""
    if not name or not name.strip():
        raise ValidationError("Product name must not be empty")
    if stock < 0:
        raise ValidationError("Initial stock must be non-negative")

    product = Product(
        name=name.strip(),
        description=description or "",
        cost_price=_non_negative_price(cost_price, "Cost price"),
        selling_price=_non_negative_price(selling_price, "Selling price"),
        stock=0,
    )
    db.add(product)
    db.flush()

    if stock > 0:
        append_movement(db, product, MovementType.INCREASE, stock, INITIAL_STOCK_REASON)

    log_action(
        db,
        actor=actor,
        action="PRODUCT_CREATED",
        resource_type="products",
        resource_id=str(product.id),
        changes={
            "name": product.name,
            "cost_price": str(product.cost_price),
            "selling_price": str(product.selling_price),
            "stock": stock,
        },
    )

    commit_or_conflict(db, "Product")
    db.refresh(product)
    return product


def get_product(db: Session, product_id: UUID) -> Product:
    return _get_product(db, product_id)


def list_products(db: Session) -> list[Product]:
    return db.query(Product).order_by(Product.name, Product.created_at).all()


def update_product(
    db: Session,
    product_id: UUID,
    *,
    name: str | None = None,
    description: str | None = None,
    selling_price: Decimal | None = None,
    actor: str | None = None,
) -> Product:
    """Edit catalogue fields. Stock and cost price only move through the ledger."""
    product = _get_product(db, product_id)
    changes: dict[str, str] = {}

    if name is not None:
        if not name.strip():
            raise ValidationError("Product name must not be empty")
        product.name = name.strip()
        changes["name"] = product.name
    if description is not None:
        product.description = description
        changes["description"] = description
    if selling_price is not None:
        product.selling_price = _non_negative_price(selling_price, "Selling price")
        changes["selling_price"] = str(product.selling_price)

    if not changes:
        return product

    product.updated_at = utcnow()
    log_action(
        db,
        actor=actor,
        action="PRODUCT_UPDATED",
        resource_type="products",
        resource_id=str(product.id),
        changes=changes,
    )
    commit_or_conflict(db, "Product")
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: UUID, *, actor: str | None = None) -> None:
    """Hard delete. Movement history is kept as orphaned rows."""
    product = _get_product(db, product_id)
    log_action(
        db,
        actor=actor,
        action="PRODUCT_DELETED",
        resource_type="products",
        resource_id=str(product.id),
        changes={"name": product.name, "stock": product.stock},
    )
    db.delete(product)
    commit_or_conflict(db, "Product")


# ─── Movements ──────────────────────────────────────────────────────────────


def record_movement(
    db: Session,
    product_id: UUID,
    movement_type: MovementType | str,
    quantity: int,
    reason: str = "",
    *,
    actor: str | None = None,
) -> StockMovement:
    """Append one movement and update the product's running stock."""
    mtype = _movement_type(movement_type)
    product = _get_product(db, product_id)
    movement = append_movement(db, product, mtype, quantity, reason)

    log_action(
        db,
        actor=actor,
        action="STOCK_MOVEMENT",
        resource_type="products",
        resource_id=str(product.id),
        changes={
            "type": mtype.value,
            "quantity": quantity,
            "reason": reason,
            "stock_after": product.stock,
        },
    )

    commit_or_conflict(db, "Product")
    db.refresh(movement)
    return movement


def purchase_with_new_cost(
    db: Session,
    *,
    name: str,
    description: str,
    new_cost_price: Decimal,
    quantity: int,
    selling_price: Decimal,
    reason: str | None = None,
    actor: str | None = None,
) -> Product:
    """Fork a product variant at a new cost price and stock it.

    The original product (if any) is not touched: its stock keeps its own
    cost price.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer")
    if not name or not name.strip():
        raise ValidationError("Product name must not be empty")

    variant = Product(
        name=name.strip(),
        description=description or "",
        cost_price=_non_negative_price(new_cost_price, "Cost price"),
        selling_price=_non_negative_price(selling_price, "Selling price"),
        stock=0,
    )
    db.add(variant)
    db.flush()

    append_movement(
        db, variant, MovementType.INCREASE, quantity, reason or NEW_VARIANT_REASON
    )

    log_action(
        db,
        actor=actor,
        action="PRODUCT_VARIANT_CREATED",
        resource_type="products",
        resource_id=str(variant.id),
        changes={
            "name": variant.name,
            "cost_price": str(variant.cost_price),
            "quantity": quantity,
        },
    )

    commit_or_conflict(db, "Product")
    db.refresh(variant)
    logger.info(
        "Forked variant %s of '%s' at cost %s (%d units)",
        variant.id, variant.name, variant.cost_price, quantity,
    )
    return variant


def adjust_stock(
    db: Session,
    product_id: UUID,
    quantity: int,
    *,
    new_cost_price: Decimal | None = None,
    reason: str | None = None,
    actor: str | None = None,
) -> Product:
    """Signed stock adjustment, as entered by the manager.

    Positive `quantity` is an entry, negative an exit. A purchase priced at a
    cost different from the product's forks a new variant instead; the
    returned product is the one whose stock actually moved.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity == 0:
        raise ValidationError("Quantity must be a non-zero integer")

    product = _get_product(db, product_id)

    if new_cost_price is not None and money(new_cost_price) != product.cost_price:
        if quantity < 0:
            raise ValidationError("A new cost price only applies to stock entries")
        return purchase_with_new_cost(
            db,
            name=product.name,
            description=product.description,
            new_cost_price=new_cost_price,
            quantity=quantity,
            selling_price=product.selling_price,
            reason=reason,
            actor=actor,
        )

    if quantity > 0:
        record_movement(
            db, product.id, MovementType.INCREASE, quantity,
            reason or STOCK_IN_REASON, actor=actor,
        )
    else:
        record_movement(
            db, product.id, MovementType.DECREASE, -quantity,
            reason or STOCK_OUT_REASON, actor=actor,
        )
    db.refresh(product)
    return product


def list_movements(db: Session, product_id: UUID | None = None) -> list[StockMovement]:
    """Return movements, most recent first."""
    query = db.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    return query.order_by(StockMovement.created_at.desc()).all()


def stock_from_ledger(db: Session, product_id: UUID) -> int:
    """Fold the movement log into a stock count, ignoring the cached value."""
    signed = case(
        (StockMovement.movement_type == MovementType.INCREASE, StockMovement.quantity),
        else_=-StockMovement.quantity,
    )
    total = (
        db.query(func.coalesce(func.sum(signed), 0))
        .filter(StockMovement.product_id == product_id)
        .scalar()
    )
    return int(total or 0)

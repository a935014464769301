"""Stripe Checkout: cart pricing, session creation and payment confirmation."""

from __future__ import annotations

import asyncio
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import stripe
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import PricingConfig, StorefrontSettings, get_settings
from storefront.db.models import Order, OrderItem, OrderStatus, PaymentStatus, Product
from storefront.db.session import get_db
from storefront.domain.errors import NotFoundError, OutOfStockError, PaymentRequiredError
from storefront.logging_config import get_logger
from storefront.services.loyalty import LoyaltyService
from storefront.services.orders import apply_status
from storefront.services.stripe_service import handle_stripe_error

logger = get_logger(__name__)


@dataclass
class CartLine:
    product_id: UUID
    quantity: int


@dataclass
class Totals:
    """Order amounts in the smallest currency unit."""

    subtotal_cents: int
    tax_cents: int
    shipping_cents: int

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents + self.tax_cents + self.shipping_cents


def calculate_totals(subtotal_cents: int, pricing: PricingConfig) -> Totals:
    """Apply tax and the free-shipping threshold to a subtotal."""
    tax_cents = int(round(subtotal_cents * pricing.tax_rate))
    if subtotal_cents >= pricing.free_shipping_threshold_cents:
        shipping_cents = 0
    else:
        shipping_cents = pricing.flat_shipping_cents
    return Totals(subtotal_cents=subtotal_cents, tax_cents=tax_cents, shipping_cents=shipping_cents)


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


class CheckoutService:
    """Create Stripe Checkout sessions and confirm their payment."""

    def __init__(self, session: AsyncSession, settings: StorefrontSettings):
        self.session = session
        self.settings = settings

    async def _load_products(self, lines: Sequence[CartLine]) -> Dict[UUID, Product]:
        """Load and check every product in the cart.

        Raises:
            NotFoundError: Unknown or unlisted product
            OutOfStockError: Requested quantity exceeds stock
        """
        ids = {line.product_id for line in lines}
        result = await self.session.execute(select(Product).where(Product.id.in_(ids)))
        products = {product.id: product for product in result.scalars().all()}

        requested: Dict[UUID, int] = {}
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None or not product.is_active:
                raise NotFoundError("Product", product_id)
            if product.stock < quantity:
                raise OutOfStockError(
                    f"Only {product.stock} of '{product.name}' in stock",
                    details={"product_id": str(product_id), "available": product.stock},
                )
        return products

    def _stripe_line_items(self, order: Order) -> List[Dict[str, Any]]:
        currency = order.currency
        line_items: List[Dict[str, Any]] = [
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": item.name},
                    "unit_amount": item.unit_price_cents,
                },
                "quantity": item.quantity,
            }
            for item in order.items
        ]
        for label, amount in (("Sales tax", order.tax_cents), ("Shipping", order.shipping_cents)):
            if amount > 0:
                line_items.append({
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": label},
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                })
        return line_items

    async def create_session(
        self,
        lines: Sequence[CartLine],
        email: str,
        shipping_address: Optional[Dict[str, Any]] = None,
        user_id: Optional[UUID] = None,
    ) -> tuple[Order, Any]:
        """Create a pending order and its Stripe Checkout session.

        Returns:
            Tuple of (order, Stripe session)
        """
        products = await self._load_products(lines)
        pricing = self.settings.pricing

        items = []
        for line in lines:
            product = products[line.product_id]
            items.append(OrderItem(
                product_id=product.id,
                name=product.name,
                sku=product.sku,
                unit_price_cents=product.price_cents,
                quantity=line.quantity,
            ))
        totals = calculate_totals(sum(item.line_total_cents for item in items), pricing)

        order = Order(
            order_number=generate_order_number(),
            user_id=user_id,
            email=email.lower(),
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            subtotal_cents=totals.subtotal_cents,
            tax_cents=totals.tax_cents,
            shipping_cents=totals.shipping_cents,
            total_cents=totals.total_cents,
            currency=pricing.currency,
            shipping_address=shipping_address,
            items=items,
        )
        self.session.add(order)
        await self.session.flush()

        frontend = self.settings.frontend_url
        params = {
            "mode": "payment",
            "line_items": self._stripe_line_items(order),
            "customer_email": order.email,
            "client_reference_id": str(order.id),
            "metadata": {"order_id": str(order.id), "order_number": order.order_number},
            "success_url": f"{frontend}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{frontend}/cart",
        }
        try:
            checkout_session = await asyncio.to_thread(stripe.checkout.Session.create, **params)
        except stripe.error.StripeError as e:
            raise handle_stripe_error(e, "checkout session creation") from e

        order.stripe_session_id = checkout_session.id
        await self.session.flush()

        logger.info(
            "Checkout session created",
            extra={
                "order_id": str(order.id),
                "session_id": checkout_session.id,
                "total_cents": order.total_cents,
            },
        )
        return order, checkout_session

    async def confirm(self, session_id: str) -> tuple[Order, bool]:
        """Mark the session's order paid.

        Repeated confirmation of a paid order changes nothing.

        Returns:
            Tuple of (order, already_confirmed)

        Raises:
            NotFoundError: No order for the session
            PaymentRequiredError: Session not paid
        """
        try:
            checkout_session = await asyncio.to_thread(stripe.checkout.Session.retrieve, session_id)
        except stripe.error.StripeError as e:
            raise handle_stripe_error(e, "checkout session retrieval") from e

        result = await self.session.execute(
            select(Order).where(Order.stripe_session_id == session_id)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", checkout_session.get("client_reference_id"))

        if order.payment_status == PaymentStatus.COMPLETED:
            return order, True

        if checkout_session.payment_status != "paid":
            raise PaymentRequiredError(
                "Payment has not been completed for this checkout session",
                details={"payment_status": checkout_session.payment_status},
            )

        order.payment_status = PaymentStatus.COMPLETED
        order.stripe_payment_intent_id = checkout_session.get("payment_intent")

        if order.status == OrderStatus.CANCELLED:
            # Paid after cancellation: keep the cancellation, leave stock and points alone
            await self.session.flush()
            logger.warning(
                "Payment received for cancelled order, refund required",
                extra={
                    "order_id": str(order.id),
                    "payment_intent": order.stripe_payment_intent_id,
                },
            )
            return order, False

        apply_status(order, OrderStatus.PROCESSING)
        await self._decrement_stock(order)
        await self.session.flush()

        if order.user_id is not None:
            await LoyaltyService(self.session).award_points(
                order.user_id, order.total_cents, order_id=order.id
            )

        logger.info("Payment confirmed", extra={"order_id": str(order.id)})
        return order, False

    async def _decrement_stock(self, order: Order) -> None:
        product_ids = [item.product_id for item in order.items if item.product_id is not None]
        if not product_ids:
            return
        result = await self.session.execute(
            select(Product).where(Product.id.in_(product_ids)).with_for_update()
        )
        products = {product.id: product for product in result.scalars().all()}
        for item in order.items:
            product = products.get(item.product_id)
            if product is None:
                continue
            if product.stock < item.quantity:
                logger.warning(
                    "Oversold product",
                    extra={
                        "order_id": str(order.id),
                        "product_id": str(product.id),
                        "stock": product.stock,
                        "quantity": item.quantity,
                    },
                )
            product.stock = max(0, product.stock - item.quantity)


def get_checkout_service(
    db: AsyncSession = Depends(get_db),
    settings: StorefrontSettings = Depends(get_settings),
) -> CheckoutService:
    return CheckoutService(db, settings)

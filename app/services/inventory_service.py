"""Inventory Service for product and variant stock ledger operations."""
import logging
import uuid
from typing import Optional, List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, NotFoundError
from app.models.product import Product


logger = logging.getLogger(__name__)


class InventoryService:
    """
    Stock deduction and restoration.

    Runs inside the caller's session and never commits, so a deduction made
    while creating a replacement order rolls back together with that order.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_product(self, product_id: uuid.UUID) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _total_active_stock(variants: List[dict]) -> int:
        return sum(int(v.get("stock", 0)) for v in variants if v.get("is_active", True))

    def _apply_variant_delta(self, product: Product, variant_id: str, delta: int) -> List[dict]:
        # Rebuild the list so the JSON column registers the change
        variants = []
        for variant in product.variants or []:
            variant = dict(variant)
            if str(variant.get("id")) == str(variant_id):
                variant["stock"] = int(variant.get("stock", 0)) + delta
            variants.append(variant)
        product.variants = variants
        product.stock = self._total_active_stock(variants)
        return variants

    async def deduct_stock(
        self,
        product_id: uuid.UUID,
        quantity: int,
        variant_id: Optional[str] = None,
    ) -> None:
        """
        Deduct stock for a sale or replacement.

        Raises:
            NotFoundError: product or variant does not exist
            BadRequestError: not enough stock
        """
        if variant_id:
            product = await self._get_product(product_id)
            if not product:
                raise NotFoundError("Product not found")

            variant = product.find_variant(variant_id)
            if not variant:
                raise NotFoundError("Variant not found")

            available = int(variant.get("stock", 0))
            if available < quantity:
                raise BadRequestError(f"Insufficient stock for variant. Available: {available}")

            self._apply_variant_delta(product, variant_id, -quantity)
            await self.db.flush()
            logger.info(f"Deducted {quantity} of product {product_id} variant {variant_id}")
            return

        # Conditional decrement so two concurrent sales cannot oversell
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
        if result.rowcount == 0:
            product = await self._get_product(product_id)
            if not product:
                raise NotFoundError("Product not found")
            raise BadRequestError(f"Insufficient stock. Available: {product.stock}")

        logger.info(f"Deducted {quantity} of product {product_id}")

    async def restore_stock(
        self,
        product_id: uuid.UUID,
        quantity: int,
        variant_id: Optional[str] = None,
    ) -> None:
        """Put returned units back. Missing products or variants are skipped."""
        product = await self._get_product(product_id)
        if not product:
            logger.warning(f"Restock skipped: product {product_id} not found")
            return

        if variant_id:
            if not product.find_variant(variant_id):
                logger.warning(f"Restock skipped: variant {variant_id} of product {product_id} not found")
                return
            self._apply_variant_delta(product, variant_id, quantity)
        else:
            product.stock = product.stock + quantity

        await self.db.flush()
        logger.info(f"Restored {quantity} of product {product_id} (variant={variant_id})")

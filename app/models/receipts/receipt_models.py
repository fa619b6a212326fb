from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Numeric,
    Enum,
    Boolean,
    DateTime,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from decimal import Decimal
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin
from app.models.enums.discount_type import DiscountType
from app.models.enums.item_status import ReceiptItemStatus


class Receipt(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True)
    is_delivery = Column(Boolean, nullable=False, default=False)
    table_number = Column(Integer, nullable=True, index=True)
    customer_name = Column(String(150), nullable=True)
    phone_number = Column(String(30), nullable=True)
    location = Column(String(255), nullable=True)
    notes = Column(String(500), nullable=True)
    created_by_name = Column(String(150), nullable=True)

    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    completed_at = Column(DateTime(timezone=True), nullable=True, index=True)

    items = relationship(
        "ReceiptItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ReceiptItem.id",
    )
    applied_discounts = relationship(
        "ReceiptDiscount",
        back_populates="receipt",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ReceiptDiscount.id",
    )

    __table_args__ = (
        CheckConstraint("subtotal >= 0 AND discount_amount >= 0 AND total >= 0", name="ck_receipt_amounts_non_negative"),
        Index("ix_receipt_delivery_completed", "is_delivery", "completed_at"),
    )

    def __repr__(self):
        return f"<Receipt id={self.id} total={self.total} completed_at={self.completed_at}>"


class ReceiptItem(Base, TimestampMixin):
    __tablename__ = "receipt_items"

    id = Column(Integer, primary_key=True)
    receipt_id = Column(Integer, ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    item_name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False)
    status = Column(Enum(ReceiptItemStatus), nullable=False, default=ReceiptItemStatus.pending, index=True)
    notes = Column(String(255), nullable=True)

    receipt = relationship("Receipt", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_receipt_item_qty_positive"),
        CheckConstraint("unit_price >= 0", name="ck_receipt_item_price_non_negative"),
        CheckConstraint("subtotal >= 0", name="ck_receipt_item_subtotal_non_negative"),
    )

    def __repr__(self):
        return f"<ReceiptItem id={self.id} item_id={self.item_id} qty={self.quantity} status={self.status}>"


class ReceiptDiscount(Base, TimestampMixin):
    """Discount ledger entry. APPEND-ONLY. Never updated once written."""

    __tablename__ = "receipt_discounts"

    id = Column(Integer, primary_key=True)
    receipt_id = Column(Integer, ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False, index=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="RESTRICT"), nullable=False, index=True)
    discount_name = Column(String(100), nullable=False)
    discount_type = Column(Enum(DiscountType), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    amount_saved = Column(Numeric(12, 2), nullable=False)

    receipt = relationship("Receipt", back_populates="applied_discounts")

    __table_args__ = (
        UniqueConstraint("receipt_id", "discount_id", name="uq_receipt_discount_once"),
        CheckConstraint("amount_saved >= 0", name="ck_receipt_discount_saved_non_negative"),
    )

    def __repr__(self):
        return f"<ReceiptDiscount receipt_id={self.receipt_id} discount_id={self.discount_id} saved={self.amount_saved}>"

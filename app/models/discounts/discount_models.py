from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin
from app.models.enums.discount_type import DiscountType, ConditionType


class Discount(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    # stored upper-case; lookups compare upper(code). Unique among live rows only
    code = Column(String(50), nullable=False, index=True)
    discount_type = Column(Enum(DiscountType), nullable=False)
    amount = Column(Numeric(10, 2), nullable=True)
    percentage = Column(Numeric(5, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    max_receipts = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    note = Column(String(255), nullable=True)

    conditions = relationship(
        "DiscountCondition",
        back_populates="discount",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DiscountCondition.id",
    )
    items = relationship(
        "DiscountItem",
        back_populates="discount",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DiscountItem.id",
    )

    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_discount_usage_count_non_negative"),
        CheckConstraint("max_receipts IS NULL OR max_receipts >= 0", name="ck_discount_max_receipts_non_negative"),
        CheckConstraint("max_receipts IS NULL OR usage_count <= max_receipts", name="ck_discount_usage_limit"),
        CheckConstraint("end_date >= start_date", name="ck_discount_date_range"),
        CheckConstraint("amount IS NULL OR amount >= 0", name="ck_discount_amount_non_negative"),
        CheckConstraint("percentage IS NULL OR (percentage >= 0 AND percentage <= 100)", name="ck_discount_percentage_range"),
        Index(
            "uq_discount_code_live",
            "code",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        Index("ix_discount_active", "is_active"),
        Index("ix_discount_date_range", "start_date", "end_date"),
    )

    def __repr__(self):
        return f"<Discount id={self.id} code={self.code} type={self.discount_type}>"


class DiscountCondition(Base, TimestampMixin):
    __tablename__ = "discount_conditions"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    condition_type = Column(Enum(ConditionType), nullable=False)
    # min_amount: decimal string, day_of_week: JSON list such as "[5, 6]"
    value = Column(String(255), nullable=False)

    discount = relationship("Discount", back_populates="conditions")

    __table_args__ = (
        UniqueConstraint("discount_id", "condition_type", name="uq_discount_condition_type"),
    )

    def __repr__(self):
        return f"<DiscountCondition discount_id={self.discount_id} type={self.condition_type} value={self.value}>"


class DiscountItem(Base, TimestampMixin):
    __tablename__ = "discount_items"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    item_name = Column(String(150), nullable=True)
    min_quantity = Column(Integer, nullable=False, default=1)

    discount = relationship("Discount", back_populates="items")

    __table_args__ = (
        CheckConstraint("min_quantity > 0", name="ck_discount_item_min_qty_positive"),
        UniqueConstraint("discount_id", "item_id", name="uq_discount_item"),
    )

    def __repr__(self):
        return f"<DiscountItem discount_id={self.discount_id} item_id={self.item_id} min_qty={self.min_quantity}>"

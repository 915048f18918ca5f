from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from catalog_api.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    product_no: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    cn_name: Mapped[str | None] = mapped_column(String(255))
    product_spec: Mapped[str | None] = mapped_column(String(255))
    price: Mapped[str | None] = mapped_column(String(255))
    type_id: Mapped[int] = mapped_column(
        "type", ForeignKey("product_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    details: Mapped[Any | None] = mapped_column(JSON(none_as_null=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .db import Base

# Columns that feed the embedded text; changing any of them makes the vector stale
EMBEDDED_FIELDS = ("name", "description", "category")


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)

    products = relationship("Product", back_populates="campaign", passive_deletes=True)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    category = Column(String, nullable=True, index=True)
    google_drive_link = Column(Text, nullable=True)  # external mockup folder
    image_url = Column(Text, nullable=True)
    on_sale = Column(Boolean, nullable=False, default=False)
    campaign_id = Column(
        Integer, ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True, index=True
    )

    campaign = relationship("Campaign", back_populates="products")


class VectorOutbox(Base):
    """Pending similarity-index changes, drained by scripts/sync_vectors.py."""
    __tablename__ = "vector_outbox"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False, index=True)
    op = Column(String(10), nullable=False)  # "upsert" | "delete"
    queued_at = Column(DateTime(timezone=True), nullable=False,
                       default=lambda: datetime.now(timezone.utc))

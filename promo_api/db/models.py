"""SQLAlchemy models for users, products, notifications and queued actions."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    JSON,
    UniqueConstraint,
    func,
)

from .session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    password_hash = Column(Text, nullable=True)
    username = Column(String(128), nullable=True)
    name = Column(String(255), nullable=True)
    language = Column(String(8), default="en", nullable=False)
    telegram_id = Column(String(64), index=True, nullable=True)
    enabled = Column(Boolean, default=False, nullable=False)
    origin = Column(String(16), nullable=False)
    is_linking = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    nick = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    monitor_preorders = Column(Boolean, default=False, nullable=False)
    monitor_coupons = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True)
    offer_id = Column(String(255), nullable=True)
    title = Column(Text, nullable=False)
    full_price = Column(Float, nullable=False, default=0)
    price = Column(Float, nullable=False, default=0)
    old_price = Column(Float, nullable=True)
    lowest_price = Column(Float, nullable=True)
    in_stock = Column(Boolean, default=True, nullable=False)
    url = Column(Text, nullable=False)
    image = Column(Text, nullable=True)
    preorder = Column(Boolean, default=False, nullable=False)
    category = Column(String(128), nullable=True)
    format = Column(String(128), nullable=True)
    genre = Column(String(128), nullable=True)
    publisher = Column(String(128), nullable=True)
    store = Column(String(64), default="Amazon", nullable=False)
    contributors = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class ProductStats(Base):
    __tablename__ = "product_stats"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    price = Column(Float, nullable=False)
    old_price = Column(Float, nullable=True)
    percentage_change = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ProductUser(Base):
    __tablename__ = "product_users"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_product_users_user_product"),)

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    desired_price = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(16), default="UNREAD", nullable=False)
    # "metadata" e reservado pelo declarative_base
    meta = Column("metadata", JSON, nullable=True)
    sent_via = Column(String(16), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)


class Action(Base):
    __tablename__ = "actions"

    id = Column(String(64), primary_key=True)
    type = Column(String(32), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    value = Column(Text, nullable=False)
    origin = Column(String(16), nullable=True)
    is_processed = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class LinkToken(Base):
    __tablename__ = "link_tokens"

    id = Column(String(36), primary_key=True)
    telegram_user_id = Column(String(64), nullable=False)
    token = Column(String(6), index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

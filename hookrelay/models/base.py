"""
Base model classes for HookRelay.

Provides SQLAlchemy declarative base and shared column types.
"""
from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


# BIGSERIAL on PostgreSQL; SQLite only autoincrements INTEGER primary keys
BigIntegerId = BigInteger().with_variant(Integer(), "sqlite")

# Opaque JSON documents, stored as JSONB where available; None is SQL NULL
JsonDocument = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass

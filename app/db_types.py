"""Database-agnostic type definitions for SQLAlchemy models.

Models run on PostgreSQL in production and on SQLite in the test suite,
so every column type used by a model must render on both dialects.
"""
from sqlalchemy import JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON everywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Native UUID on PostgreSQL, CHAR(32) on SQLite
UUIDType = Uuid

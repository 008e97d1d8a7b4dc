"""Persistence layer - database adapters and connection configuration."""

from tablerest.persistence.adapter import DatabaseAdapter, quote_identifier
from tablerest.persistence.config import DatabaseConfig, create_adapter

__all__ = ["DatabaseAdapter", "DatabaseConfig", "create_adapter", "quote_identifier"]

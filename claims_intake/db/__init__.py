"""Relational store: schema, explicitly constructed store and row queries."""

from .schema import metadata
from .store import ClaimStore, create_store

__all__ = ["ClaimStore", "create_store", "metadata"]

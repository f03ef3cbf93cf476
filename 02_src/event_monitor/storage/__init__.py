"""Storage module."""

from .storage import IPersistenceGateway, IStorage, Storage

__all__ = ["IPersistenceGateway", "IStorage", "Storage"]

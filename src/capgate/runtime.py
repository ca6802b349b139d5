"""Markers imported by analyzed projects and by generated bridge code.

capgate never imports the analyzed project; it recognizes these names
statically. At runtime they only attach metadata, so a dependency
injection layer can read it back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

T = TypeVar("T", bound=type)

# Priority of generated no-op fallbacks. Any real provider outranks it.
NOOP_PRIORITY = -1000

PROVIDER_ATTRIBUTE = "__capgate_provider__"
ENTITY_ATTRIBUTE = "__capgate_entity__"


@dataclass(frozen=True)
class ProviderInfo:
    capability: str
    contract: type
    priority: int = 0


def provider(*, capability: str, contract: type, priority: int = 0) -> Callable[[T], T]:
    """Declare the decorated class as a provider of *capability*.

    >>> @provider(capability="bridge.inventory.stock-service", contract=StockServiceInterface)
    ... class StockServiceAdapter(StockServiceInterface):
    ...     ...
    """

    def decorate(cls: T) -> T:
        setattr(cls, PROVIDER_ATTRIBUTE, ProviderInfo(capability, contract, priority))
        return cls

    return decorate


def provider_info(cls: type) -> Optional[ProviderInfo]:
    return getattr(cls, PROVIDER_ATTRIBUTE, None)


def entity(cls: T) -> T:
    """Mark a class as a persistence entity without inheriting BaseEntity."""
    setattr(cls, ENTITY_ATTRIBUTE, True)
    return cls


class EntityInterface(ABC):
    """Lifecycle surface every entity exposes."""

    @abstractmethod
    def get_id(self) -> str: ...

    @abstractmethod
    def get_created_at(self) -> Optional[datetime]: ...

    @abstractmethod
    def get_updated_at(self) -> Optional[datetime]: ...

    @abstractmethod
    def get_deleted_at(self) -> Optional[datetime]: ...

    @abstractmethod
    def get_archived_at(self) -> Optional[datetime]: ...


class EntityMixin:
    """Lifecycle state for entities that cannot inherit :class:`BaseEntity`."""

    id: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    def get_id(self) -> str:
        return self.id

    def get_created_at(self) -> Optional[datetime]:
        return self.created_at

    def get_updated_at(self) -> Optional[datetime]:
        return self.updated_at

    def get_deleted_at(self) -> Optional[datetime]:
        return self.deleted_at

    def get_archived_at(self) -> Optional[datetime]:
        return self.archived_at

    def archive(self, at: Optional[datetime] = None) -> None:
        self.archived_at = at or datetime.now(timezone.utc)

    def unarchive(self) -> None:
        self.archived_at = None

    def mark_deleted(self, at: Optional[datetime] = None) -> None:
        self.deleted_at = at or datetime.now(timezone.utc)

    def restore_deleted(self) -> None:
        self.deleted_at = None

    def touch(self) -> None:
        now = datetime.now(timezone.utc)
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now


class BaseEntity(EntityMixin, EntityInterface):
    """Required base class of every entity."""

    __abstract__ = True

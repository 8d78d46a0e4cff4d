"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports)
- Base classes para Domain Events
- Implementações em memória (testes e desenvolvimento)
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    ForbiddenError,
    ConflictError,
    StoreUnavailableError,
    BusinessRuleViolationError,
)
from .events import DomainEvent, EventRegistry
from .interfaces import UnitOfWork, EventPublisher, EventStore

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "ForbiddenError",
    "ConflictError",
    "StoreUnavailableError",
    "BusinessRuleViolationError",
    "DomainEvent",
    "EventRegistry",
    "UnitOfWork",
    "EventPublisher",
    "EventStore",
]

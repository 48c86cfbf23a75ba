"""
Blocos reutilizados pelos use cases de exames.

- exceptions: erros tipados do domínio
- events: base dos eventos de domínio
- interfaces: ports de Unit of Work e publicação de eventos
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    RepositoryError,
)
from .events import DomainEvent
from .interfaces import EventPublisher, UnitOfWork

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "RepositoryError",
    "DomainEvent",
    "EventPublisher",
    "UnitOfWork",
]

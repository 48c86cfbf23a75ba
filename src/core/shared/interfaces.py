"""
Ports de infraestrutura usados pelos use cases.

- EventPublisher: destino dos eventos depois do commit
- UnitOfWork: fronteira transacional de uma operação de escrita

O port de persistência dos exames fica em core/exames/ports.py.
As implementações concretas ficam em adapters/django_app.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .events import DomainEvent


class EventPublisher(ABC):
    """Entrega eventos de domínio (log, Celery ou memória)."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        raise NotImplementedError

    def publish_batch(self, events: List[DomainEvent]) -> None:
        """Entrega os eventos na ordem em que foram gerados."""
        for event in events:
            self.publish(event)


class UnitOfWork(ABC):
    """
    Transação de uma operação de escrita do cadastro.

    A escrita do exame e as escritas em cascata nos personalizados
    (preço, desativação, exclusão) são confirmadas ou desfeitas
    juntas. Eventos enfileirados só saem depois do commit.

        with uow:
            repo.update(base)
            repo.update_filhos(base.id, {"preco": base.preco})
            uow.publish_event(PrecoPropagadoEvent(...))

    Saída normal do bloco confirma; exceção desfaz e é repassada.
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        self._events: List[DomainEvent] = []
        self.event_publisher = event_publisher

    def __enter__(self) -> "UnitOfWork":
        self._begin_transaction()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    @abstractmethod
    def _begin_transaction(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """Confirma a transação e então publica os eventos da fila."""
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        """Desfaz a transação; eventos da fila são descartados."""
        raise NotImplementedError

    def publish_event(self, event: DomainEvent) -> None:
        """Agenda o evento para depois do commit."""
        self._events.append(event)

    def collect_events(self) -> List[DomainEvent]:
        return list(self._events)

    def clear_events(self) -> None:
        self._events.clear()

    def _publish_events(self) -> None:
        events = self.collect_events()
        self.clear_events()
        if self.event_publisher is not None and events:
            self.event_publisher.publish_batch(events)


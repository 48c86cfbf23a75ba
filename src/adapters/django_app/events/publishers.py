"""
Publishers de eventos do cadastro.

O UnitOfWork entrega aqui os eventos já confirmados no banco.

- LoggingEventPublisher: linha de log por evento + handlers locais (modo "sync")
- CeleryEventPublisher: envia para a tarefa dispatch_domain_event (modo "celery")
- InMemoryEventPublisher: acumula eventos para asserções nos testes

get_event_publisher() escolhe conforme settings.EVENT_PUBLISHER_MODE.
"""

from typing import Callable, Dict, List
import json
import logging

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class _LocalHandlersMixin:
    """Callbacks síncronos por event_type; erro em um não afeta os demais."""

    def _init_handlers(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def _dispatch_to_handlers(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(event.event_type, ()):
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Handler local {getattr(handler, '__name__', handler)} "
                    f"falhou para {event.event_type}: {e}"
                )


class LoggingEventPublisher(_LocalHandlersMixin, EventPublisher):
    """Modo síncrono: sem broker, o evento vira uma linha de log estruturada."""

    def __init__(self, log_level: int = logging.INFO):
        self._log_level = log_level
        self._init_handlers()

    def publish(self, event: DomainEvent) -> None:
        payload = json.dumps(event.to_dict()["data"], default=str, ensure_ascii=False)
        logger.log(
            self._log_level,
            f"[EVENT] {event.event_type} exame={event.aggregate_id} {payload}",
        )
        self._dispatch_to_handlers(event)


class CeleryEventPublisher(EventPublisher):
    """
    Modo assíncrono: cada evento vira uma mensagem para os workers.

    Broker indisponível não derruba a requisição (o commit já
    aconteceu); a falha vai para o log com traceback.
    """

    def __init__(self, also_log: bool = True):
        self._also_log = also_log

    def publish(self, event: DomainEvent) -> None:
        if self._also_log:
            logger.info(f"[EVENT->CELERY] {event.event_type} exame={event.aggregate_id}")

        # Import tardio: handlers dependem do app Celery configurado
        from src.adapters.django_app.events.handlers import dispatch_domain_event

        try:
            dispatch_domain_event.delay(event.event_type, event.to_dict())
        except Exception as e:
            logger.error(
                f"Evento {event.event_type} não enviado ao broker: {e}", exc_info=True
            )


class InMemoryEventPublisher(_LocalHandlersMixin, EventPublisher):
    """
    Publisher dos testes.

    Example:
        publisher = InMemoryEventPublisher()
        ...
        assert publisher.get_events_by_type("ExameExcluidoEvent")
    """

    def __init__(self):
        self._eventos: List[DomainEvent] = []
        self._init_handlers()

    def publish(self, event: DomainEvent) -> None:
        self._eventos.append(event)
        self._dispatch_to_handlers(event)

    @property
    def published_events(self) -> List[DomainEvent]:
        return list(self._eventos)

    def clear(self) -> None:
        self._eventos.clear()

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        return [e for e in self._eventos if e.event_type == event_type]


def get_event_publisher(mode: str = "sync") -> EventPublisher:
    """'celery' (qualquer caixa) usa Celery; outro valor usa o publisher de log."""
    if str(mode or "").strip().lower() == "celery":
        return CeleryEventPublisher()
    return LoggingEventPublisher()

"""
Unit of Work do cadastro sobre transações do Django.

Uma operação de escrita (criar, atualizar com cascata, excluir com
cascata) roda inteira dentro de um `transaction.atomic`. Quando já
existe transação aberta (ex.: teste do pytest-django) o bloco vira
um savepoint, com o mesmo efeito de tudo-ou-nada.

Eventos enfileirados pelos use cases só são entregues ao publisher
depois que o banco confirmou.
"""

from typing import List, Optional
import logging

from django.db import DatabaseError, transaction

from src.core.shared.interfaces import EventPublisher, UnitOfWork
from src.core.shared.events import DomainEvent
from src.core.shared.exceptions import RepositoryError

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Transação atômica do Django + entrega de eventos pós-commit.

    Example:
        uow = DjangoUnitOfWork(event_publisher=LoggingEventPublisher())
        with uow:
            repo.update(base)
            total = repo.update_filhos(base.id, {"ativo": False})
            uow.publish_event(ExameDesativadoEvent(...))

    Falha de entrega de um evento é apenas logada: a transação já
    está confirmada nesse ponto.
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        using: Optional[str] = None,
    ):
        super().__init__(event_publisher=event_publisher)
        self._using = using
        self._atomic = None
        self._finalizada = None  # None | "commit" | "rollback"

    def _begin_transaction(self) -> None:
        self.clear_events()
        self._finalizada = None
        self._atomic = transaction.atomic(using=self._using)
        self._atomic.__enter__()
        logger.debug(f"Transação aberta (banco={self._using or 'default'})")

    def _fechar_atomic(self, desfazer: bool) -> None:
        atomic, self._atomic = self._atomic, None
        if atomic is None:
            return
        if desfazer:
            transaction.set_rollback(True, using=self._using)
        atomic.__exit__(None, None, None)

    def commit(self) -> None:
        """
        Raises:
            RepositoryError: Se o banco rejeitar o commit
        """
        if self._finalizada:
            logger.warning(f"Commit ignorado: transação já finalizada ({self._finalizada})")
            return

        try:
            self._fechar_atomic(desfazer=False)
        except DatabaseError as exc:
            self._finalizada = "rollback"
            self.clear_events()
            logger.exception(f"Commit recusado pelo banco: {exc}")
            raise RepositoryError() from exc

        self._finalizada = "commit"
        logger.debug("Transação confirmada")
        self._publish_events()

    def rollback(self) -> None:
        if self._finalizada:
            return
        try:
            self._fechar_atomic(desfazer=True)
            logger.debug("Transação desfeita")
        finally:
            self._finalizada = "rollback"
            self.clear_events()

    def _publish_events(self) -> None:
        pendentes = self.collect_events()
        self.clear_events()

        for event in pendentes:
            logger.info(f"Evento {event.event_type} do exame {event.aggregate_id}")
            if self.event_publisher is None:
                continue
            try:
                self.event_publisher.publish(event)
            except Exception as e:
                logger.error(f"Entrega do evento {event.event_type} falhou: {e}")

    @property
    def is_committed(self) -> bool:
        return self._finalizada == "commit"

    @property
    def is_rolled_back(self) -> bool:
        return self._finalizada == "rollback"


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work para os testes do núcleo.

    Com um repositório que saiba tirar `snapshot()` e fazer
    `restore()` (InMemoryExameRepository), o rollback devolve o
    repositório exatamente ao estado do início do bloco.

    Example:
        repo = InMemoryExameRepository()
        uow = InMemoryUnitOfWork(repository=repo)
        CriarExameService(repo, uow).execute(dto)
        assert uow.committed
        assert uow.published_events[0].event_type == "ExameCriadoEvent"
    """

    def __init__(self, repository=None, event_publisher: Optional[EventPublisher] = None):
        super().__init__(event_publisher=event_publisher)
        self._repository = repository
        self._estado_inicial = None
        self._historico: List[DomainEvent] = []
        self.committed = False
        self.rolled_back = False

    def _begin_transaction(self) -> None:
        self.clear_events()
        self.committed = self.rolled_back = False
        if self._repository is not None:
            self._estado_inicial = self._repository.snapshot()

    def commit(self) -> None:
        self.committed = True
        self._estado_inicial = None
        self._historico.extend(self.collect_events())
        self._publish_events()

    def rollback(self) -> None:
        self.rolled_back = True
        if self._estado_inicial is not None:
            self._repository.restore(self._estado_inicial)
            self._estado_inicial = None
        self.clear_events()

    @property
    def published_events(self) -> List[DomainEvent]:
        """Eventos de todos os commits feitos por esta instância."""
        return self._historico

    def reset(self) -> None:
        self.committed = self.rolled_back = False
        self._historico.clear()
        self.clear_events()

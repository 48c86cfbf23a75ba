"""
Base dos eventos de domínio.

Use cases registram no UnitOfWork o que aconteceu com um exame
(criado, preço propagado, desativado, excluído). Depois do commit o
publisher configurado entrega os eventos: log no modo síncrono ou
tarefa Celery no modo assíncrono, onde o payload de to_dict() vira
o argumento JSON da tarefa.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict
import uuid


_CAMPOS_ENVELOPE = ("event_id", "aggregate_id", "occurred_at", "version")


def _novo_id() -> str:
    return str(uuid.uuid4())


def _agora_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent(ABC):
    """
    Fato já persistido, nomeado no passado (ExameCriado, PrecoPropagado).

    Envelope comum:
        event_id: uuid4 gerado na criação
        aggregate_id: id (em texto) do exame que originou o evento
        occurred_at: instante UTC
        version: versão do payload

    Subclasses declaram seus campos com default e informam o
    aggregate_type.
    """

    event_id: str = field(default_factory=_novo_id)
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=_agora_utc)
    version: int = 1

    def __post_init__(self):
        if not self.aggregate_id:
            raise ValueError("aggregate_id é obrigatório")

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        ...

    @property
    def event_type(self) -> str:
        """Nome da classe; chave de roteamento dos handlers Celery."""
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Envelope + payload, serializável em JSON."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        # Payload = campos declarados pela subclasse
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _CAMPOS_ENVELOPE
        }

    def __repr__(self) -> str:
        return (
            f"<{self.event_type} {self.aggregate_type}#{self.aggregate_id} "
            f"id={self.event_id[:8]} em {self.occurred_at:%Y-%m-%dT%H:%M:%S}>"
        )

"""
Domain Events do Domínio de Exames.

Eventos:
- ExameCriadoEvent: Novo exame cadastrado
- ExameAtualizadoEvent: Exame teve seus dados alterados
- PrecoPropagadoEvent: Novo preço do exame base copiado para os filhos
- ExameDesativadoEvent: Exame base desativado (filhos desativados em cascata)
- ExameExcluidoEvent: Exame excluído logicamente (com seus filhos, se base)

Uso:
    with uow:
        exame_id = repo.add(exame)
        uow.publish_event(ExameCriadoEvent(aggregate_id=str(exame_id), ...))
    # Publicado após commit
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.core.shared.events import DomainEvent


@dataclass
class ExameCriadoEvent(DomainEvent):
    """
    Evento: Exame foi criado.

    Attributes:
        codigo: Código do exame
        nome: Nome do exame
        tipo: Valor persistido do tipo ("Exame" ou "ExamePersonalizado")
        preco: Preço (string decimal)
        exame_base_id: Exame pai, quando personalizado
    """

    codigo: str = ""
    nome: str = ""
    tipo: str = ""
    preco: str = ""
    exame_base_id: Optional[int] = None

    @property
    def aggregate_type(self) -> str:
        return "Exame"

    def _get_event_data(self) -> Dict[str, Any]:
        data = {
            "codigo": self.codigo,
            "nome": self.nome,
            "tipo": self.tipo,
            "preco": self.preco,
        }
        if self.exame_base_id is not None:
            data["exame_base_id"] = self.exame_base_id
        return data


@dataclass
class ExameAtualizadoEvent(DomainEvent):
    """Evento: Exame foi atualizado."""

    codigo: str = ""
    tipo: str = ""
    preco: str = ""
    ativo: bool = True

    @property
    def aggregate_type(self) -> str:
        return "Exame"


@dataclass
class PrecoPropagadoEvent(DomainEvent):
    """
    Evento: Preço do exame base foi propagado aos personalizados.

    Attributes:
        preco_anterior: Preço antes da alteração
        preco_novo: Preço aplicado aos filhos
        filhos_atualizados: Quantidade de exames personalizados alterados
    """

    preco_anterior: str = ""
    preco_novo: str = ""
    filhos_atualizados: int = 0

    @property
    def aggregate_type(self) -> str:
        return "Exame"


@dataclass
class ExameDesativadoEvent(DomainEvent):
    """Evento: Exame base desativado, com desativação em cascata dos filhos."""

    codigo: str = ""
    filhos_desativados: int = 0

    @property
    def aggregate_type(self) -> str:
        return "Exame"


@dataclass
class ExameExcluidoEvent(DomainEvent):
    """Evento: Exame excluído logicamente."""

    codigo: str = ""
    tipo: str = ""
    filhos_excluidos: int = 0

    @property
    def aggregate_type(self) -> str:
        return "Exame"

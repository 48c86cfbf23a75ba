"""
Data Transfer Objects (DTOs) do Domínio de Exames.

DTOs são estruturas simples para transportar dados entre camadas,
evitando vazamento das entidades para a camada HTTP.

Tipos de DTOs:
- Input DTOs: Recebem os dados brutos da requisição (JSON ou formulário)
- Output DTOs: Formatam dados para resposta da API
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from .entities import ExameEntity


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class CriarExameInputDTO:
    """
    DTO de entrada para criar exame.

    Os valores chegam como vieram do cliente (strings de formulário,
    números do JSON); a normalização acontece no use case.

    Attributes:
        codigo: Código do exame
        nome: Nome do exame
        preco: Preço informado (ignorado para PERSONALIZADO)
        tipo: "BASE"/"PERSONALIZADO" ou "Exame"/"ExamePersonalizado"
        descricao: Descrição opcional
        ativo: Se o exame nasce ativo
        exame_base_id: Exame pai (obrigatório para PERSONALIZADO)
    """

    codigo: str
    nome: str
    preco: Any = None
    tipo: str = "BASE"
    descricao: str = ""
    ativo: bool = True
    exame_base_id: Any = None

    def to_dict(self) -> dict:
        """Converte para dicionário."""
        return {
            "codigo": self.codigo,
            "nome": self.nome,
            "preco": self.preco,
            "tipo": self.tipo,
            "descricao": self.descricao,
            "ativo": self.ativo,
            "exame_base_id": self.exame_base_id,
        }


@dataclass(frozen=True)
class AtualizarExameInputDTO:
    """
    DTO de entrada para atualizar exame.

    O tipo não é alterável. Campos opcionais com valor None mantêm
    o valor armazenado.
    """

    exame_id: int
    codigo: str
    nome: str
    descricao: Optional[str] = None
    preco: Any = None
    ativo: Optional[bool] = None
    exame_base_id: Any = None

    def to_dict(self) -> dict:
        """Converte para dicionário."""
        return {
            "exame_id": self.exame_id,
            "codigo": self.codigo,
            "nome": self.nome,
            "descricao": self.descricao,
            "preco": self.preco,
            "ativo": self.ativo,
            "exame_base_id": self.exame_base_id,
        }


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class ExameOutputDTO:
    """
    DTO de saída completo com dados do exame.

    Preço é serializado como string ("75.00") para não perder precisão.
    """

    id: int
    codigo: str
    nome: str
    descricao: str
    preco: str
    tipo: str
    ativo: bool
    exame_base_id: Optional[int]
    criado_em: datetime
    atualizado_em: datetime

    @classmethod
    def from_entity(cls, entity: ExameEntity) -> "ExameOutputDTO":
        return cls(
            id=entity.id,
            codigo=entity.codigo,
            nome=entity.nome,
            descricao=entity.descricao or "",
            preco=str(entity.preco),
            tipo=entity.tipo.value,
            ativo=entity.ativo,
            exame_base_id=entity.exame_base_id,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    def to_dict(self) -> dict:
        """Converte para dicionário (serialização JSON)."""
        return {
            "id": self.id,
            "codigo": self.codigo,
            "nome": self.nome,
            "descricao": self.descricao,
            "preco": self.preco,
            "tipo": self.tipo,
            "ativo": self.ativo,
            "exame_base_id": self.exame_base_id,
            "criado_em": self.criado_em.isoformat(),
            "atualizado_em": self.atualizado_em.isoformat(),
        }


@dataclass
class ExameBaseItemDTO:
    """Item resumido para seleção de exame pai."""

    id: int
    codigo: str
    nome: str
    preco: str

    @classmethod
    def from_entity(cls, entity: ExameEntity) -> "ExameBaseItemDTO":
        return cls(
            id=entity.id,
            codigo=entity.codigo,
            nome=entity.nome,
            preco=str(entity.preco),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "codigo": self.codigo,
            "nome": self.nome,
            "preco": self.preco,
        }


@dataclass
class EstatisticasExamesDTO:
    """Contadores de exames não excluídos."""

    total: int = 0
    base: int = 0
    personalizado: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "base": self.base,
            "personalizado": self.personalizado,
        }

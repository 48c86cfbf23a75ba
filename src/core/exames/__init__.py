"""
Domínio de Exames - Cadastro com herança hierárquica de preço.

Este módulo contém toda a lógica de negócio do cadastro de exames:
- Entidades (ExameEntity, ExameTipo)
- Use Cases (Criar, Atualizar, Excluir, Listar, Obter, Contar, Reconciliar)
- Domain Events (ExameCriado, PrecoPropagado, ExameDesativado, ...)
- DTOs (Input/Output Data Transfer Objects)
- Ports (Interface do repositório)

Características do Domínio:
- Exame personalizado sempre herda o preço do seu exame base
- Alteração de preço do base propaga para os personalizados
- Desativação e exclusão do base em cascata para os personalizados
- Exclusão sempre lógica
"""

from .entities import ExameEntity, ExameTipo
from .events import (
    ExameCriadoEvent,
    ExameAtualizadoEvent,
    PrecoPropagadoEvent,
    ExameDesativadoEvent,
    ExameExcluidoEvent,
)
from .dtos import (
    CriarExameInputDTO,
    AtualizarExameInputDTO,
    ExameOutputDTO,
    ExameBaseItemDTO,
    EstatisticasExamesDTO,
)
from .ports import ExameRepository, InMemoryExameRepository
from .use_cases import (
    CriarExameService,
    AtualizarExameService,
    ExcluirExameService,
    ListarExamesService,
    ObterExameService,
    ListarExamesBaseService,
    ContarExamesService,
    ReconciliarPrecosService,
)

__all__ = [
    # Entities
    "ExameEntity",
    "ExameTipo",
    # Events
    "ExameCriadoEvent",
    "ExameAtualizadoEvent",
    "PrecoPropagadoEvent",
    "ExameDesativadoEvent",
    "ExameExcluidoEvent",
    # DTOs
    "CriarExameInputDTO",
    "AtualizarExameInputDTO",
    "ExameOutputDTO",
    "ExameBaseItemDTO",
    "EstatisticasExamesDTO",
    # Ports
    "ExameRepository",
    "InMemoryExameRepository",
    # Use Cases
    "CriarExameService",
    "AtualizarExameService",
    "ExcluirExameService",
    "ListarExamesService",
    "ObterExameService",
    "ListarExamesBaseService",
    "ContarExamesService",
    "ReconciliarPrecosService",
]

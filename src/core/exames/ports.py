"""
Ports (Interfaces) do Domínio de Exames.

Define o contrato que os Adapters de infraestrutura devem implementar
para persistência e consulta de exames.

Regras comuns a qualquer implementação:
- Toda leitura ignora registros excluídos logicamente (excluido_em preenchido)
- Nenhuma exclusão física: excluir = preencher excluido_em
- Atualizações em lote dos filhos atingem apenas filhos não excluídos

Example:
    # No Adapter (Django)
    class DjangoExameRepository:
        def get_by_id(self, exame_id: int) -> Optional[ExameEntity]:
            model = ExameModel.objects.filter(pk=exame_id, excluido_em__isnull=True).first()
            return ExameMapper.to_entity(model) if model else None
"""

import copy
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .entities import ExameEntity, ExameTipo


# Campos que podem ser alterados em lote nos exames personalizados
CAMPOS_CASCATA = frozenset({"preco", "ativo", "excluido_em", "atualizado_em"})


@runtime_checkable
class ExameRepository(Protocol):
    """
    Interface para persistência de Exames.

    Implementações:
    - DjangoExameRepository (PostgreSQL/SQLite via ORM)
    - InMemoryExameRepository (para testes)

    Methods:
        get_by_id: Busca exame não excluído por ID
        get_by_codigo / get_by_nome: Buscas para checagem de unicidade
        list_all: Lista exames não excluídos (mais recentes primeiro)
        list_bases_ativas: Exames base ativos ordenados por nome
        list_filhos: Personalizados não excluídos de um exame base
        add: Insere exame e retorna o ID gerado
        update: Persiste campos próprios de um exame existente
        update_filhos: Atualização em lote dos personalizados de um base
        soft_delete: Marca exame como excluído
        count / count_by_tipo: Contadores
    """

    def get_by_id(self, exame_id: int) -> Optional[ExameEntity]:
        """
        Busca exame por ID.

        Returns:
            Entidade encontrada ou None se não existir ou estiver excluída
        """
        ...

    def get_by_codigo(
        self, codigo: str, excluir_id: Optional[int] = None
    ) -> Optional[ExameEntity]:
        """
        Busca exame não excluído pelo código exato.

        Args:
            codigo: Código já normalizado
            excluir_id: ID a ignorar (o próprio exame, em atualizações)
        """
        ...

    def get_by_nome(
        self, nome: str, excluir_id: Optional[int] = None
    ) -> Optional[ExameEntity]:
        """Busca exame não excluído pelo nome exato."""
        ...

    def list_all(self, tipo: Optional[ExameTipo] = None) -> List[ExameEntity]:
        """Lista exames não excluídos, criado_em decrescente."""
        ...

    def list_bases_ativas(self) -> List[ExameEntity]:
        """Lista exames base ativos não excluídos, ordenados por nome."""
        ...

    def list_filhos(self, exame_base_id: int) -> List[ExameEntity]:
        """Lista personalizados não excluídos de um exame base."""
        ...

    def add(self, exame: ExameEntity) -> int:
        """
        Insere novo exame.

        Returns:
            ID atribuído pelo repositório

        Raises:
            RepositoryError: Se falha na persistência
        """
        ...

    def update(self, exame: ExameEntity) -> None:
        """Persiste campos próprios do exame (sem tocar nos filhos)."""
        ...

    def update_filhos(self, exame_base_id: int, campos: Dict[str, Any]) -> int:
        """
        Atualiza em lote os personalizados não excluídos de um exame base.

        Args:
            exame_base_id: ID do exame pai
            campos: Subconjunto de CAMPOS_CASCATA com os novos valores

        Returns:
            Quantidade de registros alterados
        """
        ...

    def soft_delete(self, exame_id: int, quando: datetime) -> None:
        """Preenche excluido_em do exame (sem filtro por excluido_em)."""
        ...

    def count(self) -> int:
        """Conta exames não excluídos."""
        ...

    def count_by_tipo(self) -> Dict[ExameTipo, int]:
        """Conta exames não excluídos agrupados por tipo."""
        ...


class InMemoryExameRepository:
    """
    Implementação em memória do ExameRepository.

    Útil para:
    - Testes unitários
    - Prototipagem

    Guarda cópias das entidades, como um banco faria, e atribui IDs
    sequenciais. `snapshot()`/`restore()` permitem ao
    InMemoryUnitOfWork simular rollback.

    Não usar em produção!
    """

    def __init__(self):
        self._exames: dict[int, ExameEntity] = {}
        self._proximo_id = 1

    # Leitura ---------------------------------------------------------------

    def _vivos(self) -> List[ExameEntity]:
        return [e for e in self._exames.values() if not e.esta_excluido]

    def get_by_id(self, exame_id: int) -> Optional[ExameEntity]:
        exame = self._exames.get(exame_id)
        if exame is None or exame.esta_excluido:
            return None
        return copy.deepcopy(exame)

    def get_by_codigo(
        self, codigo: str, excluir_id: Optional[int] = None
    ) -> Optional[ExameEntity]:
        for exame in self._vivos():
            if exame.codigo == codigo and exame.id != excluir_id:
                return copy.deepcopy(exame)
        return None

    def get_by_nome(
        self, nome: str, excluir_id: Optional[int] = None
    ) -> Optional[ExameEntity]:
        for exame in self._vivos():
            if exame.nome == nome and exame.id != excluir_id:
                return copy.deepcopy(exame)
        return None

    def list_all(self, tipo: Optional[ExameTipo] = None) -> List[ExameEntity]:
        exames = [e for e in self._vivos() if tipo is None or e.tipo == tipo]
        exames.sort(key=lambda e: (e.criado_em, e.id), reverse=True)
        return copy.deepcopy(exames)

    def list_bases_ativas(self) -> List[ExameEntity]:
        exames = [e for e in self._vivos() if e.e_base and e.ativo]
        exames.sort(key=lambda e: e.nome)
        return copy.deepcopy(exames)

    def list_filhos(self, exame_base_id: int) -> List[ExameEntity]:
        filhos = [e for e in self._vivos() if e.exame_base_id == exame_base_id]
        filhos.sort(key=lambda e: e.id)
        return copy.deepcopy(filhos)

    # Escrita ---------------------------------------------------------------

    def add(self, exame: ExameEntity) -> int:
        novo = copy.deepcopy(exame)
        novo.id = self._proximo_id
        self._proximo_id += 1
        self._exames[novo.id] = novo
        return novo.id

    def update(self, exame: ExameEntity) -> None:
        if exame.id not in self._exames:
            return
        self._exames[exame.id] = copy.deepcopy(exame)

    def update_filhos(self, exame_base_id: int, campos: Dict[str, Any]) -> int:
        invalidos = set(campos) - CAMPOS_CASCATA
        if invalidos:
            raise ValueError(f"Campos não permitidos em cascata: {sorted(invalidos)}")

        total = 0
        for exame in self._vivos():
            if exame.exame_base_id != exame_base_id:
                continue
            for nome_campo, valor in campos.items():
                setattr(exame, nome_campo, valor)
            total += 1
        return total

    def soft_delete(self, exame_id: int, quando: datetime) -> None:
        exame = self._exames.get(exame_id)
        if exame is not None:
            exame.excluido_em = quando

    # Contadores ------------------------------------------------------------

    def count(self) -> int:
        return len(self._vivos())

    def count_by_tipo(self) -> Dict[ExameTipo, int]:
        contagem = {tipo: 0 for tipo in ExameTipo}
        for exame in self._vivos():
            contagem[exame.tipo] += 1
        return contagem

    # Utilitários de teste --------------------------------------------------

    def get_raw(self, exame_id: int) -> Optional[ExameEntity]:
        """Retorna o registro mesmo se excluído (inspeção em testes)."""
        exame = self._exames.get(exame_id)
        return copy.deepcopy(exame) if exame else None

    def snapshot(self) -> tuple:
        return copy.deepcopy(self._exames), self._proximo_id

    def restore(self, estado: tuple) -> None:
        self._exames, self._proximo_id = copy.deepcopy(estado[0]), estado[1]

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        self._exames.clear()
        self._proximo_id = 1

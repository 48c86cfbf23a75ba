"""
Repository Base - Implementação base de repositórios com Django ORM.

Fornece funcionalidades comuns para repositórios com exclusão lógica:
- Queryset base que ignora registros excluídos
- Busca por ID, contagem, listagem com filtros
- Atualização em lote via QuerySet.update()
- Exclusão lógica (preenche o campo de exclusão)
- Tradução de erros do banco para RepositoryError

Princípios:
- Repositórios são stateless
- Não contêm lógica de negócio
- Apenas persistência e queries
"""

from abc import ABC, abstractmethod
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
import logging

from django.db import DatabaseError, models
from django.db.models import QuerySet

from src.core.shared.exceptions import RepositoryError

logger = logging.getLogger(__name__)

# Type variables
T = TypeVar("T")  # Entity type
M = TypeVar("M", bound=models.Model)  # Model type


def traduzir_erros_banco(func):
    """
    Decorator: converte DatabaseError do Django em RepositoryError.

    A causa original é registrada em log e mantida em __cause__.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception(f"Erro de banco em {func.__qualname__}: {exc}")
            raise RepositoryError() from exc

    return wrapper


class SoftDeleteRepository(ABC, Generic[T, M]):
    """
    Classe base abstrata para repositórios Django com exclusão lógica.

    Todas as leituras partem de `_get_base_queryset()`, que já exclui
    registros com `soft_delete_field` preenchido.

    Type Parameters:
        T: Tipo da entidade de domínio
        M: Tipo do Model Django

    Example:
        class DjangoExameRepository(SoftDeleteRepository[ExameEntity, ExameModel]):
            model_class = ExameModel

            def to_entity(self, model):
                return ExameMapper.to_entity(model)

            def to_model(self, entity):
                return ExameMapper.to_model(entity)
    """

    # Classe do model Django (definir na subclasse)
    model_class: Type[M]

    # Campo que marca exclusão lógica
    soft_delete_field: str = "excluido_em"

    # Campo padrão de ordenação
    default_order_field: str = "-criado_em"

    @abstractmethod
    def to_entity(self, model: M) -> T:
        """Converte Model Django para Entity de domínio."""
        raise NotImplementedError

    @abstractmethod
    def to_model(self, entity: T) -> M:
        """Converte Entity de domínio para Model Django (não salvo)."""
        raise NotImplementedError

    def _get_base_queryset(self) -> QuerySet[M]:
        """Queryset de registros não excluídos."""
        return self.model_class.objects.filter(
            **{f"{self.soft_delete_field}__isnull": True}
        )

    @traduzir_erros_banco
    def get_by_id(self, entity_id: int) -> Optional[T]:
        """
        Busca entidade não excluída por ID.

        Returns:
            Entidade encontrada ou None
        """
        try:
            model = self._get_base_queryset().get(id=entity_id)
            return self.to_entity(model)
        except self.model_class.DoesNotExist:
            return None

    @traduzir_erros_banco
    def count(self) -> int:
        return self._get_base_queryset().count()

    def _list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[T]:
        qs = self._get_base_queryset()
        if filters:
            qs = self._apply_filters(qs, filters)
        qs = qs.order_by(order_by or self.default_order_field, "-id")
        return [self.to_entity(m) for m in qs]

    def _apply_filters(self, qs: QuerySet[M], filters: Dict[str, Any]) -> QuerySet[M]:
        """
        Aplica filtros ao queryset.

        Valores None são ignorados; listas viram filtro `__in`.
        """
        for key, value in filters.items():
            if value is None:
                continue

            if isinstance(value, list):
                qs = qs.filter(**{f"{key}__in": value})
            else:
                qs = qs.filter(**{key: value})

        return qs

    def _update_where(self, filters: Dict[str, Any], campos: Dict[str, Any]) -> int:
        """
        Atualização em lote (um único UPDATE) sobre registros não excluídos.

        Returns:
            Número de linhas afetadas
        """
        qs = self._apply_filters(self._get_base_queryset(), filters)
        return qs.update(**campos)

    @traduzir_erros_banco
    def soft_delete(self, entity_id: int, quando: datetime) -> None:
        """
        Marca registro como excluído.

        Sem filtro pelo campo de exclusão: quem chama garante que o
        registro está vivo.
        """
        self.model_class.objects.filter(id=entity_id).update(
            **{self.soft_delete_field: quando}
        )
        logger.debug(f"{self.model_class.__name__} {entity_id} excluído logicamente")

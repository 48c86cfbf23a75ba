"""
Repositório Django para persistência de Exames.

Implementa a interface (Port) ExameRepository definida no Core.
É um DRIVEN ADAPTER - acionado pelos use cases.

Responsabilidades:
- Mapear entities para models e vice-versa
- Executar queries no banco via ORM, sempre ignorando excluídos
- Atualizações em cascata como um único UPDATE em lote

Princípios:
- Repository não contém lógica de negócio
- Usa Mapper para conversões
- Erros do banco viram RepositoryError
"""

from typing import Any, Dict, List, Optional
import logging

from django.db.models import Count

from src.core.exames.entities import ExameEntity, ExameTipo
from src.core.exames.ports import CAMPOS_CASCATA

from ..shared.repository import SoftDeleteRepository, traduzir_erros_banco
from .models import ExameModel
from .mappers import ExameMapper

logger = logging.getLogger(__name__)


class DjangoExameRepository(SoftDeleteRepository[ExameEntity, ExameModel]):
    """
    Implementação Django do ExameRepository.

    Example:
        repo = DjangoExameRepository()

        exame_id = repo.add(exame)
        exame = repo.get_by_id(exame_id)
        repo.update_filhos(exame_id, {"preco": Decimal("75.00")})
    """

    model_class = ExameModel

    def to_entity(self, model: ExameModel) -> ExameEntity:
        return ExameMapper.to_entity(model)

    def to_model(self, entity: ExameEntity) -> ExameModel:
        return ExameMapper.to_model(entity)

    # =========================================================================
    # LEITURA
    # =========================================================================

    @traduzir_erros_banco
    def get_by_codigo(
        self, codigo: str, excluir_id: Optional[int] = None
    ) -> Optional[ExameEntity]:
        qs = self._get_base_queryset().filter(codigo=codigo)
        if excluir_id is not None:
            qs = qs.exclude(id=excluir_id)
        model = qs.first()
        return self.to_entity(model) if model else None

    @traduzir_erros_banco
    def get_by_nome(
        self, nome: str, excluir_id: Optional[int] = None
    ) -> Optional[ExameEntity]:
        qs = self._get_base_queryset().filter(nome=nome)
        if excluir_id is not None:
            qs = qs.exclude(id=excluir_id)
        model = qs.first()
        return self.to_entity(model) if model else None

    @traduzir_erros_banco
    def list_all(self, tipo: Optional[ExameTipo] = None) -> List[ExameEntity]:
        return self._list(filters={"tipo": tipo.value if tipo else None})

    @traduzir_erros_banco
    def list_bases_ativas(self) -> List[ExameEntity]:
        return self._list(
            filters={"tipo": ExameTipo.BASE.value, "ativo": True},
            order_by="nome",
        )

    @traduzir_erros_banco
    def list_filhos(self, exame_base_id: int) -> List[ExameEntity]:
        return self._list(
            filters={"exame_base_id": exame_base_id},
            order_by="id",
        )

    @traduzir_erros_banco
    def count_by_tipo(self) -> Dict[ExameTipo, int]:
        contagem = {tipo: 0 for tipo in ExameTipo}
        linhas = (
            self._get_base_queryset()
            .order_by()
            .values("tipo")
            .annotate(total=Count("id"))
        )
        for linha in linhas:
            contagem[ExameTipo(linha["tipo"])] = linha["total"]
        return contagem

    # =========================================================================
    # ESCRITA
    # =========================================================================

    @traduzir_erros_banco
    def add(self, exame: ExameEntity) -> int:
        model = self.to_model(exame)
        model.id = None
        model.save(force_insert=True)
        logger.info(f"Exame inserido: {model.id} ({model.codigo})")
        return model.id

    @traduzir_erros_banco
    def update(self, exame: ExameEntity) -> None:
        model = ExameModel.objects.get(id=exame.id)
        ExameMapper.update_model(model, exame)
        model.save(
            update_fields=[
                "codigo",
                "nome",
                "descricao",
                "preco",
                "ativo",
                "exame_base",
                "atualizado_em",
            ]
        )
        logger.debug(f"Exame atualizado: {exame.id}")

    @traduzir_erros_banco
    def update_filhos(self, exame_base_id: int, campos: Dict[str, Any]) -> int:
        invalidos = set(campos) - CAMPOS_CASCATA
        if invalidos:
            raise ValueError(f"Campos não permitidos em cascata: {sorted(invalidos)}")

        total = self._update_where({"exame_base_id": exame_base_id}, campos)
        logger.debug(
            f"Cascata em filhos do exame {exame_base_id}: {sorted(campos)} ({total} linha(s))"
        )
        return total

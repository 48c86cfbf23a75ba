"""
Mappers para conversão entre Entities (Core) e Models (Django).

Responsabilidades:
- Converter ExameEntity → ExameModel (para persistência)
- Converter ExameModel → ExameEntity (para uso no Core)

Princípios:
- Mappers são stateless
- Não contêm lógica de negócio
- Tratam apenas conversão de dados
"""

from decimal import Decimal

from src.core.exames.entities import ExameEntity, ExameTipo

from .models import ExameModel


class ExameMapper:
    """
    Mapper para conversão entre ExameEntity e ExameModel.

    Responsável por:
    - to_model(): Entity → Model
    - to_entity(): Model → Entity
    - update_model(): copia campos da Entity para Model existente
    """

    @staticmethod
    def to_model(entity: ExameEntity) -> ExameModel:
        """
        Converte ExameEntity para ExameModel.

        Note:
            Não chama .save() - deixa isso para o Repository
        """
        return ExameModel(
            id=entity.id,
            codigo=entity.codigo,
            nome=entity.nome,
            descricao=entity.descricao or '',
            preco=entity.preco,
            tipo=entity.tipo.value,
            ativo=entity.ativo,
            exame_base_id=entity.exame_base_id,
            excluido_em=entity.excluido_em,
            criado_em=entity.criado_em,
            atualizado_em=entity.atualizado_em,
        )

    @staticmethod
    def to_entity(model: ExameModel) -> ExameEntity:
        """
        Converte ExameModel para ExameEntity.

        Note:
            Bypassa os factory methods: dados já foram validados na escrita
        """
        return ExameEntity(
            id=model.id,
            codigo=model.codigo,
            nome=model.nome,
            descricao=model.descricao or '',
            preco=Decimal(model.preco),
            tipo=ExameTipo(model.tipo),
            ativo=model.ativo,
            exame_base_id=model.exame_base_id,
            excluido_em=model.excluido_em,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )

    @staticmethod
    def update_model(model: ExameModel, entity: ExameEntity) -> ExameModel:
        """
        Atualiza Model existente com dados da Entity.

        Tipo e criado_em nunca mudam depois da criação.

        Returns:
            Model atualizado (não salvo)
        """
        model.codigo = entity.codigo
        model.nome = entity.nome
        model.descricao = entity.descricao or ''
        model.preco = entity.preco
        model.ativo = entity.ativo
        model.exame_base_id = entity.exame_base_id
        model.atualizado_em = entity.atualizado_em

        return model

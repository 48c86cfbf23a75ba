"""
Use Cases (Application Services) do Domínio de Exames.

Este módulo contém os casos de uso da aplicação, que orquestram
a lógica de negócio coordenando entidades, repositório e eventos.

Use Cases implementados:
- CriarExameService: Cadastra exame base ou personalizado
- AtualizarExameService: Atualiza exame com propagação de preço e
  desativação em cascata
- ExcluirExameService: Exclusão lógica com cascata para os filhos
- ListarExamesService: Lista exames (filtro opcional por tipo)
- ObterExameService: Obtém exame específico
- ListarExamesBaseService: Exames base ativos para seleção de pai
- ContarExamesService: Contadores por tipo
- ReconciliarPrecosService: Corrige preços divergentes dos filhos

Regras de hierarquia:
- Preço do personalizado = preço atual do exame base, sempre
- Alterar preço do base propaga para os filhos não excluídos
- Desativar base (ativo True -> False) desativa os filhos; reativar não
- Excluir base exclui os filhos

Cada operação de escrita roda dentro de um único UnitOfWork: a escrita
do exame e todas as escritas em cascata são confirmadas ou desfeitas
juntas.
"""

import logging
from typing import Any, List, Optional

from src.core.shared.interfaces import UnitOfWork
from src.core.shared.exceptions import EntityNotFoundError, ValidationError

from .ports import ExameRepository
from .entities import (
    ExameEntity,
    ExameTipo,
    agora,
    CODIGO_DUPLICADO,
    NOME_DUPLICADO,
    EXAME_BASE_OBRIGATORIO,
    EXAME_BASE_NAO_ENCONTRADO,
)
from .dtos import (
    CriarExameInputDTO,
    AtualizarExameInputDTO,
    ExameOutputDTO,
    ExameBaseItemDTO,
    EstatisticasExamesDTO,
)
from .events import (
    ExameCriadoEvent,
    ExameAtualizadoEvent,
    PrecoPropagadoEvent,
    ExameDesativadoEvent,
    ExameExcluidoEvent,
)

logger = logging.getLogger(__name__)


def _nao_encontrado(exame_id) -> EntityNotFoundError:
    return EntityNotFoundError("Exame não encontrado", "Exame", str(exame_id))


def _validar_unicidade(
    exame_repo: ExameRepository,
    codigo: str,
    nome: str,
    excluir_id: Optional[int] = None,
) -> None:
    if exame_repo.get_by_codigo(codigo, excluir_id=excluir_id) is not None:
        raise ValidationError("Código já existe", field="codigo", code=CODIGO_DUPLICADO)
    if exame_repo.get_by_nome(nome, excluir_id=excluir_id) is not None:
        raise ValidationError("Nome já existe", field="nome", code=NOME_DUPLICADO)


def _exame_base_escolhido(valor: Any, atual: int) -> int:
    """Ausente ou em branco mantém o pai atual; id que não resolve é rejeitado."""
    if valor is None or str(valor).strip() == "":
        return atual
    exame_base_id = ExameEntity.normalizar_exame_base_id(valor)
    if exame_base_id is None:
        raise ValidationError(
            "Exame base não encontrado",
            field="exame_base_id",
            code=EXAME_BASE_NAO_ENCONTRADO,
        )
    return exame_base_id


def _resolver_exame_base(exame_repo: ExameRepository, exame_base_id) -> ExameEntity:
    """Carrega o exame pai; inexistente, excluído ou não-base é 'não encontrado'."""
    exame_base = exame_repo.get_by_id(exame_base_id)
    if exame_base is None or not exame_base.e_base:
        raise ValidationError(
            "Exame base não encontrado",
            field="exame_base_id",
            code=EXAME_BASE_NAO_ENCONTRADO,
        )
    return exame_base


class CriarExameService:
    """
    Use Case: Cadastrar um novo exame.

    Validação (a primeira falha interrompe):
    1. Tipo conhecido
    2. Código obrigatório
    3. Nome obrigatório
    4. BASE: preço > 0
    5. PERSONALIZADO: exame_base_id informado e exame base existente
    6. Código único (entre não excluídos)
    7. Nome único (entre não excluídos)

    Para PERSONALIZADO o preço informado é descartado e substituído
    pelo preço do exame base.

    Example:
        service = CriarExameService(exame_repo, uow)
        output = service.execute(CriarExameInputDTO(
            codigo="HEM001", nome="Hemograma", preco="50.00", tipo="BASE"
        ))
        print(output.id)
    """

    def __init__(self, exame_repo: ExameRepository, uow: UnitOfWork):
        self.exame_repo = exame_repo
        self.uow = uow

    def execute(self, input_dto: CriarExameInputDTO) -> ExameOutputDTO:
        """
        Executa o cadastro em transação atômica.

        Raises:
            ValidationError: Se dados inválidos
        """
        with self.uow:
            tipo = ExameTipo.from_string(input_dto.tipo)

            if tipo == ExameTipo.BASE:
                exame = ExameEntity.criar_base(
                    codigo=input_dto.codigo,
                    nome=input_dto.nome,
                    preco=input_dto.preco,
                    descricao=input_dto.descricao,
                    ativo=input_dto.ativo,
                )
            else:
                codigo = ExameEntity.normalizar_codigo(input_dto.codigo)
                nome = ExameEntity.normalizar_nome(input_dto.nome)

                exame_base_id = ExameEntity.normalizar_exame_base_id(
                    input_dto.exame_base_id
                )
                if exame_base_id is None:
                    raise ValidationError(
                        "Exame base é obrigatório para exames personalizados",
                        field="exame_base_id",
                        code=EXAME_BASE_OBRIGATORIO,
                    )
                exame_base = _resolver_exame_base(self.exame_repo, exame_base_id)

                exame = ExameEntity.criar_personalizado(
                    codigo=codigo,
                    nome=nome,
                    exame_base=exame_base,
                    descricao=input_dto.descricao,
                    ativo=input_dto.ativo,
                )

            _validar_unicidade(self.exame_repo, exame.codigo, exame.nome)

            exame.id = self.exame_repo.add(exame)

            self.uow.publish_event(
                ExameCriadoEvent(
                    aggregate_id=str(exame.id),
                    codigo=exame.codigo,
                    nome=exame.nome,
                    tipo=exame.tipo.value,
                    preco=str(exame.preco),
                    exame_base_id=exame.exame_base_id,
                )
            )

        logger.info(f"Exame criado: {exame}")
        return ExameOutputDTO.from_entity(exame)


class AtualizarExameService:
    """
    Use Case: Atualizar exame existente.

    Fluxo:
    1. Exame deve existir (não excluído)
    2. Código e nome obrigatórios e únicos (ignorando o próprio exame)
    3. Conforme o tipo armazenado:
       - PERSONALIZADO: preço recalculado a partir do exame base escolhido
         (ou do atual, se nenhum for informado); preço enviado é descartado
       - BASE: se o preço mudou, propaga para todos os filhos em lote
    4. Grava os campos do próprio exame
    5. BASE desativado (True -> False): desativa os filhos em lote

    O tipo nunca muda em uma atualização.
    """

    def __init__(self, exame_repo: ExameRepository, uow: UnitOfWork):
        self.exame_repo = exame_repo
        self.uow = uow

    def execute(self, input_dto: AtualizarExameInputDTO) -> ExameOutputDTO:
        """
        Raises:
            EntityNotFoundError: Se exame não existe
            ValidationError: Se dados inválidos
        """
        with self.uow:
            exame = self.exame_repo.get_by_id(input_dto.exame_id)
            if exame is None:
                raise _nao_encontrado(input_dto.exame_id)

            codigo = ExameEntity.normalizar_codigo(input_dto.codigo)
            nome = ExameEntity.normalizar_nome(input_dto.nome)
            _validar_unicidade(self.exame_repo, codigo, nome, excluir_id=exame.id)

            instante = agora()
            estava_ativo = exame.ativo

            if exame.e_personalizado:
                exame_base_id = _exame_base_escolhido(
                    input_dto.exame_base_id, atual=exame.exame_base_id
                )
                exame_base = _resolver_exame_base(self.exame_repo, exame_base_id)
                exame.vincular_exame_base(exame_base)
            elif input_dto.preco is not None:
                preco_anterior = exame.preco
                if exame.alterar_preco(input_dto.preco):
                    self._propagar_preco(exame, preco_anterior, instante)

            exame.atualizar_dados(
                codigo=codigo,
                nome=nome,
                descricao=input_dto.descricao,
                ativo=input_dto.ativo,
                quando=instante,
            )
            self.exame_repo.update(exame)

            if exame.e_base and estava_ativo and not exame.ativo:
                self._desativar_filhos(exame, instante)

            self.uow.publish_event(
                ExameAtualizadoEvent(
                    aggregate_id=str(exame.id),
                    codigo=exame.codigo,
                    tipo=exame.tipo.value,
                    preco=str(exame.preco),
                    ativo=exame.ativo,
                )
            )

        return ExameOutputDTO.from_entity(exame)

    def _propagar_preco(self, exame: ExameEntity, preco_anterior, instante) -> None:
        total = self.exame_repo.update_filhos(
            exame.id, {"preco": exame.preco, "atualizado_em": instante}
        )
        logger.info(
            f"Preço do exame {exame.codigo} alterado de {preco_anterior} para "
            f"{exame.preco}; {total} exame(s) personalizado(s) atualizado(s)"
        )
        self.uow.publish_event(
            PrecoPropagadoEvent(
                aggregate_id=str(exame.id),
                preco_anterior=str(preco_anterior),
                preco_novo=str(exame.preco),
                filhos_atualizados=total,
            )
        )

    def _desativar_filhos(self, exame: ExameEntity, instante) -> None:
        total = self.exame_repo.update_filhos(
            exame.id, {"ativo": False, "atualizado_em": instante}
        )
        logger.info(
            f"Exame {exame.codigo} desativado; "
            f"{total} exame(s) personalizado(s) desativado(s)"
        )
        self.uow.publish_event(
            ExameDesativadoEvent(
                aggregate_id=str(exame.id),
                codigo=exame.codigo,
                filhos_desativados=total,
            )
        )


class ExcluirExameService:
    """
    Use Case: Excluir exame (exclusão lógica).

    Exame base leva consigo todos os personalizados não excluídos.
    Excluir novamente um exame já excluído resulta em "não encontrado"
    e não altera nada.
    """

    def __init__(self, exame_repo: ExameRepository, uow: UnitOfWork):
        self.exame_repo = exame_repo
        self.uow = uow

    def execute(self, exame_id: int) -> None:
        with self.uow:
            exame = self.exame_repo.get_by_id(exame_id)
            if exame is None:
                raise _nao_encontrado(exame_id)

            instante = agora()
            filhos_excluidos = 0
            if exame.e_base:
                filhos_excluidos = self.exame_repo.update_filhos(
                    exame.id, {"excluido_em": instante}
                )

            self.exame_repo.soft_delete(exame.id, instante)

            self.uow.publish_event(
                ExameExcluidoEvent(
                    aggregate_id=str(exame.id),
                    codigo=exame.codigo,
                    tipo=exame.tipo.value,
                    filhos_excluidos=filhos_excluidos,
                )
            )

        logger.info(
            f"Exame {exame.codigo} excluído ({filhos_excluidos} filho(s) em cascata)"
        )


class ListarExamesService:
    """Use Case: Listar exames não excluídos, mais recentes primeiro."""

    def __init__(self, exame_repo: ExameRepository):
        self.exame_repo = exame_repo

    def execute(self, tipo: Optional[str] = None) -> List[ExameOutputDTO]:
        filtro = ExameTipo.from_string(tipo) if tipo else None
        return [
            ExameOutputDTO.from_entity(exame)
            for exame in self.exame_repo.list_all(tipo=filtro)
        ]


class ObterExameService:
    """Use Case: Obter exame por ID."""

    def __init__(self, exame_repo: ExameRepository):
        self.exame_repo = exame_repo

    def execute(self, exame_id: int) -> ExameOutputDTO:
        exame = self.exame_repo.get_by_id(exame_id)
        if exame is None:
            raise _nao_encontrado(exame_id)
        return ExameOutputDTO.from_entity(exame)


class ListarExamesBaseService:
    """Use Case: Exames base ativos (ordenados por nome) para escolha do pai."""

    def __init__(self, exame_repo: ExameRepository):
        self.exame_repo = exame_repo

    def execute(self) -> List[ExameBaseItemDTO]:
        return [
            ExameBaseItemDTO.from_entity(exame)
            for exame in self.exame_repo.list_bases_ativas()
        ]


class ContarExamesService:
    """Use Case: Totais de exames não excluídos por tipo."""

    def __init__(self, exame_repo: ExameRepository):
        self.exame_repo = exame_repo

    def execute(self) -> EstatisticasExamesDTO:
        contagem = self.exame_repo.count_by_tipo()
        base = contagem.get(ExameTipo.BASE, 0)
        personalizado = contagem.get(ExameTipo.PERSONALIZADO, 0)
        return EstatisticasExamesDTO(
            total=base + personalizado,
            base=base,
            personalizado=personalizado,
        )


class ReconciliarPrecosService:
    """
    Use Case: Realinhar preços de personalizados ao preço do exame base.

    Atualizações concorrentes podem deixar um filho com preço diferente
    do pai. Este serviço percorre os exames base e corrige os filhos
    divergentes. Executado periodicamente pelo Celery beat.

    Returns:
        Quantidade de exames personalizados corrigidos
    """

    def __init__(self, exame_repo: ExameRepository, uow: UnitOfWork):
        self.exame_repo = exame_repo
        self.uow = uow

    def execute(self) -> int:
        corrigidos = 0
        with self.uow:
            for exame_base in self.exame_repo.list_all(tipo=ExameTipo.BASE):
                divergentes = [
                    filho
                    for filho in self.exame_repo.list_filhos(exame_base.id)
                    if filho.preco != exame_base.preco
                ]
                if not divergentes:
                    continue

                instante = agora()
                for filho in divergentes:
                    logger.warning(
                        f"Preço divergente em {filho.codigo}: {filho.preco} "
                        f"(base {exame_base.codigo}: {exame_base.preco})"
                    )
                    filho.preco = exame_base.preco
                    filho.atualizado_em = instante
                    self.exame_repo.update(filho)

                corrigidos += len(divergentes)
                self.uow.publish_event(
                    PrecoPropagadoEvent(
                        aggregate_id=str(exame_base.id),
                        preco_anterior="",
                        preco_novo=str(exame_base.preco),
                        filhos_atualizados=len(divergentes),
                    )
                )

        return corrigidos

"""
Testes Unitários para Use Cases do Domínio de Exames.

Estratégia de Teste:
- Usa InMemoryExameRepository (fake) para isolamento
- Usa InMemoryUnitOfWork com rollback real sobre o repositório
- Verifica eventos publicados após commit
- Cenários de sucesso, erro e cascata (preço, desativação, exclusão)
"""

from decimal import Decimal

import pytest

from src.core.exames.use_cases import (
    CriarExameService,
    AtualizarExameService,
    ExcluirExameService,
    ListarExamesService,
    ObterExameService,
    ListarExamesBaseService,
    ContarExamesService,
    ReconciliarPrecosService,
)
from src.core.exames.dtos import CriarExameInputDTO, AtualizarExameInputDTO
from src.core.exames.entities import (
    ExameTipo,
    CODIGO_DUPLICADO,
    NOME_DUPLICADO,
    PRECO_INVALIDO,
    TIPO_INVALIDO,
    EXAME_BASE_OBRIGATORIO,
    EXAME_BASE_NAO_ENCONTRADO,
    CODIGO_OBRIGATORIO,
)
from src.core.shared.exceptions import EntityNotFoundError, ValidationError


# =============================================================================
# Helpers / Fixtures
# =============================================================================

@pytest.fixture
def criar(exame_repo, uow):
    service = CriarExameService(exame_repo, uow)

    def _criar(**kwargs):
        return service.execute(CriarExameInputDTO(**kwargs))

    return _criar


@pytest.fixture
def atualizar(exame_repo, uow):
    service = AtualizarExameService(exame_repo, uow)

    def _atualizar(exame_id, **kwargs):
        return service.execute(AtualizarExameInputDTO(exame_id=exame_id, **kwargs))

    return _atualizar


@pytest.fixture
def excluir(exame_repo, uow):
    return ExcluirExameService(exame_repo, uow).execute


@pytest.fixture
def base(criar):
    return criar(codigo="HEM001", nome="Hemograma", preco="50.00", tipo="BASE")


@pytest.fixture
def filho(criar, base):
    return criar(
        codigo="HEM001-P",
        nome="Hemograma Premium",
        tipo="PERSONALIZADO",
        exame_base_id=base.id,
    )


def tipos_publicados(event_publisher):
    return [e.event_type for e in event_publisher.published_events]


# =============================================================================
# Criar
# =============================================================================

class TestCriarExameService:

    def test_criar_base(self, criar, exame_repo, uow, event_publisher):
        output = criar(
            codigo=" HEM001 ", nome="Hemograma", preco="50", descricao="CBC"
        )

        assert output.id == 1
        assert output.codigo == "HEM001"
        assert output.preco == "50.00"
        assert output.tipo == "Exame"
        assert output.exame_base_id is None
        assert exame_repo.count() == 1
        assert uow.committed
        assert tipos_publicados(event_publisher) == ["ExameCriadoEvent"]

        evento = event_publisher.published_events[0]
        assert evento.aggregate_id == "1"
        assert evento.to_dict()["data"]["preco"] == "50.00"

    def test_criar_personalizado_herda_preco_e_descarta_preco_enviado(self, criar, base):
        output = criar(
            codigo="HEM001-P",
            nome="Hemograma Premium",
            tipo="ExamePersonalizado",
            preco="999.00",
            exame_base_id=str(base.id),
        )

        assert output.tipo == "ExamePersonalizado"
        assert output.preco == "50.00"
        assert output.exame_base_id == base.id

    def test_personalizado_aceita_preco_ausente(self, criar, base):
        output = criar(codigo="P", nome="P", tipo="PERSONALIZADO", exame_base_id=base.id)
        assert output.preco == base.preco

    def test_tipo_invalido(self, criar):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="X", nome="X", preco="1", tipo="Outro")
        assert exc_info.value.code == TIPO_INVALIDO

    def test_preco_invalido_no_base(self, criar, exame_repo):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="X", nome="X", preco="abc")

        assert exc_info.value.code == PRECO_INVALIDO
        assert exame_repo.count() == 0

    @pytest.mark.parametrize("exame_base_id", [None, "", "0", "-1", "abc"])
    def test_personalizado_sem_exame_base(self, criar, exame_base_id):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="P", nome="P", tipo="PERSONALIZADO", exame_base_id=exame_base_id)

        assert exc_info.value.code == EXAME_BASE_OBRIGATORIO
        assert exc_info.value.message == "Exame base é obrigatório para exames personalizados"

    def test_codigo_validado_antes_do_exame_base(self, criar):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="", nome="P", tipo="PERSONALIZADO")
        assert exc_info.value.code == CODIGO_OBRIGATORIO

    def test_exame_base_inexistente(self, criar):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="P", nome="P", tipo="PERSONALIZADO", exame_base_id=42)
        assert exc_info.value.code == EXAME_BASE_NAO_ENCONTRADO

    def test_personalizado_nao_pode_ser_pai(self, criar, filho):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="N", nome="N", tipo="PERSONALIZADO", exame_base_id=filho.id)
        assert exc_info.value.code == EXAME_BASE_NAO_ENCONTRADO

    def test_base_excluido_nao_pode_ser_pai(self, criar, excluir, base):
        excluir(base.id)

        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="N", nome="N", tipo="PERSONALIZADO", exame_base_id=base.id)
        assert exc_info.value.code == EXAME_BASE_NAO_ENCONTRADO

    def test_codigo_duplicado(self, criar, base, uow, event_publisher):
        event_publisher.clear()

        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="HEM001", nome="Outro nome", preco="10")

        assert exc_info.value.code == CODIGO_DUPLICADO
        assert exc_info.value.message == "Código já existe"
        assert uow.rolled_back
        assert event_publisher.published_events == []

    def test_nome_duplicado(self, criar, base):
        with pytest.raises(ValidationError) as exc_info:
            criar(codigo="HEM002", nome="Hemograma", preco="10")
        assert exc_info.value.code == NOME_DUPLICADO

    def test_codigo_de_exame_excluido_pode_ser_reutilizado(self, criar, excluir, base):
        excluir(base.id)

        output = criar(codigo="HEM001", nome="Hemograma", preco="60")

        assert output.id != base.id
        assert output.preco == "60.00"


# =============================================================================
# Atualizar
# =============================================================================

class TestAtualizarExameService:

    def test_exame_inexistente(self, atualizar):
        with pytest.raises(EntityNotFoundError) as exc_info:
            atualizar(99, codigo="X", nome="X")
        assert exc_info.value.message == "Exame não encontrado"

    def test_atualiza_campos_proprios(self, atualizar, base, exame_repo):
        output = atualizar(base.id, codigo="HEM001", nome="Hemograma Completo",
                           descricao="Nova descrição")

        assert output.nome == "Hemograma Completo"
        assert output.descricao == "Nova descrição"
        assert exame_repo.get_by_id(base.id).nome == "Hemograma Completo"

    def test_opcionais_ausentes_mantem_valores(self, criar, atualizar):
        base = criar(codigo="A", nome="A", preco="10", descricao="desc", ativo=False)

        output = atualizar(base.id, codigo="A", nome="A")

        assert output.descricao == "desc"
        assert output.ativo is False
        assert output.preco == "10.00"

    def test_tipo_nunca_muda(self, atualizar, filho):
        output = atualizar(filho.id, codigo=filho.codigo, nome=filho.nome)
        assert output.tipo == ExameTipo.PERSONALIZADO.value

    def test_codigo_duplicado_ignora_o_proprio(self, criar, atualizar, base):
        criar(codigo="GLI001", nome="Glicemia", preco="25")

        atualizar(base.id, codigo="HEM001", nome="Hemograma")

        with pytest.raises(ValidationError) as exc_info:
            atualizar(base.id, codigo="GLI001", nome="Hemograma")
        assert exc_info.value.code == CODIGO_DUPLICADO

    def test_preco_invalido_no_base(self, atualizar, base, exame_repo):
        with pytest.raises(ValidationError) as exc_info:
            atualizar(base.id, codigo="HEM001", nome="Hemograma", preco="-5")

        assert exc_info.value.code == PRECO_INVALIDO
        assert exame_repo.get_by_id(base.id).preco == Decimal("50.00")

    def test_alterar_preco_do_base_propaga_para_filhos(
        self, atualizar, base, filho, exame_repo, event_publisher
    ):
        event_publisher.clear()

        atualizar(base.id, codigo="HEM001", nome="Hemograma", preco="75.00")

        assert exame_repo.get_by_id(base.id).preco == Decimal("75.00")
        assert exame_repo.get_by_id(filho.id).preco == Decimal("75.00")

        propagados = event_publisher.get_events_by_type("PrecoPropagadoEvent")
        assert len(propagados) == 1
        assert propagados[0].preco_anterior == "50.00"
        assert propagados[0].preco_novo == "75.00"
        assert propagados[0].filhos_atualizados == 1

    def test_mesmo_preco_nao_propaga(self, atualizar, base, filho, event_publisher):
        event_publisher.clear()

        atualizar(base.id, codigo="HEM001", nome="Hemograma", preco="50")

        assert event_publisher.get_events_by_type("PrecoPropagadoEvent") == []
        assert tipos_publicados(event_publisher) == ["ExameAtualizadoEvent"]

    def test_propagacao_ignora_filhos_excluidos(
        self, criar, atualizar, excluir, base, filho, exame_repo
    ):
        outro = criar(codigo="HEM001-D", nome="Hemograma Domiciliar",
                      tipo="PERSONALIZADO", exame_base_id=base.id)
        excluir(outro.id)

        atualizar(base.id, codigo="HEM001", nome="Hemograma", preco="80")

        assert exame_repo.get_by_id(filho.id).preco == Decimal("80.00")
        assert exame_repo.get_raw(outro.id).preco == Decimal("50.00")

    def test_personalizado_descarta_preco_enviado(self, atualizar, filho):
        output = atualizar(filho.id, codigo=filho.codigo, nome=filho.nome, preco="1.00")
        assert output.preco == "50.00"

    def test_personalizado_troca_de_exame_base(self, criar, atualizar, filho):
        outro = criar(codigo="GLI001", nome="Glicemia", preco="25")

        output = atualizar(filho.id, codigo=filho.codigo, nome=filho.nome,
                           exame_base_id=outro.id)

        assert output.exame_base_id == outro.id
        assert output.preco == "25.00"

    def test_personalizado_novo_pai_invalido(self, atualizar, filho):
        with pytest.raises(ValidationError) as exc_info:
            atualizar(filho.id, codigo=filho.codigo, nome=filho.nome, exame_base_id=999)
        assert exc_info.value.code == EXAME_BASE_NAO_ENCONTRADO

    @pytest.mark.parametrize("exame_base_id", [0, -5, "abc", "0"])
    def test_personalizado_pai_informado_invalido_nao_mantem_atual(
        self, atualizar, base, filho, exame_repo, exame_base_id
    ):
        with pytest.raises(ValidationError) as exc_info:
            atualizar(
                filho.id,
                codigo=filho.codigo,
                nome="CBC-custom",
                exame_base_id=exame_base_id,
            )

        assert exc_info.value.code == EXAME_BASE_NAO_ENCONTRADO
        armazenado = exame_repo.get_by_id(filho.id)
        assert armazenado.nome == filho.nome
        assert armazenado.exame_base_id == base.id

    @pytest.mark.parametrize("exame_base_id", [None, "", "  "])
    def test_personalizado_pai_ausente_mantem_atual(
        self, atualizar, base, filho, exame_base_id
    ):
        output = atualizar(
            filho.id, codigo=filho.codigo, nome=filho.nome, exame_base_id=exame_base_id
        )

        assert output.exame_base_id == base.id

    def test_personalizado_realinha_com_preco_atual_do_pai(
        self, atualizar, base, filho, exame_repo
    ):
        divergente = exame_repo.get_by_id(filho.id)
        divergente.preco = Decimal("1.00")
        exame_repo.update(divergente)

        output = atualizar(filho.id, codigo=filho.codigo, nome=filho.nome)

        assert output.preco == "50.00"

    def test_desativar_base_desativa_filhos(
        self, atualizar, base, filho, exame_repo, event_publisher
    ):
        event_publisher.clear()

        atualizar(base.id, codigo="HEM001", nome="Hemograma", ativo=False)

        assert exame_repo.get_by_id(base.id).ativo is False
        assert exame_repo.get_by_id(filho.id).ativo is False
        desativados = event_publisher.get_events_by_type("ExameDesativadoEvent")
        assert desativados[0].filhos_desativados == 1

    def test_reativar_base_nao_reativa_filhos(self, atualizar, base, filho, exame_repo):
        atualizar(base.id, codigo="HEM001", nome="Hemograma", ativo=False)

        atualizar(base.id, codigo="HEM001", nome="Hemograma", ativo=True)

        assert exame_repo.get_by_id(base.id).ativo is True
        assert exame_repo.get_by_id(filho.id).ativo is False

    def test_base_ja_inativo_nao_cascateia(
        self, criar, atualizar, exame_repo, event_publisher
    ):
        base = criar(codigo="A", nome="A", preco="10", ativo=False)
        filho = criar(codigo="B", nome="B", tipo="PERSONALIZADO",
                      exame_base_id=base.id, ativo=True)
        event_publisher.clear()

        atualizar(base.id, codigo="A", nome="A", ativo=False)

        assert exame_repo.get_by_id(filho.id).ativo is True
        assert event_publisher.get_events_by_type("ExameDesativadoEvent") == []

    def test_desativar_personalizado_nao_afeta_base(self, atualizar, base, filho, exame_repo):
        atualizar(filho.id, codigo=filho.codigo, nome=filho.nome, ativo=False)

        assert exame_repo.get_by_id(filho.id).ativo is False
        assert exame_repo.get_by_id(base.id).ativo is True

    def test_falha_desfaz_cascata(self, atualizar, base, filho, exame_repo, event_publisher):
        original = exame_repo.update

        def update_com_falha(exame):
            raise RuntimeError("falha de escrita")

        exame_repo.update = update_com_falha
        event_publisher.clear()

        with pytest.raises(RuntimeError):
            atualizar(base.id, codigo="HEM001", nome="Hemograma", preco="99")

        exame_repo.update = original
        assert exame_repo.get_by_id(base.id).preco == Decimal("50.00")
        assert exame_repo.get_by_id(filho.id).preco == Decimal("50.00")
        assert event_publisher.published_events == []


# =============================================================================
# Excluir
# =============================================================================

class TestExcluirExameService:

    def test_excluir_personalizado(self, excluir, base, filho, exame_repo):
        excluir(filho.id)

        assert exame_repo.get_by_id(filho.id) is None
        assert exame_repo.get_raw(filho.id).excluido_em is not None
        assert exame_repo.get_by_id(base.id) is not None

    def test_excluir_base_exclui_filhos(self, excluir, base, filho, exame_repo, event_publisher):
        event_publisher.clear()

        excluir(base.id)

        assert exame_repo.count() == 0
        assert exame_repo.get_raw(filho.id).excluido_em == exame_repo.get_raw(base.id).excluido_em
        evento = event_publisher.get_events_by_type("ExameExcluidoEvent")[0]
        assert evento.filhos_excluidos == 1

    def test_excluir_novamente_nao_encontrado(self, excluir, base, exame_repo):
        excluir(base.id)
        excluido_em = exame_repo.get_raw(base.id).excluido_em

        with pytest.raises(EntityNotFoundError):
            excluir(base.id)

        assert exame_repo.get_raw(base.id).excluido_em == excluido_em

    def test_excluir_inexistente(self, excluir):
        with pytest.raises(EntityNotFoundError):
            excluir(123)


# =============================================================================
# Leitura
# =============================================================================

class TestLeitura:

    def test_listar_mais_recentes_primeiro(self, exame_repo, base, filho):
        exames = ListarExamesService(exame_repo).execute()
        assert [e.id for e in exames] == [filho.id, base.id]

    def test_listar_filtra_por_tipo(self, exame_repo, base, filho):
        exames = ListarExamesService(exame_repo).execute(tipo="PERSONALIZADO")
        assert [e.id for e in exames] == [filho.id]

    def test_listar_tipo_invalido(self, exame_repo):
        with pytest.raises(ValidationError):
            ListarExamesService(exame_repo).execute(tipo="xyz")

    def test_obter(self, exame_repo, filho):
        output = ObterExameService(exame_repo).execute(filho.id)
        assert output.to_dict()["preco"] == "50.00"

    def test_obter_inexistente(self, exame_repo):
        with pytest.raises(EntityNotFoundError):
            ObterExameService(exame_repo).execute(5)

    def test_bases_ativas_ordenadas_por_nome(self, criar, exame_repo, base, filho):
        criar(codigo="GLI001", nome="Glicemia", preco="25")
        criar(codigo="TSH001", nome="TSH", preco="80", ativo=False)

        bases = ListarExamesBaseService(exame_repo).execute()

        assert [b.nome for b in bases] == ["Glicemia", "Hemograma"]

    def test_contar(self, criar, excluir, exame_repo, base, filho):
        outro = criar(codigo="GLI001", nome="Glicemia", preco="25")
        excluir(outro.id)

        estatisticas = ContarExamesService(exame_repo).execute()

        assert estatisticas.to_dict() == {"total": 2, "base": 1, "personalizado": 1}


# =============================================================================
# Reconciliação
# =============================================================================

class TestReconciliarPrecosService:

    def test_corrige_filhos_divergentes(self, exame_repo, uow, event_publisher, base, filho):
        divergente = exame_repo.get_by_id(filho.id)
        divergente.preco = Decimal("10.00")
        exame_repo.update(divergente)
        event_publisher.clear()

        corrigidos = ReconciliarPrecosService(exame_repo, uow).execute()

        assert corrigidos == 1
        assert exame_repo.get_by_id(filho.id).preco == Decimal("50.00")
        assert tipos_publicados(event_publisher) == ["PrecoPropagadoEvent"]

    def test_nada_a_corrigir(self, exame_repo, uow, event_publisher, base, filho):
        event_publisher.clear()

        assert ReconciliarPrecosService(exame_repo, uow).execute() == 0
        assert event_publisher.published_events == []


# =============================================================================
# Fluxo completo
# =============================================================================

class TestCicloDeVidaHierarquia:
    """Base B1 e personalizado P1 do cadastro até a exclusão."""

    def test_fluxo_completo(self, criar, atualizar, excluir, exame_repo):
        b1 = criar(codigo="B1", nome="Base 1", preco="50.00", tipo="BASE")
        p1 = criar(codigo="P1", nome="Personalizado 1", tipo="PERSONALIZADO",
                   exame_base_id=b1.id)
        assert p1.preco == "50.00"

        atualizar(b1.id, codigo="B1", nome="Base 1", preco="75.00")
        assert exame_repo.get_by_id(p1.id).preco == Decimal("75.00")

        atualizar(b1.id, codigo="B1", nome="Base 1", ativo=False)
        assert exame_repo.get_by_id(p1.id).ativo is False

        excluir(b1.id)
        assert exame_repo.get_by_id(b1.id) is None
        assert exame_repo.get_by_id(p1.id) is None
        assert exame_repo.count() == 0

"""
Entidades do Domínio de Exames.

Este módulo define as entidades de domínio que encapsulam as regras
de cadastro e de hierarquia de preço dos exames.

Entidades:
- ExameEntity: Agregado principal do domínio
- ExameTipo: Variante do exame (base ou personalizado)

Regras de Negócio Encapsuladas:
- Normalização e validação de código, nome e preço
- Exame base nunca tem exame pai; exame personalizado sempre tem
- Preço do exame personalizado é sempre o preço do seu exame base
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, ClassVar, Optional

from src.core.shared.exceptions import (
    ValidationError,
    BusinessRuleViolationError,
)


# Códigos de erro de validação expostos pela API
CODIGO_OBRIGATORIO = "CODIGO_OBRIGATORIO"
CODIGO_INVALIDO = "CODIGO_INVALIDO"
NOME_OBRIGATORIO = "NOME_OBRIGATORIO"
NOME_INVALIDO = "NOME_INVALIDO"
PRECO_INVALIDO = "PRECO_INVALIDO"
TIPO_INVALIDO = "TIPO_INVALIDO"
EXAME_BASE_OBRIGATORIO = "EXAME_BASE_OBRIGATORIO"
EXAME_BASE_NAO_ENCONTRADO = "EXAME_BASE_NAO_ENCONTRADO"
CODIGO_DUPLICADO = "CODIGO_DUPLICADO"
NOME_DUPLICADO = "NOME_DUPLICADO"
DESCRICAO_INVALIDA = "DESCRICAO_INVALIDA"


def agora() -> datetime:
    """Instante atual em UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


class ExameTipo(Enum):
    """
    Variantes de exame.

    O valor é o discriminador persistido na coluna `type`:
        BASE          -> "Exame"
        PERSONALIZADO -> "ExamePersonalizado"
    """

    BASE = "Exame"
    PERSONALIZADO = "ExamePersonalizado"

    @classmethod
    def from_string(cls, value: str) -> "ExameTipo":
        """
        Converte string para enum.

        Aceita o nome do enum ("BASE", "personalizado") ou o valor
        persistido ("Exame", "ExamePersonalizado").

        Raises:
            ValidationError: Se valor inválido
        """
        if isinstance(value, cls):
            return value

        texto = str(value or "").strip()

        try:
            return cls[texto.upper()]
        except KeyError:
            pass

        for tipo in cls:
            if tipo.value.lower() == texto.lower():
                return tipo

        raise ValidationError(
            f"Tipo de exame inválido: {value}", field="tipo", code=TIPO_INVALIDO
        )


@dataclass
class ExameEntity:
    """
    Entidade de Domínio: Exame.

    Invariantes:
    - Código e nome não vazios (após trim)
    - Preço positivo com duas casas decimais
    - BASE sem exame_base_id; PERSONALIZADO sempre com exame_base_id
    - Exame excluído (excluido_em preenchido) não é mais visível

    Attributes:
        id: Identificador atribuído pelo banco (None antes do insert)
        codigo: Código único entre exames não excluídos
        nome: Nome único entre exames não excluídos
        descricao: Texto livre opcional
        preco: Preço (Decimal, 2 casas)
        tipo: BASE ou PERSONALIZADO
        ativo: Se o exame está ativo
        exame_base_id: Exame pai (somente PERSONALIZADO)
        excluido_em: Momento da exclusão lógica
        criado_em: Data/hora de criação
        atualizado_em: Data/hora da última atualização

    Example:
        base = ExameEntity.criar_base(codigo="HEM001", nome="Hemograma", preco="50.00")
        filho = ExameEntity.criar_personalizado(
            codigo="HEM001-P", nome="Hemograma Premium", exame_base=base
        )
        assert filho.preco == base.preco
    """

    id: Optional[int] = None

    codigo: str = ""
    nome: str = ""
    descricao: str = ""
    preco: Decimal = Decimal("0.00")

    tipo: ExameTipo = ExameTipo.BASE
    ativo: bool = True
    exame_base_id: Optional[int] = None

    excluido_em: Optional[datetime] = None
    criado_em: datetime = field(default_factory=agora)
    atualizado_em: datetime = field(default_factory=agora)

    CODIGO_MAX_LENGTH: ClassVar[int] = 50
    NOME_MAX_LENGTH: ClassVar[int] = 255
    PRECO_MAXIMO: ClassVar[Decimal] = Decimal("99999999.99")
    CENTAVOS: ClassVar[Decimal] = Decimal("0.01")

    def __post_init__(self):
        if self.tipo == ExameTipo.BASE and self.exame_base_id is not None:
            raise BusinessRuleViolationError(
                "Exame base não pode ter exame base associado",
                rule="BASE_SEM_EXAME_BASE",
            )
        if self.tipo == ExameTipo.PERSONALIZADO and self.exame_base_id is None:
            raise BusinessRuleViolationError(
                "Exame personalizado exige exame base",
                rule="PERSONALIZADO_COM_EXAME_BASE",
            )

    # =========================================================================
    # NORMALIZAÇÃO / VALIDAÇÃO
    # =========================================================================

    @classmethod
    def normalizar_codigo(cls, codigo: Any) -> str:
        texto = str(codigo).strip() if codigo is not None else ""
        if not texto:
            raise ValidationError(
                "Código é obrigatório", field="codigo", code=CODIGO_OBRIGATORIO
            )
        if len(texto) > cls.CODIGO_MAX_LENGTH:
            raise ValidationError(
                f"Código deve ter no máximo {cls.CODIGO_MAX_LENGTH} caracteres",
                field="codigo",
                code=CODIGO_INVALIDO,
            )
        return texto

    @classmethod
    def normalizar_nome(cls, nome: Any) -> str:
        texto = str(nome).strip() if nome is not None else ""
        if not texto:
            raise ValidationError(
                "Nome é obrigatório", field="nome", code=NOME_OBRIGATORIO
            )
        if len(texto) > cls.NOME_MAX_LENGTH:
            raise ValidationError(
                f"Nome deve ter no máximo {cls.NOME_MAX_LENGTH} caracteres",
                field="nome",
                code=NOME_INVALIDO,
            )
        return texto

    @classmethod
    def normalizar_preco(cls, preco: Any) -> Decimal:
        """
        Converte o preço recebido em Decimal com 2 casas.

        Aceita Decimal, int, float ou string (vírgula como separador
        decimal também é aceita). Valores não numéricos contam como
        não positivos.

        Raises:
            ValidationError: Se o preço não for maior que zero
        """
        try:
            if isinstance(preco, str):
                preco = preco.strip().replace(",", ".")
            valor = Decimal(str(preco)) if preco not in (None, "") else Decimal("0")
        except (InvalidOperation, ValueError):
            valor = Decimal("0")

        if not valor.is_finite() or valor <= 0:
            raise ValidationError(
                "Preço deve ser maior que zero", field="preco", code=PRECO_INVALIDO
            )

        if valor > cls.PRECO_MAXIMO:
            raise ValidationError(
                "Preço excede o valor máximo permitido",
                field="preco",
                code=PRECO_INVALIDO,
            )

        valor = valor.quantize(cls.CENTAVOS, rounding=ROUND_HALF_UP)
        if valor <= 0 or valor > cls.PRECO_MAXIMO:
            raise ValidationError(
                "Preço deve ser maior que zero"
                if valor <= 0
                else "Preço excede o valor máximo permitido",
                field="preco",
                code=PRECO_INVALIDO,
            )
        return valor

    @staticmethod
    def normalizar_descricao(descricao: Any) -> str:
        """
        Texto livre; números viram texto e None vira vazio.

        Raises:
            ValidationError: Se vier lista, objeto ou booleano
        """
        if descricao is None:
            return ""
        if isinstance(descricao, bool) or not isinstance(
            descricao, (str, int, float, Decimal)
        ):
            raise ValidationError(
                "Descrição deve ser um texto",
                field="descricao",
                code=DESCRICAO_INVALIDA,
            )
        return str(descricao).strip()

    @staticmethod
    def normalizar_exame_base_id(exame_base_id: Any) -> Optional[int]:
        """Converte o id do exame pai; vazio, inválido ou <= 0 vira None."""
        if exame_base_id in (None, ""):
            return None
        try:
            valor = int(str(exame_base_id).strip())
        except ValueError:
            return None
        return valor if valor > 0 else None

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def criar_base(
        cls,
        codigo: str,
        nome: str,
        preco: Any,
        descricao: Optional[str] = "",
        ativo: bool = True,
    ) -> "ExameEntity":
        """
        Cria exame base validando código, nome e preço (nesta ordem).

        Raises:
            ValidationError: Se dados de entrada inválidos
        """
        codigo = cls.normalizar_codigo(codigo)
        nome = cls.normalizar_nome(nome)
        preco = cls.normalizar_preco(preco)

        instante = agora()
        return cls(
            codigo=codigo,
            nome=nome,
            descricao=cls.normalizar_descricao(descricao),
            preco=preco,
            tipo=ExameTipo.BASE,
            ativo=bool(ativo),
            criado_em=instante,
            atualizado_em=instante,
        )

    @classmethod
    def criar_personalizado(
        cls,
        codigo: str,
        nome: str,
        exame_base: "ExameEntity",
        descricao: Optional[str] = "",
        ativo: bool = True,
    ) -> "ExameEntity":
        """
        Cria exame personalizado herdando o preço do exame base.

        O preço informado pelo cliente nunca é usado.

        Raises:
            ValidationError: Se dados inválidos ou exame base inelegível
        """
        codigo = cls.normalizar_codigo(codigo)
        nome = cls.normalizar_nome(nome)
        cls._validar_exame_base(exame_base)

        instante = agora()
        return cls(
            codigo=codigo,
            nome=nome,
            descricao=cls.normalizar_descricao(descricao),
            preco=exame_base.preco,
            tipo=ExameTipo.PERSONALIZADO,
            ativo=bool(ativo),
            exame_base_id=exame_base.id,
            criado_em=instante,
            atualizado_em=instante,
        )

    @staticmethod
    def _validar_exame_base(exame_base: Optional["ExameEntity"]) -> None:
        # Somente exames base vivos podem ser pais
        if (
            exame_base is None
            or exame_base.id is None
            or not exame_base.e_base
            or exame_base.esta_excluido
        ):
            raise ValidationError(
                "Exame base não encontrado",
                field="exame_base_id",
                code=EXAME_BASE_NAO_ENCONTRADO,
            )

    # =========================================================================
    # COMPORTAMENTO
    # =========================================================================

    def vincular_exame_base(self, exame_base: "ExameEntity") -> None:
        """
        (Re)vincula exame personalizado a um exame base e copia seu preço.

        Raises:
            BusinessRuleViolationError: Se este exame for BASE
            ValidationError: Se o exame base for inelegível
        """
        if self.e_base:
            raise BusinessRuleViolationError(
                "Exame base não pode ter exame base associado",
                rule="BASE_SEM_EXAME_BASE",
            )
        self._validar_exame_base(exame_base)
        self.exame_base_id = exame_base.id
        self.preco = exame_base.preco

    def alterar_preco(self, novo_preco: Any) -> bool:
        """
        Altera o preço de um exame base.

        Returns:
            True se o preço mudou (e a propagação aos filhos é necessária)
        """
        if self.e_personalizado:
            raise BusinessRuleViolationError(
                "Preço de exame personalizado é herdado do exame base",
                rule="PRECO_HERDADO",
            )
        novo_preco = self.normalizar_preco(novo_preco)
        if novo_preco == self.preco:
            return False
        self.preco = novo_preco
        return True

    def atualizar_dados(
        self,
        codigo: str,
        nome: str,
        descricao: Optional[str] = None,
        ativo: Optional[bool] = None,
        quando: Optional[datetime] = None,
    ) -> None:
        """Atualiza campos próprios; descricao/ativo None mantém o valor atual."""
        self.codigo = self.normalizar_codigo(codigo)
        self.nome = self.normalizar_nome(nome)
        if descricao is not None:
            self.descricao = self.normalizar_descricao(descricao)
        if ativo is not None:
            self.ativo = bool(ativo)
        self.atualizado_em = quando or agora()

    # =========================================================================
    # PROPRIEDADES
    # =========================================================================

    @property
    def e_base(self) -> bool:
        return self.tipo == ExameTipo.BASE

    @property
    def e_personalizado(self) -> bool:
        return self.tipo == ExameTipo.PERSONALIZADO

    @property
    def esta_excluido(self) -> bool:
        return self.excluido_em is not None

    def __str__(self) -> str:
        return f"[{self.codigo}] {self.nome} ({self.tipo.value})"

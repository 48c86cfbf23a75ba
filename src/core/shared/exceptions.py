"""
Erros do domínio de cadastro.

Os use cases comunicam falhas por estas exceções; a camada HTTP as
traduz em status e payload (ver api_views.BaseAPIView.handle_exception).

    DomainException
    ├── ValidationError             -> 400 (entrada inválida, duplicidade)
    ├── EntityNotFoundError         -> 404 (inexistente ou excluído)
    ├── BusinessRuleViolationError  -> 422 (invariante do agregado)
    └── RepositoryError             -> 500 (falha do banco, mensagem genérica)
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """
    Base de todos os erros do domínio.

    Carrega uma mensagem legível (exibida ao cliente) e um código
    estável (usado por clientes e testes para identificar o erro).
    """

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def _detalhes(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.code, "message": self.message}
        payload.update({k: v for k, v in self._detalhes().items() if v})
        return payload


class ValidationError(DomainException):
    """
    Dado de entrada rejeitado.

    `code` identifica a regra (CODIGO_OBRIGATORIO, PRECO_INVALIDO,
    CODIGO_DUPLICADO...). Sem código explícito, deriva do campo.

    Example:
        raise ValidationError("Nome já existe", field="nome", code="NOME_DUPLICADO")
    """

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        self.field = field
        if code is None:
            code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def _detalhes(self) -> Dict[str, Any]:
        return {"field": self.field}


class EntityNotFoundError(DomainException):
    """Registro inexistente; excluídos logicamente contam como inexistentes."""

    def __init__(self, message: str, entity_type: Optional[str] = None,
                 entity_id: Optional[str] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def _detalhes(self) -> Dict[str, Any]:
        return {"entity_type": self.entity_type, "entity_id": self.entity_id}


class BusinessRuleViolationError(DomainException):
    """
    Operação contradiz uma invariante do agregado.

    Ex.: exame base com exame pai, ou alteração direta do preço de um
    exame personalizado (rule="PRECO_HERDADO").
    """

    def __init__(self, message: str, rule: Optional[str] = None):
        self.rule = rule
        super().__init__(message, "BUSINESS_RULE_VIOLATION")

    def _detalhes(self) -> Dict[str, Any]:
        return {"rule": self.rule}


class RepositoryError(DomainException):
    """
    Banco de dados recusou ou não completou a operação.

    A exceção original fica em `__cause__` (e no log); o cliente
    recebe somente a mensagem genérica.
    """

    def __init__(self, message: str = "Erro interno do servidor"):
        super().__init__(message, "REPOSITORY_ERROR")

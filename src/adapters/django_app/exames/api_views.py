"""
API Views JSON para o domínio de Exames.

Camada fina: converte HTTP em DTOs, chama o use case e devolve JSON.
Nenhuma regra de negócio aqui.

Endpoints:
- GET    /exames/                - Listar exames (?tipo=BASE|PERSONALIZADO)
- POST   /exames/                - Criar exame
- GET    /exames/bases/          - Exames base ativos (seleção de pai)
- GET    /exames/estatisticas/   - Totais por tipo
- GET    /exames/<id>/           - Obter exame
- PUT    /exames/<id>/           - Atualizar exame
- PATCH  /exames/<id>/           - Atualizar exame
- DELETE /exames/<id>/           - Excluir exame (lógico)
- GET    /health/                - Saúde do serviço e do banco

Formato:
- Entrada: JSON ou application/x-www-form-urlencoded
- Saída: JSON {success, ...} ou {success: false, error, meta}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from django.http import HttpRequest, JsonResponse, QueryDict
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from src.core.exames.dtos import CriarExameInputDTO, AtualizarExameInputDTO
from src.core.shared.exceptions import (
    ValidationError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    RepositoryError,
    DomainException,
)
from src.config.container import get_container
from src.adapters.django_app.shared.database import check_database_connection

logger = logging.getLogger(__name__)

ERRO_INTERNO = "Erro interno do servidor"

VALORES_VERDADEIROS = ('on', 'true', '1', 'yes', 'sim')


# =============================================================================
# Helpers
# =============================================================================

def json_response(success: bool, data: Any = None, error: str = None,
                  status: int = 200, meta: Dict = None, **extra) -> JsonResponse:
    """
    Cria resposta JSON padronizada.

    Args:
        success: Se operação foi bem sucedida
        data: Dados da resposta
        error: Mensagem de erro (se aplicável)
        status: HTTP status code
        meta: Metadados adicionais (código e campo do erro)
        **extra: Chaves de topo adicionais (total, id, message)
    """
    response = {'success': success}

    if data is not None:
        response['data'] = data

    response.update(extra)

    if error is not None:
        response['error'] = error

    if meta is not None:
        response['meta'] = meta

    return JsonResponse(response, status=status)


def parse_bool(value: Any) -> bool:
    """'on'/'true'/'1' (e True) viram True; qualquer outro valor vira False."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in VALORES_VERDADEIROS


def parse_request_body(request: HttpRequest) -> Dict[str, Any]:
    """
    Lê o corpo como JSON ou formulário.

    Retorna também a chave interna `_form` indicando a origem, usada
    para a semântica de checkbox do campo `ativo`.

    Raises:
        ValueError: Se JSON inválido
    """
    content_type = (request.content_type or '').lower()
    body = request.body or b''

    if 'json' in content_type or body.lstrip().startswith(b'{'):
        if not body.strip():
            return {'_form': False}
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON inválido: {e}")
        if not isinstance(data, dict):
            raise ValueError("JSON inválido: objeto esperado")
        data['_form'] = False
        return data

    if request.method == 'POST':
        form = request.POST
    else:
        form = QueryDict(body, encoding=request.encoding)

    data = {key: form.get(key) for key in form.keys()}
    data['_form'] = True
    return data


def _ativo_informado(data: Dict[str, Any], default: Optional[bool]) -> Optional[bool]:
    # Formulário: checkbox desmarcado não é enviado, logo ausente = False
    for campo in ('ativo', 'active'):
        if data.get(campo) is not None:
            return parse_bool(data[campo])
    if data.get('_form'):
        return False
    return default


# =============================================================================
# Base API View
# =============================================================================

@method_decorator(csrf_exempt, name='dispatch')
class BaseAPIView(View):
    """
    View base para APIs JSON.

    Fornece:
    - Parsing de JSON/formulário
    - Acesso ao container DI
    - Tratamento de erros padronizado
    """

    def get_container(self):
        return get_container()

    def get_service(self, service_name: str):
        """Obtém service do container pelo nome do provider."""
        return getattr(self.get_container(), service_name)()

    def parse_body(self, request: HttpRequest) -> Dict:
        return parse_request_body(request)

    def handle_exception(self, e: Exception) -> JsonResponse:
        """
        Converte exceções em respostas JSON.

        ValidationError -> 400, EntityNotFoundError -> 404,
        BusinessRuleViolationError -> 422, RepositoryError e
        inesperados -> 500 (mensagem genérica, causa no log).
        """
        if isinstance(e, ValidationError):
            return json_response(
                success=False,
                error=e.message,
                status=400,
                meta={'code': e.code, 'field': e.field}
            )

        if isinstance(e, EntityNotFoundError):
            return json_response(
                success=False,
                error=e.message,
                status=404,
                meta={'code': e.code}
            )

        if isinstance(e, BusinessRuleViolationError):
            return json_response(
                success=False,
                error=e.message,
                status=422,
                meta={'code': e.code, 'rule': e.rule}
            )

        if isinstance(e, RepositoryError):
            logger.error(f"Erro de persistência na API: {e}", exc_info=e.__cause__ or e)
            return json_response(
                success=False,
                error=ERRO_INTERNO,
                status=500,
                meta={'code': e.code}
            )

        if isinstance(e, DomainException):
            return json_response(
                success=False,
                error=e.message,
                status=400,
                meta={'code': e.code}
            )

        if isinstance(e, ValueError):
            return json_response(
                success=False,
                error=str(e),
                status=400,
                meta={'code': 'BAD_REQUEST'}
            )

        logger.exception(f"Erro inesperado na API: {e}")
        return json_response(
            success=False,
            error=ERRO_INTERNO,
            status=500
        )


# =============================================================================
# Exame API Views
# =============================================================================

class ExameAPIListView(BaseAPIView):
    """
    GET /exames/  - Lista exames
    POST /exames/ - Cria exame
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            exames = self.get_service('listar_exames_service').execute(
                tipo=request.GET.get('tipo') or None
            )
            return json_response(
                success=True,
                data=[e.to_dict() for e in exames],
                total=len(exames),
            )
        except Exception as e:
            return self.handle_exception(e)

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Cria novo exame.

        Body:
        {
            "codigo": "string (obrigatório)",
            "nome": "string (obrigatório)",
            "descricao": "string",
            "preco": "decimal > 0 (exame base)",
            "tipo": "BASE|PERSONALIZADO (ou Exame|ExamePersonalizado)",
            "ativo": true,
            "exame_base_id": 1 (obrigatório para personalizado)
        }

        Formulários também podem enviar `type` e `active` no lugar de
        `tipo` e `ativo`.
        """
        try:
            data = self.parse_body(request)

            input_dto = CriarExameInputDTO(
                codigo=data.get('codigo') or '',
                nome=data.get('nome') or '',
                preco=data.get('preco'),
                tipo=data.get('tipo') or data.get('type') or 'BASE',
                descricao=data.get('descricao') or '',
                ativo=_ativo_informado(data, default=True),
                exame_base_id=data.get('exame_base_id'),
            )

            output = self.get_service('criar_exame_service').execute(input_dto)

            logger.info(f"API: Exame criado: {output.id}")

            return json_response(
                success=True,
                status=201,
                id=output.id,
                message="Exame criado com sucesso",
            )
        except Exception as e:
            return self.handle_exception(e)


class ExameAPIDetailView(BaseAPIView):
    """
    GET /exames/<id>/          - Obter exame
    PUT|PATCH /exames/<id>/    - Atualizar exame
    DELETE /exames/<id>/       - Excluir exame
    """

    def get(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            exame = self.get_service('obter_exame_service').execute(pk)
            return json_response(success=True, data=exame.to_dict())
        except Exception as e:
            return self.handle_exception(e)

    def put(self, request: HttpRequest, pk: int) -> JsonResponse:
        """
        Atualiza exame. Tipo não é alterável; campos opcionais ausentes
        mantêm o valor atual.
        """
        try:
            data = self.parse_body(request)

            input_dto = AtualizarExameInputDTO(
                exame_id=pk,
                codigo=data.get('codigo') or '',
                nome=data.get('nome') or '',
                descricao=data.get('descricao'),
                preco=data.get('preco') if data.get('preco') != '' else None,
                ativo=_ativo_informado(data, default=None),
                exame_base_id=data.get('exame_base_id'),
            )

            self.get_service('atualizar_exame_service').execute(input_dto)

            logger.info(f"API: Exame atualizado: {pk}")

            return json_response(success=True, message="Exame atualizado com sucesso")
        except Exception as e:
            return self.handle_exception(e)

    def patch(self, request: HttpRequest, pk: int) -> JsonResponse:
        return self.put(request, pk)

    def delete(self, request: HttpRequest, pk: int) -> JsonResponse:
        try:
            self.get_service('excluir_exame_service').execute(pk)

            logger.info(f"API: Exame excluído: {pk}")

            return json_response(success=True, message="Exame excluído com sucesso")
        except Exception as e:
            return self.handle_exception(e)


class ExameAPIBasesView(BaseAPIView):
    """GET /exames/bases/ - Exames base ativos, ordenados por nome."""

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            bases = self.get_service('listar_exames_base_service').execute()
            return json_response(
                success=True,
                data=[b.to_dict() for b in bases],
                total=len(bases),
            )
        except Exception as e:
            return self.handle_exception(e)


class ExameAPIEstatisticasView(BaseAPIView):
    """GET /exames/estatisticas/ - Totais por tipo."""

    def get(self, request: HttpRequest) -> JsonResponse:
        try:
            estatisticas = self.get_service('contar_exames_service').execute()
            return json_response(success=True, data=estatisticas.to_dict())
        except Exception as e:
            return self.handle_exception(e)


class HealthAPIView(View):
    """GET /health/ - Saúde do serviço e da conexão com o banco."""

    def get(self, request: HttpRequest) -> JsonResponse:
        info = check_database_connection()
        healthy = info['healthy']

        return JsonResponse(
            {
                'status': 'ok' if healthy else 'error',
                'message': 'Servidor funcionando' if healthy else 'Banco de dados indisponível',
                'database': 'connected' if healthy else 'disconnected',
                'engine': info['engine'],
                'timestamp': datetime.now(timezone.utc).isoformat(),
            },
            status=200 if healthy else 503,
        )

"""
Event Handlers - Processadores de Eventos de Domínio.

Handlers são executados via Celery quando o publisher está em modo
"celery". Recebem o evento serializado por DomainEvent.to_dict():

    {
        "event_id": ..., "event_type": ..., "aggregate_id": ...,
        "occurred_at": ..., "version": ..., "data": {...}
    }

Tipos de tarefas:
- Handlers de eventos do cadastro (criação, propagação de preço, ...)
- Métricas
- Tarefas agendadas (reconciliação de preços, relatório de totais)

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        ...
"""

import logging
from typing import Any, Dict

from celery import shared_task

logger = logging.getLogger(__name__)


# =============================================================================
# Event Handlers - Exames
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_exame_criado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para ExameCriadoEvent.

    Ações:
    - Registrar métrica de cadastro por tipo
    """
    exame_id = event_data.get('aggregate_id')
    data = event_data.get('data', {})

    logger.info(
        f"[HANDLER] ExameCriado: {exame_id} | "
        f"Código: {data.get('codigo')} | Tipo: {data.get('tipo')}"
    )

    record_metric.delay(
        metric_name='exames_criados',
        value=1,
        tags={'tipo': data.get('tipo', '')},
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_preco_propagado(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para PrecoPropagadoEvent.

    Ações:
    - Registrar quantos personalizados receberam o novo preço
    """
    exame_id = event_data.get('aggregate_id')
    data = event_data.get('data', {})
    filhos = data.get('filhos_atualizados', 0)

    logger.info(
        f"[HANDLER] PrecoPropagado: base {exame_id} | "
        f"{data.get('preco_anterior') or '?'} -> {data.get('preco_novo')} | "
        f"{filhos} personalizado(s)"
    )

    record_metric.delay(
        metric_name='precos_propagados',
        value=filhos,
        tags={'exame_base_id': str(exame_id)},
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_exame_desativado(self, event_data: Dict[str, Any]) -> None:
    """Handler para ExameDesativadoEvent."""
    data = event_data.get('data', {})
    logger.info(
        f"[HANDLER] ExameDesativado: {event_data.get('aggregate_id')} | "
        f"{data.get('filhos_desativados', 0)} personalizado(s) desativado(s)"
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_exame_excluido(self, event_data: Dict[str, Any]) -> None:
    """
    Handler para ExameExcluidoEvent.

    Ações:
    - Registrar métrica de exclusão (exame + filhos em cascata)
    """
    data = event_data.get('data', {})
    filhos = data.get('filhos_excluidos', 0)

    logger.info(
        f"[HANDLER] ExameExcluido: {event_data.get('aggregate_id')} | "
        f"Código: {data.get('codigo')} | Filhos: {filhos}"
    )

    record_metric.delay(
        metric_name='exames_excluidos',
        value=1 + filhos,
        tags={'tipo': data.get('tipo', '')},
    )


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

EVENT_HANDLERS = {
    'ExameCriadoEvent': handle_exame_criado,
    'PrecoPropagadoEvent': handle_preco_propagado,
    'ExameDesativadoEvent': handle_exame_desativado,
    'ExameExcluidoEvent': handle_exame_excluido,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Eventos sem handler (ex: ExameAtualizadoEvent) são apenas logados.
    """
    handler = EVENT_HANDLERS.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Roteando {event_type} para handler")
        handler.delay(event_data)
    else:
        logger.debug(f"[DISPATCHER] Nenhum handler para {event_type}")


# =============================================================================
# Metric Tasks
# =============================================================================

@shared_task(bind=True, ignore_result=True)
def record_metric(
    self,
    metric_name: str,
    value: float,
    tags: Dict[str, str] = None
) -> None:
    """Registra métrica no log estruturado."""
    logger.info(f"[METRIC] {metric_name}={value} | tags={tags or {}}")


# =============================================================================
# Scheduled Tasks (Beat)
# =============================================================================

@shared_task(bind=True)
def reconciliar_precos_personalizados(self) -> int:
    """
    Realinha preços de personalizados divergentes do exame base.

    Executada periodicamente pelo Celery Beat.

    Returns:
        Número de personalizados corrigidos
    """
    from src.config.container import get_container

    logger.info("[SCHEDULED] Reconciliando preços de exames personalizados...")

    corrigidos = get_container().reconciliar_precos_service().execute()

    logger.info(f"[SCHEDULED] {corrigidos} exame(s) personalizado(s) corrigido(s)")
    if corrigidos:
        record_metric.delay(
            metric_name='precos_reconciliados',
            value=corrigidos,
            tags={},
        )
    return corrigidos


@shared_task(bind=True)
def gerar_relatorio_exames(self) -> Dict[str, Any]:
    """
    Gera relatório diário com os totais do cadastro.

    Returns:
        Totais por tipo
    """
    from src.config.container import get_container

    estatisticas = get_container().contar_exames_service().execute().to_dict()
    logger.info(f"[SCHEDULED] Relatório de exames: {estatisticas}")
    return estatisticas

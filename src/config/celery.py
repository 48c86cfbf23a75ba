"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events do cadastro (EVENT_PUBLISHER_MODE=celery)
- Reconciliação periódica de preços dos exames personalizados
- Relatório diário de totais

Uso:
    # Iniciar worker
    celery -A src.config.celery worker -l INFO -Q default,events,maintenance

    # Iniciar beat (tarefas agendadas)
    celery -A src.config.celery beat -l INFO
"""

import os

from celery import Celery
from celery.schedules import crontab
from kombu import Queue, Exchange

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

app = Celery('exames')

# Carrega CELERY_* do settings do Django
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    timezone='America/Sao_Paulo',
    enable_utc=True,

    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    task_default_queue='default',
    task_default_retry_delay=60,
    result_expires=3600,
)

app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
    Queue('maintenance', Exchange('maintenance'), routing_key='maintenance.#'),
)

_HANDLERS = 'src.adapters.django_app.events.handlers'

app.conf.task_routes = {
    f'{_HANDLERS}.reconciliar_precos_personalizados': {'queue': 'maintenance'},
    f'{_HANDLERS}.gerar_relatorio_exames': {'queue': 'maintenance'},
    f'{_HANDLERS}.*': {'queue': 'events'},
}

app.autodiscover_tasks(['src.adapters.django_app.events'], related_name='handlers')

app.conf.beat_schedule = {
    'reconciliar-precos-personalizados': {
        'task': f'{_HANDLERS}.reconciliar_precos_personalizados',
        'schedule': float(os.environ.get('RECONCILIACAO_INTERVALO_SEGUNDOS', 3600)),
    },
    'relatorio-diario-exames': {
        'task': f'{_HANDLERS}.gerar_relatorio_exames',
        'schedule': crontab(hour=8, minute=0),
    },
}

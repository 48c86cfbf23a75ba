"""
Django Settings do Cadastro de Exames.

Tudo que depende de ambiente vem de variáveis (arquivo .env lido
pelo python-dotenv). Sem .env, sobe com SQLite local, publisher de
eventos síncrono e Redis local para o Celery.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from src.adapters.django_app.shared.database import DatabaseConfig

load_dotenv()


def _env_bool(nome: str, padrao: str = 'false') -> bool:
    return os.getenv(nome, padrao).strip().lower() in ('true', '1', 'yes', 'sim')


def _env_list(nome: str, padrao: str) -> list:
    return [item.strip() for item in os.getenv(nome, padrao).split(',') if item.strip()]


# Raiz do repositório (src/config/settings.py -> ../../..)
BASE_DIR = Path(__file__).resolve().parents[2]

# =============================================================================
# Segurança / Execução
# =============================================================================

SECRET_KEY = os.getenv('SECRET_KEY', 'exames-dev-secret-nao-usar-em-producao')

DEBUG = _env_bool('DEBUG', 'true')

ALLOWED_HOSTS = _env_list('ALLOWED_HOSTS', 'localhost,127.0.0.1,[::1]')

# =============================================================================
# Apps e Middleware
# =============================================================================

# API JSON sem admin, sessão ou autenticação
INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',
    'src.adapters.django_app.exames.apps.ExamesConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'src.config.urls'
WSGI_APPLICATION = 'src.config.wsgi.application'

# =============================================================================
# Banco de Dados
# =============================================================================

# DATABASE_URL > DB_HOST/POSTGRES_* > SQLite em BASE_DIR/db.sqlite3
DATABASES = {
    'default': DatabaseConfig.from_env(
        sqlite_path=BASE_DIR / 'db.sqlite3'
    ).to_django_config(),
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# =============================================================================
# Localização
# =============================================================================

LANGUAGE_CODE = 'pt-br'
TIME_ZONE = os.getenv('TIME_ZONE', 'America/Sao_Paulo')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

# =============================================================================
# Logging
# =============================================================================

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
APP_LOG_LEVEL = 'DEBUG' if DEBUG else LOG_LEVEL

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'detalhado': {
            'format': '{asctime} [{levelname}] {name} pid={process:d}: {message}',
            'style': '{',
        },
        'curto': {
            'format': '[{levelname}] {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'curto' if DEBUG else 'detalhado',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        # Use cases (cascatas, reconciliação)
        'src.core': {
            'handlers': ['console'],
            'level': APP_LOG_LEVEL,
            'propagate': False,
        },
        # Repositórios, UoW, API, eventos e tarefas Celery
        'src.adapters': {
            'handlers': ['console'],
            'level': APP_LOG_LEVEL,
            'propagate': False,
        },
    },
}

# =============================================================================
# Eventos de domínio / Celery
# =============================================================================

# 'sync': eventos apenas logados no processo web
# 'celery': eventos despachados para os workers
EVENT_PUBLISHER_MODE = os.getenv('EVENT_PUBLISHER_MODE', 'sync')

REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')

CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', f'{REDIS_URL}/0')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', f'{REDIS_URL}/1')

# Periodicidade da reconciliação de preços dos personalizados (beat)
RECONCILIACAO_INTERVALO_SEGUNDOS = int(
    os.getenv('RECONCILIACAO_INTERVALO_SEGUNDOS', '3600')
)

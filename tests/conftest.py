"""
Configurações globais do Pytest para o Cadastro de Exames.

Este arquivo é carregado automaticamente pelo pytest e:
- Configura o Django (SQLite em memória) antes da coleta
- Fornece fixtures compartilhadas (repositório, UoW e publisher em memória)
"""

import pytest


def pytest_configure(config):
    """Configura Django antes dos testes."""
    import django
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY='test-secret-key',
            DATABASES={
                'default': {
                    'ENGINE': 'django.db.backends.sqlite3',
                    'NAME': ':memory:',
                }
            },
            INSTALLED_APPS=[
                'django.contrib.contenttypes',
                'src.adapters.django_app.exames.apps.ExamesConfig',
            ],
            ROOT_URLCONF='src.config.urls',
            MIDDLEWARE=[
                'django.middleware.common.CommonMiddleware',
            ],
            ALLOWED_HOSTS=['testserver', 'localhost'],
            DEFAULT_AUTO_FIELD='django.db.models.BigAutoField',
            USE_TZ=True,
            TIME_ZONE='America/Sao_Paulo',
            EVENT_PUBLISHER_MODE='sync',
            CELERY_BROKER_URL='memory://',
            CELERY_RESULT_BACKEND='cache+memory://',
            CELERY_TASK_ALWAYS_EAGER=False,
        )
        django.setup()

    config.addinivalue_line(
        "markers", "integration: testes que usam o banco de dados"
    )


# =============================================================================
# Fixtures em memória (core)
# =============================================================================

@pytest.fixture
def exame_repo():
    """Repositório em memória para testes unitários."""
    from src.core.exames.ports import InMemoryExameRepository
    return InMemoryExameRepository()


@pytest.fixture
def event_publisher():
    from src.adapters.django_app.events.publishers import InMemoryEventPublisher
    return InMemoryEventPublisher()


@pytest.fixture
def uow(exame_repo, event_publisher):
    """Unit of Work em memória com rollback real sobre o repositório."""
    from src.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
    return InMemoryUnitOfWork(repository=exame_repo, event_publisher=event_publisher)


@pytest.fixture
def testing_container():
    from src.config.container import create_testing_container
    return create_testing_container()


@pytest.fixture(autouse=True)
def reset_global_container():
    """Cada teste começa com um container global novo."""
    yield
    from src.config.container import reset_container
    reset_container()

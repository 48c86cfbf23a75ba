"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção.

Padrões:
- Singleton: Uma instância para toda app (repositório, publisher)
- Factory: Nova instância por chamada (UoW, use cases)

Os adapters Django são importados sob demanda, para que o container
possa ser importado antes de django.setup().
"""

from importlib import import_module
from typing import Optional

from dependency_injector import containers, providers


def _lazy(module_path: str, name: str):
    """Callable que importa `module_path.name` somente quando invocado."""

    def factory(*args, **kwargs):
        return getattr(import_module(module_path), name)(*args, **kwargs)

    factory.__qualname__ = f"lazy[{module_path}.{name}]"
    return factory


def _publisher_from_settings():
    from django.conf import settings

    get_event_publisher = getattr(
        import_module('src.adapters.django_app.events.publishers'),
        'get_event_publisher',
    )
    return get_event_publisher(getattr(settings, 'EVENT_PUBLISHER_MODE', 'sync'))


_USE_CASES = 'src.core.exames.use_cases'


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Infrastructure: publisher de eventos
    - Repositories: Persistência
    - Unit of Work: Transações
    - Services: Use Cases

    Example:
        container = get_container()
        service = container.criar_exame_service()
        output = service.execute(input_dto)
    """

    # =========================================================================
    # Infrastructure
    # =========================================================================

    event_publisher = providers.Singleton(_publisher_from_settings)

    # =========================================================================
    # Repositories
    # =========================================================================

    exame_repository = providers.Singleton(
        _lazy('src.adapters.django_app.exames.repositories', 'DjangoExameRepository')
    )

    # =========================================================================
    # Unit of Work (nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Factory(
        _lazy('src.adapters.django_app.shared.unit_of_work', 'DjangoUnitOfWork'),
        event_publisher=event_publisher,
    )

    # =========================================================================
    # Services / Use Cases - escrita
    # =========================================================================

    criar_exame_service = providers.Factory(
        _lazy(_USE_CASES, 'CriarExameService'),
        exame_repo=exame_repository,
        uow=unit_of_work,
    )

    atualizar_exame_service = providers.Factory(
        _lazy(_USE_CASES, 'AtualizarExameService'),
        exame_repo=exame_repository,
        uow=unit_of_work,
    )

    excluir_exame_service = providers.Factory(
        _lazy(_USE_CASES, 'ExcluirExameService'),
        exame_repo=exame_repository,
        uow=unit_of_work,
    )

    reconciliar_precos_service = providers.Factory(
        _lazy(_USE_CASES, 'ReconciliarPrecosService'),
        exame_repo=exame_repository,
        uow=unit_of_work,
    )

    # =========================================================================
    # Services / Use Cases - leitura (sem UoW)
    # =========================================================================

    listar_exames_service = providers.Factory(
        _lazy(_USE_CASES, 'ListarExamesService'),
        exame_repo=exame_repository,
    )

    obter_exame_service = providers.Factory(
        _lazy(_USE_CASES, 'ObterExameService'),
        exame_repo=exame_repository,
    )

    listar_exames_base_service = providers.Factory(
        _lazy(_USE_CASES, 'ListarExamesBaseService'),
        exame_repo=exame_repository,
    )

    contar_exames_service = providers.Factory(
        _lazy(_USE_CASES, 'ContarExamesService'),
        exame_repo=exame_repository,
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """Retorna instância global do container (criada sob demanda)."""
    global _container

    if _container is None:
        _container = Container()

    return _container


def reset_container() -> None:
    """Descarta o container global (para testes)."""
    global _container
    _container = None


# =============================================================================
# Testing Container
# =============================================================================

def create_testing_container() -> Container:
    """
    Container com implementações em memória.

    O UoW recebe o repositório em memória, então rollback desfaz as
    escritas de verdade; o publisher guarda os eventos publicados.

    Example:
        container = create_testing_container()
        container.criar_exame_service().execute(dto)
        assert container.event_publisher().published_events
    """
    container = Container()

    container.exame_repository.override(
        providers.Singleton(_lazy('src.core.exames.ports', 'InMemoryExameRepository'))
    )
    container.event_publisher.override(
        providers.Singleton(
            _lazy('src.adapters.django_app.events.publishers', 'InMemoryEventPublisher')
        )
    )
    container.unit_of_work.override(
        providers.Factory(
            _lazy('src.adapters.django_app.shared.unit_of_work', 'InMemoryUnitOfWork'),
            repository=container.exame_repository,
            event_publisher=container.event_publisher,
        )
    )
    return container

#!/usr/bin/env python
"""
Prepara um ambiente local do cadastro de exames.

Passos: configura o Django, testa a conexão, aplica as migrations e,
opcionalmente, cadastra exames de exemplo pelos próprios use cases
(o preço dos personalizados vem do exame base, como na API).

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
    python scripts/quick_setup.py --sqlite --with-sample-data
"""

import os
import sys
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


SAMPLE_BASES = [
    {'codigo': 'HEM001', 'nome': 'Hemograma Completo', 'preco': '50.00',
     'descricao': 'Contagem de células sanguíneas'},
    {'codigo': 'GLI001', 'nome': 'Glicemia de Jejum', 'preco': '25.00',
     'descricao': 'Dosagem de glicose'},
    {'codigo': 'TSH001', 'nome': 'TSH Ultrassensível', 'preco': '80.00',
     'descricao': 'Hormônio tireoestimulante'},
]

SAMPLE_PERSONALIZADOS = [
    {'codigo': 'HEM001-P', 'nome': 'Hemograma Premium', 'base': 'HEM001',
     'descricao': 'Hemograma com laudo prioritário'},
    {'codigo': 'HEM001-D', 'nome': 'Hemograma Domiciliar', 'base': 'HEM001',
     'descricao': 'Coleta em domicílio'},
    {'codigo': 'GLI001-D', 'nome': 'Glicemia Domiciliar', 'base': 'GLI001',
     'descricao': 'Coleta em domicílio'},
]


def setup_django(force_sqlite: bool = False):
    """Inicializa o Django fora do runserver."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

    if force_sqlite:
        os.environ['DATABASE_URL'] = 'sqlite:///db.sqlite3'

    import django
    django.setup()


def run_migrations():
    from django.core.management import call_command

    print("📦 Aplicando migrations do app exames...")
    call_command("migrate", verbosity=1)
    print("✅ Banco atualizado")


def create_sample_data(container) -> dict:
    """
    Cria exames base e personalizados de exemplo.

    Exames cujo código já existe são ignorados, então o script pode
    ser executado mais de uma vez.

    Args:
        container: Container DI (produção ou create_testing_container())

    Returns:
        Mapa código -> id dos exames criados nesta execução
    """
    from src.core.exames.dtos import CriarExameInputDTO
    from src.core.shared.exceptions import ValidationError

    criados = {}
    repo = container.exame_repository()

    print("📝 Criando exames de exemplo...")

    for dados in SAMPLE_BASES:
        if repo.get_by_codigo(dados['codigo']) is not None:
            continue
        output = container.criar_exame_service().execute(
            CriarExameInputDTO(tipo='BASE', **dados)
        )
        criados[output.codigo] = output.id
        print(f"   ✓ {output.codigo} - {output.nome} (R$ {output.preco})")

    for dados in SAMPLE_PERSONALIZADOS:
        if repo.get_by_codigo(dados['codigo']) is not None:
            continue
        base = repo.get_by_codigo(dados['base'])
        if base is None:
            continue
        try:
            output = container.criar_exame_service().execute(
                CriarExameInputDTO(
                    codigo=dados['codigo'],
                    nome=dados['nome'],
                    descricao=dados['descricao'],
                    tipo='PERSONALIZADO',
                    exame_base_id=base.id,
                )
            )
        except ValidationError as e:
            print(f"   ✗ {dados['codigo']}: {e.message}")
            continue
        criados[output.codigo] = output.id
        print(f"   ✓ {output.codigo} - {output.nome} (herda R$ {output.preco})")

    print(f"✅ {len(criados)} exames criados!")
    return criados


def check_connection() -> bool:
    """Verifica conexão com o banco."""
    from src.adapters.django_app.shared.database import check_database_connection

    print("🔍 Verificando conexão com o banco...")

    info = check_database_connection()
    if info['healthy']:
        print(f"✅ Conexão OK! ({info['engine']})")
    else:
        print("❌ Erro de conexão")
    return info['healthy']


def show_info():
    """Resumo do ambiente e endpoints disponíveis."""
    from django.conf import settings

    banco = settings.DATABASES['default']
    linha = "-" * 60

    print(f"\n{linha}\n📊 Ambiente configurado\n{linha}")
    for rotulo, valor in (
        ("Engine", banco['ENGINE'].rsplit('.', 1)[-1]),
        ("Banco", banco['NAME']),
        ("DEBUG", settings.DEBUG),
        ("Eventos", settings.EVENT_PUBLISHER_MODE),
    ):
        print(f"  {rotulo:<8} {valor}")
    print(linha)
    print("\n🚀 Para subir a API: python manage.py runserver")
    for rota in ("/exames/", "/exames/bases/", "/exames/estatisticas/", "/health/"):
        print(f"   http://localhost:8000{rota}")
    print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Prepara o banco local do cadastro de exames'
    )
    parser.add_argument('--with-sample-data', action='store_true',
                        help='Cadastra exames base e personalizados de exemplo')
    parser.add_argument('--check-only', action='store_true',
                        help='Só testa a conexão com o banco')
    parser.add_argument('--sqlite', action='store_true',
                        help='Ignora o ambiente e usa db.sqlite3 local')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    print("\n🔧 Cadastro de Exames - setup local\n")

    setup_django(force_sqlite=args.sqlite)

    conectado = check_connection()
    if args.check_only:
        return
    if not conectado:
        print("\n⚠️  Banco indisponível. Suba o PostgreSQL ou rode com --sqlite.")
        return

    run_migrations()

    if args.with_sample_data:
        from src.config.container import get_container
        create_sample_data(get_container())

    show_info()


if __name__ == '__main__':
    main()

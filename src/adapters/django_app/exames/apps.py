"""
Configuração do Django App para Exames.
"""

from django.apps import AppConfig


class ExamesConfig(AppConfig):
    """Configuração do app Exames."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'src.adapters.django_app.exames'
    label = 'exames'
    verbose_name = 'Cadastro de Exames'

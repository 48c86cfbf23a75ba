"""
URL Configuration para o Cadastro de Exames.

Estrutura:
- /exames/ - API JSON de exames
- /health/ - Health check (serviço + banco)
"""

from django.urls import path, include

from src.adapters.django_app.exames.api_views import HealthAPIView

urlpatterns = [
    path('exames/', include('src.adapters.django_app.exames.urls')),
    path('health/', HealthAPIView.as_view(), name='health'),
]

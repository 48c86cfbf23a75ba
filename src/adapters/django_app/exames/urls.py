"""
URL patterns para o domínio de Exames (API JSON).

- GET/POST /exames/
- GET /exames/bases/
- GET /exames/estatisticas/
- GET/PUT/PATCH/DELETE /exames/<id>/
"""

from django.urls import path

from . import api_views

app_name = 'exames'

urlpatterns = [
    path('', api_views.ExameAPIListView.as_view(), name='list'),

    # Antes do <pk> para não conflitar
    path('bases/', api_views.ExameAPIBasesView.as_view(), name='bases'),
    path('estatisticas/', api_views.ExameAPIEstatisticasView.as_view(), name='estatisticas'),

    path('<int:pk>/', api_views.ExameAPIDetailView.as_view(), name='detail'),
]

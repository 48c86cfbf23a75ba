"""
Testes para a API JSON do domínio de Exames.

Testa:
- CRUD via HTTP com JSON e com formulário
- Mapeamento de erros para status HTTP (400, 404, 500)
- Cascatas observadas pela API
- Health check
"""

import json
from urllib.parse import urlencode
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.test import Client

from src.core.shared.exceptions import RepositoryError


pytestmark = pytest.mark.django_db


# =============================================================================
# Fixtures / Helpers
# =============================================================================

@pytest.fixture
def api():
    return Client()


def post_json(api, url, payload):
    return api.post(url, data=json.dumps(payload), content_type="application/json")


def put_json(api, url, payload):
    return api.put(url, data=json.dumps(payload), content_type="application/json")


def put_form(api, url, payload):
    return api.put(
        url,
        data=urlencode(payload),
        content_type="application/x-www-form-urlencoded",
    )


@pytest.fixture
def base_id(api):
    response = post_json(api, "/exames/", {
        "codigo": "B1", "nome": "Base 1", "preco": "50.00", "tipo": "BASE",
    })
    return response.json()["id"]


@pytest.fixture
def filho_id(api, base_id):
    response = post_json(api, "/exames/", {
        "codigo": "P1", "nome": "Personalizado 1", "tipo": "PERSONALIZADO",
        "exame_base_id": base_id,
    })
    return response.json()["id"]


def obter(api, exame_id):
    return api.get(f"/exames/{exame_id}/")


# =============================================================================
# Criar
# =============================================================================

class TestCriarExameAPI:

    def test_criar_base_json(self, api):
        response = post_json(api, "/exames/", {
            "codigo": "HEM001", "nome": "Hemograma", "preco": 50, "descricao": "CBC",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Exame criado com sucesso"

        data = obter(api, body["id"]).json()["data"]
        assert data["preco"] == "50.00"
        assert data["tipo"] == "Exame"
        assert data["ativo"] is True

    def test_criar_via_formulario_checkbox_ausente_fica_inativo(self, api):
        response = api.post("/exames/", {
            "codigo": "HEM001", "nome": "Hemograma", "preco": "50,00", "tipo": "Exame",
        })

        assert response.status_code == 201
        data = obter(api, response.json()["id"]).json()["data"]
        assert data["ativo"] is False
        assert data["preco"] == "50.00"

    def test_criar_via_formulario_checkbox_marcado(self, api):
        response = api.post("/exames/", {
            "codigo": "HEM001", "nome": "Hemograma", "preco": "50", "ativo": "on",
        })

        data = obter(api, response.json()["id"]).json()["data"]
        assert data["ativo"] is True

    def test_criar_via_formulario_com_type_e_active(self, api, base_id):
        response = api.post("/exames/", {
            "codigo": "P1", "nome": "Personalizado 1", "type": "ExamePersonalizado",
            "exame_base_id": str(base_id), "active": "on", "preco": "10",
        })

        assert response.status_code == 201
        data = obter(api, response.json()["id"]).json()["data"]
        assert data["tipo"] == "ExamePersonalizado"
        assert data["exame_base_id"] == base_id
        assert data["preco"] == "50.00"
        assert data["ativo"] is True

    def test_criar_descricao_numerica(self, api):
        response = post_json(api, "/exames/", {
            "codigo": "X", "nome": "X", "preco": "1", "descricao": 7,
        })

        assert response.status_code == 201
        assert obter(api, response.json()["id"]).json()["data"]["descricao"] == "7"

    def test_criar_descricao_invalida(self, api):
        response = post_json(api, "/exames/", {
            "codigo": "X", "nome": "X", "preco": "1", "descricao": {"texto": "a"},
        })

        assert response.status_code == 400
        assert response.json()["meta"] == {"code": "DESCRICAO_INVALIDA", "field": "descricao"}

    def test_criar_personalizado_herda_preco(self, api, base_id, filho_id):
        data = obter(api, filho_id).json()["data"]

        assert data["preco"] == "50.00"
        assert data["tipo"] == "ExamePersonalizado"
        assert data["exame_base_id"] == base_id

    def test_codigo_obrigatorio(self, api):
        response = post_json(api, "/exames/", {"codigo": "  ", "nome": "X", "preco": "1"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Código é obrigatório"
        assert body["meta"] == {"code": "CODIGO_OBRIGATORIO", "field": "codigo"}

    def test_preco_invalido(self, api):
        response = post_json(api, "/exames/", {"codigo": "X", "nome": "X", "preco": "0"})

        assert response.status_code == 400
        assert response.json()["meta"]["code"] == "PRECO_INVALIDO"

    def test_personalizado_sem_pai(self, api):
        response = post_json(api, "/exames/", {
            "codigo": "P", "nome": "P", "tipo": "PERSONALIZADO",
        })

        assert response.status_code == 400
        assert response.json()["meta"]["code"] == "EXAME_BASE_OBRIGATORIO"

    def test_codigo_duplicado(self, api, base_id):
        response = post_json(api, "/exames/", {"codigo": "B1", "nome": "Outro", "preco": "1"})

        assert response.status_code == 400
        assert response.json()["error"] == "Código já existe"

    def test_json_invalido(self, api):
        response = api.post("/exames/", data="{nao e json", content_type="application/json")

        assert response.status_code == 400
        assert response.json()["meta"]["code"] == "BAD_REQUEST"

    def test_erro_de_banco_retorna_500_generico(self, api):
        with patch(
            "src.adapters.django_app.exames.models.ExameModel.save",
            side_effect=DatabaseError("disk I/O error"),
        ):
            response = post_json(api, "/exames/", {"codigo": "X", "nome": "X", "preco": "1"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Erro interno do servidor"
        assert body["meta"]["code"] == RepositoryError().code
        assert "disk" not in json.dumps(body)


# =============================================================================
# Listar / Obter
# =============================================================================

class TestLeituraAPI:

    def test_listar(self, api, base_id, filho_id):
        response = api.get("/exames/")

        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 2
        assert [e["id"] for e in body["data"]] == [filho_id, base_id]

    def test_listar_filtrando_tipo(self, api, base_id, filho_id):
        body = api.get("/exames/", {"tipo": "BASE"}).json()

        assert [e["id"] for e in body["data"]] == [base_id]

    def test_listar_vazio(self, api):
        body = api.get("/exames/").json()
        assert body == {"success": True, "data": [], "total": 0}

    def test_obter_inexistente(self, api):
        response = obter(api, 999)

        assert response.status_code == 404
        assert response.json()["error"] == "Exame não encontrado"

    def test_bases(self, api, base_id, filho_id):
        body = api.get("/exames/bases/").json()

        assert body["total"] == 1
        assert body["data"] == [
            {"id": base_id, "codigo": "B1", "nome": "Base 1", "preco": "50.00"}
        ]

    def test_estatisticas(self, api, base_id, filho_id):
        body = api.get("/exames/estatisticas/").json()

        assert body["data"] == {"total": 2, "base": 1, "personalizado": 1}


# =============================================================================
# Atualizar / Excluir (cascatas)
# =============================================================================

class TestAtualizarExcluirAPI:

    def test_alterar_preco_do_base_propaga(self, api, base_id, filho_id):
        response = put_json(api, f"/exames/{base_id}/", {
            "codigo": "B1", "nome": "Base 1", "preco": "75.00",
        })

        assert response.status_code == 200
        assert response.json()["message"] == "Exame atualizado com sucesso"
        assert obter(api, filho_id).json()["data"]["preco"] == "75.00"

    def test_patch_mantem_campos_ausentes(self, api, base_id):
        put_json(api, f"/exames/{base_id}/", {"codigo": "B1", "nome": "Base 1",
                                              "descricao": "texto"})

        response = api.patch(
            f"/exames/{base_id}/",
            data=json.dumps({"codigo": "B1", "nome": "Base Um"}),
            content_type="application/json",
        )

        assert response.status_code == 200
        data = obter(api, base_id).json()["data"]
        assert data["nome"] == "Base Um"
        assert data["descricao"] == "texto"
        assert data["ativo"] is True
        assert data["preco"] == "50.00"

    def test_formulario_sem_ativo_desativa_em_cascata(self, api, base_id, filho_id):
        response = put_form(api, f"/exames/{base_id}/", {
            "codigo": "B1", "nome": "Base 1", "preco": "50.00",
        })

        assert response.status_code == 200
        assert obter(api, base_id).json()["data"]["ativo"] is False
        assert obter(api, filho_id).json()["data"]["ativo"] is False

    def test_reativar_nao_cascateia(self, api, base_id, filho_id):
        put_json(api, f"/exames/{base_id}/", {"codigo": "B1", "nome": "Base 1", "ativo": False})
        put_json(api, f"/exames/{base_id}/", {"codigo": "B1", "nome": "Base 1", "ativo": True})

        assert obter(api, base_id).json()["data"]["ativo"] is True
        assert obter(api, filho_id).json()["data"]["ativo"] is False

    def test_atualizar_descricao_numerica(self, api, base_id):
        response = put_json(api, f"/exames/{base_id}/", {
            "codigo": "B1", "nome": "Base 1", "descricao": 5,
        })

        assert response.status_code == 200
        assert obter(api, base_id).json()["data"]["descricao"] == "5"

    def test_formulario_com_active_mantem_ativo(self, api, base_id, filho_id):
        response = put_form(api, f"/exames/{base_id}/", {
            "codigo": "B1", "nome": "Base 1", "active": "on",
        })

        assert response.status_code == 200
        assert obter(api, base_id).json()["data"]["ativo"] is True
        assert obter(api, filho_id).json()["data"]["ativo"] is True

    def test_personalizado_com_pai_invalido(self, api, base_id, filho_id):
        response = put_json(api, f"/exames/{filho_id}/", {
            "codigo": "P1", "nome": "CBC-custom", "exame_base_id": 0,
        })

        assert response.status_code == 400
        assert response.json()["meta"]["code"] == "EXAME_BASE_NAO_ENCONTRADO"
        data = obter(api, filho_id).json()["data"]
        assert data["nome"] == "Personalizado 1"
        assert data["exame_base_id"] == base_id

    def test_atualizar_inexistente(self, api):
        response = put_json(api, "/exames/999/", {"codigo": "X", "nome": "X"})
        assert response.status_code == 404

    def test_excluir_base_exclui_filhos(self, api, base_id, filho_id):
        response = api.delete(f"/exames/{base_id}/")

        assert response.status_code == 200
        assert response.json()["message"] == "Exame excluído com sucesso"
        assert obter(api, base_id).status_code == 404
        assert obter(api, filho_id).status_code == 404
        assert api.get("/exames/").json()["total"] == 0

    def test_excluir_duas_vezes(self, api, base_id):
        api.delete(f"/exames/{base_id}/")

        response = api.delete(f"/exames/{base_id}/")

        assert response.status_code == 404


# =============================================================================
# Health
# =============================================================================

class TestHealthAPI:

    def test_health_ok(self, api):
        response = api.get("/health/")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["message"] == "Servidor funcionando"
        assert body["database"] == "connected"
        assert "timestamp" in body

    def test_health_banco_indisponivel(self, api):
        with patch(
            "src.adapters.django_app.exames.api_views.check_database_connection",
            return_value={"status": "unhealthy", "engine": "sqlite", "healthy": False},
        ):
            response = api.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

"""
Configuração e saúde do banco de dados.

- DatabaseConfig monta settings.DATABASES['default'] a partir do ambiente
- check_database_connection() alimenta o endpoint /health/

Precedência de configuração:
    1. DATABASE_URL (postgresql://... ou sqlite:///...)
    2. DB_HOST com POSTGRES_USER / POSTGRES_PASSWORD / POSTGRES_DB / DB_PORT
    3. Arquivo SQLite local

Importado pelo settings.py, portanto nada do Django no topo do módulo.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import unquote, urlsplit
import logging
import os

logger = logging.getLogger(__name__)

ENGINES = {
    "postgresql": "django.db.backends.postgresql",
    "sqlite": "django.db.backends.sqlite3",
}


@dataclass
class DatabaseConfig:
    """Parâmetros de conexão independentes do formato do Django."""

    engine: str = "postgresql"
    name: str = "exames_db"
    user: str = "postgres"
    password: str = ""
    host: str = "localhost"
    port: int = 5432

    conn_max_age: int = 60
    connect_timeout: int = 10
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def sqlite(cls, path: Union[str, Path]) -> "DatabaseConfig":
        return cls(engine="sqlite", name=str(path), user="", host="", port=0)

    @classmethod
    def from_url(cls, url: str) -> "DatabaseConfig":
        """
        Interpreta DATABASE_URL.

        Aceita `postgresql://` / `postgres://` (usuário, senha, host,
        porta opcional e nome do banco) e `sqlite:///caminho`.

        Raises:
            ValueError: Esquema desconhecido ou URL incompleta
        """
        partes = urlsplit(url)

        if partes.scheme == "sqlite":
            caminho = url[len("sqlite:///"):] if url.startswith("sqlite:///") else ""
            if caminho:
                return cls.sqlite(caminho)

        elif partes.scheme in ("postgresql", "postgres"):
            nome = partes.path.lstrip("/")
            if partes.hostname and partes.username and nome:
                return cls(
                    engine="postgresql",
                    name=nome,
                    user=unquote(partes.username),
                    password=unquote(partes.password or ""),
                    host=partes.hostname,
                    port=partes.port or 5432,
                )

        raise ValueError(f"URL de banco inválida: {url}")

    @classmethod
    def from_env(cls, sqlite_path: Optional[Union[str, Path]] = None) -> "DatabaseConfig":
        """
        Lê a configuração das variáveis de ambiente (ver precedência no módulo).

        Args:
            sqlite_path: Arquivo usado quando nenhuma variável está definida
        """
        url = os.getenv("DATABASE_URL")
        if url:
            return cls.from_url(url)

        if os.getenv("DB_HOST"):
            return cls(
                engine="postgresql",
                name=os.getenv("POSTGRES_DB", "exames_db"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", ""),
                host=os.environ["DB_HOST"],
                port=int(os.getenv("DB_PORT", "5432")),
            )

        return cls.sqlite(sqlite_path or "db.sqlite3")

    def to_django_config(self) -> Dict[str, Any]:
        """Dicionário no formato de settings.DATABASES['default']."""
        if self.engine == "sqlite":
            return {"ENGINE": ENGINES["sqlite"], "NAME": self.name}

        return {
            "ENGINE": ENGINES.get(self.engine, ENGINES["postgresql"]),
            "NAME": self.name,
            "USER": self.user,
            "PASSWORD": self.password,
            "HOST": self.host,
            "PORT": str(self.port),
            "CONN_MAX_AGE": self.conn_max_age,
            "OPTIONS": {"connect_timeout": self.connect_timeout, **self.options},
        }


class DjangoDatabaseAdapter:
    """Verificação de conexão sobre django.db.connections."""

    def __init__(self, using: str = "default"):
        self.using = using

    def health_check(self) -> bool:
        """True se um SELECT 1 responde; erro de banco vira False (e log)."""
        from django.db import DatabaseError, connections

        try:
            with connections[self.using].cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except DatabaseError as e:
            logger.error(f"Banco '{self.using}' indisponível: {e}")
            return False
        return True

    @property
    def vendor(self) -> str:
        from django.db import connections

        return connections[self.using].vendor


def check_database_connection(using: str = "default") -> Dict[str, Any]:
    """
    Estado da conexão para o health check.

    Returns:
        {"status": "connected" | "unhealthy", "engine": vendor, "healthy": bool}
    """
    adapter = DjangoDatabaseAdapter(using=using)
    healthy = adapter.health_check()

    return {
        "status": "connected" if healthy else "unhealthy",
        "engine": adapter.vendor,
        "healthy": healthy,
    }

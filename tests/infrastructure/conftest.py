# tests/infrastructure/conftest.py

from contextlib import contextmanager

import pytest


class FakeCursor:
    def __init__(self, banco):
        self.banco = banco
        self.rowcount = 0
        self._resultado = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.banco.comandos.append((" ".join(sql.split()), params))
        if self.banco.falhar_em and self.banco.falhar_em in sql:
            raise RuntimeError(f"falha simulada em {self.banco.falhar_em}")
        if sql.lstrip().upper().startswith("DELETE"):
            self.rowcount = self.banco.linhas_removidas
        self._resultado = list(self.banco.resultado)

    def fetchall(self):
        return self._resultado

    def fetchone(self):
        return self._resultado[0] if self._resultado else None


class FakeConnection:
    def __init__(self, banco):
        self.banco = banco

    def cursor(self, cursor_factory=None):
        self.banco.cursor_factory = cursor_factory
        return FakeCursor(self.banco)


class FakeBanco:
    """Registra SQL executado e simula commit/rollback do context manager."""

    def __init__(self):
        self.comandos = []
        self.resultado = []
        self.falhar_em = None
        self.linhas_removidas = 0
        self.commits = 0
        self.rollbacks = 0
        self.cursor_factory = None

    @contextmanager
    def connection_context(self, retries=3):
        conn = FakeConnection(self)
        try:
            yield conn
            self.commits += 1
        except Exception:
            self.rollbacks += 1
            raise


@pytest.fixture
def banco():
    return FakeBanco()

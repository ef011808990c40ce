# src/database/db_connection.py

# =====================================================
# 📦 src/database/db_connection.py
# =====================================================

import os
import time
import psycopg2
from psycopg2 import OperationalError, InterfaceError, DatabaseError
from contextlib import contextmanager
from loguru import logger


# =====================================================
# ⚙️ Parâmetros de conexão (lidos a cada conexão)
# =====================================================
def get_db_params() -> dict:
    """Monta os parâmetros do PostgreSQL a partir do ambiente."""
    return {
        "dbname": os.getenv("DB_NAME", os.getenv("POSTGRES_DB", "proximity_db")),
        "user": os.getenv("DB_USER", os.getenv("POSTGRES_USER", "postgres")),
        "password": os.getenv("DB_PASSWORD", os.getenv("POSTGRES_PASSWORD", "postgres")),
        "host": os.getenv("DB_HOST", os.getenv("POSTGRES_HOST", "localhost")),
        "port": os.getenv("DB_PORT", os.getenv("POSTGRES_PORT", "5432")),
        "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
        "application_name": os.getenv("DB_APP_NAME", "proximity_analysis"),
    }


# =====================================================
# 🔄 Conexão com retentativas (backoff exponencial)
# =====================================================
def get_connection(retries: int = 5, delay: float = 2, backoff: float = 1.5):
    """
    Abre uma conexão PostgreSQL com autocommit desligado.
    Falhas operacionais (banco subindo, rede) são retentadas.
    """
    params = get_db_params()
    for attempt in range(1, retries + 1):
        try:
            conn = psycopg2.connect(**params)
            conn.autocommit = False
            logger.debug(f"✅ Conexão PostgreSQL aberta (tentativa {attempt})")
            return conn
        except OperationalError as e:
            if attempt == retries:
                break
            wait = delay * (backoff ** (attempt - 1))
            logger.warning(
                f"⚠️ Banco indisponível (tentativa {attempt}/{retries}): {e} — aguardando {wait:.1f}s"
            )
            time.sleep(wait)

    raise ConnectionError(
        f"❌ Falha ao conectar em {params['host']}:{params['port']}/{params['dbname']} "
        f"após {retries} tentativas."
    )


# =====================================================
# 🧱 Context manager (commit / rollback / close)
# =====================================================
@contextmanager
def get_connection_context(retries: int = 3):
    """
    Uso:
        with get_connection_context() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")

    Commit ao sair sem erro; rollback e re-raise em qualquer exceção.
    """
    conn = get_connection(retries=retries)
    try:
        yield conn
        conn.commit()
    except (OperationalError, InterfaceError) as e:
        conn.rollback()
        logger.error(f"💥 Erro operacional na conexão: {e}")
        raise
    except DatabaseError as e:
        conn.rollback()
        logger.error(f"❌ Erro de banco de dados: {e}")
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        try:
            conn.close()
            logger.debug("🔌 Conexão PostgreSQL fechada.")
        except Exception as e:
            logger.warning(f"⚠️ Falha ao fechar conexão: {e}")


# =====================================================
# 🔍 Healthcheck
# =====================================================
def verificar_conexao_banco() -> bool:
    """Retorna True se o banco responde a um SELECT simples."""
    try:
        with get_connection_context(retries=1) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT NOW();")
                result = cur.fetchone()
                logger.success(f"✅ Banco conectado. Hora atual: {result[0]}")
        return True
    except Exception as e:
        logger.error(f"❌ Falha ao testar conexão com o banco: {e}")
        return False

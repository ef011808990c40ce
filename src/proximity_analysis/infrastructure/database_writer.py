# ============================================================
# 📦 src/proximity_analysis/infrastructure/database_writer.py
# ============================================================

from typing import List
from psycopg2.extras import execute_values
from loguru import logger

from database.db_connection import get_connection_context
from proximity_analysis.domain.entities import RankingEntry, validar_conjunto_ranking
from proximity_analysis.domain.errors import PersistenceFailed


# namespace do pg_advisory_xact_lock(int, int) usado na troca do ranking
LOCK_NAMESPACE_RANKING = 7301

COLUNAS_RANKING = (
    "cliente_id, prestador_id, distancia_km, posicao_ranking, "
    "cliente_nome, cliente_cep, cliente_uf, cliente_latitude, cliente_longitude, "
    "prestador_nome, prestador_cep, prestador_uf, prestador_latitude, prestador_longitude, "
    "planos, especialidade, fonte, data_analise"
)


def _to_row(e: RankingEntry) -> tuple:
    return (
        e.cliente_id,
        e.prestador_id,
        e.distancia_km,
        e.posicao_ranking,
        e.cliente_nome,
        e.cliente_cep,
        e.cliente_uf,
        e.cliente_lat,
        e.cliente_lon,
        e.prestador_nome,
        e.prestador_cep,
        e.prestador_uf,
        e.prestador_lat,
        e.prestador_lon,
        e.planos,
        e.especialidade,
        e.fonte,
        e.data_analise,
    )


class ProximityDatabaseWriter:
    """
    Persiste o ranking de prestadores por cliente (tabela analise_distancia).
    A troca do conjunto de um cliente acontece numa única transação.
    """

    # =========================================================
    # 🧩 Estrutura das tabelas
    # =========================================================
    def create_tables(self):
        with get_connection_context() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS clientes (
                        id SERIAL PRIMARY KEY,
                        nome TEXT,
                        uf VARCHAR(2),
                        cep VARCHAR(9),
                        cliente_latitude NUMERIC,
                        cliente_longitude NUMERIC,
                        criado_em TIMESTAMPTZ DEFAULT NOW()
                    );
                """)
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS prestadores (
                        id SERIAL PRIMARY KEY,
                        nome_prestador TEXT,
                        uf VARCHAR(2),
                        municipio TEXT,
                        cep VARCHAR(9),
                        prestador_latitude NUMERIC,
                        prestador_longitude NUMERIC,
                        tipo_servico TEXT,
                        especialidades TEXT[],
                        planos TEXT[],
                        criado_em TIMESTAMPTZ DEFAULT NOW()
                    );
                """)
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS analise_distancia (
                        id SERIAL PRIMARY KEY,
                        cliente_id INTEGER NOT NULL,
                        prestador_id INTEGER NOT NULL,
                        distancia_km NUMERIC NOT NULL CHECK (distancia_km >= 0),
                        posicao_ranking INTEGER NOT NULL CHECK (posicao_ranking >= 1),
                        cliente_nome VARCHAR,
                        cliente_cep VARCHAR,
                        cliente_uf VARCHAR,
                        cliente_latitude NUMERIC,
                        cliente_longitude NUMERIC,
                        prestador_nome VARCHAR,
                        prestador_cep VARCHAR,
                        prestador_uf VARCHAR,
                        prestador_latitude NUMERIC,
                        prestador_longitude NUMERIC,
                        planos TEXT,
                        especialidade TEXT,
                        fonte VARCHAR(16),
                        data_analise TIMESTAMPTZ DEFAULT NOW(),
                        UNIQUE (cliente_id, posicao_ranking)
                    );
                """)
                cur.execute(
                    "CREATE INDEX IF NOT EXISTS idx_analise_distancia_cliente "
                    "ON analise_distancia (cliente_id);"
                )
        logger.success("✅ Tabelas clientes / prestadores / analise_distancia verificadas.")

    # =========================================================
    # 1️⃣ Inserção avulsa
    # =========================================================
    def insert_entry(self, entry: RankingEntry) -> int:
        try:
            with get_connection_context() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"INSERT INTO analise_distancia ({COLUNAS_RANKING}) "
                        f"VALUES ({', '.join(['%s'] * 18)}) RETURNING id;",
                        _to_row(entry),
                    )
                    entry.id = cur.fetchone()[0]
            return entry.id
        except Exception as e:
            logger.error(f"❌ Erro ao inserir análise do cliente {entry.cliente_id}: {e}")
            raise PersistenceFailed(entry.cliente_id, e) from e

    # =========================================================
    # 2️⃣ Troca atômica do ranking de um cliente
    # =========================================================
    def replace_ranking(self, cliente_id: int, entries: List[RankingEntry]):
        """
        DELETE + INSERT na mesma transação, serializado por cliente com
        pg_advisory_xact_lock. Em erro o rollback mantém o ranking anterior.
        """
        validar_conjunto_ranking(cliente_id, entries)

        try:
            with get_connection_context() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT pg_advisory_xact_lock(%s, %s);",
                        (LOCK_NAMESPACE_RANKING, cliente_id),
                    )
                    cur.execute("DELETE FROM analise_distancia WHERE cliente_id = %s;", (cliente_id,))
                    removidas = cur.rowcount

                    if entries:
                        execute_values(
                            cur,
                            f"INSERT INTO analise_distancia ({COLUNAS_RANKING}) VALUES %s",
                            [_to_row(e) for e in entries],
                        )

            logger.debug(
                f"💾 Ranking do cliente {cliente_id} substituído "
                f"({removidas} removidas → {len(entries)} gravadas)"
            )
        except Exception as e:
            logger.error(f"❌ Erro ao gravar ranking do cliente {cliente_id}: {e}")
            raise PersistenceFailed(cliente_id, e) from e

# src/proximity_analysis/infrastructure/database_reader.py

from psycopg2.extras import RealDictCursor
from typing import List, Optional
from loguru import logger

from database.db_connection import get_connection_context
from proximity_analysis.domain.entities import Cliente, Prestador, RankingEntry, parse_coordenada


SQL_CLIENTE = """
    SELECT id, nome, uf, cep, cliente_latitude, cliente_longitude
    FROM clientes
"""

SQL_PRESTADOR = """
    SELECT
        id, nome_prestador, uf, municipio, cep,
        prestador_latitude, prestador_longitude,
        tipo_servico, especialidades, planos
    FROM prestadores
"""

SQL_RANKING = """
    SELECT
        id, cliente_id, prestador_id, distancia_km, posicao_ranking,
        cliente_nome, cliente_cep, cliente_uf, cliente_latitude, cliente_longitude,
        prestador_nome, prestador_cep, prestador_uf, prestador_latitude, prestador_longitude,
        planos, especialidade, fonte, data_analise
    FROM analise_distancia
"""


def row_to_cliente(row: dict) -> Cliente:
    return Cliente(
        id=row["id"],
        nome=row.get("nome"),
        uf=row.get("uf"),
        cep=row.get("cep"),
        lat=parse_coordenada(row.get("cliente_latitude")),
        lon=parse_coordenada(row.get("cliente_longitude")),
    )


def row_to_prestador(row: dict) -> Prestador:
    return Prestador(
        id=row["id"],
        nome=row.get("nome_prestador"),
        uf=row.get("uf"),
        municipio=row.get("municipio"),
        cep=row.get("cep"),
        lat=parse_coordenada(row.get("prestador_latitude")),
        lon=parse_coordenada(row.get("prestador_longitude")),
        tipo_servico=row.get("tipo_servico"),
        especialidades=tuple(row.get("especialidades") or ()),
        planos=tuple(row.get("planos") or ()),
    )


def row_to_ranking(row: dict) -> RankingEntry:
    return RankingEntry(
        id=row.get("id"),
        cliente_id=row["cliente_id"],
        prestador_id=row["prestador_id"],
        distancia_km=float(row["distancia_km"]),
        posicao_ranking=row["posicao_ranking"],
        cliente_nome=row.get("cliente_nome") or "",
        cliente_cep=row.get("cliente_cep") or "",
        cliente_uf=row.get("cliente_uf") or "",
        cliente_lat=parse_coordenada(row.get("cliente_latitude")),
        cliente_lon=parse_coordenada(row.get("cliente_longitude")),
        prestador_nome=row.get("prestador_nome") or "",
        prestador_cep=row.get("prestador_cep") or "",
        prestador_uf=row.get("prestador_uf") or "",
        prestador_lat=parse_coordenada(row.get("prestador_latitude")),
        prestador_lon=parse_coordenada(row.get("prestador_longitude")),
        planos=row.get("planos") or "",
        especialidade=row.get("especialidade") or "",
        fonte=row.get("fonte"),
        data_analise=row.get("data_analise"),
    )


class ProximityDatabaseReader:
    """
    Leitura de clientes, prestadores e rankings persistidos.
    Cada consulta abre e fecha a própria conexão (context manager).
    """

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[dict]:
        with get_connection_context() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(sql, params)
                return [dict(r) for r in cur.fetchall()]

    def _fetch_one(self, sql: str, params: tuple) -> Optional[dict]:
        with get_connection_context() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
                return dict(row) if row else None

    # =========================================================
    # 1️⃣ Clientes
    # =========================================================
    def get_clientes(self) -> List[Cliente]:
        rows = self._fetch_all(SQL_CLIENTE + " ORDER BY id;")
        logger.debug(f"👥 {len(rows)} clientes carregados")
        return [row_to_cliente(r) for r in rows]

    def get_cliente_by_id(self, cliente_id: int) -> Optional[Cliente]:
        row = self._fetch_one(SQL_CLIENTE + " WHERE id = %s;", (cliente_id,))
        return row_to_cliente(row) if row else None

    def get_clientes_by_uf(self, uf: str) -> List[Cliente]:
        rows = self._fetch_all(SQL_CLIENTE + " WHERE uf = %s ORDER BY id;", (uf.upper(),))
        return [row_to_cliente(r) for r in rows]

    # =========================================================
    # 2️⃣ Prestadores
    # =========================================================
    def get_prestadores(self) -> List[Prestador]:
        rows = self._fetch_all(SQL_PRESTADOR + " ORDER BY id;")
        logger.debug(f"🏥 {len(rows)} prestadores carregados")
        return [row_to_prestador(r) for r in rows]

    def get_prestador_by_id(self, prestador_id: int) -> Optional[Prestador]:
        row = self._fetch_one(SQL_PRESTADOR + " WHERE id = %s;", (prestador_id,))
        return row_to_prestador(row) if row else None

    def get_prestadores_by_uf(self, uf: str) -> List[Prestador]:
        rows = self._fetch_all(SQL_PRESTADOR + " WHERE uf = %s ORDER BY id;", (uf.upper(),))
        return [row_to_prestador(r) for r in rows]

    # =========================================================
    # 3️⃣ Rankings persistidos
    # =========================================================
    def get_rankings(self) -> List[RankingEntry]:
        rows = self._fetch_all(SQL_RANKING + " ORDER BY cliente_id, posicao_ranking;")
        return [row_to_ranking(r) for r in rows]

    def get_rankings_by_cliente(self, cliente_id: int) -> List[RankingEntry]:
        rows = self._fetch_all(
            SQL_RANKING + " WHERE cliente_id = %s ORDER BY posicao_ranking;",
            (cliente_id,),
        )
        return [row_to_ranking(r) for r in rows]

    def get_top_by_cliente(self, cliente_id: int, limit: int) -> List[RankingEntry]:
        if limit <= 0:
            return []
        rows = self._fetch_all(
            SQL_RANKING + " WHERE cliente_id = %s ORDER BY posicao_ranking LIMIT %s;",
            (cliente_id, limit),
        )
        return [row_to_ranking(r) for r in rows]

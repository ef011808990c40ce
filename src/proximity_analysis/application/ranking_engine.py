# ============================================================
# 📦 src/proximity_analysis/application/ranking_engine.py
# ============================================================

import threading
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_COMPLETED
from typing import Callable, List, Optional
from loguru import logger

from proximity_analysis.config import ProximitySettings
from proximity_analysis.domain.entities import DistanceResult, RankingEntry
from proximity_analysis.domain.errors import (
    ClientNotAnalyzable,
    NoCandidates,
    PersistenceFailed,
    ProximityError,
)


N_LOCKS_CLIENTE = 64


class ProximityRankingEngine:
    """
    Orquestra o cálculo dos prestadores mais próximos de cada cliente:
      1. carrega cliente e prestadores com coordenada válida
      2. resolve a distância de cada par (API de rotas ou haversine)
      3. ordena (estável), mantém o top-K e numera as posições
      4. substitui o ranking do cliente de forma atômica

    `reader` e `writer` seguem a interface de ProximityDatabaseReader /
    ProximityDatabaseWriter (ou InMemoryProximityRepository para ambos).
    """

    def __init__(
        self,
        reader,
        writer,
        resolver,
        top_k: int = 3,
        max_workers: int = 8,
        batch_workers: int = 4,
    ):
        if top_k < 1:
            raise ValueError(f"top_k deve ser >= 1 (recebido {top_k})")

        self.reader = reader
        self.writer = writer
        self.resolver = resolver
        self.top_k = top_k
        self.max_workers = max(1, max_workers)
        self.batch_workers = max(1, batch_workers)

        # pool fixo: clientes diferentes podem dividir um lock, o mesmo cliente nunca usa dois
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(N_LOCKS_CLIENTE)]

    @classmethod
    def from_settings(cls, settings: ProximitySettings, reader, writer, resolver) -> "ProximityRankingEngine":
        return cls(
            reader,
            writer,
            resolver,
            top_k=settings.top_k,
            max_workers=settings.resolver_max_workers,
            batch_workers=settings.batch_max_workers,
        )

    def _lock_cliente(self, cliente_id: int) -> threading.Lock:
        return self._locks[hash(cliente_id) % len(self._locks)]

    # ============================================================
    # 🅰️ Ranking de um cliente
    # ============================================================
    def rank_for_client(self, cliente_id: int) -> List[RankingEntry]:
        cliente = self.reader.get_cliente_by_id(cliente_id)
        if cliente is None:
            raise ClientNotAnalyzable(cliente_id, "cliente não encontrado")

        origem = cliente.location
        if origem is None:
            raise ClientNotAnalyzable(cliente_id, "cliente sem coordenadas válidas")

        candidatos = []
        for prestador in self.reader.get_prestadores():
            destino = prestador.location
            if destino is not None:
                candidatos.append((prestador, destino))

        if not candidatos:
            raise NoCandidates(cliente_id)

        resultados = self._resolver_distancias(origem, candidatos)

        # sorted() é estável: empates mantêm a ordem de entrada dos prestadores
        ordenados = sorted(resultados, key=lambda r: r.distancia_km)
        top = ordenados[: self.top_k]

        entries = [
            RankingEntry.from_result(cliente, resultado, posicao)
            for posicao, resultado in enumerate(top, start=1)
        ]

        with self._lock_cliente(cliente_id):
            try:
                self.writer.replace_ranking(cliente_id, entries)
            except PersistenceFailed:
                raise
            except Exception as e:
                logger.error(f"❌ Erro ao gravar ranking do cliente {cliente_id}: {e}")
                raise PersistenceFailed(cliente_id, e) from e

        logger.info(
            f"🏁 Cliente {cliente_id}: {len(candidatos)} candidatos → top {len(entries)} | "
            + ", ".join(f"#{e.posicao_ranking} prestador={e.prestador_id} ({e.distancia_km:.2f} km)" for e in entries)
        )
        return entries

    def _resolver_distancias(self, origem, candidatos) -> List[DistanceResult]:
        def _worker(item):
            prestador, destino = item
            r = self.resolver.resolve(origem, destino)
            return DistanceResult(prestador, r.distancia_km, r.fonte)

        if self.max_workers == 1 or len(candidatos) == 1:
            return [_worker(item) for item in candidatos]

        # map() devolve na ordem de entrada, independente da ordem de conclusão
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(candidatos))) as executor:
            return list(executor.map(_worker, candidatos))

    # ============================================================
    # 🅱️ Ranking de todos os clientes
    # ============================================================
    def rank_for_all_clients(
        self,
        cancelado: Optional[Callable[[], bool]] = None,
        progresso: Optional[Callable[[int, int], None]] = None,
    ) -> dict:
        """
        Executa o ranking de cada cliente com no máximo `batch_workers` em paralelo.
        Falhas individuais só entram na contagem. Quando `cancelado()` retorna
        True nenhum cliente novo é iniciado; os que já começaram terminam.
        """
        try:
            clientes = self.reader.get_clientes()
        except Exception as e:
            logger.opt(exception=e).error(f"❌ Falha ao carregar clientes para o lote: {e}")
            return {"succeeded": 0, "failed": 0, "cancelled": False}

        total = len(clientes)
        logger.info(f"🚀 Ranking em lote: {total} clientes | top_k={self.top_k} | workers={self.batch_workers}")

        succeeded, failed = 0, 0
        interrompido = False
        fila = iter(clientes)
        pendentes = set()

        with ThreadPoolExecutor(max_workers=self.batch_workers) as executor:
            while True:
                while not interrompido and len(pendentes) < self.batch_workers:
                    if self._cancelamento_pedido(cancelado):
                        interrompido = True
                        logger.warning("🛑 Cancelamento solicitado — nenhum novo cliente será iniciado.")
                        break
                    cliente = next(fila, None)
                    if cliente is None:
                        break
                    pendentes.add(executor.submit(self._executar_cliente, cliente.id))

                if not pendentes:
                    break

                concluidos, pendentes = wait(pendentes, return_when=FIRST_COMPLETED)
                for futuro in concluidos:
                    if futuro.result():
                        succeeded += 1
                    else:
                        failed += 1
                    self._notificar_progresso(progresso, succeeded + failed, total)

        logger.success(
            f"✅ Ranking em lote finalizado | sucesso={succeeded} | falha={failed} | "
            f"não iniciados={total - succeeded - failed}"
        )
        return {"succeeded": succeeded, "failed": failed, "cancelled": interrompido}

    @staticmethod
    def _cancelamento_pedido(cancelado) -> bool:
        """Erro ao consultar o cancelamento conta como não cancelado."""
        if cancelado is None:
            return False
        try:
            return bool(cancelado())
        except Exception as e:
            logger.opt(exception=e).warning(f"⚠️ Falha ao verificar cancelamento, lote segue: {e}")
            return False

    @staticmethod
    def _notificar_progresso(progresso, feitos: int, total: int):
        if progresso is None:
            return
        try:
            progresso(feitos, total)
        except Exception as e:
            logger.opt(exception=e).warning(f"⚠️ Falha ao publicar progresso ({feitos}/{total}): {e}")

    def _executar_cliente(self, cliente_id: int) -> bool:
        try:
            self.rank_for_client(cliente_id)
            return True
        except ProximityError as e:
            logger.warning(f"⚠️ {e}")
            return False
        except Exception as e:
            logger.opt(exception=e).error(f"❌ Erro inesperado no ranking do cliente {cliente_id}: {e}")
            return False

    # ============================================================
    # 🅲 Leitura com cálculo sob demanda
    # ============================================================
    def get_top_for_client(self, cliente_id: int, limit: int) -> List[RankingEntry]:
        if limit <= 0:
            return []

        atuais = self.reader.get_top_by_cliente(cliente_id, limit)
        if len(atuais) >= limit:
            return atuais

        logger.info(
            f"🔄 Cliente {cliente_id}: {len(atuais)}/{limit} entradas persistidas — recalculando ranking"
        )
        try:
            self.rank_for_client(cliente_id)
        except ProximityError as e:
            logger.warning(f"⚠️ Recalculo falhou, retornando o que existe: {e}")
            return atuais

        return self.reader.get_top_by_cliente(cliente_id, limit)

    # ============================================================
    # 🅳 Estatísticas do ranking persistido
    # ============================================================
    def get_statistics(self) -> dict:
        entries = self.reader.get_rankings()
        if not entries:
            return {"clientCount": 0, "providerCount": 0, "avgDistanceKm": 0, "totalEntries": 0}

        total_km = sum(float(e.distancia_km or 0) for e in entries)
        return {
            "clientCount": len({e.cliente_id for e in entries}),
            "providerCount": len({e.prestador_id for e in entries}),
            "avgDistanceKm": round(total_km / len(entries), 1),
            "totalEntries": len(entries),
        }

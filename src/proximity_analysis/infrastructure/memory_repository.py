# ============================================================
# 📦 src/proximity_analysis/infrastructure/memory_repository.py
# ============================================================

import copy
import json
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from loguru import logger

from proximity_analysis.domain.entities import (
    Cliente,
    Prestador,
    RankingEntry,
    validar_conjunto_ranking,
)


class InMemoryProximityRepository:
    """
    Implementa o leitor e o gravador em memória (testes e execuções locais).
    Cada cliente tem sua lista de ranking trocada inteira sob lock,
    então leitores veem o conjunto antigo ou o novo, nunca uma mistura.
    """

    def __init__(
        self,
        clientes: Iterable[Cliente] = (),
        prestadores: Iterable[Prestador] = (),
    ):
        self._clientes: Dict[int, Cliente] = {c.id: c for c in clientes}
        self._prestadores: Dict[int, Prestador] = {p.id: p for p in prestadores}
        self._rankings: Dict[int, List[RankingEntry]] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    @classmethod
    def from_json(cls, path) -> "InMemoryProximityRepository":
        """Carrega {"clientes": [...], "prestadores": [...]} de um arquivo JSON."""
        with open(Path(path), encoding="utf-8") as f:
            data = json.load(f)

        clientes = [Cliente(**c) for c in data.get("clientes", [])]
        prestadores = []
        for p in data.get("prestadores", []):
            p = dict(p)
            p["especialidades"] = tuple(p.get("especialidades") or ())
            p["planos"] = tuple(p.get("planos") or ())
            prestadores.append(Prestador(**p))

        logger.info(f"📂 {len(clientes)} clientes e {len(prestadores)} prestadores carregados de {path}")
        return cls(clientes, prestadores)

    # =========================================================
    # Clientes / Prestadores
    # =========================================================
    def get_clientes(self) -> List[Cliente]:
        return sorted(self._clientes.values(), key=lambda c: c.id)

    def get_cliente_by_id(self, cliente_id: int) -> Optional[Cliente]:
        return self._clientes.get(cliente_id)

    def get_clientes_by_uf(self, uf: str) -> List[Cliente]:
        return [c for c in self.get_clientes() if (c.uf or "").upper() == uf.upper()]

    def get_prestadores(self) -> List[Prestador]:
        return sorted(self._prestadores.values(), key=lambda p: p.id)

    def get_prestador_by_id(self, prestador_id: int) -> Optional[Prestador]:
        return self._prestadores.get(prestador_id)

    def get_prestadores_by_uf(self, uf: str) -> List[Prestador]:
        return [p for p in self.get_prestadores() if (p.uf or "").upper() == uf.upper()]

    def upsert_prestador(self, prestador: Prestador):
        self._prestadores[prestador.id] = prestador

    def upsert_cliente(self, cliente: Cliente):
        self._clientes[cliente.id] = cliente

    # =========================================================
    # Rankings
    # =========================================================
    def get_rankings(self) -> List[RankingEntry]:
        with self._lock:
            return [
                copy.copy(e)
                for cliente_id in sorted(self._rankings)
                for e in self._rankings[cliente_id]
            ]

    def get_rankings_by_cliente(self, cliente_id: int) -> List[RankingEntry]:
        with self._lock:
            return [copy.copy(e) for e in self._rankings.get(cliente_id, [])]

    def get_top_by_cliente(self, cliente_id: int, limit: int) -> List[RankingEntry]:
        if limit <= 0:
            return []
        return self.get_rankings_by_cliente(cliente_id)[:limit]

    def insert_entry(self, entry: RankingEntry) -> int:
        with self._lock:
            entry = copy.copy(entry)
            entry.id = self._next_id
            self._next_id += 1
            atual = [e for e in self._rankings.get(entry.cliente_id, [])
                     if e.posicao_ranking != entry.posicao_ranking]
            atual.append(entry)
            atual.sort(key=lambda e: e.posicao_ranking)
            self._rankings[entry.cliente_id] = atual
            return entry.id

    def replace_ranking(self, cliente_id: int, entries: List[RankingEntry]):
        validar_conjunto_ranking(cliente_id, entries)
        novas = []
        with self._lock:
            for e in entries:
                e = copy.copy(e)
                e.id = self._next_id
                self._next_id += 1
                novas.append(e)
            self._rankings[cliente_id] = novas

# ==========================================================
# 📦 src/proximity_analysis/domain/entities.py
# ==========================================================

import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Tuple, Any


def parse_coordenada(valor: Any) -> Optional[float]:
    """
    Converte o valor vindo do banco/JSON (Decimal, str, float) em float.
    Retorna None para ausente, vazio, não numérico ou não finito.
    """
    if valor is None:
        return None
    if isinstance(valor, str):
        valor = valor.strip().replace(",", ".")
        if not valor:
            return None
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numero):
        return None
    return numero


@dataclass(frozen=True)
class Location:
    """Par (lat, lon) em graus decimais."""
    lat: float
    lon: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lon)

    @classmethod
    def from_values(cls, lat: Any, lon: Any) -> Optional["Location"]:
        """Retorna None quando a coordenada não é utilizável."""
        lat_f = parse_coordenada(lat)
        lon_f = parse_coordenada(lon)
        if lat_f is None or lon_f is None:
            return None
        if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lon_f <= 180.0):
            return None
        return cls(lat_f, lon_f)


# ==========================================================
# 👤 Cliente (quem é analisado)
# ==========================================================
@dataclass(frozen=True)
class Cliente:
    id: int
    nome: Optional[str]
    uf: Optional[str]
    lat: Optional[float] = None
    lon: Optional[float] = None
    cep: Optional[str] = None

    @property
    def location(self) -> Optional[Location]:
        return Location.from_values(self.lat, self.lon)


# ==========================================================
# 🏥 Prestador (candidato ranqueado)
# ==========================================================
@dataclass(frozen=True)
class Prestador:
    id: int
    nome: Optional[str]
    uf: Optional[str]
    municipio: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    cep: Optional[str] = None
    tipo_servico: Optional[str] = None
    especialidades: Tuple[str, ...] = ()
    planos: Tuple[str, ...] = ()

    @property
    def location(self) -> Optional[Location]:
        return Location.from_values(self.lat, self.lon)


@dataclass(frozen=True)
class ResolvedDistance:
    """Resultado do resolvedor: distância + origem do cálculo ("api" | "fallback")."""
    distancia_km: float
    fonte: str
    tempo_min: Optional[float] = None


@dataclass(frozen=True)
class DistanceResult:
    prestador: Prestador
    distancia_km: float
    fonte: str


# ==========================================================
# 🏁 Linha persistida do ranking (snapshot desnormalizado)
# ==========================================================
@dataclass
class RankingEntry:
    cliente_id: int
    prestador_id: int
    distancia_km: float
    posicao_ranking: int

    cliente_nome: str = ""
    cliente_cep: str = ""
    cliente_uf: str = ""
    cliente_lat: Optional[float] = None
    cliente_lon: Optional[float] = None

    prestador_nome: str = ""
    prestador_cep: str = ""
    prestador_uf: str = ""
    prestador_lat: Optional[float] = None
    prestador_lon: Optional[float] = None

    planos: str = ""
    especialidade: str = ""
    fonte: Optional[str] = None
    data_analise: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    @classmethod
    def from_result(cls, cliente: Cliente, resultado: DistanceResult, posicao: int) -> "RankingEntry":
        p = resultado.prestador
        return cls(
            cliente_id=cliente.id,
            prestador_id=p.id,
            distancia_km=resultado.distancia_km,
            posicao_ranking=posicao,
            cliente_nome=cliente.nome or "",
            cliente_cep=cliente.cep or "",
            cliente_uf=cliente.uf or "",
            cliente_lat=parse_coordenada(cliente.lat),
            cliente_lon=parse_coordenada(cliente.lon),
            prestador_nome=p.nome or "",
            prestador_cep=p.cep or "",
            prestador_uf=p.uf or "",
            prestador_lat=parse_coordenada(p.lat),
            prestador_lon=parse_coordenada(p.lon),
            planos=", ".join(x for x in p.planos if x),
            especialidade=", ".join(x for x in p.especialidades if x),
            fonte=resultado.fonte,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def validar_conjunto_ranking(cliente_id: int, entries) -> None:
    """Um conjunto gravado por cliente precisa ter posições 1..K sem buracos."""
    for e in entries:
        if e.cliente_id != cliente_id:
            raise ValueError(f"Entrada do cliente {e.cliente_id} no conjunto do cliente {cliente_id}")
    posicoes = [e.posicao_ranking for e in entries]
    if posicoes != list(range(1, len(entries) + 1)):
        raise ValueError(f"Posições de ranking inválidas para o cliente {cliente_id}: {posicoes}")

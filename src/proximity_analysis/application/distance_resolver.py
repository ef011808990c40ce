# ============================================================
# 📦 src/proximity_analysis/application/distance_resolver.py
# ============================================================

import math
import threading
import requests
from typing import Tuple
from loguru import logger

from proximity_analysis.config import ProximitySettings
from proximity_analysis.domain.entities import Location, ResolvedDistance
from proximity_analysis.domain.errors import ResolverTransientFailure
from proximity_analysis.domain.haversine_utils import haversine


FONTE_API = "api"
FONTE_FALLBACK = "fallback"


def _numero_valido(valor) -> bool:
    return (
        isinstance(valor, (int, float))
        and not isinstance(valor, bool)
        and math.isfinite(valor)
        and valor >= 0
    )


# ============================================================
# 🌐 Google Distance Matrix
# ============================================================
class GoogleDistanceMatrixClient:
    """Consulta um único par origem/destino na Distance Matrix API."""

    BASE_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

    def __init__(self, api_key: str, timeout: float = 30.0):
        self.api_key = api_key
        self.timeout = timeout

    def distancia(self, origem: Location, destino: Location) -> Tuple[float, float]:
        """Retorna (km, minutos). Qualquer resposta inválida vira ResolverTransientFailure."""
        params = {
            "origins": f"{origem.lat},{origem.lon}",
            "destinations": f"{destino.lat},{destino.lon}",
            "key": self.api_key,
        }
        try:
            resp = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ResolverTransientFailure(f"Falha de conexão com Google ({e})") from e

        if resp.status_code != 200:
            raise ResolverTransientFailure(f"Google respondeu HTTP {resp.status_code}")

        try:
            data = resp.json()
            if data.get("status") != "OK":
                raise ResolverTransientFailure(f"Google status={data.get('status')}")
            element = data["rows"][0]["elements"][0]
            if element.get("status") != "OK":
                raise ResolverTransientFailure(f"Sem rota Google (element status={element.get('status')})")
            metros = element["distance"]["value"]
            segundos = element["duration"]["value"]
        except ResolverTransientFailure:
            raise
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ResolverTransientFailure(f"Resposta Google malformada ({e!r})") from e

        if not (_numero_valido(metros) and _numero_valido(segundos)):
            raise ResolverTransientFailure(f"Google retornou valores inválidos ({metros}, {segundos})")

        return metros / 1000, segundos / 60


# ============================================================
# 🗺️ OSRM (local/remoto)
# ============================================================
class OSRMRoutingClient:
    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def distancia(self, origem: Location, destino: Location) -> Tuple[float, float]:
        # OSRM espera ordem lon,lat
        url = (
            f"{self.base_url}/route/v1/driving/"
            f"{origem.lon},{origem.lat};{destino.lon},{destino.lat}?overview=false"
        )
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ResolverTransientFailure(f"Falha de conexão com OSRM ({e})") from e

        if resp.status_code != 200:
            raise ResolverTransientFailure(f"OSRM respondeu HTTP {resp.status_code}")

        try:
            data = resp.json()
            if data.get("code") != "Ok" or not data.get("routes"):
                raise ResolverTransientFailure(f"Sem rota OSRM válida (code={data.get('code')})")
            route = data["routes"][0]
            metros = route["distance"]
            segundos = route["duration"]
        except ResolverTransientFailure:
            raise
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ResolverTransientFailure(f"Resposta OSRM malformada ({e!r})") from e

        if not (_numero_valido(metros) and _numero_valido(segundos)):
            raise ResolverTransientFailure(f"OSRM retornou valores inválidos ({metros}, {segundos})")

        return metros / 1000, segundos / 60


class DistanceResolver:
    """
    Resolve a distância de um par (cliente, prestador) em duas etapas:
      1️⃣ serviço de rotas configurado (Google Distance Matrix ou OSRM)
      2️⃣ haversine, sempre que a etapa 1 não produzir resultado

    Nunca levanta exceção para o chamador; o campo `fonte` indica o caminho.
    """

    def __init__(self, routing_client=None):
        self.routing_client = routing_client

        self._lock = threading.Lock()
        self.req_count = 0
        self.req_api = 0
        self.req_fallback = 0

        nome = type(routing_client).__name__ if routing_client else "nenhum (somente haversine)"
        logger.info(f"⚙️ DistanceResolver inicializado | serviço de rotas={nome}")

    @classmethod
    def from_settings(cls, settings: ProximitySettings) -> "DistanceResolver":
        provider = settings.routing_provider
        if provider == "osrm":
            client = OSRMRoutingClient(settings.osrm_url, timeout=settings.routing_timeout_s)
        elif provider == "google":
            if settings.gmaps_api_key:
                client = GoogleDistanceMatrixClient(settings.gmaps_api_key, timeout=settings.routing_timeout_s)
            else:
                logger.warning("⚠️ GMAPS_API_KEY ausente — distâncias calculadas apenas por haversine.")
                client = None
        elif provider in ("none", "haversine"):
            client = None
        else:
            raise ValueError(f"ROUTING_PROVIDER inválido: {provider}")
        return cls(client)

    # ============================================================
    # Função principal (par a par)
    # ============================================================
    def resolve(self, origem: Location, destino: Location) -> ResolvedDistance:
        resultado = None

        if self.routing_client is not None:
            try:
                dist_km, tempo_min = self.routing_client.distancia(origem, destino)
                resultado = ResolvedDistance(round(dist_km, 2), FONTE_API, round(tempo_min, 1))
            except ResolverTransientFailure as e:
                logger.warning(f"⚠️ Serviço de rotas sem resultado ({e}). Usando haversine...")
            except Exception as e:
                logger.warning(f"⚠️ Erro inesperado no serviço de rotas ({e!r}). Usando haversine...")

        if resultado is None:
            resultado = self.fallback(origem, destino)

        self._contabilizar(resultado.fonte)
        return resultado

    @staticmethod
    def fallback(origem: Location, destino: Location) -> ResolvedDistance:
        return ResolvedDistance(haversine(origem.as_tuple(), destino.as_tuple()), FONTE_FALLBACK)

    # ============================================================
    # Contadores e logs
    # ============================================================
    def _contabilizar(self, fonte: str):
        with self._lock:
            self.req_count += 1
            if fonte == FONTE_API:
                self.req_api += 1
            else:
                self.req_fallback += 1
            deve_logar = self.req_count % 50 == 0
        if deve_logar:
            self._log_progresso()

    def stats(self) -> dict:
        with self._lock:
            return {"total": self.req_count, "api": self.req_api, "fallback": self.req_fallback}

    def _log_progresso(self):
        s = self.stats()
        api_pct = (s["api"] / s["total"]) * 100 if s["total"] else 0
        logger.info(
            f"📊 Distâncias resolvidas: {s['total']} (API {api_pct:.1f}%, Haversine {s['fallback']})"
        )

    def close(self):
        s = self.stats()
        logger.info(
            f"🏁 Encerrando DistanceResolver — Total: {s['total']}, API: {s['api']}, Haversine: {s['fallback']}"
        )

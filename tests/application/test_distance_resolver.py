# tests/application/test_distance_resolver.py

import pytest
import requests

from proximity_analysis.application import distance_resolver as dr
from proximity_analysis.application.distance_resolver import (
    DistanceResolver,
    GoogleDistanceMatrixClient,
    OSRMRoutingClient,
)
from proximity_analysis.config import ProximitySettings
from proximity_analysis.domain.entities import Location
from proximity_analysis.domain.haversine_utils import haversine


ORIGEM = Location(-23.5505, -46.6333)
DESTINO = Location(-23.5614, -46.6559)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error:
            raise ValueError("Expecting value: line 1 column 1")
        return self._payload


def _matrix(metros=2340, segundos=420, element_status="OK", status="OK"):
    return {
        "status": status,
        "rows": [{"elements": [{
            "status": element_status,
            "distance": {"text": "2,3 km", "value": metros},
            "duration": {"text": "7 min", "value": segundos},
        }]}],
    }


@pytest.fixture
def chamadas(monkeypatch):
    """Substitui requests.get; o teste define a resposta em chamadas['resposta']."""
    estado = {"resposta": None, "urls": [], "kwargs": []}

    def fake_get(url, **kwargs):
        estado["urls"].append(url)
        estado["kwargs"].append(kwargs)
        resposta = estado["resposta"]
        if isinstance(resposta, Exception):
            raise resposta
        return resposta

    monkeypatch.setattr(dr.requests, "get", fake_get)
    return estado


def _google():
    return DistanceResolver(GoogleDistanceMatrixClient("chave-teste", timeout=30))


def test_google_ok_usa_distancia_da_api(chamadas):
    chamadas["resposta"] = FakeResponse(payload=_matrix(metros=2340, segundos=420))

    r = _google().resolve(ORIGEM, DESTINO)

    assert r.fonte == "api"
    assert r.distancia_km == 2.34
    assert r.tempo_min == 7.0
    params = chamadas["kwargs"][0]["params"]
    assert params["origins"] == "-23.5505,-46.6333"
    assert params["destinations"] == "-23.5614,-46.6559"
    assert chamadas["kwargs"][0]["timeout"] == 30


def test_http_500_cai_no_haversine(chamadas):
    chamadas["resposta"] = FakeResponse(status_code=500, payload={"error": "boom"})

    r = _google().resolve(ORIGEM, DESTINO)

    assert r.fonte == "fallback"
    assert r.distancia_km is not None
    assert r.distancia_km == haversine(ORIGEM.as_tuple(), DESTINO.as_tuple())


@pytest.mark.parametrize(
    "resposta",
    [
        requests.ConnectionError("recusado"),
        requests.Timeout("30s"),
        FakeResponse(json_error=True),
        FakeResponse(payload={"status": "OK", "rows": []}),
        FakeResponse(payload=_matrix(element_status="ZERO_RESULTS")),
        FakeResponse(payload=_matrix(status="REQUEST_DENIED")),
        FakeResponse(payload=_matrix(metros="dois km")),
        FakeResponse(payload=_matrix(metros=-10)),
        FakeResponse(payload=None),
    ],
)
def test_falhas_do_servico_viram_fallback(chamadas, resposta):
    chamadas["resposta"] = resposta

    r = _google().resolve(ORIGEM, DESTINO)

    assert r.fonte == "fallback"
    assert r.distancia_km >= 0


def test_erro_inesperado_do_cliente_tambem_vira_fallback():
    class ClienteQuebrado:
        def distancia(self, origem, destino):
            raise RuntimeError("bug")

    r = DistanceResolver(ClienteQuebrado()).resolve(ORIGEM, DESTINO)
    assert r.fonte == "fallback"


def test_osrm_ok_usa_ordem_lon_lat(chamadas):
    chamadas["resposta"] = FakeResponse(payload={
        "code": "Ok",
        "routes": [{"distance": 3100.0, "duration": 540.0}],
    })

    r = DistanceResolver(OSRMRoutingClient("http://osrm:5000/")).resolve(ORIGEM, DESTINO)

    assert r.fonte == "api"
    assert r.distancia_km == 3.1
    assert chamadas["urls"][0].startswith(
        "http://osrm:5000/route/v1/driving/-46.6333,-23.5505;-46.6559,-23.5614"
    )


def test_osrm_sem_rota_cai_no_haversine(chamadas):
    chamadas["resposta"] = FakeResponse(payload={"code": "NoRoute", "routes": []})

    r = DistanceResolver(OSRMRoutingClient("http://osrm:5000")).resolve(ORIGEM, DESTINO)

    assert r.fonte == "fallback"


def test_sem_cliente_nao_faz_requisicao(chamadas):
    r = DistanceResolver(None).resolve(ORIGEM, ORIGEM)

    assert r.fonte == "fallback"
    assert r.distancia_km == 0.0
    assert chamadas["urls"] == []


def test_from_settings_google_sem_chave_usa_apenas_haversine():
    resolver = DistanceResolver.from_settings(ProximitySettings(routing_provider="google", gmaps_api_key=None))
    assert resolver.routing_client is None


def test_from_settings_escolhe_cliente():
    google = DistanceResolver.from_settings(ProximitySettings(routing_provider="google", gmaps_api_key="k"))
    osrm = DistanceResolver.from_settings(ProximitySettings(routing_provider="osrm", routing_timeout_s=5))

    assert isinstance(google.routing_client, GoogleDistanceMatrixClient)
    assert isinstance(osrm.routing_client, OSRMRoutingClient)
    assert osrm.routing_client.timeout == 5


def test_from_settings_provider_invalido():
    with pytest.raises(ValueError):
        DistanceResolver.from_settings(ProximitySettings(routing_provider="mapquest"))


def test_contadores_por_fonte(chamadas):
    resolver = _google()
    chamadas["resposta"] = FakeResponse(payload=_matrix())
    resolver.resolve(ORIGEM, DESTINO)
    chamadas["resposta"] = FakeResponse(status_code=503)
    resolver.resolve(ORIGEM, DESTINO)
    resolver.resolve(ORIGEM, DESTINO)

    assert resolver.stats() == {"total": 3, "api": 1, "fallback": 2}

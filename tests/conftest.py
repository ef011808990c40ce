# tests/conftest.py

import pytest

from proximity_analysis.application.distance_resolver import DistanceResolver
from proximity_analysis.application.ranking_engine import ProximityRankingEngine
from proximity_analysis.domain.entities import Cliente, Prestador
from proximity_analysis.infrastructure.memory_repository import InMemoryProximityRepository


# São Paulo (Praça da Sé) e arredores
SAO_PAULO = (-23.5505, -46.6333)


@pytest.fixture
def clientes():
    return [
        Cliente(id=1, nome="Ana Souza", uf="SP", lat=SAO_PAULO[0], lon=SAO_PAULO[1], cep="01001-000"),
        Cliente(id=2, nome="Bruno Lima", uf="RJ", lat=-22.9068, lon=-43.1729, cep="20010-000"),
        Cliente(id=3, nome="Carla Dias", uf="SP", lat=None, lon=None),
    ]


@pytest.fixture
def prestadores():
    # ids em ordem crescente de distância a partir de SAO_PAULO
    return [
        Prestador(id=10, nome="Hospital Sé", uf="SP", municipio="São Paulo",
                  lat=-23.5505, lon=-46.6333, especialidades=("Clínica",), planos=("Bronze",)),
        Prestador(id=11, nome="Clínica Paulista", uf="SP", municipio="São Paulo",
                  lat=-23.5614, lon=-46.6559, especialidades=("Cardiologia", "Clínica"), planos=("Bronze", "Prata")),
        Prestador(id=12, nome="Pronto Socorro Santo André", uf="SP", municipio="Santo André",
                  lat=-23.6639, lon=-46.5383),
        Prestador(id=13, nome="Hospital Campinas", uf="SP", municipio="Campinas",
                  lat=-22.9099, lon=-47.0626),
        Prestador(id=14, nome="Hospital Rio", uf="RJ", municipio="Rio de Janeiro",
                  lat=-22.9068, lon=-43.1729),
        Prestador(id=15, nome="Prestador sem endereço", uf="SP", municipio="São Paulo"),
    ]


@pytest.fixture
def repo(clientes, prestadores):
    return InMemoryProximityRepository(clientes, prestadores)


@pytest.fixture
def resolver():
    # sem serviço de rotas: sempre haversine
    return DistanceResolver(routing_client=None)


@pytest.fixture
def engine(repo, resolver):
    return ProximityRankingEngine(repo, repo, resolver, top_k=3, max_workers=4, batch_workers=2)

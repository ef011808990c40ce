# tests/domain/test_haversine_utils.py

import pytest

from proximity_analysis.domain.haversine_utils import haversine


PONTOS = [
    (-23.5505, -46.6333),   # São Paulo
    (-22.9068, -43.1729),   # Rio de Janeiro
    (-3.7319, -38.5267),    # Fortaleza
    (0.0, 0.0),
    (51.5074, -0.1278),     # Londres
    (-33.8688, 151.2093),   # Sydney
]


def test_mesmo_ponto_em_sao_paulo_e_zero():
    assert haversine((-23.5505, -46.6333), (-23.5505, -46.6333)) == 0.00


def test_um_grau_de_longitude_no_equador():
    assert haversine((0, 0), (0, 1)) == pytest.approx(111.19, abs=0.5)


@pytest.mark.parametrize("a", PONTOS)
@pytest.mark.parametrize("b", PONTOS)
def test_simetria(a, b):
    assert haversine(a, b) == haversine(b, a)


@pytest.mark.parametrize("p", PONTOS)
def test_distancia_ao_proprio_ponto(p):
    assert haversine(p, p) == 0


def test_sao_paulo_rio_aproximadamente_360_km():
    d = haversine((-23.5505, -46.6333), (-22.9068, -43.1729))
    assert 355 < d < 365


def test_arredonda_em_duas_casas():
    d = haversine((-23.5505, -46.6333), (-23.5614, -46.6559))
    assert d == round(d, 2)


def test_pontos_antipodais_nao_quebram():
    d = haversine((0, 0), (0, 180))
    assert d == pytest.approx(3.141592653589793 * 6371, abs=0.01)

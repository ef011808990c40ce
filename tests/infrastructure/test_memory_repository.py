# tests/infrastructure/test_memory_repository.py

import json

import pytest

from proximity_analysis.domain.entities import RankingEntry
from proximity_analysis.infrastructure.memory_repository import InMemoryProximityRepository


def _entry(cliente_id, prestador_id, posicao):
    return RankingEntry(cliente_id=cliente_id, prestador_id=prestador_id,
                        distancia_km=float(posicao), posicao_ranking=posicao)


def test_filtros_por_uf_ignoram_caixa(repo):
    assert [c.id for c in repo.get_clientes_by_uf("sp")] == [1, 3]
    assert [p.id for p in repo.get_prestadores_by_uf("RJ")] == [14]


def test_replace_troca_o_conjunto_inteiro(repo):
    repo.replace_ranking(1, [_entry(1, 10, 1), _entry(1, 11, 2), _entry(1, 12, 3)])
    repo.replace_ranking(1, [_entry(1, 13, 1)])

    assert [(e.prestador_id, e.posicao_ranking) for e in repo.get_rankings_by_cliente(1)] == [(13, 1)]


def test_replace_invalido_preserva_anterior(repo):
    repo.replace_ranking(1, [_entry(1, 10, 1)])

    with pytest.raises(ValueError):
        repo.replace_ranking(1, [_entry(1, 11, 2)])

    assert [e.prestador_id for e in repo.get_rankings_by_cliente(1)] == [10]


def test_leitura_devolve_copias(repo):
    repo.replace_ranking(1, [_entry(1, 10, 1)])

    lido = repo.get_rankings_by_cliente(1)[0]
    lido.distancia_km = 999.0

    assert repo.get_rankings_by_cliente(1)[0].distancia_km == 1.0


def test_ids_sao_atribuidos(repo):
    repo.replace_ranking(1, [_entry(1, 10, 1), _entry(1, 11, 2)])

    ids = [e.id for e in repo.get_rankings_by_cliente(1)]
    assert ids == [1, 2]


def test_insert_entry_substitui_mesma_posicao(repo):
    repo.insert_entry(_entry(2, 14, 1))
    repo.insert_entry(_entry(2, 13, 1))

    assert [e.prestador_id for e in repo.get_rankings_by_cliente(2)] == [13]


def test_get_top_limit(repo):
    repo.replace_ranking(1, [_entry(1, 10, 1), _entry(1, 11, 2), _entry(1, 12, 3)])

    assert len(repo.get_top_by_cliente(1, 2)) == 2
    assert repo.get_top_by_cliente(1, 0) == []


def test_from_json(tmp_path):
    arquivo = tmp_path / "dados.json"
    arquivo.write_text(json.dumps({
        "clientes": [{"id": 1, "nome": "Ana", "uf": "SP", "lat": -23.55, "lon": -46.63}],
        "prestadores": [{"id": 2, "nome": "Clínica", "uf": "SP", "lat": -23.56, "lon": -46.65,
                         "especialidades": ["Cardiologia"], "planos": None}],
    }), encoding="utf-8")

    repo = InMemoryProximityRepository.from_json(arquivo)

    assert repo.get_cliente_by_id(1).location is not None
    assert repo.get_prestador_by_id(2).especialidades == ("Cardiologia",)
    assert repo.get_prestador_by_id(2).planos == ()

# tests/cli/test_run_ranking.py

import json
import sys

import pytest
from loguru import logger

from proximity_analysis.cli import run_ranking


@pytest.fixture(autouse=True)
def restaura_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def arquivo_memoria(tmp_path):
    caminho = tmp_path / "dados.json"
    caminho.write_text(json.dumps({
        "clientes": [
            {"id": 1, "nome": "Ana", "uf": "SP", "lat": -23.5505, "lon": -46.6333},
            {"id": 2, "nome": "Sem geo", "uf": "SP"},
        ],
        "prestadores": [
            {"id": 10, "nome": "Perto", "uf": "SP", "lat": -23.5506, "lon": -46.6334},
            {"id": 11, "nome": "Longe", "uf": "SP", "lat": -22.9, "lon": -47.06},
        ],
    }), encoding="utf-8")
    return str(caminho)


def _rodar(capsys, *args):
    codigo = run_ranking.main(list(args) + ["--provider", "haversine", "--log_level", "CRITICAL"])
    return codigo, capsys.readouterr().out


def test_todos_em_memoria(capsys, arquivo_memoria):
    codigo, saida = _rodar(capsys, "--todos", "--memoria", arquivo_memoria)

    assert codigo == 0
    assert json.loads(saida) == {"succeeded": 1, "failed": 1, "cancelled": False}


def test_um_cliente_com_top_k(capsys, arquivo_memoria):
    codigo, saida = _rodar(capsys, "--cliente_id", "1", "--top_k", "1", "--memoria", arquivo_memoria)

    assert codigo == 0
    ranking = json.loads(saida)
    assert [(e["prestador_id"], e["posicao_ranking"]) for e in ranking] == [(10, 1)]


def test_cliente_sem_coordenada_retorna_1(capsys, arquivo_memoria):
    codigo, _ = _rodar(capsys, "--cliente_id", "2", "--memoria", arquivo_memoria)

    assert codigo == 1


def test_exige_cliente_ou_todos():
    with pytest.raises(SystemExit):
        run_ranking.main(["--top_k", "3"])

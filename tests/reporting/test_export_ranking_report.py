# tests/reporting/test_export_ranking_report.py

import pandas as pd
import pytest

from proximity_analysis.reporting.export_ranking_report import (
    COLUNAS_RELATORIO,
    exportar_relatorio_ranking,
    ranking_to_dataframe,
)
from proximity_analysis.visualization.ranking_map import gerar_mapa_cliente


def test_dataframe_vazio_tem_as_colunas(engine):
    df = ranking_to_dataframe([])

    assert df.empty
    assert list(df.columns) == COLUNAS_RELATORIO


def test_csv_com_ponto_e_virgula_e_duas_casas(engine, repo, tmp_path):
    engine.rank_for_all_clients()

    caminho = exportar_relatorio_ranking(repo.get_rankings(), output_dir=str(tmp_path))
    df = pd.read_csv(caminho, sep=";", encoding="utf-8-sig")

    assert list(df.columns) == COLUNAS_RELATORIO
    assert len(df) == 6
    assert df["cliente_id"].tolist() == [1, 1, 1, 2, 2, 2]
    assert df["posicao_ranking"].tolist() == [1, 2, 3, 1, 2, 3]
    with open(caminho, encoding="utf-8-sig") as f:
        f.readline()
        primeira = f.readline()
    assert ";0.00;" in primeira


def test_xlsx(engine, repo, tmp_path):
    engine.rank_for_client(1)

    caminho = exportar_relatorio_ranking(repo.get_rankings(), output_dir=str(tmp_path), formato="xlsx")
    df = pd.read_excel(caminho, engine="openpyxl")

    assert len(df) == 3


def test_sem_dados_retorna_none(tmp_path):
    assert exportar_relatorio_ranking([], output_dir=str(tmp_path)) is None


def test_formato_invalido(tmp_path):
    with pytest.raises(ValueError):
        exportar_relatorio_ranking([], output_dir=str(tmp_path), formato="pdf")


def test_mapa_html(engine, repo, tmp_path):
    entries = engine.rank_for_client(1)

    caminho = gerar_mapa_cliente(repo.get_cliente_by_id(1), entries, tmp_path / "mapa.html")

    html = caminho.read_text(encoding="utf-8")
    assert "leaflet" in html.lower()
    assert html.count("L.circleMarker(") == 3


def test_mapa_cliente_sem_coordenada(repo, tmp_path):
    with pytest.raises(ValueError):
        gerar_mapa_cliente(repo.get_cliente_by_id(3), [], tmp_path / "mapa.html")

# ============================================================
# 📦 src/proximity_analysis/reporting/export_ranking_report.py
# ============================================================

import os
from datetime import datetime
from typing import List, Optional
import pandas as pd
from loguru import logger

from proximity_analysis.domain.entities import RankingEntry


COLUNAS_RELATORIO = [
    "cliente_id",
    "cliente_nome",
    "cliente_uf",
    "cliente_cep",
    "posicao_ranking",
    "prestador_id",
    "prestador_nome",
    "prestador_uf",
    "prestador_cep",
    "distancia_km",
    "especialidade",
    "planos",
    "fonte",
    "data_analise",
]


def ranking_to_dataframe(entries: List[RankingEntry]) -> pd.DataFrame:
    """Uma linha por entrada, ordenada por cliente e posição."""
    if not entries:
        return pd.DataFrame(columns=COLUNAS_RELATORIO)

    df = pd.DataFrame([e.to_dict() for e in entries])
    df = df[COLUNAS_RELATORIO].sort_values(["cliente_id", "posicao_ranking"], kind="stable")
    df["distancia_km"] = pd.to_numeric(df["distancia_km"], errors="coerce").round(2)
    return df.reset_index(drop=True)


def exportar_relatorio_ranking(
    entries: List[RankingEntry],
    output_dir: str = "output/reports",
    formato: str = "csv",
    nome_base: str = "ranking_prestadores",
) -> Optional[str]:
    """
    Exporta o ranking em CSV (';', utf-8-sig, 2 casas) ou XLSX.
    Retorna o caminho gerado, ou None se não houver dados.
    """
    formato = formato.lower()
    if formato not in ("csv", "xlsx"):
        raise ValueError(f"Formato de relatório inválido: {formato}")

    df = ranking_to_dataframe(entries)
    if df.empty:
        logger.warning("⚠️ Ranking vazio — nada a exportar.")
        return None

    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_path = os.path.join(output_dir, f"{nome_base}_{timestamp}.{formato}")

    if formato == "csv":
        df.to_csv(
            output_path,
            index=False,
            sep=";",
            encoding="utf-8-sig",
            float_format="%.2f",
        )
    else:
        # Excel não aceita datetime com timezone
        df["data_analise"] = pd.to_datetime(df["data_analise"], errors="coerce", utc=True).dt.tz_localize(None)
        df.to_excel(output_path, index=False, sheet_name="ranking", engine="openpyxl")

    logger.success(f"✅ Relatório {formato.upper()} salvo em {output_path} ({len(df)} linhas)")
    return output_path

# =========================================================
# 📦 src/proximity_analysis/visualization/ranking_map.py
# =========================================================

from pathlib import Path
from typing import List
import folium
from folium import Map, CircleMarker, PolyLine
from loguru import logger

from proximity_analysis.domain.entities import Cliente, RankingEntry


CORES_POSICAO = {1: "#2ca02c", 2: "#ff7f0e", 3: "#d62728"}
COR_PADRAO = "#7f7f7f"


def gerar_mapa_cliente(cliente: Cliente, entries: List[RankingEntry], output_path, zoom: int = 11) -> Path:
    """
    Gera um HTML (folium) com o cliente, os prestadores ranqueados
    e uma linha reta cliente → prestador para cada posição.
    """
    origem = cliente.location
    if origem is None:
        raise ValueError(f"Cliente {cliente.id} sem coordenadas válidas para o mapa")

    m = Map(location=[origem.lat, origem.lon], zoom_start=zoom, tiles="cartodbpositron")

    folium.Marker(
        location=[origem.lat, origem.lon],
        tooltip=f"Cliente {cliente.id}: {cliente.nome or ''}",
        icon=folium.Icon(color="blue", icon="user"),
    ).add_to(m)

    pontos = [[origem.lat, origem.lon]]
    for e in sorted(entries, key=lambda x: x.posicao_ranking):
        if e.prestador_lat is None or e.prestador_lon is None:
            continue
        cor = CORES_POSICAO.get(e.posicao_ranking, COR_PADRAO)
        destino = [e.prestador_lat, e.prestador_lon]
        pontos.append(destino)

        CircleMarker(
            location=destino,
            radius=8,
            color=cor,
            fill=True,
            fill_opacity=0.85,
            popup=folium.Popup(
                f"<b>#{e.posicao_ranking} {e.prestador_nome}</b><br>"
                f"{e.distancia_km:.2f} km ({e.fonte or '-'})<br>"
                f"{e.especialidade}",
                max_width=300,
            ),
        ).add_to(m)

        PolyLine([[origem.lat, origem.lon], destino], color=cor, weight=2.5, opacity=0.8).add_to(m)

    if len(pontos) > 1:
        m.fit_bounds(pontos)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(output_path))
    logger.success(f"🗺️ Mapa do cliente {cliente.id} salvo em {output_path} ({len(pontos) - 1} prestadores)")
    return output_path

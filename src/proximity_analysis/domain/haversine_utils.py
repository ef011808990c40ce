# ============================================================
# 📦 src/proximity_analysis/domain/haversine_utils.py
# ============================================================

import math

RAIO_TERRA_KM = 6371.0


def haversine(coord1, coord2):
    """
    Distância de grande círculo entre dois pontos (lat, lon) em km,
    arredondada em 2 casas. Pura e determinística.
    """
    lat1, lon1 = coord1
    lat2, lon2 = coord2

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # erro de ponto flutuante pode levar a um pouco acima de 1
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(RAIO_TERRA_KM * c, 2)

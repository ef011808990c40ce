# ==========================================================
# 📦 src/proximity_analysis/domain/errors.py
# ==========================================================


class ProximityError(Exception):
    """Base das falhas do pipeline de proximidade."""


class ClientNotAnalyzable(ProximityError):
    """Cliente inexistente ou sem coordenada válida. Não é retentado."""

    def __init__(self, cliente_id, motivo: str = "cliente não encontrado ou sem coordenadas"):
        self.cliente_id = cliente_id
        self.motivo = motivo
        super().__init__(f"Cliente {cliente_id}: {motivo}")


class NoCandidates(ProximityError):
    """Nenhum prestador com coordenada válida."""

    def __init__(self, cliente_id):
        self.cliente_id = cliente_id
        super().__init__(f"Cliente {cliente_id}: nenhum prestador com coordenadas válidas")


class ResolverTransientFailure(ProximityError):
    """Falha do serviço de rotas. Sempre absorvida pelo fallback haversine."""


class PersistenceFailed(ProximityError):
    """Erro ao gravar o ranking. O ranking anterior permanece intacto."""

    def __init__(self, cliente_id, causa: Exception):
        self.cliente_id = cliente_id
        self.causa = causa
        super().__init__(f"Falha ao gravar ranking do cliente {cliente_id}: {causa}")

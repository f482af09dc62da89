"""
Modelos de dados financeiros.
Dataclasses tipadas para resultados de cálculos do dashboard.
Recalculados a cada snapshot, nunca persistidos.
"""

from dataclasses import dataclass, field

from dashboard.models.note_models import Vehicle, VehicleStatus


# ─── Tendência Mensal ───

@dataclass
class MonthlyPoint:
    """Total de um mês na série dos últimos meses."""
    month_key: str  # "YYYY-MM"
    month_label: str  # "Jan/24"
    amount: float = 0.0


# ─── Categorias ───

@dataclass
class CategoryTotal:
    """Total acumulado por categoria."""
    name: str
    amount: float = 0.0
    percentage: float = 0.0


# ─── Dashboard ───

@dataclass
class DashboardStats:
    """KPIs e séries da tela principal."""
    month_total: float = 0.0
    daily_average: float = 0.0
    paid_total: float = 0.0
    unpaid_total: float = 0.0
    categories: list[CategoryTotal] = field(default_factory=list)
    monthly: list[MonthlyPoint] = field(default_factory=list)
    recent_notes: list = field(default_factory=list)  # list[Note]


# ─── Frota ───

@dataclass
class VehicleCost:
    vehicle: Vehicle
    cost: float = 0.0


@dataclass
class FleetStats:
    """Indicadores de frota e custo acumulado por placa."""
    total_vehicles: int = 0
    active_vehicles: int = 0
    total_fleet_cost: float = 0.0
    costs_by_plate: dict[str, float] = field(default_factory=dict)
    status_counts: dict[VehicleStatus, int] = field(default_factory=dict)
    vehicles: list[VehicleCost] = field(default_factory=list)


# ─── Importação ───

@dataclass
class ImportResult:
    """Resultado de uma importação de CSV."""
    imported: int = 0
    skipped: int = 0
    keys: list[str] = field(default_factory=list)

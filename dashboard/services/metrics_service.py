"""
Serviço de Métricas do Dashboard.

Responsabilidades:
- Total e média diária do mês corrente
- Totais pago / não pago
- Distribuição por categoria
- Tendência dos últimos meses (chave estável YYYY-MM)
- Custo acumulado por placa e indicadores de frota

Funções puras: (notas, veículos, hoje) → agregados.
"""

from datetime import date, datetime, timedelta

from dashboard.config import RECENT_NOTES, TREND_MONTHS
from dashboard.models.financial_models import (
    CategoryTotal,
    DashboardStats,
    FleetStats,
    MonthlyPoint,
    VehicleCost,
)
from dashboard.models.note_models import Note, Vehicle, VehicleStatus
from dashboard.utils.formatting import month_label


def _today(now: date | datetime | None) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def month_key(value: date | datetime) -> str:
    return value.strftime("%Y-%m")


# ─── Tendência Mensal ───

def compute_monthly_trend(
    notes: list[Note],
    now: date | datetime | None = None,
    months: int = TREND_MONTHS,
) -> list[MonthlyPoint]:
    """
    Série dos últimos N meses, do mais antigo ao atual.

    Os meses são pré-criados antes de somar as notas, então a série
    tem sempre N pontos, mesmo sem dados.
    """
    today = _today(now)

    month_keys = []
    current = today.replace(day=1)
    for _ in range(months):
        month_keys.append(current.strftime("%Y-%m"))
        current = (current - timedelta(days=1)).replace(day=1)
    month_keys.reverse()

    totals: dict[str, float] = {mk: 0.0 for mk in month_keys}
    for note in notes:
        mk = month_key(note.issue_date)
        if mk in totals:
            totals[mk] += note.amount

    return [
        MonthlyPoint(month_key=mk, month_label=month_label(mk), amount=totals[mk])
        for mk in month_keys
    ]


# ─── Categorias ───

def compute_category_breakdown(notes: list[Note]) -> list[CategoryTotal]:
    """Total por categoria, decrescente (empates mantêm a ordem de chegada)."""
    cat_totals: dict[str, float] = {}
    for note in notes:
        cat_totals[note.category] = cat_totals.get(note.category, 0) + note.amount

    total = sum(cat_totals.values())
    sorted_cats = sorted(cat_totals.items(), key=lambda x: x[1], reverse=True)
    return [
        CategoryTotal(
            name=name,
            amount=val,
            percentage=(val / total * 100) if total > 0 else 0,
        )
        for name, val in sorted_cats
    ]


# ─── Dashboard ───

def compute_dashboard_stats(
    notes: list[Note],
    now: date | datetime | None = None,
) -> DashboardStats:
    """
    KPIs da tela principal.

    "Mês corrente" e média diária usam a data de hoje, não as datas das
    notas: média = total do mês / dia do mês atual.
    """
    today = _today(now)
    current_month = today.strftime("%Y-%m")

    month_total = 0.0
    paid_total = 0.0
    unpaid_total = 0.0

    for note in notes:
        if month_key(note.issue_date) == current_month:
            month_total += note.amount
        if note.is_paid:
            paid_total += note.amount
        else:
            unpaid_total += note.amount

    return DashboardStats(
        month_total=month_total,
        daily_average=month_total / today.day if month_total > 0 else 0.0,
        paid_total=paid_total,
        unpaid_total=unpaid_total,
        categories=compute_category_breakdown(notes),
        monthly=compute_monthly_trend(notes, today),
        recent_notes=list(notes[:RECENT_NOTES]),
    )


# ─── Frota ───

def compute_costs_by_plate(notes: list[Note]) -> dict[str, float]:
    """Custo acumulado por placa (placas já normalizadas pelo sanitizador)."""
    costs: dict[str, float] = {}
    for note in notes:
        plate = note.vehicle_plate
        if plate:
            costs[plate] = costs.get(plate, 0) + note.amount
    return costs


def compute_fleet_stats(notes: list[Note], vehicles: list[Vehicle]) -> FleetStats:
    costs = compute_costs_by_plate(notes)

    status_counts: dict[VehicleStatus, int] = {status: 0 for status in VehicleStatus}
    for vehicle in vehicles:
        status_counts[vehicle.status] += 1

    return FleetStats(
        total_vehicles=len(vehicles),
        active_vehicles=status_counts[VehicleStatus.ACTIVE],
        total_fleet_cost=sum(costs.values()),
        costs_by_plate=costs,
        status_counts=status_counts,
        vehicles=[VehicleCost(vehicle=v, cost=costs.get(v.plate, 0.0)) for v in vehicles],
    )

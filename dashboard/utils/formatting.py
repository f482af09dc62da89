"""
Utilitários de formatação para valores financeiros brasileiros.
"""

from datetime import datetime, timezone

from dashboard.models.note_models import NoteStatus, VehicleStatus

MONTH_NAMES_PT = {
    "01": "Jan", "02": "Fev", "03": "Mar", "04": "Abr", "05": "Mai", "06": "Jun",
    "07": "Jul", "08": "Ago", "09": "Set", "10": "Out", "11": "Nov", "12": "Dez",
}

STATUS_LABELS = {
    NoteStatus.PAID: "Pago",
    NoteStatus.UNPAID: "Não Pago",
}

VEHICLE_STATUS_LABELS = {
    VehicleStatus.ACTIVE: "Ativo",
    VehicleStatus.IN_MAINTENANCE: "Em Manutenção",
    VehicleStatus.INACTIVE: "Inativo",
}


def format_brl(value: float) -> str:
    """Formata um número como Real brasileiro (R$ 150.000,50)."""
    if value >= 0:
        return f"R$ {value:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"-R$ {abs(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def format_percent(value: float, decimals: int = 1) -> str:
    """Formata um número como percentual (ex: 23.5%)."""
    return f"{value:.{decimals}f}%"


def month_label(month_key: str) -> str:
    """'2024-03' → 'Mar/24'."""
    year, mm = month_key.split("-")
    return f"{MONTH_NAMES_PT.get(mm, mm)}/{year[2:]}"


def format_date(value: datetime | None) -> str:
    """Data de calendário em UTC no formato dd/mm/aaaa."""
    if value is None:
        return "Data Inválida"
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%d/%m/%Y")

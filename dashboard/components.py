"""
Componentes HTML reutilizáveis para o dashboard.
Retornam strings HTML para uso com st.markdown(html, unsafe_allow_html=True).
"""

from html import escape

from dashboard.models.financial_models import VehicleCost
from dashboard.styles import STATUS_VARIANTS
from dashboard.utils.formatting import VEHICLE_STATUS_LABELS, format_brl


def section_header(title: str, subtitle: str = None) -> str:
    """Header de seção com borda accent."""
    sub_html = f'<div class="sub">{subtitle}</div>' if subtitle else ""
    return f"""
    <div class="section-hdr">
        <h2>{title}</h2>
        {sub_html}
    </div>
    """


def status_badge(text: str, status_value: str) -> str:
    """Badge inline colorido pelo status."""
    variant = STATUS_VARIANTS.get(status_value, "muted")
    return f'<span class="st-badge {variant}">{escape(text)}</span>'


def vehicle_card(item: VehicleCost) -> str:
    """Card de veículo com custo acumulado e placa."""
    v = item.vehicle
    badge = status_badge(VEHICLE_STATUS_LABELS[v.status], v.status.value)
    return f"""
    <div class="vehicle-card">
        <h3>{escape(v.brand)} {escape(v.model)} {badge}</h3>
        <div class="year">{v.year}</div>
        <div class="cost-label">Custo Acumulado</div>
        <div class="cost">{format_brl(item.cost)}</div>
        <div class="plate">{escape(v.plate)}</div>
    </div>
    """

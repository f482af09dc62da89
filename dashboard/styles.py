"""
Design system: tema escuro do painel.
Tokens de cor, CSS customizado e template Plotly.
"""

# ─── Color Tokens ───

COLORS = {
    # Backgrounds
    "bg_base": "#111827",
    "bg_surface": "#1f2937",
    "bg_elevated": "#374151",
    "border": "#374151",
    # Text
    "text_primary": "#f3f4f6",
    "text_secondary": "#9ca3af",
    "text_muted": "#6b7280",
    # Accent
    "primary": "#3b82f6",
    "primary_dim": "rgba(59,130,246,0.15)",
    # Semantic
    "success": "#10b981",
    "success_dim": "rgba(16,185,129,0.15)",
    "danger": "#ef4444",
    "danger_dim": "rgba(239,68,68,0.15)",
    "warning": "#f59e0b",
    "warning_dim": "rgba(245,158,11,0.15)",
}

CHART_COLORS = ["#3b82f6", "#10b981", "#f97316", "#8b5cf6", "#ec4899", "#f59e0b"]

# Variante do badge por status (nota e veículo)
STATUS_VARIANTS = {
    "Paid": "success",
    "Unpaid": "danger",
    "Active": "success",
    "InMaintenance": "warning",
    "Inactive": "muted",
}


# ─── Plotly Template ───

PLOTLY_TEMPLATE = {
    "layout": {
        "paper_bgcolor": "rgba(0,0,0,0)",
        "plot_bgcolor": "rgba(0,0,0,0)",
        "font": {"color": COLORS["text_secondary"], "size": 12},
        "xaxis": {"gridcolor": COLORS["border"], "linecolor": COLORS["border"]},
        "yaxis": {"gridcolor": COLORS["border"], "linecolor": COLORS["border"]},
        "legend": {"font": {"color": COLORS["text_secondary"]}, "bgcolor": "rgba(0,0,0,0)"},
        "hoverlabel": {
            "bgcolor": COLORS["bg_elevated"],
            "bordercolor": COLORS["border"],
            "font": {"color": COLORS["text_primary"]},
        },
        "colorway": CHART_COLORS,
        "margin": {"l": 10, "r": 10, "t": 10, "b": 10},
    }
}


# ─── Custom CSS ───

CUSTOM_CSS = """
<style>
.block-container {
    padding-top: 1.5rem !important;
    max-width: 1200px !important;
}

/* ── KPI Cards ── */
[data-testid="stMetric"] {
    background: """ + COLORS["bg_surface"] + """;
    border: 1px solid """ + COLORS["border"] + """;
    border-radius: 10px;
    padding: 18px 16px;
}
[data-testid="stMetricLabel"] {
    font-size: 0.75rem !important;
    color: """ + COLORS["text_secondary"] + """ !important;
    text-transform: uppercase !important;
}

/* ── Section Header ── */
.section-hdr {
    margin: 1rem 0 0.75rem 0;
    padding-bottom: 0.5rem;
    border-bottom: 2px solid """ + COLORS["primary_dim"] + """;
}
.section-hdr h2 {
    font-size: 1.2rem !important;
    color: """ + COLORS["text_primary"] + """ !important;
    margin: 0 !important;
}
.section-hdr .sub {
    font-size: 0.8rem;
    color: """ + COLORS["text_muted"] + """;
}

/* ── Vehicle Card ── */
.vehicle-card {
    background: """ + COLORS["bg_surface"] + """;
    border: 1px solid """ + COLORS["border"] + """;
    border-radius: 10px;
    padding: 16px;
    margin-bottom: 12px;
}
.vehicle-card h3 {
    font-size: 1.05rem !important;
    color: """ + COLORS["text_primary"] + """ !important;
    margin: 0 !important;
}
.vehicle-card .year { font-size: 0.8rem; color: """ + COLORS["text_secondary"] + """; }
.vehicle-card .cost-label { font-size: 0.7rem; color: """ + COLORS["text_secondary"] + """; text-transform: uppercase; margin-top: 12px; }
.vehicle-card .cost { font-size: 1.1rem; font-weight: 600; color: """ + COLORS["warning"] + """; }
.vehicle-card .plate {
    display: inline-block;
    font-family: monospace;
    font-size: 1.3rem;
    background: """ + COLORS["bg_base"] + """;
    border: 1px solid """ + COLORS["border"] + """;
    border-radius: 6px;
    padding: 2px 10px;
    margin-top: 12px;
    color: """ + COLORS["text_primary"] + """;
}

/* ── Status Badge ── */
.st-badge {
    display: inline-block;
    font-size: 0.7rem;
    font-weight: 600;
    padding: 2px 8px;
    border-radius: 999px;
}
.st-badge.success { background: """ + COLORS["success_dim"] + """; color: """ + COLORS["success"] + """; }
.st-badge.danger  { background: """ + COLORS["danger_dim"] + """; color: """ + COLORS["danger"] + """; }
.st-badge.warning { background: """ + COLORS["warning_dim"] + """; color: """ + COLORS["warning"] + """; }
.st-badge.muted   { background: rgba(107,114,128,0.2); color: """ + COLORS["text_secondary"] + """; }
</style>
"""

"""
Dashboard de Notas, Frota e Usuários.
Painel em tempo real sobre Firestore com acesso por função.

Executar:
    streamlit run dashboard/app.py --server.port 8502
"""

import atexit
import sys
from datetime import date
from pathlib import Path

# Garante que o diretório raiz do projeto está no sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from dashboard.api.auth import FirebaseAuth
from dashboard.api.fleet_client import FleetClient
from dashboard.api.store import FirestoreStore
from dashboard.components import section_header, vehicle_card
from dashboard.config import REFRESH_SECONDS
from dashboard.errors import DashboardError
from dashboard.models.note_models import Note, NoteStatus
from dashboard.models.user_models import Module, Role
from dashboard.services.metrics_service import compute_dashboard_stats, compute_fleet_stats
from dashboard.services.notes_service import (
    add_note,
    build_draft,
    delete_note,
    import_notes,
    read_csv_rows,
    search_notes,
    search_users,
    update_note,
)
from dashboard.services.session_service import SessionContext, UserAdminService, role_change_callback
from dashboard.services.sync_service import (
    LiveSnapshot,
    SubscriptionGroup,
    subscribe_notes,
    subscribe_users,
)
from dashboard.styles import CUSTOM_CSS, PLOTLY_TEMPLATE, CHART_COLORS
from dashboard.utils.caching import cached, clear_all_caches, shared_resource
from dashboard.utils.formatting import STATUS_LABELS, format_brl, format_date, format_percent


# ═══════════════════════════════════════════════════════
# PAGE CONFIG
# ═══════════════════════════════════════════════════════

st.set_page_config(
    page_title="Dashboard Financeiro",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(CUSTOM_CSS, unsafe_allow_html=True)

PAGES = {
    Module.DASHBOARD: "Dashboard",
    Module.MANAGEMENT: "Gerenciamento",
    Module.FLEET: "Frota",
    Module.USERS: "Usuários",
}


# ═══════════════════════════════════════════════════════
# RESOURCES
# ═══════════════════════════════════════════════════════

@shared_resource
def get_store() -> FirestoreStore:
    """Cliente Firestore do processo, fechado no shutdown."""
    store = FirestoreStore.from_config()
    atexit.register(store.close)
    return store


@cached()
def load_vehicles():
    """Busca única do inventário de frota (cache de 5 min)."""
    return FleetClient().list_vehicles()


def get_session() -> SessionContext:
    """Auth e sessão são por aba do navegador, não por processo."""
    if "session" not in st.session_state:
        st.session_state.session = SessionContext(FirebaseAuth(), get_store())
    return st.session_state.session


def notify(message: str, ok: bool = True):
    st.toast(message, icon="✅" if ok else "⚠️")


def start_live_data(session: SessionContext):
    """Abre as assinaturas da sessão uma única vez após o login."""
    if "subscriptions" in st.session_state:
        return
    store = get_store()
    group = SubscriptionGroup()
    notes, users = LiveSnapshot(), LiveSnapshot()
    group.add(subscribe_notes(store, notes))
    if session.has_module_access(Module.USERS):
        group.add(subscribe_users(store, users))
    st.session_state.subscriptions = group
    st.session_state.notes = notes
    st.session_state.users = users


def stop_live_data():
    group = st.session_state.pop("subscriptions", None)
    if group is not None:
        group.close()
    st.session_state.pop("notes", None)
    st.session_state.pop("users", None)


# ═══════════════════════════════════════════════════════
# LOGIN
# ═══════════════════════════════════════════════════════

def render_login(session: SessionContext):
    st.title("Acessar Dashboard")
    st.caption("Acesse para gerenciar suas finanças.")
    with st.form("login"):
        email = st.text_input("Email", placeholder="seu@email.com")
        password = st.text_input("Senha", type="password")
        submitted = st.form_submit_button("Entrar", use_container_width=True)
    if submitted:
        try:
            session.sign_in(email, password)
        except DashboardError as e:
            st.error(e.user_message)
            return
        st.rerun()


# ═══════════════════════════════════════════════════════
# DASHBOARD
# ═══════════════════════════════════════════════════════

def render_dashboard(notes: list[Note], loading: bool):
    st.markdown(
        section_header("Dashboard Financeiro", "Visão analítica e em tempo real dos seus registros"),
        unsafe_allow_html=True,
    )
    stats = compute_dashboard_stats(notes)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Gasto (Mês)", format_brl(stats.month_total))
    c2.metric("Média Diária (Mês)", format_brl(stats.daily_average))
    c3.metric("Total Pago (Geral)", format_brl(stats.paid_total))
    c4.metric("Não Pago (Geral)", format_brl(stats.unpaid_total))

    if loading:
        st.info("Carregando dados...")
        return

    left, right = st.columns([3, 2])
    with left:
        st.markdown(section_header("Faturamento Mensal", "Últimos 6 meses"), unsafe_allow_html=True)
        fig = go.Figure(go.Bar(
            x=[p.month_label for p in stats.monthly],
            y=[p.amount for p in stats.monthly],
            marker_color=CHART_COLORS[0],
            hovertemplate="%{x}: R$ %{y:,.2f}<extra></extra>",
        ))
        fig.update_layout(template=PLOTLY_TEMPLATE, height=300)
        st.plotly_chart(fig, use_container_width=True)
    with right:
        st.markdown(section_header("Distribuição por Categoria"), unsafe_allow_html=True)
        if stats.categories:
            fig = px.pie(
                names=[c.name for c in stats.categories],
                values=[c.amount for c in stats.categories],
                color_discrete_sequence=CHART_COLORS,
            )
            fig.update_traces(
                text=[format_percent(c.percentage) for c in stats.categories],
                textinfo="label+text",
            )
            fig.update_layout(template=PLOTLY_TEMPLATE, height=300)
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.caption("Sem dados.")

    st.markdown(section_header("Registros Recentes"), unsafe_allow_html=True)
    if not stats.recent_notes:
        st.caption("Nenhum registro encontrado.")
        return
    st.dataframe(notes_frame(stats.recent_notes), hide_index=True, use_container_width=True)


def notes_frame(notes: list[Note]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Nº Nota": n.document_number or "N/A",
            "Cliente": n.client,
            "Categoria": n.category,
            "Material/Serviço": n.description or "N/A",
            "Placa": n.vehicle_plate or "-",
            "Data": format_date(n.issue_date),
            "Status": STATUS_LABELS[n.status],
            "Valor": format_brl(n.amount),
        }
        for n in notes
    ])


# ═══════════════════════════════════════════════════════
# GERENCIAMENTO
# ═══════════════════════════════════════════════════════

def note_form(session: SessionContext, note: Note | None):
    """Formulário de cadastro (note=None) ou edição."""
    key = f"note-form-{note.id if note else 'new'}"
    with st.form(key, clear_on_submit=note is None):
        c1, c2 = st.columns(2)
        form = {
            "client": c1.text_input("Cliente", value=note.client if note else ""),
            "description": c2.text_input("Material/Serviço", value=(note.description or "") if note else ""),
            "vehicle_plate": c1.text_input("Placa do Veículo (Opcional)", value=(note.vehicle_plate or "") if note else ""),
            "document_number": c2.text_input("Nº da Nota", value=(note.document_number or "") if note else ""),
            "category": c1.text_input("Categoria", value=note.category if note else ""),
            "issue_date": c2.date_input("Data", value=note.issue_date.date() if note else date.today(), format="DD/MM/YYYY"),
            "amount": c1.number_input("Valor Total (R$)", min_value=0.0, step=0.01, value=note.amount if note else 0.0),
            "status": c2.selectbox(
                "Status",
                list(NoteStatus),
                index=list(NoteStatus).index(note.status) if note else 1,
                format_func=STATUS_LABELS.get,
            ),
        }
        if not st.form_submit_button("Salvar"):
            return

    try:
        draft = build_draft(form)
        if note:
            update_note(get_store(), session.profile, note.id, draft)
            notify("Registro atualizado com sucesso!")
        else:
            add_note(get_store(), session.profile, draft)
            notify("Registro adicionado com sucesso!")
    except DashboardError as e:
        notify(e.user_message, ok=False)


def render_management(session: SessionContext, notes: list[Note], loading: bool):
    st.markdown(
        section_header("Controle de Registros", "Gerencie os dados da sua planilha em tempo real"),
        unsafe_allow_html=True,
    )
    can_edit = bool(session.profile and session.profile.permissions.can_edit)

    if can_edit:
        with st.expander("Adicionar Registro"):
            note_form(session, None)
        with st.expander("Importar CSV"):
            upload = st.file_uploader("Arquivo CSV", type=["csv"])
            if upload is not None and st.button("Importar"):
                try:
                    result = import_notes(get_store(), session.profile, read_csv_rows(upload))
                    notify(f"{result.imported} registros importados com sucesso!")
                except DashboardError as e:
                    notify(e.user_message, ok=False)

    query = st.text_input("Buscar", placeholder="Buscar por cliente, categoria, material...")
    if loading:
        st.info("Carregando dados...")
        return
    filtered = search_notes(notes, query)
    if not filtered:
        st.caption("Nenhum registro encontrado. Adicione um novo registro para começar.")
        return
    st.dataframe(notes_frame(filtered), hide_index=True, use_container_width=True)

    if not can_edit:
        return
    labels = {n.id: f"{n.document_number or 'N/A'} · {n.client} · {format_brl(n.amount)}" for n in filtered}
    selected_id = st.selectbox("Registro", list(labels), format_func=labels.get)
    selected = next(n for n in filtered if n.id == selected_id)
    with st.expander("Editar Registro"):
        note_form(session, selected)
    if st.button("Excluir Registro", type="secondary"):
        try:
            delete_note(get_store(), session.profile, selected.id)
            notify("Registro excluído com sucesso!")
        except DashboardError as e:
            notify(e.user_message, ok=False)


# ═══════════════════════════════════════════════════════
# FROTA
# ═══════════════════════════════════════════════════════

def render_fleet(notes: list[Note]):
    st.markdown(
        section_header("Gerenciamento de Frota", "Custos associados a cada veículo"),
        unsafe_allow_html=True,
    )
    try:
        vehicles = load_vehicles()
    except DashboardError as e:
        st.error(e.user_message)
        return

    fleet = compute_fleet_stats(notes, vehicles)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total de Veículos", fleet.total_vehicles)
    c2.metric("Veículos Ativos", fleet.active_vehicles)
    c3.metric("Custo Total da Frota", format_brl(fleet.total_fleet_cost))

    columns = st.columns(3)
    for i, item in enumerate(fleet.vehicles):
        columns[i % 3].markdown(vehicle_card(item), unsafe_allow_html=True)


# ═══════════════════════════════════════════════════════
# USUÁRIOS
# ═══════════════════════════════════════════════════════

def render_users(session: SessionContext, users: list, loading: bool):
    st.markdown(
        section_header("Gerenciamento de Usuários", "Adicione, edite e remova os usuários do sistema"),
        unsafe_allow_html=True,
    )
    admin = UserAdminService(get_store(), session.auth)
    roles = list(Role)

    with st.form("new-user", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        email = c1.text_input("E-mail", placeholder="email@exemplo.com")
        password = c2.text_input("Senha Inicial", type="password")
        role = c3.selectbox("Função", roles, index=roles.index(Role.VIEWER), format_func=lambda r: r.value.title())
        if st.form_submit_button("Adicionar Usuário"):
            try:
                admin.create_user(session.profile, email, password, role)
                notify("Usuário adicionado com sucesso!")
            except DashboardError as e:
                notify(e.user_message, ok=False)

    query = st.text_input("Pesquisar por e-mail")
    if loading:
        st.info("Carregando usuários...")
        return

    for user in search_users(users, query):
        is_self = user.uid == session.profile.uid
        c1, c2, c3 = st.columns([3, 2, 1])
        c1.write(user.email)
        key = f"role-{user.uid}"
        # Seletor acompanha a função gravada quando ela muda no banco
        if st.session_state.get(f"{key}-stored") != user.role:
            st.session_state[key] = user.role
            st.session_state[f"{key}-stored"] = user.role
        c2.selectbox(
            "Função",
            roles,
            key=key,
            disabled=is_self,
            label_visibility="collapsed",
            format_func=lambda r: r.value.title(),
            on_change=role_change_callback(admin, session.profile, user, st.session_state, key, notify),
        )
        if is_self:
            c2.caption("Você não pode alterar sua própria função.")
        try:
            if c3.button("Remover", key=f"remove-{user.uid}", disabled=is_self):
                admin.remove_user(session.profile, user.uid)
                notify(f"Usuário {user.email} removido.")
        except DashboardError as e:
            notify(e.user_message, ok=False)


# ═══════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════

try:
    session = get_session()
except (DashboardError, ValueError) as e:
    st.error(f"Erro de configuração: {e}")
    st.info("Verifique FIREBASE_API_KEY e as credenciais do Firestore no .env ou st.secrets.")
    st.stop()

if not session.is_authenticated:
    stop_live_data()
    render_login(session)
    st.stop()

start_live_data(session)
allowed = [m for m in PAGES if session.has_module_access(m)]

with st.sidebar:
    st.title("Dashboard")
    st.caption(f"{session.principal.email} · {session.profile.role.value if session.profile else '-'}")
    page = st.radio("Navegação", allowed, format_func=PAGES.get) if allowed else None
    st.divider()
    if st.button("Atualizar Frota", use_container_width=True):
        clear_all_caches()
    if st.button("Sair", use_container_width=True):
        stop_live_data()
        session.sign_out()
        st.rerun()


@st.fragment(run_every=REFRESH_SECONDS)
def render_page():
    notes_feed: LiveSnapshot = st.session_state.notes
    users_feed: LiveSnapshot = st.session_state.users
    if page is None:
        st.warning("Sua função não tem acesso a nenhum módulo.")
    elif page is Module.DASHBOARD:
        render_dashboard(notes_feed.items, not notes_feed.loaded)
    elif page is Module.MANAGEMENT:
        render_management(session, notes_feed.items, not notes_feed.loaded)
    elif page is Module.FLEET:
        render_fleet(notes_feed.items)
    elif page is Module.USERS:
        render_users(session, users_feed.items, not users_feed.loaded)


render_page()

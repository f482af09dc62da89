"""
Utilitários de cache para o dashboard.
Fornece decoradores e helpers para evitar chamadas duplicadas aos serviços.
"""

import streamlit as st
from dashboard.config import CACHE_TTL


def cached(ttl: int = CACHE_TTL):
    """Decorador wrapper em torno de st.cache_data para dados (ex: frota)."""
    return st.cache_data(ttl=ttl, show_spinner=False)


def shared_resource(func):
    """Uma instância por processo (clientes de banco/auth), fechada no shutdown."""
    return st.cache_resource(show_spinner=False)(func)


def clear_all_caches():
    """Limpa todos os caches de dados do Streamlit."""
    st.cache_data.clear()

"""
QuickRide Express - Live Dashboard
==================================

Dashboard for a live ride lifecycle session.

Features:
- Trip request form with CPF/phone validation and fare estimate
- Active rides and historical archive tables
- Per-ride chat with the automated driver reply
- Tunable tick parameters

Run:
    streamlit run app.py
"""

import os
import sys
import random
from typing import Dict, Optional

import pandas as pd
import streamlit as st

# Ensure quickride is importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from quickride import config, utils
from quickride.engine import RideEngine
from quickride.intake import InvalidRideParameters, RideParameters
from quickride.models import Collection, RideCategory, RideStatus, Sender
from quickride.pricing import estimate_fare

# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="QuickRide Express",
    page_icon="🚗",
    layout="wide",
    initial_sidebar_state="expanded"
)

# =============================================================================
# CUSTOM STYLING
# =============================================================================

st.markdown("""
<style>
    .main .block-container {
        padding-top: 2rem;
        padding-bottom: 2rem;
    }

    /* KPI Cards */
    .kpi-card {
        background: linear-gradient(135deg, #2563eb 0%, #1e3a8a 100%);
        border-radius: 16px;
        padding: 1.5rem;
        color: white;
        text-align: center;
        box-shadow: 0 10px 40px rgba(37, 99, 235, 0.3);
    }

    .kpi-card.green {
        background: linear-gradient(135deg, #059669 0%, #34d399 100%);
        box-shadow: 0 10px 40px rgba(5, 150, 105, 0.3);
    }

    .kpi-value {
        font-size: 2.5rem;
        font-weight: 800;
        margin: 0.5rem 0;
    }

    .kpi-label {
        font-size: 0.9rem;
        opacity: 0.9;
        text-transform: uppercase;
        letter-spacing: 1px;
    }

    .section-header {
        font-size: 1.5rem;
        font-weight: 700;
        margin: 2rem 0 1rem 0;
        padding-bottom: 0.5rem;
        border-bottom: 3px solid #2563eb;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)

# =============================================================================
# SESSION
# =============================================================================


def get_engine() -> RideEngine:
    """One engine per browser session, synced to wall-clock time on every rerun."""
    if "engine" not in st.session_state:
        st.session_state["engine"] = RideEngine(seed_history=True)
    engine: RideEngine = st.session_state["engine"]
    engine.sync()
    return engine


# =============================================================================
# SIDEBAR
# =============================================================================


def render_request_form(engine: RideEngine) -> None:
    """Trip request form. Masks are applied before validation, like the on-screen keyboard does."""
    st.sidebar.markdown("## 🚗 Nova Corrida")

    category_name = st.sidebar.selectbox(
        "Categoria",
        options=[c.name for c in RideCategory],
        index=1,
        format_func=lambda name: RideCategory[name].label,
    )
    quote_key = f"quote_{category_name}"
    if quote_key not in st.session_state:
        st.session_state[quote_key] = estimate_fare(RideCategory[category_name], random.Random())
    st.sidebar.caption(f"Estimativa: {utils.format_brl(st.session_state[quote_key])}")

    with st.sidebar.form("ride_form", clear_on_submit=True):
        destination = st.text_input("Destino")
        passenger_name = st.text_input("Nome do passageiro")
        passenger_cpf = st.text_input("CPF", max_chars=14)
        passenger_whatsapp = st.text_input("WhatsApp", max_chars=15)
        submitted = st.form_submit_button("Solicitar corrida", use_container_width=True)

    if not submitted:
        return

    try:
        ride_id = engine.request_ride(RideParameters(
            destination=destination,
            passenger_name=passenger_name,
            passenger_cpf=utils.mask_cpf(passenger_cpf),
            passenger_whatsapp=utils.mask_phone(passenger_whatsapp),
            category=category_name,
        ))
    except InvalidRideParameters as e:
        for field_name, reason in e.errors.items():
            st.sidebar.error(f"{field_name}: {reason}")
        return

    ride = engine.find(ride_id)
    st.session_state.pop(quote_key, None)
    if ride is not None:
        st.sidebar.success(f"OS {ride.os_number} confirmada - {ride.driver_name or 'buscando motorista'}")


def render_parameters() -> None:
    """Retune the running session."""
    st.sidebar.markdown("---")
    st.sidebar.markdown("### ⚙️ Parâmetros")

    config.FINISH_PROBABILITY = st.sidebar.slider(
        "Chance de finalizar por tick",
        min_value=0.0,
        max_value=1.0,
        value=float(config.FINISH_PROBABILITY),
        step=0.05,
        help="Applies to rides already at the pickup point"
    )
    config.DISTANCE_STEP_KM = st.sidebar.slider(
        "Aproximação por tick (km)",
        min_value=0.05,
        max_value=1.0,
        value=float(config.DISTANCE_STEP_KM),
        step=0.05,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🔄 Atualizar", use_container_width=True):
        st.rerun()


# =============================================================================
# KPI DISPLAY
# =============================================================================


def render_kpi_row(results: Dict) -> None:
    col1, col2, col3, col4 = st.columns(4)
    cards = [
        (col1, "", "Corridas ativas", results["active_rides"]),
        (col2, "green", "Finalizadas", results["finished_rides"]),
        (col3, "", "Histórico", results["archived_rides"]),
        (col4, "", "Mensagens", results["messages_exchanged"]),
    ]
    for col, css, label, value in cards:
        with col:
            st.markdown(f"""
            <div class="kpi-card {css}">
                <div class="kpi-label">{label}</div>
                <div class="kpi-value">{value}</div>
            </div>
            """, unsafe_allow_html=True)


# =============================================================================
# TABLES
# =============================================================================


def render_collection(engine: RideEngine, collection: Collection, title: str) -> None:
    st.markdown(f'<div class="section-header">{title}</div>', unsafe_allow_html=True)
    rows = engine.snapshot_rows(collection)
    if not rows:
        st.info("Nenhuma corrida por aqui.")
        return

    df = pd.DataFrame(rows).set_index("id")
    st.dataframe(
        df,
        use_container_width=True,
        hide_index=True,
        column_config={
            "Progresso": st.column_config.ProgressColumn(
                "Progresso", min_value=0, max_value=100, format="%d%%"
            ),
        },
    )

    options = {row["id"]: f"OS {row['OS']} - {row['Passageiro']}" for row in rows}
    col1, col2 = st.columns([3, 1])
    with col1:
        selected = st.selectbox(
            "Corrida",
            options=list(options.keys()),
            format_func=lambda ride_id: options[ride_id],
            key=f"chat_select_{collection.value}",
            label_visibility="collapsed",
        )
    with col2:
        if st.button("💬 Abrir chat", key=f"open_chat_{collection.value}", use_container_width=True):
            engine.open_chat(selected)
            st.rerun()


# =============================================================================
# CHAT
# =============================================================================


def render_chat(engine: RideEngine) -> None:
    ride = engine.active_chat_ride
    if ride is None:
        return

    st.markdown(
        f'<div class="section-header">💬 {ride.driver_name or "Motorista"} · OS {ride.os_number}</div>',
        unsafe_allow_html=True,
    )
    if ride.driver_info is not None:
        st.caption(f"{ride.driver_info.vehicle_description} · {ride.driver_info.plate} "
                   f"· ⭐ {ride.driver_info.rating:.1f}")

    if not ride.messages:
        st.caption("Inicie a conversa com seu motorista")
    for message in ride.messages:
        role = "user" if message.sender == Sender.REQUESTER else "assistant"
        with st.chat_message(role):
            st.write(message.text)
            st.caption(utils.format_clock(message.timestamp))

    text: Optional[str] = st.chat_input("Digite uma mensagem...")
    if text:
        engine.send_message(ride.id, text)
        st.rerun()

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Fechar chat", use_container_width=True):
            engine.close_chat()
            st.rerun()
    with col2:
        label = "Excluir do histórico" if ride.status == RideStatus.FINISHED else "Cancelar corrida"
        if st.button(label, use_container_width=True, type="primary"):
            engine.cancel(ride.id)
            st.rerun()


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    engine = get_engine()

    st.markdown("# QUICKRIDE EXPRESS")
    st.caption("Sua corrida a um toque de distância")

    render_request_form(engine)
    render_parameters()

    render_kpi_row(engine.get_results())
    render_collection(engine, Collection.ACTIVE, "🚦 Painel")
    render_chat(engine)
    render_collection(engine, Collection.ARCHIVE, "📂 Histórico")


main()

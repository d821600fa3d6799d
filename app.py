import logging
from contextlib import contextmanager
from typing import List, Optional

import pandas as pd
import streamlit as st

from pricedash.charts import build_brand_chart, build_brand_gear_chart, build_evolution_chart, build_gear_chart
from pricedash.config import TOP_N_BRANDS_DEFAULT, TOP_N_GROUPED_DEFAULT
from pricedash.data import load_upload
from pricedash.filters import normalize_filters
from pricedash.formatting import format_brl_0, format_int_ptbr
from pricedash.metrics import compute_dashboard
from pricedash.parsing import CsvReadError

logger = logging.getLogger(__name__)

READ_ERROR = "Erro ao ler o arquivo."
PROCESS_ERROR = "Erro ao processar dados. Verifique se o arquivo é um CSV válido."


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .fig-tag {background: #dbeafe;color: #1e40af;font-size: 0.75rem;padding: 2px 8px;border-radius: 4px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, tag: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div>{f"<span class='fig-tag'>{tag}</span>" if tag else ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(brands: List[str], fuels: List[str], gears: List[str]) -> str:
    chips = [
        "Marca: Todas" if not brands else f"Marca: {', '.join(brands)}",
        "Combustível: Todos" if not fuels else f"Combustível: {', '.join(fuels)}",
        "Câmbio: Todos" if not gears else f"Câmbio: {', '.join(gears)}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def reset_upload():
    st.session_state["upload_key"] = st.session_state.get("upload_key", 0) + 1


# ---------- UI setup ----------
st.set_page_config(page_title="Dashboard Analítico - DataViz", layout="wide")
inject_base_styles()
st.title("Dashboard Analítico - DataViz")
st.caption("Análise de Preços de Carros no Brasil")

uploaded = st.file_uploader(
    "Selecionar Arquivo CSV",
    type=["csv"],
    key=f"upload_{st.session_state.get('upload_key', 0)}",
    help="Faça o upload do arquivo .csv fornecido para gerar as visualizações automaticamente.",
)
if uploaded is None:
    st.info("Carregue seu dataset para gerar as visualizações.")
    st.stop()

try:
    with st.spinner("Processando dados..."):
        data_ctx = load_upload(uploaded.getvalue())
except CsvReadError as exc:
    logger.warning("Upload %s rejected: %s", uploaded.name, exc)
    st.error(READ_ERROR)
    st.stop()
except Exception:
    logger.exception("Failed to process %s", uploaded.name)
    st.error(PROCESS_ERROR)
    st.stop()

records: pd.DataFrame = data_ctx["records"]
if records.empty:
    st.error(PROCESS_ERROR)
    st.stop()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navegar")
    nav_choice = st.radio("Navegar", ["Dashboard", "Qualidade dos Dados"], index=0)

    st.markdown("---")
    st.markdown("### Filtros")
    selected_brands = st.multiselect("Marca", options=data_ctx["brands"], default=[])
    selected_fuels = st.multiselect("Combustível", options=data_ctx["fuels"], default=[])
    selected_gears = st.multiselect("Câmbio", options=data_ctx["gears"], default=[])

    st.markdown("---")
    with st.expander("Configurações avançadas", expanded=False):
        top_n_brands = st.slider("Top N marcas (Fig A)", min_value=3, max_value=30, value=TOP_N_BRANDS_DEFAULT)
        top_n_grouped = st.slider("Top N marcas (Fig D)", min_value=2, max_value=15, value=TOP_N_GROUPED_DEFAULT)

filters = normalize_filters(
    {
        "selected_brands": selected_brands,
        "selected_fuels": selected_fuels,
        "selected_gears": selected_gears,
        "top_n_brands": top_n_brands,
        "top_n_grouped": top_n_grouped,
    }
)
try:
    payload = compute_dashboard(records, filters, with_charts=False)
except Exception:
    logger.exception("Failed to aggregate %s", uploaded.name)
    st.error(PROCESS_ERROR)
    st.stop()
kpis = payload["kpis"]


def render_control_bar():
    cols = st.columns([6, 2, 2])
    cols[0].markdown(f"Arquivo: **{uploaded.name}**")
    cols[1].download_button(
        "Exportar CSV limpo",
        data=records.to_csv(index=False).encode("utf-8"),
        file_name=f"{uploaded.name.rsplit('.', 1)[0]}_clean.csv",
        mime="text/csv",
    )
    cols[2].button("Remover arquivo", on_click=reset_upload)
    st.markdown(
        f"<div class='chip-row'>{format_filter_summary(filters.selected_brands, filters.selected_fuels, filters.selected_gears)}</div>",
        unsafe_allow_html=True,
    )


def render_kpi_cards():
    cols = st.columns(3)
    cols[0].metric("Total de Registros", format_int_ptbr(kpis["total_cars"]), help="Linhas processadas")
    cols[1].metric("Preço Médio Global", format_brl_0(kpis["avg_price"]), help="Média de todas as categorias")
    cols[2].metric("Marca Mais Frequente", kpis["most_common_brand"], help="Maior volume de dados")


def render_dashboard_page():
    render_control_bar()
    if kpis["total_cars"] == 0:
        st.info("Nenhum registro para os filtros selecionados.")
        return
    render_kpi_cards()

    left, right = st.columns(2)
    with left:
        with card(f"Distribuição de Carros por Marca (Top {filters.top_n_brands})", tag="FIG A"):
            st.altair_chart(build_brand_chart(payload["brand_data"]), use_container_width=True)
            st.caption("Marcas com maior frequência na base de dados.")
    with right:
        with card("Distribuição por Tipo de Engrenagem", tag="FIG B"):
            st.altair_chart(build_gear_chart(payload["gear_data"]), use_container_width=True)
            st.caption("Comparativo entre Câmbio Manual e Automático.")

    with card("Evolução Média de Preço por Trimestre", tag="FIG C"):
        if not payload["evolution_data"]:
            st.info("Sem mês/ano de referência para montar a série.")
        else:
            st.altair_chart(build_evolution_chart(payload["evolution_data"]), use_container_width=True)
        st.caption(
            "Dados agrupados por trimestre (Q1: Jan-Mar, Q2: Abr-Jun, Q3: Jul-Set, Q4: Out-Dez) para análise temporal detalhada."
        )

    with card(f"Preço Médio por Marca e Tipo de Câmbio (Top {filters.top_n_grouped})", tag="FIG D"):
        st.altair_chart(build_brand_gear_chart(payload["grouped_data"]), use_container_width=True)
        st.caption("Análise cruzada para identificar impacto do câmbio no valor por marca.")


def render_data_quality_page():
    render_control_bar()
    with card("Qualidade dos Dados"):
        st.markdown("**Contagem de linhas**")
        st.write(
            {
                "rows_read": int(data_ctx["rows_read"]),
                "rows_kept": int(len(records)),
                "rows_dropped": int(data_ctx["rows_dropped"]),
            }
        )
        st.markdown("**Valores ausentes após limpeza**")
        clean_cols = [c for c in records.columns if c.endswith("_clean")]
        st.write({c: int(records[c].isna().sum()) for c in clean_cols})
        st.markdown("**Amostra**")
        st.dataframe(records.head(50), hide_index=True, use_container_width=True)


if nav_choice == "Dashboard":
    render_dashboard_page()
else:
    render_data_quality_page()

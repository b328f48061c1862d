#!/usr/bin/env python3
"""
Anime Year Catalog Dashboard
Single-file Streamlit application for fetching, browsing and marking anime.

Run:  streamlit run dashboard.py
"""

import sys
from pathlib import Path

import pandas as pd
import streamlit as st
import plotly.express as px
import plotly.graph_objects as go

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="Anime Year Catalog",
    page_icon="\U0001F4FA",
    layout="wide",
    initial_sidebar_state="expanded",
)

PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from anime_catalog.catalog import AnimeCatalog  # noqa: E402
from anime_catalog.config import load_config  # noqa: E402
from anime_catalog.query import QueryFilter  # noqa: E402
from anime_catalog.stats import year_bars  # noqa: E402

PLACEHOLDER_IMAGE = 'https://dummyimage.com/140x200/111827/ffffff&text=Anime'
CARDS_PER_ROW = 4
MAX_CARDS = 60
MARKED_COLOR = '#55A868'
TABLE_BACKGROUND = '#0b1018'


@st.cache_resource
def get_catalog() -> AnimeCatalog:
    """One catalog (and translation pool) per Streamlit server process."""
    config = load_config(PROJECT_ROOT / 'config.yaml')
    return AnimeCatalog(config)


# ---------------------------------------------------------------------------
# Sidebar – fetch controls and filters
# ---------------------------------------------------------------------------

def run_prefetch(catalog: AnimeCatalog, deep: bool):
    bar = st.sidebar.progress(0, text="Starting...")

    def on_progress(processed, total, year):
        bar.progress(processed / total, text=f"Fetched {year} ({processed}/{total})")

    report = catalog.prefetch(deep=deep, on_progress=on_progress)
    bar.progress(1.0, text="Done")
    for error in report.errors[-5:]:
        st.sidebar.warning(error)


def render_sidebar(catalog: AnimeCatalog) -> QueryFilter:
    config = catalog.config
    with st.sidebar:
        st.title("\U0001F4FA Anime Year Catalog")

        years = list(range(config['year_end'], config['year_start'] - 1, -1))
        year = st.selectbox("Year", [None] + years, index=1,
                            format_func=lambda y: 'All years' if y is None else str(y))

        st.subheader("Fetch")
        col_a, col_b, col_c = st.columns(3)
        if col_a.button("Year", disabled=year is None, help="Fetch the selected year"):
            with st.spinner(f"Fetching {year}..."):
                report = catalog.fetch_year(year)
            for error in report.errors:
                st.warning(error)
        if col_b.button("Light", help="1 page for every year"):
            run_prefetch(catalog, deep=False)
        if col_c.button("Deep", help="4 pages for every year"):
            run_prefetch(catalog, deep=True)

        st.divider()
        st.subheader("Filter")
        media_type = st.selectbox("Type", [''] + catalog.query_engine.media_types(),
                                  format_func=lambda t: t or 'All types')
        status = st.selectbox("Status", [''] + catalog.query_engine.statuses(),
                              format_func=lambda s: s or 'All statuses')
        keyword = st.text_input("Search title")
        watched = st.radio("Watched", ['All', 'Watched', 'Not watched'], horizontal=True)

        st.divider()
        if st.button("Clear watched marks"):
            catalog.clear_marked()
        if st.button("Clear record cache"):
            catalog.clear_records()

    marked = {'All': None, 'Watched': True, 'Not watched': False}[watched]
    return QueryFilter(year=year, media_type=media_type or None, status=status or None,
                       keyword=keyword, marked=marked)


# ---------------------------------------------------------------------------
# Stats and translation progress
# ---------------------------------------------------------------------------

def render_stats(catalog: AnimeCatalog):
    stats = catalog.stats()
    progress = catalog.translator.progress()

    cols = st.columns(4)
    cols[0].metric("Loaded", f"{stats.loaded:,}")
    cols[1].metric("Watched", stats.marked)
    cols[2].metric("Coverage", f"{stats.coverage}%")
    hot = stats.hot_year
    cols[3].metric("Hot year", f"{hot[0]} · {hot[1]}" if hot else '-')

    st.progress(progress.percent, text=progress.describe())
    if progress.pending and st.button("Refresh translated titles"):
        st.rerun()


# ---------------------------------------------------------------------------
# Browser
# ---------------------------------------------------------------------------

def render_browser(catalog: AnimeCatalog, flt: QueryFilter):
    records = catalog.query(flt)
    st.subheader(f"Anime ({len(records)})")
    if not records:
        st.info("No anime yet. Pick a year and fetch, or loosen the filters.")
        return

    shown = records[:MAX_CARDS]
    for start in range(0, len(shown), CARDS_PER_ROW):
        cols = st.columns(CARDS_PER_ROW)
        for col, record in zip(cols, shown[start:start + CARDS_PER_ROW]):
            with col:
                st.image(record.image or PLACEHOLDER_IMAGE, width=140)
                st.markdown(f"**{record.title}**")
                st.caption(f"{record.media_type} · {record.year or 'Unknown'} · "
                           f"score {record.score_display}")
                st.caption(f"{record.status or 'Status unknown'} · "
                           f"{record.episodes_display} eps")
                is_marked = catalog.marked.is_marked(record.id)
                label = "Watched ✓" if is_marked else "Mark watched"
                if st.button(label, key=f"mark-{record.id}",
                             type='primary' if is_marked else 'secondary'):
                    catalog.toggle_marked(record.id)
                    st.rerun()
    if len(records) > MAX_CARDS:
        st.caption(f"Showing top {MAX_CARDS} of {len(records)}")

    df = pd.DataFrame([{
        'id': r.id,
        'title': r.title,
        'type': r.media_type,
        'year': r.year,
        'score': r.score,
        'episodes': r.episodes,
        'status': r.status,
        'watched': catalog.marked.is_marked(r.id),
        'url': r.url,
    } for r in records])
    with st.expander("Table view"):
        st.dataframe(df, use_container_width=True, hide_index=True,
                     column_config={'url': st.column_config.LinkColumn('url')})


# ---------------------------------------------------------------------------
# Share card – watched per year and the exportable year table
# ---------------------------------------------------------------------------

def render_share(catalog: AnimeCatalog):
    st.header("Share")
    stats = catalog.stats()

    bars = year_bars(stats.marked_by_year)
    if bars:
        bar_df = pd.DataFrame(
            [{'year': str(year)[2:], 'count': stats.marked_by_year[year]} for year, _ in bars]
        )
        fig = px.bar(bar_df, x='year', y='count', color_discrete_sequence=[MARKED_COLOR])
        fig.update_layout(height=240, margin=dict(t=10, b=20), xaxis_title='',
                          yaxis_title='Watched')
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.caption("No watched marks yet")

    rows = catalog.year_table()
    width = max((len(records) for _, records in rows), default=0)
    if not width:
        return

    header = ['Year'] + [f"#{i}" for i in range(1, width + 1)]
    columns = [[str(year) for year, _ in rows]]
    fills = [[TABLE_BACKGROUND] * len(rows)]
    for i in range(width):
        cells, colors = [], []
        for _, records in rows:
            record = records[i] if i < len(records) else None
            cells.append(record.title if record else '')
            marked = record is not None and catalog.marked.is_marked(record.id)
            colors.append(MARKED_COLOR if marked else TABLE_BACKGROUND)
        columns.append(cells)
        fills.append(colors)

    # Toolbar camera icon exports the table as PNG
    fig = go.Figure(data=[go.Table(
        header=dict(values=header, fill_color='#111827', font=dict(color='white')),
        cells=dict(values=columns, fill_color=fills, font=dict(color='white', size=11),
                   height=26),
    )])
    fig.update_layout(height=60 + 26 * len(rows), margin=dict(t=10, b=10, l=0, r=0),
                      paper_bgcolor=TABLE_BACKGROUND)
    st.plotly_chart(fig, use_container_width=True,
                    config={'toImageButtonOptions': {'filename': 'anime-years-table',
                                                     'format': 'png'}})


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    catalog = get_catalog()
    flt = render_sidebar(catalog)
    render_stats(catalog)
    st.divider()
    render_browser(catalog, flt)
    st.divider()
    render_share(catalog)


if __name__ == '__main__':
    main()

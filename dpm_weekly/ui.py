from __future__ import annotations

from contextlib import contextmanager
from html import escape
from typing import Iterator, Optional

import streamlit as st


def _inject_css() -> None:
    st.markdown(
        """
<style>
:root {
  --wk-app-bg: #F5F7FA;
  --wk-card-bg: #FFFFFF;
  --wk-text-primary: #0F172A;
  --wk-text-secondary: #64748B;
  --wk-border: #E5E7EB;
}

.stApp {
  background: var(--wk-app-bg);
  color: var(--wk-text-primary);
}

.wk-page-title {
  margin: 0;
  font-size: 2rem;
  font-weight: 700;
}

.wk-page-subtitle {
  margin-top: 0.35rem;
  margin-bottom: 0.75rem;
  font-size: 0.9rem;
  color: var(--wk-text-secondary);
}

.wk-divider {
  border-top: 1px solid var(--wk-border);
  margin: 0.4rem 0 1rem 0;
}

.wk-kpi-card {
  background: var(--wk-card-bg);
  border: 1px solid var(--wk-border);
  border-radius: 12px;
  padding: 0.8rem 1rem;
}

.wk-kpi-label { font-size: 0.8rem; color: var(--wk-text-secondary); }
.wk-kpi-value { font-size: 1.6rem; font-weight: 700; }
.wk-kpi-caption { font-size: 0.75rem; color: var(--wk-text-secondary); }
.wk-card-title { font-weight: 600; margin-bottom: 0.2rem; }
.wk-card-help { font-size: 0.8rem; color: var(--wk-text-secondary); margin-bottom: 0.5rem; }
</style>
        """,
        unsafe_allow_html=True,
    )


def _render_sidebar_nav() -> None:
    with st.sidebar:
        st.markdown("### DPM Weekly")
        st.caption("Weekly project status roll-up")
        st.divider()
        st.page_link("Home.py", label="Home")
        st.page_link("pages/01_Submit_Update.py", label="Submit update")
        st.page_link("pages/02_Weekly_Report.py", label="Weekly report")


def init_page() -> None:
    _inject_css()
    _render_sidebar_nav()


def render_page_header(title: str, subtitle: Optional[str] = None) -> None:
    st.markdown(f'<h1 class="wk-page-title">{escape(title)}</h1>', unsafe_allow_html=True)
    if subtitle:
        st.markdown(f'<div class="wk-page-subtitle">{escape(subtitle)}</div>', unsafe_allow_html=True)
    st.markdown('<div class="wk-divider"></div>', unsafe_allow_html=True)


@contextmanager
def card(title: str, help_text: Optional[str] = None) -> Iterator[None]:
    with st.container(border=True):
        st.markdown(f'<div class="wk-card-title">{escape(title)}</div>', unsafe_allow_html=True)
        if help_text:
            st.markdown(f'<div class="wk-card-help">{escape(help_text)}</div>', unsafe_allow_html=True)
        yield


def kpi_card(label: str, value: object, caption: Optional[str] = None) -> None:
    parts = [
        '<div class="wk-kpi-card">',
        f'<div class="wk-kpi-label">{escape(str(label))}</div>',
        f'<div class="wk-kpi-value">{escape(str(value))}</div>',
    ]
    if caption:
        parts.append(f'<div class="wk-kpi-caption">{escape(str(caption))}</div>')
    parts.append("</div>")
    st.markdown("".join(parts), unsafe_allow_html=True)

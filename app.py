import html

import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from campaign_core.data import CAMPAIGN_TITLE, dataset_to_text, decode_upload
from campaign_core.metrics_achievement import compute_achievement
from campaign_core.metrics_debug import compute_debug
from campaign_core.metrics_distribution import compute_distribution
from campaign_core.metrics_overview import compute_overview
from campaign_core.options import normalize_ingest_settings
from campaign_core.state import STATUS_REJECTED, apply_upload_once, initial_state, prepare_context, reset_state


# ---------- UI / layout helpers ----------
def inject_base_styles():
    st.markdown(
        """
        <style>
        .main .block-container {direction: rtl;}
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #374151;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.6rem;font-weight: 700;}
        .app-top-bar .breadcrumb {color: #9ca3af;font-size: 0.9rem;margin-bottom: 2px;}
        .card-title {font-weight: 600;font-size: 1.1rem;margin-bottom: 8px;}
        </style>
        """,
        unsafe_allow_html=True,
    )


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def render_page_header(title: str, breadcrumb: str, export_text: Optional[str] = None):
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{html.escape(breadcrumb)}</div>"
            f"<div class='page-title'>{html.escape(title)}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_text:
            st.download_button(
                "تصدير CSV",
                data=export_text.encode("utf-8"),
                file_name="campaign.csv",
                mime="text/csv",
            )


def render_summary_cards(summary: Dict[str, Any]):
    if not summary.get("has_data"):
        st.info("لا توجد بيانات لعرضها. قم بتحميل ملف يحتوي على صف قسم واحد على الأقل.")
        return
    subtitles = {
        "target": summary.get("department") or "",
        "achieved": "من إجمالي المستهدف",
        "remaining": "للوصول للمستهدف",
        "achievement_pct": "من المستهدف الكلي",
    }
    cols = st.columns(len(summary["cards"]))
    for col, c in zip(cols, summary["cards"]):
        col.metric(c["title"], c["display"])
        col.caption(subtitles.get(c["key"], ""))


def render_chart(title: str, spec: Optional[Dict[str, Any]]):
    with card(title):
        if not spec:
            st.info("لا توجد بيانات كافية للرسم.")
            return
        st.vega_lite_chart(spec, use_container_width=True)


def render_issues(issues: List[Dict[str, Any]], status: str):
    if status == STATUS_REJECTED:
        st.error("الملف لا يحتوي على صفوف صالحة؛ تم الاحتفاظ بالبيانات السابقة.")
    if not issues:
        return
    st.warning(f"تم تجاهل {len(issues)} صف(وف) أثناء قراءة الملف.")
    with st.expander("عرض الصفوف المتجاهلة"):
        st.dataframe(pd.DataFrame(issues), hide_index=True, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Campaign Dashboard", layout="wide")
inject_base_styles()

if "dashboard_state" not in st.session_state:
    st.session_state["dashboard_state"] = initial_state()
    st.session_state["upload_id"] = None

# ----- Sidebar: upload + options -----
with st.sidebar:
    st.markdown("### تحميل البيانات")
    uploaded = st.file_uploader("تحميل ملف CSV", type=["csv"])

    with st.expander("إعدادات القراءة", expanded=False):
        strict_numbers = st.checkbox("تجاهل الصفوف ذات الأرقام غير الصالحة", value=True)
        keep_previous_on_empty = st.checkbox("الاحتفاظ بالبيانات السابقة إذا كان الملف فارغاً", value=True)

    # the attached file's id is kept, so it is not re-applied over the defaults
    if st.button("استعادة البيانات الافتراضية"):
        st.session_state["dashboard_state"] = reset_state(st.session_state["dashboard_state"])

settings = normalize_ingest_settings({"strict_numbers": strict_numbers, "keep_previous_on_empty": keep_previous_on_empty})

# Streamlit keeps the same upload across reruns; each attached file gets a fresh file_id.
if uploaded is not None:
    st.session_state["dashboard_state"], st.session_state["upload_id"] = apply_upload_once(
        st.session_state["dashboard_state"],
        st.session_state.get("upload_id"),
        uploaded.file_id,
        lambda: decode_upload(uploaded.getvalue()),
        source=uploaded.name,
        settings=settings,
    )

state = st.session_state["dashboard_state"]
departments = list(state.dataset.labels)

with st.sidebar:
    st.markdown("---")
    st.markdown("### خيارات العرض")
    selected_departments = st.multiselect("الأقسام", options=departments, default=[])
    summary_index = 0
    if departments:
        summary_label = st.selectbox("قسم البطاقات", options=departments, index=0)
        summary_index = departments.index(summary_label)
    numerals = st.radio("الأرقام", ["arab", "latn"], index=0, horizontal=True)
    chart_height = st.slider("ارتفاع الرسوم", min_value=240, max_value=600, value=400, step=40)

options = {
    "selected_departments": selected_departments,
    "summary_index": summary_index,
    "numerals": numerals,
    "chart_height": chart_height - 80,
}
ctx = prepare_context(options, state)
opts = ctx["options"]

overview = compute_overview(opts, ctx)
achievement = compute_achievement(opts, ctx)
distribution = compute_distribution(opts, ctx)

render_page_header(
    CAMPAIGN_TITLE,
    f"المصدر: {state.source}",
    export_text=dataset_to_text(state.dataset) if not state.dataset.is_empty else None,
)
render_issues(state.describe()["issues"], state.status)
render_summary_cards(overview["summary"])

row1 = st.columns(2)
with row1[0]:
    render_chart("مقارنة المستهدف والمتحقق والمتبقي", overview["charts"].get("comparison"))
with row1[1]:
    render_chart("نسب الإنجاز", achievement["charts"].get("doughnut"))

row2 = st.columns(2)
with row2[0]:
    render_chart("تحليل المستهدف", distribution["charts"].get("target_polar"))
with row2[1]:
    render_chart("مقارنة الأداء", overview["charts"].get("radar"))

row3 = st.columns(2)
with row3[0]:
    render_chart("توزيع المتحقق", distribution["charts"].get("achieved_pie"))
with row3[1]:
    render_chart("تتبع الإنجاز", achievement["charts"].get("trend"))

with st.expander("جودة البيانات", expanded=False):
    st.json(compute_debug(opts, ctx), expanded=False)

# app.py
import html
import json
import streamlit as st
import plotly.graph_objects as go

from app_logger import get_logger, init_logging
from docwise_config import load_config, mask_key
from docwise_report import (
    build_markdown_report,
    comparison_table_rows,
    impact_icon,
    risk_color,
    severity_badge,
)
from docwise_schemas import DEFAULT_LANGUAGE, LANGUAGES, PERSONAS
from docwise_workflow import (
    ACCEPTED_MIME_TYPES,
    DocWiseError,
    UploadQueue,
    analyze_or_compare,
    normalize_inputs,
)
from gemini_service import build_service

init_logging()
logger = get_logger(__name__)

APP_NAME = "DocWise AI"

st.set_page_config(
    page_title=APP_NAME,
    page_icon="📘",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ---------- Custom CSS ----------
st.markdown(
    """
    <style>
    .main { padding: 1.5rem; }
    .app-title { font-size: 2.1rem; font-weight: 800; letter-spacing: -0.5px; }
    .pill {
        display:inline-block; padding:4px 10px; border-radius:999px; background:#eef2ff; color:#4338ca;
        font-size:12px; font-weight:600; margin-left:8px;
    }
    .fancy-card {
        background: #fff;
        border-radius: 18px;
        padding: 18px 20px;
        box-shadow: 0 8px 24px rgba(2, 6, 23, 0.08);
        border: 1px solid #eef2f7;
        margin-bottom: 14px;
    }
    .fancy-header { display:flex; align-items:center; gap:10px; margin-bottom:8px; flex-wrap:wrap; }
    .fancy-title { font-weight:800; color:#0f172a; }
    .badge { display:inline-flex; align-items:center; padding:4px 10px; border-radius:999px; font-weight:700; font-size:12px; }
    .badge-soft { background:#eef2ff; color:#4338ca; }
    .risk-low { background:#ecfdf5; color:#065f46; }
    .risk-medium { background:#fffbeb; color:#92400e; }
    .risk-high { background:#fef2f2; color:#991b1b; }
    .muted { color:#64748b; font-size:12px; }
    .winner {
        background: linear-gradient(135deg, #1e293b 0%, #0f172a 100%);
        color:#fff; border-radius: 20px; padding: 20px 24px; margin: 12px 0 20px;
    }
    @media (prefers-color-scheme: dark) {
        .fancy-card { background:#0b1220; border-color:#1f2937; box-shadow: 0 8px 24px rgba(0,0,0,0.35); }
        .fancy-title { color:#e5e7eb; }
        .badge-soft { background:#111827; color:#c7d2fe; border:1px solid #374151; }
        .risk-low { background:#052e1a; color:#86efac; }
        .risk-medium { background:#3b2a12; color:#fdba74; }
        .risk-high { background:#3f0b0b; color:#fecaca; }
        .muted { color:#94a3b8; }
    }
    @media print {
        [data-testid="stSidebar"], .stButton, .stDownloadButton { display:none !important; }
    }
    </style>
    """,
    unsafe_allow_html=True
)

# ---------- Session state ----------
if "status" not in st.session_state:
    st.session_state["status"] = "idle"  # idle | analyzing | complete | error
    st.session_state["error_msg"] = None
    st.session_state["result"] = None
    st.session_state["result_persona"] = None
if "upload_queue" not in st.session_state:
    st.session_state["upload_queue"] = UploadQueue()
    st.session_state["uploader_key"] = 0
    st.session_state["upload_errors"] = []

queue: UploadQueue = st.session_state["upload_queue"]


def _reset(keep_inputs: bool = False):
    st.session_state["status"] = "idle"
    st.session_state["error_msg"] = None
    st.session_state["result"] = None
    st.session_state["result_persona"] = None
    if not keep_inputs:
        queue.clear()
        st.session_state["upload_errors"] = []


# ---------- Sidebar ----------
with st.sidebar:
    st.markdown(f"### 📘 {APP_NAME}")
    st.caption("Read the fine print: plain-language summaries, red flags, fees and deadlines.")
    st.divider()
    # Discover key from env -> secrets -> manual input (fallback)
    config = load_config()
    api_key = config.api_key
    if not api_key:
        try:
            api_key = st.secrets.get("GOOGLE_API_KEY")  # type: ignore[attr-defined]
        except Exception:
            api_key = None
    if not api_key:
        api_key = st.session_state.get("_typed_api_key")

    if api_key:
        st.success(f"Gemini API key detected ({mask_key(api_key)}).")
    else:
        st.warning("No API key detected. Enter it once to set for this session.")
        typed = st.text_input("Gemini API key", type="password")
        if typed:
            st.session_state["_typed_api_key"] = typed
            st.rerun()

    busy = st.session_state["status"] == "analyzing"
    st.divider()
    st.markdown("### Your Context")
    persona = st.selectbox("I am a...", PERSONAS, index=0, disabled=busy)
    language = st.selectbox("Explain in", LANGUAGES, index=LANGUAGES.index(DEFAULT_LANGUAGE), disabled=busy)
    st.caption(f"Models: **{config.flash_model}** for single documents, **{config.pro_model}** for comparisons and URLs.")
    st.divider()
    if st.button("🏠 New scan", width='stretch'):
        _reset()
        st.rerun()


def _run_scan(inputs_factory):
    """Normalize, submit and move the status machine. inputs_factory defers validation into the try."""
    st.session_state["status"] = "analyzing"
    st.session_state["error_msg"] = None
    with st.spinner(f"Analyzing... checking for scam patterns, calculating fees, translating clauses for a {persona} perspective."):
        try:
            service = build_service(api_key)
            result = analyze_or_compare(inputs_factory(), service, persona=persona, language=language)
            st.session_state["result"] = result
            st.session_state["result_persona"] = persona
            st.session_state["status"] = "complete"
            queue.clear()
            st.session_state["upload_errors"] = []
        except (DocWiseError, RuntimeError) as e:
            logger.error("Scan failed: %s", e)
            st.session_state["error_msg"] = str(e) or "Something went wrong during analysis."
            st.session_state["status"] = "error"
    st.rerun()


# ---------- Rendering helpers ----------
def _gauge(title: str, value: int):
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=value,
        title={"text": title},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"color": risk_color(value)},
            "steps": [
                {"range": [0, 25], "color": "rgba(34,197,94,0.15)"},
                {"range": [25, 50], "color": "rgba(251,191,36,0.15)"},
                {"range": [50, 75], "color": "rgba(249,115,22,0.15)"},
                {"range": [75, 100], "color": "rgba(239,68,68,0.15)"},
            ],
        },
    ))
    fig.update_layout(height=240, margin=dict(l=20, r=20, t=50, b=10), paper_bgcolor="rgba(0,0,0,0)")
    st.plotly_chart(fig, width='stretch', config={"displayModeBar": False})


def _render_red_flags(analysis: dict):
    flags = analysis.get("redFlags", [])
    if not flags:
        st.info("No red flags found.")
        return
    for flag in flags:
        sev = flag.get("severity", "Low")
        header = (
            f"<div class='fancy-header'>"
            f"<span class='fancy-title'>{html.escape(str(flag.get('title') or 'Untitled'))}</span>"
            f"<span class='badge {severity_badge(sev)}'>{html.escape(str(sev))}</span>"
            + ("<span class='badge badge-soft'>One-sided</span>" if flag.get("oneSided") else "")
            + "</div>"
        )
        st.markdown(f"<div class='fancy-card'>{header}", unsafe_allow_html=True)
        st.write(flag.get("description", ""))
        if flag.get("location"):
            st.markdown(f"<span class='muted'>📍 {html.escape(str(flag['location']))}</span>", unsafe_allow_html=True)
        st.markdown("</div>", unsafe_allow_html=True)


def _render_summary(analysis: dict):
    col1, col2, col3 = st.columns(3)
    col1.metric("Verdict", analysis.get("verdict") or "—")
    col2.metric("Risk level", analysis.get("riskLevel") or "—")
    col3.metric("Red flags", len(analysis.get("redFlags", [])))
    st.markdown("#### In one page")
    st.write(analysis.get("onePageSummary") or analysis.get("summary") or "—")
    if analysis.get("verdictReason"):
        st.caption(analysis["verdictReason"])


def _render_full(analysis: dict):
    g1, g2 = st.columns(2)
    with g1:
        _gauge("Risk score", analysis.get("riskScore", 0))
    with g2:
        _gauge("Scam risk", analysis.get("scamRiskScore", 0))
    if analysis.get("scamAnalysis"):
        st.caption(analysis["scamAnalysis"])

    st.markdown("#### Summary")
    st.write(analysis.get("summary") or "—")
    if analysis.get("simpleExplanation"):
        with st.expander("Explain it simply", expanded=False):
            st.write(analysis["simpleExplanation"])

    fin = analysis.get("financialBreakdown", [])
    if fin:
        st.markdown("#### 💸 Fees, penalties and charges")
        st.dataframe(
            [{"Item": f.get("label", ""), "Amount": f.get("value", ""), "Type": f.get("type", ""),
              "Frequency": f.get("frequency") or "—"} for f in fin],
            width='stretch', hide_index=True,
        )

    dates = analysis.get("importantDates", [])
    if dates:
        st.markdown("#### 📅 Important dates")
        for d in dates:
            marker = "⏰ **Deadline** · " if d.get("deadline") else ""
            st.markdown(f"- {marker}**{d.get('date', '')}**: {d.get('event', '')}")

    clauses = analysis.get("clauses", [])
    if clauses:
        st.markdown("#### 📑 Clauses in plain language")
        for c in clauses:
            with st.expander(f"{impact_icon(c.get('impact'))} {c.get('originalTitle', 'Clause')}"):
                st.write(c.get("simplifiedExplanation") or "—")
                st.caption(f"Impact: {c.get('impact') or 'Neutral'}")

    q_col, w_col = st.columns(2)
    with q_col:
        st.markdown("#### ❓ Questions to ask")
        for q in analysis.get("questionsToAsk", []) or ["—"]:
            st.markdown(f"- {q}")
    with w_col:
        st.markdown(f"#### ⚠️ Warnings for a {st.session_state.get('result_persona') or persona}")
        for w in analysis.get("personalizedWarnings", []) or ["—"]:
            st.markdown(f"- {w}")


def _render_analysis_tabs(analysis: dict):
    t_summary, t_full, t_flags = st.tabs(["One-Page Summary", "Full Analysis", "Red Flags"])
    with t_summary:
        _render_summary(analysis)
    with t_full:
        _render_full(analysis)
    with t_flags:
        _render_red_flags(analysis)


def _render_comparison(comparison: dict):
    docs = comparison.get("docs", [])
    t_matrix, t_summary, t_full, t_flags = st.tabs(["Comparison Matrix", "One-Page Summary", "Full Analysis", "Red Flags"])
    with t_matrix:
        if comparison.get("winner"):
            st.markdown(
                f"<div class='winner'><div class='muted'>Best choice</div>"
                f"<div style='font-size:1.5rem; font-weight:800;'>🏆 {html.escape(str(comparison['winner']))}</div>"
                f"<div>{html.escape(str(comparison.get('winnerReason') or ''))}</div></div>",
                unsafe_allow_html=True,
            )
        st.write(comparison.get("comparisonSummary") or "")
        rows = comparison_table_rows(comparison)
        if rows:
            st.dataframe(rows, width='stretch', hide_index=True)
        cols = st.columns(max(len(docs), 1))
        for col, doc in zip(cols, docs):
            with col:
                st.metric(doc.get("fileName", "Document"), f"{doc.get('riskScore', 0)}/100", doc.get("riskLevel") or None, delta_color="off")
    for tab, renderer in ((t_summary, _render_summary), (t_full, _render_full), (t_flags, _render_red_flags)):
        with tab:
            for doc in docs:
                st.markdown(f"### {doc.get('fileName', 'Document')}")
                renderer(doc)
                st.divider()


def _download_buttons(result: dict):
    c1, c2, _ = st.columns([1, 1, 4])
    with c1:
        data = json.dumps(result, ensure_ascii=False, indent=2).encode("utf-8")
        st.download_button("📥 Download JSON", data=data, file_name="docwise_report.json", mime="application/json")
    with c2:
        st.download_button("🖨️ Download report", data=build_markdown_report(result).encode("utf-8"),
                           file_name="docwise_report.md", mime="text/markdown")


# ---------- Main ----------
st.markdown(f"<div class='app-title'>📘 {APP_NAME} <span class='pill'>LangChain • Gemini</span></div>", unsafe_allow_html=True)

status = st.session_state["status"]
result = st.session_state["result"]

if status == "complete" and result:
    top_l, top_r = st.columns([6, 1])
    with top_r:
        if st.button("🔁 Scan another", key="reset_top"):
            _reset()
            st.rerun()
    if result.get("comparison"):
        _render_comparison(result["comparison"])
    else:
        analysis = result["analysis"]
        st.markdown(f"### {analysis.get('fileName', 'Document')}")
        _render_analysis_tabs(analysis)
    st.divider()
    _download_buttons(result)
else:
    st.write("Decode legal jargon into simple summaries. Scan T&Cs, compare loan offers, and detect hidden risks.")

    if status == "error":
        st.error(st.session_state["error_msg"] or "Analysis failed.")
        if st.button("Try Again", type="primary", key="try_again"):
            _reset(keep_inputs=True)
            st.rerun()

    tab_files, tab_text = st.tabs(["Upload Files", "Link or Text"])

    with tab_files:
        uploaded = st.file_uploader(
            "Drop your documents here (PDF, JPG, PNG or WEBP, up to 10MB each)",
            type=["pdf", "jpg", "jpeg", "png", "webp"],
            accept_multiple_files=True,
            key=f"uploader_{st.session_state['uploader_key']}",
            disabled=busy,
        )
        if uploaded:
            st.session_state["upload_errors"] = queue.add(uploaded)
            # Fresh uploader widget so the same files are not queued twice on rerun
            st.session_state["uploader_key"] += 1
            st.rerun()

        for err in st.session_state["upload_errors"]:
            st.error(err)

        if queue.ready:
            head_l, head_r = st.columns([5, 1])
            head_l.markdown(f"**{len(queue)} file(s) ready**")
            if head_r.button("Clear All", key="clear_all", disabled=busy):
                queue.clear()
                st.rerun()
            for i, item in enumerate(queue.items):
                name_col, rm_col = st.columns([8, 1])
                name_col.markdown(f"📄 {html.escape(item.name)} <span class='muted'>{item.mime_type} · {item.size / 1024:.0f} KB</span>", unsafe_allow_html=True)
                if rm_col.button("✕", key=f"remove_{i}", disabled=busy):
                    queue.remove(i)
                    st.rerun()

            label = f"Compare {len(queue)} Documents" if len(queue) > 1 else "Start Analysis"
            if st.button(label, type="primary", width='stretch', key="analyze_files", disabled=busy):
                files = queue.items
                _run_scan(lambda: normalize_inputs(files=files))
        else:
            st.caption("Accepted: " + ", ".join(t.split("/")[1].upper() for t in ACCEPTED_MIME_TYPES))

    with tab_text:
        mode = st.radio("Source", ["Paste T&C Text", "Scan Website/URL"], horizontal=True, label_visibility="collapsed")
        if mode == "Paste T&C Text":
            value = st.text_area("Terms text", placeholder="Paste the Terms and Conditions text here...", height=240, disabled=busy)
            kind, button_label = "text", "Analyze Text"
        else:
            value = st.text_input("URL", placeholder="e.g. https://example.com/terms", disabled=busy)
            kind, button_label = "url", "Fetch & Scan URL"
        if st.button(button_label, type="primary", key="analyze_text", disabled=busy or not (value or "").strip()):
            _run_scan(lambda: normalize_inputs(text=value, kind=kind))

st.divider()
st.caption("DocWise AI is an educational tool designed to help you understand legal text. "
           "It is not a lawyer and this analysis is not legal advice. Always read your final contracts.")

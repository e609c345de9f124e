# docwise_report.py
"""Pure helpers behind the dashboard: colours, badges, the comparison matrix and the Markdown export."""

from __future__ import annotations

from typing import Any, Dict, List

from docwise_workflow import MISSING_VALUE


def risk_color(score: int) -> str:
    """Gauge colour for a 0-100 risk score (higher is worse)."""
    if score >= 75:
        return "#ef4444"
    if score >= 50:
        return "#f97316"
    if score >= 25:
        return "#fbbf24"
    return "#22c55e"


def severity_badge(severity: str) -> str:
    s = (severity or "").lower()
    if s == "high":
        return "risk-high"
    if s == "medium":
        return "risk-medium"
    return "risk-low"


def impact_icon(impact: str) -> str:
    return {"positive": "🟢", "negative": "🔴"}.get((impact or "").lower(), "⚪")


def column_names(docs: List[Dict[str, Any]]) -> List[str]:
    """One unique column label per document; a repeated name gets its position appended."""
    names: List[str] = []
    for i, doc in enumerate(docs):
        base = doc.get("fileName") or f"Document {i + 1}"
        name, n = base, i + 1
        while name in names:
            name = f"{base} ({n})"
            n += 1
        names.append(name)
    return names


def comparison_table_rows(comparison: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Flatten comparisonTable into one dict per feature keyed by document name,
    ready for st.dataframe. Short rows are filled with the placeholder.
    """
    names = column_names(comparison.get("docs", []))
    rows = []
    for row in comparison.get("comparisonTable", []):
        values = list(row.get("values") or [])
        out = {"Feature": row.get("feature", "")}
        for i, name in enumerate(names):
            out[name] = values[i] if i < len(values) and values[i] else MISSING_VALUE
        rows.append(out)
    return rows


def _analysis_markdown(a: Dict[str, Any], heading: str = "#") -> List[str]:
    lines = [
        f"{heading} {a.get('fileName', 'Document')}",
        "",
        f"**Verdict:** {a.get('verdict') or MISSING_VALUE} ({a.get('riskLevel') or MISSING_VALUE})  ",
        f"**Risk score:** {a.get('riskScore', 0)}/100  ",
        f"**Scam risk:** {a.get('scamRiskScore', 0)}/100",
        "",
    ]
    if a.get("verdictReason"):
        lines += [a["verdictReason"], ""]
    lines += [f"{heading}# One-page summary", "", a.get("onePageSummary") or a.get("summary") or MISSING_VALUE, ""]

    if a.get("redFlags"):
        lines += [f"{heading}# Red flags", ""]
        for flag in a["redFlags"]:
            one_sided = " (one-sided)" if flag.get("oneSided") else ""
            where = f" [{flag['location']}]" if flag.get("location") else ""
            lines.append(f"- **{flag.get('title', '')}** ({flag.get('severity', '')}){one_sided}{where}: {flag.get('description', '')}")
        lines.append("")

    if a.get("financialBreakdown"):
        lines += [f"{heading}# Money", "", "| Item | Amount | Type | Frequency |", "|---|---|---|---|"]
        for fin in a["financialBreakdown"]:
            lines.append(f"| {fin.get('label', '')} | {fin.get('value', '')} | {fin.get('type', '')} | {fin.get('frequency') or MISSING_VALUE} |")
        lines.append("")

    if a.get("importantDates"):
        lines += [f"{heading}# Dates", ""]
        for d in a["importantDates"]:
            flag = " ⏰ deadline" if d.get("deadline") else ""
            lines.append(f"- {d.get('date', '')}: {d.get('event', '')}{flag}")
        lines.append("")

    if a.get("questionsToAsk"):
        lines += [f"{heading}# Questions to ask", ""] + [f"- {q}" for q in a["questionsToAsk"]] + [""]
    if a.get("personalizedWarnings"):
        lines += [f"{heading}# Warnings for you", ""] + [f"- {w}" for w in a["personalizedWarnings"]] + [""]
    return lines


def build_markdown_report(result: Dict[str, Any]) -> str:
    """Printable report for either {"analysis": ...} or {"comparison": ...}."""
    comparison = result.get("comparison")
    if comparison:
        lines = ["# DocWise comparison", "", comparison.get("comparisonSummary") or "", ""]
        if comparison.get("winner"):
            lines += [f"**Best choice:** {comparison['winner']}  ", comparison.get("winnerReason") or "", ""]
        rows = comparison_table_rows(comparison)
        if rows:
            headers = list(rows[0].keys())
            lines.append("| " + " | ".join(headers) + " |")
            lines.append("|" + "---|" * len(headers))
            for row in rows:
                lines.append("| " + " | ".join(str(row[h]) for h in headers) + " |")
            lines.append("")
        for doc in comparison.get("docs", []):
            lines += _analysis_markdown(doc, heading="##")
    else:
        lines = _analysis_markdown(result.get("analysis") or {})

    lines += ["---", "_DocWise AI is an educational tool. This analysis is not legal advice._", ""]
    return "\n".join(lines)

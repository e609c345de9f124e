"""
Pytest fixtures for DocWise tests. A fake AnalysisService stands in for Gemini
and FakeUpload mimics Streamlit's UploadedFile.
"""

from __future__ import annotations

import json

import pytest

from docwise_workflow import AnalysisRequest


class FakeUpload:
    """name / type / size / getvalue(), like streamlit's UploadedFile."""

    def __init__(self, name: str, mime_type: str, size: int | None = None, data: bytes | None = None):
        self.name = name
        self.type = mime_type
        self._data = data if data is not None else b"%PDF-1.4 fake"
        self.size = size if size is not None else len(self._data)

    def getvalue(self) -> bytes:
        return self._data


class FakeService:
    """Records requests and replies with a canned payload (or raises)."""

    def __init__(self, reply=None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.requests: list[AnalysisRequest] = []

    def generate(self, request: AnalysisRequest):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.reply is None or isinstance(self.reply, str):
            return self.reply
        return json.dumps(self.reply)


def make_analysis(**overrides) -> dict:
    base = {
        "summary": "A standard residential lease.",
        "simpleExplanation": "You rent the flat for a year.",
        "onePageSummary": "One year lease, 2 month deposit.",
        "riskScore": 35,
        "riskLevel": "Caution",
        "verdict": "Needs attention",
        "verdictReason": "Auto-renewal with a steep penalty.",
        "redFlags": [
            {"title": "Auto renewal", "description": "Renews unless cancelled 90 days ahead.", "severity": "Medium"}
        ],
        "financialBreakdown": [{"label": "Late fee", "value": "$50", "type": "penalty", "frequency": "per month"}],
        "importantDates": [{"date": "2025-01-01", "event": "Lease starts", "deadline": False}],
        "scamRiskScore": 5,
        "scamAnalysis": "No fraud patterns.",
        "clauses": [{"originalTitle": "Term", "simplifiedExplanation": "Lasts one year.", "impact": "Neutral"}],
        "questionsToAsk": ["Can the renewal notice be shortened?"],
        "personalizedWarnings": ["Check the deposit return timeline."],
    }
    base.update(overrides)
    return base


@pytest.fixture
def pdf_upload():
    return FakeUpload("lease.pdf", "application/pdf")


@pytest.fixture
def fake_service():
    return FakeService(reply=make_analysis())

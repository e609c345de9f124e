# docwise_schemas.py
"""
Enumerations and response-shape descriptions sent to the model.

The schemas are plain dicts in the OpenAPI subset Gemini's structured
output accepts. Nothing in this repo validates against them locally; they
only travel with the request.
"""

PERSONAS = ("Individual", "Small Business", "Student", "Freelancer")

DEFAULT_LANGUAGE = "Simple English"
LANGUAGES = ("Simple English", "Spanish", "French", "German", "Chinese")

RISK_LEVELS = ("Safe", "Caution", "Risky", "Critical")
VERDICTS = ("Mostly normal", "Needs attention", "High risk")
SEVERITIES = ("High", "Medium", "Low")
FINANCIAL_TYPES = ("fee", "penalty", "charge", "other")
IMPACTS = ("Positive", "Neutral", "Negative")

# Keys that must always be lists once a result has been shaped
ANALYSIS_LIST_FIELDS = (
    "redFlags",
    "financialBreakdown",
    "importantDates",
    "clauses",
    "questionsToAsk",
    "personalizedWarnings",
)
ANALYSIS_TEXT_FIELDS = (
    "summary",
    "simpleExplanation",
    "onePageSummary",
    "riskLevel",
    "verdict",
    "verdictReason",
    "scamAnalysis",
)
ANALYSIS_SCORE_FIELDS = ("riskScore", "scamRiskScore")


def _string(enum=None):
    field = {"type": "string"}
    if enum:
        field["enum"] = list(enum)
    return field


def _array_of(items):
    return {"type": "array", "items": items}


RED_FLAG_SCHEMA = {
    "type": "object",
    "properties": {
        "title": _string(),
        "description": _string(),
        "severity": _string(SEVERITIES),
        "location": _string(),
        "oneSided": {"type": "boolean"},
    },
    "required": ["title", "description", "severity"],
}

FINANCIAL_DETAIL_SCHEMA = {
    "type": "object",
    "properties": {
        "label": _string(),
        "value": _string(),
        "type": _string(FINANCIAL_TYPES),
        "frequency": _string(),
    },
}

IMPORTANT_DATE_SCHEMA = {
    "type": "object",
    "properties": {
        "date": _string(),
        "event": _string(),
        "deadline": {"type": "boolean"},
    },
}

SIMPLIFIED_CLAUSE_SCHEMA = {
    "type": "object",
    "properties": {
        "originalTitle": _string(),
        "simplifiedExplanation": _string(),
        "impact": _string(IMPACTS),
    },
}

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": _string(),
        "simpleExplanation": _string(),
        "onePageSummary": _string(),
        "riskScore": {"type": "integer"},
        "riskLevel": _string(RISK_LEVELS),
        "verdict": _string(VERDICTS),
        "verdictReason": _string(),
        "redFlags": _array_of(RED_FLAG_SCHEMA),
        "financialBreakdown": _array_of(FINANCIAL_DETAIL_SCHEMA),
        "importantDates": _array_of(IMPORTANT_DATE_SCHEMA),
        "scamRiskScore": {"type": "integer"},
        "scamAnalysis": _string(),
        "clauses": _array_of(SIMPLIFIED_CLAUSE_SCHEMA),
        "questionsToAsk": _array_of(_string()),
        "personalizedWarnings": _array_of(_string()),
    },
}

COMPARISON_SCHEMA = {
    "type": "object",
    "properties": {
        "docs": _array_of(ANALYSIS_SCHEMA),
        "comparisonSummary": _string(),
        "winner": _string(),
        "winnerReason": _string(),
        "comparisonTable": _array_of(
            {
                "type": "object",
                "properties": {
                    "feature": _string(),
                    "values": _array_of(_string()),
                },
            }
        ),
    },
}

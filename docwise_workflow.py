# docwise_workflow.py
"""
DocWise - analysis workflow (LangChain + Gemini)
------------------------------------------------
- File ingestion: type/size checks and base64 encoding of uploads.
- Input normalization: uploads, pasted text and URLs become InputItems.
- Request building: mode, model tier, instructions, content parts, schema.
- Submission: hands the request to an AnalysisService, parses the JSON and
  shapes it for the dashboard.

Nothing here touches Streamlit, so every step can be unit tested with a fake
service (see tests/conftest.py).
"""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from langchain_core.prompts import PromptTemplate

from app_logger import get_logger, init_logging
from docwise_schemas import (
    ANALYSIS_LIST_FIELDS,
    ANALYSIS_SCHEMA,
    ANALYSIS_SCORE_FIELDS,
    ANALYSIS_TEXT_FIELDS,
    COMPARISON_SCHEMA,
    DEFAULT_LANGUAGE,
    PERSONAS,
)

init_logging()
logger = get_logger(__name__)


# ======
# Errors
# ======
class DocWiseError(Exception):
    """Base class; str(err) is always safe to show to the user."""


class ValidationError(DocWiseError):
    """Bad input: unsupported file type, oversized file, blank text."""


class EmptyResponse(DocWiseError):
    pass


class MalformedResponse(DocWiseError):
    pass


class SchemaViolation(DocWiseError):
    pass


class TransportError(DocWiseError):
    """Network or service-side failure during the model call."""


GENERIC_FAILURE = "Document analysis failed."


# ==============
# File ingestion
# ==============
ACCEPTED_MIME_TYPES = ("application/pdf", "image/jpeg", "image/png", "image/webp")
MAX_FILE_BYTES = 10 * 1024 * 1024  # 10 MiB


@dataclass(frozen=True)
class IngestedFile:
    name: str
    mime_type: str
    size: int
    base64: str


def validate_file(name: str, mime_type: str, size: int) -> None:
    if mime_type not in ACCEPTED_MIME_TYPES:
        raise ValidationError(f'"{name}" is an unsupported format. Use PDF, JPG, PNG, or WEBP.')
    if size > MAX_FILE_BYTES:
        raise ValidationError(f'"{name}" is too large (max 10MB).')


def _read_bytes(handle: Any) -> bytes:
    # Streamlit's UploadedFile exposes getvalue(); plain file objects only read()
    if hasattr(handle, "getvalue"):
        return handle.getvalue()
    return handle.read()


def encode_file(handle: Any) -> IngestedFile:
    """
    Validate one upload handle (anything with name / type / size and
    getvalue() or read()) and return its base64 form.
    """
    name = getattr(handle, "name", None) or "upload"
    mime_type = getattr(handle, "type", None) or getattr(handle, "mime_type", None) or ""
    size = getattr(handle, "size", None)

    if size is not None:
        validate_file(name, mime_type, size)

    try:
        data = _read_bytes(handle)
    except (OSError, ValueError) as e:
        logger.error("Ingestion: failed to read %s", name, exc_info=True)
        raise ValidationError(f'Failed to read "{name}".') from e

    if size is None:
        size = len(data)
        validate_file(name, mime_type, size)

    return IngestedFile(
        name=name,
        mime_type=mime_type,
        size=size,
        base64=base64.b64encode(data).decode("ascii"),
    )


def ingest_files(handles: Iterable[Any]) -> Tuple[List[IngestedFile], List[str]]:
    """
    Encode every acceptable file. A rejected file adds a message to the
    error list and never stops the rest of the batch.
    """
    accepted: List[IngestedFile] = []
    errors: List[str] = []
    for handle in handles:
        try:
            accepted.append(encode_file(handle))
        except ValidationError as e:
            logger.info("Ingestion: rejected upload: %s", e)
            errors.append(str(e))
    return accepted, errors


class UploadQueue:
    """Ordered, append-only list of accepted uploads held in session state."""

    def __init__(self):
        self._items: List[IngestedFile] = []

    @property
    def items(self) -> List[IngestedFile]:
        return list(self._items)

    @property
    def ready(self) -> bool:
        return len(self._items) > 0

    def __len__(self) -> int:
        return len(self._items)

    def add(self, handles: Iterable[Any]) -> List[str]:
        accepted, errors = ingest_files(handles)
        self._items.extend(accepted)
        return errors

    def remove(self, index: int) -> None:
        if 0 <= index < len(self._items):
            del self._items[index]

    def clear(self) -> None:
        self._items = []


# ===================
# Input normalization
# ===================
INPUT_KINDS = ("file", "text", "url")
_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


@dataclass(frozen=True)
class InputItem:
    kind: str
    content: str
    mime_type: Optional[str] = None
    display_name: Optional[str] = None

    def __post_init__(self):
        if self.kind not in INPUT_KINDS:
            raise ValueError(f"Unknown input kind: {self.kind!r}")


def inputs_from_files(files: Sequence[IngestedFile]) -> List[InputItem]:
    return [
        InputItem(kind="file", content=f.base64, mime_type=f.mime_type, display_name=f.name)
        for f in files
    ]


def input_from_text(value: str, kind: Optional[str] = None) -> InputItem:
    """Tag pasted content as text or url; without an explicit kind, URL-shaped values become url."""
    content = (value or "").strip()
    if not content:
        raise ValidationError("Please paste some text or a URL to scan.")
    if kind is None:
        kind = "url" if _URL_RE.match(content) else "text"
    if kind not in ("text", "url"):
        raise ValidationError(f"Unsupported input type: {kind}")
    return InputItem(kind=kind, content=content)


def normalize_inputs(
    files: Optional[Sequence[IngestedFile]] = None,
    text: Optional[str] = None,
    kind: Optional[str] = None,
) -> List[InputItem]:
    if files:
        return inputs_from_files(files)
    if text is not None:
        return [input_from_text(text, kind)]
    raise ValidationError("Nothing to analyze. Upload a file or paste text or a URL.")


# ================
# Request building
# ================
MODE_SINGLE = "single"
MODE_COMPARISON = "comparison"
TIER_FLASH = "flash"
TIER_PRO = "pro"

instructions_prompt = PromptTemplate.from_template(
    "You are DocWise AI, a specialized legal document analysis tool.\n"
    "Target Language: {language}.\n"
    "User Context: {persona}.\n\n"
    "Core Objectives:\n"
    "- DECODE: Translate legal jargon into everyday language.\n"
    "- PROTECT: Highlight unfair, one-sided, or unusual terms.\n"
    "- FINANCIALS: List all fees, penalties, and renewal charges.\n"
    "- SCAM CHECK: Check for red flags indicating fraudulent documents.\n"
    "- DATES: Extract all critical deadlines and durations.\n\n"
    "{mode_directive}"
)

SINGLE_DIRECTIVE = "Analyze the provided document thoroughly."
COMPARISON_DIRECTIVE = (
    "You are comparing multiple documents. Provide an individual analysis for each "
    "AND a comprehensive comparison result."
)


@dataclass
class AnalysisRequest:
    mode: str
    model_tier: str
    instructions: str
    parts: List[Dict[str, Any]]
    response_schema: Dict[str, Any]
    web_search: bool = False
    inputs: List[InputItem] = field(default_factory=list)

    @property
    def is_comparison(self) -> bool:
        return self.mode == MODE_COMPARISON


def select_mode(inputs: Sequence[InputItem]) -> str:
    return MODE_COMPARISON if len(inputs) >= 2 else MODE_SINGLE


def select_model_tier(inputs: Sequence[InputItem]) -> str:
    """Comparisons and live URL lookups go to the higher-capability model."""
    if select_mode(inputs) == MODE_COMPARISON or any(i.kind == "url" for i in inputs):
        return TIER_PRO
    return TIER_FLASH


def build_instructions(persona: str, language: str, mode: str) -> str:
    directive = COMPARISON_DIRECTIVE if mode == MODE_COMPARISON else SINGLE_DIRECTIVE
    return instructions_prompt.format(persona=persona, language=language, mode_directive=directive)


def _content_part(item: InputItem) -> Dict[str, Any]:
    if item.kind == "file":
        return {"type": "media", "mime_type": item.mime_type, "data": item.content}
    return {"type": "text", "text": f"Source ({item.kind}): {item.content}"}


def build_request(
    inputs: Sequence[InputItem],
    persona: str = "Individual",
    language: str = DEFAULT_LANGUAGE,
) -> AnalysisRequest:
    """Pure construction of the model request; no network I/O."""
    if not inputs:
        raise ValidationError("Nothing to analyze. Upload a file or paste text or a URL.")
    if persona not in PERSONAS:
        raise ValidationError(f"Unknown user type: {persona}")
    language = (language or "").strip() or DEFAULT_LANGUAGE

    mode = select_mode(inputs)
    comparing = mode == MODE_COMPARISON

    parts: List[Dict[str, Any]] = []
    for idx, item in enumerate(inputs, start=1):
        if comparing:
            name = item.display_name or f"Document {idx}"
            parts.append({"type": "text", "text": f"--- START OF DOCUMENT {idx} ({name}) ---"})
        parts.append(_content_part(item))
        if comparing:
            parts.append({"type": "text", "text": f"--- END OF DOCUMENT {idx} ---"})

    request = AnalysisRequest(
        mode=mode,
        model_tier=select_model_tier(inputs),
        instructions=build_instructions(persona, language, mode),
        parts=parts,
        response_schema=COMPARISON_SCHEMA if comparing else ANALYSIS_SCHEMA,
        web_search=any(i.kind == "url" for i in inputs),
        inputs=list(inputs),
    )
    logger.info(
        "Request: mode=%s tier=%s parts=%d web_search=%s persona=%s language=%s",
        request.mode, request.model_tier, len(parts), request.web_search, persona, language,
    )
    return request


# ==============
# Result shaping
# ==============
MISSING_VALUE = "—"
_OBJECT_LIST_FIELDS = ("redFlags", "financialBreakdown", "importantDates", "clauses")


def _coerce_score(value: Any, name: str) -> int:
    if value is None:
        return 0
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        logger.warning("Shaping: %s is not a number (%r); using 0", name, value)
        return 0
    clamped = max(0, min(100, score))
    if clamped != score:
        logger.warning("Shaping: %s=%d outside 0-100; clamped to %d", name, score, clamped)
    return clamped


def shape_analysis(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Fill defaults so the dashboard never meets a missing list, text or score."""
    shaped = dict(raw)
    for key in ANALYSIS_LIST_FIELDS:
        value = shaped.get(key)
        if not isinstance(value, list):
            value = []
        if key in _OBJECT_LIST_FIELDS:
            value = [v for v in value if isinstance(v, dict)]
        else:
            value = [str(v) for v in value if v is not None]
        shaped[key] = value
    for key in ANALYSIS_TEXT_FIELDS:
        if shaped.get(key) is None:
            shaped[key] = ""
    for key in ANALYSIS_SCORE_FIELDS:
        shaped[key] = _coerce_score(shaped.get(key), key)
    return shaped


def align_comparison_table(rows: Any, doc_count: int) -> List[Dict[str, Any]]:
    """Every row gets exactly doc_count values; gaps become MISSING_VALUE."""
    if not isinstance(rows, list):
        return []
    aligned = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        values = row.get("values")
        values = list(values) if isinstance(values, list) else []
        if len(values) != doc_count:
            logger.warning(
                "Shaping: row %r has %d values for %d documents",
                row.get("feature"), len(values), doc_count,
            )
        values = [MISSING_VALUE if v is None or v == "" else str(v) for v in values[:doc_count]]
        values += [MISSING_VALUE] * (doc_count - len(values))
        aligned.append({**row, "feature": row.get("feature") or "", "values": values})
    return aligned


def _strip_code_fence(text: str) -> str:
    s = text.strip()
    if s.startswith("```json"):
        s = s[7:]
    elif s.startswith("```"):
        s = s[3:]
    if s.endswith("```"):
        s = s[:-3]
    return s.strip()


def parse_response(text: Optional[str], request: AnalysisRequest) -> Dict[str, Any]:
    """
    Turn the model's text into {"analysis": ...} or {"comparison": ...}.
    Raises EmptyResponse, MalformedResponse or SchemaViolation; never
    returns a partially populated result.
    """
    if not text or not text.strip():
        raise EmptyResponse("No analysis generated.")

    try:
        parsed = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        logger.error("Response: JSON parse error; preview: %s", text[:300])
        raise MalformedResponse(f"AI response could not be parsed: {e}") from e

    inputs = request.inputs

    if request.is_comparison:
        docs = parsed.get("docs") if isinstance(parsed, dict) else None
        if not isinstance(docs, list):
            raise SchemaViolation("AI response error: Comparison results were missing.")
        if len(docs) != len(inputs):
            logger.warning("Response: %d docs returned for %d inputs", len(docs), len(inputs))

        shaped_docs = []
        for i, doc in enumerate(docs):
            if not isinstance(doc, dict):
                raise SchemaViolation(f"AI response error: Document {i + 1} analysis is not an object.")
            original = inputs[i].display_name if i < len(inputs) else None
            shaped = shape_analysis(doc)
            shaped["fileName"] = original or doc.get("fileName") or f"Document {i + 1}"
            shaped["sourceType"] = inputs[i].kind if i < len(inputs) else "comparison"
            shaped_docs.append(shaped)

        comparison = dict(parsed)
        comparison["docs"] = shaped_docs
        for key in ("comparisonSummary", "winner", "winnerReason"):
            if comparison.get(key) is None:
                comparison[key] = ""
        comparison["comparisonTable"] = align_comparison_table(parsed.get("comparisonTable"), len(shaped_docs))
        return {"comparison": comparison}

    if not isinstance(parsed, dict):
        raise SchemaViolation("AI response error: Analysis result is not an object.")
    analysis = shape_analysis(parsed)
    first = inputs[0] if inputs else None
    analysis["fileName"] = (first.display_name if first else None) or "Pasted Content"
    analysis["sourceType"] = first.kind if first else "text"
    return {"analysis": analysis}


# ==========
# Submission
# ==========
def submit_request(request: AnalysisRequest, service: Any) -> Dict[str, Any]:
    """
    Single-shot call: no retry, no timeout, no cancellation. Contract errors
    surface as-is; anything else becomes a TransportError carrying the
    underlying message.
    """
    logger.info("Submit: sending %s request (%s tier)", request.mode, request.model_tier)
    try:
        text = service.generate(request)
    except DocWiseError:
        raise
    except Exception as e:
        logger.error("Submit: analysis service call failed", exc_info=True)
        raise TransportError(str(e) or GENERIC_FAILURE) from e

    result = parse_response(text, request)
    logger.info("Submit: %s result ready", "comparison" if "comparison" in result else "analysis")
    return result


def analyze_or_compare(
    inputs: Sequence[InputItem],
    service: Any,
    persona: str = "Individual",
    language: str = DEFAULT_LANGUAGE,
) -> Dict[str, Any]:
    """Build the request for the inputs and submit it."""
    request = build_request(inputs, persona=persona, language=language)
    return submit_request(request, service)

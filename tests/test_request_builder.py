"""
Tests for request construction: mode, model tier, instructions, parts, schema.
"""

from __future__ import annotations

import pytest

from docwise_schemas import ANALYSIS_SCHEMA, COMPARISON_SCHEMA
from docwise_workflow import (
    MODE_COMPARISON,
    MODE_SINGLE,
    TIER_FLASH,
    TIER_PRO,
    InputItem,
    ValidationError,
    build_request,
)


def _file(name="lease.pdf", mime="application/pdf"):
    return InputItem(kind="file", content="QUJD", mime_type=mime, display_name=name)


def test_single_pdf_uses_flash_and_analysis_schema():
    request = build_request([_file()], persona="Student", language="Spanish")

    assert request.mode == MODE_SINGLE
    assert request.model_tier == TIER_FLASH
    assert request.response_schema is ANALYSIS_SCHEMA
    assert request.web_search is False
    assert "Target Language: Spanish." in request.instructions
    assert "User Context: Student." in request.instructions
    assert "Analyze the provided document thoroughly." in request.instructions


def test_instructions_carry_all_objectives():
    request = build_request([_file()])
    for objective in ("DECODE", "PROTECT", "FINANCIALS", "SCAM CHECK", "DATES"):
        assert f"- {objective}:" in request.instructions


def test_single_file_part_is_media_block_without_delimiters():
    request = build_request([_file()])
    assert request.parts == [{"type": "media", "mime_type": "application/pdf", "data": "QUJD"}]


def test_two_images_compare_on_pro_with_delimiters():
    inputs = [_file("a.png", "image/png"), _file("b.jpg", "image/jpeg")]
    request = build_request(inputs)

    assert request.mode == MODE_COMPARISON
    assert request.model_tier == TIER_PRO
    assert request.response_schema is COMPARISON_SCHEMA
    assert "comparing multiple documents" in request.instructions
    texts = [p.get("text") for p in request.parts]
    assert texts[0] == "--- START OF DOCUMENT 1 (a.png) ---"
    assert request.parts[1]["mime_type"] == "image/png"
    assert texts[2] == "--- END OF DOCUMENT 1 ---"
    assert texts[3] == "--- START OF DOCUMENT 2 (b.jpg) ---"
    assert texts[5] == "--- END OF DOCUMENT 2 ---"
    assert len(request.parts) == 6


def test_url_alone_is_single_but_pro_with_web_search():
    request = build_request([InputItem(kind="url", content="https://example.com/terms")])

    assert request.mode == MODE_SINGLE
    assert request.model_tier == TIER_PRO
    assert request.web_search is True
    assert request.parts == [{"type": "text", "text": "Source (url): https://example.com/terms"}]


def test_text_input_labels_its_source():
    request = build_request([InputItem(kind="text", content="Late fees apply.")])
    assert request.parts[0]["text"] == "Source (text): Late fees apply."
    assert request.model_tier == TIER_FLASH


def test_blank_language_defaults_to_simple_english():
    request = build_request([_file()], language="  ")
    assert "Target Language: Simple English." in request.instructions


def test_unknown_persona_rejected():
    with pytest.raises(ValidationError):
        build_request([_file()], persona="Astronaut")


def test_empty_inputs_rejected():
    with pytest.raises(ValidationError):
        build_request([])


def test_request_keeps_inputs_for_post_processing():
    inputs = [_file("a.pdf"), _file("b.pdf")]
    request = build_request(inputs)
    assert request.inputs == inputs


def test_unnamed_comparison_inputs_use_positional_labels():
    inputs = [InputItem(kind="text", content="one"), InputItem(kind="url", content="https://example.com/b")]
    request = build_request(inputs)

    assert request.parts[0]["text"] == "--- START OF DOCUMENT 1 (Document 1) ---"
    assert request.parts[3]["text"] == "--- START OF DOCUMENT 2 (Document 2) ---"
    assert not any("None" in p.get("text", "") for p in request.parts)

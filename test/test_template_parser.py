"""
Test suite for template file parsing

Covers:
1. CSV: header mapping, quoted values, list columns, row errors, blank lines
2. JSON: body aliases, non-object items, malformed files
3. TXT: paragraph splitting and inferred metadata
4. Dispatch on extension and byte decoding
"""
import json

import pytest

from app.domain.constants import SAMPLE_TEMPLATES_CSV
from app.utils.template_parser import (
    TemplateImportError,
    build_parsed_template,
    file_extension,
    parse_csv,
    parse_file,
    parse_json,
    parse_txt,
)


# ===================== CSV =====================

CSV_CONTENT = """title,content,category,tone_style,industry_tags,client_type,project_complexity,matching_keywords
"Welcome","Thanks for choosing me, let's begin.",client_onboarding,Warm,"Web-Development, design",business,standard,"welcome, Thank You"
"Auto","The final files have been delivered."

,"Body without a title",custom
"""


def test_csv_maps_columns_and_lists():
    result = parse_csv(CSV_CONTENT)
    first = result.templates[0]
    assert first.title == "Welcome"
    assert first.body == "Thanks for choosing me, let's begin."
    assert first.category == "client_onboarding"
    assert first.tone_style == "warm"
    assert first.industry_tags == ["web-development", "design"]
    assert first.matching_keywords == ["welcome", "thank you"]


def test_csv_infers_missing_metadata():
    second = parse_csv(CSV_CONTENT).templates[1]
    assert second.title == "Auto"
    assert second.category == "delivery"
    assert second.matching_keywords == ["final", "files", "delivered"]
    assert second.industry_tags == []


def test_csv_collects_row_errors_and_skips_blank_lines():
    result = parse_csv(CSV_CONTENT)
    assert len(result.templates) == 2
    assert result.errors == ["Row 3: missing title"]
    assert result.total == 3


def test_csv_missing_content_error():
    result = parse_csv("title,content\nValid,Some body\nNo Body,\n")
    assert [t.title for t in result.templates] == ["Valid"]
    assert result.errors == ["Row 2: missing content"]


def test_csv_header_is_case_insensitive():
    result = parse_csv("Title,Content\nHello,World text\n")
    assert result.templates[0].title == "Hello"


@pytest.mark.parametrize("content", ["", "\n\n", "title,content\n"])
def test_csv_without_data_rows_is_rejected(content):
    with pytest.raises(TemplateImportError):
        parse_csv(content)


def test_sample_csv_parses_cleanly():
    result = parse_csv(SAMPLE_TEMPLATES_CSV)
    assert len(result.templates) == 3
    assert result.errors == []
    assert result.templates[2].category == "revision_handling"


# ===================== JSON =====================

def test_json_accepts_body_aliases():
    content = json.dumps([
        {"title": "A", "content": "Body a"},
        {"title": "B", "template_content": "Body b"},
        {"title": "C", "body": "Body c", "matching_keywords": ["Alpha", "beta"]},
    ])
    result = parse_json(content)
    assert [t.body for t in result.templates] == ["Body a", "Body b", "Body c"]
    assert result.templates[2].matching_keywords == ["alpha", "beta"]


def test_json_item_errors():
    content = json.dumps([{"title": "Ok", "content": "Fine"}, "just a string", {"content": "No title"}])
    result = parse_json(content)
    assert len(result.templates) == 1
    assert result.errors == ["Item 2: expected an object", "Item 3: missing title"]


@pytest.mark.parametrize("content", ["{not json", '{"title": "x"}', "[]"])
def test_json_malformed_files_are_rejected(content):
    with pytest.raises(TemplateImportError):
        parse_json(content)


# ===================== TXT =====================

def test_txt_splits_on_blank_lines():
    content = "Hello {{client_name}}, welcome aboard!\r\n\r\nYour files are delivered.\n\n\n\n"
    result = parse_txt(content)
    assert [t.title for t in result.templates] == ["Imported Template 1", "Imported Template 2"]
    assert result.templates[0].template_variables == ["client_name"]
    assert result.templates[0].category == "client_onboarding"
    assert result.templates[1].category == "delivery"
    assert result.errors == []


def test_txt_empty_is_rejected():
    with pytest.raises(TemplateImportError):
        parse_txt("  \n\n  ")


# ===================== HELPERS =====================

def test_build_parsed_template_formats_body():
    template = build_parsed_template("  Title  ", "hello there.  thanks !")
    assert template.title == "Title"
    assert template.body == "Hello there. Thanks!"
    assert template.is_ai_generated is False
    assert template.to_dict()["body"] == "Hello there. Thanks!"


def test_blank_metadata_falls_back_to_inferred():
    template = build_parsed_template("T", "Please see the revised logo.", {"category": "  ", "tone_style": None})
    assert template.category == "revision_handling"
    assert template.tone_style == "professional"


def test_unknown_labels_fall_back_to_inferred():
    template = build_parsed_template("T", "Please see the revised logo.", {
        "category": "greeting",
        "tone_style": "Chirpy",
        "project_complexity": "huge",
        "client_type": "Startup",
    })
    assert template.category == "revision_handling"
    assert template.tone_style == "professional"
    assert template.project_complexity == "standard"
    assert template.client_type == "startup"


def test_json_import_replaces_unknown_category_label():
    result = parse_json('[{"title": "Hi", "content": "Welcome aboard!", "category": "greeting"}]')
    assert result.templates[0].category == "client_onboarding"


@pytest.mark.parametrize("filename,expected", [
    ("templates.CSV", "csv"),
    ("archive.tar.json", "json"),
    ("noext", ""),
    ("", ""),
    (None, ""),
])
def test_file_extension(filename, expected):
    assert file_extension(filename) == expected


# ===================== DISPATCH =====================

def test_parse_file_decodes_bytes_with_bom():
    content = "\ufefftitle,content\nHello,World body\n".encode("utf-8")
    result = parse_file("t.csv", content)
    assert result.templates[0].title == "Hello"


def test_parse_file_rejects_unsupported_types():
    with pytest.raises(TemplateImportError, match="Unsupported file type"):
        parse_file("templates.xlsx", b"data")
    with pytest.raises(TemplateImportError, match="no extension"):
        parse_file("templates", b"data")


def test_parse_file_rejects_non_utf8():
    with pytest.raises(TemplateImportError):
        parse_file("t.txt", b"\xff\xfe\xfa")

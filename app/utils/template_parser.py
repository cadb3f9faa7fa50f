"""
Template File Parsers

Turns uploaded template files into ParsedTemplate records:
- .csv  header row, quoted values, comma-separated list columns
- .json array of objects (body in `content`, `template_content` or `body`)
- .txt  paragraphs separated by a blank line

Each row yields a template or a row-level error message. Problems with the
file as a whole raise TemplateImportError.
"""
import csv
import io
import json
import logging
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, field, asdict

from app.domain.constants import TemplateCategory, ToneStyle, ProjectComplexity
from app.utils.text_analysis import (
    analyze_template_content,
    extract_template_variables,
    format_content,
    normalize_terms,
)

logger = logging.getLogger(__name__)


BODY_FIELDS = ("content", "template_content", "body")

# Labels outside these sets are replaced by the inferred label
CHOICE_FIELDS = {
    "category": {c.value for c in TemplateCategory},
    "tone_style": {t.value for t in ToneStyle},
    "project_complexity": {c.value for c in ProjectComplexity},
}


class TemplateImportError(ValueError):
    """The uploaded file cannot be imported at all."""


@dataclass
class ParsedTemplate:
    """A template read from an import file, with metadata filled in."""
    title: str
    body: str
    category: str
    tone_style: str
    project_complexity: str
    client_type: str
    industry_tags: List[str] = field(default_factory=list)
    matching_keywords: List[str] = field(default_factory=list)
    template_variables: List[str] = field(default_factory=list)
    is_ai_generated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ParseResult:
    """Parsed templates plus per-row error messages."""
    templates: List[ParsedTemplate] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.templates) + len(self.errors)


def build_parsed_template(title: str, body: str, metadata: Optional[Dict[str, Any]] = None) -> ParsedTemplate:
    """
    Build a ParsedTemplate, inferring whatever metadata the file left out.

    The body is normalised with format_content; analysis runs on the
    normalised body.
    """
    metadata = metadata or {}
    body = format_content(body)
    analysis = analyze_template_content(body)

    def _pick(key: str, inferred: str) -> str:
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            value = value.strip().lower()
            choices = CHOICE_FIELDS.get(key)
            if choices is None or value in choices:
                return value
            logger.warning(f"[TemplateParser] Unknown {key} '{value}', using inferred '{inferred}'")
        return inferred

    keywords = normalize_terms(metadata.get("matching_keywords")) or analysis.keywords

    return ParsedTemplate(
        title=title.strip(),
        body=body,
        category=_pick("category", analysis.category),
        tone_style=_pick("tone_style", analysis.tone),
        project_complexity=_pick("project_complexity", analysis.complexity),
        client_type=_pick("client_type", analysis.client_type),
        industry_tags=normalize_terms(metadata.get("industry_tags")),
        matching_keywords=keywords,
        template_variables=extract_template_variables(body),
    )


def _row_to_template(row: Dict[str, Any], label: str, result: ParseResult) -> None:
    title = row.get("title")
    title = title.strip() if isinstance(title, str) else ""

    body = ""
    for key in BODY_FIELDS:
        value = row.get(key)
        if isinstance(value, str) and value.strip():
            body = value
            break

    if not title:
        result.errors.append(f"{label}: missing title")
        return
    if not body:
        result.errors.append(f"{label}: missing content")
        return

    result.templates.append(build_parsed_template(title, body, row))


def parse_csv(content: str) -> ParseResult:
    """Parse CSV text with a header row; blank lines are ignored."""
    reader = csv.reader(io.StringIO(content))
    rows = [row for row in reader if any(cell.strip() for cell in row)]

    if not rows:
        raise TemplateImportError("CSV file is empty")
    if len(rows) < 2:
        raise TemplateImportError("CSV file must contain a header row and at least one data row")

    headers = [header.strip().lower() for header in rows[0]]
    result = ParseResult()

    for index, values in enumerate(rows[1:], 1):
        record = {
            header: value.strip()
            for header, value in zip(headers, values)
            if header
        }
        _row_to_template(record, f"Row {index}", result)

    return result


def parse_json(content: str) -> ParseResult:
    """Parse a JSON array of template objects."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise TemplateImportError(f"Invalid JSON: {e.msg} (line {e.lineno})") from e

    if not isinstance(data, list):
        raise TemplateImportError("JSON file must contain an array of templates")
    if not data:
        raise TemplateImportError("JSON array contains no templates")

    result = ParseResult()
    for index, item in enumerate(data, 1):
        label = f"Item {index}"
        if not isinstance(item, dict):
            result.errors.append(f"{label}: expected an object")
            continue
        _row_to_template(item, label, result)

    return result


def parse_txt(content: str) -> ParseResult:
    """Each blank-line separated paragraph becomes one template."""
    normalized = content.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = [p for p in normalized.split("\n\n") if p.strip()]
    if not paragraphs:
        raise TemplateImportError("Text file contains no templates")

    result = ParseResult()
    for index, paragraph in enumerate(paragraphs, 1):
        result.templates.append(build_parsed_template(f"Imported Template {index}", paragraph))
    return result


PARSERS = {
    "csv": parse_csv,
    "json": parse_json,
    "txt": parse_txt,
}


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def parse_file(filename: str, content: Union[bytes, str]) -> ParseResult:
    """
    Parse an uploaded template file, dispatching on its extension.

    Args:
        filename: Original file name
        content: Raw file content (bytes are decoded as UTF-8)

    Returns:
        ParseResult

    Raises:
        TemplateImportError: Unsupported type, undecodable or malformed file
    """
    extension = file_extension(filename)
    parser = PARSERS.get(extension)
    if parser is None:
        raise TemplateImportError(
            f"Unsupported file type '.{extension}'. Please upload a CSV, JSON, or TXT file."
            if extension else
            "File has no extension. Please upload a CSV, JSON, or TXT file."
        )

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise TemplateImportError("File must be UTF-8 encoded text") from e

    result = parser(content)
    logger.info(f"[TemplateParser] {filename}: {len(result.templates)} parsed, {len(result.errors)} rejected")
    return result

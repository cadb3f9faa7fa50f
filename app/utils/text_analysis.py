"""
Template Content Analysis Utilities

Single source of truth for:
- Keyword extraction
- Category detection (weighted rules, highest score wins)
- Tone detection (ordered rules, first match wins)
- Project complexity and client type detection
- Content formatting and template variable handling

All functions are pure and never raise on odd input.
"""
import re
import logging
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field, asdict

from app.domain.constants import (
    STOPWORDS,
    MAX_KEYWORDS,
    MIN_KEYWORD_LENGTH,
    CATEGORY_RULES,
    CATEGORY_ORDER,
    TONE_RULES,
    COMPLEXITY_RULES,
    CLIENT_TYPE_RULES,
    DEFAULT_CATEGORY,
    DEFAULT_TONE,
    DEFAULT_COMPLEXITY,
    DEFAULT_CLIENT_TYPE,
)

logger = logging.getLogger(__name__)


WORD_PATTERN = re.compile(r"\b\w+\b")
VARIABLE_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


@dataclass
class ContentAnalysis:
    """Signals derived from a piece of template text."""
    keywords: List[str] = field(default_factory=list)
    category: str = DEFAULT_CATEGORY
    tone: str = DEFAULT_TONE
    complexity: str = DEFAULT_COMPLEXITY
    client_type: str = DEFAULT_CLIENT_TYPE

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


# Compiled once; order is preserved from the constants tables
COMPILED_CATEGORY_RULES: List[Tuple[str, re.Pattern, int]] = [
    (label, _compile(pattern), weight) for label, pattern, weight in CATEGORY_RULES
]
COMPILED_TONE_RULES: List[Tuple[str, re.Pattern]] = [
    (label, _compile(pattern)) for label, pattern in TONE_RULES
]
COMPILED_COMPLEXITY_RULES: List[Tuple[str, re.Pattern]] = [
    (label, _compile(pattern)) for label, pattern in COMPLEXITY_RULES
]
COMPILED_CLIENT_TYPE_RULES: List[Tuple[str, re.Pattern]] = [
    (label, _compile(pattern)) for label, pattern in CLIENT_TYPE_RULES
]


def first_matching_label(
    text: str,
    rules: List[Tuple[str, re.Pattern]],
    default: str
) -> str:
    """Return the label of the first rule whose pattern matches, else default."""
    for label, pattern in rules:
        if pattern.search(text):
            return label
    return default


def score_categories(
    text: str,
    rules: Optional[List[Tuple[str, re.Pattern, int]]] = None
) -> Dict[str, int]:
    """
    Accumulate rule weights per category.

    Every category in CATEGORY_ORDER is present in the result (possibly 0),
    in declaration order.
    """
    rules = COMPILED_CATEGORY_RULES if rules is None else rules
    scores: Dict[str, int] = {label: 0 for label in CATEGORY_ORDER}
    for label, pattern, weight in rules:
        if pattern.search(text):
            scores[label] = scores.get(label, 0) + weight
    return scores


def extract_keywords(text: Optional[str], limit: int = MAX_KEYWORDS) -> List[str]:
    """
    Extract significant keywords from text.

    Tokens longer than 3 characters that are not stopwords, lower-cased and
    de-duplicated in first-seen order, capped at `limit`.
    """
    if not text:
        return []

    keywords: List[str] = []
    seen = set()
    for token in WORD_PATTERN.findall(text):
        word = token.lower()
        if len(word) < MIN_KEYWORD_LENGTH or word in STOPWORDS or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords


def detect_category(text: Optional[str]) -> str:
    """
    Pick the category with the highest accumulated rule weight.

    Ties resolve to the category declared first; no match -> "custom".
    """
    if not text:
        return DEFAULT_CATEGORY

    best_label = DEFAULT_CATEGORY
    best_score = 0
    for label, score in score_categories(text).items():
        if score > best_score:
            best_label, best_score = label, score
    return best_label


def detect_tone(text: Optional[str]) -> str:
    """First matching tone indicator wins (unlike category detection)."""
    if not text:
        return DEFAULT_TONE
    return first_matching_label(text, COMPILED_TONE_RULES, DEFAULT_TONE)


def detect_complexity(text: Optional[str]) -> str:
    """'complex' is checked before 'simple'; default 'standard'."""
    if not text:
        return DEFAULT_COMPLEXITY
    return first_matching_label(text, COMPILED_COMPLEXITY_RULES, DEFAULT_COMPLEXITY)


def detect_client_type(text: Optional[str]) -> str:
    """startup -> enterprise -> individual -> agency; default 'business'."""
    if not text:
        return DEFAULT_CLIENT_TYPE
    return first_matching_label(text, COMPILED_CLIENT_TYPE_RULES, DEFAULT_CLIENT_TYPE)


def analyze_template_content(text: Optional[str]) -> ContentAnalysis:
    """
    Comprehensive analysis of template text.

    Combines all detection passes into a single call. Each pass is
    independent of the others.

    Args:
        text: Raw template body

    Returns:
        ContentAnalysis with keywords, category, tone, complexity, client_type
    """
    text = text or ""
    return ContentAnalysis(
        keywords=extract_keywords(text),
        category=detect_category(text),
        tone=detect_tone(text),
        complexity=detect_complexity(text),
        client_type=detect_client_type(text),
    )


# ===================== FORMATTING =====================

_HORIZONTAL_WS = re.compile(r"[ \t\f\v\u00a0]+")
_SPACES_AROUND_NEWLINE = re.compile(r" *\n *")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_SPACE_BEFORE_PUNCT = re.compile(r" +([,.!?;:])")
_MISSING_SPACE_AFTER_SENTENCE = re.compile(r"([.!?])([A-Z])")
_LOWER_AFTER_SENTENCE = re.compile(r"([.!?]\s+)([a-z])")
_LOWER_AT_START = re.compile(r"^([a-z])")


def format_content(text: Optional[str]) -> str:
    """
    Normalize whitespace and sentence casing of message text.

    Idempotent: format_content(format_content(x)) == format_content(x).
    """
    if not text:
        return ""

    formatted = text.replace("\r\n", "\n").replace("\r", "\n")
    formatted = _HORIZONTAL_WS.sub(" ", formatted)
    formatted = _SPACES_AROUND_NEWLINE.sub("\n", formatted)
    formatted = _EXCESS_NEWLINES.sub("\n\n", formatted)
    formatted = _SPACE_BEFORE_PUNCT.sub(r"\1", formatted)
    formatted = _MISSING_SPACE_AFTER_SENTENCE.sub(r"\1 \2", formatted)
    formatted = _LOWER_AFTER_SENTENCE.sub(lambda m: m.group(1) + m.group(2).upper(), formatted)
    formatted = formatted.strip()
    formatted = _LOWER_AT_START.sub(lambda m: m.group(1).upper(), formatted)
    return formatted


# ===================== TEMPLATE VARIABLES =====================

def extract_template_variables(body: Optional[str]) -> List[str]:
    """List `{{variable}}` names in order of first appearance."""
    if not body:
        return []
    names: List[str] = []
    for name in VARIABLE_PATTERN.findall(body):
        if name not in names:
            names.append(name)
    return names


def render_template_variables(body: str, variables: Optional[Dict[str, str]] = None) -> str:
    """
    Replace `{{variable}}` placeholders.

    Supplied values are substituted; unknown names become visible markers
    like `[CLIENT NAME]` so the user can spot what still needs filling in.
    """
    variables = variables or {}

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        value = variables.get(name)
        if value:
            return str(value)
        return f"[{name.replace('_', ' ').upper()}]"

    return VARIABLE_PATTERN.sub(_replace, body or "")


def normalize_terms(terms) -> List[str]:
    """Strip, lower-case and de-duplicate keyword/tag lists (first-seen order)."""
    if not terms:
        return []
    if isinstance(terms, str):
        terms = terms.split(",")

    normalized: List[str] = []
    for term in terms:
        if term is None:
            continue
        clean = str(term).strip().lower()
        if clean and clean not in normalized:
            normalized.append(clean)
    return normalized

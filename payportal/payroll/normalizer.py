# ==============================================================================
# payportal/payroll/normalizer.py
# ------------------------------------------------------------------------------
# Resolves free-form spreadsheet headers to canonical payslip fields.
# ==============================================================================

import re
from collections import namedtuple

from .fields import (FIELD_DICTIONARY, STOPWORDS, FUZZY_MATCH_THRESHOLD, MIN_SUBSTRING_LENGTH,
                     HIGH, MEDIUM, LOW, OTHER)

_SEPARATORS = re.compile(r'[\s_\-]+')
_STOPWORDS_RE = re.compile(r'\b(?:' + '|'.join(sorted(STOPWORDS)) + r')\b')

CONFIDENCE_RANK = {HIGH: 3, MEDIUM: 2, LOW: 1}

HeaderMatch = namedtuple('HeaderMatch', ['field', 'category', 'confidence'])


class ColumnMapping:
    """How one detected column maps onto the payslip."""

    __slots__ = ('detected_column', 'suggested_field', 'category', 'confidence')

    def __init__(self, detected_column, suggested_field, category=OTHER, confidence=LOW):
        self.detected_column = detected_column
        self.suggested_field = suggested_field
        self.category = category
        self.confidence = confidence

    @property
    def is_mapped(self):
        return self.category != OTHER

    def to_dict(self):
        return {
            'detected_column': self.detected_column,
            'suggested_field': self.suggested_field,
            'category': self.category,
            'confidence': self.confidence,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(data['detected_column'], data['suggested_field'],
                   data.get('category', OTHER), data.get('confidence', LOW))

    def __eq__(self, other):
        return isinstance(other, ColumnMapping) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f'<ColumnMapping {self.detected_column!r} -> {self.suggested_field!r} '
                f'({self.category}, {self.confidence})>')


def normalize_text(text):
    """Lowercases and collapses whitespace, underscores and hyphens to single spaces."""
    if text is None:
        return ''
    return _SEPARATORS.sub(' ', str(text).lower()).strip()


# Variants normalized once; the dictionary itself is immutable.
_NORMALIZED_VARIANTS = tuple(
    (field_name, entry['category'], tuple(normalize_text(v) for v in entry['variants']))
    for field_name, entry in FIELD_DICTIONARY.items()
)


def _is_substring_match(text, variant):
    if len(variant) >= MIN_SUBSTRING_LENGTH and variant in text:
        return True
    return len(text) >= MIN_SUBSTRING_LENGTH and text in variant


def _strip_stopwords(text):
    return _STOPWORDS_RE.sub(' ', text).split()


def _words_match(first, second):
    if first == second:
        return True
    return _is_substring_match(first, second)


def fuzzy_ratio(first, second):
    """
    Share of the shorter side's words that appear (as substrings) in the other
    side, measured against the longer side's word count.
    """
    words1 = _strip_stopwords(first)
    words2 = _strip_stopwords(second)
    if not words1 or not words2:
        return 0.0
    shorter, longer = (words1, words2) if len(words1) <= len(words2) else (words2, words1)
    matches = sum(1 for word in shorter if any(_words_match(word, other) for other in longer))
    return matches / len(longer)


def match_header(text):
    """
    Finds the canonical field for a header, trying exact, then substring, then
    fuzzy comparison over the whole dictionary. The first field in declaration
    order wins within a tier.

    Returns:
        HeaderMatch or None when nothing matches.
    """
    normalized = normalize_text(text)
    if not normalized:
        return None

    for field_name, category, variants in _NORMALIZED_VARIANTS:
        if normalized in variants:
            return HeaderMatch(field_name, category, HIGH)

    for field_name, category, variants in _NORMALIZED_VARIANTS:
        if any(_is_substring_match(normalized, variant) for variant in variants):
            return HeaderMatch(field_name, category, MEDIUM)

    for field_name, category, variants in _NORMALIZED_VARIANTS:
        if any(fuzzy_ratio(normalized, variant) >= FUZZY_MATCH_THRESHOLD for variant in variants):
            return HeaderMatch(field_name, category, LOW)

    return None


def normalize_header(text):
    """Returns the canonical field name for a header, or None."""
    match = match_header(text)
    return match.field if match else None

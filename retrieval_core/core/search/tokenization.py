"""
Tokenizer for the keyword index.

Collapses citation-like and section references into single atomic tokens
before punctuation is stripped, so "123 U.S. 456" becomes ``123_us_456``
and "Section 42(a)" becomes ``section_42_a``.

Dependencies: re
System role: Shared tokenizer for BM25 indexing and querying
"""

import re

LEGAL_ABBREVIATIONS = frozenset(
    {
        "v", "vs", "sc", "hc", "us", "uk", "eu", "ca", "ny", "dc",
        "j", "cj", "jj", "llp", "llc", "inc", "ltd", "plc",
    }
)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
        "be", "have", "has", "had", "do", "does", "did", "will", "would",
        "should", "could", "may", "might", "must", "can", "this", "that",
        "these", "those", "i", "you", "he", "she", "it", "we", "they",
    }
)

_SECTION = re.compile(r"\bsection\s+(\d+[a-z]?)\s*\(\s*([a-z0-9]+)\s*\)", re.IGNORECASE)
_CITATION = re.compile(r"\b(\d+)\s+([A-Z][A-Za-z]*\.?(?:[A-Z][A-Za-z]*\.?)*)\s+(\d+)\b")
_NON_WORD = re.compile(r"[^\w\s]")


def _collapse_section(match: re.Match) -> str:
    return f"section_{match.group(1)}_{match.group(2)}"


def _collapse_citation(match: re.Match) -> str:
    reporter = match.group(2).replace(".", "")
    return f"{match.group(1)}_{reporter}_{match.group(3)}"


def tokenize(text: str) -> list[str]:
    """
    Split text into normalized index terms.

    Args:
        text: Raw document or query text

    Returns:
        list[str]: Lower-cased terms without punctuation, stop words or
        short tokens (unless they are known legal abbreviations)
    """
    if not text:
        return []

    text = _SECTION.sub(_collapse_section, text)
    text = _CITATION.sub(_collapse_citation, text)
    text = _NON_WORD.sub(" ", text.lower())

    return [
        term
        for term in text.split()
        if (len(term) > 2 or term in LEGAL_ABBREVIATIONS) and term not in STOP_WORDS
    ]

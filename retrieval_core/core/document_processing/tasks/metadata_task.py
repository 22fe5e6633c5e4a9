"""
Legal metadata extraction task.

Pattern-based extraction of court, case type, bench, judges and cited
provisions from the opening of a judgment. Values the caller supplied on
the document always win over extracted ones.

Dependencies: re
System role: Pre-chunking enrichment stage of document ingestion
"""

import re

from retrieval_core.models.document import Document, DocumentMetadata

SAMPLE_LENGTH = 5000

_COURT = re.compile(
    r"(?:IN THE |BEFORE THE )?(SUPREME COURT OF INDIA|HIGH COURT OF [A-Z]+)",
    re.IGNORECASE,
)
_JUDGE = re.compile(
    r"(?:Hon'ble|Honourable)\s+(?:Mr\.\s*|Ms\.\s*|Mrs\.\s*)?Justice\s+"
    r"([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)"
)
_SECTION = re.compile(r"\bSection\s+(\d+[A-Z]?)", re.IGNORECASE)
_ARTICLE = re.compile(r"\bArticle\s+(\d+[A-Z]?)", re.IGNORECASE)
_ACT = re.compile(r"([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)[ \t]+Act,?\s+(\d{4})")
_CASE_NUMBER = re.compile(
    r"(W\.P\.\s*\(C\)|W\.P\.|C\.A\.|SLP\s*\(C\)|SLP|Crl\.A\.)\s*No\.?\s*(\d+[-/]\d+)",
    re.IGNORECASE,
)
_CITATION = re.compile(
    r"\b((?:19|20)\d{2}\s+INSC\s+\d+|\((?:19|20)\d{2}\)\s+\d+\s+SCC\s+\d+|AIR\s+(?:19|20)\d{2}\s+SC\s+\d+)"
)
_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")
_FILENAME_DATE = re.compile(r"\((\d{2})-(\d{2})-(\d{4})\)")

_CASE_TYPES = (
    ("crl.a.", "Criminal Appeal", "Criminal"),
    ("w.p.", "Writ Petition", None),
    ("slp", "Special Leave Petition", None),
    ("c.a.", "Civil Appeal", "Civil"),
)

MAX_JUDGES = 5
MAX_CITED = 10


def _court_name(raw: str) -> str:
    words = raw.split()
    return " ".join(w.lower() if w.lower() == "of" else w.capitalize() for w in words)


def _unique(values, limit: int) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)[:limit]


def extract_legal_metadata(text: str, title: str = "") -> dict:
    """
    Extract structured fields from judgment text and its title.

    Args:
        text: Full document text (only the first 5000 characters are read)
        title: Title or filename, used for case number and date

    Returns:
        dict: Non-empty extracted fields keyed like DocumentMetadata
    """
    sample = text[:SAMPLE_LENGTH]
    found: dict = {}

    court = _COURT.search(sample)
    if court:
        name = _court_name(court.group(1))
        found["court"] = name
        found["court_level"] = "Supreme Court" if "Supreme" in name else "High Court"

    case_number = _CASE_NUMBER.search(title) or _CASE_NUMBER.search(sample)
    if case_number:
        found["case_number"] = case_number.group(0)
        lowered = case_number.group(1).lower().replace(" ", "")
        for marker, case_type, jurisdiction in _CASE_TYPES:
            if lowered.startswith(marker):
                found["case_type"] = case_type
                if jurisdiction:
                    found["jurisdiction"] = jurisdiction
                break

    judges = _unique(
        (m.group(1).strip() for m in _JUDGE.finditer(sample) if 5 < len(m.group(1)) < 50),
        MAX_JUDGES,
    )
    if judges:
        found["judges"] = judges

    if re.search(r"constitution\s+bench", sample, re.IGNORECASE):
        found["bench_type"] = "Constitution Bench"
    elif re.search(r"division\s+bench", sample, re.IGNORECASE) or len(judges) in (2, 3):
        found["bench_type"] = "Division Bench"

    sections = _unique((f"Section {m.group(1).upper()}" for m in _SECTION.finditer(sample)), MAX_CITED)
    if sections:
        found["sections_cited"] = sections
    articles = _unique((f"Article {m.group(1).upper()}" for m in _ARTICLE.finditer(sample)), MAX_CITED)
    if articles:
        found["articles_cited"] = articles
    acts = _unique((f"{m.group(1)} Act, {m.group(2)}" for m in _ACT.finditer(sample)), MAX_CITED)
    if acts:
        found["acts_cited"] = acts

    citation = _CITATION.search(sample)
    if citation:
        found["citation"] = citation.group(1)

    date = _FILENAME_DATE.search(title)
    if date:
        found["date"] = f"{date.group(3)}-{date.group(2)}-{date.group(1)}"

    return found


class MetadataExtractionTask:
    """Fill empty DocumentMetadata fields from the document text."""

    def extract(self, document: Document) -> Document:
        """
        Return a copy of ``document`` with extracted metadata merged in.

        Explicit metadata always wins; fields outside the schema go to
        ``extra``. The year is derived from the date when not given.
        """
        metadata = document.metadata
        found = extract_legal_metadata(document.text, metadata.title or metadata.source or "")

        updates: dict = {}
        extra = dict(metadata.extra)
        schema_fields = set(DocumentMetadata.model_fields)
        for key, value in found.items():
            if key in schema_fields:
                if not getattr(metadata, key):
                    updates[key] = value
            else:
                extra.setdefault(key, value)

        if metadata.year is None:
            date = updates.get("date") or metadata.date
            year = _YEAR.search(date) if date else None
            if year:
                updates["year"] = int(year.group(1))

        merged = metadata.model_copy(update={**updates, "extra": extra})
        return document.model_copy(update={"metadata": merged})

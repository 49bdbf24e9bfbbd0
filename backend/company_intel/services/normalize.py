"""
Normalization helpers for loosely-typed extractor output.

Every function here is pure and total: bad input resolves to a typed
default or None, never to an exception. Extractors send numbers in US
and European notation, with currencies, magnitude suffixes and
percent signs mixed in, so most of the work is in parse_number.
"""
from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from ..models.enums import DocType, Theme

# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

# Any run of characters that are not letters or digits, in any script
_NON_ALNUM_RE = re.compile(r"[\W_]+")


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(text: Any) -> str:
    """
    Canonical slug: case-folded, accent-free, runs of anything that is not a
    letter or digit (any script) collapsed to a single "-", no leading/trailing "-".

    "Société Générale", "societe  generale" and "SOCIETE-GENERALE" all give
    "societe-generale". Non-Latin names keep their letters: "Газпром" gives
    "газпром".
    """
    if text is None:
        return ""
    folded = strip_accents(str(text)).casefold()
    # casefold can reintroduce non-ascii (e.g. "ǰ"), strip again
    folded = strip_accents(folded)
    return _NON_ALNUM_RE.sub("-", folded).strip("-")


def _fold(text: str) -> str:
    return strip_accents(text).casefold().strip()


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

# Longest alternatives first so "mds" is not read as "m"
_MAGNITUDE_SUFFIXES: List[Tuple[str, Decimal]] = [
    ("thousands", Decimal(10) ** 3),
    ("thousand", Decimal(10) ** 3),
    ("milliards", Decimal(10) ** 9),
    ("milliard", Decimal(10) ** 9),
    ("millions", Decimal(10) ** 6),
    ("million", Decimal(10) ** 6),
    ("billions", Decimal(10) ** 9),
    ("billion", Decimal(10) ** 9),
    ("mds", Decimal(10) ** 9),
    ("mrd", Decimal(10) ** 9),
    ("mio", Decimal(10) ** 6),
    ("md", Decimal(10) ** 9),
    ("bn", Decimal(10) ** 9),
    ("mn", Decimal(10) ** 6),
    ("mm", Decimal(10) ** 6),
    ("k", Decimal(10) ** 3),
    ("m", Decimal(10) ** 6),
    ("b", Decimal(10) ** 9),
]

_CURRENCY_CODES = (
    "EUR", "USD", "GBP", "JPY", "CNY", "RMB", "CHF", "CAD", "AUD", "HKD",
    "SEK", "NOK", "DKK", "INR", "KRW", "SGD",
)
_CURRENCY_SYMBOLS = "€$£¥"

_LEADING_CURRENCY_RE = re.compile(
    r"^(?:US\$|CN¥|(?:%s)|[%s])" % ("|".join(_CURRENCY_CODES), _CURRENCY_SYMBOLS),
    re.IGNORECASE,
)
_TRAILING_CURRENCY_RE = re.compile(
    r"(?:(?:%s)|[%s])$" % ("|".join(_CURRENCY_CODES), _CURRENCY_SYMBOLS),
    re.IGNORECASE,
)
_NUMERIC_CORE_RE = re.compile(r"^[0-9.,]+$")
_PLAIN_NUMBER_RE = re.compile(r"^(?:\d+(?:\.\d+)?|\.\d+)$")


def _strip_currency(s: str) -> str:
    # A value may carry currency on both ends ("$1.2bn USD"); strip until stable
    previous = None
    while s and s != previous:
        previous = s
        s = _LEADING_CURRENCY_RE.sub("", s)
        s = _TRAILING_CURRENCY_RE.sub("", s)
    return s


def _split_magnitude(s: str) -> Tuple[str, Decimal]:
    lowered = s.lower()
    for suffix, multiplier in _MAGNITUDE_SUFFIXES:
        if lowered.endswith(suffix) and len(lowered) > len(suffix):
            head = s[: -len(suffix)]
            if head[-1].isdigit() or head[-1] in ".,":
                return head, multiplier
    return s, Decimal(1)


def _resolve_separators(core: str) -> Optional[str]:
    """
    Turn a digits-and-separators string into a plain "1234.56" literal.

    - both "," and "." present: the last one is the decimal separator
    - repeated separator: thousands grouping ("1,234,567" / "1.234.567")
    - single ",": thousands when followed by exactly 3 digits ("1,234"),
      decimal otherwise ("2,5")
    - single ".": always decimal ("1.234" is 1.234)
    """
    has_comma = "," in core
    has_dot = "." in core

    if has_comma and has_dot:
        if core.rfind(",") > core.rfind("."):
            core = core.replace(".", "").replace(",", ".")
        else:
            core = core.replace(",", "")
    elif has_comma:
        if core.count(",") > 1:
            core = core.replace(",", "")
        else:
            head, tail = core.split(",")
            if len(tail) == 3 and head and head != "0":
                core = head + tail
            else:
                core = head + "." + tail
    elif has_dot and core.count(".") > 1:
        core = core.replace(".", "")

    if not _PLAIN_NUMBER_RE.match(core):
        return None
    return core


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    # Whitespace (incl. nbsp / narrow nbsp) is only ever a thousands separator
    s = "".join(s.split()).replace("\u202f", "").replace("'", "")
    s = s.replace("%", "")
    s = _strip_currency(s)

    # Accounting negatives, possibly behind a currency: "$(1,234)"
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = _strip_currency(s[1:-1])

    if s[:1] in ("-", "−", "+"):
        negative = negative or s[0] != "+"
        s = _strip_currency(s[1:])

    if s[-1:] in ("x", "X", "×"):
        s = s[:-1]

    s, multiplier = _split_magnitude(s)
    s = _strip_currency(s)

    if not s or not _NUMERIC_CORE_RE.match(s):
        return None

    core = _resolve_separators(s)
    if core is None:
        return None

    try:
        number = Decimal(core) * multiplier
    except InvalidOperation:
        return None
    return -number if negative else number


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a loosely formatted number; None when the input is not numeric.

    >>> parse_number("1.234,56")
    1234.56
    >>> parse_number("(1,234)")
    -1234.0
    >>> parse_number("2Md")
    2000000000.0
    """
    try:
        number = _parse_decimal(value)
    except (ArithmeticError, ValueError):
        return None
    if number is None:
        return None
    result = float(number)
    return result if math.isfinite(result) else None


def normalize_unit_fraction(value: Any) -> Optional[float]:
    """
    Clamp a score to [0, 1].

    Values above 1.0001 are read as percentages (95 -> 0.95). Negative
    values clamp to 0, anything still above 1 after scaling clamps to 1.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        x = parse_number(value)
    else:
        try:
            x = float(value)
        except (TypeError, ValueError):
            return None
    if x is None or not math.isfinite(x):
        return None

    if abs(x) > 1.0001:
        x = x / 100
    if x < 0:
        x = 0.0
    if x > 1:
        x = 1.0
    return x


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

THEME_SYNONYMS: Dict[str, Theme] = {
    "growth": Theme.GROWTH,
    "croissance": Theme.GROWTH,
    "expansion": Theme.GROWTH,
    "margin": Theme.MARGIN,
    "margins": Theme.MARGIN,
    "marge": Theme.MARGIN,
    "marges": Theme.MARGIN,
    "profitability": Theme.MARGIN,
    "rentabilite": Theme.MARGIN,
    "risk": Theme.RISK,
    "risks": Theme.RISK,
    "risque": Theme.RISK,
    "risques": Theme.RISK,
    "cash": Theme.CASH,
    "cashflow": Theme.CASH,
    "flux": Theme.CASH,
    "tresorerie": Theme.CASH,
    "liquidity": Theme.CASH,
    "strategy": Theme.STRATEGY,
    "strategie": Theme.STRATEGY,
    "geography": Theme.GEOGRAPHY,
    "geographie": Theme.GEOGRAPHY,
    "geo": Theme.GEOGRAPHY,
    "china": Theme.GEOGRAPHY,
    "chine": Theme.GEOGRAPHY,
    "europe": Theme.GEOGRAPHY,
    "us": Theme.GEOGRAPHY,
    "esg": Theme.ESG,
    "sustainability": Theme.ESG,
    "durabilite": Theme.ESG,
    "climate": Theme.ESG,
    "climat": Theme.ESG,
    "product": Theme.PRODUCT,
    "products": Theme.PRODUCT,
    "produit": Theme.PRODUCT,
    "produits": Theme.PRODUCT,
    "pipeline": Theme.PRODUCT,
    "moat": Theme.MOAT,
    "avantage": Theme.MOAT,
    "barrier": Theme.MOAT,
    "barriere": Theme.MOAT,
}

_WORD_RE = re.compile(r"[a-z0-9]+")


def classify_theme(text: Any) -> Theme:
    """Map a free-text theme to the Theme enum; unknown -> Theme.OTHER."""
    if not text or not isinstance(text, str):
        return Theme.OTHER
    folded = _fold(text)
    if folded in THEME_SYNONYMS:
        return THEME_SYNONYMS[folded]
    for word in _WORD_RE.findall(folded):
        theme = THEME_SYNONYMS.get(word)
        if theme is not None:
            return theme
    return Theme.OTHER


# Ordered: "annual report presentation" is an annual report, but half-year
# reports are checked before "annual" so "semi-annual" is not one
DOC_TYPE_KEYWORDS: List[Tuple[Tuple[str, ...], DocType]] = [
    (("semi-annual", "semiannual", "half-year", "half year", "semestriel"), DocType.QUARTERLY_REPORT),
    (("annual", "annuel", "10-k", "urd"), DocType.ANNUAL_REPORT),
    (("quarter", "trimestr", "10-q", "interim"), DocType.QUARTERLY_REPORT),
    (("press", "communique"), DocType.PRESS_RELEASE),
    (("presentation", "deck"), DocType.INVESTOR_PRESENTATION),
    (("news", "article", "actualite"), DocType.NEWS),
    (("web", "site", "page"), DocType.WEBPAGE),
]


def classify_doc_type(text: Any) -> DocType:
    if not text or not isinstance(text, str):
        return DocType.OTHER
    folded = _fold(text)
    for keywords, doc_type in DOC_TYPE_KEYWORDS:
        if any(k in folded for k in keywords):
            return doc_type
    return DocType.OTHER


_CURRENCY_CODE_HINTS: List[Tuple[str, str]] = [
    ("EUR", "EUR"),
    ("USD", "USD"),
    ("US$", "USD"),
    ("GBP", "GBP"),
    ("JPY", "JPY"),
    ("CNY", "CNY"),
    ("RMB", "CNY"),
    ("CN¥", "CNY"),
]
_CURRENCY_SYMBOL_HINTS: List[Tuple[str, str]] = [
    ("€", "EUR"),
    ("£", "GBP"),
    ("元", "CNY"),
    ("¥", "JPY"),
    ("$", "USD"),
]


def guess_currency(text: Any) -> str:
    """Detect EUR/USD/GBP/JPY/CNY from a code or symbol; "unknown" otherwise."""
    if not text or not isinstance(text, str):
        return "unknown"
    upper = text.upper()
    for hint, code in _CURRENCY_CODE_HINTS:
        if re.search(r"(?<![A-Z])%s(?![A-Z])" % re.escape(hint), upper):
            return code
    for symbol, code in _CURRENCY_SYMBOL_HINTS:
        if symbol in text:
            return code
    return "unknown"


def normalize_unit(unit: Any, raw_value: Any = None) -> Optional[str]:
    """Explicit unit wins; otherwise infer a currency code or "%" from the raw value."""
    if isinstance(unit, str) and unit.strip():
        return unit.strip()[:32]
    if isinstance(raw_value, str):
        currency = guess_currency(raw_value)
        if currency != "unknown":
            return currency
        if "%" in raw_value:
            return "%"
    return None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_DATE_FORMATS = ("%d/%m/%Y", "%d.%m.%Y", "%Y/%m/%d", "%Y%m%d")


def safe_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 (or a few common day-first) date string; None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None

    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        parsed = None
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    # Stored naive, in UTC
    if parsed.tzinfo is not None:
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    return parsed


def safe_date(value: Any) -> Optional[date]:
    parsed = safe_datetime(value)
    return parsed.date() if parsed else None

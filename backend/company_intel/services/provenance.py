"""
Publisher identity and trust scoring for source URLs.

The rule table is ordered and the first matching domain suffix wins, so
more specific domains must be listed before broader ones.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from ..models.enums import OFFICIAL_PUBLISHER_TYPES, PublisherType

DEFAULT_TRUST_SCORE = 0.5


@dataclass(frozen=True)
class ProvenanceRule:
    domain: str
    publisher_name: str
    publisher_type: PublisherType
    trust_score: float

    def matches(self, host: str) -> bool:
        return host == self.domain or host.endswith("." + self.domain)


@dataclass(frozen=True)
class Provenance:
    publisher_domain: Optional[str]
    publisher_name: Optional[str]
    publisher_type: PublisherType
    is_official: bool
    trust_score: float


PROVENANCE_RULES: List[ProvenanceRule] = [
    ProvenanceRule("lvmh.com", "LVMH", PublisherType.ISSUER, 0.70),
    ProvenanceRule("sec.gov", "SEC", PublisherType.REGULATOR, 0.95),
    ProvenanceRule("amf-france.org", "AMF", PublisherType.REGULATOR, 0.95),
    ProvenanceRule("esma.europa.eu", "ESMA", PublisherType.REGULATOR, 0.95),
    ProvenanceRule("euronext.com", "Euronext", PublisherType.EXCHANGE, 0.90),
    ProvenanceRule("nasdaq.com", "Nasdaq", PublisherType.EXCHANGE, 0.90),
    ProvenanceRule("nyse.com", "NYSE", PublisherType.EXCHANGE, 0.90),
    ProvenanceRule("businesswire.com", "BusinessWire", PublisherType.NEWSWIRE, 0.80),
    ProvenanceRule("prnewswire.com", "PR Newswire", PublisherType.NEWSWIRE, 0.80),
    ProvenanceRule("globenewswire.com", "GlobeNewswire", PublisherType.NEWSWIRE, 0.80),
    ProvenanceRule("reuters.com", "Reuters", PublisherType.MEDIA, 0.85),
    ProvenanceRule("bloomberg.com", "Bloomberg", PublisherType.MEDIA, 0.85),
    ProvenanceRule("ft.com", "Financial Times", PublisherType.MEDIA, 0.85),
    ProvenanceRule("wsj.com", "The Wall Street Journal", PublisherType.MEDIA, 0.85),
    ProvenanceRule("seekingalpha.com", "Seeking Alpha", PublisherType.ANALYST, 0.70),
]


def _extract_host(url: str) -> Optional[str]:
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
    except (AttributeError, ValueError):
        return None
    if not parsed.scheme or not host:
        return None
    return host.lower().rstrip(".")


def classify_provenance(url: str, rules: List[ProvenanceRule] | None = None) -> Provenance:
    """
    Classify the publisher behind `url`.

    Unknown domains are kept as their own publisher with a neutral trust
    score; malformed URLs get no publisher at all. Never raises.
    """
    host = _extract_host(url) if isinstance(url, str) else None
    if host is None:
        return Provenance(
            publisher_domain=None,
            publisher_name=None,
            publisher_type=PublisherType.OTHER,
            is_official=False,
            trust_score=DEFAULT_TRUST_SCORE,
        )

    for rule in rules if rules is not None else PROVENANCE_RULES:
        if rule.matches(host):
            return Provenance(
                publisher_domain=host,
                publisher_name=rule.publisher_name,
                publisher_type=rule.publisher_type,
                is_official=rule.publisher_type in OFFICIAL_PUBLISHER_TYPES,
                trust_score=min(max(rule.trust_score, 0.0), 1.0),
            )

    return Provenance(
        publisher_domain=host,
        publisher_name=host,
        publisher_type=PublisherType.OTHER,
        is_official=False,
        trust_score=DEFAULT_TRUST_SCORE,
    )

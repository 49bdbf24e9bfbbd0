"""
Tests for provenance.py
"""
import pytest

from company_intel.models.enums import PublisherType
from company_intel.services.provenance import (
    DEFAULT_TRUST_SCORE,
    ProvenanceRule,
    classify_provenance,
)


class TestClassifyProvenance:
    """Tests for classify_provenance."""

    def test_regulator_is_official(self):
        p = classify_provenance("https://www.sec.gov/Archives/edgar/data/1/x.htm")
        assert p.publisher_type == PublisherType.REGULATOR
        assert p.is_official is True
        assert p.trust_score == 0.95
        assert p.publisher_name == "SEC"
        assert p.publisher_domain == "www.sec.gov"

    def test_unknown_domain_is_neutral(self):
        p = classify_provenance("https://example.org/blog/post")
        assert p.publisher_type == PublisherType.OTHER
        assert p.is_official is False
        assert p.trust_score == DEFAULT_TRUST_SCORE == 0.5
        assert p.publisher_domain == "example.org"

    def test_media_is_not_official(self):
        p = classify_provenance("https://reuters.com/x")
        assert p.publisher_type == PublisherType.MEDIA
        assert p.is_official is False
        assert p.trust_score == 0.85

    def test_issuer_and_exchange_are_official(self):
        assert classify_provenance("https://www.lvmh.com/investors").is_official is True
        assert classify_provenance("https://live.euronext.com/en").is_official is True

    def test_suffix_match_requires_label_boundary(self):
        """notreuters.com must not borrow reuters.com's trust."""
        p = classify_provenance("https://notreuters.com/x")
        assert p.publisher_type == PublisherType.OTHER

    def test_host_is_case_insensitive(self):
        assert classify_provenance("HTTPS://WWW.FT.COM/content/1").publisher_type == PublisherType.MEDIA

    @pytest.mark.parametrize("url", ["not a url", "", "reuters.com/x", "ftp://", None])
    def test_malformed_urls_never_raise(self, url):
        p = classify_provenance(url)
        assert p.publisher_domain is None
        assert p.publisher_type == PublisherType.OTHER
        assert p.trust_score == DEFAULT_TRUST_SCORE

    def test_custom_rules_and_clamping(self):
        rules = [ProvenanceRule("acme.test", "Acme", PublisherType.ISSUER, 1.5)]
        p = classify_provenance("https://ir.acme.test/q3", rules=rules)
        assert p.publisher_name == "Acme"
        assert p.trust_score == 1.0

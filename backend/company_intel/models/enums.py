import enum


class Theme(str, enum.Enum):
    GROWTH = "growth"
    MARGIN = "margin"
    RISK = "risk"
    CASH = "cash"
    STRATEGY = "strategy"
    GEOGRAPHY = "geography"
    ESG = "esg"
    PRODUCT = "product"
    MOAT = "moat"
    OTHER = "other"


class DocType(str, enum.Enum):
    ANNUAL_REPORT = "annual_report"
    QUARTERLY_REPORT = "quarterly_report"
    PRESS_RELEASE = "press_release"
    INVESTOR_PRESENTATION = "investor_presentation"
    NEWS = "news"
    WEBPAGE = "webpage"
    OTHER = "other"


class PublisherType(str, enum.Enum):
    ISSUER = "issuer"
    REGULATOR = "regulator"
    EXCHANGE = "exchange"
    NEWSWIRE = "newswire"
    ANALYST = "analyst"
    MEDIA = "media"
    OTHER = "other"


# Publishers whose statements count as official disclosures
OFFICIAL_PUBLISHER_TYPES = frozenset(
    {PublisherType.ISSUER, PublisherType.REGULATOR, PublisherType.EXCHANGE}
)

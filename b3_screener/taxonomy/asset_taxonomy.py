"""
Asset taxonomy: asset classes, strategy tags, fund types and display categories.

Also holds the static ticker lists and segment keyword tables the fund
classifier consults. The keyword tables are matched against text that has
already been passed through ``normalize_text`` (accent-stripped, case-folded),
so every keyword here is written in that form.

Ticker lists
------------
``NEVER_INFRA``   Well-known brick/paper funds whose source segment text can
                  read as infrastructure-adjacent. They must never be INFRA.
``KNOWN_INFRAS``  Incentivised infrastructure funds (Law 12.431) that the
                  primary source mis-segments or omits.
``KNOWN_FIAGROS`` Agribusiness funds (Fiagro) mis-segmented by the source.

This module has NO imports from any other ``b3_screener`` package.
"""

from enum import StrEnum


class AssetType(StrEnum):
    """Asset classes the screener can run against."""

    STOCK = "stock"
    FII = "fii"


class DisplayCategory(StrEnum):
    """Coarse bucket shown by the dashboard."""

    STAR = "STAR"
    OPPORTUNITY = "OPPORTUNITY"
    STANDARD = "STANDARD"


class StockStrategy(StrEnum):
    """Strategy tags a stock can match. Declaration order is display order."""

    QUALITY = "QUALITY"
    DIVIDEND = "DIVIDEND"
    VALUE = "VALUE"
    GROWTH = "GROWTH"
    MAGIC = "MAGIC"
    BAZIN = "BAZIN"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"
    """Cautionary: raw dividend yield above 16%. Never a qualification."""

    TURNAROUND = "TURNAROUND"


class FundStrategy(StrEnum):
    """Strategy tags a fund can match."""

    TIJOLO_VALUE = "TIJOLO_VALUE"
    PAPEL_CARRY = "PAPEL_CARRY"
    DISTRESSED_RISK = "DISTRESSED_RISK"
    """Cautionary: non-brick fund trading at a deep discount to book."""


class FundType(StrEnum):
    """Mutually exclusive fund classification buckets."""

    INFRA = "INFRA"
    AGRO = "AGRO"
    MULTI = "MULTI"
    PAPEL = "PAPEL"
    TIJOLO = "TIJOLO"
    OUTROS = "OUTROS"


CAUTIONARY_TAGS: frozenset[str] = frozenset(
    {StockStrategy.HIGH_VOLATILITY, FundStrategy.DISTRESSED_RISK}
)

# Fund types that hold credit instruments rather than buildings.
CREDIT_FUND_TYPES: frozenset[FundType] = frozenset(
    {FundType.PAPEL, FundType.AGRO, FundType.INFRA}
)


# ── Static ticker lists ───────────────────────────────────────────────────────

NEVER_INFRA: frozenset[str] = frozenset({
    "MXRF11", "HGLG11", "KNRI11", "XPLG11", "VISC11", "VINO11",
    "BCFF11", "XPML11", "BTLG11", "TRXF11", "KNCR11", "RECR11",
})

KNOWN_FIAGROS: frozenset[str] = frozenset({
    "SNAG11", "KNCA11", "VGIA11", "RURA11", "FGAA11", "RZAG11",
    "OIAG11", "AGRX11", "NCRA11", "XPCA11", "BTRA11", "VCRA11",
    "BBGO11",
})

KNOWN_INFRAS: frozenset[str] = frozenset({
    "BDIF11", "JURO11", "KDIF11", "CPTI11", "VIGT11", "BIDB11",
    "CDII11", "IFRA11", "IFRI11", "BINC11", "BODB11", "JMBI11",
    "XPID11", "ISNT11", "ISEN11", "ISTT11", "DIVS11", "VINF11",
    "NUIF11", "RBIF11", "SNID11", "VANG11",
})


# ── Keyword tables (normalized text) ──────────────────────────────────────────

INFRA_ENRICHMENT_KEYWORDS: tuple[str, ...] = ("infra",)
INFRA_SEGMENT_KEYWORDS: tuple[str, ...] = ("infra", "energia", "saneamento")

AGRO_KEYWORDS: tuple[str, ...] = ("fiagro", "agro", "rural")

MULTI_ENRICHMENT_KEYWORDS: tuple[str, ...] = (
    "misto", "hibrido", "multimercado", "fundos de fundos", "fundo de fundos",
)
MULTI_SEGMENT_KEYWORDS: tuple[str, ...] = (
    "multicategoria", "hibrido", "fundos", "mista",
)

PAPER_ENRICHMENT_KEYWORDS: tuple[str, ...] = (
    "papel", "titulos", "valores mobiliarios", "val. mob", "recebiveis",
)
PAPER_SEGMENT_KEYWORDS: tuple[str, ...] = (
    "titulos", "val. mob", "recebiveis", "papel",
)

BRICK_ENRICHMENT_KEYWORDS: tuple[str, ...] = ("tijolo", "renda")
BRICK_SEGMENT_KEYWORDS: tuple[str, ...] = (
    "logistica", "shopping", "lajes", "escritorio",
    "hospital", "hotel", "residencial", "varejo",
)

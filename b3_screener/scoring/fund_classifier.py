"""
Fund type classification: one ``FundType`` per fund, decided by priority.

Signals, strongest first:
  - Enrichment labels (fund type, segment, mandate) from the per-ticker
    probe. Authoritative when present.
  - The raw segment text from the bulk source, accent-stripped and
    case-folded.
  - Static ticker lists for funds the bulk source is known to mis-segment.

Cascade (first match wins)
--------------------------
  1. Deny-list   : tickers in ``NEVER_INFRA`` skip the INFRA rule entirely.
  2. INFRA       : enrichment mentions "infra", or segment mentions
                   infra / energia / saneamento.
  3. AGRO        : enrichment or segment mentions fiagro / agro / rural.
  4. MULTI       : enrichment mentions misto / hibrido / multimercado /
                   fundos de fundos, or segment mentions multicategoria /
                   hibrido / fundos / mista.
  5. PAPEL       : enrichment type/mandate or segment names securities or
                   receivables.
  6. TIJOLO      : enrichment names a brick / income-property mandate, or the
                   segment names a property type.
  7. OUTROS      : nothing matched.

After the cascade, ``KNOWN_INFRAS`` forces INFRA (unless deny-listed) and
``KNOWN_FIAGROS`` forces AGRO unless the fund already resolved to INFRA.
"""

from __future__ import annotations

from typing import Optional

from b3_screener.models.asset import EnrichmentRecord
from b3_screener.taxonomy.asset_taxonomy import (
    AGRO_KEYWORDS,
    BRICK_ENRICHMENT_KEYWORDS,
    BRICK_SEGMENT_KEYWORDS,
    INFRA_ENRICHMENT_KEYWORDS,
    INFRA_SEGMENT_KEYWORDS,
    KNOWN_FIAGROS,
    KNOWN_INFRAS,
    MULTI_ENRICHMENT_KEYWORDS,
    MULTI_SEGMENT_KEYWORDS,
    NEVER_INFRA,
    PAPER_ENRICHMENT_KEYWORDS,
    PAPER_SEGMENT_KEYWORDS,
    FundType,
)
from b3_screener.utils.parsing import normalize_text


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return bool(text) and any(k in text for k in keywords)


def _text_type(
    ticker: str,
    segment: str,
    enrichment: Optional[EnrichmentRecord],
) -> FundType:
    seg = normalize_text(segment)
    e_type = e_segment = e_mandate = ""
    if enrichment is not None:
        e_type = normalize_text(enrichment.fund_type)
        e_segment = normalize_text(enrichment.segment)
        e_mandate = normalize_text(enrichment.mandate)
    e_all = " ".join(t for t in (e_type, e_segment, e_mandate) if t)
    e_type_mandate = " ".join(t for t in (e_type, e_mandate) if t)

    if ticker not in NEVER_INFRA:
        if _mentions(e_all, INFRA_ENRICHMENT_KEYWORDS) or _mentions(
            seg, INFRA_SEGMENT_KEYWORDS
        ):
            return FundType.INFRA

    if _mentions(e_all, AGRO_KEYWORDS) or _mentions(seg, AGRO_KEYWORDS):
        return FundType.AGRO

    if _mentions(e_all, MULTI_ENRICHMENT_KEYWORDS) or _mentions(
        seg, MULTI_SEGMENT_KEYWORDS
    ):
        return FundType.MULTI

    if _mentions(e_type_mandate, PAPER_ENRICHMENT_KEYWORDS) or _mentions(
        seg, PAPER_SEGMENT_KEYWORDS
    ):
        return FundType.PAPEL

    if (
        _mentions(e_type_mandate, BRICK_ENRICHMENT_KEYWORDS)
        or _mentions(e_segment, BRICK_SEGMENT_KEYWORDS)
        or _mentions(seg, BRICK_SEGMENT_KEYWORDS)
    ):
        return FundType.TIJOLO

    return FundType.OUTROS


def classify_fund(
    ticker: str,
    segment: str = "",
    enrichment: Optional[EnrichmentRecord] = None,
) -> FundType:
    """Return the single ``FundType`` for a fund.

    Args:
        ticker:     Fund ticker; compared upper-cased against the static lists.
        segment:    Raw segment label from the bulk source (may be empty).
        enrichment: Probe result, or ``None`` / an empty record when the probe
                    failed. Absence only degrades to the segment heuristics.
    """
    tkr = ticker.strip().upper()
    fund_type = _text_type(tkr, segment, enrichment)

    if tkr in KNOWN_INFRAS and tkr not in NEVER_INFRA:
        return FundType.INFRA
    if tkr in KNOWN_FIAGROS and fund_type != FundType.INFRA:
        return FundType.AGRO
    return fund_type

"""
Classification and scoring engine: pure functions, no I/O.

Modules
-------
stock_rules     : score_stock() — valuation anchors, strategy tags, 0–10 score,
                  STAR / OPPORTUNITY category.
fund_classifier : classify_fund() — single-valued fund type from enrichment,
                  segment text and static ticker lists.
fund_rules      : score_fund() + magic_number() — five-group additive score,
                  strategy tags, STAR / OPPORTUNITY / STANDARD category.
ranker          : rank_stocks() / rank_funds() — post-scoring filters and
                  the deterministic sort order.
"""

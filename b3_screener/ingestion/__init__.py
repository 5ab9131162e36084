"""Market-data adapters: raw record sources, metadata enrichment and macro rates."""

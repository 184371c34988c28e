"""Core (UI-agnostic) campaign dashboard logic.

This package contains:
- dataset ingestion (semicolon text -> Dataset)
- dashboard state transitions
- option normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

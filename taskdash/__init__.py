"""Core (UI-agnostic) task dashboard logic.

This package contains:
- task loading + normalization (JSON -> Task records)
- derived per-task figures, aggregate metrics and ranking
- the in-memory task store (add/update/delete/undo)
- filter normalization and the overview payload
- chart helpers (Altair -> Vega-Lite spec dict)
"""

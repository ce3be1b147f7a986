"""
Gateway — Request Pipeline Package
===================================

What: HTTP request-processing pipeline for a multi-resource API gateway.

    ┌─────────────────────────────────────┐
    │   main.py: app factory + pipeline   │  ← stage order lives here
    ├─────────────────────────────────────┤
    │   middleware/: one module per stage │  ← raise, never render
    ├─────────────────────────────────────┤
    │   errors.py: classify + render      │  ← the only error formatter
    ├─────────────────────────────────────┤
    │   sanitize.py, ratelimit.py         │  ← pure, framework-free logic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

"""
RR Nagar Backend — Marketplace Package
========================================

What: Multi-tenant marketplace API: suppliers list products (directly or by
      cloning admin templates), customers browse them, admins curate.

Layers:
    ┌─────────────────────────────────────┐
    │   Routes (FastAPI routers)          │  ← request parsing, status codes
    ├─────────────────────────────────────┤
    │   Services + identity predicates    │  ← business rules, authorization
    ├─────────────────────────────────────┤
    │   Models (SQLAlchemy) / Schemas     │  ← tables and camelCase API shapes
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

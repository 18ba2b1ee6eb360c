"""
PinJournal Backend — Application Package
==========================================

Two small HTTP services sharing one codebase:

    ┌─────────────────────────────────────┐
    │  Routes (journal.py / emails.py)    │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services + validation              │  ← workflows, rules, audit trail
    ├─────────────────────────────────────┤
    │  Models & Schemas                   │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database                           │  ← async engine owned by the app
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

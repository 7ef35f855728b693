"""
Payload Pulverizer — Application Package Initializer
======================================================

Architecture Note:
    A thin layered service:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (counters, validation)   │  ← testable without HTTP
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLite engine
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

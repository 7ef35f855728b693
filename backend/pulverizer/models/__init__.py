"""
Payload Pulverizer — ORM Models
=================================

What:  SQLAlchemy models for everything the service persists.

Model Inventory:
    - EndpointCounter: one row per endpoint with its usage totals
"""

from pulverizer.models.endpoint_counter import EndpointCounter

__all__ = ["EndpointCounter"]

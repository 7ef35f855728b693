"""
Payload Pulverizer — API Schemas
==================================

What:  Pydantic models defining the JSON bodies the API returns.
"""

# Services package init
"""
Payload Pulverizer — Services Layer
=====================================

What:  Logic sitting between routes (HTTP) and the database (persistence).
Why:   Routes handle HTTP; services can be tested without it.

Service Inventory:
    - CounterStore: persistent per-endpoint usage counters (SQLite)
    - content_validator: classify()/inspect() payload format sniffing
    - narratives: themed messages, fire art and shredder logs
"""

# Routes package init
"""
Payload Pulverizer — API Routes Package
=========================================

Route Inventory:
    - destroy.py:   POST /pulverize, /blackhole, /shred, /burn
    - validate.py:  POST /validate-before-destroy
    - stats.py:     GET  /stats, /stats/detailed
    - health.py:    GET  /ping

Design Principle:
    Routes stay thin: read the body, call a service, shape the response.
    The counter store arrives through Depends(get_counter_store).
"""

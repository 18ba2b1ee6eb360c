# Routes package init
"""
PinJournal Backend — API Routes Package
=========================================

Route Inventory:
    - journal.py:  /api/journal/...   (journal service)
    - emails.py:   /api/emails        (email capture service)
    - health.py:   GET /health        (both services)

Routes stay thin: read the request, call a service, pick the status code.
"""

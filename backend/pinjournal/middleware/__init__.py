# Middleware package init
"""
PinJournal Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Email service:    [Request ID] → [Logging] → [Rate Limit] → route
    Journal service:  [CORS] → [Request ID] → [Logging] → [Security Headers] → route

    The rate limiter sits inside Request ID so a 429 body still carries the
    ID. CORS wraps the journal so preflights are answered before any logging.
"""

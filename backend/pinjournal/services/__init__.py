# Services package init
"""
PinJournal Backend — Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the database.

Service Inventory:
    - PublicIpResolver: request headers → public IPv4 (HTTP fallback lookup)
    - GeoLocator:       IPv4 → country name (offline GeoLite2 database)
    - EmailService:     email capture workflow
    - EntryService:     journal entry CRUD with soft deletion
    - ActivityService:  append-only audit trail of journal actions
    - ReportService:    weekly CSV export
"""

# Services package init
"""
Cellar Tracker Backend - Services Layer
========================================

What:  Business logic between the routes (HTTP) and the database.
How:   Services are stateless singletons that receive the request's session
       on each call, flush their changes and leave the commit to the session
       dependency.

Service Inventory:
    - BinService:       bin CRUD, refuses to delete non-empty bins
    - WineService:      wine CRUD coordinated with the optional label image
    - ReviewService:    append-only tasting reviews
    - AnalyticsService: read-only dashboard aggregates
    - ImageService:     upload validation, thumbnailing, atomic storage
    - metrics:          pure helpers shared by schemas and analytics
"""

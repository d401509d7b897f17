# Routes package init
"""
Cellar Tracker Backend - API Routes Package
============================================

Route Inventory:
    - bins.py:       GET/POST /api/bins, GET/PUT/DELETE /api/bins/{id}
    - wines.py:      GET/POST /api/wines, GET/PUT/DELETE /api/wines/{id}
                     (POST/PUT are multipart: `wine` JSON + optional `image`)
    - reviews.py:    POST /api/reviews
    - analytics.py:  GET  /api/analytics
    - uploads.py:    POST /api/upload, GET /uploads/{filename}
    - health.py:     GET  /health, GET /api/health

Routes stay thin: they parse the request, call one service and shape the
response. Business rules and error decisions live in the services.
"""

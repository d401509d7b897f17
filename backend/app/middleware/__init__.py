# Middleware package init
"""
Cellar Tracker Backend - Middleware Package
============================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route

    1. Request ID first, so every response, including a 429, carries
       X-Request-ID and every log line can be correlated
    2. Rate Limit rejects abusive clients before any real work
    3. Logging records method, path, status and duration
    4. GZip / CORS are FastAPI's stock middleware

Responses travel back through the same chain in reverse.
"""

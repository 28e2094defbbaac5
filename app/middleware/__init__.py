# Middleware package init
"""
Lavandaria API — Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Correlation ID] → [Access Log] → [Login Rate Limit] → [Session] → Router

    0. CORS: Starlette's CORSMiddleware, added last so even rate-limit and
       server-error responses carry Access-Control-Allow-Origin
    1. Correlation ID: binds the request id, renders unhandled errors as 500
       envelopes, sets X-Correlation-Id on every response
    2. Access Log: one line per request, tagged with the correlation id
    3. Login Rate Limit: counts POSTs to the login routes per client address
    4. Session: decodes the signed session cookie the role gate reads

Role checks are route dependencies (app.auth.guards), not middleware, so
they run after the rate limiter and before the handler body.
"""

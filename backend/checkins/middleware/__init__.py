# Middleware package init
"""
Checkins Backend — Middleware Package
=======================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: generate the correlation ID first
    2. Logging: access log line tagged with that ID
    3. CORS: preflight handling for the browser client
"""

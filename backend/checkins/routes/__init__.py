# Routes package init
"""
Checkins Backend — API Routes Package
=======================================

Route Inventory:
    - checkins.py:  GET  /v1/checkins   (most recent check-in)
                    POST /v1/checkins   (store a check-in)
    - health.py:    GET  /health        (database and pool status)

Routes handle HTTP details only; validation and persistence live in services.
"""

# Services package init
"""
Checkins Backend — Services Layer
===================================

Service Inventory:
    - PayloadValidator: 16 KiB body ceiling and strict JSON parsing
    - CheckinRepository: insert-one and list-recent through the connection pool
"""

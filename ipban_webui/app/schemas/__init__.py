"""
Pydantic schema definitions for API payloads.

Schemas are separated from the storage layout so the JSON
representation can stay stable if the IPBan database changes.
"""

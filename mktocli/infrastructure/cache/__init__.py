"""Caching Service Implementation.

Provides the in-memory description cache used by the custom object and lead
clients to avoid repeated describe calls.
Bounded Context: Cache Management
"""

"""API Resilience Implementations.

Contains the inter-call throttle used by every resource client.
Bounded Context: API Resilience
"""

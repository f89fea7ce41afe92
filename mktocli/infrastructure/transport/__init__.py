"""REST Transport Implementations.

Contains the httpx-backed transport implementing the `Transport` interface
from the domain layer, including access-token handling.
Bounded Context: API Access
"""

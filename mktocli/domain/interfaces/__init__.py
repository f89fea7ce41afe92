"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. Clients and steps depend on these interfaces, not on
concrete implementations.
"""

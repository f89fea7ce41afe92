"""Domain Layer: value objects, result models, events and interfaces (ports).

Nothing in here performs I/O.
"""

"""Console Presentation.

Rich-based implementation of the `UserInterface` interface.
Bounded Context: Presentation
"""

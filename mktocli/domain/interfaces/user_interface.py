"""Interface for presenting results to the user.

Defines the contract for displaying step results, errors, warnings and
information, allowing different UI implementations (console, quiet, tests).
"""

import abc
from typing import Any, Dict, List, Optional

from ..models.steps import StepResult


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_step_result(self, result: StepResult, **kwargs: Any) -> None:
        """Displays the outcome of a step along with its records.

        Args:
            result: The step result to render.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_records(self, records: List[Dict[str, Any]], title: Optional[str] = None, **kwargs: Any) -> None:
        """Displays a list of API records as a table."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

"""Base class for component test suites."""

from abc import ABC, abstractmethod
from typing import Any

from crucible.models.constants import Component


class ComponentSuite(ABC):
    """Abstract base class for a per-component test suite."""

    component: Component

    @abstractmethod
    def run(self) -> Any:
        """
        Run the suite to completion.

        Returns:
            Outcome object exposing ``success`` and ``summary()``
        """
        pass

    def get_name(self) -> str:
        """
        Get the suite name for display.

        Returns:
            Human-readable suite name
        """
        return f"{self.component.value.upper()} suite"

"""
Abstract interface for form definition loaders
"""

from abc import ABC, abstractmethod
from typing import Dict

from formlift.core.models import FormDefinition


class FormLoaderBase(ABC):
    """Abstract interface for loaders of legacy form definitions"""

    @abstractmethod
    def load_forms(self) -> Dict[str, FormDefinition]:
        """
        Load form definitions

        Returns:
            Dict with the form identifier as key and its definition as value

        Raises:
            FormLoadError: If the forms cannot be loaded
        """
        pass

    @abstractmethod
    def source_description(self) -> str:
        """
        Human-readable description of where forms come from

        Returns:
            Description used in logs and dry-run reports
        """
        pass

"""
Loader of form definitions from exported JSON files
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Union

from pydantic import ValidationError as SchemaValidationError

from formlift.core.models import FormDefinition, FormLoadError
from formlift.io.base import FormLoaderBase
from formlift.io.schemas import FormSchema

logger = logging.getLogger(__name__)


class JsonFormLoader(FormLoaderBase):
    """Loads one form per *.json file found (recursively) under a directory"""

    def __init__(self, directory_path: Union[str, Path], extension: str = "json"):
        """
        Args:
            directory_path: Directory holding the form definition files
            extension: File extension to look for (default: "json")
        """
        self.directory_path = Path(directory_path)
        self.extension = extension

    def source_description(self) -> str:
        return f"*.{self.extension} files under {self.directory_path}"

    def find_files(self) -> List[Path]:
        """Form definition files, sorted by path"""
        return sorted(self.directory_path.rglob(f"*.{self.extension}"))

    def load_forms(self) -> Dict[str, FormDefinition]:
        """
        Load every form definition file

        Returns:
            Dict with the file stem as key and the parsed form as value

        Raises:
            FormLoadError: If the directory is missing or empty, or a file is invalid
        """
        if not self.directory_path.exists():
            raise FormLoadError(f"Directory not found: {self.directory_path}")

        if not self.directory_path.is_dir():
            raise FormLoadError(f"Path is not a directory: {self.directory_path}")

        forms: Dict[str, FormDefinition] = {}

        for file_path in self.find_files():
            form = self.load_file(file_path)
            if form is None:
                continue

            form_id = file_path.stem
            if form_id in forms:
                logger.warning(f"Duplicate form id {form_id!r}, keeping the last one: {file_path}")
            forms[form_id] = form
            logger.info(f"Loaded: {file_path.name}")

        if not forms:
            raise FormLoadError(f"No .{self.extension} files found in {self.directory_path}")

        logger.info(f"Total of {len(forms)} forms loaded from {self.directory_path}")
        return forms

    def load_file(self, file_path: Path):
        """
        Parse a single form definition file

        Returns:
            FormDefinition, or None when the file is empty

        Raises:
            FormLoadError: If the file cannot be read, decoded or validated
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read().strip()
        except UnicodeDecodeError as e:
            logger.error(f"Encoding error reading {file_path}: {e}")
            raise FormLoadError(f"Failed to decode file {file_path}: {e}")
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            raise FormLoadError(f"Failed to read file {file_path}: {e}")

        if not content:
            logger.warning(f"Empty file skipped: {file_path.name}")
            return None

        try:
            return FormSchema.model_validate(json.loads(content)).to_model()
        except json.JSONDecodeError as e:
            raise FormLoadError(f"Invalid JSON in {file_path}: {e}")
        except SchemaValidationError as e:
            raise FormLoadError(f"Invalid form definition in {file_path}: {e}")


def load_expressions(path: Union[str, Path]) -> List[str]:
    """
    Read an expression file: one expression per line

    Blank lines and lines starting with '#' are ignored.

    Args:
        path: Expression file

    Returns:
        Expressions in file order

    Raises:
        FormLoadError: If the file cannot be read
    """
    file_path = Path(path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise FormLoadError(f"Failed to read expression file {file_path}: {e}")

    expressions = [line.strip() for line in lines]
    expressions = [line for line in expressions if line and not line.startswith('#')]
    logger.info(f"Loaded {len(expressions)} expressions from {file_path.name}")
    return expressions

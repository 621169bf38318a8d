"""
Dry-run mode for validating a mining run without executing it.

Checks the form directory, mining parameters and output directory and
reports what a real run would do, without loading or mining any form.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from pathlib import Path
import logging

from formlift.config.config import Config, get_config

logger = logging.getLogger(__name__)


@dataclass
class DryRunResult:
    """Outcome of a dry-run validation"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)
    estimated_operations: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_info(self, message: str) -> None:
        self.info.append(message)

    def merge(self, other: 'DryRunResult') -> None:
        """Fold another result into this one"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)
        self.estimated_operations.update(other.estimated_operations)
        self.is_valid = len(self.errors) == 0


class DryRunValidator:
    """Validator for dry-run mode"""

    def __init__(self, config: Optional[Config] = None):
        """
        Args:
            config: FormLift configuration (optional)
        """
        self.config = config if config is not None else get_config()

    def validate_forms_directory(self, directory: Optional[str], extension: str = "json") -> DryRunResult:
        """
        Check that a form directory exists and holds definition files

        Args:
            directory: Form directory (defaults to the configured one)
            extension: Definition file extension

        Returns:
            DryRunResult
        """
        result = DryRunResult(is_valid=True)
        forms_path = Path(directory or self.config.forms_dir)

        if not forms_path.exists():
            result.add_error(f"Directory not found: {forms_path}")
            return result

        if not forms_path.is_dir():
            result.add_error(f"Path is not a directory: {forms_path}")
            return result

        files = list(forms_path.rglob(f"*.{extension}"))
        if not files:
            result.add_error(f"No .{extension} files found in {forms_path}")
            return result

        empty = [f for f in files if f.stat().st_size == 0]
        if empty:
            result.add_warning(f"{len(empty)} empty file(s) will be skipped")

        result.add_info(f"Form directory: {forms_path}")
        result.add_info(f"{len(files)} form definition file(s) found")
        result.estimated_operations["form_files"] = len(files) - len(empty)
        return result

    def validate_mining_params(self,
                               min_occurrences: int,
                               min_group_size: int,
                               max_group_size: int) -> DryRunResult:
        """
        Check mining parameters

        Returns:
            DryRunResult
        """
        result = DryRunResult(is_valid=True)

        if min_occurrences < 1:
            result.add_error(f"min_occurrences must be at least 1, got: {min_occurrences}")
        else:
            result.add_info(f"Min occurrences: {min_occurrences}")

        if min_group_size < 1:
            result.add_error(f"min_group_size must be at least 1, got: {min_group_size}")
        elif max_group_size < min_group_size:
            result.add_error(f"max_group_size ({max_group_size}) is smaller than "
                             f"min_group_size ({min_group_size})")
        else:
            result.add_info(f"Group size: {min_group_size} to {max_group_size} controls")
            result.estimated_operations["window_sizes"] = max_group_size - min_group_size + 1

        if min_occurrences == 1:
            result.add_warning("min_occurrences=1 reports every control sequence of every form")

        return result

    def validate_output_dir(self, output_dir: Optional[str]) -> DryRunResult:
        """
        Check that the output directory can be created or written

        Returns:
            DryRunResult
        """
        result = DryRunResult(is_valid=True)

        if not output_dir:
            result.add_info(f"Using default output directory: {self.config.output_dir}")
            return result

        output_path = Path(output_dir)
        if not output_path.exists():
            result.add_info(f"Output directory will be created: {output_path}")
        elif not output_path.is_dir():
            result.add_error(f"Output path is not a directory: {output_path}")
        else:
            result.add_info(f"Output directory: {output_path}")
            test_file = output_path / '.formlift_test'
            try:
                test_file.touch()
                test_file.unlink()
                result.add_info("Output directory is writable")
            except PermissionError:
                result.add_error(f"No write permission in: {output_path}")

        return result

    def validate_mining(self,
                        directory: Optional[str],
                        min_occurrences: int,
                        min_group_size: int,
                        max_group_size: int,
                        output_dir: Optional[str] = None) -> DryRunResult:
        """
        Full validation of a mining run (forms + parameters + output)

        Returns:
            Consolidated DryRunResult
        """
        result = DryRunResult(is_valid=True)
        result.merge(self.validate_forms_directory(directory))
        result.merge(self.validate_mining_params(min_occurrences, min_group_size, max_group_size))
        result.merge(self.validate_output_dir(output_dir))

        logger.debug(f"Dry run: {len(result.errors)} errors, {len(result.warnings)} warnings")
        return result

"""
CLI for FormLift using Click
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

import click

from form_analyzer import FormCorpusAnalyzer, OutputFiles
from formlift.analysis.expression_analyzer import ExpressionAnalyzer
from formlift.analysis.models import EnhancedExpression
from formlift.config.config import get_config
from formlift.core.dry_mode import DryRunValidator, DryRunResult
from formlift.core.models import FormLiftError
from formlift.export.json_exporter import expression_to_dict, export_json, summary_to_dict
from formlift.io.json_loader import JsonFormLoader, load_expressions


class TeeFileHandler(logging.Handler):
    """Handler writing to a file and to stdout at the same time"""

    def __init__(self, file_path: Path):
        super().__init__()
        self.file_path = file_path
        self.file = None
        self.stdout = sys.stdout
        try:
            self.file = open(self.file_path, 'a', encoding='utf-8')
        except OSError as e:
            # Without a file, keep logging to stdout only
            logging.getLogger(__name__).warning(f"Could not open log file: {e}")
            self.file = None

    def close(self):
        if self.file:
            self.file.close()
            self.file = None
        super().close()

    def emit(self, record):
        try:
            msg = self.format(record) + '\n'
            if self.file:
                self.file.write(msg)
                self.file.flush()
            self.stdout.write(msg)
            self.stdout.flush()
        except Exception:
            self.handleError(record)


def generate_log_filename(command_name: str, log_dir: Path) -> Path:
    """
    Build a timestamped log file name for a command

    Args:
        command_name: Name of the command being run
        log_dir: Directory for the log

    Returns:
        Full path of the log file
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_command = command_name.replace('-', '_')
    return log_dir / f"{safe_command}_{timestamp}.log"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    auto_log: bool = False,
    command_name: Optional[str] = None,
    log_dir: Optional[str] = None
) -> Optional[Path]:
    """
    Configure logging, optionally teeing into a log file

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file (optional, takes precedence over auto-logging)
        auto_log: Create a timestamped log file automatically
        command_name: Command name (for auto-logging)
        log_dir: Directory for automatic logs

    Returns:
        Path of the log file, if one is used
    """
    handlers = []
    log_file_path = None

    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
    elif auto_log and command_name and log_dir:
        try:
            log_dir_path = Path(log_dir)
            log_dir_path.mkdir(parents=True, exist_ok=True)
            log_file_path = generate_log_filename(command_name, log_dir_path)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Could not create automatic log file: {e}")
            log_file_path = None

    if log_file_path:
        handlers.append(TeeFileHandler(log_file_path))
    else:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    return log_file_path


def echo_dry_run_result(result: DryRunResult) -> None:
    """Print a dry-run report and exit with its status"""
    if result.errors:
        click.echo("\n❌ Errors:")
        for error in result.errors:
            click.echo(f"   - {error}", err=True)

    if result.warnings:
        click.echo("\n⚠️  Warnings:")
        for warning in result.warnings:
            click.echo(f"   - {warning}")

    if result.info:
        click.echo("\n✅ Info:")
        for info in result.info:
            click.echo(f"   - {info}")

    if result.estimated_operations:
        click.echo("\n📊 Estimates:")
        for key, value in result.estimated_operations.items():
            click.echo(f"   - {key}: {value}")

    click.echo("\n" + "=" * 60)
    if result.is_valid:
        click.echo("✅ Validation succeeded!")
        click.echo("   Run without --dry-run to mine the forms.")
        sys.exit(0)
    else:
        click.echo("❌ Validation failed!")
        click.echo("   Fix the errors before running.")
        sys.exit(1)


def echo_expression(expression: EnhancedExpression, indent: int = 0) -> None:
    """Print an analyzed expression and its sub-expressions as a tree"""
    pad = "  " * indent
    click.echo(f"{pad}Expression: {expression.original_expression}")
    click.echo(f"{pad}  Type: {expression.type.value}")
    click.echo(f"{pad}  Return type: {expression.return_type.value}")
    click.echo(f"{pad}  Complexity: {expression.complexity_score}"
               f"{' (complex)' if expression.is_complex else ''}")
    if expression.referenced_fields:
        click.echo(f"{pad}  Fields: {', '.join(expression.referenced_fields)}")
    if expression.used_functions:
        click.echo(f"{pad}  Functions: {', '.join(expression.used_functions)}")
    if expression.constants:
        click.echo(f"{pad}  Constants: {', '.join(expression.constants)}")
    click.echo(f"{pad}  Readable: {expression.human_readable}")
    for hint in expression.translation_hints:
        click.echo(f"{pad}  Hint: {hint.text}")
    for sub in expression.sub_expressions:
        echo_expression(sub, indent + 1)


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', is_flag=True, help='Verbose mode (DEBUG)')
@click.option('--log-file', type=click.Path(), help='Log file (overrides auto-logging)')
@click.option('--no-auto-log', is_flag=True, default=False, help='Disable automatic log files')
@click.pass_context
def cli(ctx, verbose, log_file, no_auto_log):
    """FormLift - Analysis of legacy forms for migration"""
    ctx.ensure_object(dict)
    config = get_config()
    ctx.obj['config'] = config

    command_name = ctx.invoked_subcommand or 'cli'
    use_auto_log = not log_file and not no_auto_log and config.auto_log_enabled

    log_level = "DEBUG" if verbose else config.log_level
    log_file_path = setup_logging(
        log_level=log_level,
        log_file=log_file or config.log_file,
        auto_log=use_auto_log,
        command_name=command_name,
        log_dir=config.log_dir
    )
    ctx.obj['log_file_path'] = log_file_path

    if log_file_path:
        logging.getLogger(__name__).info(f"Execution log saved to: {log_file_path}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('expression')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print the analysis as JSON')
@click.option('--modern-operators', is_flag=True, default=False,
              help='Paraphrase >= and <= correctly instead of the legacy wording')
@click.pass_context
def analyze_expression(ctx, expression, as_json, modern_operators):
    """Analyze a single rule expression"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        analyzer = ExpressionAnalyzer(
            complexity_threshold=config.complexity_threshold,
            max_depth=config.max_decomposition_depth,
            legacy_operator_order=config.legacy_operator_order and not modern_operators,
        )
        analyzed = analyzer.analyze_expression(expression)

        if analyzed is None:
            click.echo("❌ Error: empty expression", err=True)
            sys.exit(1)

        if as_json:
            click.echo(json.dumps(expression_to_dict(analyzed), indent=2, ensure_ascii=False))
        else:
            echo_expression(analyzed)

    except FormLiftError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('expression')
def simplify(expression):
    """Rewrite an expression in plainer syntax"""
    click.echo(ExpressionAnalyzer().simplify_expression(expression))


@cli.command()
@click.option('--input', '-i', 'input_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='File with one expression per line')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory (default: ./output)')
@click.pass_context
def analyze_rules(ctx, input_file, output_dir):
    """Summarize the expressions of an expression file"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        analyzer = ExpressionAnalyzer(
            complexity_threshold=config.complexity_threshold,
            max_depth=config.max_decomposition_depth,
            legacy_operator_order=config.legacy_operator_order,
        )
        summary = analyzer.summarize(load_expressions(input_file))

        output_path = Path(output_dir) if output_dir else Path(config.output_dir)
        json_file = export_json(summary_to_dict(summary), output_path / OutputFiles.RULE_ANALYSIS)

        click.echo("\n" + "=" * 60)
        click.echo("STATISTICS")
        click.echo("=" * 60)
        click.echo(f"Total expressions: {summary.total_expressions}")
        click.echo(f"Simple: {summary.simple_expressions}")
        click.echo(f"Complex: {summary.complex_expressions}")
        if summary.custom_functions:
            click.echo(f"Custom functions: {', '.join(summary.custom_functions)}")
        for bucket, count in summary.complexity_distribution.items():
            click.echo(f"  {bucket}: {count}")
        click.echo(f"\n✓ JSON exported: {json_file}")

    except FormLiftError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--directory', '-d', required=True, type=click.Path(file_okay=False),
              help='Directory with form definition .json files')
@click.option('--min-occurrences', type=int, default=None, help='Minimum number of forms per group (default: 2)')
@click.option('--min-group-size', type=int, default=None, help='Smallest group size (default: 2)')
@click.option('--max-group-size', type=int, default=None, help='Largest group size (default: 10)')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory (default: ./output)')
@click.option('--dry-run', is_flag=True, default=False, help='Dry-run mode: validate without mining')
@click.pass_context
def mine_groups(ctx, directory, min_occurrences, min_group_size, max_group_size, output_dir, dry_run):
    """Find reusable control groups across a form corpus"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    min_occurrences = config.min_occurrences if min_occurrences is None else min_occurrences
    min_group_size = config.min_group_size if min_group_size is None else min_group_size
    max_group_size = config.max_group_size if max_group_size is None else max_group_size

    try:
        if dry_run:
            click.echo("\n" + "=" * 60)
            click.echo("🔍 DRY-RUN MODE - Validation")
            click.echo("=" * 60)

            validator = DryRunValidator(config)
            echo_dry_run_result(validator.validate_mining(
                directory, min_occurrences, min_group_size, max_group_size, output_dir))

        analyzer = FormCorpusAnalyzer(config)
        analyzer.load(JsonFormLoader(directory))
        result = analyzer.mine_groups(min_occurrences, min_group_size, max_group_size)

        output_path = Path(output_dir) if output_dir else Path(config.output_dir)
        written = analyzer.export_results(output_path)

        click.echo("\n" + "=" * 60)
        click.echo("REUSABLE GROUPS")
        click.echo("=" * 60)
        click.echo(f"Forms analyzed: {result.total_forms_analyzed}")
        click.echo(f"Controls analyzed: {result.total_controls_analyzed}")
        click.echo(f"Controls in repeating sections: {result.controls_in_repeating_sections}")
        click.echo(f"Groups found: {len(result.identified_groups)}")
        for group in result.identified_groups:
            click.echo(f"  {group.suggested_name}: {group.size} controls in {group.occurrence_count} forms")
        for pattern in result.common_patterns:
            click.echo(f"  * {pattern}")
        for path in written:
            click.echo(f"\n✓ JSON exported: {path}")

    except FormLiftError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--directory', '-d', required=True, type=click.Path(exists=True, file_okay=False),
              help='Directory with form definition .json files')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory (default: ./output)')
@click.pass_context
def analyze_forms(ctx, directory, output_dir):
    """Run rule analysis and group mining over a form corpus"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        analyzer = FormCorpusAnalyzer(config)
        analyzer.load(JsonFormLoader(directory))
        groups = analyzer.mine_groups()
        summary = analyzer.analyze_rules()

        output_path = Path(output_dir) if output_dir else Path(config.output_dir)
        written = analyzer.export_results(output_path)

        click.echo("\n" + "=" * 60)
        click.echo("STATISTICS")
        click.echo("=" * 60)
        click.echo(f"Forms analyzed: {groups.total_forms_analyzed}")
        click.echo(f"Reusable groups: {len(groups.identified_groups)}")
        click.echo(f"Rule expressions: {summary.total_expressions} "
                   f"({summary.complex_expressions} complex)")
        for path in written:
            click.echo(f"✓ JSON exported: {path}")

        click.echo("\n✅ Analysis complete!")

    except FormLiftError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()

"""
ComplianceKit CLI

Commands for checking policy documents and validating records:
- lint: Parse policy files and summarize them
- validate: Validate a record against every policy and report compliance
"""

import json
import logging
from pathlib import Path

import click
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from compliancekit import __version__
from compliancekit.config import EngineConfig
from compliancekit.exceptions import ComplianceKitError, InvalidInputError
from compliancekit.governance import (
    ComplianceReport,
    CompliancePolicy,
    ComplianceService,
    PolicyParser,
    policy_to_dict,
)

console = Console()
logger = logging.getLogger(__name__)

_SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}


def _load_policies(parser: PolicyParser, paths: tuple[str, ...]) -> list[CompliancePolicy]:
    policies: list[CompliancePolicy] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            policies.extend(parser.load_policies(path))
        else:
            policies.extend(parser.load_file(path))
    return policies


def _load_record(path: Path) -> object:
    content = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(content)
    return yaml.safe_load(content)


def _render_report(report: ComplianceReport, passing: bool) -> None:
    verdict = "[green]✓ compliant[/green]" if passing else "[red]✗ non-compliant[/red]"
    console.print(f"\n[bold blue]{report.policy_name}[/bold blue] ({report.policy_id})  {verdict}")

    table = Table(box=box.ROUNDED)
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Result")
    table.add_column("Message")

    for result in report.results:
        style = _SEVERITY_STYLES.get(result.severity.value, "white")
        outcome = "[green]pass[/green]" if result.passed else "[red]fail[/red]"
        table.add_row(
            result.rule_id,
            f"[{style}]{result.severity.value}[/{style}]",
            outcome,
            result.message,
        )

    console.print(table)
    s = report.summary
    console.print(
        f"  {s.passed}/{s.total} passed, failures: "
        f"critical={s.critical_failures} high={s.high_failures} "
        f"medium={s.medium_failures} low={s.low_failures}"
    )


@click.group()
@click.version_option(__version__, prog_name="compliancekit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def app(verbose: bool) -> None:
    """ComplianceKit - evaluate compliance policies against records."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--json", "json_flag", is_flag=True, help="Output the normalized policies as JSON.")
def lint(paths: tuple[str, ...], json_flag: bool) -> None:
    """Parse policy files and report what they contain.

    PATHS are policy files (.json, .yaml, .yml) or directories of them.
    """
    try:
        policies = _load_policies(PolicyParser(), paths)
    except InvalidInputError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    if json_flag:
        click.echo(json.dumps([policy_to_dict(p) for p in policies], indent=2))
        return

    table = Table(box=box.ROUNDED)
    table.add_column("Policy ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Rules", justify="right")
    table.add_column("Disabled", justify="right")

    for policy in policies:
        disabled = sum(1 for r in policy.rules if not r.enabled)
        table.add_row(policy.id, policy.name, policy.version, str(len(policy.rules)), str(disabled))

    console.print(table)
    console.print(f"\n  Total policies: {len(policies)}\n")


@app.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--record", "record_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON or YAML file holding the record to validate.",
)
@click.option("--user", "user_id", default=None, help="User recorded in the audit trail.")
@click.option(
    "--format", "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@click.option(
    "--audit-out",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the audit trail as JSON to this file.",
)
def validate(
    paths: tuple[str, ...],
    record_path: str,
    user_id: str | None,
    fmt: str,
    audit_out: str | None,
) -> None:
    """Validate a record against every policy in PATHS.

    Exits with status 1 when any policy has critical or high failures.
    """
    service = ComplianceService(config=EngineConfig.from_env())
    parser = PolicyParser()

    try:
        policies = _load_policies(parser, paths)
        for policy in policies:
            service.register_policy(policy_to_dict(policy), user_id)
        record = _load_record(Path(record_path))
    except (
        ComplianceKitError, json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError, OSError,
    ) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(2)

    reports = service.validate_all(record, user_id)
    compliant = all(service.validator.is_policy_passing(r) for r in reports)

    if fmt == "json":
        click.echo(json.dumps(
            {"compliant": compliant, "reports": [r.to_dict() for r in reports]},
            indent=2,
        ))
    else:
        for report in reports:
            _render_report(report, service.validator.is_policy_passing(report))
        verdict = "[bold green]COMPLIANT[/bold green]" if compliant else "[bold red]NOT COMPLIANT[/bold red]"
        console.print(f"\n{verdict}\n")

    if audit_out:
        Path(audit_out).write_text(service.get_audit_log().export(), encoding="utf-8")
        logger.debug("Wrote audit trail to %s", audit_out)

    if not compliant:
        raise SystemExit(1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

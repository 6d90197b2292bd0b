"""CLI for chartguard: families / facts / score / compose / risks / sign commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from chartguard.assertions import AssertionGenerator, get_next_missing_slot, get_note_completeness
from chartguard.composer import apply_template, blank_sections, compose, create_template_library
from chartguard.core.config import AppSettings
from chartguard.core.startup_checks import validate_settings
from chartguard.exceptions import ChartGuardError
from chartguard.families import create_classifier
from chartguard.logging_config import setup_logging, visit_log_context
from chartguard.models import AssertionBundle
from chartguard.payload import VisitInputs, load_payload, to_jsonable
from chartguard.risks import (
    active_risks,
    build_risk_bullets,
    is_risk_text_safe,
    risks_for_code,
    sort_by_severity,
)
from chartguard.scoring import CompletenessScorer, group_by_family
from chartguard.signoff import create_sign_off_gate

app = typer.Typer(name="chartguard", help="Dental visit documentation completeness checks")
console = Console()


def _bootstrap(verbose: bool) -> AppSettings:
    """Load settings, configure logging, and validate reference files."""
    settings = AppSettings()
    if verbose:
        settings.observability.log_level = "DEBUG"
    setup_logging(settings.observability)
    try:
        validate_settings(settings)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc
    return settings


def _load(payload_file: Path) -> VisitInputs:
    try:
        return load_payload(payload_file)
    except ChartGuardError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _bundle_for(settings: AppSettings, inputs: VisitInputs) -> AssertionBundle:
    generator = AssertionGenerator(create_classifier(settings))
    return generator.regenerate(inputs.bundle, inputs.visit, inputs.procedures, inputs.risks)


@app.command()
def families(
    code: Optional[str] = typer.Option(None, "--code", help="Only show families this code belongs to"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List code families and their requirements."""
    settings = _bootstrap(verbose)
    classifier = create_classifier(settings)

    shown = classifier.families_for(code) if code else list(classifier.table.families)
    if code and not shown:
        console.print(f"[yellow]{code} is not in any family; no extra requirements apply.[/yellow]")
        return

    table = Table(title=f"Code families (table v{classifier.table.version})")
    table.add_column("Family", style="cyan")
    table.add_column("Pattern")
    table.add_column("Label", style="green")
    table.add_column("Requirements", max_width=70)

    for family in shown:
        requirements = "\n".join(
            f"{r.kind.value}{'' if r.is_hard else ' (soft)'}" for r in family.requirements
        )
        table.add_row(family.id, family.code_pattern.pattern, family.label, requirements or "-")

    console.print(table)


@app.command()
def facts(
    payload_file: Path = typer.Argument(..., help="Visit payload JSON file"),
    output: Optional[Path] = typer.Option(None, help="Write the merged bundle JSON here"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Generate (or regenerate) the assertion bundle for a visit."""
    settings = _bootstrap(verbose)
    inputs = _load(payload_file)
    with visit_log_context(inputs.visit.id):
        bundle = _bundle_for(settings, inputs)

    table = Table(title=f"Assertions for visit {bundle.visit_id}")
    table.add_column("", width=3)
    table.add_column("Section", style="cyan")
    table.add_column("Slot")
    table.add_column("Label", style="green", max_width=60)
    table.add_column("Source")

    for a in bundle.assertions:
        table.add_row(
            "[x]" if a.checked else "[ ]",
            a.section.value,
            a.slot.value,
            a.label,
            a.source.value,
        )
    console.print(table)

    summary = get_note_completeness(bundle)
    console.print(
        f"\nSlots complete: {summary.completed}/{summary.required} ({summary.percent}%)"
    )
    gap = get_next_missing_slot(bundle)
    if gap is not None:
        console.print(f"[yellow]Next missing: {gap.section.value} / {gap.slot.value}[/yellow]")

    if output:
        output.write_text(json.dumps(to_jsonable(bundle), indent=2), encoding="utf-8")
        console.print(f"[green]Bundle saved to {output}[/green]")


@app.command()
def score(
    payload_file: Path = typer.Argument(..., help="Visit payload JSON file"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Score documentation completeness for a visit."""
    settings = _bootstrap(verbose)
    inputs = _load(payload_file)
    classifier = create_classifier(settings)
    scorer = CompletenessScorer(classifier.table)
    with visit_log_context(inputs.visit.id):
        result = scorer.score(inputs.visit, inputs.procedures, inputs.risks, inputs.sections)

    if as_json:
        typer.echo(json.dumps(to_jsonable(result), indent=2))
        return

    colour = "green" if result.score >= settings.signoff.threshold else "red"
    console.print(f"[bold]Score:[/bold] [{colour}]{result.score}[/{colour}]")
    if result.is_complete and not result.warnings:
        console.print("[green]All documentation requirements met.[/green]")
        return

    table = Table(title="Documentation gaps")
    table.add_column("Family", style="cyan")
    table.add_column("Missing", style="red", max_width=60)
    table.add_column("Warnings", style="yellow", max_width=60)
    for group in group_by_family(result, classifier):
        table.add_row(group.label, "\n".join(group.missing), "\n".join(group.warnings))
    console.print(table)


@app.command("compose")
def compose_note(
    payload_file: Path = typer.Argument(..., help="Visit payload JSON file"),
    templates: bool = typer.Option(
        False, "--templates", help="Pre-seed sections from per-procedure templates instead"
    ),
    output: Optional[Path] = typer.Option(None, help="Write the composed sections JSON here"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Compose note section text for a visit."""
    settings = _bootstrap(verbose)
    inputs = _load(payload_file)
    sections = inputs.sections or blank_sections()

    with visit_log_context(inputs.visit.id):
        if templates:
            library = create_template_library(settings)
            for procedure in inputs.procedures:
                sections, template_id = apply_template(
                    procedure, inputs.visit.visit_type, sections, inputs.visit, library=library
                )
                if template_id is None:
                    console.print(f"[yellow]No template for {procedure.code}[/yellow]")
        else:
            sections = compose(_bundle_for(settings, inputs), sections)

    for section in sections:
        console.print(f"\n[bold cyan]{section.title or section.type}[/bold cyan]")
        console.print(section.content or "[dim](empty)[/dim]")

    if output:
        output.write_text(json.dumps(to_jsonable(sections), indent=2), encoding="utf-8")
        console.print(f"\n[green]Sections saved to {output}[/green]")


@app.command()
def risks(
    payload_file: Path = typer.Argument(..., help="Visit payload JSON file"),
    code: Optional[str] = typer.Option(None, "--code", help="Only risks disclosed for this code"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print consent risk bullets, most common first."""
    _bootstrap(verbose)
    inputs = _load(payload_file)
    selected = risks_for_code(inputs.risks, code) if code else active_risks(inputs.risks)
    if not selected:
        console.print("[yellow]No active risks.[/yellow]")
        return

    typer.echo(build_risk_bullets(sort_by_severity(selected)))
    for risk in selected:
        if not is_risk_text_safe(f"{risk.title} {risk.body}"):
            console.print(f"[red]'{risk.title}' promises an outcome; reword before consent.[/red]")


@app.command()
def sign(
    score_value: int = typer.Argument(..., metavar="SCORE", help="Completeness score (0-100)"),
    reason: str = typer.Option("", "--reason", help="Override reason when below threshold"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Check whether a note with this score may be signed."""
    settings = _bootstrap(verbose)
    decision = create_sign_off_gate(settings).can_sign(score_value, reason)

    if decision.allowed:
        suffix = " (override)" if decision.requires_override else ""
        console.print(f"[green]Sign-off allowed{suffix}.[/green]")
        return

    console.print(f"[red]{decision.message}[/red]")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

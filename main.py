"""Kursplaner — Haupt-CLI.

Verwendung:
  python main.py config init              Standard-Konfiguration anlegen
  python main.py config show              Konfiguration anzeigen
  python main.py generate                 Fake-Datensatz erzeugen und speichern
  python main.py validate                 Machbarkeits-Check
  python main.py solve                    Sections in Slots und Räume einplanen
  python main.py solve --diagnose         … bei Unlösbarkeit Constraints lockern
  python main.py show <user> --role …     Wochenansicht eines Benutzers
  python main.py ical <user> --role …     Wochenansicht als .ics exportieren
  python main.py quality                  Qualitätsbericht der gespeicherten Planung
"""

import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()


def _load_config():
    """Lädt die Konfiguration (oder die Defaults) und bricht bei Fehlern ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        return mgr.load_or_default()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _data_path(config, json_path: Optional[str]) -> Path:
    return Path(json_path) if json_path else Path(config.storage.data_path)


def _open_store(path: Path):
    """Öffnet die JSON-Ablage oder bricht ab, wenn die Datei fehlt."""
    from storage.json_store import JsonCampusStore

    if not path.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {path}[/red]\n"
            "Verwenden Sie zunächst [bold]python main.py generate[/bold]."
        )
        sys.exit(1)
    return JsonCampusStore(path)


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anlegen oder anzeigen."""


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False, help="Bestehende Datei überschreiben.")
def config_init(force: bool):
    """Legt die Standard-Konfiguration als YAML an."""
    from config.defaults import default_campus_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            f"[yellow]Konfiguration existiert bereits: {mgr.DEFAULT_CONFIG}[/yellow]\n"
            "Mit [bold]--force[/bold] überschreiben."
        )
        return
    mgr.save(default_campus_config())


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    config = _load_config()

    console.print(Panel(
        f"[bold]{config.institution_name}[/bold]  |  "
        f"Daten: {config.storage.data_path}",
        title="Campus-Konfiguration",
        border_style="cyan",
    ))

    tg = config.time_grid
    table = Table(title="Zeitraster", box=box.ROUNDED)
    table.add_column("Nr.")
    table.add_column("Beginn")
    table.add_column("Ende")
    for i, window in enumerate(tg.slots, start=1):
        table.add_row(str(i), window.start, window.end)
    console.print(table)
    console.print(
        f"[bold]Tage:[/bold] {', '.join(d.short_name for d in tg.days)} "
        f"({len(tg.time_slots())} Slots)"
    )

    sc = config.solver
    console.print(
        f"[bold]Harte Constraints:[/bold] {', '.join(sc.hard.enabled_names()) or '—'}\n"
        f"[bold]Suchbudget:[/bold] {sc.max_steps or '∞'} Schritte | "
        f"Zeitlimit {sc.time_limit_seconds or '∞'}s | "
        f"Nachoptimierung: {'an' if sc.optimize else 'aus'}"
    )
    console.print(
        f"[bold]Kalender:[/bold] {config.calendar.prodid} | "
        f"Zeitzone: {config.calendar.timezone or 'floating'} | "
        f"Standard {config.calendar.default_weeks} Wochen"
    )


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--courses", default=12, help="Anzahl Kurse.")
@click.option("--students", default=60, help="Anzahl Studierende.")
@click.option("--json-path", default=None, help="Pfad der Datendatei.")
@click.option("--validate/--no-validate", "run_validate", default=True,
              help="Machbarkeits-Check nach Generierung.")
def cmd_generate(seed: int, courses: int, students: int, json_path: Optional[str],
                 run_validate: bool):
    """Erzeugt einen Test-Datensatz (Kurse, Sections, Räume, Personen)."""
    config = _load_config()
    from data.fake_data import FakeCampusGenerator

    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeCampusGenerator(
        seed=seed, num_courses=courses, num_students=students,
        max_meetings=len(config.time_grid.time_slots()),
    )
    data = gen.generate()
    gen.print_summary(data)

    console.print(f"\n[dim]{data.summary()}[/dim]")

    if run_validate:
        report = data.validate_feasibility(config.time_grid.time_slots())
        report.print_rich()

    out_path = _data_path(config, json_path)
    data.save_json(out_path)
    console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--json-path", default=None, help="Pfad der Datendatei.")
def cmd_validate(json_path: Optional[str]):
    """Führt einen Machbarkeits-Check auf dem aktuellen Datensatz durch."""
    config = _load_config()
    store = _open_store(_data_path(config, json_path))
    data = store.data

    console.print(f"\n{data.summary()}\n")
    report = data.validate_feasibility(config.time_grid.time_slots())
    report.print_rich()

    sys.exit(0 if report.is_feasible else 1)


# ─── SOLVE ────────────────────────────────────────────────────────────────────

@click.command("solve")
@click.option("--json-path", default=None, help="Pfad der Datendatei.")
@click.option("--section", "section_ids", multiple=True,
              help="Nur diese Section(s) planen (mehrfach angebbar).")
@click.option("--optimize/--no-optimize", default=None,
              help="Nachoptimierung über weiche Constraints.")
@click.option("--max-steps", type=int, default=None, help="Suchbudget in Schritten.")
@click.option("--time-limit", type=float, default=None, help="Zeitlimit in Sekunden.")
@click.option("--persist/--dry-run", default=True, help="Ergebnis speichern.")
@click.option("--diagnose", is_flag=True, default=False,
              help="Bei Unlösbarkeit Constraint-Relaxierung durchführen.")
def cmd_solve(json_path: Optional[str], section_ids: tuple, optimize: Optional[bool],
              max_steps: Optional[int], time_limit: Optional[float], persist: bool,
              diagnose: bool):
    """Plant die Sections in Zeitslots und Räume ein."""
    from analysis.solution_validator import SolutionValidator
    from solver.scheduler import (
        InvalidScheduleInputError, ScheduleInfeasibleError, SearchBudgetExceededError,
    )
    from solver.service import SchedulingService

    config = _load_config()
    updates = {}
    if optimize is not None:
        updates["optimize"] = optimize
    if max_steps is not None:
        updates["max_steps"] = max_steps
    if time_limit is not None:
        updates["time_limit_seconds"] = time_limit
    if updates:
        config = config.model_copy(update={"solver": config.solver.model_copy(update=updates)})

    store = _open_store(_data_path(config, json_path))
    service = SchedulingService(store, config)

    console.print("[bold]Suche läuft...[/bold]")
    try:
        solution = service.generate_schedule(
            section_ids=list(section_ids) or None,
            instructor_preferences=store.data.instructor_preferences(),
            persist=persist,
        )
    except ScheduleInfeasibleError as e:
        console.print(Panel(
            f"[bold red]✗ {e}[/bold red]\n"
            f"Tiefste nicht platzierbare Section: {e.section_id or '—'} | "
            f"Schritte: {e.steps}\n"
            "[dim]Gespeicherte Zuweisungen bleiben unverändert.[/dim]",
            title="Unlösbar", border_style="red",
        ))
        if diagnose:
            _run_diagnosis(store, config, section_ids)
        sys.exit(1)
    except SearchBudgetExceededError as e:
        console.print(
            f"[yellow]{e}[/yellow]\n"
            "Budget erhöhen (--max-steps / --time-limit) oder Batch verkleinern."
        )
        sys.exit(1)
    except InvalidScheduleInputError as e:
        console.print(f"[red]Ungültige Eingabe: {e}[/red]")
        sys.exit(1)

    lines = [
        f"Status: [bold green]{solution.solver_status}[/bold green]",
        f"Termine: {len(solution.assignments)} | Sections: {len(solution.section_ids)}",
        f"Schritte: {solution.steps} | Rücknahmen: {solution.backtracks} | "
        f"Zeit: {solution.solve_time_seconds:.2f}s",
    ]
    if solution.optimized:
        lines.append(
            f"Soft-Score: {solution.soft_score_before:.2f} → {solution.soft_score_after:.2f}"
        )
    lines.append("Gespeichert." if persist else "[dim]Dry-Run: nichts gespeichert.[/dim]")
    console.print(Panel("\n".join(lines), title="Ergebnis", border_style="green"))

    report = SolutionValidator().validate(
        solution.assignments, store.data, solution.section_ids,
    )
    report.print_rich()


def _run_diagnosis(store, config, section_ids: tuple) -> None:
    from solver.constraint_relaxer import ConstraintRelaxer
    from solver.service import SchedulingService
    from storage.base import SectionFilter

    sections = store.list_sections(SectionFilter(ids=list(section_ids) or None))
    fixed_sections, fixed = SchedulingService(store, config).fixed_commitments(
        [s.id for s in sections]
    )
    console.print("\n[bold]Constraint-Relaxierung läuft...[/bold]")
    relaxer = ConstraintRelaxer(
        sections,
        store.list_classrooms(),
        config.time_grid.time_slots(),
        store.list_active_enrollments([s.id for s in sections + fixed_sections]),
        config.solver,
        fixed=fixed,
        fixed_sections=fixed_sections,
    )
    relaxer.diagnose().print_rich()


# ─── SHOW / ICAL ──────────────────────────────────────────────────────────────

_ROLE_OPTION = click.option(
    "--role", type=click.Choice(["student", "faculty"], case_sensitive=False),
    default="student", show_default=True, help="Rolle des Benutzers.",
)


@click.command("show")
@click.argument("user_id")
@_ROLE_OPTION
@click.option("--json-path", default=None, help="Pfad der Datendatei.")
def cmd_show(user_id: str, role: str, json_path: Optional[str]):
    """Zeigt die Wochenansicht eines Benutzers."""
    from export.tui_renderer import render_weekly_table
    from export.weekly_view import WeeklyScheduleBuilder

    config = _load_config()
    store = _open_store(_data_path(config, json_path))
    weekly = WeeklyScheduleBuilder(store).get_user_schedule(user_id, role)

    if weekly.is_empty:
        console.print(f"[dim]Keine Termine für {user_id} ({role}).[/dim]")
        return
    table = render_weekly_table(
        weekly, f"Wochenansicht {user_id} ({role})",
        config.time_grid.time_slots(), mode=role.lower(),
    )
    console.print(table)
    console.print(f"[dim]{weekly.total_meetings} Termine pro Woche[/dim]")


@click.command("ical")
@click.argument("user_id")
@_ROLE_OPTION
@click.option("--start", "start", default=None, help="Startdatum (YYYY-MM-DD, Default: heute).")
@click.option("--end", "end", default=None, help="Enddatum inklusive (Default: Start + N Wochen).")
@click.option("--output", "-o", default=None, help="Ausgabedatei (.ics).")
@click.option("--json-path", default=None, help="Pfad der Datendatei.")
def cmd_ical(user_id: str, role: str, start: Optional[str], end: Optional[str],
             output: Optional[str], json_path: Optional[str]):
    """Exportiert die Wochenansicht als iCalendar-Datei."""
    from export.helpers import parse_date
    from solver.service import SchedulingService

    config = _load_config()
    store = _open_store(_data_path(config, json_path))
    try:
        start_date = parse_date(start) if start else None
        end_date = parse_date(end) if end else None
        out_path = Path(output) if output else Path(f"output/{user_id}.ics")
        text = SchedulingService(store, config).export_ical(
            user_id, role, start_date, end_date, out_path,
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    events = text.count("BEGIN:VEVENT")
    console.print(f"[green]✓[/green] {events} Termine exportiert: {out_path}")


# ─── QUALITY ──────────────────────────────────────────────────────────────────

@click.command("quality")
@click.option("--json-path", default=None, help="Pfad der Datendatei.")
def cmd_quality(json_path: Optional[str]):
    """Qualitätsbericht der gespeicherten Zuweisungen."""
    from analysis.quality_report import QualityAnalyzer
    from solver.scheduler import ScheduleSolution

    config = _load_config()
    store = _open_store(_data_path(config, json_path))
    data = store.data
    if not data.assignments:
        console.print("[yellow]Noch keine Zuweisungen gespeichert.[/yellow]")
        sys.exit(1)

    solution = ScheduleSolution(
        assignments=data.assignments, solver_status="STORED", steps=0,
        backtracks=0, solve_time_seconds=0.0,
    )
    analyzer = QualityAnalyzer(config.solver.soft)
    report = analyzer.analyze(
        solution, data, config.time_grid.time_slots(), data.instructor_preferences(),
    )
    analyzer.print_rich(report)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben.")
def cli(verbose: bool):
    """Kursplaner: Raum- und Zeitplanung für Kurs-Sections.

    Starten Sie mit: python main.py config init
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_solve)
cli.add_command(cmd_show)
cli.add_command(cmd_ical)
cli.add_command(cmd_quality)


if __name__ == "__main__":
    main()

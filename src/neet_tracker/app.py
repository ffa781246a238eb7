"""Interactive CLI application."""
import logging
import os
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from neet_tracker.db import init_db, DEFAULT_DB_PATH
from neet_tracker.errors import BatchPartialFailure, TrackerError, ValidationError
from neet_tracker.seed import seed_all, is_seeded
from neet_tracker.settings import get_exam_date, get_user_id
from neet_tracker.progress import get_subject_dashboard, get_subjects, calculate_chapter_progress
from neet_tracker.chapters import get_chapters_for_subject, get_chapters_needing_improvement
from neet_tracker.changes import PendingChanges
from neet_tracker.goals import GOAL_FIELDS, get_daily_summary, get_question_stats, get_trend, upsert_daily_goal
from neet_tracker.streaks import mark_studied_today
from neet_tracker.scores import get_score_trend, get_test_analytics, record_test_score
from neet_tracker.mood import get_mood_insights, set_mood_entry
from neet_tracker.cycles import record_cycle
from neet_tracker.countdown import get_countdown
from neet_tracker.prediction import get_rank_prediction
from neet_tracker.report import build_daily_report
from neet_tracker.importer import import_file
from neet_tracker.models import MOODS, TEST_TYPES, TOGGLES

console = Console()

RISK_COLORS = {"low": "green", "medium": "yellow", "high": "red"}


def configure_logging() -> None:
    level = os.environ.get("NEET_TRACKER_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]NEET Study Tracker[/bold]\n[dim]Chapters, daily goals, streaks and rank prediction[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Subject progress + question stats"),
        ("chapter", "Update chapter checklists"),
        ("goals", "Log today's questions"),
        ("streak", "Mark today as studied"),
        ("test", "Record a mock test score"),
        ("mood", "Log today's mood"),
        ("cycle", "Record a cycle"),
        ("predict", "AIR prediction + countdown"),
        ("trend", "Question volume trends"),
        ("report", "Daily progress report"),
        ("import", "Import history from JSON/YAML"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def progress_color(percentage: float) -> str:
    if percentage >= 80:
        return "green"
    if percentage >= 50:
        return "yellow"
    return "red"


def cmd_dashboard(db_path: str):
    user_id = get_user_id(db_path)
    dashboard = get_subject_dashboard(db_path)
    stats = get_question_stats(db_path, user_id)
    overall = dashboard["overall"]
    color = progress_color(overall)
    bar_filled = int(overall / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel(
        f"Overall completion: [bold]{overall}%[/bold] {bar}",
        title="NEET Progress Dashboard", border_style="blue",
    ))

    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Completion", justify="right")
    table.add_column("Chapters", justify="right")
    table.add_column("Weak", justify="right")
    table.add_column("Questions", justify="right")
    for s in dashboard["subjects"]:
        sc = progress_color(s["completion_percentage"])
        table.add_row(
            s["name"], f"[{sc}]{s['completion_percentage']}%[/{sc}]",
            str(s["chapter_count"]), str(s["weak_chapters"]), str(s["total_questions"]),
        )
    console.print(table)

    goal_mark = "[green]✓[/green]" if stats["daily_goal_achieved"] else "[yellow]…[/yellow]"
    console.print(f"\n  Today: [bold]{stats['daily']}[/bold] {goal_mark}  |  "
                  f"Week: [bold]{stats['weekly']}[/bold] ({stats['weekly_progress']:.0f}%)  |  "
                  f"Month: [bold]{stats['monthly']}[/bold] ({stats['monthly_progress']:.0f}%)  |  "
                  f"Lifetime: [bold]{stats['lifetime']}[/bold]")

    weak = get_chapters_needing_improvement(db_path)
    if weak:
        console.print("\n[bold]Needs revision:[/bold]")
        for ch in weak[:5]:
            console.print(f"  [red]{ch['revision_score']}/10[/red] {ch['name']} ({ch['subject_name']})")


def pick_subject(db_path: str):
    subjects = get_subjects(db_path)
    for s in subjects:
        console.print(f"  [cyan]{s.id}[/cyan]) {s.name} [dim]{s.completion_percentage:.1f}%[/dim]")
    subject_id = IntPrompt.ask("Select subject", choices=[str(s.id) for s in subjects])
    return next(s for s in subjects if s.id == subject_id)


def show_chapter(chapter) -> None:
    progress = calculate_chapter_progress(chapter)
    lines = [f"Revision score: {chapter.revision_score}/10"]
    for kind, (_, array) in TOGGLES.items():
        marks = "".join("■" if done else "□" for done in getattr(chapter, array))
        lines.append(f"{kind:<11} {marks or '-'}")
    lines.append(f"Overall: {progress.overall_progress:.1f}%")
    console.print(Panel("\n".join(lines), title=chapter.name, border_style="cyan"))


def cmd_chapter(db_path: str):
    subject = pick_subject(db_path)
    chapters = get_chapters_for_subject(db_path, subject.id)
    if not chapters:
        console.print("[yellow]No chapters in this subject yet.[/yellow]")
        return
    for i, ch in enumerate(chapters, 1):
        pct = calculate_chapter_progress(ch).overall_progress
        console.print(f"  [cyan]{i}[/cyan]) {ch.name} [dim]{pct:.0f}%[/dim]")
    pick = IntPrompt.ask("Select chapter", choices=[str(i) for i in range(1, len(chapters) + 1)])
    chapter = chapters[pick - 1]
    show_chapter(chapter)

    changes = PendingChanges.for_chapters(db_path)
    staged = {array: list(getattr(chapter, array)) for _, array in TOGGLES.values()}
    while True:
        kind = Prompt.ask("Toggle", choices=[*TOGGLES, "revision", "save", "cancel"], default="save")
        if kind == "cancel":
            console.print("[dim]Changes discarded.[/dim]")
            return
        if kind == "save":
            break
        if kind == "revision":
            try:
                changes.add_change(chapter.id, "revision_score", IntPrompt.ask("Revision score (1-10)"))
            except ValidationError as e:
                console.print(f"[red]{e}[/red]")
            continue
        count_field, array = TOGGLES[kind]
        count = getattr(chapter, count_field)
        if count == 0:
            console.print(f"[yellow]No {kind} items in this chapter.[/yellow]")
            continue
        number = IntPrompt.ask(f"{kind} number (1-{count})")
        if not 1 <= number <= count:
            console.print("[red]Out of range.[/red]")
            continue
        staged[array][number - 1] = not staged[array][number - 1]
        changes.add_change(chapter.id, array, list(staged[array]))

    if not changes.has_changes:
        return
    try:
        changes.save_all_changes()
    except BatchPartialFailure as e:
        console.print(f"[red]Couldn't save, try again: {e}[/red]")
        return
    subject_after = next(s for s in get_subjects(db_path) if s.id == subject.id)
    console.print(f"[green]Saved.[/green] {subject.name} now at {subject_after.completion_percentage:.1f}%")


def cmd_goals(db_path: str):
    user_id = get_user_id(db_path)
    console.print("\n[bold]Today's questions[/bold] [dim](Enter to skip a field)[/dim]")
    counts = {}
    for field in GOAL_FIELDS:
        value = Prompt.ask(f"  {field.replace('_', ' ')}", default="")
        if value.strip():
            counts[field] = float(value) if field.endswith("_revision") else int(value)
    goal = upsert_daily_goal(db_path, user_id, date.today(), counts)
    summary = get_daily_summary(db_path, user_id)
    console.print(f"[green]Saved.[/green] {goal.total_questions} questions today {summary['emoji']}")
    console.print(f"[dim]{summary['motivational_message']}[/dim]")


def cmd_streak(db_path: str):
    result = mark_studied_today(db_path, get_user_id(db_path))
    streak = result.streak
    if result.already_marked:
        console.print("[yellow]Already marked for today.[/yellow]")
    console.print(f"Current streak: [bold]{streak.current_streak}[/bold] days  |  "
                  f"Best: [bold]{streak.longest_streak}[/bold]  |  Total days: {streak.total_days}")


def cmd_test(db_path: str):
    user_id = get_user_id(db_path)
    for i, t in enumerate(TEST_TYPES, 1):
        console.print(f"  [cyan]{i}[/cyan]) {t}")
    choice = IntPrompt.ask("Test type", choices=[str(i) for i in range(1, len(TEST_TYPES) + 1)])
    number = Prompt.ask("Test number")
    score = IntPrompt.ask("Score (out of 720)")
    record_test_score(db_path, user_id, TEST_TYPES[choice - 1], number, score)
    analytics = get_test_analytics(db_path, user_id)
    change = analytics["improvement"]
    change_color = "green" if change >= 0 else "red"
    console.print(f"[green]Recorded.[/green] Average {analytics['average_score']}  |  "
                  f"Best {analytics['best_score']}  |  "
                  f"Change [{change_color}]{change:+d}[/{change_color}]")
    recent = get_score_trend(db_path, user_id, limit=5)
    console.print("[dim]Recent: " + " → ".join(str(t["score"]) for t in recent) + "[/dim]")


def cmd_mood(db_path: str):
    mood = Prompt.ask("How are you feeling?", choices=list(MOODS), default="neutral")
    set_mood_entry(db_path, date.today(), mood)
    insights = get_mood_insights(db_path)
    console.print(f"Happy days: [bold]{insights['happy_days']}[/bold] of {insights['total_entries']}  |  "
                  f"Happy streak: [bold]{insights['current_streak']}[/bold]")


def cmd_cycle(db_path: str):
    start = date.fromisoformat(Prompt.ask("Cycle start date (YYYY-MM-DD)", default=date.today().isoformat()))
    cycle_length = IntPrompt.ask("Cycle length", default=28)
    period_length = IntPrompt.ask("Period length", default=5)
    energy = IntPrompt.ask("Energy level (0-10)", default=5)
    capacity = IntPrompt.ask("Study capacity (0-10)", default=5)
    record_cycle(db_path, get_user_id(db_path), start, cycle_length, period_length, energy, capacity)
    console.print("[green]Cycle recorded.[/green]")


def cmd_predict(db_path: str):
    countdown = get_countdown(get_exam_date(db_path))
    phase = countdown["phase"]
    console.print(Panel(
        f"[bold]{countdown['days']}[/bold] days to NEET ({countdown['exam_date']})  "
        f"[dim]urgency: {countdown['urgency']}[/dim]\n"
        f"Phase: [cyan]{phase['name']}[/cyan] - {phase['focus']}\n"
        f"Daily target: {phase['daily_target']}  |  Score target: {phase['score_target']}",
        title="Countdown", border_style="blue",
    ))

    prediction = get_rank_prediction(db_path, get_user_id(db_path))
    color = RISK_COLORS[prediction.risk_level]
    console.print(f"\n  Predicted AIR: [bold]{prediction.predicted_rank}[/bold]  |  "
                  f"Confidence: {prediction.confidence:.0%}  |  "
                  f"Risk: [{color}]{prediction.risk_level}[/{color}]")
    if prediction.is_fallback:
        console.print("  [yellow]Not enough data for a full prediction; showing an estimate.[/yellow]")

    table = Table(title="Factors")
    table.add_column("Factor", style="cyan")
    table.add_column("Score", justify="right")
    for name, value in vars(prediction.factors).items():
        table.add_row(name.replace("_", " ").title(), f"{value:.0f}")
    console.print(table)
    for rec in prediction.recommendations:
        console.print(f"  [yellow]•[/yellow] {rec}")


def cmd_trend(db_path: str):
    period = Prompt.ask("Period", choices=["daily", "weekly", "monthly"], default="weekly")
    rows = get_trend(db_path, get_user_id(db_path), period)
    if not rows:
        console.print("[yellow]No questions logged yet.[/yellow]")
        return
    label_key = {"daily": "date", "weekly": "week_start", "monthly": "month_name"}[period]
    peak = max(r["total_questions"] for r in rows) or 1
    table = Table(title=f"{period.title()} questions")
    table.add_column("Period", style="cyan")
    table.add_column("Questions", justify="right")
    table.add_column("")
    for r in rows:
        table.add_row(r[label_key], str(r["total_questions"]), "█" * int(r["total_questions"] / peak * 20))
    console.print(table)


def cmd_report(db_path: str):
    console.print(Panel(build_daily_report(db_path, get_user_id(db_path)), title="Daily Report"))


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(db_path, file_path, get_user_id(db_path))
    console.print(f"[green]Imported {result['daily_goals']} daily goals, {result['tests']} tests, "
                  f"{result['moods']} moods from {Path(file_path).name}[/green]")


COMMANDS = {
    "dashboard": cmd_dashboard,
    "chapter": cmd_chapter,
    "goals": cmd_goals,
    "streak": cmd_streak,
    "test": cmd_test,
    "mood": cmd_mood,
    "cycle": cmd_cycle,
    "predict": cmd_predict,
    "trend": cmd_trend,
    "report": cmd_report,
    "import": cmd_import,
}


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]All the best for NEET![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except ValidationError as e:
            console.print(f"[red]Invalid input: {e}[/red]")
        except TrackerError as e:
            console.print(f"[red]Couldn't save, try again: {e}[/red]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()

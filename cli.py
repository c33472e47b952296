import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from typing import Optional
from datetime import datetime
import json
import logging

from lexilearn.config import settings
from lexilearn.database import init_db
from lexilearn.store import get_store
from lexilearn.seed import seed_all
from lexilearn.crud import (
    get_user, get_progress, complete_lesson, record_teacher_payment,
    save_voice_session, save_conversation
)
from lexilearn.errors import LexiLearnError
from lexilearn.history import list_history, view_detail, delete_history_record, find_record
from lexilearn.reports import ReportBuilder
from lexilearn.search import search_users
from lexilearn.stats import admin_overview, financial_summary, student_dashboard, teacher_overview

app = typer.Typer(help="LexiLearn CLI - manage the learning platform's data store")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """Configure logging once for every command"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)]
    )


def _fmt_date(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


@app.command()
def init():
    """Initialize database tables and seed baseline data"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")
    if settings.seed_on_startup:
        summary = seed_all(get_store())
        created = sum(summary.values())
        console.print(f"[green]✓[/green] Seed finished ({created} records created)")


@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from lexilearn.database import engine, Base
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    init_db()
    console.print("[green]✓[/green] Database reset complete! All data deleted.")


@app.command()
def seed(random_seed: Optional[int] = typer.Option(None, help="Seed for reproducible random data")):
    """Run the seed generator (safe to repeat)"""
    import random

    init_db()
    rng = random.Random(random_seed) if random_seed is not None else None
    summary = seed_all(get_store(), rng=rng)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Step", style="cyan")
    table.add_column("Created", justify="right")
    for step, count in summary.items():
        table.add_row(step, str(count) if count else "[dim]skipped[/dim]")
    console.print(table)


@app.command()
def stats():
    """Show the admin overview"""
    overview = admin_overview(get_store())
    console.print("\n[bold]Platform Overview[/bold]")
    console.print(f"  Students: {overview.total_students}")
    console.print(f"  Teachers: {overview.total_teachers}")
    console.print(f"  Modules: {overview.total_modules}")
    console.print(f"  Revenue: ${overview.total_revenue:,.2f}")
    console.print(f"  Pending payments: {overview.pending_payments}")
    console.print(f"  Active today: {overview.active_today}")


@app.command()
def finance():
    """Show subscription revenue and teacher payouts"""
    summary = financial_summary(get_store())

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Plan", style="cyan")
    table.add_column("Revenue", justify="right", style="green")
    for plan, amount in summary.revenue_by_plan.items():
        table.add_row(plan, f"${amount:,.2f}")
    console.print(table)

    console.print(f"  Active subscriptions: {summary.active_subscriptions}")
    console.print(f"  Pending subscriptions: {summary.pending_subscriptions}")
    console.print(f"  Paid to teachers: ${summary.teacher_paid_total:,.2f}")
    console.print(f"  Owed to teachers: ${summary.teacher_pending_total:,.2f}")


@app.command()
def search(
    term: str = typer.Argument("", help="Name or email fragment"),
    role: str = typer.Option("all", help="student / teacher / all"),
    level: str = typer.Option("all", help="Beginner / Intermediate / Advanced / all"),
    module: str = typer.Option("all", help="Module ID a teacher is assigned to")
):
    """Search users with optional filters"""
    users = search_users(get_store(), term, {"role": role, "level": level, "module": module})
    if not users:
        console.print(f"[yellow]No users match '{term}'[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Email")
    table.add_column("Role", style="yellow")
    table.add_column("Last active", style="blue")
    for user in users:
        table.add_row(user.id, user.display_name, user.email, user.role, _fmt_date(user.last_active_at))
    console.print(table)


@app.command()
def view_user(user_id: str):
    """View a user profile"""
    store = get_store()
    user = get_user(store, user_id)
    if not user:
        console.print(f"[red]✗[/red] User ID {user_id} not found")
        return

    console.print("\n[bold]User Profile[/bold]")
    console.print(f"  ID: {user.id}")
    console.print(f"  Name: {user.display_name}")
    console.print(f"  Email: {user.email}")
    console.print(f"  Role: {user.role}")
    if user.subject:
        console.print(f"  Subject: {user.subject}")
    console.print(f"  Joined: {_fmt_date(user.joined_at)}")
    console.print(f"  Last active: {_fmt_date(user.last_active_at)}")

    progress = get_progress(store, user_id)
    if progress:
        console.print(f"  Level: {progress.level}")


@app.command()
def dashboard(student_id: str):
    """View a student's dashboard statistics and courses"""
    store = get_store()
    try:
        stats = student_dashboard(store, student_id)
    except LexiLearnError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]Dashboard - {student_id}[/bold]\n")
    console.print(f"  Lexical density: {stats.avg_lexical_density:.1f}%")
    console.print(f"  Lexical diversity: {stats.avg_lexical_diversity:.1f}%")
    console.print(f"  Enrolled modules: {stats.enrolled_modules_count}")
    console.print(f"  Current streak: {stats.current_streak} days")
    console.print(f"  Study hours: {stats.total_study_hours}")
    console.print(f"  Lessons completed: {stats.total_lessons_completed}")
    if stats.achievements:
        console.print(f"  Achievements: {', '.join(stats.achievements)}")

    progress = get_progress(store, student_id)
    if progress and progress.courses:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Course", style="cyan")
        table.add_column("Progress", justify="right", style="green")
        table.add_column("Hours", justify="right")
        table.add_column("Status", style="yellow")
        for course in progress.courses:
            table.add_row(course.course_name, f"{course.progress_percent}%", str(course.total_study_hours), course.status)
        console.print(table)


@app.command()
def teacher(teacher_id: str):
    """View a teacher's load and earnings"""
    try:
        overview = teacher_overview(get_store(), teacher_id)
    except LexiLearnError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]Teacher Overview - {teacher_id}[/bold]")
    console.print(f"  Students on platform: {overview.students_count}")
    console.print(f"  Assigned modules: {overview.assigned_modules_count}")
    console.print(f"  Lessons: {overview.lessons_count}")
    console.print(f"  Resources: {overview.resources_count}")
    console.print(f"  Active students: {overview.active_students}")
    console.print(f"  Completions today: {overview.completions_today}")
    console.print(f"  Earned: ${overview.total_amount:,.2f} (paid ${overview.paid_amount:,.2f}, pending ${overview.pending_amount:,.2f})")


@app.command()
def history(student_id: str):
    """List a student's AI conversations and voice sessions, newest first"""
    records = list_history(get_store(), student_id)
    if not records:
        console.print(f"[yellow]No AI history for {student_id}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Title", style="green")
    table.add_column("Date", style="blue")
    table.add_column("Summary")
    for record in records:
        if record.source_type == "voice":
            summary = f"density {record.lexical_density:.1f}% / diversity {record.lexical_diversity:.1f}%"
        else:
            summary = f"{record.message_count} messages - {record.preview}"
        table.add_row(record.id, record.source_type, record.title, _fmt_date(record.display_date), summary)
    console.print(table)


@app.command()
def history_detail(student_id: str, record_id: str):
    """Show the full content of one history record"""
    store = get_store()
    try:
        record = view_detail(store, find_record(store, student_id, record_id))
    except LexiLearnError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold]{record.title}[/bold] ({record.source_type}, {_fmt_date(record.display_date)})")
    if record.source_type == "voice" and record.transcription:
        console.print(f'\n[italic]"{record.transcription}"[/italic]')
        if record.advanced_words:
            console.print(f"  Advanced words: {', '.join(record.advanced_words)}")
    for msg in record.messages:
        speaker = "Student" if msg.role == "user" else "AI Tutor"
        console.print(f"[bold]{speaker}:[/bold] {msg.content}")


@app.command()
def delete_history(student_id: str, record_id: str):
    """Delete a conversation or voice session from a student's history"""
    store = get_store()
    try:
        record = find_record(store, student_id, record_id)
    except LexiLearnError as e:
        console.print(f"[yellow]Nothing to delete: {e}[/yellow]")
        return

    if not typer.confirm(f"Delete this {record.source_type} record?"):
        console.print("[yellow]Cancelled.[/yellow]")
        return
    if delete_history_record(store, record):
        console.print(f"[green]✓[/green] Deleted {record.source_type} record {record.id}")
    else:
        console.print(f"[yellow]Record {record.id} was already gone[/yellow]")


@app.command()
def import_history(file_path: str = typer.Option(..., prompt="JSON file path")):
    """Import voice sessions and conversations from a JSON export"""
    with open(file_path, encoding="utf-8") as f:
        payload = json.load(f)

    store = get_store()
    imported = {"voice": 0, "text": 0}
    for item in payload.get("voice_sessions", []):
        try:
            save_voice_session(store, item)
            imported["voice"] += 1
        except LexiLearnError as e:
            console.print(f"[red]Skipping voice session {item.get('id', '?')}: {e}[/red]")
    for item in payload.get("conversations", []):
        try:
            save_conversation(store, item)
            imported["text"] += 1
        except LexiLearnError as e:
            console.print(f"[red]Skipping conversation {item.get('id', '?')}: {e}[/red]")

    console.print(f"[green]✓[/green] Imported {imported['voice']} voice sessions and {imported['text']} conversations")


@app.command("complete-lesson")
def complete(
    student_id: str = typer.Option(..., prompt="Student ID"),
    module_id: str = typer.Option(..., prompt="Module ID"),
    lesson_id: str = typer.Option(..., prompt="Lesson ID"),
    minutes: Optional[int] = typer.Option(None, help="Minutes studied (default: lesson duration)")
):
    """Mark a lesson as completed for a student"""
    try:
        progress = complete_lesson(get_store(), student_id, module_id, lesson_id, minutes_spent=minutes)
    except LexiLearnError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    course = next(c for c in progress.courses if c.course_id == module_id)
    console.print(f"[green]✓[/green] Lesson recorded!")
    console.print(f"  {course.course_name}: {course.progress_percent}% ({course.status})")
    console.print(f"  Total lessons completed: {progress.total_lessons_completed}")


@app.command()
def record_payment(
    teacher_id: str = typer.Option(..., prompt="Teacher ID"),
    amount: float = typer.Option(..., prompt="Amount"),
    method: str = typer.Option("Bank Transfer", help="Bank Transfer / PayPal / Check")
):
    """Record a payout to a teacher"""
    try:
        payment = record_teacher_payment(get_store(), teacher_id, amount, method)
    except LexiLearnError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Payment recorded!")
    console.print(f"  Paid: ${payment.paid_amount:,.2f} of ${payment.total_amount:,.2f}")
    console.print(f"  Pending: ${payment.pending_amount:,.2f} ({payment.status})")


@app.command()
def export(
    report: str = typer.Argument(..., help="users / finance / study-log"),
    file_path: str = typer.Option(..., "--out", "-o", help="Output file (.csv or .xlsx)"),
    student_id: Optional[str] = typer.Option(None, help="Student ID (study-log only)")
):
    """Export a report as CSV or Excel"""
    store = get_store()
    try:
        if report == "users":
            df = ReportBuilder.users_frame(store)
        elif report == "finance":
            df = ReportBuilder.financial_frame(store)
        elif report == "study-log":
            if not student_id:
                console.print("[red]✗[/red] --student-id is required for study-log")
                raise typer.Exit(code=1)
            df = ReportBuilder.study_log_frame(store, student_id)
        else:
            console.print(f"[red]✗[/red] Unknown report '{report}'")
            raise typer.Exit(code=1)
        path = ReportBuilder.export_frame(df, file_path)
    except (LexiLearnError, ValueError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Wrote {len(df)} rows to {path}")


if __name__ == "__main__":
    app()

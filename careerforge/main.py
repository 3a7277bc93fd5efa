"""Command-line entry point for CareerForge."""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .coach import analyze_profile, generate_learning_plan, generate_project_ideas
from .errors import CareerForgeError, user_message
from .llm import create_client
from .market import fetch_market_trends, find_matching_jobs
from .models import CareerAnalysis, JobListing, MarketTrend, ProjectIdea, WeeklyPlan
from .resume import read_resume

# Load environment variables
load_dotenv()

console = Console()


def display_analysis(analysis: CareerAnalysis, target_role: str) -> None:
    """Display the readiness score, skills and strengths/weaknesses."""
    parts = [
        f"[bold]Readiness:[/bold] {analysis.readiness_score}/100",
        "",
        f"[italic]{analysis.summary}[/italic]",
        "",
    ]
    styles = {"acquired": "green", "in-progress": "yellow", "missing": "red"}
    for status, style in styles.items():
        names = [s.name for s in analysis.skills if s.status == status]
        if names:
            parts.append(f"[bold {style}]{status.title()}:[/bold {style}] {', '.join(names)}")
    if analysis.strengths:
        parts.append(f"[bold]Strengths:[/bold] {'; '.join(analysis.strengths)}")
    if analysis.weaknesses:
        parts.append(f"[bold]Weaknesses:[/bold] {'; '.join(analysis.weaknesses)}")

    console.print(Panel("\n".join(parts), title=f"📋 Readiness for {target_role}", border_style="blue"))
    console.print()


def display_plan(plan: list[WeeklyPlan]) -> None:
    for week in plan:
        table = Table(title=f"📚 Week {week.week_number}: {week.theme}", show_header=True, header_style="bold magenta")
        table.add_column("Type", style="cyan", width=9)
        table.add_column("Task", style="white", max_width=40)
        table.add_column("Hours", justify="right", style="yellow", width=6)
        table.add_column("Search", style="dim", max_width=40)
        for task in week.tasks:
            table.add_row(task.type, task.title, f"{task.estimated_hours:g}", task.video_query)
        console.print(table)
        console.print()


def display_jobs(jobs: list[JobListing]) -> None:
    """Display matching jobs in a table."""
    if not jobs:
        console.print("[yellow]No matching jobs found.[/yellow]")
        console.print()
        return

    table = Table(title="🎯 Matching Jobs", show_header=True, header_style="bold magenta")
    table.add_column("Match", justify="center", style="cyan", width=7)
    table.add_column("Title", style="white", max_width=35)
    table.add_column("Company", style="green", max_width=20)
    table.add_column("Location", style="yellow", max_width=15)
    table.add_column("Link", style="dim", max_width=40)

    for job in jobs:
        score = job.match_score
        if score >= 80:
            score_str = f"[bold green]{score:g}[/bold green]"
        elif score >= 70:
            score_str = f"[yellow]{score:g}[/yellow]"
        else:
            score_str = f"[red]{score:g}[/red]"
        table.add_row(score_str, job.title[:35], job.company[:20], job.location[:15], job.apply_link or "")

    console.print(table)
    console.print()


def display_projects(projects: list[ProjectIdea]) -> None:
    for idea in projects:
        body = (
            f"{idea.description}\n\n"
            f"[bold]Stack:[/bold] {', '.join(idea.tech_stack)}\n"
            f"[bold]Features:[/bold] {'; '.join(idea.key_features)}\n"
            f"[dim]{idea.resume_value}[/dim]"
        )
        console.print(Panel(body, title=f"💡 {idea.title} [{idea.difficulty}]", border_style="green"))
    console.print()


def display_trends(trends: MarketTrend) -> None:
    parts = [
        f"[bold]Salary range:[/bold] {trends.salary_range or 'n/a'}",
        f"[bold]Demand:[/bold] {trends.demand_level}",
        "",
        "[bold]Hot technologies:[/bold]",
        *(f"  • {t.name}: {t.growth_reason}" for t in trends.hot_technologies),
        "",
        "[bold]Industry news:[/bold]",
        *(f"  • {n.headline}: {n.summary}" for n in trends.industry_news),
    ]
    console.print(Panel("\n".join(parts), title=f"📈 Market for {trends.role}", border_style="magenta"))
    console.print()


def _step(label: str, done: str, operation):
    """Run *operation* behind a spinner and return its result."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(label, total=None)
        result = operation()
        progress.update(task, description=f"[green]✓[/green] {done}")
    return result


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CareerForge CLI."""
    parser = argparse.ArgumentParser(
        description="CareerForge: AI career coaching from your resume",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  careerforge cv.pdf --role "Data Analyst"
  careerforge cv.md --role "Backend Engineer" --plan --jobs
  careerforge cv.docx --role "ML Engineer" --projects --trends
        """,
    )

    parser.add_argument(
        "resume_path",
        type=Path,
        help="Path to your resume (supported: .pdf, .docx, .md, .txt)",
    )
    parser.add_argument(
        "--role", "-r",
        type=str,
        required=True,
        help="Target role, e.g. 'Data Analyst'",
    )
    parser.add_argument("--plan", action="store_true", help="Generate a one-week learning plan")
    parser.add_argument("--jobs", action="store_true", help="Search for matching job listings")
    parser.add_argument("--projects", action="store_true", help="Suggest portfolio projects")
    parser.add_argument("--trends", action="store_true", help="Summarize market trends for the role")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.getenv("CAREERFORGE_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s  %(levelname)-8s  %(message)s",
    )

    console.print()
    console.print(
        Panel.fit(
            "[bold blue]CareerForge[/bold blue]\n"
            "[dim]Analyze, upskill, apply[/dim]",
            border_style="blue",
        )
    )
    console.print()

    try:
        resume_text, resume_file = _step("Reading resume...", "Resume loaded", lambda: read_resume(args.resume_path))
        client = create_client()

        analysis = _step(
            "Analyzing resume with AI...",
            "Analysis complete",
            lambda: analyze_profile(client, args.role, resume_text=resume_text, resume_file=resume_file),
        )
        display_analysis(analysis, args.role)

        if args.plan:
            plan = _step(
                "Designing your learning plan...",
                "Learning plan ready",
                lambda: generate_learning_plan(client, args.role, analysis.missing_skills),
            )
            display_plan(plan)

        if args.jobs:
            jobs = _step(
                "Searching for matching jobs...",
                "Job search complete",
                lambda: find_matching_jobs(client, args.role, [s.name for s in analysis.skills]),
            )
            display_jobs(jobs)

        if args.projects:
            projects = _step(
                "Brainstorming projects...",
                "Projects ready",
                lambda: generate_project_ideas(client, args.role),
            )
            display_projects(projects)

        if args.trends:
            trends = _step(
                "Gathering market data...",
                "Market data ready",
                lambda: fetch_market_trends(client, args.role),
            )
            display_trends(trends)

        return 0

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    except CareerForgeError as e:
        console.print(f"[red]Error:[/red] {user_message(e, 'Request failed')}")
        return 1
    except ValueError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        return 130


def cli():
    """CLI entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()

"""Command-line interface using Typer."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from burstlet import __version__
from burstlet.client import BurstletClient, JobPoller
from burstlet.domain.enums import JobStatus, JobType
from burstlet.domain.models import GenerationJob
from burstlet.errors import GenerationError
from burstlet.logging import setup_logging

# Setup logging
setup_logging()

T = TypeVar("T")

app = typer.Typer(
    name="burstlet",
    help="Burstlet - AI content generation CLI",
    add_completion=False,
)

# Subcommand groups
generate_app = typer.Typer(help="Submit generation jobs")
jobs_app = typer.Typer(help="Inspect and cancel generation jobs")
app.add_typer(generate_app, name="generate")
app.add_typer(jobs_app, name="jobs")

console = Console()

STATUS_STYLES = {
    JobStatus.PENDING: "yellow",
    JobStatus.PROCESSING: "blue",
    JobStatus.COMPLETED: "green",
    JobStatus.FAILED: "red",
    JobStatus.CANCELED: "dim",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Burstlet v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override LOG_LEVEL for this command."
    ),
) -> None:
    """Burstlet - Generate videos, blog posts and social posts with AI."""
    if log_level:
        setup_logging(level=log_level)


def _run(call: Callable[[BurstletClient], Awaitable[T]], api_url: str | None, user: str) -> T:
    """Run ``call`` with a fresh client and turn API errors into exit code 1."""

    async def runner() -> T:
        async with BurstletClient(base_url=api_url, user_id=user) as client:
            return await call(client)

    try:
        return asyncio.run(runner())
    except GenerationError as e:
        console.print(f"[bold red]Error ({e.code}): {e.message}[/bold red]")
        raise typer.Exit(code=1)


def _status_text(status: JobStatus) -> str:
    return f"[{STATUS_STYLES[status]}]{status}[/{STATUS_STYLES[status]}]"


def _print_job(job: GenerationJob) -> None:
    table = Table(title="Generation Job")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Job ID", job.id)
    table.add_row("Type", str(job.type))
    table.add_row("Status", _status_text(job.status))
    if job.provider:
        table.add_row("Provider", job.provider)
    if job.result:
        for url in job.result.urls:
            table.add_row("URL", url)
        if job.result.thumbnail_url:
            table.add_row("Thumbnail", job.result.thumbnail_url)
        table.add_row("Cost", f"${job.result.cost_estimate:.4f}")
        for warning in job.result.warnings:
            table.add_row("Warning", f"[yellow]{warning}[/yellow]")
    if job.error:
        table.add_row("Error", f"[red]{job.error.message}[/red]")

    console.print(table)
    if job.result and job.result.content:
        console.print(
            Panel(
                json.dumps(job.result.content, indent=2)[:2000],
                title="Content",
                border_style="green",
            )
        )


async def _watch(client: BurstletClient, job_id: str, interval: float | None) -> GenerationJob | None:
    poller = JobPoller(client, interval=interval)

    def on_update(job: GenerationJob) -> None:
        console.print(f"[dim]{job.id}[/dim] {_status_text(job.status)}")

    return await poller.poll_until_terminal(job_id, on_update)


def _submit(
    job_type: JobType,
    request: dict[str, Any],
    watch: bool,
    api_url: str | None,
    user: str,
) -> None:
    async def call(client: BurstletClient) -> GenerationJob | None:
        job = await client.generate(job_type, request)
        console.print(f"[green]Job queued: {job.id}[/green]")
        if not watch:
            return job
        return await _watch(client, job.id, None)

    job = _run(call, api_url, user)
    if job is not None:
        _print_job(job)
        if job.status == JobStatus.FAILED:
            raise typer.Exit(code=1)


ApiUrlOption = typer.Option(None, "--api-url", help="Base URL of the Burstlet API")
UserOption = typer.Option("demo-user", "--user", "-u", help="User id sent as X-User-Id")
WatchOption = typer.Option(False, "--watch", "-w", help="Poll until the job finishes")


# =============================================================================
# Server
# =============================================================================


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
    minimal: bool = typer.Option(False, "--minimal", help="Serve only /health and /"),
) -> None:
    """Run the API server."""
    from burstlet.server import serve as run_server

    mode = run_server(host=host, port=port, reload=reload, minimal=minimal)
    console.print(f"[dim]Server stopped ({mode} mode)[/dim]")


@app.command()
def health(api_url: Optional[str] = ApiUrlOption) -> None:
    """Check that the API is up."""
    data = _run(lambda client: client.health(), api_url, "demo-user")

    table = Table(title="Service Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")

    table.add_row("API", f"{data.get('status')} ({data.get('mode')})")
    table.add_row("Version", str(data.get("version")))
    table.add_row("Environment", str(data.get("environment")))
    for service, configured in (data.get("services") or {}).items():
        table.add_row(service, "✓" if configured else "✗")

    console.print(table)


# =============================================================================
# Generation
# =============================================================================


@generate_app.command("video")
def generate_video(
    prompt: str = typer.Argument(..., help="What the video should show"),
    duration: int = typer.Option(15, "--duration", "-d", help="Duration in seconds"),
    aspect_ratio: str = typer.Option("16:9", "--aspect-ratio", "-a"),
    quality: str = typer.Option("standard", "--quality", "-q"),
    style: Optional[str] = typer.Option(None, "--style", "-s"),
    audio: bool = typer.Option(False, "--audio", help="Add a voiceover track"),
    watch: bool = WatchOption,
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Generate a video from a prompt."""
    request: dict[str, Any] = {
        "prompt": prompt,
        "duration": duration,
        "aspect_ratio": aspect_ratio,
        "quality": quality,
        "include_audio": audio,
    }
    if style:
        request["style"] = style
    _submit(JobType.VIDEO, request, watch, api_url, user)


@generate_app.command("blog")
def generate_blog(
    topic: str = typer.Argument(..., help="Blog post topic"),
    tone: str = typer.Option("professional", "--tone", "-t"),
    length: str = typer.Option("medium", "--length", "-l"),
    keyword: list[str] = typer.Option([], "--keyword", "-k", help="SEO keyword (repeatable)"),
    watch: bool = WatchOption,
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Generate a blog post."""
    request = {"topic": topic, "tone": tone, "length": length, "keywords": keyword}
    _submit(JobType.BLOG, request, watch, api_url, user)


@generate_app.command("social")
def generate_social(
    topic: str = typer.Argument(..., help="What the posts are about"),
    platform: list[str] = typer.Option(
        ["twitter"], "--platform", "-p", help="Target platform (repeatable)"
    ),
    tone: Optional[str] = typer.Option(None, "--tone", "-t"),
    hashtags: bool = typer.Option(True, "--hashtags/--no-hashtags"),
    watch: bool = WatchOption,
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Generate social media posts."""
    request: dict[str, Any] = {
        "topic": topic,
        "platforms": platform,
        "hashtags": hashtags,
    }
    if tone:
        request["tone"] = tone
    _submit(JobType.SOCIAL, request, watch, api_url, user)


@app.command()
def estimate(
    job_type: JobType = typer.Argument(..., help="video, blog or social"),
    params: str = typer.Argument("{}", help="Request parameters as JSON"),
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Estimate what a generation would cost."""
    try:
        data = json.loads(params)
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Invalid JSON: {e}[/bold red]")
        raise typer.Exit(code=1)

    result = _run(lambda client: client.estimate_cost(job_type, data), api_url, user)

    table = Table(title=f"Cost Estimate ({job_type})")
    table.add_column("Item", style="cyan")
    table.add_column("Cost", justify="right")
    for item, cost in result.breakdown.items():
        table.add_row(item, f"${cost:.4f}")
    table.add_row("[bold]Total[/bold]", f"[bold]${result.estimated_cost:.4f}[/bold]")
    table.add_row("Credits", str(result.credits_required))
    console.print(table)


# =============================================================================
# Jobs
# =============================================================================


@jobs_app.command("status")
def job_status(
    job_id: str = typer.Argument(..., help="Generation job id"),
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Show the current state of a job."""
    _print_job(_run(lambda client: client.get_job(job_id), api_url, user))


@jobs_app.command("watch")
def job_watch(
    job_id: str = typer.Argument(..., help="Generation job id"),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Seconds between checks"),
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Poll a job until it finishes."""
    job = _run(lambda client: _watch(client, job_id, interval), api_url, user)
    if job is not None:
        _print_job(job)


@jobs_app.command("cancel")
def job_cancel(
    job_id: str = typer.Argument(..., help="Generation job id"),
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """Cancel a pending or processing job."""
    response = _run(lambda client: client.cancel_job(job_id), api_url, user)
    console.print(f"[green]{response.message}[/green]")
    _print_job(response.job)


@jobs_app.command("list")
def job_list(
    job_type: Optional[JobType] = typer.Option(None, "--type", "-t"),
    status: Optional[JobStatus] = typer.Option(None, "--status", "-s"),
    limit: int = typer.Option(20, "--limit", "-n"),
    api_url: Optional[str] = ApiUrlOption,
    user: str = UserOption,
) -> None:
    """List recent jobs."""
    page = _run(
        lambda client: client.list_jobs(job_type=job_type, status=status, limit=limit),
        api_url,
        user,
    )

    table = Table(title=f"Generation Jobs ({page.total} total)")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Created")
    for job in page.jobs:
        created = job.created_at.strftime("%Y-%m-%d %H:%M") if job.created_at else "-"
        table.add_row(job.id, str(job.type), _status_text(job.status), created)
    console.print(table)


if __name__ == "__main__":
    app()

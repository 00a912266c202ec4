"""PM Pipeline CLI."""

import asyncio

import click
from rich.console import Console
from rich.table import Table

console = Console()

DOCUMENT_CHOICES = ("requirements", "design_options", "task_plan", "management_onepager", "prfaq")

SAMPLE_INTENTS = [
    "Build a dashboard that tracks weekly active users and churn",
    "Create a user profile page with login and search",
    "Automate daily sales reports from the CRM api",
]


def _build_orchestrator():
    from .config import PipelineConfig
    from .orchestrator.logging import setup_logging
    from .orchestrator.orchestrator import Orchestrator

    config = PipelineConfig.from_env()
    setup_logging(config.log_level)
    return Orchestrator(config)


@click.group()
def main():
    """PM Pipeline - intent to optimized spec, with ROI and PM documents."""
    pass


@main.command()
def version():
    """Show version."""
    from . import __version__
    console.print(f"pm-pipeline v{__version__}")


@main.command()
@click.argument("intent")
@click.option("--documents", "-d", multiple=True, type=click.Choice(DOCUMENT_CHOICES),
              help="PM document to generate (repeatable)")
@click.option("--steering-dir", type=click.Path(), default=None,
              help="Write steering files for the generated documents into this directory")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def run(intent: str, documents: tuple, steering_dir: str, as_json: bool):
    """Run the full pipeline for INTENT."""
    import json as json_module
    from pathlib import Path

    orchestrator = _build_orchestrator()
    if steering_dir:
        orchestrator.steering_writer.steering_dir = Path(steering_dir)

    params = {}
    if documents:
        params["generate_pm_documents"] = {name: True for name in documents}
        if steering_dir:
            params["generate_pm_documents"]["steering_options"] = {"create_steering_files": True}

    try:
        result = asyncio.run(orchestrator.process_intent(intent, params))
    finally:
        orchestrator.destroy()

    if as_json:
        console.print(json_module.dumps(result.to_dict(), indent=2, default=str))
        return

    metadata = result.metadata
    if not result.success:
        error = result.error
        console.print(f"[red]Failed at stage {error['stage']}: {error['message']}[/red]")
        console.print(f"  Suggested action: {error['suggested_action']}")
        raise SystemExit(1)

    payload = result.payload
    spec = payload["enhanced_spec"]
    savings = payload["efficiency_summary"]["savings"]

    console.print(f"\n[bold]{spec['name']}[/bold]")
    console.print(f"  {payload['consulting_summary']['executive_summary']}")
    console.print()

    table = Table(title="ROI Scenarios")
    table.add_column("Scenario")
    table.add_column("Vibes", justify="right")
    table.add_column("Specs", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Savings", justify="right")

    best = payload["roi_analysis"]["best_option"]
    for scenario in payload["roi_analysis"]["scenarios"]:
        forecast = scenario["forecast"]
        name = f"[green]{scenario['name']}[/green]" if scenario["name"] == best else scenario["name"]
        table.add_row(
            name,
            str(forecast["vibes_consumed"]),
            str(forecast["specs_consumed"]),
            f"${forecast['estimated_cost']:.2f}",
            f"{scenario['savings_percentage']:.1f}%",
        )
    console.print(table)

    console.print(f"  Savings: {savings['total_savings_percentage']:.1f}% (${savings['cost_savings']:.2f})")
    console.print(f"  Quota used: {metadata['quota_used']}")
    if metadata["optimizations_applied"]:
        console.print(f"  Optimizations: {', '.join(metadata['optimizations_applied'])}")
    if metadata["degraded_stages"]:
        console.print(f"  [yellow]Degraded stages: {', '.join(metadata['degraded_stages'])}[/yellow]")
    if payload["pm_documents"]:
        console.print(f"  Documents: {', '.join(payload['pm_documents'])}")
    if payload["steering_files"]:
        console.print(f"  Steering files: {payload['steering_files']['summary']}")
    console.print(f"  [dim]Session {metadata['session_id']} in {metadata['execution_time']:.1f}ms[/dim]")


@main.command()
@click.argument("idea")
@click.option("--urgency", type=click.Choice(["low", "medium", "high"]), default=None)
@click.option("--team-size", type=int, default=None)
def validate(idea: str, urgency: str, team_size: int):
    """Quick PASS/FAIL check of IDEA."""
    from .orchestrator.errors import ProcessingError

    context = {k: v for k, v in {"urgency": urgency, "team_size": team_size}.items() if v is not None}
    orchestrator = _build_orchestrator()
    try:
        result = asyncio.run(orchestrator.validate_idea_quick(idea, context or None))
    except ProcessingError as e:
        console.print(f"[red]Invalid idea: {e.message}[/red]")
        raise SystemExit(1)
    finally:
        orchestrator.destroy()

    style = "green" if result["verdict"] == "PASS" else "red"
    console.print(f"\n[bold][{style}]{result['verdict']}[/{style}][/bold]: {result['reasoning']}")
    for option in result["options"]:
        console.print(f"  {option['id']}. [cyan]{option['title']}[/cyan] - {option['description']}")
        console.print(f"     Next: {option['next_step']}")


@main.command()
@click.option("--runs", "-n", default=2, help="Passes over the sample intents")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def metrics(runs: int, as_json: bool):
    """Run the sample intents and show the performance summary."""
    import json as json_module

    orchestrator = _build_orchestrator()

    async def exercise():
        for _ in range(runs):
            await orchestrator.warmup_cache(SAMPLE_INTENTS)

    try:
        asyncio.run(exercise())
        summary = orchestrator.get_performance_summary()
    finally:
        orchestrator.destroy()

    if as_json:
        console.print(json_module.dumps(summary, indent=2))
        return

    m = summary["metrics"]
    status = summary["status"]
    style = {"excellent": "green", "good": "green", "acceptable": "yellow"}.get(status, "red")

    console.print("\n[bold]Pipeline Performance[/bold]")
    console.print("-" * 35)
    console.print(f"  Status:      [{style}]{status}[/{style}]")
    console.print(f"  Executions:  {m['execution_count']}")
    console.print(f"  Avg time:    {m['average_duration_ms']:.1f}ms")
    console.print(f"  Cache hits:  {m['cache_hit_rate']:.0%}")
    console.print(f"  Errors:      {m['error_rate']:.0%}")
    console.print(f"  Cache size:  {summary['cache_stats']['size']} entries")
    console.print("-" * 35)

    if summary["recommendations"]:
        console.print("\n[yellow]Recommendations:[/yellow]")
        for recommendation in summary["recommendations"]:
            console.print(f"  - {recommendation}")


if __name__ == "__main__":
    main()

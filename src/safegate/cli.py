"""SAFE Gate CLI.

Commands:
    safegate classify   - Classify exposure data and show whether approval is required
    safegate policy     - Show the effective risk policy and approval settings
    safegate serve      - Start the human approval web service
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from safegate import __version__
from safegate.config import get_settings, load_risk_policy, resolve_risk_policy
from safegate.logging import setup_logging
from safegate.models import ExposureSnapshot, NewsSignal, RiskLevel
from safegate.risk.classifier import RiskClassifier, requires_approval

app = typer.Typer(
    name="safegate",
    help="SAFE Gate - risk-gated approval workflow for counterparty actions",
    no_args_is_help=True,
)
console = Console()

RISK_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"SAFE Gate v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    _version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-V", help="Enable verbose logging"),
    ] = False,
) -> None:
    """SAFE Gate - risk-gated approval workflow."""
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    setup_logging(level=log_level, log_file=settings.log_file)


def _parse_amount(value: str, name: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        console.print(f"[red]Invalid {name}: {value!r}[/red]")
        raise typer.Exit(2) from None


def _validation_summary(err: ValidationError) -> str:
    """Summarize validation errors as "field: message" pairs."""
    parts = []
    for error in err.errors():
        field = ".".join(str(loc) for loc in error["loc"]) or "value"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


# =============================================================================
# Classify Command
# =============================================================================


@app.command()
def classify(
    exposure: Annotated[
        str,
        typer.Option("--exposure", "-e", help="Current exposure amount"),
    ],
    counterparty: Annotated[
        str,
        typer.Option("--counterparty", "-c", help="Counterparty identifier"),
    ] = "cli",
    collateral: Annotated[
        str,
        typer.Option("--collateral", help="Collateral held"),
    ] = "0",
    limit: Annotated[
        str,
        typer.Option("--limit", "-l", help="Exposure limit"),
    ] = "0",
    volatility: Annotated[
        float,
        typer.Option("--volatility", help="Market volatility as a fraction"),
    ] = 0.0,
    rating: Annotated[
        str,
        typer.Option("--rating", "-r", help="Credit rating grade"),
    ] = "",
    news: Annotated[
        str | None,
        typer.Option("--news", help="News sentiment: positive, negative or neutral"),
    ] = None,
    policy_file: Annotated[
        Path | None,
        typer.Option("--policy-file", "-p", help="YAML risk policy file"),
    ] = None,
) -> None:
    """Classify exposure data against the risk policy.

    Example:
        safegate classify --exposure 600000 --collateral 100000 --rating BBB
        safegate classify -e 50000 --news negative --collateral 10000
    """
    if policy_file is not None and not policy_file.exists():
        console.print(f"[red]Policy file not found: {policy_file}[/red]")
        raise typer.Exit(1)

    try:
        policy = resolve_risk_policy(get_settings())
        if policy_file is not None:
            policy = load_risk_policy(policy_file, base=policy)
    except ValidationError as e:
        console.print(f"[red]Invalid risk policy: {escape(_validation_summary(e))}[/red]")
        raise typer.Exit(2) from None
    except ValueError as e:
        console.print(f"[red]Invalid risk policy: {escape(str(e))}[/red]")
        raise typer.Exit(2) from None

    if news is not None and news not in ("positive", "negative", "neutral"):
        console.print(f"[red]Invalid news sentiment: {news}[/red]")
        raise typer.Exit(2)

    try:
        snapshot = ExposureSnapshot(
            counterparty_id=counterparty,
            current_exposure=_parse_amount(exposure, "exposure"),
            exposure_limit=_parse_amount(limit, "limit"),
            collateral_held=_parse_amount(collateral, "collateral"),
            market_volatility=volatility,
            credit_rating=rating,
            news=NewsSignal(sentiment=news) if news else None,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid exposure data: {escape(_validation_summary(e))}[/red]")
        raise typer.Exit(2) from None

    classifier = RiskClassifier(policy)
    level = classifier.classify(snapshot)
    color = RISK_COLORS[level]

    console.print(f"Risk level: [{color}]{level.value}[/{color}]")
    if requires_approval(level):
        console.print("[bold yellow]Human approval required before execution[/bold yellow]")
    else:
        console.print("[green]May proceed without approval[/green]")

    reasons = classifier.explain(snapshot)
    if reasons:
        console.print("\n[bold]Triggered rules:[/bold]")
        for reason in reasons:
            console.print(f"  - {reason}")


# =============================================================================
# Policy Command
# =============================================================================


@app.command()
def policy() -> None:
    """Show the effective risk policy and approval settings."""
    settings = get_settings()
    risk_policy = resolve_risk_policy(settings)

    table = Table(title="Effective Policy")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("High exposure threshold", str(risk_policy.high_threshold))
    table.add_row("Critical exposure threshold", str(risk_policy.critical_threshold))
    table.add_row("Volatility threshold", f"{risk_policy.volatility_threshold:.2f}")
    table.add_row("Policy file", str(risk_policy.policy_file or "-"))
    table.add_row("Approval timeout (hours)", f"{settings.approval.timeout_hours:g}")
    table.add_row("Sweep interval (seconds)", f"{settings.approval.sweep_interval_seconds:g}")
    table.add_row("Sweep enabled", str(settings.approval.sweep_enabled))

    console.print(table)


# =============================================================================
# Serve Command
# =============================================================================


@app.command()
def serve(
    host: Annotated[
        str,
        typer.Option("--host", "-h", help="Host to bind to"),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to bind to"),
    ] = 8080,
) -> None:
    """Start the human approval web service.

    Approval state is held in memory and is lost when the service stops.

    Example:
        safegate serve --port 8080
    """
    import uvicorn

    from safegate.web import create_app

    console.print(f"[bold green]Starting approval service at http://{host}:{port}[/bold green]")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    web_app = create_app()
    uvicorn.run(web_app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    app()

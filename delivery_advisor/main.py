# delivery_advisor/main.py
"""
Command line entry point: delivery analysis, route history generation,
known cities and payment recommendations.
"""
import json
import os
from datetime import datetime
from typing import List, Optional

import typer
import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from typing_extensions import Annotated

from . import config
from .advisor import DeliveryAdvisor
from .core.cities import CityDirectory
from .core.export import Exporter
from .core.history import RouteHistoryBuilder
from .errors import DeliveryAdvisorError
from .models import CartProject, UserPreferences
from .payments import PaymentEngine

load_dotenv()
app = typer.Typer(help="Delivery recommendations and price estimates for print orders.")
console = Console()

OUTPUT_FORMATS = ["preview", "csv", "json", "parquet", "xlsx", "all", "all_but_xlsx"]


def _load_projects(path: str) -> List[CartProject]:
    """Reads the projects of an order from a JSON array (or an object with a "projects" key)."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Projects file not found at path: {path}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("projects", [])
    return [CartProject(**item) for item in data]


@app.callback()
def main(
    log_file: Annotated[Optional[str], typer.Option(help="Also write the log to this file.")] = None,
):
    """Delivery recommendations and price estimates for print orders."""
    if log_file:
        config.setup_file_logging(log_file)


def _check_format(output_format: str):
    if output_format not in OUTPUT_FORMATS:
        console.print(f"[bold red]Error:[/bold red] Unknown output format '{output_format}'. Choose one of: {', '.join(OUTPUT_FORMATS)}")
        raise typer.Exit(code=1)


@app.command()
def analyze(
    projects_file: Annotated[str, typer.Argument(help="JSON file with the projects of the order.")],
    destination: Annotated[str, typer.Option(help="Destination city (English or Ukrainian name).")],
    budget: Annotated[str, typer.Option(help="Budget preference: low, medium or high.")] = "medium",
    speed: Annotated[str, typer.Option(help="Speed preference: low, medium or high.")] = "medium",
    reliability: Annotated[str, typer.Option(help="Reliability preference: low, medium or high.")] = "medium",
    payment_method: Annotated[Optional[str], typer.Option(help="Also quote the order with this payment method.")] = None,
    output_path: Annotated[str, typer.Option(help="Base path for output files (without extension).")] = config.ANALYSIS_FILENAME_BASE,
    cities_file: Annotated[Optional[str], typer.Option(help="City table to use instead of the built-in one.")] = None,
    output_format: Annotated[str, typer.Option(help="Output format.")] = "preview",
):
    """Recommends a delivery option for an order and lists the alternatives."""
    _check_format(output_format)
    try:
        projects = _load_projects(projects_file)
        preferences = UserPreferences(budget=budget, speed=speed, reliability=reliability)
        directory = CityDirectory.from_file(cities_file) if cities_file else None
        advisor = DeliveryAdvisor.from_env(cities=directory)
        analysis = advisor.analyze_delivery(projects, destination, preferences)
        quote = advisor.quote_order(projects, destination, payment_method, preferences) if payment_method else None
    except (DeliveryAdvisorError, ValidationError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Delivery to {analysis.destination.name}")
    table.add_column("Method", style="cyan")
    table.add_column("Provider", style="magenta")
    table.add_column("Total (UAH)", justify="right", style="green")
    table.add_column("Days", justify="right")
    table.add_column("On-time %", justify="right")
    table.add_column("Delay risk")
    for i, option in enumerate([analysis.recommended] + analysis.alternatives):
        marker = " *" if i == 0 else ""
        table.add_row(
            f"{option.method}{marker}",
            option.provider,
            f"{option.total_cost:.2f}",
            f"{option.estimated_days.min}-{option.estimated_days.max}",
            f"{option.predictions.on_time_probability:.0f}",
            option.predictions.delay_risk,
        )
    console.print(table)

    console.print(f"[bold]Recommended:[/bold] {analysis.recommended.method} (confidence {analysis.confidence_score:.1f}%)")
    for reason in analysis.recommendation_reasons:
        console.print(f"  - {reason}")
    for optimization in analysis.optimizations:
        console.print(f"[dim]{optimization.type}: {optimization.suggestion}[/dim]")

    if quote:
        console.print(
            f"[bold]Order total with {quote.payment_method}:[/bold] {quote.total:.2f} {quote.currency} "
            f"(payment fee {quote.payment_fee:.2f}, savings {quote.savings:.2f})"
        )

    written = Exporter({"output": {"path": output_path, "format": output_format}}).export_analysis(analysis)
    for path in written:
        console.print(f"[dim]Written {path}[/dim]")


@app.command()
def history(
    generate_rows: Annotated[int, typer.Option(help="Number of delivery records to generate.")] = config.DEFAULT_HISTORY_ROWS,
    seed: Annotated[Optional[int], typer.Option(help="Seed for reproducible records.")] = None,
    output_path: Annotated[str, typer.Option(help="Base path for output files (without extension).")] = config.HISTORY_FILENAME_BASE,
    output_format: Annotated[str, typer.Option(help="Output format.")] = "csv",
):
    """Generates synthetic delivery records and writes the per-route statistics."""
    _check_format(output_format)
    if generate_rows <= 0:
        console.print("[bold red]Error:[/bold red] --generate-rows must be a positive number.")
        raise typer.Exit(code=1)

    builder = RouteHistoryBuilder(seed=seed)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn()
    ) as progress:
        task = progress.add_task(f"[green]Generating {generate_rows:,} records...", total=generate_rows)
        records = builder.generate_records(generate_rows, progress, task)
        progress.update(task, description=f"[green]Generation complete ({records.height:,} records)")

    transformed = builder.transform(records)
    stats = builder.aggregate(transformed)

    table = Table(title="Route statistics")
    table.add_column("Route", style="cyan")
    table.add_column("Avg days", justify="right")
    table.add_column("On-time %", justify="right", style="green")
    table.add_column("Damage %", justify="right", style="red")
    table.add_column("Satisfaction", justify="right")
    for row in stats.iter_rows(named=True):
        table.add_row(
            row["Route"],
            f"{row['Average_Time']:.2f}",
            f"{row['On_Time_Rate']:.2f}",
            f"{row['Damage_Rate']:.2f}",
            f"{row['Customer_Satisfaction']:.2f}",
        )
    console.print(table)

    exporter = Exporter({"output": {"path": output_path, "format": output_format}})
    written = exporter.export_table(stats, extra={"source_records": records.height})
    written += exporter.export_table(records, base_path=f"{output_path}_records")
    for path in written:
        console.print(f"[dim]Written {path}[/dim]")
    if written:
        console.print(f"Set DELIVERY_HISTORY_PATH={written[0]} to use these statistics in analyses.")


@app.command()
def cities(
    cities_file: Annotated[Optional[str], typer.Option(help="City table to list instead of the built-in one.")] = None,
):
    """Lists the destinations the studio ships to."""
    try:
        directory = CityDirectory.from_file(cities_file) if cities_file else CityDirectory()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Cities")
    table.add_column("City", style="cyan")
    table.add_column("Місто")
    table.add_column("Region", style="magenta")
    table.add_column("Avg days", justify="right")
    table.add_column("Warehouses", justify="right")
    table.add_column("Courier")
    for city in directory.cities:
        table.add_row(
            city.name,
            city.name_ua,
            city.region,
            str(city.logistics.average_delivery_days),
            f"{city.logistics.warehouse_count:,}",
            "yes" if city.logistics.courier_available else "no",
        )
    console.print(table)


@app.command()
def pay(
    amount: Annotated[float, typer.Argument(help="Order total in UAH.")],
    user_agent: Annotated[str, typer.Option(help="Browser user agent of the customer.")] = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
    previous_method: Annotated[Optional[List[str]], typer.Option(help="Payment method of a previous order (repeatable).")] = None,
    session: Annotated[Optional[str], typer.Option(help="Session key selecting the presentation variant.")] = None,
):
    """Ranks payment methods for a customer and an order total."""
    engine = PaymentEngine()
    order_history = [{"payment_method": method} for method in previous_method or []]
    profile = engine.analyze_user_profile(user_agent, amount, order_history, datetime.now())
    recommendations = engine.get_payment_recommendations(profile, amount, session_key=session)

    table = Table(title=f"Payment methods for {amount:.2f} UAH ({profile.device_type})")
    table.add_column("Method", style="cyan")
    table.add_column("Confidence", justify="right", style="green")
    table.add_column("Total (UAH)", justify="right")
    table.add_column("Savings", justify="right")
    table.add_column("Friction", justify="right", style="red")
    table.add_column("Why")
    for rec in recommendations:
        table.add_row(
            rec.method,
            f"{rec.confidence:.1f}",
            f"{rec.total_cost:.2f}",
            f"{rec.savings:.2f}" if rec.savings else "-",
            f"{rec.user_friction_score:.0f}",
            "; ".join(rec.reasoning),
        )
    console.print(table)
    if recommendations:
        console.print(f"[bold]Suggested:[/bold] {recommendations[0].method}")


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8000,
):
    """Starts the HTTP API."""
    uvicorn.run("delivery_advisor.api:app", host=host, port=port)


if __name__ == "__main__":
    app()

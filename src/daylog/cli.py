# file: src/daylog/cli.py
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.daylog.config import load_config
from src.daylog.errors import DataFormatError, WindowError
from src.daylog.io_utils import read_unified
from src.daylog.tasks import run_full_pipeline
from src.daylog.validate import validate_daily_index

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _strip_ipykernel_args(argv: list[str]) -> list[str]:
    """Jupyter/ipykernel injects `-f <connection_file>` into sys.argv."""
    out = [argv[0]]
    i = 1
    while i < len(argv):
        a = argv[i]
        if a in ("-f", "--f"):
            i += 2  # skip flag + value
            continue
        if a.startswith("--f="):
            i += 1
            continue
        out.append(a)
        i += 1
    return out


@app.command()
def run(
    steps: Optional[str] = typer.Option(None, help="Step count CSV"),
    transit: Optional[str] = typer.Option(None, help="Transit trips CSV"),
    expenses: Optional[str] = typer.Option(None, help="Card expenses CSV"),
    start_date: Optional[str] = typer.Option(None, help="First day of the window (inclusive)"),
    end_date: Optional[str] = typer.Option(None, help="Last day of the window (inclusive)"),
    flag_resolution: Optional[str] = typer.Option(None, help="any | majority"),
    places: Optional[str] = typer.Option(None, help="Place -> category map (.json or two-column .csv)"),
    food_category: Optional[str] = typer.Option(None, help="Broad expense category counted as food"),
    essential: Optional[str] = typer.Option(None, help="Comma-separated essential food categories"),
    output_dir: Optional[str] = typer.Option(None, help="Where unified_daily.parquet is written"),
    overwrite: bool = False,
):
    """Run the pipeline over three files and a date window."""
    try:
        cfg = load_config(
            location_map=places,
            steps_path=steps,
            transit_path=transit,
            expenses_path=expenses,
            start_date=start_date,
            end_date=end_date,
            flag_resolution=flag_resolution,
            food_category=food_category,
            essential_food_categories=essential,
            output_dir=output_dir,
            overwrite=overwrite,
        )
        results = run_full_pipeline(cfg)
    except (DataFormatError, WindowError, ValueError, FileNotFoundError) as e:
        console.print(f"[red]Pipeline failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    table = Table(title="Pipeline Results")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in results.items():
        table.add_row(str(k), str(v))

    console.print(table)


@app.command()
def validate(path: str = typer.Argument(..., help="unified_daily.parquet")):
    """Integrity report for a written unified table."""
    try:
        df = read_unified(Path(path))
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Cannot validate:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    result = validate_daily_index(df)

    table = Table(title=f"Validation: {'PASS' if result.is_valid else 'FAIL'}")
    table.add_column("Check", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("rows", str(result.n_rows))
    table.add_row("duplicates", str(result.n_duplicates))
    table.add_row("missing days", str(result.n_missing_days))
    table.add_row("nulls", str(result.n_nulls))
    table.add_row("negative", str(result.n_negative))
    table.add_row("monotonic", str(result.is_monotonic))
    console.print(table)

    if not result.is_valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    sys.argv = _strip_ipykernel_args(sys.argv)
    app(standalone_mode=False)  # <-- prevents SystemExit in Jupyter

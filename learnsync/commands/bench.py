"""CLI commands for timing interactive actions."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import typer

from ..config.constants import DEFAULT_BENCHMARK_ITERATIONS
from ..services.benchmark import BenchmarkResult, BenchmarkRunner
from ..services.local_store import HybridDataStore, JsonCollectionStore
from ..utils.output import console, print_json
from ._helpers import handle_command_error

app = typer.Typer(help="Micro-benchmarks")


async def _benchmark_toggles(root: Path, iterations: int) -> BenchmarkResult:
    store = HybridDataStore(JsonCollectionStore(root))

    async def toggle(week: int, day: int, lesson_index: int, title: str) -> None:
        await store.save_progress(
            f"w{week}d{day}l{lesson_index}", week, day, lesson_index, "completed"
        )

    return await BenchmarkRunner().measure_repeated(toggle, iterations)


@app.command()
@handle_command_error("benchmarking lesson toggles")
def toggle(
    iterations: int = typer.Option(
        DEFAULT_BENCHMARK_ITERATIONS, "--iterations", "-n", help="Number of toggles to time"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Time lesson toggles against a scratch progress store."""
    with tempfile.TemporaryDirectory(prefix="learnsync-bench-") as tmp:
        result = asyncio.run(_benchmark_toggles(Path(tmp), iterations))

    if json_output:
        print_json(
            {
                "average": result.average,
                "min": result.minimum,
                "max": result.maximum,
                "results": result.results,
                "passed": result.passed,
            }
        )
        return

    console.print("Performance test results:")
    console.print(f"  Average: {result.average:.2f}ms")
    console.print(f"  Min: {result.minimum:.2f}ms")
    console.print(f"  Max: {result.maximum:.2f}ms")
    console.print(f"  Target: <{result.target_ms:g}ms")
    status = "[green]PASSED[/green]" if result.passed else "[red]FAILED[/red]"
    console.print(f"  Status: {status}")

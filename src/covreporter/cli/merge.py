from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from covreporter.cli._shared import configure_runtime, read_results_or_exit, write_output
from covreporter.cli.exit_codes import EXIT_OK
from covreporter.engine.merge import merge
from covreporter.model.coverage import CoverageMap


def register(app: typer.Typer) -> None:
    @app.command("merge")
    def merge_cmd(
        results: Annotated[
            list[Path],
            typer.Argument(help="Coverage files to merge (Istanbul JSON or Cobertura XML)."),
        ],
        output: Annotated[
            Path | None,
            typer.Option("-o", "--output", help="Write merged JSON to PATH (use '-' for stdout)."),
        ] = None,
        quiet: Annotated[bool, typer.Option("-q", "--quiet", help="Suppress INFO logs")] = False,
    ) -> None:
        """Merge coverage files into one Istanbul coverage JSON document."""
        configure_runtime(quiet=quiet, verbose=False)
        merged = CoverageMap()
        for result in read_results_or_exit(results):
            if result.coverage is not None:
                merge(merged, result.coverage)
        write_output(json.dumps(merged.to_dict(), sort_keys=True), output)
        raise typer.Exit(code=EXIT_OK)


__all__ = ["register"]

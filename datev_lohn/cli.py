"""CLI commands using Typer."""

import logging
from pathlib import Path
from typing import Optional
import typer

from datev_lohn.config import configure_logging, get_settings
from datev_lohn.errors import DatevExtractionError
from datev_lohn.output import OutputGenerator, generate_statistics
from datev_lohn.pipeline import bundle_result, process_pdf

app = typer.Typer(help="DATEV payroll PDF splitter")


def _version_callback(value: bool):
    if value:
        from datev_lohn import __version__
        typer.echo(f"datev-lohn version {__version__}")
        raise typer.Exit()


@app.command()
def split(
    infile: str = typer.Argument(..., help="DATEV PDF file to process"),
    output: str = typer.Option(".", "--output", "-o", help="Output directory"),
    bundle: bool = typer.Option(False, "--zip", help="Write a single ZIP bundle instead of separate files"),
    stats: bool = typer.Option(False, "--stats", help="Also write form statistics as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug information to stderr"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Split a DATEV salary statement PDF into employee and company documents.

    Writes one PDF per employee and per company-wide period, plus a SEPA
    transfers CSV, into the output directory.
    """
    try:
        settings = get_settings()
        configure_logging(logging.DEBUG if verbose else settings.log_level_value)

        pdf_bytes = Path(infile).read_bytes()
        result = process_pdf(pdf_bytes, settings)

        output_gen = OutputGenerator(output)
        if bundle:
            output_gen.write_bundle(bundle_result(result, settings))
        else:
            for pdf in result.personnel_pdfs:
                output_gen.write_personnel_pdf(pdf)
            for pdf in result.company_pdfs:
                output_gen.write_company_pdf(pdf)
            output_gen.write_sepa_csv(result.sepa_csv, settings.sepa_filename)

        if stats:
            output_gen.write_statistics(generate_statistics(result.pages), settings.stats_filename)

    except (DatevExtractionError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Processed {Path(infile).name} -> {output}")


if __name__ == "__main__":
    app()

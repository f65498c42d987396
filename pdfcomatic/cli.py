"""\b
Command-line interface entry point for *pdfcomatic*.

    pdfcomatic-cli [OPTIONS] PDF_IN DCM_REF DCM_OUT DOC_TITLE SERIES_NUM

The command resolves the output style and logging first, then loads the
configuration and hands the five positional arguments to
:func:`pdfcomatic.pipelines.encapsulate.encapsulate`.  Domain errors are
reported on stderr and mapped to exit status 1; usage errors keep click's
status 2.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any, Dict

import click

from pdfcomatic import __version__
from pdfcomatic.config import load_config
from pdfcomatic.models import InvocationArgs
from pdfcomatic.pipelines.encapsulate import encapsulate
from pdfcomatic.utils.display import Diagnostics, OutputStyle
from pdfcomatic.utils.errors import InterruptedRun, PdfcomaticError
from pdfcomatic.utils.logging import setup_logging
from pdfcomatic.utils.signals import interrupt_guard


class HelpFirstCommand(click.Command):
    """Click command that answers ``-h``/``--help`` before anything else.

    Plain click stops at the first unknown option, so ``-x --help`` would be
    a usage error.  Help requested anywhere before a bare ``--`` wins here.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        scanned = args[: args.index("--")] if "--" in args else args
        if any(token in ctx.help_option_names for token in scanned):
            click.echo(ctx.get_help(), color=ctx.color)
            ctx.exit()
        return super().parse_args(ctx, args)


_CTX: Dict[str, Any] = dict(
    help_option_names=["-h", "--help"],
    max_content_width=120,
)


@click.command(
    name="pdfcomatic-cli",
    cls=HelpFirstCommand,
    context_settings=_CTX,
    help="""\b
Wrap PDF_IN into a DICOM Encapsulated PDF object written to DCM_OUT.

\b
Patient and study context is copied from DCM_REF.  DOC_TITLE becomes the
document title, protocol name and series description; SERIES_NUM must be an
unsigned integer.

\b
Environment:
  PDF2DCM_ISSUEROFPATIENTID_ENV  Issuer of Patient ID (default from config, "AAA").
  NO_COLOR                       Disable coloured diagnostics.
  PDFCOMATIC_CONFIG              Configuration file used when --config is absent.
  PDFCOMATIC_LOG_DIR             Also write a rotating log file into this folder.
""",
)
@click.version_option(__version__)
@click.argument("pdf_in", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("dcm_ref", type=click.Path(path_type=Path))
@click.argument("dcm_out", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("doc_title")
@click.argument("series_num")
@click.option("--no-color", is_flag=True, help="Disable ANSI colours in diagnostics.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML configuration file (overrides $PDFCOMATIC_CONFIG).",
)
@click.option("-v", "--verbose", is_flag=True, help="INFO-level console output.")
@click.option("--debug", is_flag=True, help="DEBUG-level console output.")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Read the reference and print the pdf2dcm command without running it.",
)
@click.pass_context
def main(  # noqa: D401 – Click callback
    ctx: click.Context,
    pdf_in: Path,
    dcm_ref: Path,
    dcm_out: Path,
    doc_title: str,
    series_num: str,
    no_color: bool,
    config_path: Path | None,
    verbose: bool,
    debug: bool,
    dry_run: bool,
) -> None:
    """Root command executed by *pdfcomatic-cli*.

    Args:
        ctx: Click runtime context.
        pdf_in: PDF document to encapsulate.
        dcm_ref: Reference DICOM file.
        dcm_out: Destination DICOM file.
        doc_title: Document title.
        series_num: Series number, kept verbatim.
        no_color: Disable colour regardless of the terminal.
        config_path: Optional YAML configuration file.
        verbose: Emit INFO-level messages.
        debug: Emit DEBUG-level messages.
        dry_run: Print the ``pdf2dcm`` command instead of running it.
    """
    # ── 1. Output style and logging ─────────────────────────────────────
    style = OutputStyle.resolve(no_color=no_color)
    ctx.color = style.color
    diag = Diagnostics(style)
    setup_logging(verbose=verbose, debug=debug, color=style.color)

    args = InvocationArgs(
        pdf_in=pdf_in,
        dcm_ref=dcm_ref,
        dcm_out=dcm_out,
        doc_title=doc_title,
        series_num=series_num,
    )

    # ── 2. Run the pipeline; the first failure ends the run ────────────
    try:
        cfg = load_config(config_path)
        with interrupt_guard():
            result = encapsulate(args, cfg, dry_run=dry_run)
    except InterruptedRun as exc:
        diag.error(str(exc))
        ctx.exit(exc.exit_code)
    except PdfcomaticError as exc:
        diag.error(str(exc))
        ctx.exit(1)

    # ── 3. Report ───────────────────────────────────────────────────────
    if dry_run:
        # Reference values may carry raw bytes from dcmdump; emit them as such.
        click.echo(os.fsencode(shlex.join(result.command)))
    elif verbose or debug:
        diag.success(f"Wrote {dcm_out}")


__all__: list[str] = ["main"]

"""
Module entry-point that makes the package runnable with

    python -m pdfcomatic

The behaviour is identical to the *pdfcomatic-cli* console script.
"""

from pdfcomatic.cli import main

if __name__ == "__main__":  # pragma: no cover
    main()

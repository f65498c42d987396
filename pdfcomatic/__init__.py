"""
pdfcomatic package initialisation.

Wraps a PDF report into a DICOM Encapsulated PDF object whose patient and
study context is copied from an existing reference DICOM file.

Module attributes
-----------------
__version__ : str
    Version of the installed distribution.
load_config : Callable
    Shortcut to :pyfunc:`pdfcomatic.config.load_config`.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("pdfcomatic")
except PackageNotFoundError:
    # Source tree without installed metadata.
    __version__ = "0.0.0"

from .config import load_config  # noqa: E402

__all__: list[str] = ["load_config", "__version__"]

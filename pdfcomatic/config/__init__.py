"""
Configuration package façade.

* :func:`load_config` – locate, merge, and validate the YAML configuration.
* :class:`ConfigSchema` – Pydantic model of the validated configuration.
"""

from .loader import load_config  # noqa: F401
from .schema import ConfigSchema  # noqa: F401

__all__: list[str] = ["load_config", "ConfigSchema"]

"""ops-briefing - budget-aware context assembly for daily work briefings."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("ops-briefing")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.1.0"

from ops_briefing.config import BriefingConfig, get_config

__all__ = ["__version__", "BriefingConfig", "get_config"]

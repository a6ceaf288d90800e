"""site-explorer: resilient site directory and license access for a hosted collaboration platform."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_package_version

try:
    __version__ = _get_package_version("site-explorer")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for dev without install

__all__ = ["__version__"]

"""Weather Lookup client core"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("weather-lookup")
except PackageNotFoundError:
    __version__ = "dev"

"""kryten-xboxlive — Xbox Live profile lookup microservice."""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kryten-xboxlive")
except PackageNotFoundError:
    __version__ = "0.0.0"

# petrikit/version.py
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("petrikit")
except PackageNotFoundError:
    # running from a source checkout
    __version__ = "0.1.0.dev0"

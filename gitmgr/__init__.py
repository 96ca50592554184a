"""gitmgr - structured access to git repositories for CLIs and local services."""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("gitmgr")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for editable installs / dev

"""smfrec — record live MIDI input to a Standard MIDI File."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("smfrec")
except PackageNotFoundError:
    # Dev environment without metadata: read pyproject.toml directly
    try:
        import tomllib
        from pathlib import Path

        _toml = Path(__file__).resolve().parent.parent / "pyproject.toml"
        with open(_toml, "rb") as f:
            __version__ = tomllib.load(f)["project"]["version"]
    except (ImportError, OSError, KeyError):
        __version__ = "0.0.0-dev"

try:
    from importlib.metadata import version as _get_version

    __version__ = _get_version("flood-twin")
except Exception:
    __version__ = "unknown"

"""Top-level package for the exam session toolkit.

Provides subpackages:
- exam_toolkit.core – immutable paper/answer models, schema validation, loading
- exam_toolkit.scoring – answer validation against multi-alternative mark schemes
- exam_toolkit.session – session state machine and visitation tracking
- exam_toolkit.results – post-submission results aggregation
- exam_toolkit.gui – Qt adapter driving the session timer and key handling
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"

    if pyproject.exists():
        try:
            content = pyproject.read_text()
            for line in content.splitlines():
                if line.strip().startswith("version"):
                    # Parse: version = "0.3.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    # Fallback to importlib.metadata for installed package
    try:
        from importlib.metadata import version as pkg_version
        return pkg_version("exam_toolkit")
    except Exception:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]

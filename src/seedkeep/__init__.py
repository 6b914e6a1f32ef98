"""SeedKeep - cereal seed inventory tracker.

Staff browse, filter, edit, import and export inventory entries through a
tabular data-grid engine; every edit leaves an audit trail.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

"""CLI command groups."""

__all__ = [
    "attendance",
    "backup",
    "config",
    "payments",
    "taxonomy",
    "workers",
]

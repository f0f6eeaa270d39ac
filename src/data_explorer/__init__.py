"""Data Explorer Tools: analytical tools over static tabular datasets.

The backend serves a small tool catalog over HTTP; a host-side relay forwards
JSON-RPC calls from an embedded app to that backend and relays the results.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"

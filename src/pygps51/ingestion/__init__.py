"""Ingestion layer.

This package turns loosely-typed GPS51 payloads into validated records and
enriches position samples (e.g. ignition backfill from ACC reports).
"""

__all__: list[str] = []

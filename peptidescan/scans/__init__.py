"""Scan-keyed collection and reconciliation of identifications."""

from .reconciliation import (
    ScanCollection,
    ScanReconciler,
    collect_scans,
    index_scans,
    reconcile,
)

__all__ = [
    'ScanCollection',
    'ScanReconciler',
    'collect_scans',
    'index_scans',
    'reconcile',
]

"""Scan-level reconciliation across dataset tiers.

Each PSM carries a scan key ``<fileNumber>:<scanNumber>``. Collecting the
identifications of one tier by scan key gives one ScanRecord per key; the
records of the Combined and Individual tiers are then merged into the
Primary (UniProt) records so every scan lists what each database assigned
to it.

Reconciliation is asymmetric: only keys present in the Primary collection
appear in the result. The other collection is indexed by key first, so one
pass costs O(|primary| + |other|) instead of comparing every pair of scans.

Examples
--------
>>> primary = {"F1:100": ScanRecord("F1:100")}
>>> primary["F1:100"].add(DatasetTier.PRIMARY, "AAA", 50.0)
True
>>> other = {"F1:100": ScanRecord("F1:100")}
>>> _ = other["F1:100"].add(DatasetTier.COMBINED, "AAA", 48.0)
>>> _ = other["F1:100"].add(DatasetTier.COMBINED, "BBB", 31.0)
>>> merged = reconcile(primary, other, DatasetTier.COMBINED)
>>> merged["F1:100"].hits(DatasetTier.COMBINED).sequences
['BBB']
"""

import logging
from typing import Dict, Iterable, Mapping, Optional, Union

from ..constants import DatasetTier, PROGRESS_INTERVAL
from ..records import Identification, ScanRecord
from ..workers import WorkerPool

logger = logging.getLogger(__name__)

ScanCollection = Dict[str, ScanRecord]


def collect_scans(
    identifications: Iterable[Identification],
    tier: Optional[DatasetTier] = None,
) -> ScanCollection:
    """Group PSM observations by scan key.

    Parameters
    ----------
    identifications : Iterable[Identification]
        Identifications of one tier
    tier : DatasetTier, optional
        Tier to file the sequences under; defaults to each
        identification's own tier

    Returns
    -------
    scans : Dict[str, ScanRecord]
        Records keyed by scan key, in order of first observation. A
        sequence is listed once per scan and tier.
    """
    scans: ScanCollection = {}
    for ident in identifications:
        target_tier = ident.tier if tier is None else tier
        for scan_key, score in ident.observations():
            record = scans.get(scan_key)
            if record is None:
                record = ScanRecord(scan_key=scan_key, method=ident.method)
                scans[scan_key] = record
            record.add(target_tier, ident.sequence, score)
    return scans


def index_scans(scans: Union[Mapping[str, ScanRecord], Iterable[ScanRecord]]) -> Mapping[str, ScanRecord]:
    """Hash scan records by key.

    Mappings are returned unchanged. For a plain iterable, records sharing a
    key are merged into one copy (first record's method wins).
    """
    if isinstance(scans, Mapping):
        return scans

    index: ScanCollection = {}
    for record in scans:
        existing = index.get(record.scan_key)
        if existing is None:
            index[record.scan_key] = record.copy()
            continue
        for tier, hits in record.tiers.items():
            for sequence, score in hits.pairs():
                existing.add(tier, sequence, score)
    return index


def reconcile(
    primary_scans: Mapping[str, ScanRecord],
    other_scans: Union[Mapping[str, ScanRecord], Iterable[ScanRecord]],
    tier: DatasetTier,
) -> ScanCollection:
    """Merge one tier's hits of ``other_scans`` into ``primary_scans``.

    Parameters
    ----------
    primary_scans : Mapping[str, ScanRecord]
        Primary-keyed records; not modified
    other_scans : Mapping or Iterable of ScanRecord
        Records of another collection; not modified
    tier : DatasetTier
        Tier whose hits are copied

    Returns
    -------
    merged : Dict[str, ScanRecord]
        Copies of all primary records. For every key also present in
        ``other_scans``, each (sequence, score) of the other record's
        ``tier`` hits is appended to the copy's ``tier`` hits unless the
        sequence is already listed there or in the record's Primary hits.
        Keys only present in ``other_scans`` are never added.

    Notes
    -----
    Running the same reconciliation on its own result adds nothing.
    """
    other_index = index_scans(other_scans)
    merged: ScanCollection = {}
    n_shared = 0
    n_added = 0

    for count, (scan_key, primary_record) in enumerate(primary_scans.items(), start=1):
        record = primary_record.copy()
        merged[scan_key] = record

        other = other_index.get(scan_key)
        if other is not None:
            n_shared += 1
            known = record.hits(DatasetTier.PRIMARY).sequences
            for sequence, score in other.hits(tier).pairs():
                if sequence in known:
                    continue
                if record.add(tier, sequence, score):
                    n_added += 1

        if count % PROGRESS_INTERVAL == 0:
            logger.debug(f"Compared {count:,} scan IDs")

    logger.info(
        f"✓ Compared {len(primary_scans):,} scan IDs against {len(other_index):,} "
        f"{tier} scan IDs: {n_shared:,} shared, {n_added:,} sequences added"
    )
    return merged


class ScanReconciler:
    """Runs reconciliation passes as units of work on a WorkerPool.

    Each pass is submitted on its own and finishes before its result feeds
    the next pass.

    Parameters
    ----------
    pool : WorkerPool
        Running pool
    """

    def __init__(self, pool: WorkerPool):
        self.pool = pool

    def reconcile(
        self,
        primary_scans: Mapping[str, ScanRecord],
        other_scans: Union[Mapping[str, ScanRecord], Iterable[ScanRecord]],
        tier: DatasetTier,
    ) -> ScanCollection:
        return self.pool.run(reconcile, primary_scans, other_scans, tier)

    def reconcile_tiers(
        self,
        primary_scans: Mapping[str, ScanRecord],
        combined_scans: Mapping[str, ScanRecord],
        individual_scans: Mapping[str, ScanRecord],
    ) -> ScanCollection:
        """Merge Combined, then Individual hits into the Primary scans."""
        merged = self.reconcile(primary_scans, combined_scans, DatasetTier.COMBINED)
        return self.reconcile(merged, individual_scans, DatasetTier.INDIVIDUAL)

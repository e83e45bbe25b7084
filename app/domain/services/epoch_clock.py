from __future__ import annotations

from app.domain.entities.release_schedule import ReleaseProgress


def epoch_floor(timestamp: int, epoch_size: int) -> int:
    if epoch_size <= 0:
        raise ValueError("epoch_size must be positive.")
    return (timestamp // epoch_size) * epoch_size


def should_reconcile(progress: ReleaseProgress, timestamp: int) -> bool:
    if progress.reconciliation_disabled:
        return False
    return epoch_floor(timestamp, progress.epoch_size) not in progress.reconciled_epochs


def mark_reconciled(progress: ReleaseProgress, timestamp: int) -> int:
    epoch = epoch_floor(timestamp, progress.epoch_size)
    progress.reconciled_epochs.add(epoch)
    return epoch

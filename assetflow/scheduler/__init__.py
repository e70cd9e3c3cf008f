"""Incremental rebuild scheduling.

Change events are queued, grouped into bursts, resolved to chains of
tasks and executed with per-task mutual exclusion. Each burst that ran
anything ends with exactly one reload notification.

Example:
    from assetflow.scheduler import IncrementalScheduler

    scheduler = IncrementalScheduler(registry, reload_signal)
    scheduler.start()
    scheduler.submit(ChangeEvent("src/index.html"))
    await scheduler.wait_idle()
    # styles, scripts, fonts, images, svg, html ran; one reload
"""

from .chains import CHAINS, FULL_CHAIN, chain_for, merge_chains
from .scheduler import BurstReport, IncrementalScheduler

__all__ = [
    'CHAINS',
    'FULL_CHAIN',
    'chain_for',
    'merge_chains',
    'BurstReport',
    'IncrementalScheduler',
]

"""Process memory helpers."""

import gc
import logging

import psutil

logger = logging.getLogger(__name__)


def get_memory_info() -> dict[str, float]:
    """Get current memory usage of this process."""
    process = psutil.Process()
    mem_info = process.memory_info()

    return {
        "rss_mb": mem_info.rss / 1024 / 1024,
        "vms_mb": mem_info.vms / 1024 / 1024,
        "percent": process.memory_percent(),
    }


def cleanup_memory(log_step: str | None = None) -> dict[str, float]:
    """Force a garbage collection pass and report memory afterwards."""
    before = get_memory_info()
    gc.collect()
    after = get_memory_info()

    if log_step:
        logger.debug(
            f"Memory cleanup at {log_step}: "
            f"{before['rss_mb']:.1f}MB -> {after['rss_mb']:.1f}MB"
        )

    return after

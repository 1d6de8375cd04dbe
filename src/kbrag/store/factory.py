"""Chunk store factory — registry and lazy import.

Stores own their data, so every call builds a new instance.
"""

from __future__ import annotations

import importlib
import logging

from kbrag.store.base import ChunkStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store registry: (store_key, module_path, class_name)
# ---------------------------------------------------------------------------

_STORE_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "kbrag.store.memory_store", "MemoryChunkStore"),
]


def get_chunk_store(
    backend: str = "memory",
    **kwargs,
) -> ChunkStore:
    """Build a chunk store by name.

    Args:
        backend: Registered store key (``memory``), case-insensitive.
        **kwargs: Passed to the store constructor.

    Returns:
        A new ``ChunkStore`` instance.
    """
    key = backend.lower()

    for reg_key, module_path, cls_name in _STORE_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            logger.debug("Created chunk store %s", cls_name)
            return cls(**kwargs)

    available = [k for k, _, _ in _STORE_REGISTRY]
    raise ValueError(f"Unknown chunk store '{backend}'. Available: {available}")


def available_stores() -> list[str]:
    """Return names of registered chunk stores."""
    return [k for k, _, _ in _STORE_REGISTRY]

"""Environment configuration for compression middleware.

Reads variables under a prefix, for example::

    HYBRIDBUFFER_COMPRESSION_ALGORITHM=zlib
    HYBRIDBUFFER_COMPRESSION_LEVEL=9
    HYBRIDBUFFER_COMPRESSION_CHUNK_SIZE=16384

Values that do not parse are ignored, leaving the defaults in place, the
same way invalid options are ignored at construction.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping

from hybridbuffer.middleware.compression.base import (
    CompressionAlgorithm,
    CompressionConfig,
    with_chunk_size,
    with_level,
)

logger = logging.getLogger(__name__)


def _parse_int(name: str, value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        logger.debug("Ignoring %s=%r: not an integer", name, value)
        return None


def load_config_from_env(
    prefix: str = "HYBRIDBUFFER_COMPRESSION",
    environ: Mapping[str, str] | None = None,
) -> CompressionConfig:
    """Build a compression configuration from environment variables.

    Args:
        prefix: Variable name prefix, joined to keys with ``_``.
        environ: Mapping to read instead of ``os.environ``.

    Returns:
        Configuration with the algorithm, level, and chunk size found.
    """
    env = os.environ if environ is None else environ

    algorithm_key = f"{prefix}_ALGORITHM"
    level_key = f"{prefix}_LEVEL"
    chunk_key = f"{prefix}_CHUNK_SIZE"

    algorithm = CompressionAlgorithm.coerce(env.get(algorithm_key) or CompressionAlgorithm.GZIP)
    config = CompressionConfig(algorithm=algorithm)

    level = _parse_int(level_key, env.get(level_key))
    if level is not None:
        config = with_level(level)(config)

    chunk_size = _parse_int(chunk_key, env.get(chunk_key))
    if chunk_size is not None:
        config = with_chunk_size(chunk_size)(config)

    return config

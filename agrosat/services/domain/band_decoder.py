"""
Domain service: decode raw spectral band buffers into validated samples.

Buffers come from the imagery service as single-band rasters. The decoder
skips a fixed header/trailer margin, reads the payload as little-endian
float32 words and keeps only values inside the index's physical range.
When nothing usable remains a deterministic synthetic sample is produced
and flagged so callers can tell it apart from measured data.
"""
import logging
from types import MappingProxyType
from typing import Optional

import numpy as np

from agrosat.config import settings
from agrosat.domain.models import BandSample, SpectralIndexName

logger = logging.getLogger(__name__)

HEADER_MARGIN_BYTES = 1000
STRIDE_BYTES = 4
UINT16_SCALE = 65535.0

# Uniform [low, high) ranges used for synthetic samples
FALLBACK_DISTRIBUTIONS = MappingProxyType({
    SpectralIndexName.NDVI: (0.1, 0.9),
    SpectralIndexName.EVI: (0.1, 0.7),
    SpectralIndexName.SAVI: (0.1, 0.8),
    SpectralIndexName.URBAN: (-0.15, 0.15),
    SpectralIndexName.WATER: (-0.2, 0.2),
    SpectralIndexName.MOISTURE: (0.1, 0.6),
})

_INDEX_ORDER = tuple(SpectralIndexName)


def decode_band(
    buffer: Optional[bytes],
    index: SpectralIndexName,
    fallback_size: Optional[int] = None,
    seed: Optional[int] = None,
) -> BandSample:
    """
    Decode one band buffer into a ``BandSample``.

    A missing buffer, an all-zero buffer or a buffer with no in-range values
    yields a synthetic fallback sample (``is_fallback=True``).

    Args:
        buffer: Raw bytes returned by the imagery service, or None
        index: Spectral index the buffer holds
        fallback_size: Number of synthetic values (defaults to settings)
        seed: Seed for the synthetic generator (defaults to settings)

    Returns:
        BandSample with only valid values
    """
    if not buffer or not np.frombuffer(buffer, dtype=np.uint8).any():
        logger.warning(f"{index.value}: no band data received, using synthetic fallback")
        return generate_fallback_sample(index, size=fallback_size, seed=seed)

    values = decode_stride_values(buffer)
    low, high = index.valid_range
    valid = values[(values >= low) & (values <= high)]

    logger.debug(f"{index.value}: decoded {values.size} words, {valid.size} within [{low}, {high}]")

    if valid.size == 0:
        logger.warning(f"{index.value}: no valid samples after filtering, using synthetic fallback")
        return generate_fallback_sample(index, size=fallback_size, seed=seed)

    return BandSample(index=index, values=valid)


def decode_stride_values(buffer: bytes) -> np.ndarray:
    """
    Read every 4-byte stride between the header and trailer margins.

    Each stride is a little-endian float32. Non-finite words are re-read as a
    little-endian uint16 from their first two bytes and mapped onto [-1, 1].
    """
    data = np.frombuffer(buffer, dtype=np.uint8)
    end = data.size - HEADER_MARGIN_BYTES
    if end <= HEADER_MARGIN_BYTES:
        return np.empty(0, dtype=np.float64)

    count = -(-(end - HEADER_MARGIN_BYTES) // STRIDE_BYTES)
    window = data[HEADER_MARGIN_BYTES:HEADER_MARGIN_BYTES + count * STRIDE_BYTES]

    values = window.view("<f4").astype(np.float64)
    non_finite = ~np.isfinite(values)

    if non_finite.any():
        words = window.reshape(-1, STRIDE_BYTES)
        raw = words[:, 0].astype(np.float64) + words[:, 1].astype(np.float64) * 256
        secondary = (raw / UINT16_SCALE) * 2 - 1
        values = np.where(non_finite, secondary, values)
        logger.debug(f"Re-read {int(non_finite.sum())} non-finite words as uint16")

    return values


def generate_fallback_sample(
    index: SpectralIndexName,
    size: Optional[int] = None,
    seed: Optional[int] = None,
) -> BandSample:
    """
    Build a deterministic synthetic sample centred on a plausible mean.

    The same (index, size, seed) always produces the same values.
    """
    size = settings.fallback_sample_size if size is None else size
    seed = settings.fallback_seed if seed is None else seed

    low, high = FALLBACK_DISTRIBUTIONS[index]
    rng = np.random.default_rng([seed, _INDEX_ORDER.index(index)])
    values = rng.uniform(low, high, size=size)

    return BandSample(index=index, values=values, is_fallback=True)

"""
Domain service: turn the six raw band buffers into a ``SpectralAnalysis``.

Band decodes are independent pure functions and run concurrently on a
thread pool; statistics, land cover and variability are computed once all
six samples are available.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Mapping, Optional, Union

from agrosat.config import settings
from agrosat.domain.models import (
    BandSample,
    IndexVariability,
    QualityMetrics,
    SpectralAnalysis,
    SpectralIndexName,
)
from agrosat.services.domain.band_decoder import decode_band
from agrosat.services.domain.land_cover import classify_land_cover, dominant_land_use
from agrosat.services.domain.statistics import (
    compute_variability,
    data_quality,
    spatial_consistency,
    statistics_by_index,
)

logger = logging.getLogger(__name__)

BandBuffers = Mapping[Union[SpectralIndexName, str], Optional[bytes]]


def normalize_band_keys(buffers: BandBuffers) -> dict[SpectralIndexName, Optional[bytes]]:
    """
    Key buffers by ``SpectralIndexName``; missing indices map to None.

    Raises:
        ValueError: If a key is not a known spectral index
    """
    normalized: dict[SpectralIndexName, Optional[bytes]] = {index: None for index in SpectralIndexName}
    for key, buffer in buffers.items():
        index = key if isinstance(key, SpectralIndexName) else SpectralIndexName(str(key).upper())
        normalized[index] = buffer
    return normalized


def decode_bands(
    buffers: BandBuffers,
    max_workers: Optional[int] = None,
) -> dict[SpectralIndexName, BandSample]:
    """Decode every spectral index concurrently."""
    normalized = normalize_band_keys(buffers)
    workers = max_workers or settings.decode_workers

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="band-decode") as pool:
        futures = {
            index: pool.submit(decode_band, buffer, index)
            for index, buffer in normalized.items()
        }
        return {index: future.result() for index, future in futures.items()}


def build_spectral_analysis(samples: Mapping[SpectralIndexName, BandSample]) -> SpectralAnalysis:
    """
    Combine decoded samples into statistics, land cover and variability.

    Args:
        samples: One decoded sample per spectral index

    Returns:
        SpectralAnalysis for the patch
    """
    stats = statistics_by_index(dict(samples))
    ndvi = samples[SpectralIndexName.NDVI]
    moisture = samples[SpectralIndexName.MOISTURE]

    land_cover = classify_land_cover(
        ndvi=ndvi,
        urban=samples[SpectralIndexName.URBAN],
        water=samples[SpectralIndexName.WATER],
        moisture=moisture,
    )
    variability = IndexVariability(
        ndvi=compute_variability(ndvi.values),
        moisture=compute_variability(moisture.values),
    )
    quality = QualityMetrics(
        data_quality=data_quality([
            samples[SpectralIndexName.NDVI],
            samples[SpectralIndexName.EVI],
            samples[SpectralIndexName.SAVI],
        ]),
        spatial_consistency=spatial_consistency(ndvi.values),
    )
    fallback_indices = [index for index, sample in samples.items() if sample.is_fallback]

    logger.info(f"Spectral analysis: vegetation={land_cover.vegetation.total:.1f}%, "
                f"ndvi_cov={variability.ndvi.coefficient}, "
                f"synthetic_indices={[i.value for i in fallback_indices]}")

    return SpectralAnalysis(
        ndvi=stats[SpectralIndexName.NDVI],
        evi=stats[SpectralIndexName.EVI],
        savi=stats[SpectralIndexName.SAVI],
        urban=stats[SpectralIndexName.URBAN],
        water=stats[SpectralIndexName.WATER],
        moisture=stats[SpectralIndexName.MOISTURE],
        land_cover=land_cover,
        variability=variability,
        dominant_land_use=dominant_land_use(land_cover),
        quality_metrics=quality,
        fallback_indices=fallback_indices,
    )


def process_bands(buffers: BandBuffers, max_workers: Optional[int] = None) -> SpectralAnalysis:
    """Decode all bands and build the spectral analysis."""
    return build_spectral_analysis(decode_bands(buffers, max_workers=max_workers))

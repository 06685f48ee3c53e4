"""Band map adapter translating between frequencies and ADIF band names.

The band table lives in ``hqsl/data/bandmap.json`` and is regenerated by
``scripts/gen_bandmap.py``. Each entry records the band edges and the
midpoint used for nearest-band classification.
"""

from __future__ import annotations

import json
import math
from importlib import resources
from typing import Any, Dict, List, Optional

from hqsl.middleware.logging import log_error, log_info

UNKNOWN_BAND = "??"


class BandMapAdapter:
    """Adapter for classifying frequencies (in MHz) into amateur bands."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Optional[Dict[str, Any]] = None
        # Insertion order matters: ties go to the first band listed.
        self.midpoints: Dict[str, float] = {}
        if data is None:
            self._load_bandmap()
        else:
            self._index(data)

    def _load_bandmap(self) -> None:
        """Load the band map JSON data shipped with the package."""
        try:
            raw = resources.files("hqsl").joinpath("data/bandmap.json").read_text()
            self._index(json.loads(raw))
            log_info(
                "bandmap_loaded",
                bands=len(self.midpoints),
                version=self.data.get("version") if self.data else None,
            )
        except Exception as e:
            log_error("bandmap_load_error", error=str(e))
            self.data = None
            self.midpoints = {}

    def _index(self, data: Dict[str, Any]) -> None:
        self.data = data
        self.midpoints = {
            entry["band"]: float(entry["midpoint"]) for entry in data.get("bands", [])
        }

    @property
    def bands(self) -> List[str]:
        return list(self.midpoints)

    def band_for(self, freq: float) -> str:
        """Return the band whose midpoint is nearest to ``freq``.

        Args:
            freq: Frequency in MHz.

        Returns:
            The ADIF band name, or ``"??"`` when nothing is closer than
            infinity (an empty table or a NaN frequency).
        """
        distance = math.inf
        known_band = UNKNOWN_BAND
        for band, midpoint in self.midpoints.items():
            new_distance = abs(freq - midpoint)
            if new_distance < distance:
                distance = new_distance
                known_band = band
        return known_band

    def frequency_for(self, band: Optional[str]) -> Optional[float]:
        """Return the midpoint frequency of a band, ignoring case.

        Only meant as a fallback when a log carries a band but no frequency,
        so an unknown band gives ``None`` rather than an error.
        """
        if not band:
            return None
        return self.midpoints.get(band.strip().lower())


_bandmap_adapter = None


def get_bandmap_adapter() -> BandMapAdapter:
    """Get the singleton band map adapter instance."""
    global _bandmap_adapter
    if _bandmap_adapter is None:
        _bandmap_adapter = BandMapAdapter()
    return _bandmap_adapter

#!/usr/bin/env python3
"""Script to generate the band map used to classify frequencies.

The band edges follow the ADIF 3.1.4 band enumeration. Each band gets a
midpoint (in MHz, rounded to 6 decimals) and a frequency belongs to the
band with the nearest midpoint, so out-of-band frequencies still land
somewhere sensible.
"""

import json
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Dict, List

# Band name, lower edge, upper edge; in MHz, lowest band first.
BAND_EDGES = [
    ("2190m", 0.1357, 0.1378),
    ("630m", 0.472, 0.479),
    ("560m", 0.501, 0.504),
    ("160m", 1.8, 2),
    ("80m", 3.5, 4.0),
    ("60m", 5.06, 5.45),
    ("40m", 7.0, 7.3),
    ("30m", 10.1, 10.15),
    ("20m", 14.0, 14.35),
    ("17m", 18.068, 18.168),
    ("15m", 21, 21.45),
    ("12m", 24.89, 24.99),
    ("10m", 28, 29.7),
    ("8m", 40, 45),
    ("6m", 50, 54),
    ("5m", 54.000001, 69.9),
    ("4m", 70, 71),
    ("2m", 144, 148),
    ("1.25m", 222, 225),
    ("70cm", 420, 450),
    ("33cm", 902, 928),
    ("23cm", 1240, 1300),
    ("13cm", 2300, 2450),
    ("9cm", 3300, 3500),
    ("6cm", 5650, 5925),
    ("3cm", 10000, 10500),
    ("1.25cm", 24000, 24250),
    ("6mm", 47000, 47200),
    ("4mm", 75500, 81000),
    ("2.5mm", 119980, 123000),
    ("2mm", 134000, 149000),
    ("1mm", 241000, 250000),
    ("submm", 300000, 7500000),
]


def midpoint(lower: float, upper: float) -> float:
    """Average of the band edges, rounded half up to 6 decimals."""
    value = Decimal(repr((lower + upper) / 2)).quantize(
        Decimal("0.000001"), rounding=ROUND_HALF_UP
    )
    result = float(value)
    return int(result) if result.is_integer() else result


def build_bands() -> List[Dict[str, Any]]:
    return [
        {"band": name, "lower": lower, "upper": upper, "midpoint": midpoint(lower, upper)}
        for name, lower, upper in BAND_EDGES
    ]


def render(bands: List[Dict[str, Any]]) -> str:
    """Render the band map with one band per line, to keep diffs readable."""
    entries = ",\n".join(f"    {json.dumps(b)}" for b in bands)
    return (
        "{\n"
        '  "version": "1.0",\n'
        '  "source": "ADIF 3.1.4 band enumeration",\n'
        '  "bands": [\n'
        f"{entries}\n"
        "  ]\n"
        "}\n"
    )


def main():
    """Main script execution."""
    data_dir = Path("hqsl/data")
    data_dir.mkdir(parents=True, exist_ok=True)

    output_file = data_dir / "bandmap.json"

    bands = build_bands()
    print(f"Writing {len(bands)} bands to {output_file}...")
    output_file.write_text(render(bands))
    print(f"✓ Successfully generated band map with {len(bands)} entries")


if __name__ == "__main__":
    main()

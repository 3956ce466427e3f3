"""Static size-scale tables shared by the classifier and the fallback mapper.

A ``ScaleConfig`` is read-only for the life of the process. The module-level
``DEFAULT_SCALE_CONFIG`` is what the service uses; tests build their own
instances to override brand tables.
"""
from typing import Dict, FrozenSet, List
from pydantic import BaseModel, ConfigDict, Field


NUMERIC_ORDER: List[str] = ["00", "0", "2", "4", "6", "8", "10", "12", "14", "16", "18", "20"]
LETTER_ORDER: List[str] = ["XXXS", "XXS", "XS", "S", "M", "L", "XL", "2X", "3X", "4X"]
DENIM_ORDER: List[str] = [str(n) for n in range(22, 41)]

# Alternate spellings of the extended letter sizes
LETTER_ALIASES: Dict[str, str] = {
    "XXL": "2X",
    "2XL": "2X",
    "XXXL": "3X",
    "3XL": "3X",
    "4XL": "4X",
}

LETTER_TO_NUMERIC: Dict[str, str] = {
    "XXXS": "00", "XXS": "0", "XS": "2", "S": "4", "M": "6", "L": "10",
    "XL": "12", "2X": "16", "3X": "18", "4X": "20",
}

NUMERIC_TO_LETTER: Dict[str, str] = {
    "00": "XXXS", "0": "XXS", "2": "XS", "4": "S", "6": "M", "8": "M",
    "10": "L", "12": "XL", "14": "XL", "16": "2X", "18": "3X", "20": "4X",
}

# Brand scales mapped onto the universal US-numeric index
BRAND_SCALE_MAPS: Dict[str, Dict[str, float]] = {
    "zimmermann": {"0": 1, "1": 2, "2": 4, "3": 6, "4": 8, "5": 10},
    "and_or_collective": {"1": 2, "2": 6, "3": 10},
    "seven_for_all_mankind": {
        "22": 0, "23": 0, "24": 1, "25": 2, "26": 3, "27": 4, "28": 5,
        "29": 6, "30": 7, "31": 8, "32": 9,
    },
    "mother": {
        "23": 0, "24": 1, "25": 2, "26": 3, "27": 4, "28": 5, "29": 6,
        "30": 7, "31": 8, "32": 9, "33": 10, "34": 11,
    },
    "revolve_denim": {
        "23": 0, "24": 1, "25": 2, "26": 3, "27": 4, "28": 5, "29": 6,
        "30": 7, "31": 8, "32": 9,
    },
    "david_koma": {"4": 1, "6": 2, "8": 3, "10": 4, "12": 5, "14": 6, "16": 7},
    "victoria_beckham": {"4": 1, "6": 2, "8": 3, "10": 4, "12": 5, "14": 6, "16": 7},
}

BRAND_SPECIFIC_BRANDS: FrozenSet[str] = frozenset({"zimmermann", "and_or_collective"})

UNIVERSAL_SIZE_MAP: Dict[str, float] = {
    "00": 0, "0": 1, "2": 2, "4": 3, "6": 4, "8": 5, "10": 6, "12": 7,
    "14": 8, "16": 9, "18": 10, "20": 11,
    "XXXS": 0, "XXS": 1, "XS": 2, "S": 3, "M": 4, "L": 6, "XL": 7,
    "2X": 9, "3X": 10, "4X": 11,
    # EU sizes
    "34": 0, "36": 1, "38": 2, "40": 3, "42": 4, "44": 5, "46": 6, "48": 7,
    # denim waist
    "22": 0, "23": 0, "24": 1, "25": 2, "26": 3, "27": 4, "28": 5, "29": 6,
    "30": 7, "31": 8, "32": 9, "33": 10,
}


class ScaleConfig(BaseModel):
    """Scale tables for one engine. Each instance owns copies of the module tables."""

    model_config = ConfigDict(frozen=True)

    brand_scale_maps: Dict[str, Dict[str, float]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in BRAND_SCALE_MAPS.items()}
    )
    brand_specific_brands: FrozenSet[str] = BRAND_SPECIFIC_BRANDS
    universal_size_map: Dict[str, float] = Field(default_factory=lambda: dict(UNIVERSAL_SIZE_MAP))
    letter_to_numeric: Dict[str, str] = Field(default_factory=lambda: dict(LETTER_TO_NUMERIC))
    numeric_to_letter: Dict[str, str] = Field(default_factory=lambda: dict(NUMERIC_TO_LETTER))

    def brand_map(self, brand_key: str | None) -> Dict[str, float]:
        if not brand_key:
            return {}
        return self.brand_scale_maps.get(brand_key, {})

    def is_brand_specific(self, brand_key: str | None) -> bool:
        return bool(brand_key) and brand_key in self.brand_specific_brands


DEFAULT_SCALE_CONFIG = ScaleConfig()

import pytest
from app.services.fallback import (
    convert_to_scale,
    fallback_map,
    shift_size,
    snap_to_available,
    track_sequence,
    universal_index,
)
from app.services.scale_config import ScaleConfig
from app.services.size_classifier import ScaleTrack, classify, track_of


LETTERS = ["XS", "S", "M", "L", "XL"]
NUMBERS = ["0", "2", "4", "6", "8", "10", "12"]


def test_shift_size_per_track():
    assert shift_size("M", "fitted", ScaleTrack.LETTER) == "S"
    assert shift_size("M", "relaxed", ScaleTrack.LETTER) == "L"
    assert shift_size("M", "true_to_size", ScaleTrack.LETTER) == "M"
    assert shift_size("6", "relaxed", ScaleTrack.NUMERIC) == "8"
    assert shift_size("27", "fitted", ScaleTrack.DENIM) == "26"
    assert shift_size("2", "relaxed", ScaleTrack.BRAND_SPECIFIC, "zimmermann") == "3"


def test_shift_size_stops_at_ends():
    assert shift_size("XXXS", "fitted", ScaleTrack.LETTER) == "XXXS"
    assert shift_size("20", "relaxed", ScaleTrack.NUMERIC) == "20"


def test_shift_size_letter_alias():
    assert shift_size("XXL", "relaxed", ScaleTrack.LETTER) == "3X"


def test_universal_index_prefers_brand_override():
    assert universal_index("2", "zimmermann") == 4
    assert universal_index("2") == 2
    assert universal_index("M") == 4
    assert universal_index("xxl") == 9
    assert universal_index("0-2") == 1.5
    assert universal_index("57") == 57
    assert universal_index("One Size") is None


def test_snap_returns_stocked_spelling():
    assert snap_to_available("m", ["s", "m", "l"]) == "m"


def test_snap_to_nearest_index_first_occurrence_on_tie():
    # M sits at index 4; S (3) and L (6) are not equidistant, S wins
    assert snap_to_available("M", ["XS", "S", "L"]) == "S"
    # "8" is index 5, equidistant from "6" (4) and "10" (6): first listed wins
    assert snap_to_available("8", ["10", "6"]) == "10"


def test_snap_without_stock_returns_input():
    assert snap_to_available("M", []) == "M"


def test_same_scale_applies_shift_then_snaps():
    assert fallback_map("M", "relaxed", "letter", LETTERS, "a", "b", ScaleTrack.LETTER) == "L"
    assert fallback_map("XL", "relaxed", "letter", LETTERS, "a", "b", ScaleTrack.LETTER) == "XL"
    assert fallback_map("S", "fitted", "letter", ["S", "M"], "a", "b", ScaleTrack.LETTER) == "S"


def test_cross_scale_uses_universal_index():
    # S -> index 3 -> "4"
    assert fallback_map("S", "true_to_size", "numeric", NUMBERS, "a", "b", ScaleTrack.LETTER) == "4"
    # relaxed shifts the index by one: 4 -> "6"
    assert fallback_map("S", "relaxed", "numeric", NUMBERS, "a", "b", ScaleTrack.LETTER) == "6"


def test_brand_ordinal_never_read_as_us_numeric():
    size = fallback_map(
        "2", "true_to_size", "letter", LETTERS,
        anchor_brand_key="zimmermann", target_brand_key="alo_yoga",
        anchor_track=ScaleTrack.BRAND_SPECIFIC,
    )
    assert size == "M"


def test_cross_scale_without_stock_uses_target_sequence():
    assert fallback_map("M", "true_to_size", "numeric", [], "a", "b", ScaleTrack.LETTER) == "6"


def test_letter_numeric_last_resort():
    config = ScaleConfig(universal_size_map={})
    assert convert_to_scale("S", ScaleTrack.NUMERIC, config) == "4"
    assert convert_to_scale("8", ScaleTrack.LETTER, config) == "M"
    assert fallback_map("S", "true_to_size", "numeric", [], "a", "b", ScaleTrack.LETTER, config) == "4"


def test_nothing_derivable_returns_none():
    assert fallback_map("One Size", "true_to_size", "numeric", [], "a", "b", ScaleTrack.LETTER) is None


def test_brand_specific_sequence_follows_override_order():
    assert track_sequence(ScaleTrack.BRAND_SPECIFIC, "and_or_collective") == ["1", "2", "3"]


@pytest.mark.parametrize("label,available", [
    ("M", LETTERS),
    ("6", NUMBERS),
    ("27", ["25", "26", "27", "28"]),
    ("2", ["0", "1", "2", "3"]),
])
def test_round_trip_on_shared_scale(label, available):
    brand = "zimmermann" if label == "2" else "acme"
    track = track_of(classify(label, brand))
    assert fallback_map(label, "true_to_size", track.value, available, brand, brand, track) == label


def test_w_prefixed_denim_waist_reads_as_plain_waist():
    assert universal_index("W28") == universal_index("28") == 5
    assert universal_index("w30", "mother") == 7
    assert shift_size("W28", "relaxed", ScaleTrack.DENIM) == "29"
    assert snap_to_available("W27", ["26", "27", "28"]) == "27"
    assert snap_to_available("28", ["W27", "W28", "W29"]) == "W28"


@pytest.mark.parametrize("fit,expected", [
    ("true_to_size", "30"),
    ("fitted", "29"),
    ("relaxed", "31"),
])
def test_w_prefixed_denim_same_track(fit, expected):
    available = [str(n) for n in range(24, 32)]
    assert fallback_map("W30", fit, "denim", available, "mother", "mother", ScaleTrack.DENIM) == expected


def test_w_prefixed_denim_cross_scale_matches_plain_waist():
    args = ("true_to_size", "letter", ["XS", "S", "M", "L"], "levis", "alo_yoga", ScaleTrack.DENIM)
    assert fallback_map("W28", *args) == fallback_map("28", *args) == "M"


def test_unmapped_brand_ordinal_has_no_index():
    assert universal_index("4", "and_or_collective") is None
    assert universal_index("2", "and_or_collective") == 6
    size = fallback_map(
        "4", "true_to_size", "numeric", NUMBERS,
        anchor_brand_key="and_or_collective", target_brand_key="reformation",
        anchor_track=ScaleTrack.BRAND_SPECIFIC,
    )
    assert size is None

from app.services.scale_tracks import SizingRow, partition_rows, resolve_track
from app.services.size_classifier import ScaleTrack


def _rows(*labels):
    return [SizingRow(size_label=l, measurements={"bust": 34}) for l in labels]


def test_partition_by_track():
    parts = partition_rows(_rows("S", "M", "4", "0-2", "27"), "alo_yoga")
    assert [r.size_label for r in parts[ScaleTrack.LETTER]] == ["S", "M"]
    assert [r.size_label for r in parts[ScaleTrack.NUMERIC]] == ["4", "0-2"]
    assert [r.size_label for r in parts[ScaleTrack.DENIM]] == ["27"]
    assert parts[ScaleTrack.BRAND_SPECIFIC] == []


def test_exact_track_used_without_flag():
    rows = _rows("S", "M", "4", "6")
    res = resolve_track(ScaleTrack.NUMERIC, partition_rows(rows, "x"), rows)
    assert res.track_used == ScaleTrack.NUMERIC
    assert not res.conversion_fallback_used
    assert [r.size_label for r in res.rows] == ["4", "6"]
    assert (res.rows_before, res.rows_after) == (4, 2)


def test_missing_track_falls_back_in_preference_order():
    rows = _rows("4", "6", "S")
    res = resolve_track(ScaleTrack.BRAND_SPECIFIC, partition_rows(rows, "x"), rows)
    assert res.track_used == ScaleTrack.LETTER
    assert res.conversion_fallback_used

    rows = _rows("26", "4")
    res = resolve_track(ScaleTrack.LETTER, partition_rows(rows, "x"), rows)
    assert res.track_used == ScaleTrack.NUMERIC


def test_empty_partitions_use_all_rows():
    rows = _rows("S", "M")
    res = resolve_track(ScaleTrack.DENIM, {}, rows)
    assert res.rows == rows
    assert res.conversion_fallback_used


def test_no_rows_at_all():
    res = resolve_track(ScaleTrack.LETTER, partition_rows([], "x"), [])
    assert res.rows == []
    assert not res.conversion_fallback_used

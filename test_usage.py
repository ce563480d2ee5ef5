"""Usage aggregation tests."""
from mindease.services import UsageSample, aggregate, total_minutes


def test_totals_are_summed_per_package():
    samples = [
        UsageSample("com.a", 1000, 10),
        UsageSample("com.b", 500, 30),
        UsageSample("com.a", 2000, 20),
    ]

    result = aggregate(samples)

    assert [(a.package_id, a.total_foreground_ms) for a in result] == [
        ("com.a", 3000),
        ("com.b", 500),
    ]


def test_last_used_is_the_latest_sample():
    result = aggregate([
        UsageSample("com.a", 100, 50),
        UsageSample("com.a", 100, 20),
    ])
    assert result[0].last_used_at_ms == 50


def test_last_used_defaults_to_zero():
    result = aggregate([UsageSample("com.a", 100)])
    assert result[0].last_used_at_ms == 0


def test_samples_without_foreground_time_are_dropped():
    result = aggregate([
        UsageSample("com.idle", 0, 99),
        UsageSample("com.negative", -5, 99),
        UsageSample("com.used", 1, 99),
    ])
    assert [a.package_id for a in result] == ["com.used"]


def test_equal_totals_keep_first_seen_order():
    result = aggregate([
        UsageSample("com.second", 100),
        UsageSample("com.first", 100),
        UsageSample("com.big", 500),
        UsageSample("com.third", 100),
    ])
    assert [a.package_id for a in result] == ["com.big", "com.second", "com.first", "com.third"]


def test_empty_input():
    assert aggregate([]) == []
    assert total_minutes([]) == 0


def test_total_minutes_rounds_half_up():
    assert total_minutes(aggregate([UsageSample("a", 3_780_000)])) == 63
    assert total_minutes(aggregate([UsageSample("a", 3_810_000)])) == 64
    assert total_minutes(aggregate([UsageSample("a", 3_809_999)])) == 63
    assert total_minutes(aggregate([UsageSample("a", 20_000), UsageSample("b", 10_000)])) == 1

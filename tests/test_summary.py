from form_graph.reports.conversion import ConversionStats
from form_graph.reports.series import SeriesStats
from form_graph.reports.summary import reduce_conversion_summary, reduce_summary


def _stats(total, peak, label, periods=3):
    return SeriesStats(total=total, average=0.0, peak_value=peak, peak_label=label, periods=periods)


def test_summary_first_form_wins_ties():
    summary = reduce_summary(
        [
            (_stats(7, 5, "Jan 3, 2024"), "Contact"),
            (_stats(5, 5, "Jan 1, 2024"), "Newsletter"),
        ]
    )
    assert summary.grand_total == 12
    assert summary.overall_average == 4.0
    assert summary.peak_value == 5
    assert summary.peak_label == "Jan 3, 2024 (Contact)"


def test_summary_picks_strictly_greater_peak():
    summary = reduce_summary(
        [
            (_stats(3, 2, "Jan 2, 2024"), "Contact"),
            (_stats(9, 6, "Jan 1, 2024"), "Newsletter"),
        ]
    )
    assert summary.peak_value == 6
    assert summary.peak_label == "Jan 1, 2024 (Newsletter)"


def test_summary_averages_over_longest_series():
    summary = reduce_summary(
        [
            (_stats(4, 3, "a", periods=2), "A"),
            (_stats(6, 3, "b", periods=4), "B"),
        ]
    )
    assert summary.overall_average == 2.5


def test_empty_summary():
    summary = reduce_summary([])
    assert summary.to_dict() == {
        "grand_total": 0,
        "overall_average": 0.0,
        "peak_value": 0,
        "peak_label": "",
    }


def test_conversion_summary_recomputes_rate_from_totals():
    combined = reduce_conversion_summary(
        [
            ConversionStats(total_views=50, total_submissions=30, conversion_rate=60.0),
            ConversionStats(total_views=0, total_submissions=4, conversion_rate=0.0),
            ConversionStats(total_views=30, total_submissions=6, conversion_rate=20.0),
        ]
    )
    assert combined.total_views == 80
    assert combined.total_submissions == 40
    assert combined.conversion_rate == 50.0
    assert reduce_conversion_summary([]).conversion_rate == 0.0

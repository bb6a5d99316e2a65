import math

import pytest

from millcalc.core.engagement import calculate_engagement_and_mrr


def test_defaults_within_limits(aluminum, endmill):
    result = calculate_engagement_and_mrr(aluminum, endmill, 6.0, 1000)

    assert result.ap_mm == 3.0
    assert result.ae_mm == 1.8
    assert result.mrr_mm3_min == pytest.approx(1.8 * 3.0 * 1000)
    assert result.warnings == []


def test_user_doc_clamped_by_engagement_fraction(aluminum, endmill):
    result = calculate_engagement_and_mrr(aluminum, endmill, 6.0, 1000, user_doc_mm=5.0)

    assert result.ap_mm == pytest.approx(3.0)
    assert [w.type for w in result.warnings] == ['doc_limited']


def test_user_woc_clamped_by_engagement_fraction(aluminum, endmill):
    result = calculate_engagement_and_mrr(aluminum, endmill, 6.0, 1000, user_woc_mm=6.0)

    assert result.ae_mm == pytest.approx(3.0)
    assert [w.type for w in result.warnings] == ['woc_limited']


def test_engagement_never_exceeds_limit(aluminum, endmill):
    limit = aluminum.max_engagement_fraction * 6.0
    for doc, woc in [(0.5, 0.5), (2.9, 3.1), (10, 10), (3.0, 0.1)]:
        result = calculate_engagement_and_mrr(aluminum, endmill, 6.0, 2000, user_doc_mm=doc, user_woc_mm=woc)
        assert result.ap_mm <= limit
        assert result.ae_mm <= limit


def test_drill_removes_full_circle(aluminum, drill):
    result = calculate_engagement_and_mrr(aluminum, drill, 5.0, 100)
    assert result.mrr_mm3_min == pytest.approx(math.pi * 25 / 4 * 100)

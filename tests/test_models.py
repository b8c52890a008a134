import pytest

from models import Category, compute_change_percent, classify_fund


class TestComputeChangePercent:
    def test_gain(self):
        assert compute_change_percent(101.0, 100.0) == pytest.approx(1.0)

    def test_loss(self):
        assert compute_change_percent(98.0, 100.0) == pytest.approx(-2.0)

    def test_missing_latest_is_none(self):
        assert compute_change_percent(None, 100.0) is None

    def test_missing_previous_is_none(self):
        assert compute_change_percent(100.0, None) is None

    def test_zero_previous_is_none(self):
        # no defined percentage move from zero
        assert compute_change_percent(100.0, 0.0) is None

    def test_zero_latest_is_a_real_value(self):
        # zero is data, not absence
        assert compute_change_percent(0.0, 100.0) == pytest.approx(-100.0)


class TestClassifyFund:
    @pytest.mark.parametrize("name, expected", [
        ("UTI Nifty 50 Index Fund - Direct Plan - Growth",        Category.NIFTY50),
        ("ICICI Prudential Nifty Next 50 Index Fund - Growth",    Category.NIFTYNEXT50),
        ("Some Next 50 ETF FoF",                                  Category.NIFTYNEXT50),
        ("Parag Parikh Flexi Cap Fund",                           Category.OTHER),
        ("NIFTY 50 ETF",                                          Category.NIFTY50),
    ])
    def test_category_from_name(self, name, expected):
        assert classify_fund(name) is expected

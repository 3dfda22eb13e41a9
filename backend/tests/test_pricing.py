# Overview: Pytest coverage for tax-inclusive price arithmetic.

from decimal import Decimal

import pytest

from menutax.services.pricing import (
    PricingError,
    base_price_from_price,
    format_price_with_tax,
    is_consistent,
    price_from_base_price,
    split_final_price,
    tax_from_base_price,
    tax_from_final_price,
    to_base_price,
    to_tax_inclusive,
)

D = Decimal


class TestConversions:
    def test_known_restaurant_price(self):
        """€11.49 at 13.5% splits into 10.12 base and 1.37 tax."""
        assert to_base_price(D("11.49"), D("0.135")) == D("10.12")
        assert tax_from_final_price(D("11.49"), D("0.135")) == D("1.37")

    def test_base_price_conversions(self):
        assert to_tax_inclusive(D("10.00"), D("0.135")) == D("11.35")
        assert tax_from_base_price(D("10.00"), D("0.135")) == D("1.35")
        assert to_tax_inclusive(D("10.00"), D("0")) == D("10.00")

    def test_accepts_floats_without_binary_noise(self):
        assert to_base_price(11.49, 0.135) == D("10.12")
        assert tax_from_final_price(2.675, 0) == D("0.00")

    @pytest.mark.parametrize("price", ["0.01", "0.99", "3.50", "11.49", "20.00", "99.95", "1234.56"])
    @pytest.mark.parametrize("rate", ["0", "0.09", "0.135", "0.23"])
    def test_split_adds_back_to_price(self, price, rate):
        base, tax = split_final_price(D(price), D(rate))
        assert base + tax == D(price)
        assert to_base_price(D(price), D(rate)) + tax_from_final_price(D(price), D(rate)) == D(price)

    @pytest.mark.parametrize("base", ["0.01", "1.00", "7.77", "10.12", "45.00"])
    def test_round_trip_within_a_cent(self, base):
        for rate in (D("0.09"), D("0.135"), D("0.23")):
            assert abs(to_base_price(to_tax_inclusive(D(base), rate), rate) - D(base)) <= D("0.01")

    def test_zero_price(self):
        assert split_final_price(D("0"), D("0.135")) == (D("0.00"), D("0.00"))

    def test_negative_price_rejected(self):
        with pytest.raises(PricingError):
            to_base_price(D("-1.00"), D("0.135"))

    def test_negative_rate_rejected(self):
        with pytest.raises(PricingError):
            tax_from_final_price(D("10.00"), D("-0.1"))


class TestAdminPricing:
    def test_price_from_base_price(self):
        assert price_from_base_price(D("10.00"), D("0.135")) == {"price": D("11.35"), "base_price": D("10.00")}

    def test_base_price_from_price(self):
        assert base_price_from_price(D("11.49"), D("0.135")) == {"price": D("11.49"), "base_price": D("10.12")}

    def test_is_consistent(self):
        assert is_consistent(D("11.49"), D("10.12"), D("0.135"))
        assert not is_consistent(D("11.49"), D("10.00"), D("0.135"))


class TestFormatting:
    def test_plain(self):
        assert format_price_with_tax(D("11.49"), D("0.135")) == "€11.49"

    def test_with_tax_info(self):
        assert format_price_with_tax(11.49, D("0.135"), show_tax_info=True) == "€11.49 (inc. €1.37 VAT @ 13.5%)"

    def test_whole_rate_label_keeps_one_decimal(self):
        assert format_price_with_tax(D("10.90"), D("0.09"), show_tax_info=True) == "€10.90 (inc. €0.90 VAT @ 9.0%)"

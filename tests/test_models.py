"""Unit tests for offer record normalization."""

import pytest

from storefront.offer_engine.exceptions import MalformedOfferError
from storefront.offer_engine.models import (
    DiscountType,
    OfferScope,
    coerce_bool,
    coerce_number,
    coerce_product_id,
    parse_offer,
    parse_offers,
    resolve_target_product_id,
)


def raw_offer(**overrides) -> dict:
    record = {
        "id": 1,
        "type": "product",
        "product_id": 12,
        "discount_type": "percentage",
        "discount_value": "20",
        "is_active": 1,
        "start_date": "2024-01-01",
        "end_date": "2024-12-31",
        "title": "Spring sale",
        "image": "offers/spring.png",
    }
    record.update(overrides)
    return record


class TestCoercion:
    """Tests for the field coercion helpers."""

    @pytest.mark.parametrize("value", [True, 1, "1", "true", "TRUE", " true "])
    def test_truthy_active_flags(self, value):
        """Test the active flag spellings the API uses."""
        assert coerce_bool(value) is True

    @pytest.mark.parametrize("value", [False, 0, 2, "0", "false", "yes", "", None, []])
    def test_falsy_active_flags(self, value):
        """Test everything else reads as inactive."""
        assert coerce_bool(value) is False

    def test_coerce_number(self):
        """Test leading-number parsing with a zero fallback."""
        assert coerce_number("25.5") == 25.5
        assert coerce_number("30 AED") == 30.0
        assert coerce_number(15) == 15.0
        assert coerce_number("abc") == 0.0
        assert coerce_number(None) == 0.0
        assert coerce_number(True) == 0.0
        assert coerce_number(float("nan")) == 0.0
        assert coerce_number(10**400) == 0.0

    def test_coerce_product_id(self):
        """Test leading-integer parsing of product ids."""
        assert coerce_product_id("12") == 12
        assert coerce_product_id("12abc") == 12
        assert coerce_product_id(7) == 7
        assert coerce_product_id(7.9) == 7
        assert coerce_product_id("abc") is None
        assert coerce_product_id(0) is None
        assert coerce_product_id(-3) is None
        assert coerce_product_id(None) is None
        assert coerce_product_id(True) is None


class TestResolveTargetProductId:
    """Tests for finding the target product id in the known shapes."""

    def test_condition_product_id_wins(self):
        """Test condition.product_id is checked first."""
        raw = {"condition": {"product_id": "4"}, "product_id": 9}
        assert resolve_target_product_id(raw) == 4

    def test_top_level_product_id(self):
        """Test a top-level product_id."""
        assert resolve_target_product_id({"product_id": 9}) == 9

    def test_nested_condition_product(self):
        """Test condition.product.id."""
        raw = {"condition": {"product": {"id": "33"}}}
        assert resolve_target_product_id(raw) == 33

    def test_camel_case_key(self):
        """Test targetProductId."""
        assert resolve_target_product_id({"targetProductId": 8}) == 8

    def test_zero_falls_through_to_next_key(self):
        """Test a zero id is treated as absent, not as the answer."""
        raw = {"condition": {"product_id": 0}, "product_id": 7}
        assert resolve_target_product_id(raw) == 7
        assert resolve_target_product_id({"product_id": "", "targetProductId": 8}) == 8

    def test_first_present_key_is_final(self):
        """Test an unusable but present id does not fall back further."""
        assert resolve_target_product_id({"product_id": "n/a", "targetProductId": 8}) is None

    def test_missing(self):
        """Test no id in any known place."""
        assert resolve_target_product_id({"condition": None}) is None
        assert resolve_target_product_id({}) is None


class TestParseOffer:
    """Tests for parse_offer."""

    def test_full_record(self):
        """Test a typical product offer from the API."""
        offer = parse_offer(raw_offer())

        assert offer.id == 1
        assert offer.scope is OfferScope.PRODUCT
        assert offer.target_product_id == 12
        assert offer.discount_type is DiscountType.PERCENTAGE
        assert offer.discount_value == 20.0
        assert offer.is_active is True
        assert offer.start_date.year == 2024
        assert offer.title == "Spring sale"
        assert offer.image == "offers/spring.png"

    def test_scope_field_preferred_over_type(self):
        """Test an explicit scope field."""
        offer = parse_offer(raw_offer(scope="global", type="product"))
        assert offer.scope is OfferScope.GLOBAL

    def test_global_offer_has_no_target(self):
        """Test global offers never carry a target product."""
        offer = parse_offer(raw_offer(type="all", product_id=12))
        assert offer.scope is OfferScope.GLOBAL
        assert offer.target_product_id is None

    def test_camel_case_fields(self):
        """Test camelCase field names."""
        offer = parse_offer(
            {
                "id": "7",
                "scope": "product",
                "targetProductId": "3",
                "discountType": "fixed",
                "discountValue": 30,
                "isActive": "true",
                "startDate": "2024-01-01",
                "endDate": "2024-02-01",
            }
        )

        assert offer.id == 7
        assert offer.target_product_id == 3
        assert offer.discount_type is DiscountType.FIXED
        assert offer.is_active is True
        assert offer.end_date is not None

    def test_non_numeric_id_kept(self):
        """Test string ids are preserved."""
        assert parse_offer(raw_offer(id="spring-2024")).id == "spring-2024"

    def test_unresolvable_target_kept_without_id(self):
        """Test a product offer with a bad id stays but has no target."""
        offer = parse_offer(raw_offer(product_id="n/a"))
        assert offer.scope is OfferScope.PRODUCT
        assert offer.target_product_id is None

    def test_percentage_clamped(self):
        """Test percentages above 100 are clamped."""
        assert parse_offer(raw_offer(discount_value=150)).discount_value == 100.0

    def test_negative_value_clamped(self):
        """Test negative discounts are clamped to zero."""
        offer = parse_offer(raw_offer(discount_type="fixed", discount_value=-5))
        assert offer.discount_value == 0.0

    def test_fixed_value_not_clamped_to_100(self):
        """Test fixed amounts may exceed 100."""
        offer = parse_offer(raw_offer(discount_type="fixed", discount_value=250))
        assert offer.discount_value == 250.0

    def test_unparsable_value_reads_as_zero(self):
        """Test a garbage discount value becomes 0."""
        assert parse_offer(raw_offer(discount_value="lots")).discount_value == 0.0

    def test_invalid_dates_become_none(self):
        """Test unparsable dates are dropped."""
        offer = parse_offer(raw_offer(start_date="soon", end_date="later"))
        assert offer.start_date is None
        assert offer.end_date is None

    def test_unknown_scope_rejected(self):
        """Test an unrecognized scope is malformed."""
        with pytest.raises(MalformedOfferError) as exc_info:
            parse_offer(raw_offer(type="category"))
        assert exc_info.value.offer_id == 1

    def test_missing_scope_rejected(self):
        """Test a missing scope is malformed."""
        record = raw_offer()
        del record["type"]
        with pytest.raises(MalformedOfferError):
            parse_offer(record)

    def test_unknown_discount_type_rejected(self):
        """Test an unrecognized discount type is malformed."""
        with pytest.raises(MalformedOfferError):
            parse_offer(raw_offer(discount_type="bogo"))

    def test_non_mapping_rejected(self):
        """Test non-object records are malformed."""
        with pytest.raises(MalformedOfferError):
            parse_offer(["not", "a", "dict"])

    def test_to_dict(self):
        """Test JSON serialization."""
        data = parse_offer(raw_offer()).to_dict()
        assert data["scope"] == "product"
        assert data["discount_type"] == "percentage"
        assert data["target_product_id"] == 12
        assert data["start_date"].startswith("2024-01-01T00:00:00")


class TestParseOffers:
    """Tests for batch normalization."""

    def test_malformed_records_skipped(self):
        """Test one bad record never aborts the batch."""
        offers, skipped = parse_offers(
            [
                raw_offer(id=1),
                raw_offer(id=2, discount_type="mystery"),
                "garbage",
                raw_offer(id=3, type="global"),
            ]
        )

        assert [offer.id for offer in offers] == [1, 3]
        assert skipped == 2

    def test_unexpected_record_error_skipped(self):
        """Test a record that blows up during parsing is skipped too."""

        class BrokenRecord(dict):
            def get(self, key, default=None):
                raise RuntimeError("unreadable record")

        offers, skipped = parse_offers([raw_offer(id=1), BrokenRecord(), raw_offer(id=2)])

        assert [offer.id for offer in offers] == [1, 2]
        assert skipped == 1

    def test_empty_batch(self):
        """Test an empty list."""
        assert parse_offers([]) == ([], 0)

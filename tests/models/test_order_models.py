"""Tests for catalogue and order payload models."""

from __future__ import annotations

from aurelane.models.gems import DiscountType, Gem, GemDetail, GemPage
from aurelane.models.orders import PaymentOrder, ShippingAddress, VerificationResult


class TestGemModels:
    def test_gem_accepts_mongo_id_and_camel_case(self):
        gem = Gem.model_validate(
            {
                "_id": "g1",
                "name": "Neelam",
                "hindiName": "नीलम",
                "price": 45000,
                "discountType": "fixed",
                "birthMonth": "September",
                "averageRating": 4.5,
                "unknownField": True,
            }
        )

        assert gem.id == "g1"
        assert gem.hindi_name == "नीलम"
        assert gem.discount_type is DiscountType.FIXED
        assert gem.birth_month == "September"
        assert gem.primary_image is None

    def test_gem_page_from_top_level_list(self):
        page = GemPage.from_payload({"gems": [{"id": "g1"}, {"id": "g2"}]})

        assert [gem.id for gem in page.gems] == ["g1", "g2"]
        assert page.pagination.current_page == 1

    def test_gem_detail_nested_gem(self):
        detail = GemDetail.from_payload({"data": {"gem": {"_id": "g5", "name": "Moti"}}})

        assert detail.gem.id == "g5"
        assert detail.related == []


class TestShippingAddress:
    def test_from_user_prefers_phone_number(self):
        address = ShippingAddress.from_user(
            {"name": "Asha", "email": "asha@example.com", "phoneNumber": "98", "phone": "11"}
        )

        assert address.phone == "98"
        assert address.first_missing_field() == "address_line1"

    def test_from_missing_user(self):
        assert ShippingAddress.from_user(None).first_missing_field() == "name"

    def test_payload_keeps_explicit_country(self):
        address = ShippingAddress.model_validate(
            {"name": "A", "addressLine1": "1 Road", "country": "Nepal"}
        )

        payload = address.to_payload("India")

        assert payload["addressLine1"] == "1 Road"
        assert payload["country"] == "Nepal"
        assert "email" not in payload


class TestPaymentOrder:
    def test_parses_enveloped_descriptor(self):
        order = PaymentOrder.from_payload(
            {
                "success": True,
                "data": {
                    "orderId": "o9",
                    "razorpayOrder": {"id": "order_x", "amount": 250000},
                    "keyId": "rzp_live",
                },
            }
        )

        assert order is not None
        assert order.order_id == "o9"
        assert order.gateway_order.amount == 250000
        assert order.gateway_order.currency == "INR"
        assert order.key_id == "rzp_live"

    def test_missing_key_is_none(self):
        assert (
            PaymentOrder.from_payload({"razorpayOrder": {"id": "order_x", "amount": 1}})
            is None
        )

    def test_missing_descriptor_id_is_none(self):
        assert PaymentOrder.from_payload({"razorpayOrder": {}, "keyId": "k"}) is None

    def test_descriptor_without_amount_is_none(self):
        assert (
            PaymentOrder.from_payload(
                {"success": True, "razorpayOrder": {"id": "rzp1"}, "keyId": "k"}
            )
            is None
        )

    def test_fractional_minor_units_are_rejected(self):
        payload = {"razorpayOrder": {"id": "rzp1", "amount": 1000.5}, "keyId": "k"}

        assert PaymentOrder.from_payload(payload) is None


def test_verification_result_from_envelope():
    result = VerificationResult.from_payload({"data": {"success": True, "message": "ok"}})

    assert result.success is True
    assert result.message == "ok"

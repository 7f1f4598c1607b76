"""Tests for reading ids out of the different courier response shapes."""

import pytest

from commerce.fulfillment.extraction import (
    courier_id,
    courier_label,
    dig,
    extract_awb,
    extract_courier_name,
    extract_couriers,
    extract_order_id,
    extract_shipment_id,
)


class TestDig:
    def test_nested_dicts_and_lists(self):
        assert dig({"a": [{"b": 1}]}, ("a", 0, "b")) == 1

    def test_missing_step(self):
        assert dig({"a": []}, ("a", 0, "b")) is None
        assert dig({"a": "text"}, ("a", "b")) is None
        assert dig(None, ("a",)) is None


class TestAwb:
    @pytest.mark.parametrize(
        "document",
        [
            {"awb_code": "AWB1"},
            {"data": {"awb_code": "AWB1"}},
            {"response": {"data": {"awb_code": "AWB1"}}},
            {"shipments": [{"awb_code": "AWB1"}]},
            {"shipments": [{"awb": "AWB1"}]},
            {"data": {"shipments": [{"awb_code": "AWB1"}]}},
            {"data": {"shipments": [{"awb": "AWB1"}]}},
            {"order": {"shipments": [{"awb_code": "AWB1"}]}},
            {"data": {"order": {"shipments": [{"awb_code": "AWB1"}]}}},
        ],
    )
    def test_every_known_shape(self, document):
        assert extract_awb(document) == "AWB1"

    def test_first_present_path_wins(self):
        document = {"awb_code": "TOP", "data": {"awb_code": "NESTED"}}
        assert extract_awb(document) == "TOP"

    def test_blank_values_are_skipped(self):
        document = {"awb_code": "  ", "shipments": [{"awb_code": "AWB2"}]}
        assert extract_awb(document) == "AWB2"

    def test_values_are_stripped(self):
        assert extract_awb({"awb_code": " AWB3 "}) == "AWB3"

    def test_absent(self):
        assert extract_awb({"status": "NEW"}) is None
        assert extract_awb(None) is None


class TestIds:
    def test_order_id_numbers_become_text(self):
        assert extract_order_id({"order_id": 1001}) == "1001"
        assert extract_order_id({"data": {"order_id": 7}}) == "7"
        assert extract_order_id({"id": "x9"}) == "x9"

    def test_shipment_id_shapes(self):
        assert extract_shipment_id({"shipment_id": 6001}) == "6001"
        assert extract_shipment_id({"shipments": [{"id": 6002}]}) == "6002"
        assert extract_shipment_id({"data": {"shipments": [{"id": 6003}]}}) == "6003"
        assert extract_shipment_id({"shipments": [{"shipment_id": 6004}]}) == "6004"

    def test_courier_name(self):
        assert extract_courier_name({"response": {"data": {"courier_name": "Delhivery"}}}) == "Delhivery"
        assert extract_courier_name({"shipments": [{"courier": "Xpressbees"}]}) == "Xpressbees"


class TestCouriers:
    def test_serviceability_answer(self):
        answer = {"data": {"available_courier_companies": [{"id": 11}, "junk", {"id": 24}]}}
        assert extract_couriers(answer) == [{"id": 11}, {"id": 24}]

    def test_top_level_list(self):
        assert extract_couriers([{"id": 1}]) == [{"id": 1}]

    def test_no_list(self):
        assert extract_couriers({"data": {"message": "none"}}) == []

    def test_courier_id_falls_through_keys(self):
        assert courier_id({"id": 11}) == "11"
        assert courier_id({"courier_company_id": 24}) == "24"
        assert courier_id({"courier_id": " 7 "}) == "7"
        assert courier_id({"name": "Nobody"}) is None

    def test_courier_label(self):
        assert courier_label({"courier_name": "Delhivery"}) == "Delhivery"
        assert courier_label({"name": "Bluedart"}) == "Bluedart"

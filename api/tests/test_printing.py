import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from api.app.printing.messages import (
    MessageError,
    OrderPrintMessage,
    OrderType,
    PingMessage,
    PongMessage,
    PrintJob,
    PrintStatus,
    PrintStatusMessage,
    encode_message,
    parse_message,
)


def test_job_reads_camel_case(order_payload):
    job = PrintJob.model_validate(order_payload)
    assert job.order_id_string == "ord_clx9k2m7p0001ab12cd34"
    assert job.type is OrderType.DINE_IN
    assert job.created_at == datetime(2026, 10, 19, 13, 30, tzinfo=timezone.utc)
    assert [i.line_total for i in job.items] == [300.0, 130.0]


def test_display_id_is_last_eight_upper(order_payload):
    job = PrintJob.model_validate(order_payload)
    assert job.display_id == "AB12CD34"

    short = job.model_copy(update={"order_id_string": "ab1"})
    assert short.display_id == "AB1"


def test_location_follows_order_type(order_payload):
    dine_in = PrintJob.model_validate(order_payload)
    assert dine_in.location == "T4"

    delivery = PrintJob.model_validate(
        {**order_payload, "type": "DELIVERY", "address": "12 MG Road"}
    )
    assert delivery.location == "12 MG Road"

    takeaway = PrintJob.model_validate({**order_payload, "type": "TAKEAWAY"})
    assert takeaway.location is None


def test_job_is_immutable(order_payload):
    job = PrintJob.model_validate(order_payload)
    with pytest.raises(ValidationError):
        job.customer_name = "Someone else"


def test_job_rejects_bad_items(order_payload):
    bad = {**order_payload, "items": [{"name": "Tea", "quantity": 0, "price": 10}]}
    with pytest.raises(ValidationError):
        PrintJob.model_validate(bad)


def test_encode_uses_wire_names(order_payload):
    job = PrintJob.model_validate(order_payload)
    data = json.loads(encode_message(OrderPrintMessage(order=job)))
    assert data["type"] == "ORDER_PRINT"
    assert data["order"]["orderIdString"] == job.order_id_string
    assert data["order"]["customerMobile"] == "9876543210"
    assert "address" not in data["order"]


def test_status_always_carries_error_key():
    ok = PrintStatusMessage(order_id="ord_1", status=PrintStatus.SUCCESS)
    assert json.loads(encode_message(ok)) == {
        "type": "PRINT_STATUS",
        "orderId": "ord_1",
        "status": "SUCCESS",
        "error": None,
    }


def test_parse_known_messages():
    assert isinstance(parse_message('{"type":"PING"}'), PingMessage)
    assert isinstance(parse_message(b'{"type":"PONG"}'), PongMessage)
    status = parse_message(
        '{"type":"PRINT_STATUS","orderId":"ord_1","status":"FAILED","error":"jam"}'
    )
    assert status == PrintStatusMessage(
        order_id="ord_1", status=PrintStatus.FAILED, error="jam"
    )


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "[1, 2]",
        '{"type":"UNKNOWN"}',
        '{"orderId":"x"}',
        '{"type":"PRINT_STATUS","orderId":"x","status":"MAYBE"}',
        '{"type":"ORDER_PRINT"}',
    ],
)
def test_parse_rejects_malformed(raw):
    with pytest.raises(MessageError):
        parse_message(raw)

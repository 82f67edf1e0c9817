from decimal import Decimal

import pytest
from pydantic import ValidationError

from workshop.schemas import (
    AuthFrame,
    ChatMessageFrame,
    JoinChannelFrame,
    MessageCreate,
    PartLineCreate,
    WorkOrderCreate,
    WSMessage,
    client_frame_adapter,
)


def test_work_order_create_accepts_camel_case():
    wo = WorkOrderCreate.model_validate({
        "customerId": "c1", "serviceId": "s1", "vehicleIdent": "ABC-123", "vehicleMake": "Kia",
    })
    assert wo.customer_id == "c1"
    assert wo.vehicle_make == "Kia"
    assert wo.vehicle_model is None


def test_part_line_defaults_to_one():
    line = PartLineCreate(partId="p1")
    assert line.qty == Decimal("1")


def test_message_create_needs_exactly_one_address():
    assert MessageCreate(channelId="ch", body="hi").channel_id == "ch"
    assert MessageCreate(recipientId="u", body="hi").recipient_id == "u"
    with pytest.raises(ValidationError):
        MessageCreate(body="hi")
    with pytest.raises(ValidationError):
        MessageCreate(channelId="ch", recipientId="u", body="hi")


def test_client_frames_dispatch_on_type():
    assert isinstance(client_frame_adapter.validate_python({"type": "auth", "token": "t"}), AuthFrame)

    join = client_frame_adapter.validate_python({"type": "join_channel", "channelId": "ch"})
    assert isinstance(join, JoinChannelFrame)
    assert join.channel_id == "ch"

    chat = client_frame_adapter.validate_python({"type": "chat_message", "channelId": "ch", "body": "x"})
    assert isinstance(chat, ChatMessageFrame)

    with pytest.raises(ValidationError):
        client_frame_adapter.validate_python({"type": "shout"})
    with pytest.raises(ValidationError):
        client_frame_adapter.validate_python({"type": "join_channel"})


def test_ws_message_dump_uses_wire_names():
    assert WSMessage(type="joined", channel_id="ch").dump() == {"type": "joined", "channelId": "ch"}
    assert WSMessage(type="auth_success").dump() == {"type": "auth_success"}

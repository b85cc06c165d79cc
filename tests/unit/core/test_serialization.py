from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID
from time2meet.core.utils.serialization import normalize_ctx
from time2meet.domain.exceptions import Conflict


def test_normalize_ctx_makes_values_json_safe():
    ctx = {
        "amount": Decimal("20.00"),
        "at": datetime(2026, 5, 1, tzinfo=timezone.utc),
        "id": UUID(int=1),
        "ids": (UUID(int=2),),
        "n": 3,
        "none": None,
    }

    assert normalize_ctx(ctx) == {
        "amount": "20.00",
        "at": "2026-05-01T00:00:00+00:00",
        "id": "00000000-0000-0000-0000-000000000001",
        "ids": ["00000000-0000-0000-0000-000000000002"],
        "n": 3,
        "none": None,
    }


def test_app_error_normalizes_ctx_and_defaults_message():
    err = Conflict(ctx={"ticket_type_id": UUID(int=1)})

    assert err.message == "Conflict"
    assert err.code == "conflict"
    assert err.ctx == {"ticket_type_id": "00000000-0000-0000-0000-000000000001"}

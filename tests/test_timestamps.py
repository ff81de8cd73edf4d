from datetime import datetime, timezone

import pytest

from app.core.messages import message
from app.core.timestamps import now_ms, to_epoch_ms


@pytest.mark.parametrize(
    "value, expected",
    [
        (1714521600000, 1714521600000),
        (1714521600000.9, 1714521600000),
        ("1714521600000", 1714521600000),
        ("2024-05-01T00:00:00.000Z", 1714521600000),
        ("2024-05-01T09:00:00+09:00", 1714521600000),
        ("2024-05-01T00:00:00", 1714521600000),
        (datetime(2024, 5, 1, tzinfo=timezone.utc), 1714521600000),
        ("", None),
        ("yesterday", None),
        (None, None),
        (True, None),
        ([], None),
    ],
)
def test_to_epoch_ms(value, expected):
    assert to_epoch_ms(value) == expected


def test_now_ms_is_epoch_milliseconds():
    assert now_ms() > 1_600_000_000_000


def test_messages_fall_back_to_japanese():
    assert message("reorder_saved", "en") == "Order saved successfully"
    assert message("reorder_saved", "fr") == message("reorder_saved", "ja")

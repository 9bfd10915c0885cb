import logging

import pytest

from hypertension_coach.common.logger import ScrubFilter


@pytest.mark.parametrize("message, expected", [
    ("Authorization: Bearer sk-live.abc123", "Authorization: Bearer ***"),
    ('payload {"api_key": "xyz987"}', 'payload {"api_key": "***"}'),
    ("\x1b[31mcircuit open\x1b[0m", "circuit open"),
    ("stage=HYPERTENSIVE CRISIS", "stage=HYPERTENSIVE CRISIS"),
])
def test_scrub_filter(message, expected):
    record = logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)
    assert ScrubFilter().filter(record) is True
    assert record.msg == expected

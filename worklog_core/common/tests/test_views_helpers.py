import pytest
from rest_framework.exceptions import ValidationError

from worklog_core.common.views import bool_or_none, date_or_none, uuid_or_none


def test_bool_parsing():
    assert bool_or_none("true", "x") is True
    assert bool_or_none("0", "x") is False
    assert bool_or_none("", "x") is None
    with pytest.raises(ValidationError):
        bool_or_none("maybe", "x")


def test_date_and_uuid_parsing():
    assert str(date_or_none("2024-01-08", "d")) == "2024-01-08"
    assert uuid_or_none(None, "id") is None
    with pytest.raises(ValidationError):
        date_or_none("08/01/2024", "d")
    with pytest.raises(ValidationError):
        uuid_or_none("nope", "id")

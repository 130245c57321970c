import pytest

from precognition.config import RequestConfig
from precognition.dispatch import HANDLER_FIELDS, DispatchStatus, resolve_status_handler


@pytest.mark.parametrize(
    ("status_code", "field_name"),
    [
        (204, "on_precognition_success"),
        (401, "on_unauthorized"),
        (403, "on_forbidden"),
        (404, "on_not_found"),
        (409, "on_conflict"),
        (422, "on_validation_error"),
        (423, "on_locked"),
    ],
)
def test_each_status_resolves_to_its_own_handler(status_code: int, field_name: str) -> None:
    handlers = {
        name: (lambda response, error, _name=name: _name) for name in HANDLER_FIELDS.values()
    }
    config = RequestConfig(**handlers)

    handler = resolve_status_handler(config, status_code)

    assert handler is not None
    assert handler(None, None) == field_name


def test_table_covers_every_dispatch_status() -> None:
    assert set(HANDLER_FIELDS) == set(DispatchStatus)
    assert len(set(HANDLER_FIELDS.values())) == len(DispatchStatus)


def test_unknown_status_or_missing_handler_resolves_to_none() -> None:
    config = RequestConfig(on_validation_error=lambda response, error: "handled")

    assert resolve_status_handler(config, 200) is None
    assert resolve_status_handler(config, 500) is None
    assert resolve_status_handler(config, 404) is None

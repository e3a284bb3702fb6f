import json

import pytest

from fogcontroller.core.errors import (
    AuthenticationError,
    ConflictError,
    ErrorKind,
    NotFoundError,
    ValidationError,
    classify_error,
    classify_postgres_error,
)


@pytest.mark.parametrize(
    "error_class,status,kind",
    [
        (ValidationError, 400, ErrorKind.VALIDATION),
        (AuthenticationError, 401, ErrorKind.AUTH),
        (NotFoundError, 404, ErrorKind.NOT_FOUND),
        (ConflictError, 409, ErrorKind.CONFLICT),
    ],
)
def test_error_kinds_map_to_status(error_class, status, kind):
    error = error_class("boom", field="name")
    info = classify_error(error)
    assert error.status_code == status
    assert info.kind == kind
    assert info.http_status == status
    assert info.message == "boom"
    assert info.details == {"field": "name"}


def test_json_errors_are_parse_errors():
    try:
        json.loads("{not json")
    except json.JSONDecodeError as e:
        info = classify_error(e)
    assert info.kind == ErrorKind.PARSE
    assert info.code == "PY_JSONDecodeError"


def test_unknown_errors():
    info = classify_error(RuntimeError("disk on fire"))
    assert info.kind == ErrorKind.UNKNOWN
    assert info.to_dict()["exception_type"] == "RuntimeError"


def test_postgres_constraint_code():
    info = classify_postgres_error(Exception("insert failed"), error_code="23505")
    assert info.kind == ErrorKind.DB_CONSTRAINT
    assert info.code == "PG_23505"


def test_postgres_connection_error():
    info = classify_postgres_error(Exception("connection refused"))
    assert info.kind == ErrorKind.DB_CONNECTION

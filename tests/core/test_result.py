"""Tests for the Ok / Err result envelope."""

import pytest

from sqlspine.core.errors import QueryError
from sqlspine.core.result import Err, Ok


class TestOk:
    def test_accessors(self):
        r = Ok(3)
        assert r.is_ok() and not r.is_err()
        assert r.unwrap() == 3
        assert r.unwrap_or(0) == 3

    def test_map(self):
        assert Ok(3).map(lambda n: n + 1) == Ok(4)
        assert Ok(3).map_err(lambda e: RuntimeError()) == Ok(3)

    def test_to_dict(self):
        assert Ok("sql").to_dict() == {"ok": True, "value": "sql"}


class TestErr:
    def test_accessors(self):
        error = ValueError("boom")
        r = Err(error)
        assert r.is_err() and not r.is_ok()
        assert r.unwrap_or(0) == 0
        with pytest.raises(ValueError, match="boom"):
            r.unwrap()

    def test_map_is_skipped(self):
        error = ValueError("boom")
        assert Err(error).map(lambda n: n + 1).error is error

    def test_map_err(self):
        wrapped = Err(ValueError("boom")).map_err(lambda e: QueryError(str(e)))
        assert isinstance(wrapped.error, QueryError)

    def test_to_dict_for_sqlspine_error(self):
        d = Err(QueryError("bad")).to_dict()
        assert d["ok"] is False
        assert d["error"]["error_type"] == "QueryError"

    def test_to_dict_for_plain_exception(self):
        assert Err(KeyError("k")).to_dict() == {
            "ok": False,
            "error": {"error_type": "KeyError", "message": "'k'"},
        }


def test_pattern_matching():
    def describe(result):
        match result:
            case Ok(value):
                return f"ok:{value}"
            case Err(error):
                return f"err:{error}"

    assert describe(Ok(1)) == "ok:1"
    assert describe(Err(ValueError("x"))) == "err:x"

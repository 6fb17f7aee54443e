from procroute.rpc.error_boundary import (
    method_not_supported_result,
    procedure_error_result,
    result_http_status,
    unhandled_exception_result,
    unknown_procedure_result,
    validation_error_result,
)
from procroute.rpc.messages import CallResult
from procroute.utils.exceptions import ErrorCategory, ProcedureError, ValidationError


def test_unknown_procedure_result():
    res = unknown_procedure_result(name="x.y")
    assert res.ok is False
    assert res.error_code == "NOT_FOUND"
    assert result_http_status(res) == 404


def test_unknown_procedure_result_with_kind():
    res = unknown_procedure_result(name="userCreate", kind="query")
    assert res.error["message"] == "no query procedure named 'userCreate'"


def test_method_not_supported_result():
    res = method_not_supported_result(name="userCreate", http_method="GET")
    assert res.error_code == "METHOD_NOT_SUPPORTED"
    assert result_http_status(res) == 405


def test_validation_error_result_logs_and_maps():
    calls = []
    exc = ValidationError("bad", issues=[{"path": [], "message": "bad", "type": "x"}])
    res = validation_error_result(
        name="abc",
        exc=exc,
        log_info=lambda fmt, n, msg: calls.append((fmt, n, msg)),
    )
    assert res.error == {"code": "BAD_INPUT", "message": "bad", "data": {"issues": exc.details["issues"]}}
    assert calls and calls[0][1] == "abc"
    assert result_http_status(res) == 400


def test_procedure_error_result_keeps_code_and_category():
    calls = []
    res = procedure_error_result(
        name="abc",
        exc=ProcedureError("EMAIL_TAKEN", "taken", category=ErrorCategory.CONFLICT),
        log_warning=lambda fmt, n, code, msg: calls.append((n, code)),
    )
    assert res.error_code == "EMAIL_TAKEN"
    assert calls == [("abc", "EMAIL_TAKEN")]
    assert result_http_status(res) == 409


def test_unhandled_exception_result_logs_and_hides_message():
    calls = []
    res = unhandled_exception_result(
        name="abc",
        exc=RuntimeError("boom token=s3cr3t"),
        log_exception=lambda fmt, n, code, msg: calls.append((n, code, msg)),
    )
    assert res.ok is False
    assert res.error_code == "INTERNAL"
    assert "boom" not in res.error["message"]
    assert calls and calls[0][0] == "abc"
    assert "s3cr3t" not in calls[0][2]
    assert result_http_status(res) == 500


def test_result_http_status_ok():
    assert result_http_status(CallResult.success(None)) == 200

from __future__ import annotations

import pytest

from codex_cms.kernel.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    CMSError,
    Conflict,
    NotFound,
    StorageFailure,
    ValidationFailed,
)

pytestmark = pytest.mark.unit


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        ("error", "status_code", "code"),
        [
            (AuthenticationRequired(), 401, "auth.unauthenticated"),
            (AuthorizationDenied(), 403, "auth.forbidden"),
            (ValidationFailed(errors=[]), 422, "request.validation_failed"),
            (NotFound(), 404, "resource.not_found"),
            (Conflict(), 409, "resource.conflict"),
            (StorageFailure(operation="get_page"), 500, "storage.failure"),
        ],
    )
    def test_status_and_code(self, error, status_code, code):
        assert error.status_code == status_code
        assert error.code == code

    def test_rejects_malformed_code(self):
        with pytest.raises(ValueError):
            CMSError(code="Not-A-Code", message="x")

    def test_public_dict_omits_empty_meta_and_request_id(self):
        assert NotFound(message="page not found").to_public_dict(request_id=None) == {
            "detail": "page not found",
            "code": "resource.not_found",
        }

    def test_public_dict_includes_meta(self):
        payload = Conflict(meta={"slug": "about"}).to_public_dict(request_id="req_1")
        assert payload["meta"] == {"slug": "about"}
        assert payload["request_id"] == "req_1"

    def test_storage_failure_keeps_operation_off_the_wire(self):
        error = StorageFailure(operation="replace_blocks")
        assert error.operation == "replace_blocks"
        assert "meta" not in error.to_public_dict(request_id=None)

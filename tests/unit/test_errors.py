"""Unit tests for domain error values and the upstream guard."""

from __future__ import annotations

import pytest

from sampler.errors import UPSTREAM_FAILURE_MESSAGE, DomainError, ErrorKind, UpstreamError, status_for, upstream_guard


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("kind", "status"),
        [
            (ErrorKind.VALIDATION, 400),
            (ErrorKind.NOT_FOUND, 404),
            (ErrorKind.CONFLICT, 409),
            (ErrorKind.PRECONDITION_FAILED, 400),
            (ErrorKind.UPSTREAM, 502),
            (ErrorKind.INTERNAL, 500),
        ],
    )
    def test_every_kind_has_a_status(self, kind, status):
        assert status_for(kind) == status
        assert DomainError(kind, "x").status == status

    def test_envelope(self):
        error = DomainError.not_found("Trivia question not found")
        assert error.to_envelope() == {
            "success": False,
            "error": "Trivia question not found",
            "kind": "not_found",
        }


@pytest.mark.asyncio
class TestUpstreamGuard:
    """Collaborator failures become a generic upstream error."""

    async def test_passes_results_through(self):
        @upstream_guard("op")
        async def op() -> int:
            return 7

        assert await op() == 7

    async def test_domain_errors_pass_through(self):
        @upstream_guard("op")
        async def op() -> DomainError:
            return DomainError.conflict("dup")

        assert await op() == DomainError.conflict("dup")

    async def test_upstream_failure_hides_detail(self):
        @upstream_guard("op")
        async def op() -> int:
            raise UpstreamError("connection reset by peer at 10.0.0.3", 503)

        result = await op()
        assert result == DomainError(ErrorKind.UPSTREAM, UPSTREAM_FAILURE_MESSAGE)
        assert "10.0.0.3" not in result.message

    async def test_other_exceptions_propagate(self):
        @upstream_guard("op")
        async def op() -> int:
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await op()

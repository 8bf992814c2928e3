"""Tests for the failure envelope."""

from rolltables.models.failure import (
    STANDARD_MESSAGES,
    ApiResponse,
    FailureKind,
    KnownError,
    OutcomeType,
    RefusalError,
)


class TestKnownError:
    def test_to_response(self) -> None:
        error = KnownError(
            kind=FailureKind.NOT_FOUND,
            message="Could not find table",
            detail="id",
            status_code=404,
        )

        response = error.to_response()

        assert response.outcome is OutcomeType.KNOWN_FAILURE
        assert response.failure.kind is FailureKind.NOT_FOUND
        assert response.failure.message == "Could not find table"
        assert response.failure.detail == "id"
        assert error.status_code == 404


class TestRefusalError:
    def test_defaults_to_conflict(self) -> None:
        error = RefusalError(kind=FailureKind.FEATURE_DISABLED, message="Not allowed")

        assert error.status_code == 409
        assert error.to_response().outcome is OutcomeType.REFUSAL


class TestUnknownFailure:
    def test_uses_standard_message(self) -> None:
        response = ApiResponse.unknown_failure(detail="ZeroDivisionError")

        assert response.failure.kind is FailureKind.UNKNOWN
        assert response.failure.message == STANDARD_MESSAGES[OutcomeType.UNKNOWN_FAILURE]
        assert response.model_dump(mode="json")["outcome"] == "unknown_failure"

    def test_only_unknown_failures_have_a_standard_message(self) -> None:
        """Known failures and refusals always carry their own message."""
        assert set(STANDARD_MESSAGES) == {OutcomeType.UNKNOWN_FAILURE}

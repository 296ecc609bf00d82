"""Unit tests for deployment failure classification."""

import pytest

from contract_deployer.exceptions import (
    CompileFailure,
    ConfigurationError,
    ConstructorArgumentError,
    RpcError,
    SubmissionFailure,
)
from contract_deployer.executor import classify_failure
from contract_deployer.types import FailureKind


class TestClassifyFailure:
    """Test mapping of raised errors onto failure kinds."""

    def test_classified_failure_passes_through(self):
        failure = CompileFailure(["boom"])
        assert classify_failure(failure) is failure

    def test_constructor_arguments(self):
        failure = classify_failure(ConstructorArgumentError("Constructor expects 1 argument(s), got 0"))

        assert isinstance(failure, SubmissionFailure)
        assert failure.kind is FailureKind.INVALID_CONSTRUCTOR_ARGS

    def test_configuration(self):
        failure = classify_failure(ConfigurationError("Network 'x' is not configured"))
        assert failure.kind is FailureKind.CONFIGURATION_ERROR

    @pytest.mark.parametrize(
        "message, kind",
        [
            ("RPC error: insufficient funds for gas * price + value", FailureKind.INSUFFICIENT_FUNDS),
            ("RPC error: nonce too low", FailureKind.NONCE_CONFLICT),
            ("RPC error: intrinsic gas too low", FailureKind.GAS_ERROR),
            ("RPC error: execution reverted", FailureKind.UNKNOWN_ERROR),
        ],
    )
    def test_message_substrings(self, message, kind):
        """Test that node messages are classified by substring."""
        failure = classify_failure(RpcError(message))

        assert isinstance(failure, SubmissionFailure)
        assert failure.kind is kind
        assert failure.message == message

    def test_first_match_wins(self):
        """Test that insufficient funds is preferred over gas."""
        failure = classify_failure(RuntimeError("insufficient funds for gas"))
        assert failure.kind is FailureKind.INSUFFICIENT_FUNDS

    def test_case_insensitive(self):
        assert classify_failure(RpcError("Nonce Too High")).kind is FailureKind.NONCE_CONFLICT

    def test_empty_message_uses_type_name(self):
        failure = classify_failure(TimeoutError())
        assert failure.kind is FailureKind.UNKNOWN_ERROR
        assert failure.message == "TimeoutError"

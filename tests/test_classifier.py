import pytest

from cryptsign.process.runner import ExecutionResult
from cryptsign.signing.classifier import OutcomeKind, classify, combined_text


def make_result(**overrides):
    base = dict(
        exit_error=None,
        stdout="Signed message is created.\n[ErrorCode: 0x00000000]",
        stderr="",
        duration=1.5,
        returncode=0,
        output_path="/tmp/cprov_x/data.txt.sgn",
        output_exists=True,
        files=("data.txt", "data.txt.sgn"),
    )
    base.update(overrides)
    return ExecutionResult(**base)


def test_success_requires_all_three_signals():
    outcome = classify(make_result())
    assert outcome.kind is OutcomeKind.SUCCESS
    assert outcome.succeeded


def test_zero_exit_without_output_file_is_not_success():
    outcome = classify(make_result(output_exists=False, files=("data.txt",)))
    assert outcome.kind is OutcomeKind.FATAL
    assert "signature file not created" in outcome.message
    assert "data.txt" in outcome.message


def test_error_text_with_zero_exit_and_file_is_not_success():
    outcome = classify(make_result(stdout="ERROR: certificate chain is not valid"))
    assert outcome.kind is OutcomeKind.FATAL
    assert "reported error in output" in outcome.message


def test_exit_error_alone_is_fatal():
    outcome = classify(make_result(exit_error="exit status 2", stdout=""))
    assert outcome.kind is OutcomeKind.FATAL
    assert "exit status 2" in outcome.message


@pytest.mark.parametrize("where", ["stdout", "stderr", "exit_error"])
def test_http_error_anywhere_is_retryable(where):
    fields = {"exit_error": "exit status 1", "output_exists": False}
    fields[where] = "Error: HTTP Error 502 from time-stamp server" if where != "exit_error" else "http error"
    outcome = classify(make_result(**fields))
    assert outcome.kind is OutcomeKind.RETRYABLE
    assert outcome.retryable


def test_http_error_marker_is_case_insensitive():
    outcome = classify(make_result(stderr="HtTp ErRoR", output_exists=False))
    assert outcome.kind is OutcomeKind.RETRYABLE


def test_http_error_does_not_override_success():
    # "http error" without the "error:" marker and with a clean exit is still a success
    outcome = classify(make_result(stdout="previous http error recovered"))
    assert outcome.kind is OutcomeKind.SUCCESS


def test_classification_is_idempotent():
    result = make_result(exit_error="exit status 1", stdout="Error: HTTP error", output_exists=False)
    first = classify(result)
    second = classify(result)
    assert first == second


def test_combined_text_renders_missing_exit_error():
    text = combined_text(make_result(stdout="OUT", stderr="Err"))
    assert text == "<nil> out err"

from __future__ import annotations

from driftive.exec.parsing import is_drift_detected, parse_error_output, parse_plan

from conftest import DRIFT_OUTPUT, NO_DRIFT_OUTPUT


def test_no_changes_phrase_means_no_drift() -> None:
    assert is_drift_detected(NO_DRIFT_OUTPUT) is False


def test_no_changes_phrase_anywhere_in_noise() -> None:
    noisy = "garbage\n" * 50 + "xx No changes. Infrastructure is up-to-date. yy" + "\nmore garbage" * 50
    assert is_drift_detected(noisy) is False


def test_matches_configuration_phrase_means_no_drift() -> None:
    output = "Note: Objects have changed outside of Terraform\n\nYour infrastructure matches the configuration."
    assert is_drift_detected(output) is False


def test_unrecognized_output_is_drift() -> None:
    assert is_drift_detected("") is True
    assert is_drift_detected("some new tool wording: nothing to do") is True
    assert is_drift_detected(DRIFT_OUTPUT) is True


def test_parse_plan_starts_at_changes_marker_and_drops_out_disclaimer() -> None:
    parsed = parse_plan(DRIFT_OUTPUT)
    assert parsed.startswith("Terraform will perform the following actions:")
    assert "Refreshing state" not in parsed
    assert "didn't use the -out option" not in parsed
    assert "Plan: 0 to add, 1 to change, 0 to destroy." in parsed
    assert not parsed.endswith("now.")


def test_parse_plan_opentofu_marker() -> None:
    output = "noise\nOpenTofu will perform the following actions:\n  + create\n"
    assert parse_plan(output) == "OpenTofu will perform the following actions:\n  + create"


def test_parse_plan_prefers_planning_failed_marker() -> None:
    output = (
        "Terraform will perform the following actions:\n  + resource\n"
        "Planning failed. Terraform encountered an error while generating this plan.\n\n"
        "Error: Invalid provider configuration\n"
    )
    parsed = parse_plan(output)
    assert parsed.startswith("Planning failed. Terraform encountered an error")
    assert parsed.endswith("Error: Invalid provider configuration")


def test_parse_plan_without_markers_returns_output_unmodified() -> None:
    output = "  something unexpected \n"
    assert parse_plan(output) == output


def test_parse_error_output_after_last_refresh_line() -> None:
    output = (
        "aws_s3_bucket.a: Refreshing state... [id=a]\n"
        "aws_s3_bucket.b: Refreshing state... [id=b]\n"
        "Error: access denied\n"
        "  on main.tf line 3"
    )
    assert parse_error_output(output) == "Error: access denied\n  on main.tf line 3"


def test_parse_error_output_without_keyword_returns_full_output() -> None:
    output = "Error: Failed to install provider\n"
    assert parse_error_output(output) == output

from __future__ import annotations

from driftive.drift import handle_skip_if_contains_pr_changes


def test_drifted_project_changed_by_open_pr_is_skipped(tmp_path, make_result, make_analysis) -> None:
    app1 = make_result("gcp/myproject/app1", drifted=True)
    app2 = make_result("gcp/myproject/app2", drifted=True)
    analysis = make_analysis([app1, app2])
    assert analysis.total_drifted == 2

    handle_skip_if_contains_pr_changes(analysis, ["gcp/myproject/app1/main.tf"], str(tmp_path))

    assert app1.skipped_due_to_pr is True
    assert app2.skipped_due_to_pr is False
    assert analysis.total_drifted == 1
    assert [r.project.dir for r in analysis.drifted_projects()] == ["gcp/myproject/app2"]


def test_multiple_files_in_same_folder_skip_once(tmp_path, make_result, make_analysis) -> None:
    app1 = make_result("gcp/myproject/app1", drifted=True)
    analysis = make_analysis([app1])

    handle_skip_if_contains_pr_changes(
        analysis, ["gcp/myproject/app1/main.tf", "gcp/myproject/app1/variables.tf"], str(tmp_path)
    )

    assert analysis.total_drifted == 0


def test_files_in_subfolders_or_parents_do_not_match(tmp_path, make_result, make_analysis) -> None:
    app1 = make_result("gcp/myproject/app1", drifted=True)
    analysis = make_analysis([app1])

    handle_skip_if_contains_pr_changes(
        analysis, ["gcp/myproject/app1/modules/net/main.tf", "gcp/myproject/main.tf"], str(tmp_path)
    )

    assert app1.skipped_due_to_pr is False
    assert analysis.total_drifted == 1


def test_absolute_project_dirs_are_relativized(tmp_path, make_result, make_analysis) -> None:
    app1 = make_result(str(tmp_path / "gcp" / "app1"), drifted=True)
    analysis = make_analysis([app1])

    handle_skip_if_contains_pr_changes(analysis, ["gcp/app1/main.tf"], str(tmp_path))

    assert app1.skipped_due_to_pr is True


def test_not_drifted_projects_are_ignored(tmp_path, make_result, make_analysis) -> None:
    clean = make_result("gcp/app3", drifted=False)
    analysis = make_analysis([clean])

    handle_skip_if_contains_pr_changes(analysis, ["gcp/app3/main.tf"], str(tmp_path))

    assert clean.skipped_due_to_pr is False
    assert analysis.total_drifted == 0


def test_no_changed_files_is_a_noop(tmp_path, make_result, make_analysis) -> None:
    app1 = make_result("gcp/myproject/app1", drifted=True)
    analysis = make_analysis([app1])

    handle_skip_if_contains_pr_changes(analysis, [], str(tmp_path))

    assert analysis.total_drifted == 1

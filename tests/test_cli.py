from unittest.mock import AsyncMock

from typer.testing import CliRunner

from pr_monitor import cli

runner = CliRunner()


def test_owners_command(tmp_path):
    codeowners = tmp_path / "CODEOWNERS"
    codeowners.write_text(
        "*            @default\n*.js         @js-team\nsrc/         @src-owner @org/web\n"
    )

    result = runner.invoke(
        cli.app,
        ["owners", "--codeowners", str(codeowners), "README.md", "src/app.js", "app.js"],
    )

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "README.md: default",
        "src/app.js: src-owner",
        "app.js: js-team",
        "PR owners: default, js-team, src-owner",
    ]


def test_run_requires_repository(monkeypatch):
    result = runner.invoke(cli.app, ["run", "--token", "t"], env={"GITHUB_REPOSITORY": ""})
    assert result.exit_code != 0


def test_run_builds_config(monkeypatch):
    run_monitor = AsyncMock()
    monkeypatch.setattr(cli, "run_monitor", run_monitor)

    result = runner.invoke(
        cli.app,
        [
            "run",
            "--repository",
            "org/repo",
            "--token",
            "t",
            "--stale-days",
            "3",
            "--blocked-labels",
            "blocked, wip",
            "--auto-assign-codeowners",
        ],
        env={"INPUT_OLD-DAYS": "12"},
    )

    assert result.exit_code == 0, result.output
    api, config = run_monitor.await_args.args
    assert api.repository == "org/repo"
    assert config.stale_days == 3
    assert config.old_days == 12
    assert config.blocked_labels == ["blocked", "wip"]
    assert config.auto_assign_codeowners


def test_run_reads_dry_run_input(monkeypatch):
    run_monitor = AsyncMock()
    monkeypatch.setattr(cli, "run_monitor", run_monitor)

    result = runner.invoke(
        cli.app,
        ["run", "--repository", "org/repo", "--token", "t"],
        env={"INPUT_DRY-RUN": "true"},
    )

    assert result.exit_code == 0, result.output
    _, config = run_monitor.await_args.args
    assert config.dry_run


def test_run_unexpected_error_exits_with_failure(monkeypatch):
    monkeypatch.setattr(cli, "run_monitor", AsyncMock(side_effect=ValueError("bad payload")))

    result = runner.invoke(cli.app, ["run", "--repository", "org/repo", "--token", "t"])

    assert result.exit_code == 1

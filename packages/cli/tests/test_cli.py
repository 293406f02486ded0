"""Tests for the CLI entry point."""

import json
import random
import subprocess
from unittest.mock import MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from reviewpool_cli.cli import _build_store, main
from reviewpool_store.base import BaseStore, StoreError
from reviewpool_store.gist import GistStore
from reviewpool_store.memory import MemoryStore
from reviewpool_store.sqlite import SQLiteStore


def _make_config(store="memory", seed=0):
    return {
        "store": store,
        "store_path": ".reviewpool.db",
        "gist_id": None,
        "selection_seed": seed,
        "log_level": "WARNING",
        "github_token": None,
    }


def _patch_common(mocker, config=None, store=None):
    """Patch load_config and _build_store so every invocation shares one store."""
    cfg = config or _make_config()
    store = store if store is not None else MemoryStore(rng=random.Random(0))
    mocker.patch("reviewpool_core.config.load_config", return_value=cfg)
    mocker.patch("reviewpool_cli.cli._build_store", return_value=store)
    return cfg, store


def _invoke(*args):
    return CliRunner().invoke(main, list(args))


def _invoke_json(*args):
    result = _invoke("--json", *args)
    return result, json.loads(result.stdout)


def _seed_dev_team():
    return _invoke("team", "add", "dev-team", "--member", "author1:Author", "--member", "r1:Rita", "--member", "r2:Raj")


# ---------------------------------------------------------------------------
# team commands
# ---------------------------------------------------------------------------


class TestTeamCommands:
    def test_add_team_json(self, mocker):
        _patch_common(mocker)

        result, payload = _invoke_json(
            "team", "add", "backend", "--member", "u1:Alice", "--member", "u2", "--inactive", "u2"
        )

        assert result.exit_code == 0
        assert payload == {
            "team": {
                "team_name": "backend",
                "members": [
                    {"user_id": "u1", "username": "Alice", "is_active": True},
                    {"user_id": "u2", "username": "u2", "is_active": False},
                ],
            }
        }

    def test_add_team_text(self, mocker):
        _patch_common(mocker)

        result = _seed_dev_team()

        assert result.exit_code == 0
        assert "Created team dev-team with 3 member(s)" in result.output

    def test_add_team_from_file(self, mocker, tmp_path):
        _patch_common(mocker)
        members_file = tmp_path / "team.yml"
        members_file.write_text(
            "members:\n"
            "  - user_id: u1\n"
            "    username: Alice\n"
            "  - user_id: u2\n"
            "    is_active: false\n"
        )

        result, payload = _invoke_json("team", "add", "backend", "--from-file", str(members_file))

        assert result.exit_code == 0
        assert [(m["user_id"], m["is_active"]) for m in payload["team"]["members"]] == [("u1", True), ("u2", False)]

    def test_member_file_without_user_id_is_rejected(self, mocker, tmp_path):
        _patch_common(mocker)
        members_file = tmp_path / "team.yml"
        members_file.write_text("members:\n  - username: Nobody\n")

        result = _invoke("team", "add", "backend", "--from-file", str(members_file))

        assert result.exit_code == 2

    def test_member_without_id_is_rejected(self, mocker):
        _patch_common(mocker)

        result = _invoke("team", "add", "backend", "--member", ":Alice")

        assert result.exit_code == 2

    def test_duplicate_team(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result = _seed_dev_team()

        assert result.exit_code == 1
        assert "TEAM_EXISTS" in result.output

    def test_duplicate_team_json_error(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result, payload = _invoke_json("team", "add", "dev-team", "--member", "x1")

        assert result.exit_code == 1
        assert payload["error"]["code"] == "TEAM_EXISTS"
        assert "dev-team" in payload["error"]["message"]

    def test_get_team(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result, payload = _invoke_json("team", "get", "dev-team")

        assert result.exit_code == 0
        assert payload["team_name"] == "dev-team"
        assert [m["user_id"] for m in payload["members"]] == ["author1", "r1", "r2"]

    def test_get_missing_team(self, mocker):
        _patch_common(mocker)

        result = _invoke("team", "get", "nope")

        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_deactivate_team(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result, payload = _invoke_json("team", "deactivate", "dev-team")

        assert result.exit_code == 0
        assert payload == {"team_name": "dev-team", "deactivated": 3}
        _, team = _invoke_json("team", "get", "dev-team")
        assert all(m["is_active"] is False for m in team["members"])

    def test_deactivate_with_reassign_flag_mentions_open_prs(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result = _invoke("team", "deactivate", "dev-team", "--reassign-open-prs")

        assert result.exit_code == 0
        assert "Open PRs were left unchanged" in result.output

    def test_pick_excludes_user(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result, payload = _invoke_json("team", "pick", "dev-team", "--exclude", "author1")

        assert result.exit_code == 0
        assert payload["user"]["user_id"] in {"r1", "r2"}

    def test_pick_without_candidates(self, mocker):
        _patch_common(mocker)
        _invoke("team", "add", "solo-team", "--member", "author1")

        result = _invoke("team", "pick", "solo-team", "--exclude", "author1")

        assert result.exit_code == 0
        assert "No active candidate" in result.output


# ---------------------------------------------------------------------------
# user commands
# ---------------------------------------------------------------------------


class TestUserCommands:
    def test_set_inactive(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result, payload = _invoke_json("user", "set-active", "r1", "--inactive")

        assert result.exit_code == 0
        assert payload == {"user": {"user_id": "r1", "username": "Rita", "team_name": "dev-team", "is_active": False}}

    def test_set_active_unknown_user(self, mocker):
        _patch_common(mocker)

        result = _invoke("user", "set-active", "ghost", "--active")

        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output

    def test_reviews_empty(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result = _invoke("user", "reviews", "r1")

        assert result.exit_code == 0
        assert "not reviewing any pull requests" in result.output

    def test_reviews_lists_prs(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "Add search", "--author", "author1")

        result, payload = _invoke_json("user", "reviews", "r1")

        assert result.exit_code == 0
        assert payload == {
            "user_id": "r1",
            "pull_requests": [
                {"pull_request_id": "pr-1", "pull_request_name": "Add search", "author_id": "author1", "status": "OPEN"}
            ],
        }


# ---------------------------------------------------------------------------
# pr commands
# ---------------------------------------------------------------------------


class TestPRCommands:
    def test_create_assigns_reviewers(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()

        result, payload = _invoke_json("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        assert result.exit_code == 0
        pr = payload["pr"]
        assert pr["pull_request_id"] == "pr-1"
        assert pr["status"] == "OPEN"
        assert sorted(pr["assigned_reviewers"]) == ["r1", "r2"]
        assert pr["createdAt"]
        assert pr["mergedAt"] is None

    def test_create_text(self, mocker):
        _patch_common(mocker)
        _invoke("team", "add", "solo-team", "--member", "author1")

        result = _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        assert result.exit_code == 0
        assert "Created pr-1 with 0 reviewer(s)" in result.output

    def test_duplicate_pr(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        result = _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        assert result.exit_code == 1
        assert "PR_EXISTS" in result.output

    def test_create_requires_title(self, mocker):
        _patch_common(mocker)

        result = _invoke("pr", "create", "pr-1", "--author", "author1")

        assert result.exit_code == 2

    def test_merge_twice(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        first, first_payload = _invoke_json("pr", "merge", "pr-1")
        second, second_payload = _invoke_json("pr", "merge", "pr-1")

        assert first.exit_code == second.exit_code == 0
        assert first_payload == second_payload
        assert first_payload["pr"]["status"] == "MERGED"
        assert first_payload["pr"]["mergedAt"]

    def test_get_pr(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "Add search", "--author", "author1")

        result = _invoke("pr", "get", "pr-1")

        assert result.exit_code == 0
        assert "Add search" in result.output
        assert "OPEN" in result.output

    def test_reassign(self, mocker):
        _patch_common(mocker)
        _invoke("team", "add", "dev-team", "--member", "author1", "--member", "r1", "--member", "r2", "--member", "r3")
        _, created = _invoke_json("pr", "create", "pr-1", "--title", "T", "--author", "author1")
        old, kept = created["pr"]["assigned_reviewers"]

        result, payload = _invoke_json("pr", "reassign", "pr-1", "--old-reviewer", old)

        assert result.exit_code == 0
        assert payload["replaced_by"] not in {"author1", old, kept}
        assert sorted(payload["pr"]["assigned_reviewers"]) == sorted([kept, payload["replaced_by"]])

    def test_reassign_on_merged_pr(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")
        _invoke("pr", "merge", "pr-1")

        result, payload = _invoke_json("pr", "reassign", "pr-1", "--old-reviewer", "r1")

        assert result.exit_code == 1
        assert payload["error"]["code"] == "PR_MERGED"

    def test_reassign_unbound_reviewer(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        result = _invoke("pr", "reassign", "pr-1", "--old-reviewer", "author1")

        assert result.exit_code == 1
        assert "NOT_ASSIGNED" in result.output

    def test_reassign_without_candidate(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        result = _invoke("pr", "reassign", "pr-1", "--old-reviewer", "r1")

        assert result.exit_code == 1
        assert "NO_CANDIDATE" in result.output


# ---------------------------------------------------------------------------
# stats command
# ---------------------------------------------------------------------------


class TestStatsCommand:
    def test_empty_message_when_no_assignments(self, mocker):
        _patch_common(mocker)

        result = _invoke("stats")

        assert result.exit_code == 0
        assert "No assignments recorded yet" in result.output

    def test_json_counts(self, mocker):
        _patch_common(mocker)
        _seed_dev_team()
        _invoke("pr", "create", "pr-1", "--title", "T", "--author", "author1")

        result, payload = _invoke_json("stats")

        assert result.exit_code == 0
        assert payload["assignment_stats"] == {"r1": 1, "r2": 1}
        assert payload["timestamp"]

    def test_table_shows_reviewers(self, mocker):
        _, store = _patch_common(mocker)
        _seed_dev_team()
        store.create_pr("pr-1", "T", "author1")
        store.add_assignment_event("pr-1", "r1")
        store.add_assignment_event("pr-1", "r1")
        store.add_assignment_event("pr-1", "r2")

        result = _invoke("stats", "--top", "1")

        assert result.exit_code == 0
        assert "Assignment stats" in result.output
        assert "r1" in result.output
        assert "r2" not in result.output

    @pytest.mark.parametrize("top", ["0", "-1"])
    def test_top_must_be_positive(self, mocker, top):
        _patch_common(mocker)

        result = _invoke("stats", "--top", top)

        assert result.exit_code == 2
        assert "--top" in result.output


# ---------------------------------------------------------------------------
# Store failures surface as INTERNAL_ERROR
# ---------------------------------------------------------------------------


class TestInternalErrors:
    def test_store_failure_exits_with_internal_code(self, mocker):
        store = MagicMock(spec=BaseStore)
        store.team_exists.side_effect = StoreError("database is locked")
        _patch_common(mocker, store=store)

        result, payload = _invoke_json("team", "add", "backend", "--member", "u1")

        assert result.exit_code == 3
        assert payload["error"]["code"] == "INTERNAL_ERROR"

    def test_store_closed_after_command(self, mocker):
        store = MagicMock(spec=BaseStore)
        store.assignment_counts.return_value = {}
        _patch_common(mocker, store=store)

        _invoke("stats")

        store.close.assert_called_once()


# ---------------------------------------------------------------------------
# main group wiring
# ---------------------------------------------------------------------------


class TestMainWiring:
    def test_token_not_resolved_for_local_stores(self, mocker):
        _patch_common(mocker)
        resolve = mocker.patch("reviewpool_cli.auth.resolve_github_token", return_value="tok")

        _invoke("stats")

        resolve.assert_not_called()

    def test_token_resolved_for_gist_store(self, mocker):
        cfg, _ = _patch_common(mocker, config=_make_config(store="gist"))
        mocker.patch("reviewpool_cli.auth.resolve_github_token", return_value="gh-token")

        _invoke("stats")

        assert cfg["github_token"] == "gh-token"

    def test_config_path_from_env(self, mocker, monkeypatch):
        _patch_common(mocker)
        load = mocker.patch("reviewpool_core.config.load_config", return_value=_make_config())
        monkeypatch.setenv("REVIEWPOOL_CONFIG", "custom.yml")

        _invoke("stats")

        load.assert_called_once_with("custom.yml")

    def test_malformed_config_is_a_usage_error(self, tmp_path):
        cfg = tmp_path / "bad.yml"
        cfg.write_text("- just\n- a list\n")

        result = CliRunner().invoke(main, ["--config", str(cfg), "stats"])

        assert result.exit_code == 2
        assert "mapping" in result.output

    def test_numeric_log_level_in_config(self, mocker):
        cfg = _make_config()
        cfg["log_level"] = 10
        _patch_common(mocker, config=cfg)
        basic_config = mocker.patch("reviewpool_cli.cli.logging.basicConfig")

        result = _invoke("stats")

        assert result.exit_code == 0
        assert basic_config.call_args.kwargs["level"] == 10

    def test_named_log_level_is_upper_cased(self, mocker):
        cfg = _make_config()
        cfg["log_level"] = "info"
        _patch_common(mocker, config=cfg)
        basic_config = mocker.patch("reviewpool_cli.cli.logging.basicConfig")

        result = _invoke("stats")

        assert result.exit_code == 0
        assert basic_config.call_args.kwargs["level"] == "INFO"


# ---------------------------------------------------------------------------
# resolve_github_token
# ---------------------------------------------------------------------------


class TestResolveGithubToken:
    def test_config_token_wins(self, monkeypatch):
        from reviewpool_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        with patch("subprocess.run") as mock_run:
            assert resolve_github_token({"github_token": "cfg-token"}) == "cfg-token"
        mock_run.assert_not_called()

    def test_returns_env_var_when_config_has_none(self, monkeypatch):
        from reviewpool_cli.auth import resolve_github_token

        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token({"github_token": None}) == "env-token"

    def test_falls_back_to_gh_cli(self, monkeypatch):
        from reviewpool_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            result = resolve_github_token()
        assert result == "gh-token"
        assert mock_run.call_args.args[0] == ["gh", "auth", "token"]

    def test_returns_none_when_gh_not_installed(self, monkeypatch):
        from reviewpool_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_times_out(self, monkeypatch):
        from reviewpool_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_returns_error(self, monkeypatch):
        from reviewpool_cli.auth import resolve_github_token

        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="")
            result = resolve_github_token()
        assert result is None

    def test_returns_none_when_gh_returns_empty(self):
        from reviewpool_cli.auth import token_from_gh_cli

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="   ")
            assert token_from_gh_cli() is None


# ---------------------------------------------------------------------------
# _build_store
# ---------------------------------------------------------------------------


class TestBuildStore:
    def test_returns_sqlite_by_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = _build_store({})
        assert isinstance(store, SQLiteStore)
        assert (tmp_path / ".reviewpool.db").exists()
        store.close()

    def test_returns_sqlite_store_at_configured_path(self, tmp_path):
        store = _build_store({"store": "sqlite", "store_path": str(tmp_path / "test.db")})
        assert isinstance(store, SQLiteStore)
        store.close()

    def test_returns_memory_store(self):
        rng = random.Random(1)
        store = _build_store({"store": "memory"}, rng=rng)
        assert isinstance(store, MemoryStore)
        assert store._rng is rng

    def test_returns_gist_store_when_configured(self):
        with patch("github.Github"):  # Github is a local import inside GistStore.__init__
            store = _build_store({"store": "gist", "gist_id": "abc123", "github_token": "tok"})
        assert isinstance(store, GistStore)

    @pytest.mark.parametrize(
        "config",
        [{"store": "gist", "github_token": "tok"}, {"store": "gist", "gist_id": "abc123"}],
    )
    def test_gist_falls_back_to_memory_when_incomplete(self, config, capsys):
        store = _build_store(config)
        assert isinstance(store, MemoryStore)
        assert not isinstance(store, GistStore)
        assert "Falling back" in capsys.readouterr().out

    def test_unknown_store_warns_and_uses_sqlite(self, tmp_path, capsys):
        store = _build_store({"store": "postgres", "store_path": str(tmp_path / "test.db")})
        assert isinstance(store, SQLiteStore)
        assert "Unknown store" in capsys.readouterr().out
        store.close()


# ---------------------------------------------------------------------------
# init command
# ---------------------------------------------------------------------------


class TestInitCommand:
    def test_writes_sqlite_store_config(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _patch_common(mocker)

        result = CliRunner().invoke(main, ["init"], input="sqlite\n.reviewpool.db\nN\n")

        assert result.exit_code == 0
        config = yaml.safe_load((tmp_path / ".reviewpool.yml").read_text())
        assert config == {"store": "sqlite"}

    def test_custom_sqlite_path_is_saved(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _patch_common(mocker)

        CliRunner().invoke(main, ["init"], input="sqlite\ndata/pool.db\nN\n")

        config = yaml.safe_load((tmp_path / ".reviewpool.yml").read_text())
        assert config["store_path"] == "data/pool.db"

    def test_writes_to_config_option_path(self, mocker, tmp_path):
        _patch_common(mocker)
        target = tmp_path / "team-pool.yml"

        result = CliRunner().invoke(main, ["--config", str(target), "init"], input="memory\nN\n")

        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text()) == {"store": "memory"}

    def test_gist_store_records_created_gist(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _patch_common(mocker)
        create = mocker.patch("reviewpool_cli.commands.init._create_team_gist", return_value="abc123")

        result = CliRunner().invoke(main, ["init", "--name", "platform"], input="gist\nN\n")

        assert result.exit_code == 0
        create.assert_called_once_with("platform")
        config = yaml.safe_load((tmp_path / ".reviewpool.yml").read_text())
        assert config == {"store": "gist", "gist_id": "abc123"}

    def test_gist_creation_failure_still_writes_config(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _patch_common(mocker)
        mocker.patch("reviewpool_cli.commands.init._create_team_gist", return_value=None)

        result = CliRunner().invoke(main, ["init"], input="gist\nN\n")

        assert result.exit_code == 0
        assert "Gist creation failed" in result.output
        config = yaml.safe_load((tmp_path / ".reviewpool.yml").read_text())
        assert config == {"store": "gist"}

    def test_seed_and_existing_keys_preserved(self, mocker, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".reviewpool.yml").write_text("log_level: INFO\n")
        _patch_common(mocker)

        CliRunner().invoke(main, ["init"], input="memory\ny\n7\n")

        config = yaml.safe_load((tmp_path / ".reviewpool.yml").read_text())
        assert config == {"log_level": "INFO", "store": "memory", "selection_seed": 7}


class TestCreateTeamGist:
    def test_returns_id_from_url(self):
        from reviewpool_cli.commands.init import _create_team_gist

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="https://gist.github.com/someone/abc123\n")
            assert _create_team_gist("platform") == "abc123"

        cmd = mock_run.call_args.args[0]
        assert cmd[:3] == ["gh", "gist", "create"]
        assert "--public=false" in cmd
        assert cmd[-1].endswith("reviewpool_directory.json")

    def test_none_when_gh_missing(self):
        from reviewpool_cli.commands.init import _create_team_gist

        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert _create_team_gist("platform") is None

    def test_none_on_error(self):
        from reviewpool_cli.commands.init import _create_team_gist

        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="HTTP 401")
            assert _create_team_gist("platform") is None

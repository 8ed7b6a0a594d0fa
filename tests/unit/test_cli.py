"""Tests for the cleura CLI."""

from __future__ import annotations

import os
import stat
import sys
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from cleura.cli.main import app
from cleura.exceptions import ApiError, AuthenticationError, ReconcileError
from cleura.models.cloud_profile import CloudProfile
from cleura.models.cluster import (
    ClusterObserved,
    ClusterSpec,
    ClusterUpdate,
    Condition,
    LastOperation,
    WorkerGroupSpec,
)
from cleura.reconcile.differ import diff_worker_groups
from cleura.reconcile.orchestrator import ChangeSet, ImportedCluster

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

runner = CliRunner()

CLUSTER_ID = "public,demo,sto2,proj-1"

SPEC_TOML = """\
[cluster]
name = "demo"
region = "sto2"
project = "proj-1"
kubernetes_version = "1.31.2"

[[cluster.worker_groups]]
name = "a"
machine_type = "b.2c4gb"
min_nodes = 1
max_nodes = 3
"""


def group(name: str) -> WorkerGroupSpec:
    return WorkerGroupSpec(
        name=name,
        machine_type="b.2c4gb",
        image_version="1592.1.0",
        min_nodes=1,
        max_nodes=3,
        zones=["sto2a"],
    )


def observed() -> ClusterObserved:
    return ClusterObserved(
        uid="uid-1",
        name="demo",
        region="sto2",
        project="proj-1",
        kubernetes_version="1.31.2",
        worker_groups=[group("a")],
        conditions=[Condition(type="APIServerAvailable", status="True")],
        last_operation=LastOperation(type="Reconcile", state="Succeeded", progress=100),
    )


@pytest.fixture
def mock_client() -> Generator[MagicMock, None, None]:
    """Replace the client built by the CLI."""
    with patch("cleura.cli._utils.CleuraClient") as client_cls:
        client = client_cls.return_value
        client.__enter__.return_value = client
        yield client


@pytest.fixture
def spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "cluster.toml"
    path.write_text(SPEC_TOML)
    return path


class TestRoot:
    """Test top-level commands."""

    def test_version(self) -> None:
        """Version prints the package version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "cleura-shoot version" in result.output

    def test_missing_credentials(self, tmp_path: Path) -> None:
        """Commands needing the API explain how to authenticate."""
        with (
            patch("cleura._config.CONFIG_FILE", tmp_path / "missing.toml"),
            patch.dict(os.environ, {}, clear=True),
        ):
            result = runner.invoke(app, ["shoot", "get", CLUSTER_ID])

        assert result.exit_code == 1
        assert "Authentication error" in result.output


class TestShootCommands:
    """Test shoot commands."""

    def test_get(self, mock_client: MagicMock) -> None:
        """Get shows the cluster state."""
        mock_client.fetch_cluster.return_value = observed()

        result = runner.invoke(app, ["shoot", "get", CLUSTER_ID])

        assert result.exit_code == 0
        assert "uid-1" in result.output
        assert "APIServerAvailable" in result.output

    def test_get_json(self, mock_client: MagicMock) -> None:
        """The global --json flag switches to JSON output."""
        mock_client.fetch_cluster.return_value = observed()

        result = runner.invoke(app, ["--json", "shoot", "get", CLUSTER_ID])

        assert result.exit_code == 0
        assert '"uid": "uid-1"' in result.output

    def test_get_malformed_id(self, mock_client: MagicMock) -> None:
        """A malformed identifier fails without calling the API."""
        result = runner.invoke(app, ["shoot", "get", "demo,sto2"])

        assert result.exit_code == 1
        assert "Error" in result.output
        mock_client.fetch_cluster.assert_not_called()

    def test_plan(self, mock_client: MagicMock, spec_file: Path) -> None:
        """Plan lists the worker-group changes."""
        desired = ClusterSpec(
            name="demo", region="sto2", project="proj-1", worker_groups=[group("a"), group("b")]
        )
        current = observed().model_copy(update={"worker_groups": [group("a"), group("c")]})
        mock_client.reconciler.return_value.plan.return_value = ChangeSet(
            desired=desired,
            observed=current,
            cluster_update=ClusterUpdate(),
            worker_groups=diff_worker_groups(desired.worker_groups, current.worker_groups),
        )

        result = runner.invoke(app, ["shoot", "plan", str(spec_file)])

        assert result.exit_code == 0
        assert "+ create worker group b" in result.output
        assert "- delete worker group c" in result.output
        plan_spec = mock_client.reconciler.return_value.plan.call_args.args[0]
        assert plan_spec.name == "demo"
        assert plan_spec.worker_groups[0].name == "a"

    def test_apply(self, mock_client: MagicMock, spec_file: Path) -> None:
        """Apply passes the timeout through and prints the result."""
        reconciler = mock_client.reconciler.return_value
        reconciler.apply.return_value = observed()

        result = runner.invoke(app, ["shoot", "apply", str(spec_file), "--timeout", "600"])

        assert result.exit_code == 0
        assert "Applied" in result.output
        assert reconciler.apply.call_args.kwargs["timeout"] == 600

    def test_apply_failure(self, mock_client: MagicMock, spec_file: Path) -> None:
        """Reconcile failures exit non-zero with the step in the message."""
        cause = ApiError("quota exceeded", status_code=409)
        mock_client.reconciler.return_value.apply.side_effect = ReconcileError(
            "reconcile", "create worker group", cause, cluster="demo", worker_group="b"
        )

        result = runner.invoke(app, ["shoot", "apply", str(spec_file)])

        assert result.exit_code == 1
        assert "create worker group" in result.output

    def test_apply_invalid_file(self, mock_client: MagicMock, tmp_path: Path) -> None:
        """A spec file missing required fields is rejected."""
        path = tmp_path / "bad.json"
        path.write_text('{"name": "demo"}')

        result = runner.invoke(app, ["shoot", "apply", str(path)])

        assert result.exit_code == 1
        mock_client.reconciler.assert_not_called()

    def test_delete_requires_confirmation(self, mock_client: MagicMock) -> None:
        """Delete asks first and does nothing when declined."""
        result = runner.invoke(app, ["shoot", "delete", CLUSTER_ID], input="n\n")

        assert result.exit_code != 0
        mock_client.reconciler.return_value.delete.assert_not_called()

    def test_delete_with_yes(self, mock_client: MagicMock) -> None:
        """--yes deletes without asking."""
        result = runner.invoke(app, ["shoot", "delete", CLUSTER_ID, "--yes"])

        assert result.exit_code == 0
        assert "Deleted" in result.output
        mock_client.reconciler.return_value.delete.assert_called_once()

    def test_import_to_file(self, mock_client: MagicMock, tmp_path: Path) -> None:
        """Import writes a spec file that loads back."""
        current = observed()
        spec = ClusterSpec(
            name="demo",
            region="sto2",
            project="proj-1",
            kubernetes_version="1.31.2",
            worker_groups=[group("a")],
        )
        mock_client.reconciler.return_value.import_cluster.return_value = ImportedCluster(
            spec=spec, observed=current
        )
        output = tmp_path / "demo.toml"

        result = runner.invoke(app, ["shoot", "import", CLUSTER_ID, "--output", str(output)])

        assert result.exit_code == 0
        with open(output, "rb") as f:
            data = tomllib.load(f)
        assert ClusterSpec.model_validate(data["cluster"]) == spec

    def test_kubeconfig_file_is_private(self, mock_client: MagicMock, tmp_path: Path) -> None:
        """Kubeconfigs are written readable by the owner only."""
        mock_client.shoots.generate_kubeconfig.return_value = "apiVersion: v1\n"
        output = tmp_path / "kubeconfig"

        result = runner.invoke(app, ["shoot", "kubeconfig", CLUSTER_ID, "-o", str(output)])

        assert result.exit_code == 0
        assert output.read_text() == "apiVersion: v1\n"
        assert stat.S_IMODE(output.stat().st_mode) == 0o600
        assert mock_client.shoots.generate_kubeconfig.call_args.kwargs["duration"] == 3600


class TestConfigCommands:
    """Test config commands."""

    def test_set_and_get_masks_token(self, tmp_path: Path) -> None:
        """Secrets are masked when shown."""
        config_file = tmp_path / "config.toml"

        with (
            patch("cleura._config.CONFIG_FILE", config_file),
            patch.dict(os.environ, {}, clear=True),
        ):
            set_result = runner.invoke(app, ["config", "set", "token", "abcdefghijklmnop"])
            get_result = runner.invoke(app, ["config", "get", "token"])

        assert set_result.exit_code == 0
        assert "abcdefghijklmnop" not in set_result.output
        assert get_result.exit_code == 0
        assert "abcd...mnop" in get_result.output

    def test_path(self, tmp_path: Path) -> None:
        """Path prints the config file location."""
        config_file = tmp_path / "config.toml"

        with patch("cleura._config.CONFIG_FILE", config_file):
            result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert "config.toml" in result.output


class TestProfileCommands:
    """Test profile commands."""

    def test_show_supported_only_json(
        self, mock_client: MagicMock, sample_profile: dict[str, Any]
    ) -> None:
        """Supported-only drops preview and deprecated versions."""
        mock_client.cloud_profiles.get.return_value = CloudProfile.model_validate(sample_profile)

        result = runner.invoke(app, ["--json", "profile", "show", "public", "--supported-only"])

        assert result.exit_code == 0
        mock_client.cloud_profiles.get.assert_called_once_with("public")
        assert '"1.31.2"' in result.output
        assert '"1.32.0"' not in result.output
        assert '"1600.0.0"' not in result.output

    def test_show_tables(self, mock_client: MagicMock, sample_profile: dict[str, Any]) -> None:
        """Without --json the profile is shown as tables."""
        mock_client.cloud_profiles.get.return_value = CloudProfile.model_validate(sample_profile)

        result = runner.invoke(app, ["profile", "show"])

        assert result.exit_code == 0
        assert "Kubernetes versions" in result.output
        assert "1.31.2" in result.output


class TestTokenCommands:
    """Test token commands."""

    def test_get(self, tmp_path: Path) -> None:
        """Get prints the issued token."""
        with (
            patch("cleura._config.CONFIG_FILE", tmp_path / "config.toml"),
            patch.dict(os.environ, {}, clear=True),
            patch("cleura.cli.token.Tokens") as tokens_cls,
        ):
            tokens_cls.return_value.issue.return_value = "issued-token"
            result = runner.invoke(
                app, ["token", "get", "ops@example.com", "--password", "pw"]
            )

        assert result.exit_code == 0
        assert "issued-token" in result.output
        tokens_cls.return_value.issue.assert_called_once_with("ops@example.com", "pw")

    def test_validate(self, mock_client: MagicMock) -> None:
        """A valid token is reported."""
        mock_client.tokens.validate.return_value = True

        result = runner.invoke(app, ["token", "validate"])

        assert result.exit_code == 0
        assert "Token is valid" in result.output

    def test_validate_rejected(self, mock_client: MagicMock) -> None:
        """A rejected token exits with an error."""
        mock_client.tokens.validate.side_effect = AuthenticationError(
            "invalid token", status_code=401
        )

        result = runner.invoke(app, ["token", "validate"])

        assert result.exit_code == 1

    def test_revoke(self, mock_client: MagicMock) -> None:
        """Revoke calls the API."""
        result = runner.invoke(app, ["token", "revoke"])

        assert result.exit_code == 0
        mock_client.tokens.revoke.assert_called_once_with()

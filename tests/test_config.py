"""Tests for configuration loading."""

from pathlib import Path

import pytest

from ssmwait.config import Config, load_config, parse_targets
from ssmwait.errors import ConfigurationError


class TestParseTargets:
    def test_splits_and_strips(self) -> None:
        assert parse_targets("i-111, i-222 ,i-333") == ["i-111", "i-222", "i-333"]

    def test_drops_empty_entries(self) -> None:
        assert parse_targets("i-111,,i-222,") == ["i-111", "i-222"]
        assert parse_targets(",") == []
        assert parse_targets("") == []
        assert parse_targets(None) == []

    def test_drops_duplicates(self) -> None:
        assert parse_targets("i-222,i-111,i-222") == ["i-222", "i-111"]

    def test_accepts_list(self) -> None:
        assert parse_targets(["i-111", " ", "i-222"]) == ["i-111", "i-222"]


class TestFromEnv:
    def test_reads_lambda_variables(self) -> None:
        config = Config.from_env(
            {
                "SSM_DOCUMENT": "say-hello-to-everyone",
                "INSTANCE_IDS": "i-111,i-222",
                "MAX_SSM_WAIT_RETRIES": "7",
                "SSM_REGION": "eu-west-1",
            }
        )

        assert config.document_name == "say-hello-to-everyone"
        assert config.target_ids == ["i-111", "i-222"]
        assert config.max_retries == 7
        assert config.region == "eu-west-1"
        assert config.transport == "ssm"
        assert config.log_dir is None

    def test_defaults(self) -> None:
        config = Config.from_env({"SSM_DOCUMENT": "doc", "INSTANCE_IDS": "i-1"})

        assert config.max_retries == 50
        assert config.timeout_seconds == 60
        assert config.poll_interval == 0.3
        assert config.region is None

    def test_falls_back_to_aws_region(self) -> None:
        config = Config.from_env({"AWS_REGION": "us-east-2"})
        assert config.region == "us-east-2"

    def test_missing_values_are_left_empty(self) -> None:
        config = Config.from_env({})

        assert config.document_name == ""
        assert config.target_ids == []
        with pytest.raises(ConfigurationError, match="must be set"):
            config.validate()

    def test_rejects_non_integer_retries(self) -> None:
        with pytest.raises(ConfigurationError, match="MAX_SSM_WAIT_RETRIES"):
            Config.from_env({"MAX_SSM_WAIT_RETRIES": "many"})

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SSM_DOCUMENT", "doc")
        monkeypatch.setenv("INSTANCE_IDS", "i-9")

        config = Config.from_env()

        assert config.document_name == "doc"
        assert config.target_ids == ["i-9"]


class TestValidate:
    def test_valid_config(self) -> None:
        Config(document_name="doc", target_ids=["i-1"]).validate()

    @pytest.mark.parametrize(
        "document_name,target_ids",
        [("", ["i-1"]), ("doc", [])],
    )
    def test_requires_document_and_targets(self, document_name, target_ids) -> None:
        with pytest.raises(ConfigurationError):
            Config(document_name=document_name, target_ids=target_ids).validate()

    def test_requires_positive_retries(self) -> None:
        with pytest.raises(ConfigurationError, match="max_retries"):
            Config(document_name="doc", target_ids=["i-1"], max_retries=0).validate()

    def test_rejects_unknown_transport(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown transport"):
            Config(document_name="doc", target_ids=["i-1"], transport="winrm").validate()

    def test_ssh_requires_known_document(self) -> None:
        config = Config(document_name="deploy", target_ids=["web1"], transport="ssh")
        with pytest.raises(ConfigurationError, match="deploy"):
            config.validate()

        config.documents = {"deploy": ["uptime"]}
        config.validate()


class TestLoadConfig:
    def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "fleet.yaml"
        path.write_text(
            """
document: deploy
targets: [web1, web2, web1]
max_retries: 10
timeout: 120
poll_interval: 1.5
transport: ssh
log_dir: runs
defaults:
  user: deployer
  port: 2222
  ssh_key: ~/.ssh/deploy_key
documents:
  deploy:
    - git pull
    - systemctl restart app
  uptime: uptime
"""
        )

        config = load_config(path)

        assert config.document_name == "deploy"
        assert config.target_ids == ["web1", "web2"]
        assert config.max_retries == 10
        assert config.timeout_seconds == 120
        assert config.poll_interval == 1.5
        assert config.transport == "ssh"
        assert config.defaults.user == "deployer"
        assert config.defaults.port == 2222
        assert config.defaults.ssh_key == Path("~/.ssh/deploy_key").expanduser()
        assert config.documents == {
            "deploy": ["git pull", "systemctl restart app"],
            "uptime": ["uptime"],
        }
        assert config.log_dir is not None and config.log_dir.name == "runs"
        assert config.source_path == path.resolve()
        config.validate()

    def test_comma_separated_targets(self, tmp_path: Path) -> None:
        path = tmp_path / "fleet.yaml"
        path.write_text("document: doc\ntargets: 'i-111,,i-222'\n")

        config = load_config(path)

        assert config.target_ids == ["i-111", "i-222"]
        assert config.max_retries == 50
        assert config.transport == "ssm"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_rejects_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "fleet.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_rejects_empty_document(self, tmp_path: Path) -> None:
        path = tmp_path / "fleet.yaml"
        path.write_text("document: deploy\ntargets: [web1]\ndocuments:\n  deploy: []\n")

        with pytest.raises(ConfigurationError, match="at least one command"):
            load_config(path)

    def test_rejects_bad_number(self, tmp_path: Path) -> None:
        path = tmp_path / "fleet.yaml"
        path.write_text("document: doc\ntargets: [i-1]\nmax_retries: lots\n")

        with pytest.raises(ConfigurationError, match="max_retries"):
            load_config(path)

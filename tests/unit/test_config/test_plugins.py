"""Unit tests for the per-repository approve config."""

import pytest

from approvebot.config.plugins import ApproveConfig, ApproveOptions, load_approve_config
from approvebot.exceptions import ConfigError


class TestOptionsForRepo:
    """Tests for ApproveConfig.options_for_repo."""

    def test_matches_org(self):
        config = ApproveConfig(approve=[ApproveOptions(repos=["acme"], issue_required=True)])

        assert config.options_for_repo("acme", "widgets").issue_required is True

    def test_matches_full_name(self):
        config = ApproveConfig(
            approve=[ApproveOptions(repos=["acme/widgets"], implicit_self_approve=True)]
        )

        assert config.options_for_repo("acme", "widgets").implicit_self_approve is True
        assert config.options_for_repo("acme", "gadgets").implicit_self_approve is False

    def test_first_match_wins(self):
        config = ApproveConfig(
            approve=[
                ApproveOptions(repos=["acme/widgets"], issue_required=False),
                ApproveOptions(repos=["acme"], issue_required=True),
            ]
        )

        assert config.options_for_repo("acme", "widgets").issue_required is False
        assert config.options_for_repo("acme", "other").issue_required is True

    def test_no_match_defaults_to_false(self):
        options = ApproveConfig().options_for_repo("acme", "widgets")

        assert options.issue_required is False
        assert options.implicit_self_approve is False


class TestLoadApproveConfig:
    """Tests for load_approve_config."""

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "approve.yaml"
        path.write_text(
            "approve:\n"
            "  - repos: [acme, other/repo]\n"
            "    issue_required: true\n"
        )

        config = load_approve_config(path)

        assert config.approve[0].repos == ["acme", "other/repo"]
        assert config.approve[0].issue_required is True
        assert config.approve[0].implicit_self_approve is False

    def test_missing_file_gives_empty_config(self, tmp_path):
        assert load_approve_config(tmp_path / "nope.yaml").approve == []

    def test_empty_file_gives_empty_config(self, tmp_path):
        path = tmp_path / "approve.yaml"
        path.write_text("")

        assert load_approve_config(path).approve == []

    def test_invalid_schema_raises(self, tmp_path):
        path = tmp_path / "approve.yaml"
        path.write_text("approve:\n  - repos: acme\n    issue_required: maybe\n")

        with pytest.raises(ConfigError, match="Invalid approve config"):
            load_approve_config(path)

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "approve.yaml"
        path.write_text("approve: [\n")

        with pytest.raises(ConfigError):
            load_approve_config(path)

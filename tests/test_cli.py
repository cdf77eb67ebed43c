"""Tests for the radctl command line (commands that stay offline)."""

from click.testing import CliRunner

from radctl.cli.main import cli


def test_version():
    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("radctl version ")


def test_profile_validate_ok(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(
        "id: gold_tier\n"
        "weight: 10\n"
        "reply:\n"
        "  - name: Session-Timeout\n"
        "    value: ['3600']\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli, ["profile", "validate", str(path)])

    assert result.exit_code == 0
    assert "Profile: gold_tier" in result.output
    assert "Reply attributes: 1" in result.output


def test_profile_validate_rejects_bad_operator(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(
        "id: gold_tier\n"
        "reply:\n"
        "  - name: Session-Timeout\n"
        "    value: ['3600']\n"
        "    op: bogus\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli, ["profile", "validate", str(path)])

    assert result.exit_code != 0


def test_profile_read_rejects_malformed_id():
    result = CliRunner().invoke(cli, ["profile", "read", "no-slash"])
    assert result.exit_code != 0

"""Tests for the elpa-deploy command-line entry point."""

from unittest.mock import patch

import pytest

from elpa_deploy.cli import EXIT_DEPLOY_FAILED, EXIT_OK, EXIT_USAGE, build_parser, main
from elpa_deploy.types import DeployResult, PackageKind


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep ambient ELPA_DEPLOY_* variables and .env files out of the tests."""
    for name in ["TARGET_DIR", "ARCHIVER", "TAR_COMMAND", "ARCHIVE_TIMEOUT", "DEBUG", "JSON_LOGS"]:
        monkeypatch.delenv(f"ELPA_DEPLOY_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def simple_package(tmp_path):
    path = tmp_path / "foo.el"
    path.write_text(";;; foo.el --- Foo\n;; Version: 0.1\n;;; Code:\n", encoding="utf-8")
    return path


class TestBuildParser:
    def test_positional_arguments_are_optional(self):
        args = build_parser().parse_args([])
        assert args.path is None
        assert args.target_dir is None

    def test_rejects_unknown_archiver(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--archiver", "zip"])
        assert exc_info.value.code == 2


class TestMain:
    def test_deploys_simple_package(self, simple_package, tmp_path, capsys):
        archive = tmp_path / "archive"

        with patch("elpa_deploy.deployer.make_version", return_value="20240101.0930"):
            code = main([str(simple_package), str(archive)])

        assert code == EXIT_OK
        published = archive / "foo-20240101.0930.el"
        assert published.exists()
        assert str(published) in capsys.readouterr().out

    def test_deploy_error_exits_one(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing.el"), str(tmp_path / "archive")])
        assert code == EXIT_DEPLOY_FAILED
        assert "deploy_failed" in capsys.readouterr().err

    def test_missing_header_exits_one(self, tmp_path):
        path = tmp_path / "bare.el"
        path.write_text(";;; bare.el\n", encoding="utf-8")
        assert main([str(path), str(tmp_path / "archive")]) == EXIT_DEPLOY_FAILED

    def test_target_dir_from_environment(self, simple_package, tmp_path, monkeypatch):
        archive = tmp_path / "env-archive"
        monkeypatch.setenv("ELPA_DEPLOY_TARGET_DIR", str(archive))

        assert main([str(simple_package)]) == EXIT_OK
        assert len(list(archive.glob("foo-*.el"))) == 1

    def test_prompts_for_missing_arguments(self, simple_package, tmp_path, monkeypatch):
        archive = tmp_path / "prompted"
        answers = iter([str(simple_package), str(archive)])
        monkeypatch.setattr("builtins.input", lambda _prompt: next(answers))

        assert main([]) == EXIT_OK
        assert len(list(archive.glob("foo-*.el"))) == 1

    def test_empty_prompt_is_usage_error(self, monkeypatch, capsys):
        monkeypatch.setattr("builtins.input", lambda _prompt: "")
        assert main([]) == EXIT_USAGE
        assert "package path is required" in capsys.readouterr().err

    def test_eof_at_prompt_is_usage_error(self, simple_package, monkeypatch, capsys):
        def raise_eof(_prompt):
            raise EOFError

        monkeypatch.setattr("builtins.input", raise_eof)
        assert main([str(simple_package)]) == EXIT_USAGE
        assert "target archive directory is required" in capsys.readouterr().err

    def test_invalid_configuration_is_usage_error(self, monkeypatch, capsys):
        monkeypatch.setenv("ELPA_DEPLOY_ARCHIVE_TIMEOUT", "0")
        assert main(["x.el", "archive"]) == EXIT_USAGE
        assert "invalid configuration" in capsys.readouterr().err

    def test_invalid_flag_override_is_usage_error(self, capsys):
        assert main(["x.el", "archive", "--tar-command", " "]) == EXIT_USAGE
        assert "invalid configuration" in capsys.readouterr().err

    def test_flags_override_settings(self, tmp_path):
        directory = tmp_path / "bar"
        directory.mkdir()
        (directory / "bar-pkg.el").write_text('(define-package "bar" "0.1")\n', encoding="utf-8")
        result = DeployResult(kind=PackageKind.MULTI, package="bar", version="v")

        with patch("elpa_deploy.cli.deploy", return_value=result) as mock_deploy:
            code = main([
                str(directory), str(tmp_path / "archive"),
                "--archiver", "tar", "--tar-command", "gtar",
            ])

        assert code == EXIT_OK
        archiver = mock_deploy.call_args.kwargs["archiver"]
        assert archiver.tar_command == "gtar"

    def test_json_logs(self, simple_package, tmp_path, capsys):
        with patch("elpa_deploy.deployer.make_version", return_value="20240101.0930"):
            main([str(simple_package), str(tmp_path / "archive"), "--json-logs"])
        err = capsys.readouterr().err
        assert '"event": "deployed"' in err

"""Tests for the main.py command-line entry point."""

import pytest

import main
from auth.passwords import CredentialHasher
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import get_settings


@pytest.fixture
def cli_service(tmp_path, hasher: CredentialHasher, issuer: TokenIssuer, monkeypatch: pytest.MonkeyPatch):
    """A file-backed service, so the data outlives the store.close() the command performs."""
    db_url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(main, "_build_service", lambda: AuthService(AccountStore(db_url), hasher, issuer))
    service = AuthService(AccountStore(db_url), hasher, issuer)
    yield service
    service.store.close()


def _answer_prompts(monkeypatch: pytest.MonkeyPatch, *answers: str) -> None:
    replies = iter(answers)
    monkeypatch.setattr("getpass.getpass", lambda prompt="": next(replies))


def test_create_account(cli_service: AuthService, monkeypatch, capsys) -> None:
    _answer_prompts(monkeypatch, "s3cret", "s3cret")
    code = main.main(["create-account", "Ada@X.com", "--name", "Ada", "--cohort", "1836"])
    assert code == 0
    assert "<ada@x.com>" in capsys.readouterr().out
    profile = cli_service.list_profiles()[0]
    assert profile.graduation_year == 1836


def test_create_account_password_mismatch(cli_service: AuthService, monkeypatch, capsys) -> None:
    _answer_prompts(monkeypatch, "one", "two")
    assert main.main(["create-account", "a@x.com", "--name", "A"]) == 1
    assert "do not match" in capsys.readouterr().out


def test_create_account_duplicate(cli_service: AuthService, monkeypatch, capsys) -> None:
    cli_service.register("a@x.com", "pw", "A")
    _answer_prompts(monkeypatch, "pw", "pw")
    assert main.main(["create-account", "a@x.com", "--name", "A"]) == 1
    assert "already exists" in capsys.readouterr().out


def test_verify_token(capsys) -> None:
    settings = get_settings()
    token = TokenIssuer(settings.secret_key).issue(subject=7, email="g@x.com")
    assert main.main(["verify-token", token]) == 0
    assert "account=7 email=g@x.com" in capsys.readouterr().out


def test_verify_token_rejected(capsys) -> None:
    assert main.main(["verify-token", "not-a-token"]) == 1
    assert "invalid_signature" in capsys.readouterr().out

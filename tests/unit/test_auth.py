"""Tests for curator authorization."""

from shouyutong.core.auth import CuratorGate, allow_all, deny_all


def test_fixed_authorizers():
    assert allow_all() is True
    assert deny_all() is False


class TestCuratorGate:
    def test_login_success_returns_token(self, gate):
        token = gate.login("curator", "secret")
        assert token
        assert gate.is_authenticated(token)

    def test_tokens_are_unique(self, gate):
        assert gate.login("curator", "secret") != gate.login("curator", "secret")

    def test_wrong_password(self, gate):
        assert gate.login("curator", "wrong") is None

    def test_wrong_username(self, gate):
        assert gate.login("admin", "secret") is None

    def test_unknown_token(self, gate):
        assert not gate.is_authenticated("made-up")
        assert not gate.is_authenticated(None)
        assert not gate.is_authenticated("")

    def test_logout(self, gate):
        token = gate.login("curator", "secret")
        assert gate.logout(token) is True
        assert not gate.is_authenticated(token)
        assert gate.logout(token) is False

    def test_authorizer_follows_session(self, gate):
        token = gate.login("curator", "secret")
        authorizer = gate.authorizer_for(token)
        assert authorizer()

        gate.logout(token)
        assert not authorizer()

    def test_authorizer_without_token(self, gate):
        assert gate.authorizer_for(None)() is False

    def test_default_credential(self):
        gate = CuratorGate("admin", "123456")
        assert gate.login("admin", "123456")

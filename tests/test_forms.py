# tests/test_forms.py
from sessapi.core.config import settings
from sessapi.schemas.forms import EmailForm, LoginForm, PasswordForm, normalize_email, valid_password


def test_normalize_email():
    assert normalize_email("  Someone@Example.COM ") == "someone@example.com"
    assert normalize_email("not-an-email") is None
    assert normalize_email("") is None
    assert normalize_email(None) is None


def test_email_length_policy(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_MAX_LENGTH", 16)
    assert normalize_email("short@example.com") is None
    assert normalize_email("a@example.com") == "a@example.com"


def test_password_policy(monkeypatch):
    assert valid_password("x") == "x"
    assert valid_password("") is None
    assert valid_password(None) is None

    monkeypatch.setattr(settings, "PASSWORD_MIN_LENGTH", 8)
    assert valid_password("short") is None
    assert valid_password("longenough") == "longenough"

    monkeypatch.setattr(settings, "PASSWORD_MAX_LENGTH", 9)
    assert valid_password("longenough") is None


def test_forms_from_fields():
    form = LoginForm.from_fields({"email": "A@example.com", "pass": "pw"})
    assert form is not None and form.email == "a@example.com" and form.password == "pw"
    assert LoginForm.from_fields({"email": "a@example.com"}) is None
    assert EmailForm.from_fields({"email": "bad"}) is None
    assert PasswordForm.from_fields({"pass": "pw"}).password == "pw"
    assert PasswordForm.from_fields({}) is None

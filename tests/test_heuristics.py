"""
Tests for the guardrail classifiers.

Pure functions only: no browser, no fixtures.
"""

import pytest

from explorer.heuristics import (
    SyntheticValueKind,
    classify_as_destructive,
    classify_as_login,
    classify_field_semantic,
    is_identity_field,
    is_password_field,
    synthetic_value,
)


class TestLoginClassifier:

    @pytest.mark.parametrize("text", ["Log in", "LOGIN", "Sign In", "sign-in", "Log in to your account"])
    def test_login_texts(self, text):
        assert classify_as_login(text)

    @pytest.mark.parametrize("text", ["Sign up", "Logout", "Blog index", "Signing", "", None])
    def test_non_login_texts(self, text):
        assert not classify_as_login(text)


class TestDestructiveClassifier:

    @pytest.mark.parametrize("text", [
        "Delete", "Remove item", "Sign Out", "sign-out", "Log out", "LOGOUT",
        "Deactivate account", "Unsubscribe",
    ])
    def test_destructive(self, text):
        assert classify_as_destructive(text)

    @pytest.mark.parametrize("text", ["Learn More", "Submit", "Sign in", "Save", "", None])
    def test_safe(self, text):
        assert not classify_as_destructive(text)


class TestPasswordField:

    def test_password_type(self):
        assert is_password_field("anything", "password")

    @pytest.mark.parametrize("name", ["password", "user_passwd", "pwd", "Passcode", "new-pass"])
    def test_password_names(self, name):
        assert is_password_field(name, "text")

    def test_autocomplete_hint(self):
        assert is_password_field("field1", "text", autocomplete="current-password")

    def test_not_password(self):
        assert not is_password_field("passenger_count", "number")
        assert not is_password_field("email", "email")


class TestIdentityField:

    def test_email_type(self):
        assert is_identity_field("", "email")

    @pytest.mark.parametrize("name", ["email", "user_email", "username", "login", "userid"])
    def test_identity_names(self, name):
        assert is_identity_field(name, "text")

    def test_password_is_never_identity(self):
        assert not is_identity_field("user_password", "text")
        assert not is_identity_field("username", "password")

    def test_search_box_is_not_identity(self):
        assert not is_identity_field("q", "search")
        assert not is_identity_field("query", "text")


class TestFieldSemantic:

    @pytest.mark.parametrize("name,input_type,kind", [
        ("password", "text", SyntheticValueKind.PASSWORD),
        ("x", "password", SyntheticValueKind.PASSWORD),
        ("email", "text", SyntheticValueKind.EMAIL),
        ("contact", "email", SyntheticValueKind.EMAIL),
        ("mobile", "text", SyntheticValueKind.PHONE),
        ("contact", "tel", SyntheticValueKind.PHONE),
        ("quantity", "number", SyntheticValueKind.NUMBER),
        ("full_name", "text", SyntheticValueKind.NAME),
        ("comments", "", SyntheticValueKind.TEXT),
    ])
    def test_classification(self, name, input_type, kind):
        assert classify_field_semantic(name, input_type) == kind

    def test_password_has_no_synthetic_value(self):
        assert synthetic_value(SyntheticValueKind.PASSWORD) is None

    def test_synthetic_values(self):
        assert "@" in synthetic_value(SyntheticValueKind.EMAIL)
        assert synthetic_value(SyntheticValueKind.NUMBER).isdigit()
        assert synthetic_value(SyntheticValueKind.NAME)
        assert synthetic_value(SyntheticValueKind.TEXT)

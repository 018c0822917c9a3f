"""Tests for suggestion validation."""

import pytest

from airdrop_checker.models import SuggestionInput
from airdrop_checker.validation import (
    ERROR_DESCRIPTION,
    ERROR_EMAIL,
    ERROR_OFFICIAL_LINK,
    ERROR_PROJECT_NAME,
    is_valid_email,
    is_valid_url,
    validate_suggestion,
)


class TestIsValidUrl:
    """Test absolute URL checks."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://zeta.example",
            "http://localhost:8080/path?q=1",
            "ftp://files.example.org/pub",
            "file:///tmp/whitepaper.pdf",
            "mailto:team@zeta.example",
            "  https://zeta.example  ",
            "https:zeta.example",
            "https:/zeta.example",
        ],
    )
    def test_accepts_absolute_urls(self, url):
        assert is_valid_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "",
            None,
            "   ",
            "not a url",
            "zeta.example",
            "/relative/path",
            "https://",
            "https:",
            "http://exa mple.com",
            "https://zeta.example:notaport",
        ],
    )
    def test_rejects_non_urls(self, url):
        assert is_valid_url(url) is False


class TestIsValidEmail:
    """Test the simple email shape check."""

    def test_accepts_simple_address(self):
        assert is_valid_email("a@b.co") is True

    @pytest.mark.parametrize("email", ["foo", "foo@bar", "a b@c.de", "a@@b.co", "@b.co", "", "a@b.co\n"])
    def test_rejects_malformed(self, email):
        assert is_valid_email(email) is False


class TestValidateSuggestion:
    """Test full suggestion validation."""

    def test_valid_suggestion_has_no_errors(self, suggestion):
        result = validate_suggestion(suggestion)
        assert result.is_valid is True
        assert result.errors == []

    def test_boundary_lengths_are_valid(self):
        """Two-character name and ten-character description are enough."""
        result = validate_suggestion(
            SuggestionInput(
                project_name="AB",
                description="0123456789",
                official_link="https://ab.example",
            )
        )
        assert result.is_valid is True

    def test_whitespace_is_trimmed_before_length_checks(self):
        result = validate_suggestion(
            SuggestionInput(
                project_name="  A  ",
                description="   123456789   ",
                official_link="https://a.example",
            )
        )
        assert result.errors == [ERROR_PROJECT_NAME, ERROR_DESCRIPTION]

    def test_all_errors_collected_in_order(self):
        result = validate_suggestion(
            SuggestionInput(
                project_name="A",
                description="court",
                official_link="zeta",
                email="foo@bar",
            )
        )
        assert result.is_valid is False
        assert result.errors == [
            ERROR_PROJECT_NAME,
            ERROR_DESCRIPTION,
            ERROR_OFFICIAL_LINK,
            ERROR_EMAIL,
        ]

    def test_french_messages(self):
        assert ERROR_PROJECT_NAME == "Le nom du projet doit contenir au moins 2 caractères"
        assert ERROR_DESCRIPTION == "La description doit contenir au moins 10 caractères"
        assert ERROR_OFFICIAL_LINK == "Le lien officiel doit être une URL valide"
        assert ERROR_EMAIL == "L'email n'est pas valide"

    @pytest.mark.parametrize("email", [None, ""])
    def test_email_is_optional(self, suggestion, email):
        suggestion.email = email
        assert validate_suggestion(suggestion).is_valid is True

    def test_invalid_email_only(self, suggestion):
        suggestion.email = "not-an-email"
        assert validate_suggestion(suggestion).errors == [ERROR_EMAIL]

    def test_criteria_is_not_validated(self, suggestion):
        suggestion.criteria = "x"
        assert validate_suggestion(suggestion).is_valid is True

    def test_trailing_newline_email_is_rejected(self, suggestion):
        suggestion.email = "a@b.co\n"
        assert validate_suggestion(suggestion).errors == [ERROR_EMAIL]

    def test_same_input_gives_same_result(self):
        suggestion = SuggestionInput(
            project_name="A",
            description="court",
            official_link="not-a-url",
            email="foo@bar",
        )

        first = validate_suggestion(suggestion)
        second = validate_suggestion(suggestion)

        assert first == second
        assert first.errors is not second.errors

"""
Unit tests for ClientLogin authentication.

Tests ClientLoginAuth with mocked HTTP responses.
"""

from unittest.mock import Mock, patch

import pytest
from requests.exceptions import ConnectionError

from gcontact_gravatar.auth.client_login import (
    CLIENT_LOGIN_URL,
    SOURCE,
    AuthCredential,
    AuthenticationError,
    CaptchaRequiredError,
    ClientLoginAuth,
    parse_response_body,
)


def make_response(status_code, text):
    response = Mock()
    response.status_code = status_code
    response.text = text
    return response


class TestParseResponseBody:
    """Tests for parse_response_body."""

    def test_key_value_lines(self):
        """Test parsing of Key=Value lines."""
        assert parse_response_body("SID=a\nLSID=b\nAuth=c=d\n") == {
            "SID": "a",
            "LSID": "b",
            "Auth": "c=d",
        }

    def test_malformed_lines_ignored(self):
        """Test that lines without '=' are skipped."""
        assert parse_response_body("garbage\nError=BadAuthentication") == {
            "Error": "BadAuthentication"
        }


class TestLogin:
    """Tests for ClientLoginAuth.login."""

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_success_returns_credential(self, mock_post):
        """Test that the Auth token becomes an Authorization header."""
        mock_post.return_value = make_response(200, "SID=s\nLSID=l\nAuth=TOKEN\n")

        credential = ClientLoginAuth(timeout=5).login("me@example.com", "pw")

        assert dict(credential.headers) == {"Authorization": "GoogleLogin auth=TOKEN"}
        mock_post.assert_called_once_with(
            CLIENT_LOGIN_URL,
            data={
                "accountType": "HOSTED_OR_GOOGLE",
                "Email": "me@example.com",
                "Passwd": "pw",
                "service": "cp",
                "source": SOURCE,
            },
            timeout=5,
        )

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_captcha_answer_sent(self, mock_post):
        """Test that a captcha token and answer are included in the form."""
        mock_post.return_value = make_response(200, "Auth=TOKEN")

        ClientLoginAuth().login("me@example.com", "pw", captcha_token="t", captcha="a")

        form = mock_post.call_args.kwargs["data"]
        assert form["logintoken"] == "t"
        assert form["logincaptcha"] == "a"

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_partial_captcha_not_sent(self, mock_post):
        """Test that half a captcha answer is not sent."""
        mock_post.return_value = make_response(200, "Auth=TOKEN")

        ClientLoginAuth().login("me@example.com", "pw", captcha_token="t")

        assert "logintoken" not in mock_post.call_args.kwargs["data"]

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_captcha_required(self, mock_post):
        """Test that a CaptchaRequired error surfaces the challenge."""
        mock_post.return_value = make_response(
            403,
            "Url=https://www.google.com/login/captcha\n"
            "Error=CaptchaRequired\n"
            "CaptchaToken=CTOKEN\n"
            "CaptchaUrl=Captcha?ctoken=CTOKEN\n",
        )

        with pytest.raises(CaptchaRequiredError) as exc_info:
            ClientLoginAuth().login("me@example.com", "pw")

        challenge = exc_info.value.challenge
        assert challenge.captcha_token == "CTOKEN"
        assert challenge.captcha_url == (
            "https://www.google.com/accounts/Captcha?ctoken=CTOKEN"
        )
        assert isinstance(exc_info.value, AuthenticationError)

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_bad_authentication(self, mock_post):
        """Test that other errors raise AuthenticationError with the reason."""
        mock_post.return_value = make_response(403, "Error=BadAuthentication\n")

        with pytest.raises(AuthenticationError, match="BadAuthentication") as exc_info:
            ClientLoginAuth().login("me@example.com", "pw")

        assert not isinstance(exc_info.value, CaptchaRequiredError)

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_missing_auth_token(self, mock_post):
        """Test that a 200 without an Auth line is a failure."""
        mock_post.return_value = make_response(200, "SID=s\n")

        with pytest.raises(AuthenticationError, match="no Auth token"):
            ClientLoginAuth().login("me@example.com", "pw")

    @patch("gcontact_gravatar.auth.client_login.requests.post")
    def test_network_error(self, mock_post):
        """Test that transport errors raise AuthenticationError."""
        mock_post.side_effect = ConnectionError("down")

        with pytest.raises(AuthenticationError, match="down"):
            ClientLoginAuth().login("me@example.com", "pw")


class TestAuthCredential:
    """Tests for AuthCredential."""

    def test_headers_read_only(self):
        """Test that credential headers cannot be modified."""
        credential = AuthCredential.from_auth_token("TOKEN")
        with pytest.raises(TypeError):
            credential.headers["X"] = "y"  # type: ignore[index]

    def test_repr_redacts_token(self):
        """Test that the token does not appear in repr."""
        assert "TOKEN" not in repr(AuthCredential.from_auth_token("TOKEN"))

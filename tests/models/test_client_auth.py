import base64

from authlink.models.client_auth import (
    ClientSecretBasic,
    ClientSecretPost,
    NoClientAuthentication,
)


class TestClientAuthentication:
    def test_no_client_authentication_adds_nothing(self):
        auth = NoClientAuthentication()

        assert auth.get_request_headers("client-1") is None
        assert auth.get_request_parameters("client-1") is None

    def test_client_secret_basic_builds_authorization_header(self):
        # Arrange
        auth = ClientSecretBasic("s3cret")

        # Act
        headers = auth.get_request_headers("client-1")

        # Assert
        expected = base64.b64encode(b"client-1:s3cret").decode("ascii")
        assert headers == {"Authorization": f"Basic {expected}"}
        assert auth.get_request_parameters("client-1") is None

    def test_client_secret_basic_form_encodes_credentials(self):
        auth = ClientSecretBasic("p@ss:word")

        headers = auth.get_request_headers("my client")

        encoded = headers["Authorization"].removeprefix("Basic ")
        assert base64.b64decode(encoded) == b"my+client:p%40ss%3Aword"

    def test_client_secret_post_adds_secret_parameter(self):
        auth = ClientSecretPost("s3cret")

        assert auth.get_request_headers("client-1") is None
        assert auth.get_request_parameters("client-1") == {"client_secret": "s3cret"}

    def test_secret_is_hidden_from_repr(self):
        assert "s3cret" not in repr(ClientSecretBasic("s3cret"))
        assert "s3cret" not in repr(ClientSecretPost("s3cret"))

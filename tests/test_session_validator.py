"""Tests for shop identity validation."""

import pytest
import hmac
import hashlib
import base64

from retail_pos.middleware.session_validator import ShopIdentityValidator
from retail_pos.utils.exceptions import AuthenticationError


class TestShopIdentityValidator:
    """Tests for ShopIdentityValidator."""

    @pytest.fixture
    def validator(self, monkeypatch):
        """Create a ShopIdentityValidator with test secret."""
        # Mock the config
        class MockConfig:
            class EnvConfig:
                session_secret = "test_secret"

            class AuthConfig:
                validate_signature = True

            env = EnvConfig()
            auth = AuthConfig()

        def mock_get_config():
            return MockConfig()

        monkeypatch.setattr("retail_pos.middleware.session_validator.get_config", mock_get_config)
        return ShopIdentityValidator()

    def create_signature(self, shop_id: str, secret: str) -> str:
        """Create a valid HMAC signature."""
        return base64.b64encode(
            hmac.new(
                secret.encode('utf-8'),
                shop_id.encode('utf-8'),
                hashlib.sha256
            ).digest()
        ).decode('utf-8')

    def test_sign_matches_provider(self, validator):
        assert validator.sign(42) == self.create_signature("42", "test_secret")

    def test_validate_signature_success(self, validator):
        signature = self.create_signature("42", "test_secret")

        assert validator.validate_signature(42, signature) is True

    def test_validate_signature_invalid(self, validator):
        with pytest.raises(AuthenticationError, match="Invalid shop signature"):
            validator.validate_signature(42, "invalid_signature")

    def test_signature_for_other_shop_rejected(self, validator):
        signature = self.create_signature("41", "test_secret")

        with pytest.raises(AuthenticationError):
            validator.validate_signature(42, signature)

    def test_validate_signature_missing(self, validator):
        with pytest.raises(AuthenticationError, match="Missing shop signature"):
            validator.validate_signature(42, None)

    def test_authenticate(self, validator):
        signature = self.create_signature("7", "test_secret")

        assert validator.authenticate("7", signature) == 7

    def test_authenticate_missing_shop_id(self, validator):
        with pytest.raises(AuthenticationError, match="Missing shop id"):
            validator.authenticate(None, "anything")

    def test_authenticate_malformed_shop_id(self, validator):
        with pytest.raises(AuthenticationError, match="Invalid shop id"):
            validator.authenticate("seven", "anything")

    def test_validation_disabled(self, validator):
        validator.validate_enabled = False

        assert validator.validate_signature(42, None) is True

    def test_explicit_secret_overrides_config(self):
        validator = ShopIdentityValidator(secret="other", validate_enabled=True)

        assert validator.sign(1) == self.create_signature("1", "other")

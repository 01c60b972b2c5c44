"""Shop identity header validation."""

import hmac
import hashlib
import base64
from typing import Optional

from ..utils.config import get_config
from ..utils.logger import get_api_logger
from ..utils.exceptions import AuthenticationError


class ShopIdentityValidator:
    """
    Validates the shop identity forwarded by the session provider.

    The provider sends the shop id in ``X-Shop-Id`` and signs it into
    ``X-Shop-Signature`` as base64(HMAC-SHA256(session_secret, shop_id)).
    """

    def __init__(self, secret: Optional[str] = None, validate_enabled: Optional[bool] = None):
        """Initialize the validator from config unless overridden."""
        config = get_config()
        self.secret = secret if secret is not None else config.env.session_secret
        self.logger = get_api_logger()
        self.validate_enabled = (
            validate_enabled if validate_enabled is not None else config.auth.validate_signature
        )

    def sign(self, shop_id: int) -> str:
        """Signature the session provider attaches for ``shop_id``."""
        return base64.b64encode(
            hmac.new(
                self.secret.encode('utf-8'),
                str(shop_id).encode('utf-8'),
                hashlib.sha256
            ).digest()
        ).decode('utf-8')

    def validate_signature(self, shop_id: int, signature_header: Optional[str]) -> bool:
        """
        Validate the identity signature.

        Args:
            shop_id: Shop id from X-Shop-Id
            signature_header: Value of X-Shop-Signature

        Returns:
            True if signature is valid

        Raises:
            AuthenticationError: If validation fails
        """
        if not self.validate_enabled:
            self.logger.warning("Shop identity signature validation is disabled!")
            return True

        if not signature_header:
            raise AuthenticationError(
                "Missing shop signature header",
                details={"header": "X-Shop-Signature"}
            )

        expected_signature = self.sign(shop_id)

        # Compare signatures (constant-time comparison)
        if not hmac.compare_digest(expected_signature, signature_header):
            raise AuthenticationError(
                "Invalid shop signature",
                details={"shopId": shop_id}
            )

        self.logger.debug(f"Shop {shop_id} signature validated")
        return True

    def authenticate(self, shop_id_header: Optional[str], signature_header: Optional[str]) -> int:
        """
        Resolve the headers to a verified shop id.

        Raises:
            AuthenticationError: Missing or malformed id, or bad signature
        """
        if not shop_id_header:
            raise AuthenticationError(
                "Missing shop id header",
                details={"header": "X-Shop-Id"}
            )

        try:
            shop_id = int(shop_id_header)
        except ValueError:
            raise AuthenticationError(
                f"Invalid shop id: {shop_id_header}",
                details={"header": "X-Shop-Id"}
            )

        self.validate_signature(shop_id, signature_header)
        return shop_id

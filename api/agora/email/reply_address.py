"""Reply-by-email addresses.

Notification emails about a post carry a ``Reply-To`` of the form::

    reply-<hex token>@<reply domain>

where the token is ``salt + post_id + "|" + user_id`` encrypted with
AES-GCM. The inbound mail webhook decodes the address to learn who is
commenting on which post. Authenticated encryption means a tampered or
forged token fails to decrypt instead of yielding other ids.
"""

import base64
import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


if TYPE_CHECKING:
    from agora.config.settings import Settings


NONCE_SIZE = 12
KDF_ITERATIONS = 100_000
ADDRESS_PATTERN = re.compile(r"reply-([0-9a-fA-F]+)@")


class ReplyAddressError(Exception):
    """Base reply address error."""

    def __init__(self, message: str, code: str = "reply_address_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidReplyAddressError(ReplyAddressError):
    """The address is not one we issued, or was tampered with."""

    def __init__(self, address: str, reason: str):
        super().__init__(
            f"Invalid reply address: {address}", "invalid_reply_address"
        )
        self.address = address
        self.reason = reason


@dataclass(frozen=True)
class ReplyAddress:
    """Identities recovered from a reply address (as strings)."""

    post_id: str
    user_id: str


def derive_key(secret: str, salt: str) -> bytes:
    """256-bit AES key from the configured secret."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt.encode(),
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(secret.encode())


class ReplyAddressCodec:
    """Encodes and decodes reply addresses for one deployment."""

    def __init__(self, secret: str, salt: str, domain: str):
        if not salt:
            msg = "Reply address salt must not be empty"
            raise ValueError(msg)
        self.salt = salt
        self.domain = domain
        self._aead = AESGCM(derive_key(secret, salt))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ReplyAddressCodec":
        return cls(
            secret=settings.reply_address_secret,
            salt=settings.reply_address_salt,
            domain=settings.reply_domain,
        )

    def encode(self, post_id: object, user_id: object) -> str:
        """Reply address for ``user_id`` answering on ``post_id``."""
        plaintext = f"{self.salt}{post_id}|{user_id}".encode()
        nonce = os.urandom(NONCE_SIZE)
        token = nonce + self._aead.encrypt(nonce, plaintext, None)
        return f"reply-{base64.b16encode(token).decode().lower()}@{self.domain}"

    def decode(self, address: str) -> ReplyAddress:
        """Recover the post and user ids from a reply address.

        Accepts a bare address or a header value such as
        ``"Agora <reply-...@domain>"``.

        Raises:
            InvalidReplyAddressError: Missing ``reply-...@`` marker, token
                that does not decrypt, or plaintext without the salt prefix
                or the ``post|user`` shape
        """
        match = ADDRESS_PATTERN.search(address or "")
        if match is None:
            raise InvalidReplyAddressError(address, "no reply token")

        try:
            token = base64.b16decode(match.group(1).upper())
        except ValueError as e:
            raise InvalidReplyAddressError(address, "token is not hex") from e

        if len(token) <= NONCE_SIZE:
            raise InvalidReplyAddressError(address, "token too short")

        nonce, ciphertext = token[:NONCE_SIZE], token[NONCE_SIZE:]
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None).decode()
        except (InvalidTag, UnicodeDecodeError) as e:
            raise InvalidReplyAddressError(address, "token does not decrypt") from e

        if not plaintext.startswith(self.salt):
            raise InvalidReplyAddressError(address, "salt prefix missing")

        ids = plaintext[len(self.salt) :].split("|")
        if len(ids) != 2 or not all(ids):
            raise InvalidReplyAddressError(address, "unexpected payload")

        return ReplyAddress(post_id=ids[0], user_id=ids[1])

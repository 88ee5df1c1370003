"""X-CLIENT header encryption compatible with the portal's CryptoJS client."""

import base64
import json

from Crypto.Cipher import AES
from Crypto.Hash import MD5
from Crypto.Random import get_random_bytes
from Crypto.Util.Padding import pad

SALT_HEADER = b"Salted__"
KEY_SIZE = 32
IV_SIZE = 16
SALT_SIZE = 8


def evp_bytes_to_key(passphrase: bytes, salt: bytes, key_size: int = KEY_SIZE, iv_size: int = IV_SIZE) -> tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5 and one iteration, as used by CryptoJS passphrase mode."""
    derived = b""
    block = b""
    while len(derived) < key_size + iv_size:
        block = MD5.new(block + passphrase + salt).digest()
        derived += block
    return derived[:key_size], derived[key_size : key_size + iv_size]


def encrypt_with_passphrase(plaintext: str, passphrase: str, salt: bytes | None = None) -> str:
    """AES-256-CBC encrypt into the OpenSSL ``Salted__`` base64 format."""
    salt = salt or get_random_bytes(SALT_SIZE)
    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    cipher = AES.new(key, AES.MODE_CBC, iv)
    ciphertext = cipher.encrypt(pad(plaintext.encode("utf-8"), AES.block_size))
    return base64.b64encode(SALT_HEADER + salt + ciphertext).decode("ascii")


def encrypt_client_id(client_id: str, encryption_key: str) -> str:
    """Derive the X-CLIENT header value from the portal-issued client id.

    The portal cannot carry a raw ``+`` in this header, so it is spelled ``teca``.
    """
    encrypted = encrypt_with_passphrase(json.dumps(client_id, ensure_ascii=False), encryption_key)
    return encrypted.replace("+", "teca")

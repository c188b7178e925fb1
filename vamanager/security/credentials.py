"""
Password confidentiality for stored account credentials.

New secrets are sealed with AES-256-GCM under a key that lives in the
operator's local store, never in the database. Stored forms written before
the cipher existed are still readable: a reversed-base64 legacy obfuscation,
and raw plaintext. Rows carry a scheme tag going forward; untagged rows are
routed by the shape of the stored string.

Decoding never raises. The worst case hands the stored value back unchanged,
and the outcome tells the caller which path produced the plaintext so that
ambiguous rows can be queued for re-encryption.
"""
import os
import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from fastapi import Request

from vamanager.local_store import LocalStore, ENCRYPTION_KEY_STORAGE

logger = logging.getLogger(__name__)

SCHEME_AESGCM = "aesgcm"
SCHEME_OBFUSCATED = "obfuscated"
SCHEME_PLAIN = "plain"
SCHEMES = (SCHEME_AESGCM, SCHEME_OBFUSCATED, SCHEME_PLAIN)

KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16

# base64 length of nonce + 1 byte of ciphertext + tag; nothing shorter can be ours
MIN_CIPHER_LENGTH = 4 * -(-(NONCE_LENGTH + 1 + TAG_LENGTH) // 3)

PASSWORD_PLACEHOLDER = "••••••••"

class DecodeOutcome(str, Enum):
    CIPHER = "cipher"
    LEGACY = "legacy"
    PASSTHROUGH = "passthrough"

@dataclass(frozen=True)
class DecodeResult:
    plaintext: str
    outcome: DecodeOutcome

    @property
    def needs_reencrypt(self) -> bool:
        return self.outcome != DecodeOutcome.CIPHER

def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")

def _b64url_decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))

def obfuscate(plaintext: str) -> str:
    """Legacy transform: base64 then reverse. Not a security boundary."""
    if not plaintext:
        return ""
    return base64.b64encode(plaintext.encode("utf-8")).decode("ascii")[::-1]

def deobfuscate(obfuscated: str) -> str:
    """Inverse of obfuscate; returns the input unchanged if it does not decode."""
    if not obfuscated:
        return ""
    try:
        return base64.b64decode(obfuscated[::-1], validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return obfuscated

def _strict_b64decode(value: str) -> bytes | None:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None

def in_cipher_band(stored_form: str) -> bool:
    return (
        len(stored_form) >= MIN_CIPHER_LENGTH
        and len(stored_form) % 4 == 0
        and _strict_b64decode(stored_form) is not None
    )

def _is_control(c: str) -> bool:
    return (ord(c) < 0x20 and c not in "\t\n\r") or 0x7f <= ord(c) < 0xa0

def _try_legacy(stored_form: str) -> str | None:
    """
    Reverse the legacy obfuscation if the stored form is a canonical encoding.

    Values written by this service encode UTF-8. Older ones were produced by
    the browser's btoa, one Latin-1 byte per character, so bytes that are not
    valid UTF-8 are read as Latin-1.
    """
    raw = _strict_b64decode(stored_form[::-1])
    if raw is None:
        return None
    try:
        text, encoding = raw.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        text, encoding = raw.decode("latin-1"), "latin-1"
        # Typed passwords never hold control bytes
        if any(_is_control(c) for c in text):
            return None
    if not text or "\x00" in text:
        return None
    if base64.b64encode(text.encode(encoding)).decode("ascii")[::-1] != stored_form:
        return None
    return text

def classify(stored_form: str | None) -> str:
    """Infer the format tag of an untagged stored form from its shape alone."""
    if not stored_form:
        return SCHEME_PLAIN
    if in_cipher_band(stored_form):
        return SCHEME_AESGCM
    if _try_legacy(stored_form) is not None:
        return SCHEME_OBFUSCATED
    return SCHEME_PLAIN

class KeyStore:
    """Loads the AES key from the local store, generating and exporting it on first use."""

    def __init__(self, store: LocalStore):
        self.store = store

    def load_or_create(self) -> bytes:
        jwk = self.store.get(ENCRYPTION_KEY_STORAGE)
        if jwk:
            return self._import_jwk(jwk)

        key = AESGCM.generate_key(bit_length=KEY_LENGTH * 8)
        self.store.set(ENCRYPTION_KEY_STORAGE, self._export_jwk(key))
        logger.info("Generated new credential encryption key")
        return key

    @staticmethod
    def _export_jwk(key: bytes) -> dict:
        return {
            "kty": "oct",
            "k": _b64url(key),
            "alg": "A256GCM",
            "ext": True,
            "key_ops": ["encrypt", "decrypt"],
        }

    @staticmethod
    def _import_jwk(jwk: dict) -> bytes:
        if not isinstance(jwk, dict) or jwk.get("kty") != "oct" or not isinstance(jwk.get("k"), str):
            raise ValueError("Stored encryption key is not an octet JWK")
        key = _b64url_decode(jwk["k"])
        if len(key) != KEY_LENGTH:
            raise ValueError(f"Stored encryption key has {len(key)} bytes, expected {KEY_LENGTH}")
        return key

def _fallback_fields(scheme: str | None) -> dict:
    return {"password_scheme": scheme or "untagged", "decode_outcome": DecodeOutcome.PASSTHROUGH.value}

class CredentialCipher:
    def __init__(self, store: LocalStore):
        self.keys = KeyStore(store)
        self._key: bytes | None = None

    def _get_key(self) -> bytes:
        if self._key is None:
            self._key = self.keys.load_or_create()
        return self._key

    def encode(self, plaintext: str) -> str:
        if not plaintext:
            return ""
        nonce = os.urandom(NONCE_LENGTH)
        sealed = AESGCM(self._get_key()).encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def encode_tagged(self, plaintext: str) -> tuple[str, str | None]:
        stored_form = self.encode(plaintext)
        return stored_form, (SCHEME_AESGCM if stored_form else None)

    def _try_cipher(self, stored_form: str) -> str | None:
        combined = _strict_b64decode(stored_form)
        if combined is None or len(combined) <= NONCE_LENGTH + TAG_LENGTH:
            return None
        try:
            key = self._get_key()
            plain = AESGCM(key).decrypt(combined[:NONCE_LENGTH], combined[NONCE_LENGTH:], None)
            return plain.decode("utf-8")
        except (InvalidTag, UnicodeDecodeError):
            return None
        except (ValueError, KeyError, OSError) as e:
            logger.warning(f"Encryption key unavailable during decrypt: {e}")
            return None

    def decode_result(self, stored_form: str | None, scheme: str | None = None) -> DecodeResult:
        if not stored_form:
            return DecodeResult("", DecodeOutcome.PASSTHROUGH)

        if scheme == SCHEME_PLAIN:
            return DecodeResult(stored_form, DecodeOutcome.PASSTHROUGH)

        if scheme == SCHEME_OBFUSCATED:
            text = _try_legacy(stored_form)
            if text is not None:
                return DecodeResult(text, DecodeOutcome.LEGACY)
            logger.warning("Stored value tagged as obfuscated did not decode, using stored value as-is",
                           extra=_fallback_fields(scheme))
            return DecodeResult(stored_form, DecodeOutcome.PASSTHROUGH)

        if scheme == SCHEME_AESGCM:
            text = self._try_cipher(stored_form)
            if text is not None:
                return DecodeResult(text, DecodeOutcome.CIPHER)
            logger.warning("Decryption failed for password, using plaintext fallback", extra=_fallback_fields(scheme))
            return DecodeResult(stored_form, DecodeOutcome.PASSTHROUGH)

        if scheme is not None:
            logger.warning(f"Unknown password scheme {scheme!r}, inferring from stored value")

        # Untagged row: route by shape
        cipher_failed = False
        if in_cipher_band(stored_form):
            text = self._try_cipher(stored_form)
            if text is not None:
                return DecodeResult(text, DecodeOutcome.CIPHER)
            cipher_failed = True

        text = _try_legacy(stored_form)
        if text is not None:
            if cipher_failed:
                logger.debug("Cipher-length value decoded through legacy obfuscation")
            return DecodeResult(text, DecodeOutcome.LEGACY)

        if cipher_failed:
            logger.warning("Decryption failed for password, using plaintext fallback", extra=_fallback_fields(None))
        else:
            logger.debug("Stored password is not encoded, passing through")
        return DecodeResult(stored_form, DecodeOutcome.PASSTHROUGH)

    def decode(self, stored_form: str | None, scheme: str | None = None) -> str:
        return self.decode_result(stored_form, scheme).plaintext

    def encrypt_password_fields(self, row: dict, fields: Iterable[str] = ("password",)) -> dict:
        result = dict(row)
        for field in fields:
            if result.get(field):
                result[field] = self.encode(result[field])
        return result

    def decrypt_password_fields(self, row: dict, fields: Iterable[str] = ("password",)) -> dict:
        result = dict(row)
        for field in fields:
            if result.get(field):
                result[field] = self.decode(result[field])
        return result

def get_cipher(request: Request) -> CredentialCipher:
    return request.app.state.cipher

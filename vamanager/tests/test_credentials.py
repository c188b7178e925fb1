import base64
import logging
import pytest
from vamanager.local_store import LocalStore, ENCRYPTION_KEY_STORAGE
from vamanager.security.credentials import (
    CredentialCipher,
    DecodeOutcome,
    DecodeResult,
    MIN_CIPHER_LENGTH,
    SCHEME_AESGCM,
    SCHEME_OBFUSCATED,
    SCHEME_PLAIN,
    classify,
    deobfuscate,
    in_cipher_band,
    obfuscate,
)

@pytest.mark.parametrize("plaintext", ["war$$8899", "Tom2024!Secure", "a", "pässwörd 🙂", "x" * 500])
def test_encode_decode_round_trip(cipher, plaintext):
    stored = cipher.encode(plaintext)
    assert stored != plaintext
    result = cipher.decode_result(stored)
    assert result.plaintext == plaintext
    assert result.outcome == DecodeOutcome.CIPHER
    assert not result.needs_reencrypt

def test_empty_password_stays_empty(cipher):
    assert cipher.encode("") == ""
    assert cipher.decode("") == ""
    assert cipher.decode(None) == ""
    assert cipher.encode_tagged("") == ("", None)

def test_stored_form_layout(cipher):
    """Nonce, ciphertext and tag travel as one standard base64 string."""
    stored = cipher.encode("war$$8899")
    assert len(stored) == 52
    raw = base64.b64decode(stored, validate=True)
    assert len(raw) == 12 + len("war$$8899") + 16
    assert in_cipher_band(stored)

def test_encoding_is_randomized(cipher):
    assert cipher.encode("same-password") != cipher.encode("same-password")

def test_legacy_obfuscation_still_decodes(cipher):
    stored = obfuscate("Tom2024!Secure")
    assert stored == "=Umc1NWZTFCNyAjMt9GV"
    result = cipher.decode_result(stored)
    assert result.plaintext == "Tom2024!Secure"
    assert result.outcome == DecodeOutcome.LEGACY
    assert result.needs_reencrypt

@pytest.mark.parametrize("plaintext", ["pass\tword", "line one\nline two", "crlf\r\n", "é"])
def test_legacy_values_with_whitespace_or_accents_decode(cipher, plaintext):
    assert cipher.decode_result(obfuscate(plaintext)) == DecodeResult(plaintext, DecodeOutcome.LEGACY)

@pytest.mark.parametrize("plaintext", ["café", "Müller£2019", "señor\tñ"])
def test_browser_era_latin1_values_decode(cipher, plaintext):
    # btoa wrote one Latin-1 byte per character
    stored = base64.b64encode(plaintext.encode("latin-1")).decode("ascii")[::-1]
    result = cipher.decode_result(stored)
    assert result.plaintext == plaintext
    assert result.outcome == DecodeOutcome.LEGACY
    assert classify(stored) == SCHEME_OBFUSCATED

def test_control_bytes_are_not_read_as_legacy(cipher):
    stored = base64.b64encode(b"\x01\x02\xff").decode("ascii")[::-1]
    assert cipher.decode_result(stored).outcome == DecodeOutcome.PASSTHROUGH

def test_deobfuscate_is_inverse():
    assert deobfuscate(obfuscate("hunter2")) == "hunter2"
    assert deobfuscate("") == ""
    assert deobfuscate("not base64!") == "not base64!"

@pytest.mark.parametrize("stored", ["not-a-real-ciphertext", "hunter2", "abc", "P@ssw0rd!"])
def test_plaintext_passes_through(cipher, stored):
    result = cipher.decode_result(stored)
    assert result.plaintext == stored
    assert result.outcome == DecodeOutcome.PASSTHROUGH

@pytest.mark.parametrize("garbage", [
    "!!!",
    "====",
    "A" * MIN_CIPHER_LENGTH,
    "A" * 41,
    "\x00\xff\x10",
    base64.b64encode(b"\x00" * 60).decode(),
    "ÿ" * 64,
])
def test_decode_never_raises(cipher, garbage):
    assert isinstance(cipher.decode(garbage), str)

def test_wrong_key_falls_back_to_stored_form(tmp_path, caplog):
    writer = CredentialCipher(LocalStore(str(tmp_path / "a.json")))
    reader = CredentialCipher(LocalStore(str(tmp_path / "b.json")))

    stored = writer.encode("war$$8899")
    with caplog.at_level(logging.DEBUG, logger="vamanager.security.credentials"):
        result = reader.decode_result(stored)
    assert result.plaintext == stored
    assert result.outcome == DecodeOutcome.PASSTHROUGH

    [warning] = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert "Decryption failed" in warning.getMessage()
    assert warning.decode_outcome == "passthrough"
    assert warning.password_scheme == "untagged"
    assert stored not in warning.getMessage()

def test_plain_passthrough_does_not_warn(cipher, caplog):
    with caplog.at_level(logging.DEBUG, logger="vamanager.security.credentials"):
        assert cipher.decode("hunter2") == "hunter2"
        assert cipher.decode("hunter2", SCHEME_PLAIN) == "hunter2"
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

def test_key_is_exported_as_jwk_and_reused(store):
    first = CredentialCipher(store)
    stored = first.encode("persist-me")

    jwk = store.get(ENCRYPTION_KEY_STORAGE)
    assert jwk["kty"] == "oct"
    assert jwk["alg"] == "A256GCM"
    assert jwk["ext"] is True
    assert set(jwk["key_ops"]) == {"encrypt", "decrypt"}

    second = CredentialCipher(LocalStore(store.path))
    assert second.decode(stored) == "persist-me"
    assert store.get(ENCRYPTION_KEY_STORAGE) == jwk

def test_corrupt_key_never_breaks_decode(tmp_path):
    good = CredentialCipher(LocalStore(str(tmp_path / "good.json")))
    stored = good.encode("war$$8899")

    broken_store = LocalStore(str(tmp_path / "broken.json"))
    broken_store.set(ENCRYPTION_KEY_STORAGE, {"kty": "oct", "k": "c2hvcnQ"})
    broken = CredentialCipher(broken_store)

    assert broken.decode(stored) == stored
    assert broken.decode(obfuscate("hunter2")) == "hunter2"
    with pytest.raises(ValueError):
        broken.encode("anything")

@pytest.mark.parametrize("jwk", [
    {"kty": "oct", "k": None},
    {"kty": "oct", "k": 12345},
    {"kty": "oct", "k": "bad\u00e9"},
    {"kty": "oct"},
    {"kty": "RSA", "k": "c2hvcnQ"},
    ["not", "a", "jwk"],
])
def test_malformed_key_never_breaks_decode(tmp_path, jwk):
    stored = CredentialCipher(LocalStore(str(tmp_path / "good.json"))).encode("war$$8899")

    broken_store = LocalStore(str(tmp_path / "broken.json"))
    broken_store.set(ENCRYPTION_KEY_STORAGE, jwk)
    broken = CredentialCipher(broken_store)

    assert broken.decode(stored) == stored
    assert broken.decode(stored, SCHEME_AESGCM) == stored
    with pytest.raises(ValueError):
        broken.encode("anything")

def test_tagged_rows_skip_the_heuristic(cipher):
    sealed, scheme = cipher.encode_tagged("hunter2")
    assert scheme == SCHEME_AESGCM
    assert cipher.decode_result(sealed, scheme).outcome == DecodeOutcome.CIPHER

    legacy = obfuscate("hunter2")
    assert cipher.decode_result(legacy, SCHEME_OBFUSCATED) == DecodeResult("hunter2", DecodeOutcome.LEGACY)

    # A plain-tagged value is returned as-is even when it looks obfuscated
    assert cipher.decode_result(legacy, SCHEME_PLAIN) == DecodeResult(legacy, DecodeOutcome.PASSTHROUGH)

def test_tagged_cipher_that_fails_passes_through(cipher, caplog):
    with caplog.at_level(logging.WARNING, logger="vamanager.security.credentials"):
        result = cipher.decode_result("hunter2", SCHEME_AESGCM)
    assert result == DecodeResult("hunter2", DecodeOutcome.PASSTHROUGH)

    [warning] = caplog.records
    assert warning.levelno == logging.WARNING
    assert warning.password_scheme == SCHEME_AESGCM
    assert "hunter2" not in warning.getMessage()

def test_unknown_scheme_falls_back_to_shape(cipher):
    assert cipher.decode_result(obfuscate("hunter2"), "rot13").plaintext == "hunter2"

def test_classify(cipher):
    assert classify(cipher.encode("hunter2")) == SCHEME_AESGCM
    assert classify(obfuscate("Tom2024!Secure")) == SCHEME_OBFUSCATED
    assert classify("hunter2") == SCHEME_PLAIN
    assert classify("") == SCHEME_PLAIN
    assert classify(None) == SCHEME_PLAIN

def test_password_field_helpers(cipher):
    row = {"username": "alice", "password": "hunter2"}
    sealed = cipher.encrypt_password_fields(row)
    assert sealed["username"] == "alice"
    assert sealed["password"] != "hunter2"
    assert row["password"] == "hunter2"

    opened = cipher.decrypt_password_fields(sealed)
    assert opened == row

    empty = cipher.encrypt_password_fields({"password": ""})
    assert empty == {"password": ""}

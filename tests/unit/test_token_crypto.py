from innerview.utils.token_crypto import (
    generate_hex_secret,
    hash_password,
    password_needs_rehash,
    sign_payload,
    verify_password,
    verify_signature,
)


def test_hash_and_verify_password_argon2():
    h = hash_password("correct horse")
    assert h.startswith("$argon2id$")
    assert verify_password("correct horse", h) is True
    assert verify_password("wrong", h) is False
    assert password_needs_rehash(h) is False


def test_verify_password_tolerates_garbage():
    assert verify_password("x", "not-a-hash") is False
    assert verify_password("", "$argon2id$whatever") is False


def test_generate_hex_secret_length_and_uniqueness():
    a = generate_hex_secret(32)
    b = generate_hex_secret(32)
    assert len(a) == 64
    assert a != b
    assert len(generate_hex_secret(16)) == 32


def test_sign_and_verify_signature():
    body = b'{"event":"student.created"}'
    sig = sign_payload("s3cret", body)
    # Known HMAC-SHA256 hex digests are 64 chars
    assert len(sig) == 64
    assert verify_signature("s3cret", body, sig) is True
    assert verify_signature("s3cret", body, sig.upper()) is True
    assert verify_signature("other", body, sig) is False
    assert verify_signature("s3cret", body + b" ", sig) is False
    assert verify_signature("s3cret", body, "") is False

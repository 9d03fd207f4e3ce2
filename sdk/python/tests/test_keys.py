import pytest
from nacl.signing import SigningKey

from swarmauth import (
    InvalidKeyLength,
    InvalidSeedLength,
    KeyMaterial,
    KeyType,
    PublicKeyHandle,
    SigningConfig,
    derive_public_key_x25519,
    generate,
    sign,
    verify,
)
from swarmauth.canonical import build_message
from swarmauth.signer import decode_signature, sign_b64

OWNER_SEED_HEX = "610987A8DFB79BCFE635A14CFA1F22D9D4BF2A28A9A707D19CF2FFC03AA59F16"


def test_generate_from_seed_is_deterministic():
    seed = bytes.fromhex(OWNER_SEED_HEX)
    a = generate(seed)
    b = generate(seed)
    assert a == b
    assert len(a.public_key) == 32
    assert len(a.secret_key) == 64
    assert a.seed == seed
    assert a.secret_key[32:] == a.public_key
    assert a.public_key == bytes(SigningKey(seed).verify_key)


def test_generate_without_seed_is_random():
    assert generate().public_key != generate().public_key


def test_generate_rejects_bad_seed_lengths():
    for bad in (b"", bytes(31), bytes(33), bytes(64)):
        with pytest.raises(InvalidSeedLength):
            generate(bad)
    with pytest.raises(ValueError):
        generate(bytes(16))


def test_x25519_derivation_matches_libsodium():
    sk = SigningKey(bytes([3] * 32))
    expected = bytes(sk.to_curve25519_private_key().public_key)
    assert derive_public_key_x25519(bytes(sk.verify_key)) == expected
    assert derive_public_key_x25519(bytes(sk.verify_key)) == expected


def test_x25519_derivation_rejects_bad_length():
    with pytest.raises(InvalidKeyLength):
        derive_public_key_x25519(bytes(31))


def test_sign_is_deterministic_and_verifies():
    km = KeyMaterial.from_seed_hex(OWNER_SEED_HEX)
    msg = build_message("store", namespace=0, timestamp=1753933969153)
    assert msg == b"store1753933969153"
    s1 = sign(km.key_pair.secret_key, msg)
    s2 = sign(km.key_pair.secret_key, msg)
    assert s1 == s2
    assert len(s1) == 64
    assert verify(km.public_key, msg, s1)
    assert sign(km.key_pair.seed, msg) == s1


def test_verify_rejects_tampering():
    km = KeyMaterial.generate(bytes([5] * 32))
    sig = sign(km.key_pair.secret_key, b"retrieve1700000000000")
    assert not verify(km.public_key, b"retrieve1700000000001", sig)
    assert not verify(KeyMaterial.generate(bytes([6] * 32)).public_key, b"retrieve1700000000000", sig)
    assert not verify(km.public_key, b"retrieve1700000000000", sig[:63])
    assert not verify(km.public_key, b"retrieve1700000000000", "not base64!")


def test_sign_b64_roundtrip():
    km = KeyMaterial.generate(bytes([8] * 32))
    sig_b64 = sign_b64(km.key_pair.secret_key, "delete_all1700000000000")
    assert len(decode_signature(sig_b64)) == 64
    assert verify(km.public_key, b"delete_all1700000000000", sig_b64)
    with pytest.raises(ValueError):
        decode_signature("AAAA")


def test_handle_default_prefix():
    km = KeyMaterial.generate(bytes([1] * 32))
    h = km.handle(SigningConfig())
    assert h.hex() == "00" + km.public_key.hex()
    assert len(h.hex()) == 66
    assert h.pubkey_ed25519_hex is None


def test_handle_session_mode_uses_x25519():
    km = KeyMaterial.generate(bytes([1] * 32))
    h = km.handle(SigningConfig.session())
    assert h.key_type == KeyType.X25519
    assert h.hex() == "05" + km.x25519_public_key.hex()
    assert h.pubkey_ed25519_hex == km.public_key.hex()
    assert len(h.pubkey_ed25519_hex) == 64


def test_handle_parse():
    km = KeyMaterial.generate(bytes([2] * 32))
    h = PublicKeyHandle.parse("05" + km.public_key.hex())
    assert h.prefix == 5
    assert h.key == km.public_key
    with pytest.raises(InvalidKeyLength):
        PublicKeyHandle.parse(km.public_key.hex())
    with pytest.raises(ValueError):
        PublicKeyHandle.parse("zz" * 33)


def test_x25519_handle_requires_ed25519_key():
    with pytest.raises(ValueError):
        PublicKeyHandle(prefix=5, key=bytes(32), key_type=KeyType.X25519)


def test_session_config_requires_session_prefix():
    with pytest.raises(ValueError):
        SigningConfig(network_prefix=0, session_id=True)
    with pytest.raises(ValueError):
        SigningConfig(network_prefix=256)
    assert SigningConfig.session().network_prefix == 5


def test_repr_hides_secret():
    km = KeyMaterial.generate(bytes([4] * 32))
    assert km.key_pair.secret_key[:32].hex() not in repr(km)
    assert km.key_pair.secret_key[:32].hex() not in repr(km.key_pair)

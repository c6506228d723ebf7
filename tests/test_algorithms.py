import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from rekortiles.algorithms import (
    ALLOWED_CLIENT_SIGNING_ALGORITHMS,
    AlgorithmRegistryConfig,
    HashAlgorithm,
    PublicKeyDetails,
    UnsupportedAlgorithm,
    algorithm_registry,
    check_entry_algorithms,
    default_key_algorithms,
    format_signature_algorithm_flag,
    parse_signature_algorithm_flag,
)


@pytest.fixture(scope="module")
def keys():
    return {
        "rsa2048": rsa.generate_private_key(65537, 2048).public_key(),
        "rsa4096": rsa.generate_private_key(65537, 4096).public_key(),
        "p256": ec.generate_private_key(ec.SECP256R1()).public_key(),
        "p384": ec.generate_private_key(ec.SECP384R1()).public_key(),
        "ed25519": ed25519.Ed25519PrivateKey.generate().public_key(),
    }


def test_registry_defaults():
    registry = algorithm_registry(None)
    assert registry.algorithms == ALLOWED_CLIENT_SIGNING_ALGORITHMS


def test_registry_valid_algorithms():
    registry = algorithm_registry(
        [
            "ecdsa-sha2-384-nistp384",
            "ecdsa-sha2-512-nistp521",
            "ed25519",
            "rsa-sign-pkcs1-3072-sha256",
            "rsa-sign-pkcs1-4096-sha256",
        ]
    )
    assert registry.algorithms == (
        PublicKeyDetails.PKIX_ECDSA_P384_SHA_384,
        PublicKeyDetails.PKIX_ECDSA_P521_SHA_512,
        PublicKeyDetails.PKIX_ED25519,
        PublicKeyDetails.PKIX_RSA_PKCS1V15_3072_SHA256,
        PublicKeyDetails.PKIX_RSA_PKCS1V15_4096_SHA256,
    )


def test_registry_invalid_algorithms():
    with pytest.raises(ValueError, match="parsing signature algorithm flag"):
        algorithm_registry(["foo", "bar"])


@pytest.mark.parametrize(
    "key_name, alg, want",
    [
        ("rsa2048", HashAlgorithm.SHA256,
         "unsupported entry algorithm for RSA key, size 2048, digest SHA-256"),
        ("rsa4096", HashAlgorithm.SHA512,
         "unsupported entry algorithm for RSA key, size 4096, digest SHA-512"),
        ("p256", HashAlgorithm.SHA256,
         "unsupported entry algorithm for ECDSA key, curve P-256, digest SHA-256"),
        ("p384", HashAlgorithm.SHA384,
         "unsupported entry algorithm for ECDSA key, curve P-384, digest SHA-384"),
        ("ed25519", HashAlgorithm.SHA256,
         "unsupported entry algorithm for Ed25519 key, digest SHA-256"),
        ("rsa2048", 0,
         "unsupported entry algorithm for RSA key, size 2048, digest unknown hash value 0"),
    ],
)
def test_unsupported_algorithm_message(keys, key_name, alg, want):
    assert str(UnsupportedAlgorithm(keys[key_name], alg)) == want


def test_unsupported_algorithm_nil_key():
    err = UnsupportedAlgorithm(None, HashAlgorithm.SHA256)
    assert str(err) == "unsupported key type NoneType, digest SHA-256"


def test_unsupported_algorithm_unknown_key_type():
    err = UnsupportedAlgorithm(1, HashAlgorithm.SHA256)
    assert str(err) == "unsupported key type int, digest SHA-256"


def test_unsupported_algorithm_for_all_allowed(keys):
    by_type = {"RSA": keys["rsa2048"], "ECDSA": keys["p256"], "ED25519": keys["ed25519"]}
    for details in ALLOWED_CLIENT_SIGNING_ALGORITHMS:
        err = UnsupportedAlgorithm(by_type[details.key_type], details.hash_algorithm)
        assert "unsupported key type" not in str(err), details


def test_unsupported_algorithm_carries_fields(keys):
    err = UnsupportedAlgorithm(keys["ed25519"], HashAlgorithm.SHA512)
    assert err.hash_algorithm is HashAlgorithm.SHA512
    assert str(err) == "unsupported entry algorithm for Ed25519 key, digest SHA-512"


def test_flag_round_trip():
    for details in PublicKeyDetails:
        assert parse_signature_algorithm_flag(format_signature_algorithm_flag(details)) is details


def test_parse_unknown_flag():
    with pytest.raises(ValueError):
        parse_signature_algorithm_flag("foo")


def test_format_unknown_details():
    with pytest.raises(ValueError):
        format_signature_algorithm_flag("ed25519")


def test_default_key_algorithms():
    assert default_key_algorithms() == [
        "ecdsa-sha2-256-nistp256",
        "ecdsa-sha2-384-nistp384",
        "ecdsa-sha2-512-nistp521",
        "ed25519",
        "ed25519-ph",
        "rsa-sign-pkcs1-2048-sha256",
        "rsa-sign-pkcs1-3072-sha256",
        "rsa-sign-pkcs1-4096-sha256",
    ]


def test_ecdsa_permitted(keys):
    registry = algorithm_registry(["ecdsa-sha2-256-nistp256"])
    assert check_entry_algorithms(keys["p256"], HashAlgorithm.SHA256, registry) is True
    assert check_entry_algorithms(keys["p384"], HashAlgorithm.SHA256, registry) is False
    assert check_entry_algorithms(keys["p256"], HashAlgorithm.SHA384, registry) is False


def test_rsa_size_must_match(keys):
    registry = algorithm_registry(["rsa-sign-pkcs1-4096-sha256"])
    assert check_entry_algorithms(keys["rsa4096"], HashAlgorithm.SHA256, registry) is True
    assert check_entry_algorithms(keys["rsa2048"], HashAlgorithm.SHA256, registry) is False
    assert check_entry_algorithms(keys["p256"], HashAlgorithm.SHA256, registry) is False


def test_ed25519_variants(keys):
    pure = algorithm_registry(["ed25519"])
    prehashed = algorithm_registry(["ed25519-ph"])
    assert pure.is_algorithm_permitted(keys["ed25519"], None) is True
    assert pure.is_algorithm_permitted(keys["ed25519"], HashAlgorithm.SHA512) is False
    assert prehashed.is_algorithm_permitted(keys["ed25519"], HashAlgorithm.SHA512) is True


def test_unknown_key_not_permitted():
    registry = algorithm_registry(None)
    assert registry.is_algorithm_permitted(1, HashAlgorithm.SHA256) is False


def test_empty_registry_permits_nothing(keys):
    registry = AlgorithmRegistryConfig([])
    assert registry.algorithms == ()
    assert registry.is_algorithm_permitted(keys["p256"], HashAlgorithm.SHA256) is False
"""Signing algorithms that clients may use for log entries."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa


class HashAlgorithm(enum.Enum):
    """Message digest algorithms known to the registry."""

    SHA256 = "SHA-256"
    SHA384 = "SHA-384"
    SHA512 = "SHA-512"

    def __str__(self) -> str:
        return self.value


class PublicKeyDetails(enum.Enum):
    """Public key and signature scheme combinations, numbered as in the wire format."""

    PKIX_ECDSA_P256_SHA_256 = 5
    PKIX_ED25519 = 7
    PKIX_ED25519_PH = 8
    PKIX_RSA_PKCS1V15_2048_SHA256 = 9
    PKIX_RSA_PKCS1V15_3072_SHA256 = 10
    PKIX_RSA_PKCS1V15_4096_SHA256 = 11
    PKIX_ECDSA_P384_SHA_384 = 12
    PKIX_ECDSA_P521_SHA_512 = 13

    @property
    def key_type(self) -> str:
        """The key family: "RSA", "ECDSA" or "ED25519"."""
        return _DETAILS[self].key_type

    @property
    def hash_algorithm(self) -> HashAlgorithm | None:
        """The digest signed over, or None for pure Ed25519."""
        return _DETAILS[self].hash_algorithm


@dataclass(frozen=True)
class _AlgorithmDetails:
    key_type: str
    hash_algorithm: HashAlgorithm | None
    flag: str
    rsa_bits: int | None = None
    curve: type[ec.EllipticCurve] | None = None

    def matches_key(self, public_key: object) -> bool:
        if self.key_type == "RSA":
            return (
                isinstance(public_key, rsa.RSAPublicKey)
                and _rsa_bits(public_key) == self.rsa_bits
            )
        if self.key_type == "ECDSA":
            return isinstance(public_key, ec.EllipticCurvePublicKey) and isinstance(
                public_key.curve, self.curve
            )
        return isinstance(public_key, ed25519.Ed25519PublicKey)


_DETAILS: dict[PublicKeyDetails, _AlgorithmDetails] = {
    PublicKeyDetails.PKIX_RSA_PKCS1V15_2048_SHA256: _AlgorithmDetails(
        "RSA", HashAlgorithm.SHA256, "rsa-sign-pkcs1-2048-sha256", rsa_bits=2048
    ),
    PublicKeyDetails.PKIX_RSA_PKCS1V15_3072_SHA256: _AlgorithmDetails(
        "RSA", HashAlgorithm.SHA256, "rsa-sign-pkcs1-3072-sha256", rsa_bits=3072
    ),
    PublicKeyDetails.PKIX_RSA_PKCS1V15_4096_SHA256: _AlgorithmDetails(
        "RSA", HashAlgorithm.SHA256, "rsa-sign-pkcs1-4096-sha256", rsa_bits=4096
    ),
    PublicKeyDetails.PKIX_ECDSA_P256_SHA_256: _AlgorithmDetails(
        "ECDSA", HashAlgorithm.SHA256, "ecdsa-sha2-256-nistp256", curve=ec.SECP256R1
    ),
    PublicKeyDetails.PKIX_ECDSA_P384_SHA_384: _AlgorithmDetails(
        "ECDSA", HashAlgorithm.SHA384, "ecdsa-sha2-384-nistp384", curve=ec.SECP384R1
    ),
    PublicKeyDetails.PKIX_ECDSA_P521_SHA_512: _AlgorithmDetails(
        "ECDSA", HashAlgorithm.SHA512, "ecdsa-sha2-512-nistp521", curve=ec.SECP521R1
    ),
    PublicKeyDetails.PKIX_ED25519: _AlgorithmDetails("ED25519", None, "ed25519"),
    PublicKeyDetails.PKIX_ED25519_PH: _AlgorithmDetails(
        "ED25519", HashAlgorithm.SHA512, "ed25519-ph"
    ),
}

_FLAGS: dict[str, PublicKeyDetails] = {d.flag: k for k, d in _DETAILS.items()}

ALLOWED_CLIENT_SIGNING_ALGORITHMS: tuple[PublicKeyDetails, ...] = (
    PublicKeyDetails.PKIX_RSA_PKCS1V15_2048_SHA256,
    PublicKeyDetails.PKIX_RSA_PKCS1V15_3072_SHA256,
    PublicKeyDetails.PKIX_RSA_PKCS1V15_4096_SHA256,
    PublicKeyDetails.PKIX_ECDSA_P256_SHA_256,
    PublicKeyDetails.PKIX_ECDSA_P384_SHA_384,
    PublicKeyDetails.PKIX_ECDSA_P521_SHA_512,
    PublicKeyDetails.PKIX_ED25519,
    PublicKeyDetails.PKIX_ED25519_PH,
)

_CURVE_NAMES = {"secp256r1": "P-256", "secp384r1": "P-384", "secp521r1": "P-521"}


def _rsa_bits(key: rsa.RSAPublicKey) -> int:
    return (key.key_size + 7) // 8 * 8


def _hash_label(hash_algorithm: object) -> str:
    if isinstance(hash_algorithm, HashAlgorithm):
        return str(hash_algorithm)
    if hash_algorithm is None:
        return "unknown hash value 0"
    return f"unknown hash value {hash_algorithm}"


class UnsupportedAlgorithm(Exception):
    """A public key and digest combination the registry does not allow."""

    def __init__(self, public_key: object, hash_algorithm: object) -> None:
        super().__init__(public_key, hash_algorithm)
        self.public_key = public_key
        self.hash_algorithm = hash_algorithm

    def __str__(self) -> str:
        digest = _hash_label(self.hash_algorithm)
        key = self.public_key
        if isinstance(key, rsa.RSAPublicKey):
            return (
                f"unsupported entry algorithm for RSA key, size {_rsa_bits(key)}, "
                f"digest {digest}"
            )
        if isinstance(key, ec.EllipticCurvePublicKey):
            name = _CURVE_NAMES.get(key.curve.name, key.curve.name)
            return f"unsupported entry algorithm for ECDSA key, curve {name}, digest {digest}"
        if isinstance(key, ed25519.Ed25519PublicKey):
            return f"unsupported entry algorithm for Ed25519 key, digest {digest}"
        return f"unsupported key type {type(key).__name__}, digest {digest}"


@dataclass(frozen=True)
class AlgorithmRegistryConfig:
    """The set of signing algorithms a log accepts."""

    algorithms: tuple[PublicKeyDetails, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "algorithms", tuple(self.algorithms))

    def is_algorithm_permitted(self, public_key: object, hash_algorithm: object) -> bool:
        """Report whether the key and digest match any permitted algorithm."""
        return any(
            _DETAILS[algorithm].matches_key(public_key)
            and _DETAILS[algorithm].hash_algorithm == hash_algorithm
            for algorithm in self.algorithms
        )


def parse_signature_algorithm_flag(flag: str) -> PublicKeyDetails:
    """Turn a command-line algorithm name into its key details."""
    try:
        return _FLAGS[flag]
    except KeyError:
        raise ValueError(f"unsupported signature algorithm: {flag}") from None


def format_signature_algorithm_flag(details: PublicKeyDetails) -> str:
    """Turn key details into their command-line algorithm name."""
    if not isinstance(details, PublicKeyDetails):
        raise ValueError(f"unsupported public key details: {details!r}")
    return _DETAILS[details].flag


def algorithm_registry(algorithm_options: Iterable[str] | None = None) -> AlgorithmRegistryConfig:
    """Build a registry from algorithm names, or the default set when None."""
    if algorithm_options is None:
        return AlgorithmRegistryConfig(ALLOWED_CLIENT_SIGNING_ALGORITHMS)
    algorithms = []
    for option in algorithm_options:
        try:
            algorithms.append(parse_signature_algorithm_flag(option))
        except ValueError as exc:
            raise ValueError(f"parsing signature algorithm flag: {exc}") from exc
    return AlgorithmRegistryConfig(tuple(algorithms))


def check_entry_algorithms(
    public_key: object, hash_algorithm: object, registry: AlgorithmRegistryConfig
) -> bool:
    """Report whether the key and digest are allowed by the registry."""
    return registry.is_algorithm_permitted(public_key, hash_algorithm)


def default_key_algorithms() -> list[str]:
    """The names of the default algorithms, sorted."""
    return sorted(format_signature_algorithm_flag(a) for a in ALLOWED_CLIENT_SIGNING_ALGORITHMS)
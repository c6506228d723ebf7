"""Signed notes, and note signers built from ordinary signing keys.

A signed note is a UTF-8 text ending in a newline, followed by a blank line
and one signature line per signer of the form "— <name> <base64>", where the
base64 data is a 4-byte big-endian key hash followed by the signature.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

from .algorithms import HashAlgorithm

_ALG_ED25519 = 1
_ALG_UNDEF = 255
_RSA_ID = b"PKIX-RSA-PKCS#1v1.5"
_MAX_SIGNATURES = 100

SIGNATURE_PREFIX = "— "
"""The text that starts every signature line of a note."""

_HASHES = {
    HashAlgorithm.SHA256: hashes.SHA256,
    HashAlgorithm.SHA384: hashes.SHA384,
    HashAlgorithm.SHA512: hashes.SHA512,
}


class NoteError(Exception):
    """A note that is malformed or carries a bad signature."""


class UnverifiedNoteError(NoteError):
    """A well-formed note with no signature from a known verifier."""

    def __init__(self, note: Note) -> None:
        super().__init__("note has no verifiable signatures")
        self.note = note


@dataclass(frozen=True)
class NoteSignature:
    """One signature line of a note."""

    name: str
    key_hash: int
    signature_b64: str


@dataclass
class Note:
    """The text of a note with its verified and unverified signatures."""

    text: str
    sigs: list[NoteSignature] = field(default_factory=list)
    unverified_sigs: list[NoteSignature] = field(default_factory=list)


class _MessageSigner(Protocol):
    def public_key(self) -> object: ...

    def sign_message(self, message: bytes) -> bytes: ...


class _MessageVerifier(Protocol):
    def public_key(self) -> object: ...

    def verify_signature(self, signature: bytes, message: bytes) -> None: ...


class NoteSigner:
    """Signs note text under a name and key hash."""

    def __init__(self, name: str, key_hash: int, sign_fn: Callable[[bytes], bytes]) -> None:
        self.name = name
        self.key_hash = key_hash
        self._sign = sign_fn

    def sign(self, message: bytes) -> bytes:
        """Return a signature over the message."""
        return self._sign(message)


class NoteVerifier:
    """Checks note signatures made under a name and key hash."""

    def __init__(
        self, name: str, key_hash: int, verify_fn: Callable[[bytes, bytes], bool]
    ) -> None:
        self.name = name
        self.key_hash = key_hash
        self._verify = verify_fn

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Report whether the signature over the message is valid."""
        return self._verify(message, signature)


def _hash_for(hash_algorithm: HashAlgorithm) -> hashes.HashAlgorithm:
    try:
        return _HASHES[hash_algorithm]()
    except KeyError:
        raise ValueError(f"unsupported hash algorithm: {hash_algorithm!r}") from None


@dataclass(frozen=True)
class PrivateKeySigner:
    """Signs messages with an RSA, ECDSA or Ed25519 private key."""

    private_key: object
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256

    def public_key(self) -> object:
        return self.private_key.public_key()

    def sign_message(self, message: bytes) -> bytes:
        key = self.private_key
        if isinstance(key, ed25519.Ed25519PrivateKey):
            return key.sign(message)
        if isinstance(key, ec.EllipticCurvePrivateKey):
            return key.sign(message, ec.ECDSA(_hash_for(self.hash_algorithm)))
        if isinstance(key, rsa.RSAPrivateKey):
            return key.sign(message, padding.PKCS1v15(), _hash_for(self.hash_algorithm))
        raise TypeError(f"unsupported key type: {type(key).__name__}")


@dataclass(frozen=True)
class PublicKeyVerifier:
    """Verifies message signatures with an RSA, ECDSA or Ed25519 public key."""

    key: object
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256

    def public_key(self) -> object:
        return self.key

    def verify_signature(self, signature: bytes, message: bytes) -> None:
        """Raise InvalidSignature unless the signature over the message is valid."""
        key = self.key
        if isinstance(key, ed25519.Ed25519PublicKey):
            key.verify(signature, message)
        elif isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(signature, message, ec.ECDSA(_hash_for(self.hash_algorithm)))
        elif isinstance(key, rsa.RSAPublicKey):
            key.verify(signature, message, padding.PKCS1v15(), _hash_for(self.hash_algorithm))
        else:
            raise TypeError(f"unsupported key type: {type(key).__name__}")


def is_valid_name(name: object) -> bool:
    """Report whether a name may be used as a note signer or checkpoint origin."""
    if not isinstance(name, str) or not name:
        return False
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return not any(c.isspace() for c in name) and "+" not in name


def _pkix(public_key: object) -> bytes:
    return public_key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )


def _conformant_key_hash(name: str, sig_type: bytes, key: bytes) -> bytes:
    return hashlib.sha256(name.encode("utf-8") + b"\n" + sig_type + key).digest()


def key_hash(origin: str, public_key: object) -> int:
    """Return the 4-byte identifier of a public key under an origin.

    ECDSA key hashes cover only the key; the other types also cover the origin.
    """
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        digest = hashlib.sha256(_pkix(public_key)).digest()
    elif isinstance(public_key, ed25519.Ed25519PublicKey):
        raw = public_key.public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
        digest = _conformant_key_hash(origin, bytes([_ALG_ED25519]), raw)
    elif isinstance(public_key, rsa.RSAPublicKey):
        digest = _conformant_key_hash(origin, bytes([_ALG_UNDEF]) + _RSA_ID, _pkix(public_key))
    else:
        raise TypeError(f"unsupported key type: {type(public_key).__name__}")
    return int.from_bytes(digest[:4], "big")


def new_note_signer(origin: str, signer: _MessageSigner) -> NoteSigner:
    """Make a note signer from a message signer."""
    if not is_valid_name(origin):
        raise ValueError(f"invalid name {origin}")
    keyid = key_hash(origin, signer.public_key())
    return NoteSigner(origin, keyid, signer.sign_message)


def new_note_verifier(origin: str, verifier: _MessageVerifier) -> NoteVerifier:
    """Make a note verifier from a message verifier."""
    if not is_valid_name(origin):
        raise ValueError(f"invalid name {origin}")
    keyid = key_hash(origin, verifier.public_key())

    def verify(message: bytes, signature: bytes) -> bool:
        try:
            verifier.verify_signature(signature, message)
        except (InvalidSignature, ValueError, TypeError):
            return False
        return True

    return NoteVerifier(origin, keyid, verify)


def _decode_b64(encoded: str) -> bytes | None:
    try:
        return base64.b64decode(encoded, validate=True)
    except ValueError:
        return None


def _signature_line(name: str, encoded: str) -> str:
    return f"{SIGNATURE_PREFIX}{name} {encoded}\n"


def sign_note(note: Note, *args: NoteSigner) -> bytes:
    """Sign the note text with every signer given, keeping its existing signatures."""
    if not note.text.endswith("\n"):
        raise NoteError("malformed note")
    text = note.text.encode("utf-8")
    lines: list[str] = []
    seen: set[tuple[str, int]] = set()
    for signer in args:
        ident = (signer.name, signer.key_hash)
        if ident in seen:
            raise NoteError(f"duplicate signer {signer.name}+{signer.key_hash:08x}")
        seen.add(ident)
        if not is_valid_name(signer.name):
            raise NoteError("invalid signer")
        signature = signer.sign(text)
        encoded = base64.b64encode(signer.key_hash.to_bytes(4, "big") + signature)
        lines.append(_signature_line(signer.name, encoded.decode("ascii")))
    for existing in note.sigs:
        if not is_valid_name(existing.name):
            raise NoteError("invalid signer")
        ident = (existing.name, existing.key_hash)
        if ident in seen:
            continue
        seen.add(ident)
        raw = _decode_b64(existing.signature_b64)
        if raw is None or len(raw) < 4 or int.from_bytes(raw[:4], "big") != existing.key_hash:
            raise NoteError("malformed note")
        lines.append(_signature_line(existing.name, existing.signature_b64))
    return text + b"\n" + "".join(lines).encode("utf-8")


def open_note(message: bytes | str, verifiers: Iterable[NoteVerifier]) -> Note:
    """Parse a signed note and check its signatures against the known verifiers.

    Raises UnverifiedNoteError when no signature is from a known verifier.
    """
    if isinstance(message, (bytes, bytearray)):
        try:
            msg = bytes(message).decode("utf-8")
        except UnicodeDecodeError:
            raise NoteError("malformed note") from None
    else:
        msg = message
    if any(c < " " and c != "\n" for c in msg):
        raise NoteError("malformed note")
    split = msg.rfind("\n\n")
    if split < 0:
        raise NoteError("malformed note")
    text, block = msg[: split + 1], msg[split + 2 :]
    if not block.endswith("\n"):
        raise NoteError("malformed note")

    known: dict[tuple[str, int], list[NoteVerifier]] = {}
    for verifier in verifiers:
        known.setdefault((verifier.name, verifier.key_hash), []).append(verifier)

    note = Note(text)
    text_bytes = text.encode("utf-8")
    seen: set[tuple[str, int]] = set()
    seen_unverified: set[str] = set()
    for count, line in enumerate(block[:-1].split("\n"), start=1):
        if not line.startswith(SIGNATURE_PREFIX):
            raise NoteError("malformed note")
        line = line[len(SIGNATURE_PREFIX) :]
        name, _, encoded = line.partition(" ")
        raw = _decode_b64(encoded)
        if raw is None or not is_valid_name(name) or not encoded or len(raw) < 5:
            raise NoteError("malformed note")
        keyid = int.from_bytes(raw[:4], "big")
        signature = raw[4:]
        if count > _MAX_SIGNATURES:
            raise NoteError("malformed note")
        candidates = known.get((name, keyid))
        if not candidates:
            if line not in seen_unverified:
                seen_unverified.add(line)
                note.unverified_sigs.append(NoteSignature(name, keyid, encoded))
            continue
        if len(candidates) > 1:
            raise NoteError(f"ambiguous key {name}+{keyid:08x}")
        if (name, keyid) in seen:
            continue
        seen.add((name, keyid))
        if not candidates[0].verify(text_bytes, signature):
            raise NoteError(f"invalid signature for key {name}+{keyid:08x}")
        note.sigs.append(NoteSignature(name, keyid, encoded))
    if not note.sigs:
        raise UnverifiedNoteError(note)
    return note
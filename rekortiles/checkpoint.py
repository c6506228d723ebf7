"""Log checkpoints, and freezing a log by marking its final checkpoint."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .algorithms import HashAlgorithm
from .note import Note, NoteError, NoteSigner, NoteVerifier, open_note, sign_note

FROZEN_STRING = "Log frozen — "
"""Start of the extension line that marks a checkpoint as final."""

_MAX_SIZE = 2**64
_SIZE_RE = re.compile(r"[0-9]+")
_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_KMS_HASHES = {
    "sha256": HashAlgorithm.SHA256,
    "sha384": HashAlgorithm.SHA384,
    "sha512": HashAlgorithm.SHA512,
}


class CheckpointError(Exception):
    """A checkpoint that cannot be read, parsed or signed."""


@dataclass(frozen=True)
class Checkpoint:
    """The origin, tree size and root hash of a log."""

    origin: str
    size: int
    hash: bytes

    def marshal(self) -> str:
        """Return the checkpoint body: origin, size and hash, one per line."""
        encoded = base64.b64encode(self.hash).decode("ascii")
        return f"{self.origin}\n{self.size}\n{encoded}\n"


def parse_checkpoint(text: str) -> tuple[Checkpoint, str]:
    """Parse a checkpoint body, returning it and any extension lines after it."""
    parts = text.split("\n", 3)
    if len(parts) < 4:
        raise CheckpointError("invalid checkpoint - too few newlines")
    origin, size_text, hash_text, rest = parts
    if not origin:
        raise CheckpointError("invalid checkpoint - empty origin")
    if not _SIZE_RE.fullmatch(size_text) or int(size_text) >= _MAX_SIZE:
        raise CheckpointError(f"invalid checkpoint - size invalid: {size_text!r}")
    try:
        root_hash = base64.b64decode(hash_text, validate=True)
    except ValueError as exc:
        raise CheckpointError(f"invalid checkpoint - invalid hash: {exc}") from exc
    return Checkpoint(origin, int(size_text), root_hash), rest


def read_checkpoint(raw: bytes | str, verifier: NoteVerifier) -> Checkpoint | None:
    """Verify and parse a signed checkpoint; None if it is already frozen."""
    try:
        note = open_note(raw, [verifier])
    except NoteError as exc:
        raise CheckpointError(f"opening checkpoint: {exc}") from exc
    try:
        checkpoint, rest = parse_checkpoint(note.text)
    except CheckpointError as exc:
        raise CheckpointError(f"parsing checkpoint: {exc}") from exc
    if FROZEN_STRING in rest:
        return None
    return checkpoint


def _unix_date(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return (
        f"{_DAYS[moment.weekday()]} {_MONTHS[moment.month - 1]} {moment.day:2d} "
        f"{moment:%H:%M:%S} UTC {moment.year}"
    )


def freeze_checkpoint(
    checkpoint: Checkpoint, signer: NoteSigner, now: datetime | None = None
) -> bytes:
    """Add the frozen extension line to the checkpoint and sign it again."""
    if now is None:
        now = datetime.now(timezone.utc)
    text = checkpoint.marshal() + FROZEN_STRING + _unix_date(now) + "\n"
    try:
        return sign_note(Note(text), signer)
    except (NoteError, ValueError, TypeError) as exc:
        raise CheckpointError(f"re-signing checkpoint: {exc}") from exc


def hash_algorithm_for_kms(name: str) -> HashAlgorithm:
    """Map a KMS hash option such as "sha256" to its algorithm."""
    try:
        return _KMS_HASHES[name]
    except KeyError:
        raise ValueError(f"invalid hash algorithm for --signer-kmshash: {name}") from None
# rekortiles

Building blocks for working with a tile-based transparency log. Such a log
publishes signed checkpoints and stores its Merkle tree as static tiles.
This library lets you sign and verify checkpoints, decide which client
signing algorithms are allowed, and read tiles and entry bundles over HTTP.

## Installation

```
pip install .
```

Runtime requirements: Python 3.10 or later, `cryptography` and `requests`.
To install the test requirements (`pytest`, `responses`), use
`pip install .[test]`.

## Modules

### `rekortiles.algorithms`: signing-algorithm policy

- `HashAlgorithm` has the members `SHA256`, `SHA384` and `SHA512`.
- `PublicKeyDetails` lists the supported key and signature schemes. Each
  member has a `key_type` (`"RSA"`, `"ECDSA"` or `"ED25519"`) and a
  `hash_algorithm`. The `hash_algorithm` is `None` for pure Ed25519.
- `parse_signature_algorithm_flag` turns a flag name into a
  `PublicKeyDetails` member and raises `ValueError` for an unknown name.
  `format_signature_algorithm_flag` does the reverse. The flag names are:
  - `rsa-sign-pkcs1-2048-sha256`
  - `rsa-sign-pkcs1-3072-sha256`
  - `rsa-sign-pkcs1-4096-sha256`
  - `ecdsa-sha2-256-nistp256`
  - `ecdsa-sha2-384-nistp384`
  - `ecdsa-sha2-512-nistp521`
  - `ed25519`
  - `ed25519-ph`
- `algorithm_registry(options)` builds an `AlgorithmRegistryConfig` from
  flag names. Passing `None` gives the default set
  (`ALLOWED_CLIENT_SIGNING_ALGORITHMS`). An unknown name raises `ValueError`.
- `AlgorithmRegistryConfig.is_algorithm_permitted(public_key, hash_algorithm)`
  and `check_entry_algorithms(public_key, hash_algorithm, registry)` report
  whether a `cryptography` public key and a digest algorithm match an
  allowed scheme. For RSA the key size must match, and for ECDSA the curve
  must match.
- `UnsupportedAlgorithm` is an exception. Its message describes the rejected
  key and digest, for example
  `unsupported entry algorithm for ECDSA key, curve P-256, digest SHA-256`.
- `default_key_algorithms()` returns the default flag names, sorted.

### `rekortiles.note`: signed notes

- A `Note` holds the note text together with its verified signatures
  (`sigs`) and unverified signatures (`unverified_sigs`), both as
  `NoteSignature` values.
- `sign_note(note, *signers)` returns the signed note as bytes. It keeps
  the signatures the note already has.
- `open_note(message, verifiers)` parses a signed note and checks its
  signatures. It raises `NoteError` if the note is malformed or a signature
  is bad. It raises `UnverifiedNoteError` if no signature comes from a
  known verifier.
- `new_note_signer(origin, signer)` and `new_note_verifier(origin, verifier)`
  build a `NoteSigner` or `NoteVerifier` from any object with
  `public_key()` and `sign_message()` / `verify_signature()`. The classes
  `PrivateKeySigner` and `PublicKeyVerifier` provide these methods for
  `cryptography` RSA (PKCS#1 v1.5), ECDSA and Ed25519 keys.
- `key_hash(origin, public_key)` computes the 4-byte key ID:
  - Ed25519 and RSA IDs cover both the origin and the key.
  - ECDSA IDs cover only the key.
- `is_valid_name(name)` checks an origin. A valid origin is non-empty and
  contains no whitespace and no `+`.

### `rekortiles.checkpoint`: checkpoints and freezing

- `Checkpoint(origin, size, hash)` represents a checkpoint.
  `Checkpoint.marshal()` writes its text body.
- `parse_checkpoint(text)` returns the checkpoint together with any
  extension lines that follow it.
- `read_checkpoint(raw, verifier)` verifies a signed checkpoint and parses
  it. It returns `None` when the checkpoint already carries the
  `Log frozen — ` extension line.
- `freeze_checkpoint(checkpoint, signer, now=None)` appends the line
  `Log frozen — <date>` and signs the checkpoint again. This marks it as
  the last checkpoint of the log.
- `hash_algorithm_for_kms(name)` maps `sha256`, `sha384` and `sha512` to a
  `HashAlgorithm`.
- Failures raise `CheckpointError`.

### `rekortiles.read_client`: reading the log

- `ReadClient(read_url, origin, verifier, config=None, session=None)`
  reads from a log's HTTP(S) read endpoint.
- `read_checkpoint()` fetches `checkpoint`, verifies its signature, checks
  that its origin matches, and returns `(Checkpoint, Note)`.
- `read_tile(level, index, p=0)` and `read_entry_bundle(index, p=0)`
  return the raw bytes. A non-zero `p` requests a partial tile of that
  width.
- `tile_path` and `entry_bundle_path` compute the layout paths, for
  example:
  - `tile_path(1, 123456)` is `tile/1/x123/456`
  - `entry_bundle_path(1, 2)` is `tile/entries/001.p/2`
- Fetch and verification failures raise `ReadError`. When an HTTP status
  code is available, it is in `ReadError.status_code`.

### `rekortiles.client_config` and `rekortiles.server_config`

- `ClientConfig(user_agent="", timeout=None)` holds the HTTP client
  settings. `timeout` is given in seconds.
- `user_agent_session(user_agent, session=None)` returns a `requests`
  session that sends the given User-Agent on every request.
- `GRPCConfig` and `HTTPConfig` are frozen settings records. Their
  defaults are:
  - host `localhost`
  - ports 8081 (gRPC), 8080 (HTTP) and 2112 (metrics)
  - a 60 second timeout
  - a 4 MiB size limit
  
  They provide `grpc_target()`, `http_target()`, `http_metrics_target()`
  and `has_tls()`. `has_tls()` is true only when both a certificate file
  and a key file are set.
- `split_full_method_name("/service/method")` returns
  `("service", "method")`. It returns `("unknown", "unknown")` when there
  is no separator.

## Example

```python
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from rekortiles.checkpoint import Checkpoint, freeze_checkpoint, read_checkpoint
from rekortiles.note import (
    Note, PrivateKeySigner, PublicKeyVerifier,
    new_note_signer, new_note_verifier, open_note, sign_note,
)

key = Ed25519PrivateKey.generate()
signer = new_note_signer("log.example.com", PrivateKeySigner(key))
verifier = new_note_verifier("log.example.com", PublicKeyVerifier(key.public_key()))

signed = sign_note(Note("log.example.com\n10\n" + "A" * 43 + "=\n"), signer)
print(read_checkpoint(signed, verifier))       # Checkpoint(origin='log.example.com', size=10, ...)

frozen = freeze_checkpoint(Checkpoint("log.example.com", 10, bytes(32)), signer)
print(read_checkpoint(frozen, verifier))       # None: the log is frozen
print(open_note(frozen, [verifier]).text)
```

## What this package does not do

This is a library only:

- It has no command-line programs.
- It does not run a log server. `GRPCConfig` and `HTTPConfig` only hold
  settings.
- It does not write entries to a log.
- It does not talk to any storage service. `freeze_checkpoint` returns the
  new signed checkpoint as bytes, and storing it is up to the caller.
- It does not load keys from files, KMS or keysets. You pass in
  `cryptography` key objects.
import pytest
import responses
from cryptography.hazmat.primitives.asymmetric import ed25519

from rekortiles.checkpoint import Checkpoint
from rekortiles.client_config import ClientConfig
from rekortiles.note import (
    Note,
    PrivateKeySigner,
    PublicKeyVerifier,
    new_note_signer,
    sign_note,
)
from rekortiles.read_client import (
    ReadClient,
    ReadError,
    entry_bundle_path,
    tile_path,
)

ORIGIN = "log.example.com"
BASE = "https://log.example.com/api/v2"


@pytest.fixture
def private_key():
    return ed25519.Ed25519PrivateKey.generate()


def _client(private_key, **kwargs):
    return ReadClient(BASE, ORIGIN, PublicKeyVerifier(private_key.public_key()), **kwargs)


def _signed_checkpoint(private_key, origin=ORIGIN):
    signer = new_note_signer(origin, PrivateKeySigner(private_key))
    cp = Checkpoint(origin, 42, bytes(range(32)))
    return cp, sign_note(Note(cp.marshal()), signer)


@pytest.mark.parametrize(
    "level,index,p,expected",
    [
        (1, 2, 0, "tile/1/002"),
        (1, 123456, 0, "tile/1/x123/456"),
        (1, 2, 3, "tile/1/002.p/3"),
        (1, 123, 45, "tile/1/123.p/45"),
        (1, 123456, 7, "tile/1/x123/456.p/7"),
    ],
)
def test_tile_path(level, index, p, expected):
    assert tile_path(level, index, p) == expected


@pytest.mark.parametrize(
    "index,p,expected",
    [
        (1, 0, "tile/entries/001"),
        (123456, 0, "tile/entries/x123/456"),
        (1, 2, "tile/entries/001.p/2"),
        (123, 45, "tile/entries/123.p/45"),
        (123456, 7, "tile/entries/x123/456.p/7"),
    ],
)
def test_entry_bundle_path(index, p, expected):
    assert entry_bundle_path(index, p) == expected


@pytest.mark.parametrize("p", [-1, 256])
def test_invalid_partial_width(p):
    with pytest.raises(ValueError):
        tile_path(0, 0, p)
    with pytest.raises(ValueError):
        entry_bundle_path(0, p)


def test_negative_index_rejected():
    with pytest.raises(ValueError):
        tile_path(0, -1)


def test_invalid_origin_rejected(private_key):
    with pytest.raises(ValueError):
        ReadClient(BASE, "bad origin", PublicKeyVerifier(private_key.public_key()))


def test_invalid_url_rejected(private_key):
    with pytest.raises(ValueError):
        ReadClient("not a url", ORIGIN, PublicKeyVerifier(private_key.public_key()))


def test_read_tile(private_key):
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/tile/1/x123/456.p/7", body=b"tile-data")
        assert client.read_tile(1, 123456, 7) == b"tile-data"


def test_read_entry_bundle(private_key):
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/tile/entries/001", body=b"entries")
        assert client.read_entry_bundle(1, 0) == b"entries"


def test_read_tile_not_found(private_key):
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/tile/0/000", status=404)
        with pytest.raises(ReadError) as info:
            client.read_tile(0, 0)
    assert info.value.status_code == 404


def test_read_entry_bundle_server_error(private_key):
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/tile/entries/000", status=500)
        with pytest.raises(ReadError, match="reading entry bundle"):
            client.read_entry_bundle(0)


def test_user_agent_is_sent(private_key):
    client = _client(private_key, config=ClientConfig(user_agent="rekor-reader/1.0"))
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/tile/0/000", body=b"x")
        assert client.read_tile(0, 0) == b"x"
        assert rsps.calls[0].request.headers["User-Agent"] == "rekor-reader/1.0"


def test_read_checkpoint_round_trip(private_key):
    cp, signed = _signed_checkpoint(private_key)
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/checkpoint", body=signed)
        got, note = client.read_checkpoint()
    assert got == cp
    assert note.text == cp.marshal()
    assert [s.name for s in note.sigs] == [ORIGIN]


def test_read_checkpoint_wrong_key(private_key):
    _, signed = _signed_checkpoint(ed25519.Ed25519PrivateKey.generate())
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/checkpoint", body=signed)
        with pytest.raises(ReadError, match="fetching checkpoint"):
            client.read_checkpoint()


def test_read_checkpoint_wrong_origin(private_key):
    signer = new_note_signer(ORIGIN, PrivateKeySigner(private_key))
    cp = Checkpoint("other.example.com", 1, bytes(32))
    signed = sign_note(Note(cp.marshal()), signer)
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/checkpoint", body=signed)
        with pytest.raises(ReadError, match="origin"):
            client.read_checkpoint()


def test_read_checkpoint_missing(private_key):
    client = _client(private_key)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/checkpoint", status=404)
        with pytest.raises(ReadError) as info:
            client.read_checkpoint()
    assert info.value.status_code == 404
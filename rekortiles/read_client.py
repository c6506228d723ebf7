"""A client that reads checkpoints, tiles and entry bundles from log storage."""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit

import requests

from .checkpoint import Checkpoint, CheckpointError, parse_checkpoint
from .client_config import ClientConfig, user_agent_session
from .note import Note, NoteError, new_note_verifier, open_note

CHECKPOINT_PATH = "checkpoint"
"""Path of the checkpoint object under the log's base URL."""

_MAX_LEVEL = 2**64
_MAX_WIDTH = 255


class ReadError(Exception):
    """A resource that could not be fetched or verified."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _check_index(name: str, value: int) -> None:
    if not isinstance(value, int) or value < 0 or value >= _MAX_LEVEL:
        raise ValueError(f"invalid {name}: {value!r}")


def _check_width(p: int) -> None:
    if not isinstance(p, int) or not 0 <= p <= _MAX_WIDTH:
        raise ValueError(f"invalid partial tile width: {p!r}")


def _format_index(index: int) -> str:
    groups = [f"{index % 1000:03d}"]
    index //= 1000
    while index > 0:
        groups.append(f"x{index % 1000:03d}")
        index //= 1000
    return "/".join(reversed(groups))


def _index_with_suffix(index: int, p: int) -> str:
    encoded = _format_index(index)
    if p > 0:
        encoded += f".p/{p}"
    return encoded


def tile_path(level: int, index: int, p: int = 0) -> str:
    """Return the storage path of a tile; p is the width of a partial tile, 0 if full."""
    _check_index("level", level)
    _check_index("index", index)
    _check_width(p)
    return f"tile/{level}/{_index_with_suffix(index, p)}"


def entry_bundle_path(index: int, p: int = 0) -> str:
    """Return the storage path of an entry bundle; p is its width if partial, 0 if full."""
    _check_index("index", index)
    _check_width(p)
    return f"tile/entries/{_index_with_suffix(index, p)}"


class ReadClient:
    """Reads and verifies data published by a tiled transparency log."""

    def __init__(
        self,
        read_url: str,
        origin: str,
        verifier: object,
        config: ClientConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        config = config or ClientConfig()
        try:
            parts = urlsplit(read_url)
            parts.port  # noqa: B018 - validates the port
        except ValueError as exc:
            raise ValueError(f"parsing url {read_url}: {exc}") from exc
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"parsing url {read_url}: unsupported URL")
        try:
            self._verifier = new_note_verifier(origin, verifier)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"creating note verifier: {exc}") from exc
        self.base_url = read_url if read_url.endswith("/") else read_url + "/"
        self.origin = origin
        self._timeout = config.timeout
        self._session = user_agent_session(config.user_agent, session)

    def _fetch(self, path: str) -> bytes:
        url = urljoin(self.base_url, path)
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ReadError(f"get({url}): {exc}") from exc
        if response.status_code == 404:
            raise ReadError(f"get({url}): not found", response.status_code)
        if response.status_code != 200:
            raise ReadError(
                f"get({url}): {response.status_code} {response.reason}",
                response.status_code,
            )
        return response.content

    def read_checkpoint(self) -> tuple[Checkpoint, Note]:
        """Fetch the current checkpoint, verify its signature and check its origin."""
        try:
            raw = self._fetch(CHECKPOINT_PATH)
            note = open_note(raw, [self._verifier])
            checkpoint, _ = parse_checkpoint(note.text)
        except (ReadError, NoteError, CheckpointError) as exc:
            status = exc.status_code if isinstance(exc, ReadError) else None
            raise ReadError(f"fetching checkpoint: {exc}", status) from exc
        if checkpoint.origin != self.origin:
            raise ReadError(
                f"fetching checkpoint: got origin {checkpoint.origin!r}, want {self.origin!r}"
            )
        return checkpoint, note

    def read_tile(self, level: int, index: int, p: int = 0) -> bytes:
        """Fetch the tile at the given level and index; p is the partial width, 0 if full."""
        path = tile_path(level, index, p)
        try:
            return self._fetch(path)
        except ReadError as exc:
            raise ReadError(f"reading tile: {exc}", exc.status_code) from exc

    def read_entry_bundle(self, index: int, p: int = 0) -> bytes:
        """Fetch the entry bundle at the given index; p is the partial width, 0 if full."""
        path = entry_bundle_path(index, p)
        try:
            return self._fetch(path)
        except ReadError as exc:
            raise ReadError(f"reading entry bundle: {exc}", exc.status_code) from exc
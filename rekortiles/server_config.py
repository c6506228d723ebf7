"""Settings for the gRPC server and its HTTP proxy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_MAX_SIZE = 4 * 1024 * 1024
"""Default maximum payload size in bytes for both servers."""

DEFAULT_TIMEOUT = timedelta(seconds=60)
"""Default connection and request timeout for both servers."""


@dataclass(frozen=True)
class GRPCConfig:
    """Options for the gRPC server."""

    port: int = 8081
    host: str = "localhost"
    timeout: timedelta = DEFAULT_TIMEOUT
    max_message_size: int = DEFAULT_MAX_SIZE
    cert_file: str = ""
    key_file: str = ""

    def grpc_target(self) -> str:
        return f"{self.host}:{self.port}"

    def has_tls(self) -> bool:
        return bool(self.cert_file) and bool(self.key_file)


@dataclass(frozen=True)
class HTTPConfig:
    """Options for the HTTP proxy and the metrics endpoint."""

    host: str = "localhost"
    timeout: timedelta = DEFAULT_TIMEOUT
    port: int = 8080
    metrics_port: int = 2112
    max_request_body_size: int = DEFAULT_MAX_SIZE
    cert_file: str = ""
    key_file: str = ""

    def http_target(self) -> str:
        return f"{self.host}:{self.port}"

    def http_metrics_target(self) -> str:
        return f"{self.host}:{self.metrics_port}"

    def has_tls(self) -> bool:
        return bool(self.cert_file) and bool(self.key_file)


def split_full_method_name(full_method: str) -> tuple[str, str]:
    """Split "/service/method" into its service and method names."""
    if full_method.startswith("/"):
        full_method = full_method[1:]
    service, sep, method = full_method.partition("/")
    if not sep:
        return "unknown", "unknown"
    return service, method
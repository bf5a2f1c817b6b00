"""Command line entry point and server loop of the auraed daemon."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import ssl
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from auraed.bundle import spawn_auraed_oci_to
from auraed.context import detect_context
from auraed.discovery import DiscoveryService
from auraed.oci import AuraeOCIBuilder
from auraed.runtimes import AURAE_RUNTIME_DIR, SocketKind, SocketStream, init_runtime
from auraed.shutdown import (
    CELL_SERVICE,
    DISCOVERY_SERVICE,
    GracefulShutdown,
    HealthReporter,
    ShutdownSubscription,
)

AURAE_BUNDLE = "/var/lib/aurae"
RUNTIME_SERVICE = "runtime.v1.RuntimeService"

DEFAULT_SERVER_CRT = "/etc/aurae/pki/_signed.server.crt"
DEFAULT_SERVER_KEY = "/etc/aurae/pki/server.key"
DEFAULT_CA_CRT = "/etc/aurae/pki/ca.crt"

EXIT_OKAY = 0
EXIT_ERROR = 1

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuraedOptions:
    """Command line options of the daemon."""

    server_crt: str = DEFAULT_SERVER_CRT
    server_key: str = DEFAULT_SERVER_KEY
    ca_crt: str = DEFAULT_CA_CRT
    socket: str | None = None
    runtime_dir: str = AURAE_RUNTIME_DIR
    bundle: str = AURAE_BUNDLE
    verbose: bool = False
    nested: bool = False
    subcmd: str | None = None
    output: str = "."


def parse_options(argv: list[str] | None = None) -> AuraedOptions:
    """Parse the command line; ``argv`` defaults to the process arguments."""
    parser = argparse.ArgumentParser(
        prog="auraed", description="Distributed systems runtime daemon."
    )
    parser.add_argument("--server-crt", default=DEFAULT_SERVER_CRT, help="the signed server certificate")
    parser.add_argument("--server-key", default=DEFAULT_SERVER_KEY, help="the secret server key")
    parser.add_argument("--ca-crt", default=DEFAULT_CA_CRT, help="the CA certificate")
    parser.add_argument(
        "-s",
        "--socket",
        default=None,
        help="socket address: a file path or a network address such as [::1]:8080",
    )
    parser.add_argument("-r", "--runtime-dir", default=AURAE_RUNTIME_DIR, help="runtime path")
    parser.add_argument("-b", "--bundle", default=AURAE_BUNDLE, help="bundle path")
    parser.add_argument("-v", "--verbose", "--ritz", action="store_true", help="toggle verbosity")
    parser.add_argument("--nested", action="store_true", help="run nested inside an aurae cell")
    subcommands = parser.add_subparsers(dest="subcmd")
    spawn = subcommands.add_parser("spawn", help="write an auraed OCI bundle")
    spawn.add_argument("-o", "--output", default=".", help="bundle output directory")

    namespace = parser.parse_args(argv)
    return AuraedOptions(
        server_crt=namespace.server_crt,
        server_key=namespace.server_key,
        ca_crt=namespace.ca_crt,
        socket=namespace.socket,
        runtime_dir=namespace.runtime_dir,
        bundle=namespace.bundle,
        verbose=namespace.verbose,
        nested=namespace.nested,
        subcmd=namespace.subcmd,
        output=getattr(namespace, "output", "."),
    )


@dataclass(frozen=True)
class AuraedRuntime:
    """File paths of the authentication material and runtime state of one daemon."""

    ca_crt: Path
    server_crt: Path
    server_key: Path
    runtime_dir: Path

    def tls_context(self) -> ssl.SSLContext:
        """Build the mutual-TLS server context from the configured files."""
        try:
            self.server_crt.read_bytes()
        except OSError as exc:
            raise OSError(
                "Aurae requires a signed TLS certificate to run as a server, "
                f"but failed to load: '{self.server_crt}'."
            ) from exc
        self.server_key.read_bytes()
        ca_pem = self.ca_crt.read_text(encoding="utf-8")

        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(certfile=self.server_crt, keyfile=self.server_key)
        logger.info("Register Server SSL Identity")
        context.load_verify_locations(cadata=ca_pem)
        context.verify_mode = ssl.CERT_REQUIRED
        return context

    async def run(self, socket_stream: SocketStream, shutdown: GracefulShutdown | None = None) -> None:
        """Serve on ``socket_stream`` until the shutdown completes."""
        logger.debug("%r", self)
        tls = self.tls_context()
        logger.info("Validating SSL Identity and Root Certificate Authority (CA)")

        try:
            self.runtime_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"Failed to create runtime directory: {self.runtime_dir}") from exc

        if shutdown is None:
            shutdown = GracefulShutdown(HealthReporter())
        health = shutdown.health_reporter
        for service in (CELL_SERVICE, DISCOVERY_SERVICE, RUNTIME_SERVICE):
            health.set_serving(service)

        subscription = shutdown.subscribe()
        await asyncio.gather(
            self._serve(socket_stream, tls, health, subscription),
            shutdown.wait(),
        )

    async def _serve(
        self,
        socket_stream: SocketStream,
        tls: ssl.SSLContext,
        health: HealthReporter,
        subscription: ShutdownSubscription,
    ) -> None:
        discovery = DiscoveryService()
        connections: set[asyncio.StreamWriter] = set()

        async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            connections.add(writer)
            try:
                await _answer(reader, writer, health, discovery)
            except (ConnectionError, ssl.SSLError, asyncio.IncompleteReadError):
                pass
            finally:
                connections.discard(writer)
                writer.close()

        try:
            if socket_stream.kind is SocketKind.UNIX:
                server = await asyncio.start_unix_server(handle, sock=socket_stream.sock, ssl=tls)
            else:
                server = await asyncio.start_server(handle, sock=socket_stream.sock, ssl=tls)
            async with server:
                await subscription.changed()
                logger.info("server received shutdown signal...")
                for writer in list(connections):
                    writer.close()
            logger.info("server exited successfully")
        except Exception as exc:  # noqa: BLE001 - reported, the shutdown still runs
            logger.error("server exited with error: %s", exc)
        finally:
            subscription.close()


def _respond(request: Any, health: HealthReporter, discovery: DiscoveryService) -> dict[str, Any]:
    if not isinstance(request, dict):
        return {"error": "invalid request"}
    method = request.get("method")
    if method == "discover":
        return asdict(discovery.discover())
    if method == "health":
        return {"status": health.status(str(request.get("service", ""))).value}
    return {"error": f"unknown method: {method}"}


async def _answer(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    health: HealthReporter,
    discovery: DiscoveryService,
) -> None:
    """Answer JSON requests, one per line, until the client hangs up."""
    while line := await reader.readline():
        try:
            request = json.loads(line)
        except ValueError:
            response: dict[str, Any] = {"error": "invalid request"}
        else:
            response = _respond(request, health, discovery)
        writer.write(json.dumps(response).encode("utf-8") + b"\n")
        await writer.drain()


async def daemon(argv: list[str] | None = None) -> int:
    """Run the daemon, or the spawn subcommand, and return the exit code."""
    options = parse_options(argv)

    if options.subcmd == "spawn":
        logger.info("Spawning Auraed OCI bundle: %s", options.output)
        spawn_auraed_oci_to(options.output, AuraeOCIBuilder().build())
        return EXIT_OKAY

    logger.info("Starting Aurae Daemon Runtime")
    logger.info("Aurae Daemon is pid %s", os.getpid())

    runtime = AuraedRuntime(
        ca_crt=Path(options.ca_crt),
        server_crt=Path(options.server_crt),
        server_key=Path(options.server_key),
        runtime_dir=Path(options.runtime_dir),
    )

    context = detect_context(options.nested)
    with init_runtime(context, options.verbose, options.socket) as socket_stream:
        try:
            await runtime.run(socket_stream)
        except Exception as exc:  # noqa: BLE001 - turned into the exit code
            logger.error("%r", exc)
            return EXIT_ERROR
    return EXIT_OKAY


def main(argv: list[str] | None = None) -> int:
    """Command entry point."""
    return asyncio.run(daemon(argv))
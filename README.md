# auraed

`auraed` is a runtime daemon for multi-tenant systems. On start it works out
the context it was launched in, sets up logging to suit it, opens a listening
socket and serves a small set of requests over mutual TLS until it receives
`SIGTERM` or `SIGINT`.

The contexts it recognises (`auraed.context.Context`):

- **cell**: started with `--nested`;
- **container**: the process's `/proc/self/cgroup` ends in `_aurae`, meaning
  it runs as the init process of a pod container;
- **daemon**: an ordinary process on a host;
- **pid 1**: detected, but not supported; starting in this context fails
  with `SystemRuntimeError`.

## Installation

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Running the daemon

```
auraed --verbose
```

Options:

| Option | Default | Meaning |
| --- | --- | --- |
| `--server-crt` | `/etc/aurae/pki/_signed.server.crt` | signed server certificate |
| `--server-key` | `/etc/aurae/pki/server.key` | server private key |
| `--ca-crt` | `/etc/aurae/pki/ca.crt` | certificate authority clients must be signed by |
| `-s`, `--socket` | `/var/run/aurae/aurae.sock` | Unix socket path, or `ip:port` / `[ipv6]:port` |
| `-r`, `--runtime-dir` | `/var/run/aurae` | runtime directory, created on start |
| `-b`, `--bundle` | `/var/lib/aurae` | bundle directory |
| `-v`, `--verbose`, `--ritz` | off | log at debug level instead of info |
| `--nested` | off | run in the cell context |

In the cell and container contexts the daemon always listens on a Unix
socket. In the daemon context a `--socket` value that is a literal socket
address (such as `127.0.0.1:8080` or `[::1]:8080`; host names are not
resolved) makes it listen on TCP, and anything else is taken as a Unix socket
path. A Unix socket replaces any old file at that path, gets its parent
directory created and is given mode `0o766`.

Logging goes to the `auraed` logger: to stdout in the cell and container
contexts, and to stdout and syslog (`/dev/log`) in the daemon context. If
syslog is not available, or logging was already set up, start-up fails.

### Protocol

Clients connect over TLS with a certificate signed by the CA given in
`--ca-crt`, and send one JSON object per line; each gets one JSON line back:

- `{"method": "discover"}` → `{"healthy": true, "version": "..."}`
- `{"method": "health", "service": "<name>"}` → `{"status": "SERVING"}`,
  `"NOT_SERVING"` or `"SERVICE_UNKNOWN"`

Anything else is answered with `{"error": "..."}`. The services reported as
serving are `aurae.cells.v0.CellService`, `aurae.discovery.v0.DiscoveryService`
and `runtime.v1.RuntimeService`; on shutdown the first two are marked not
serving, open connections are closed and the daemon exits.

### Writing an OCI bundle

```
auraed spawn --output ./bundle
```

empties `./bundle`, then writes a `config.json` holding the default OCI
specification and a `rootfs` with `bin`, `sys`, `dev`, `mnt` and `proc`
directories. `rootfs/bin/auraed` is a copy (mode `0755`) of the executable
behind `/proc/self/exe`, that is the running interpreter, and
`rootfs/bin/init` is a hard link to it.

## Library use

- `auraed.oci.AuraeOCIBuilder` builds the default OCI runtime specification;
  `overload_pod_sandbox_config(config)` applies a `hostname` and
  `annotations` from a mapping or object, and `build()` returns an
  independent dictionary ready to be written as `config.json`.
- `auraed.bundle.spawn_auraed_oci_to(output, spec, executable=None)` writes
  such a bundle for any executable and raises `SpawnError` when it cannot.
- `auraed.logs.LogChannel(name, capacity=40)` is a bounded broadcast channel
  of `LogItem` records. `subscribe()` returns a `LogReceiver` whose async
  `recv()` yields the items sent after subscribing, raising `LaggedError`
  when the reader fell behind and `ChannelClosedError` once the channel is
  closed and drained. `StreamLogger` is a `logging.Handler` that feeds
  records into a channel. `get_timestamp_sec()` gives the UNIX time in
  seconds.
- `auraed.discovery.DiscoveryService.discover()` returns a
  `DiscoverResponse(healthy, version)`.
- `auraed.observe.ObserveService(channel)`:
  `await get_aurae_daemon_log_stream()` returns an async stream of the
  channel's items; `get_sub_process_stream(request)` returns an empty stream.
- `auraed.context.detect_context(nested, cgroup_path, pid)` and
  `in_new_cgroup_namespace(cgroup_path)` perform the context checks.
- `auraed.fileio.show_dir(directory, recurse=False)` prints a directory and,
  if asked, every path beneath it.
- `auraed.sriov.setup_sriov(iface, limit, sys_root="/sys")` writes
  `min(limit, sriov_totalvfs)` to the interface's `sriov_numvfs` and returns
  that number; it raises `SriovError` when the capabilities cannot be read
  or parsed.
- `auraed.daemon_logging.init_logging(verbose, container, pid=None)` sets up
  the `auraed` logger as described above and raises `LoggingError`.
- `auraed.runtimes.init_runtime(context, verbose, socket_address)` opens the
  listening `SocketStream`; `parse_socket_address`,
  `create_unix_socket_stream` and `create_tcp_socket_stream` are available on
  their own.
- `auraed.shutdown.GracefulShutdown(health_reporter, cell_service=None)`
  waits for a signal or `trigger()`, updates the `HealthReporter`, notifies
  subscribers, waits for them to close, then calls `free_all()` and
  `stop_all()` on the cell service if one was given.
- `auraed.daemon.parse_options`, `AuraedRuntime` and `daemon(argv)` make up
  the command.

## What it does not do

- It does not run as the machine's init: there is no mounting of `/dev`,
  `/sys` or `/proc`, no network interface configuration and no power-button
  handling, and the pid 1 context is refused.
- It serves no cell, pod or container management: the services reported in
  health have no requests behind them beyond `discover` and `health`, and the
  server speaks line-delimited JSON, not gRPC.
- It does not start containers from the OCI bundles it writes.
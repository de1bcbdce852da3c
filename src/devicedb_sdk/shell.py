#!/usr/bin/env python
"""
Interactive DeviceDB shell.

Binds a connected client to ``ddb`` inside a Python console so the REST API
can be explored by hand:

  devicedb-shell --uri https://localhost:9090 --rootCA ca-chain.pem

  devicedb> ddb.put("greeting", "hello")
  devicedb> ddb.get("greeting").value
  'hello'

Pass ``--cluster`` (optionally with several ``--uri`` flags) to get a
:class:`ClusterClient` instead.
"""

from __future__ import annotations

import argparse
import code
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .api_client import DeviceDBClient, decode_key, encode_key
from .cluster_client import ClusterClient
from .config import ROOT_CA_ENV, ClientConfig, validate_uri
from .errors import ConfigurationError

PROMPT = "devicedb> "


def _check_root_ca(path: str) -> str:
    with open(path, "r", encoding="utf-8") as handle:
        contents = handle.read()
    if "-----BEGIN CERTIFICATE-----" not in contents:
        raise ValueError(f"{path} does not contain a PEM certificate")
    return path


def build_namespace(args: argparse.Namespace) -> Dict[str, Any]:
    config = ClientConfig.from_options(args.uri, ca_bundle=args.root_ca)
    client = ClusterClient(config) if args.cluster else DeviceDBClient(config)
    return {"ddb": client, "encode_key": encode_key, "decode_key": decode_key}


def start_console(namespace: Dict[str, Any]) -> None:
    console = code.InteractiveConsole(locals=namespace)
    previous = getattr(sys, "ps1", None)
    sys.ps1 = PROMPT
    try:
        console.interact(banner=f"DeviceDB shell ({namespace['ddb']!r})", exitmsg="")
    finally:
        if previous is None:
            del sys.ps1
        else:
            sys.ps1 = previous


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive shell for a DeviceDB node or cluster.")
    parser.add_argument(
        "--uri",
        action="append",
        default=[],
        help="DeviceDB base URI; repeat with --cluster to spread calls over several nodes",
    )
    parser.add_argument(
        "--rootCA",
        dest="root_ca",
        default=os.environ.get(ROOT_CA_ENV),
        help=f"PEM file with trusted root certificates (default from {ROOT_CA_ENV} env)",
    )
    parser.add_argument(
        "--cluster",
        action="store_true",
        help="Talk to a cluster (relays, sites) instead of a single node",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for SDK request logs (default: WARNING)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    if not args.uri:
        print("No uri specified", file=sys.stderr)
        return 1

    try:
        for uri in args.uri:
            validate_uri(uri)
    except ConfigurationError:
        print("Invalid uri specified", file=sys.stderr)
        return 1

    if len(args.uri) > 1 and not args.cluster:
        print("Multiple uris require --cluster", file=sys.stderr)
        return 1

    if args.root_ca:
        try:
            args.root_ca = _check_root_ca(args.root_ca)
        except (OSError, ValueError):
            print("Invalid root CA file specified", file=sys.stderr)
            return 1

    namespace = build_namespace(args)
    try:
        start_console(namespace)
    finally:
        namespace["ddb"].close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

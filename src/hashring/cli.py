from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from typing import List, Optional, Union

from .__version__ import __version__
from .config import COMPAT_HASH_RING, COMPAT_KETAMA, ConfigError, RingOptions
from .hashvalue import hash_value, hash_value_legacy
from .ring import HashRing
from .servers import ServerSpecError


def _number(s: str) -> Union[int, float]:
    try:
        return int(s, 0)
    except ValueError:
        pass
    try:
        v = float(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {s!r}")
    if not math.isfinite(v):
        raise argparse.ArgumentTypeError(f"not a finite number: {s!r}")
    return v


def _options(args: argparse.Namespace) -> RingOptions:
    base = RingOptions.from_env()
    changes = base.to_dict()
    if args.vnode_count is not None:
        changes["vnode_count"] = args.vnode_count
    if args.replicas is not None:
        changes["replicas"] = args.replicas
    if args.compatibility is not None:
        changes["compatibility"] = args.compatibility
    return RingOptions.from_mapping(changes)


def build_ring(args: argparse.Namespace) -> HashRing:
    if not args.server:
        raise SystemExit("at least one --server is required")
    try:
        return HashRing(args.server, args.algorithm, _options(args))
    except (ConfigError, ServerSpecError) as e:
        raise SystemExit(f"invalid ring configuration: {e}")
    except ValueError as e:
        # unknown hashlib algorithm
        raise SystemExit(str(e))


def cmd_pack(args: argparse.Namespace) -> int:
    fn = hash_value_legacy if args.legacy else hash_value
    v = fn(*args.lanes)
    print(f"0x{v:08X}" if args.hex else v)
    return 0


def cmd_hash(args: argparse.Namespace) -> int:
    try:
        ring = HashRing(None, args.algorithm)
    except ValueError as e:
        raise SystemExit(str(e))
    print(ring.hash_value(args.key))
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    ring = build_ring(args)
    server = ring.get(args.key)
    if server is None:
        print("empty ring", file=sys.stderr)
        return 2
    print(server)
    return 0


def cmd_range(args: argparse.Namespace) -> int:
    ring = build_ring(args)
    for server in ring.range(args.key, args.size, unique=not args.all):
        print(server)
    return 0


def cmd_points(args: argparse.Namespace) -> int:
    ring = build_ring(args)
    pts = ring.points()
    if args.json:
        print(json.dumps(pts, indent=2, sort_keys=True))
        return 0
    for server, values in pts.items():
        print(f"{server}\t{len(values)}")
    return 0


def _add_ring_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--server",
        action="append",
        help="Server address host:port. May be repeated.",
    )
    p.add_argument("--algorithm", default="md5", help="hashlib algorithm name or crc32 (default md5).")
    p.add_argument("--vnode-count", type=int, help="Virtual nodes per server (env HASHRING_VNODE_COUNT).")
    p.add_argument("--replicas", type=int, help="Points per virtual node (env HASHRING_REPLICAS).")
    p.add_argument(
        "--compatibility",
        choices=[COMPAT_KETAMA, COMPAT_HASH_RING],
        help="Replica preset: ketama (4) or hash_ring (3).",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hashring", description="Consistent hashing ring tools.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr.")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_pack = sub.add_parser("pack", help="Pack four byte values into one unsigned 32-bit int.")
    p_pack.add_argument("lanes", nargs=4, type=_number, metavar="BYTE")
    p_pack.add_argument(
        "--legacy",
        action="store_true",
        help="Do not mask lanes to 8 bits (out-of-range values bleed into neighbours).",
    )
    p_pack.add_argument("--hex", action="store_true", help="Print as 0x-prefixed hex.")
    p_pack.set_defaults(fn=cmd_pack)

    p_hash = sub.add_parser("hash", help="Print the continuum position of a key.")
    p_hash.add_argument("key")
    p_hash.add_argument("--algorithm", default="md5")
    p_hash.set_defaults(fn=cmd_hash)

    p_get = sub.add_parser("get", help="Print the server responsible for a key.")
    p_get.add_argument("key")
    _add_ring_args(p_get)
    p_get.set_defaults(fn=cmd_get)

    p_range = sub.add_parser("range", help="Print servers clockwise from a key.")
    p_range.add_argument("key")
    p_range.add_argument("--size", type=int, help="Number of servers (default: all).")
    p_range.add_argument("--all", action="store_true", help="Do not deduplicate servers.")
    _add_ring_args(p_range)
    p_range.set_defaults(fn=cmd_range)

    p_pts = sub.add_parser("points", help="Show continuum points per server.")
    p_pts.add_argument("--json", action="store_true", help="Dump all point values as JSON.")
    _add_ring_args(p_pts)
    p_pts.set_defaults(fn=cmd_points)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )
    raise SystemExit(args.fn(args))


if __name__ == "__main__":
    main()

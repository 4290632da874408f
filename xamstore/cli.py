# xamstore/cli.py  – command line front end
from __future__ import annotations
import argparse
import logging
from pathlib import Path

from .config import CodecOptions
from .const import ARCHITECTURE_MAP, FILE_ASSEMBLIES_JSON
from .diagnostics import check_arch_blob, dump_hashes
from .errors import UsageError, XamStoreError
from .hashing import gen_xxhash
from .pack import do_pack
from .unpack import do_unpack

logger = logging.getLogger("xamstore")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="xamstore", description="Xamarin assembly store tool")
    p.add_argument("--debug", action="store_true", help="trace every parsed field")
    sub = p.add_subparsers(dest="mode", metavar="MODE")

    u = sub.add_parser("unpack", help="Unpack assembly blobs.")
    u.add_argument("-d", "--dir", default="./", help="Where to load blobs/manifest from.")
    u.add_argument("-o", "--out", default="./out/", help="Where to save dlls/manifest to.")
    u.add_argument("-a", "--arch", action="append", default=[],
                   help="Architecture to unpack; repeat for several of: "
                        + ", ".join(ARCHITECTURE_MAP) + ". All by default, 'no' for none.")
    u.add_argument("-f", "--force", action="store_true", help="Force re-create out/ directory.")

    k = sub.add_parser("pack", help="Repackage assembly blobs.")
    k.add_argument("-c", "--config", default=FILE_ASSEMBLIES_JSON,
                   help="Input assemblies.json file.")
    k.add_argument("-o", "--out", default="./out/", help="Where to save blobs/manifest to.")

    h = sub.add_parser("hash", help="Generate xxHash values.")
    h.add_argument("file_name")

    d = sub.add_parser("dump-hashes", help="Write the primary store's hash tables as JSON.")
    d.add_argument("-d", "--dir", default="./", help="Where to load the primary blob from.")
    d.add_argument("-o", "--out", default="./hashes.json", help="Where to save the hashes.")

    c = sub.add_parser("check-arch", help="Confirm a companion blob has no hash tables.")
    c.add_argument("-b", "--blob", required=True)
    return p


def gen_hash(file_name: str) -> int:
    hash_name = Path(file_name).stem
    print(f"Generating hashes for string '{file_name}' ({hash_name})")
    hash32, hash64 = gen_xxhash(hash_name)
    print(f"Hash32: {hash32}")
    print(f"Hash64: {hash64}")
    return 0


def run(args: argparse.Namespace, options: CodecOptions) -> int:
    if args.mode == "unpack":
        do_unpack(args.dir, args.out, args.arch, args.force, options=options)
    elif args.mode == "pack":
        do_pack(args.config, args.out, options=options)
    elif args.mode == "hash":
        return gen_hash(args.file_name)
    elif args.mode == "dump-hashes":
        dump_hashes(args.dir, args.out, options=options)
    elif args.mode == "check-arch":
        ok = check_arch_blob(args.blob)
        print("OK" if ok else "FAIL")
    else:
        raise UsageError("Mode is required!")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    env = CodecOptions.from_env()
    options = CodecOptions(debug=args.debug or env.debug)
    logging.basicConfig(level=logging.DEBUG if options.debug else logging.INFO,
                        format="%(message)s")
    try:
        return run(args, options)
    except XamStoreError as exc:
        logger.error("%s", exc)
        if isinstance(exc, UsageError):
            parser.print_usage()
        return exc.status

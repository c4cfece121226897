"""CLI utility to inspect and manage a published repository bucket."""

from __future__ import annotations

import argparse
import os
import sys

from aptpublish.core.config import Settings, get_settings
from aptpublish.core.logging import configure_logging
from aptpublish.services import (
    LocalPackagePool,
    LoggingProgress,
    PoolImportError,
    PublishError,
    PublishInputError,
    PublishedStorage,
    checksums_for_file,
    ensure_buckets,
    get_minio_client,
    get_published_storage,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage a published APT repository in object storage")
    parser.add_argument("--log-level", default=None, help="override APTPUB_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init", help="create the publish bucket if it is missing")

    ls_parser = commands.add_parser("ls", help="list published files")
    ls_parser.add_argument("prefix", nargs="?", default="")

    put_parser = commands.add_parser("put", help="upload a local file")
    put_parser.add_argument("source")
    put_parser.add_argument("path")

    rm_parser = commands.add_parser("rm", help="remove a single file")
    rm_parser.add_argument("path")

    rmdirs_parser = commands.add_parser("rmdirs", help="remove a directory tree")
    rmdirs_parser.add_argument("path")

    mv_parser = commands.add_parser("mv", help="rename a file")
    mv_parser.add_argument("source")
    mv_parser.add_argument("destination")

    link_parser = commands.add_parser("link", help="import a package file into the pool and publish it")
    link_parser.add_argument("source")
    link_parser.add_argument("directory", help="published directory, e.g. pool/main/h/hello")
    link_parser.add_argument("--force", action="store_true", help="overwrite a different file at the destination")

    ln_parser = commands.add_parser("ln", help="link a file (stored as a tagged copy)")
    ln_parser.add_argument("source")
    ln_parser.add_argument("destination")

    readlink_parser = commands.add_parser("readlink", help="print the target of a link")
    readlink_parser.add_argument("path")

    exists_parser = commands.add_parser("exists", help="exit 0 if the file exists, 1 otherwise")
    exists_parser.add_argument("path")

    return parser


def link_package(storage: PublishedStorage, settings: Settings, source: str, directory: str, force: bool) -> None:
    pool = LocalPackagePool(settings.pool_root)
    try:
        checksums = checksums_for_file(source)
        pool_path = pool.import_file(source, os.path.basename(source), checksums)
    except (OSError, PoolImportError) as exc:
        raise PublishInputError(f"unable to import {source} into pool: {exc}") from exc
    storage.link_from_pool(directory, os.path.basename(source), pool, pool_path, checksums, force)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    client = get_minio_client(settings)

    if args.command == "init":
        ensure_buckets(client, settings.minio_buckets)
        print("Publish bucket verified")
        return 0

    storage = get_published_storage(settings, client=client)

    try:
        if args.command == "ls":
            for path in storage.filelist(args.prefix):
                print(path)
        elif args.command == "put":
            storage.put_file(args.path, args.source)
        elif args.command == "rm":
            storage.remove(args.path)
        elif args.command == "rmdirs":
            storage.remove_dirs(args.path, LoggingProgress())
        elif args.command == "mv":
            storage.rename_file(args.source, args.destination)
        elif args.command == "link":
            link_package(storage, settings, args.source, args.directory, args.force)
        elif args.command == "ln":
            storage.symlink(args.source, args.destination)
        elif args.command == "readlink":
            print(storage.readlink(args.path))
        elif args.command == "exists":
            return 0 if storage.file_exists(args.path) else 1
    except PublishError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution only
    sys.exit(main())

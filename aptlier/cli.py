"""Command line interface for aptlier.

Porcelain commands maintain mirrors, local repositories and the snapshot
pointers; plumbing commands run aptly or gpg inside the workspace.
"""

import argparse
import sys
from typing import List, Optional, Sequence

import httpx
import yaml

from .common.command import CommandRunner
from .common.config import AptlierConfig, load_typed_config
from .common.errors import AptlierError
from .common.logger import get_logger, setup_logger
from .common.workspace import Workspace
from .keys.gpg import GpgManager
from .keys.sources import Ppa, Registry, classify_key_source
from .repos.aptly import AptlyManager
from .repos.registry import SourceEntry, SourceRegistry
from .snapshots.coordinator import SnapshotCoordinator
from .snapshots.models import PublishResult, PublishTarget, SnapshotUpdate
from .snapshots.publisher import Publisher
from .snapshots.store import SnapshotStore

logger = get_logger("cli")

PPA_URL = "http://ppa.launchpad.net/{path}/{distributor}"
PACKAGECLOUD_URL = "https://packagecloud.io/{path}/{distributor}"

# Commands whose arguments belong to gpg or aptly and are passed on verbatim
PASSTHROUGH_COMMANDS = ("add-key", "add_key", "aptly", "gpg")
GLOBAL_VALUE_OPTIONS = ("-c", "--config", "-C", "--work-dir", "--release", "--publish-name")


class Aptlier:
    """All aptlier operations for one working directory."""

    def __init__(self, config: AptlierConfig, http_client: Optional[httpx.Client] = None):
        self.config = config
        self.workspace = Workspace(config.work_dir, config.distributor)
        self.runner = CommandRunner(
            self.workspace.child_environment(),
            timeout=config.command_timeout,
            setup=self.workspace.prepare,
        )
        self.aptly = AptlyManager(
            self.runner, self.workspace.aptly_config_path, config.aptly_command
        )
        self.gpg = GpgManager(self.runner, config.gpg_command, http_client)
        self.store = SnapshotStore(self.workspace.expand_path(config.snapshots_file))
        self.registry = SourceRegistry(self.aptly)
        self.coordinator = SnapshotCoordinator(
            self.aptly, self.store, config.publish_name, registry=self.registry
        )
        self.publisher = Publisher(
            self.coordinator,
            self.aptly,
            PublishTarget(release=config.release, publish_name=config.publish_name),
        )

    def init(self) -> None:
        """Create the keyring and aptly database."""
        self.gpg.list_fingerprints()
        self.aptly.cleanup_db()

    def add_key(self, key: str, gpg_args: Sequence[str] = ()) -> None:
        self.gpg.add_key(key, gpg_args)

    def add_mirror(self, name: str, args: Sequence[str] = ()) -> SnapshotUpdate:
        """Create a mirror, snapshot it and save.

        ``ppa:OWNER/ARCHIVE`` and ``packagecloud:OWNER/REPO`` names take an
        optional release as their only argument; the upstream URL and the
        signing key are derived from the name.
        """
        if name.startswith(("ppa:", "packagecloud:")):
            source = classify_key_source(name)
            if isinstance(source, Ppa):
                path = f"{source.owner}/{source.archive}"
                url = PPA_URL.format(path=path, distributor=self.config.distributor)
            elif isinstance(source, Registry):
                url = PACKAGECLOUD_URL.format(path=source.path, distributor=self.config.distributor)
            else:
                raise AptlierError(f"Unsupported mirror shorthand: {name}")

            release = args[0] if args and args[0] not in ("", "-") else self.config.release
            self.gpg.import_key(source)
            return self.coordinator.add_mirror(name, [url, release, "main"])

        return self.coordinator.add_mirror(name, args)

    def add_repo(self, name: str, args: Sequence[str] = ()) -> None:
        """Create an empty local repository for custom-built packages."""
        self.aptly.create_repo(name, args)

    def update(self, names: Sequence[str] = ()) -> List[SnapshotUpdate]:
        return self.coordinator.update_selected(names)

    def add_package(self, repo: str, files: Sequence[str]) -> SnapshotUpdate:
        return self.coordinator.add_package(repo, files)

    def list_sources(self) -> List[SourceEntry]:
        return self.registry.describe(self.coordinator.context.loaded)

    def publish(self) -> PublishResult:
        return self.publisher.publish()

    def close(self) -> None:
        self.gpg.close()


def format_sources(entries: Sequence[SourceEntry]) -> str:
    """Render sources as the ``list`` command prints them."""
    width = max((len(entry.name) for entry in entries), default=0)
    lines = []
    for title, kind in (("Mirrors:", "mirror"), ("Repos:", "repo")):
        lines.append(title)
        for entry in entries:
            if entry.kind.value != kind:
                continue
            if entry.timestamp:
                lines.append(f" - {entry.name.ljust(width)}  {entry.timestamp}")
            else:
                lines.append(f" - {entry.name}")
    return "\n".join(lines) + "\n"


def report_update(update: SnapshotUpdate) -> None:
    if not update.changed:
        print(f"{update.source_name}: no changes, snapshot dropped")
    elif update.diff:
        print(update.diff, end="" if update.diff.endswith("\n") else "\n")
    else:
        print(f"{update.source_name}: new snapshot {update.snapshot_name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aptlier",
        description="Mirror, snapshot, merge and publish a Debian repository with aptly.",
    )
    parser.add_argument("-c", "--config", help="configuration file (default: WORK_DIR/aptlier.yaml)")
    parser.add_argument("-C", "--work-dir", help="working directory (default: .)")
    parser.add_argument("--release", help="distribution to publish")
    parser.add_argument("--publish-name", help="publish prefix")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", dest="verbose", action="store_true", default=None)
    verbosity.add_argument("-q", "--quiet", dest="verbose", action="store_false", default=None)

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    commands.add_parser("init", help="initialize repository")

    add_key = commands.add_parser("add-key", aliases=["add_key"], help="add public key")
    add_key.add_argument("args", nargs=argparse.REMAINDER, metavar="KEY [GPG_OPTION ...]")

    add_mirror = commands.add_parser("add-mirror", aliases=["add_mirror"], help="add a mirror")
    add_mirror.add_argument("name")
    add_mirror.add_argument("args", nargs=argparse.REMAINDER, metavar="ARG")

    add_repo = commands.add_parser("add-repo", aliases=["add_repo"], help="add a local repo")
    add_repo.add_argument("name")
    add_repo.add_argument("args", nargs=argparse.REMAINDER, metavar="OPTION")

    update = commands.add_parser(
        "update", aliases=["update-mirror", "update_mirror"], help="update mirrors"
    )
    update.add_argument("names", nargs="*", metavar="NAME")

    add_package = commands.add_parser(
        "add", aliases=["add-package", "add_package"], help="add packages to a repo"
    )
    add_package.add_argument("repo")
    add_package.add_argument("files", nargs="+", metavar="FILE")

    commands.add_parser("list", help="list mirrors and repos")
    commands.add_parser("publish", help="merge snapshots and publish")

    aptly = commands.add_parser("aptly", help="run aptly")
    aptly.add_argument("args", nargs=argparse.REMAINDER)
    gpg = commands.add_parser("gpg", help="run gnupg")
    gpg.add_argument("args", nargs=argparse.REMAINDER)

    return parser


def parse_arguments(
    parser: argparse.ArgumentParser, argv: Optional[Sequence[str]] = None
) -> argparse.Namespace:
    """Parse the command line.

    Everything after a passthrough command word is stored in ``args``
    untouched, so ``aptlier gpg --list-keys`` reaches gpg as written.
    """
    argv = list(sys.argv[1:] if argv is None else argv)

    index = 0
    while index < len(argv):
        if argv[index] in GLOBAL_VALUE_OPTIONS:
            index += 2
        elif argv[index].startswith("-"):
            index += 1
        else:
            break

    if index >= len(argv) or argv[index] not in PASSTHROUGH_COMMANDS:
        return parser.parse_args(argv)

    args = parser.parse_args(argv[: index + 1])
    args.args = argv[index + 1 :]
    if args.command in ("add-key", "add_key") and not args.args:
        parser.error(f"{args.command}: KEY is required")
    return args


def run_command(app: Aptlier, args: argparse.Namespace) -> None:
    command = args.command.replace("_", "-")

    if command == "init":
        app.init()
    elif command == "add-key":
        key, *gpg_args = args.args
        app.add_key(key, gpg_args)
    elif command == "add-mirror":
        report_update(app.add_mirror(args.name, args.args))
    elif command == "add-repo":
        app.add_repo(args.name, args.args)
    elif command in ("update", "update-mirror"):
        for update in app.update(args.names):
            report_update(update)
    elif command in ("add", "add-package"):
        report_update(app.add_package(args.repo, args.files))
    elif command == "list":
        print(format_sources(app.list_sources()), end="")
    elif command == "publish":
        result = app.publish()
        print(f"{result.action.value}: {result.target.publish_name} -> {result.snapshot_name}")
    elif command == "aptly":
        app.aptly.run(*args.args)
    elif command == "gpg":
        app.gpg.run(*args.args)
    else:
        raise AptlierError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the aptlier CLI."""
    parser = build_parser()
    args = parse_arguments(parser, argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = load_typed_config(args.config, args.work_dir).with_overrides(
            verbose=args.verbose,
            release=args.release,
            publish_name=args.publish_name,
        )
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"aptlier: {e}", file=sys.stderr)
        return 1

    setup_logger(
        level=config.log_level,
        log_dir=config.log_dir,
        console_level=None if config.verbose else "WARNING",
    )

    app = Aptlier(config)
    try:
        run_command(app, args)
    except AptlierError as e:
        logger.error(str(e))
        return 1
    finally:
        app.close()
    return 0

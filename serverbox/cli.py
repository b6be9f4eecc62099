from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from .config import Settings
from .exceptions import ServerBoxError
from .manager import ServerManager
from .models import ServerRecord

logger = logging.getLogger("serverbox")

EXIT_ERROR = 1
EXIT_LICENSE_NOT_ACCEPTED = 3


def _print_progress(received: int, total: int | None) -> None:
    if total:
        sys.stdout.write(f"\rDownloading... {received * 100 / total:5.1f}%")
    else:
        sys.stdout.write(f"\rDownloading... {received // 1024} KiB")
    sys.stdout.flush()


def _exit_status(code: int | None) -> int:
    # Popen reports death by signal N as -N; shells report it as 128 + N.
    if code is None:
        return 0
    if code < 0:
        return 128 - code
    return code


def _record_payload(record: ServerRecord) -> dict[str, object]:
    payload: dict[str, object] = {"location": str(record.location)}
    payload.update(record.to_dict())
    payload.pop("schema_version", None)
    return payload


def _cmd_flavors(manager: ServerManager) -> int:
    for flavor in manager.resolver.list_flavors():
        print(flavor)
    return 0


def _cmd_versions(args: argparse.Namespace, manager: ServerManager) -> int:
    for version in manager.resolver.list_versions(args.flavor):
        print(version)
    return 0


def _cmd_builds(args: argparse.Namespace, manager: ServerManager) -> int:
    for build in manager.resolver.list_builds(args.flavor, args.version):
        print(build)
    return 0


def _cmd_create(args: argparse.Namespace, manager: ServerManager) -> int:
    record = manager.create(
        name=args.name,
        flavor=args.flavor,
        location=Path(args.location).resolve(),
        version=args.version,
        build=args.build,
        progress=_print_progress,
    )
    print()
    print(json.dumps(_record_payload(record), indent=2))
    return 0


def _cmd_list(manager: ServerManager) -> int:
    records = manager.list_servers()
    if not records:
        print("No servers registered.")
    for record in records:
        print(f"{record.name} ({record.flavor} {record.version}) {record.location}")
    return 0


def _cmd_info(args: argparse.Namespace, manager: ServerManager) -> int:
    print(json.dumps(_record_payload(manager.get(args.name)), indent=2))
    return 0


def _cmd_start(args: argparse.Namespace, manager: ServerManager) -> int:
    result = manager.start(args.name, auto_accept_license=args.accept_eula)
    if result.license_not_accepted:
        print(f"EULA not accepted for '{args.name}'. Server was not started.")
        return EXIT_LICENSE_NOT_ACCEPTED
    print(f"Server exited with code {result.exit_code}.")
    return _exit_status(result.exit_code)


def _cmd_config(args: argparse.Namespace, manager: ServerManager) -> int:
    record = manager.configure(args.name, gui=args.gui, xms=args.xms, xmx=args.xmx)
    print(json.dumps(_record_payload(record), indent=2))
    return 0


def _cmd_upgrade(args: argparse.Namespace, manager: ServerManager) -> int:
    record = manager.upgrade(
        args.name, version=args.version, build=args.build, progress=_print_progress
    )
    print()
    print(f"'{record.name}' now runs {record.flavor} {record.version} build {record.build}.")
    return 0


def _cmd_add(args: argparse.Namespace, manager: ServerManager) -> int:
    record = manager.import_directory(Path(args.location).resolve())
    print(f"Added '{record.name}' ({record.flavor} {record.version}) at {record.location}.")
    return 0


def _cmd_remove(args: argparse.Namespace, manager: ServerManager) -> int:
    manager.remove(args.name)
    print(f"Removed '{args.name}' from the registry. Files were kept.")
    return 0


def _cmd_delete(args: argparse.Namespace, manager: ServerManager) -> int:
    record = manager.get(args.name)
    if not args.yes:
        answer = input(f"Delete '{record.name}' and everything in {record.location}? (y/n) ")
        if answer.strip().lower() not in {"y", "yes"}:
            print("Aborted.")
            return 0
    manager.delete(args.name)
    print(f"Deleted '{record.name}'.")
    return 0


def _cmd_plugins(args: argparse.Namespace, manager: ServerManager) -> int:
    plugins = manager.plugins(args.name)
    print(f"{args.name} has {len(plugins)} plugin(s).")
    for plugin in plugins:
        print(f" - {plugin}")
    return 0


def _cmd_remove_plugin(args: argparse.Namespace, manager: ServerManager) -> int:
    manager.remove_plugin(args.name, args.plugin)
    print(f"Removed plugin {args.plugin}.")
    return 0


def _cmd_set_property(args: argparse.Namespace, manager: ServerManager) -> int:
    manager.set_property(args.name, args.key, args.value)
    print(f"Set {args.key}={args.value} for '{args.name}'.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serverbox",
        description="Download, track and run standalone game servers.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("flavors", help="Print supported flavors.")

    versions = sub.add_parser("versions", help="List versions of a flavor, newest first.")
    versions.add_argument("flavor")

    builds = sub.add_parser("builds", help="List builds of a flavor version, newest first.")
    builds.add_argument("flavor")
    builds.add_argument("version")

    create = sub.add_parser("create", help="Download a server jar and register it.")
    create.add_argument("name", help="Server name.")
    create.add_argument("flavor", help="Flavor name.")
    create.add_argument("location", help="Existing directory to install into.")
    create.add_argument("--version", default=None, help="Version (default: newest).")
    create.add_argument("--build", default=None, help="Build number (default: latest).")

    sub.add_parser("list", help="List registered servers.")

    info = sub.add_parser("info", help="Print a server's details.")
    info.add_argument("name")

    start = sub.add_parser("start", help="Run a registered server.")
    start.add_argument("name")
    start.add_argument(
        "--accept-eula",
        action="store_true",
        help="Accept the EULA automatically if the server asks for it.",
    )

    config = sub.add_parser("config", help="Change a server's run settings.")
    config.add_argument("name")
    config.add_argument("--gui", dest="gui", action="store_true", default=None)
    config.add_argument("--no-gui", dest="gui", action="store_false", default=None)
    config.add_argument("--xms", default=None, help="Initial heap size, e.g. 2G.")
    config.add_argument("--xmx", default=None, help="Max heap size, e.g. 4G.")

    upgrade = sub.add_parser("upgrade", help="Move a server to another build.")
    upgrade.add_argument("name")
    upgrade.add_argument("--version", default=None, help="Version (default: current).")
    upgrade.add_argument("--build", default=None, help="Build number (default: latest).")

    add = sub.add_parser("add", help="Register an existing server directory.")
    add.add_argument("location")

    remove = sub.add_parser("remove", help="Forget a server without deleting files.")
    remove.add_argument("name")

    delete = sub.add_parser("delete", help="Delete a server and its directory.")
    delete.add_argument("name")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")

    plugins = sub.add_parser("plugins", help="List a server's plugin jars.")
    plugins.add_argument("name")

    remove_plugin = sub.add_parser("remove-plugin", help="Delete a plugin jar.")
    remove_plugin.add_argument("name")
    remove_plugin.add_argument("plugin")

    set_property = sub.add_parser("set-property", help="Set a server.properties value.")
    set_property.add_argument("name")
    set_property.add_argument("key")
    set_property.add_argument("value")

    return parser


_HANDLERS = {
    "versions": _cmd_versions,
    "builds": _cmd_builds,
    "create": _cmd_create,
    "info": _cmd_info,
    "start": _cmd_start,
    "config": _cmd_config,
    "upgrade": _cmd_upgrade,
    "add": _cmd_add,
    "remove": _cmd_remove,
    "delete": _cmd_delete,
    "plugins": _cmd_plugins,
    "remove-plugin": _cmd_remove_plugin,
    "set-property": _cmd_set_property,
}


def main(argv: list[str] | None = None, manager: ServerManager | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = manager.settings if manager else Settings.load()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        manager = manager or ServerManager(settings=settings)
        if args.command == "flavors":
            return _cmd_flavors(manager)
        if args.command == "list":
            return _cmd_list(manager)
        handler = _HANDLERS.get(args.command)
        if handler is None:
            parser.print_help()
            return 2
        return handler(args, manager)
    except ServerBoxError as exc:
        logger.error("%s", exc)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())

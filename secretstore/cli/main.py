"""CLI entrypoint for secretstore."""
import sys
import argparse
import logging
from pathlib import Path

from .validators import validate_secret_name, validate_secret_value

VERSION = "0.1.0"

logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def cmd_version(args):
    """Show version information."""
    print(f"secretstore {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from secretstore.storage.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path."""
    from secretstore.storage.domains.config_loader import default_config_path
    from secretstore.storage.domains.preferences import get_preference

    config_path_pref = get_preference("config_path")

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
        return

    default_config = default_config_path()
    print(f"Config path: {default_config}")
    if default_config.exists():
        print("Source: default")
    else:
        print("Source: default (file not found)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from secretstore.storage.domains.config_loader import default_config_path
    from secretstore.storage.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_secrets_read(args):
    """Read a secret from the configured store."""
    from secretstore.storage.workflows.store_factory import get_store

    validate_secret_name(args.secret_name)
    payload = get_store().read(args.secret_name)

    if payload is None:
        print(f"Error: Secret '{args.secret_name}' not found", file=sys.stderr)
        sys.exit(1)

    value = payload.decode("UTF-8", errors="replace")
    if args.quiet:
        print(value)
    else:
        print(f"Secret '{args.secret_name}': {value}")


def cmd_secrets_write(args):
    """Write a secret to the configured store."""
    from secretstore.storage.workflows.store_factory import get_store

    validate_secret_name(args.secret_name)
    validate_secret_value(args.value)
    get_store().write(args.secret_name, args.value.encode("UTF-8"))
    print(f"Secret '{args.secret_name}' written")


def cmd_secrets_delete(args):
    """Delete a secret from the configured store."""
    from secretstore.storage.workflows.store_factory import get_store

    validate_secret_name(args.secret_name)
    get_store().delete(args.secret_name)
    print(f"Secret '{args.secret_name}' deleted")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="secretstore",
        description="secretstore CLI - read, write and delete secrets through the configured store",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (configuration, permissions, network, secret not found, etc.)
  2 - Usage error (invalid arguments, invalid secret name format, etc.)

Environment variables:
  GCP_PROJECT - GCP project ID (overrides config file)

Configuration:
  Default location: ~/.config/secretstore/config.yml
  Custom path: Set with 'secretstore config set-path <path>'
  Backend memory keeps secrets for one process only (nothing persists between commands)
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("version", help="Show version information")

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage secretstore configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="Store the absolute path to your config file in ~/.config/secretstore/preferences.json"
    )
    config_set_path_parser.add_argument("path", help="Path to config file")
    config_subparsers.add_parser("show", help="Show current config path")
    config_subparsers.add_parser("clear", help="Clear config path preference")

    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret operations",
        description="""
Read, write and delete secrets in the configured store.

With storage.backend set to memory, secrets live only for the duration of a
single command: a value written by one invocation is gone by the next.
        """
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    read_parser = secrets_subparsers.add_parser(
        "read",
        help="Read a secret value",
        description="""
Print a secret value to stdout. In quiet mode (-q) only the value is printed.

Exit codes:
  0 - Secret found and printed
  1 - Secret not found, or the store could not be reached
  2 - Invalid secret name format
        """
    )
    read_parser.add_argument("secret_name", help="Name of the secret (format: [a-zA-Z0-9_-]+)")
    read_parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Output only the secret value (useful for scripts)"
    )

    write_parser = secrets_subparsers.add_parser(
        "write",
        help="Create or overwrite a secret",
    )
    write_parser.add_argument("secret_name", help="Name of the secret (format: [a-zA-Z0-9_-]+)")
    write_parser.add_argument("value", help="Secret value")

    delete_parser = secrets_subparsers.add_parser(
        "delete",
        help="Delete a secret (deleting a missing secret succeeds)",
    )
    delete_parser.add_argument("secret_name", help="Name of the secret (format: [a-zA-Z0-9_-]+)")

    return parser, config_parser, secrets_parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (configuration, permissions, network, secret not found, etc.)
        2 - Usage errors (invalid arguments, invalid secret name format, etc.)
    """
    parser, config_parser, secrets_parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    config_commands = {
        "set-path": cmd_config_set_path,
        "show": cmd_config_show,
        "clear": cmd_config_clear,
    }
    secrets_commands = {
        "read": cmd_secrets_read,
        "write": cmd_secrets_write,
        "delete": cmd_secrets_delete,
    }

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            handler = config_commands.get(args.config_command)
            if handler is None:
                config_parser.print_help()
                sys.exit(2)
            handler(args)
        elif args.command == "secrets":
            handler = secrets_commands.get(args.secrets_command)
            if handler is None:
                secrets_parser.print_help()
                sys.exit(2)
            handler(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""CLI interface for the pyocsync command line sync client."""

import logging
import platform
import sys
from collections.abc import Sequence
from typing import Any, Optional

import click
import httpx

from . import __version__
from .account import Account, split_target_url
from .api import OcsClient
from .bootstrap import bootstrap_account
from .config import config
from .credentials import Prompter, resolve_credentials
from .exceptions import (
    BootstrapError,
    ConfigError,
    JournalError,
    UsageError,
    VersionRequested,
)
from .options import SyncOptions, parse_proxy, resolve_options
from .output import OutputFormatter
from .sync import SyncContext, SyncLoopDriver, create_rclone_engine

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [ %(levelname)s %(name)s ]:\t%(message)s"
LOG_DATE_FORMAT = "%m-%d %H:%M:%S"

USAGE = """\
pyocsync - command line ownCloud client tool

Usage: pyocsync [OPTION] <source_dir> <server_url>

A proxy can either be set manually using --httpproxy.
Otherwise, the proxy settings of the environment are used.

Options:
  --silent, -s           Don't be so verbose
  --httpproxy [proxy]    Specify a http proxy to use.
                         Proxy is http://server:port
  --trust                Trust the SSL certification.
  --exclude [file]       Exclude list file
  --unsyncedfolders [file]
                         File containing the list of unsynced remote
                         folders (selective sync)
  --user, -u [name]      Use [name] as the login name
  --password, -p [pass]  Use [pass] as password
  -n                     Use netrc (5) for login
  --non-interactive      Do not block execution with interaction
  --davpath [path]       Custom themed dav path
  --max-sync-retries [n] Retries maximum n times (default to 3)
  --uplimit [n]          Limit the upload speed of files to n KB/s
  --downlimit [n]        Limit the download speed of files to n KB/s
  -h                     Sync hidden files, do not ignore them
  --version, -v          Display version and exit
  --logdebug             More verbose logging
"""


def version_string() -> str:
    """Text printed for --version."""
    return (
        f"pyocsync version {__version__}\n"
        f"Using httpx {httpx.__version__} and Python {platform.python_version()}"
    )


def configure_logging(options: SyncOptions) -> None:
    """Set up logging for a run.

    ``--silent`` drops all log output, ``--logdebug`` logs debug messages
    to stdout.
    """
    if options.silent:
        logging.disable(logging.CRITICAL)
        return

    logging.disable(logging.NOTSET)
    if options.log_debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            stream=sys.stdout,
            force=True,
        )
        logging.getLogger("pyocsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            force=True,
        )
        # Keep transport chatter out of the default output
        logging.getLogger("httpx").setLevel(logging.WARNING)


def build_sync_context(
    options: SyncOptions, prompter: Optional[Prompter] = None
) -> SyncContext:
    """Resolve credentials, bootstrap the account and build the context.

    Raises:
        ProxyConfigError: If the proxy spec is malformed
        BootstrapError: If capabilities or identity cannot be fetched
    """
    target = split_target_url(options.target_url, options.dav_path or config.dav_path)
    proxy = parse_proxy(options.proxy) if options.proxy is not None else None
    credentials = resolve_credentials(target, options, prompter=prompter)

    account = Account(
        url=target.url,
        credentials=credentials,
        dav_path=options.dav_path or config.dav_path,
        proxy=proxy,
    )
    logger.debug(f"Server {target.url}, remote folder {target.folder}")

    with OcsClient(account) as client:
        bootstrap_account(client, account)

    return SyncContext(
        options=options,
        url=target.url,
        folder=target.folder,
        account=account,
        user=credentials.user,
    )


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
        "help_option_names": [],
    },
    add_help_option=False,
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def main(ctx: Any, args: Sequence[str]) -> None:
    """Synchronize <source_dir> with the folder at <server_url>."""
    out = OutputFormatter()

    try:
        options = resolve_options(args)
    except VersionRequested:
        click.echo(version_string())
        ctx.exit(0)
        return
    except UsageError as e:
        out.error(str(e))
        click.echo(USAGE)
        ctx.exit(1)
        return
    except ConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    configure_logging(options)
    out.quiet = options.silent

    try:
        context = build_sync_context(options)
        out.info(f"Syncing {options.source_dir} with {context.url}{context.folder}")
        driver = SyncLoopDriver(context, create_rclone_engine)
        status = driver.run()
    except BootstrapError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except (ConfigError, JournalError) as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except KeyboardInterrupt:
        out.warning("Sync cancelled by user")
        ctx.exit(130)
        return

    if status == 0:
        out.success("Sync finished")
    else:
        out.error("Sync finished with errors")
    ctx.exit(status)


if __name__ == "__main__":
    main()

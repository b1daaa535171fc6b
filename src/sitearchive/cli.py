"""Command line entry point for the site archiver."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import NoReturn, Sequence

from sitearchive.checkpoint import CheckpointStore
from sitearchive.config import ArchiverSettings
from sitearchive.errors import ArchiverError
from sitearchive.models import RunSummary
from sitearchive.services.archiver import ArchiveContext, SiteArchiver
from sitearchive.services.transport import ProxyTransport

__all__ = ["build_parser", "main", "run"]

logger = logging.getLogger(__name__)


class _UsageParser(argparse.ArgumentParser):
    """Argument parser that prints usage and exits cleanly on bad arguments."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stdout)
        self.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = _UsageParser(
        prog="sitearchive",
        description="Archive sites listed in a checkpoint file through a SOCKS5 proxy.",
    )
    parser.add_argument("checkpoint", help="path to the checkpoint JSON document")
    return parser


def run(checkpoint_path: str, settings: ArchiverSettings) -> RunSummary:
    """Load the checkpoint, set up the proxy transport and archive every site.

    Raises :class:`ArchiverError` for any condition that must stop the run.
    """

    store = CheckpointStore(checkpoint_path)
    document = store.load()

    with ProxyTransport(settings) as transport:
        if settings.verify_proxy:
            transport.verify()
        context = ArchiveContext(settings=settings, transport=transport, store=store)
        return SiteArchiver(context).run(document)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the archiver and return the process exit status."""

    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        settings = ArchiverSettings.from_env()
    except ValueError as exc:
        logger.error("%s", exc)
        return 0
    logging.getLogger().setLevel(settings.log_level)

    try:
        run(args.checkpoint, settings)
    except ArchiverError as exc:
        logger.error("%s", exc)
        return 0

    logger.info("Archive run finished")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

#!/usr/bin/env python3
"""rowtree CLI for running nested queries."""

import argparse
import json
import logging

from rich.console import Console
from rich.logging import RichHandler

from rowtree import db
from rowtree.adapter import Subquery
from rowtree.config import config

console = Console()


def parse_pair(value: str) -> tuple[str, str]:
    """Split a ``name=value`` argument."""
    name, sep, rest = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected name=value, got {value!r}")
    return name, rest


def build_attachments(pairs: list[tuple[str, str]]) -> dict[str, Subquery]:
    """
    Build attachments from ``key=SQL`` pairs.

    A dotted key attaches to an attachment declared earlier, so
    ``titles.history=...`` nests ``history`` inside ``titles``.
    """
    attachments: dict[str, Subquery] = {}

    for key, sql in pairs:
        *parents, name = key.split(".")
        subquery = Subquery.coerce(sql, "format")

        if not parents:
            attachments[name] = subquery
            continue

        attachments[parents[0]] = _attach_at(attachments, parents, name, subquery, key)

    return attachments


def _attach_at(attachments, parents, name, subquery, key) -> Subquery:
    # Subqueries are immutable, so rebuild each level on the way back up
    parent = attachments.get(parents[0])
    if parent is None:
        raise ValueError(f"Attachment {key!r} refers to undeclared parent {parents[0]!r}")
    if len(parents) == 1:
        return parent.attach(name, subquery)
    return parent.attach(
        parents[1], _attach_at(parent.attachments, parents[1:], name, subquery, key)
    )


def print_rows(rows, one: bool = False, lines: bool = False) -> int:
    """Print rows as JSON; returns the number of rows printed."""
    if one:
        row = rows.fetch_one()
        console.print_json(json.dumps(row, default=str))
        return 0 if row is None else 1

    if lines:
        count = 0
        for row in rows:
            console.print(json.dumps(row, default=str), soft_wrap=True, markup=False, highlight=False)
            count += 1
        return count

    result = rows.fetch_all()
    console.print_json(json.dumps(result, default=str))
    return len(result)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run a query and print nested rows")
    parser.add_argument("sql", help="Query text with :name placeholders")
    parser.add_argument(
        "-p",
        "--param",
        action="append",
        type=parse_pair,
        default=[],
        metavar="NAME=VALUE",
        help="Query argument",
    )
    parser.add_argument(
        "-a",
        "--attach",
        action="append",
        type=parse_pair,
        default=[],
        metavar="KEY=SQL",
        help="Subquery to run per row; dotted keys nest under earlier attachments",
    )
    parser.add_argument("--one", action="store_true", help="Print only the first row")
    parser.add_argument("--lines", action="store_true", help="Print one JSON row per line")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True))],
    )

    try:
        attachments = build_attachments(args.attach)
    except ValueError as exc:
        parser.error(str(exc))

    with db.query(args.sql, dict(args.param), attachments) as rows:
        count = print_rows(rows, one=args.one, lines=args.lines)

    logging.getLogger(__name__).info("Printed %d row(s)", count)


if __name__ == "__main__":
    main()

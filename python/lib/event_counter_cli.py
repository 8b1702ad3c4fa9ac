#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
event_counter_cli.py
--------------------

Command line front end for :class:`event_counter.EventCounter`.

    event-counter <input_file>

The input file holds the element count on its first line followed by one
``id count`` pair per line, sorted by ascending id.  After loading, commands
are read from standard input until ``quit`` or end of input:

    increase <id> <m>    reduce <id> <m>    count <id>
    inrange <id1> <id2>  next <id>          previous <id>
    levelorder           help               quit

Set ``EVENT_COUNTER_LOG_LEVEL`` (e.g. ``DEBUG``) to see diagnostic logging on
standard error.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Callable, Dict, Iterable, List, Optional, TextIO, Tuple

from event_counter import EventCounter, InputError, Neighbor
from treemap import RED

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "EVENT_COUNTER_LOG_LEVEL"

HELP = """\
 ______________________________________________________________
| map created, enter commands in specified format              |
|______________________________________________________________|
|* command: increase  | format increase <id_INT> <count_INT>   |
|* command: reduce    | format reduce   <id_INT> <count_INT>   |
|* command: count     | format count    <id_INT>               |
|* command: inRange   | format inrange  <id_INT> <id_INT>      |
|* command: next      | format next     <id_INT>               |
|* command: previous  | format previous <id_INT>               |
|* command: levelorder| format levelorder                      |
|* command: quit      | format quit                            |
|______________________________________________________________|"""

LEVEL_SEPARATOR = "-----------Next Level-----------"


class _ParamError(Exception):
    """A command parameter is missing or not an integer."""


# ----------------------------------------------------------------------
#  Input file
# ----------------------------------------------------------------------
def load_pairs(path: str) -> List[Tuple[int, int]]:
    """
    Read ``(id, count)`` pairs from *path*.

    The first non‑blank line is the number of pairs that follow; reading
    stops after that many pairs.  Blank lines are ignored.
    """
    pairs: List[Tuple[int, int]] = []
    expected: Optional[int] = None
    with open(path, encoding="utf-8") as stream:
        for lineno, line in enumerate(stream, start=1):
            if expected is not None and len(pairs) >= expected:
                break
            fields = line.split()
            if not fields:
                continue
            try:
                if expected is None:
                    if len(fields) != 1:
                        raise ValueError(line)
                    expected = int(fields[0])
                    continue
                if len(fields) != 2:
                    raise ValueError(line)
                pairs.append((int(fields[0]), int(fields[1])))
            except ValueError:
                raise InputError(f"{path}:{lineno}: malformed line {line.strip()!r}") from None
    if expected is not None and len(pairs) < expected:
        logger.warning("%s: header announces %d pairs, found %d", path, expected, len(pairs))
    logger.info("read %d pairs from %s", len(pairs), path)
    return pairs


# ----------------------------------------------------------------------
#  Command loop
# ----------------------------------------------------------------------
def _ints(args: List[str], wanted: int) -> List[int]:
    values = []
    for position in range(wanted):
        try:
            values.append(int(args[position]))
        except (IndexError, ValueError):
            raise _ParamError(f"Error! Param{position + 1} should be a integer value") from None
    return values


def _format_neighbor(neighbor: Optional[Neighbor]) -> str:
    return "0 0" if neighbor is None else f"{neighbor.key} {neighbor.count}"


def _level_order(counter: EventCounter) -> List[str]:
    out = []
    for row in counter.levels():
        for key, color, parent_key in row:
            parent = "nil" if parent_key is None else parent_key
            out.append(f"key {key} color {'RED' if color == RED else 'BLACK'} parent {parent}")
        out.append(LEVEL_SEPARATOR)
    return out


def _commands(counter: EventCounter) -> Dict[str, Tuple[int, Callable[..., object]]]:
    """Map command name -> (number of int params, handler returning output)."""

    def increase(key: int, amount: int) -> object:
        if amount <= 0:
            return "Not a valid input param 2 try again with value greater than 0"
        return counter.increase(key, amount)

    def reduce(key: int, amount: int) -> object:
        if amount <= 0:
            return "Not a valid input param 2 try again with value greater than 0"
        return counter.reduce(key, amount)

    def inrange(low: int, high: int) -> object:
        try:
            return counter.range_sum(low, high)
        except InputError:
            return "Error! key1 shall be less than key2"

    return {
        "increase": (2, increase),
        "reduce": (2, reduce),
        "count": (1, counter.count),
        "inrange": (2, inrange),
        "next": (1, lambda key: _format_neighbor(counter.next(key))),
        "previous": (1, lambda key: _format_neighbor(counter.previous(key))),
        "levelorder": (0, lambda: "\n".join(_level_order(counter))),
        "help": (0, lambda: HELP),
    }


def run(counter: EventCounter, lines: Iterable[str], out: TextIO) -> None:
    """Execute commands from *lines*, writing each result to *out*."""
    commands = _commands(counter)
    for line in lines:
        tokens = line.split()
        if not tokens:
            continue
        name = tokens[0].lower()
        if name == "quit":
            break
        if name not in commands:
            logger.debug("unknown command %r", tokens[0])
            print("Error! Wrong command or command format | enter commands in following format", file=out)
            print(HELP, file=out)
            continue
        arity, handler = commands[name]
        try:
            result = handler(*_ints(tokens[1:], arity))
        except _ParamError as exc:
            print(exc, file=out)
            continue
        if result != "":
            print(result, file=out)


def log_level() -> str:
    """Level name from ``EVENT_COUNTER_LOG_LEVEL``; unknown names fall back to WARNING."""
    name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    # getLevelName maps registered names to their numeric level
    return name if isinstance(logging.getLevelName(name), int) else "WARNING"


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    level = log_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    requested = os.environ.get(LOG_LEVEL_ENV)
    if requested is not None and requested.strip().upper() != level:
        logger.warning("unknown %s %r, using %s", LOG_LEVEL_ENV, requested, level)
    if len(argv) != 1:
        print("usage: event-counter <input_file>", file=sys.stderr)
        return 1

    counter = EventCounter()
    try:
        counter.build_from_sorted(load_pairs(argv[0]))
    except OSError as exc:
        print(f"Exception opening/reading file ! {exc}", file=sys.stderr)
        return 1
    except InputError as exc:
        print(f"Invalid input file: {exc}", file=sys.stderr)
        return 1

    print(HELP)
    run(counter, sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Convert benchstat comparison output to tab separated values.

Usage:
    python3 benchstat_to_tsv.py [-omiterr] [-sort] [-chart DIR] INPUT.txt

Handles:
- ``pkg: <import path>`` headers, one TSV block per package
- ``<name>-<cpus>  <value><unit>s ± <err>%`` data lines (units µ, m, n)
- sub-benchmarks (``Name/param-8``) as extra column groups of the same row

Values are normalized to microseconds and printed with their +err/-err
bounds. Lines that are neither headers nor data lines are echoed to stderr
with a ``?`` marker and skipped.
"""

import argparse
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

PKG_RE = re.compile(r"^pkg:\s*(?P<pkg>[A-Za-z0-9/._-]+)")
DATA_RE = re.compile(
    r"^(?P<name>.+)-(?P<cpus>\d+)\s+"
    r"(?P<val>[^\s±]+?)(?P<unit>[µμmn])s\s*±\s*(?P<error>[^\s%]+)%"
)

# Accepted forms of the val and error groups
VALUE_RE = re.compile(r"^\d+(?:\.\d+)?$")
ERROR_RE = re.compile(r"^\d+$")

# Multipliers to microseconds
UNIT_SCALE = {
    "µ": 1.0,
    "μ": 1.0,
    "m": 1000.0,
    "n": 1.0 / 1000.0,
}

DEFAULT_COLUMN = "default"


class ParseError(ValueError):
    """A matched numeric field could not be converted."""

    def __init__(self, message: str, line: str):
        super().__init__(f"{message}: {line}")
        self.line = line


@dataclass
class Measurement:
    coltitle: str
    value: float
    above: float
    below: float
    original: str


class BenchTable:
    """Measurements grouped as package -> row title -> [Measurement].

    Both levels keep insertion order. The first row of a package decides the
    column headers of the whole block.
    """

    def __init__(self):
        self.packages: dict[str, dict[str, list[Measurement]]] = {}
        self.current = ""

    def start_package(self, title: str):
        # A repeated header drops what was collected for that title.
        self.current = title
        self.packages[title] = {}

    def add(self, rowtitle: str, measurement: Measurement):
        rows = self.packages.setdefault(self.current, {})
        rows.setdefault(rowtitle, []).append(measurement)

    def items(self, sort: bool = False):
        """Yield (package, [(rowtitle, measurements), ...])."""
        titles = sorted(self.packages) if sort else list(self.packages)
        for title in titles:
            rows = self.packages[title]
            names = sorted(rows) if sort else list(rows)
            yield title, [(name, rows[name]) for name in names]

    def __len__(self) -> int:
        return len(self.packages)


def parse_package_header(line: str) -> str | None:
    """Return the package title of a ``pkg:`` line, or None."""
    if not line.startswith("pkg:"):
        return None
    m = PKG_RE.match(line)
    if not m:
        return None
    return m.group("pkg")


def split_name(name: str) -> tuple[str, str]:
    """Split ``Bench/sub`` into (row title, column title)."""
    rowtitle, sep, coltitle = name.partition("/")
    if not sep:
        return name, DEFAULT_COLUMN
    return rowtitle, coltitle


def parse_data_line(line: str) -> tuple[str, Measurement] | None:
    """Parse one benchmark result line.

    Returns (row title, Measurement), or None when the line is not a data
    line. Raises ParseError when the value or error percentage matched the
    pattern but is not a number.
    """
    m = DATA_RE.match(line)
    if not m:
        return None

    rowtitle, coltitle = split_name(m.group("name"))

    val = m.group("val")
    if not VALUE_RE.match(val):
        raise ParseError("could not parse value", line)
    value = float(val) * UNIT_SCALE[m.group("unit")]

    errs = m.group("error")
    if not ERROR_RE.match(errs):
        raise ParseError("could not parse error", line)
    errval = float(errs)

    delta = errval / 100
    return rowtitle, Measurement(
        coltitle=coltitle,
        value=value,
        above=value * (1 + delta),
        below=value * (1 - delta),
        original=line,
    )


def parse_report(text: str, table: BenchTable | None = None) -> BenchTable:
    """Parse benchstat output text into a BenchTable."""
    if table is None:
        table = BenchTable()

    for line in text.split("\n"):
        if line.startswith("pkg:"):
            title = parse_package_header(line)
            if title is None:
                print("? ", line, file=sys.stderr)
                continue
            table.start_package(title)
            continue

        parsed = parse_data_line(line)
        if parsed is None:
            print("? ", line, file=sys.stderr)
            continue
        rowtitle, measurement = parsed
        table.add(rowtitle, measurement)

    return table


def render_tsv(table: BenchTable, omit_err: bool = False, sort: bool = False) -> str:
    """Render one TSV block per package."""
    out = []
    for title, rows in table.items(sort=sort):
        out.append(f"# ---- {title} ----\n")

        if rows:
            _, first = rows[0]
            header = "#\t"
            for colgroup in first:
                if omit_err:
                    header += f"{colgroup.coltitle}\t"
                else:
                    header += f"{colgroup.coltitle}\t+err\t-err\t"
            out.append(header + "\n")

        for rowtitle, data in rows:
            line = f"{rowtitle}\t"
            for colgroup in data:
                if omit_err:
                    line += f"{colgroup.value:.2f}\t"
                else:
                    line += (
                        f"{colgroup.value:.2f}\t"
                        f"{colgroup.above:.2f}\t"
                        f"{colgroup.below:.2f}\t"
                    )
            out.append(line + "\n")

        out.append("\n")
    return "".join(out)


def write_tsv(
    table: BenchTable, out: TextIO, omit_err: bool = False, sort: bool = False
):
    out.write(render_tsv(table, omit_err=omit_err, sort=sort))


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Convert benchstat output to tab separated values"
    )
    parser.add_argument("input", help="benchstat output file")
    parser.add_argument(
        "-omiterr",
        "--omiterr",
        "--omit-err",
        dest="omit_err",
        action="store_true",
        help="leave out the +err/-err columns",
    )
    parser.add_argument(
        "-sort",
        "--sort",
        dest="sort",
        action="store_true",
        help="sort package and benchmark names (default: input order)",
    )
    parser.add_argument(
        "-chart",
        "--chart",
        dest="chart_dir",
        metavar="DIR",
        help="also write one SVG chart per package into DIR",
    )
    args = parser.parse_args(argv)

    input_path = Path(args.input)
    try:
        text = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {input_path}: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        table = parse_report(text)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    write_tsv(table, sys.stdout, omit_err=args.omit_err, sort=args.sort)

    if args.chart_dir:
        from benchstat_charts import generate_charts

        generate_charts(table, Path(args.chart_dir), omit_err=args.omit_err)


if __name__ == "__main__":
    main()

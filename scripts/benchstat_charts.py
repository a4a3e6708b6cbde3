#!/usr/bin/env python3
"""Generate SVG bar charts from parsed benchstat results.

Usage:
    python3 scripts/benchstat_charts.py INPUT.txt --output-dir docs/benchmarks

Writes one chart per package:
    docs/benchmarks/<package>.svg

Each benchmark row is a group of bars, one bar per column (sub-benchmark),
with the ±err range drawn as error bars. Values are in µs.
"""

import argparse
import re
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from benchstat_to_tsv import BenchTable, ParseError, parse_report

# ── Styling ──────────────────────────────────────────────────────────────────

COLUMN_COLORS = ["#4C72B0", "#DD8452", "#55A868", "#C44E52", "#8172B3", "#937860"]


def style_chart(ax: plt.Axes, title: str):
    ax.set_title(title, fontsize=13, fontweight="bold", pad=12)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.tick_params(axis="both", which="both", labelsize=9)
    ax.yaxis.set_major_formatter(ticker.FormatStrFormatter("%.1f"))


def chart_filename(title: str) -> str:
    """File name for a package title: example.com/foo -> example.com_foo.svg"""
    name = re.sub(r"[^A-Za-z0-9._-]", "_", title).strip("._")
    return f"{name or 'report'}.svg"


# ── Chart generators ─────────────────────────────────────────────────────────


def column_series(rows: list, ci: int):
    """Values and lower/upper error lengths of column ci across rows.

    Rows without a measurement at position ci get NaN, drawn as a gap.
    """
    import numpy as np

    values = []
    lower = []
    upper = []
    for _, data in rows:
        if ci < len(data):
            m = data[ci]
            values.append(m.value)
            lower.append(m.value - m.below)
            upper.append(m.above - m.value)
        else:
            values.append(np.nan)
            lower.append(np.nan)
            upper.append(np.nan)
    return values, lower, upper


def generate_package_chart(
    title: str, rows: list, output: Path, omit_err: bool = False
) -> bool:
    """Grouped bars per benchmark row. Returns False when there is nothing to draw."""
    if not rows:
        print(f"Warning: no benchmark rows for package {title!r}", file=sys.stderr)
        return False

    import numpy as np

    _, first = rows[0]
    columns = [m.coltitle for m in first]
    row_names = [name for name, _ in rows]

    fig, ax = plt.subplots(figsize=(max(8, len(row_names) * 1.5), 5))
    x = np.arange(len(row_names))
    width = 0.8 / len(columns)

    for ci, col in enumerate(columns):
        values, lower, upper = column_series(rows, ci)

        offset = (ci - len(columns) / 2 + 0.5) * width
        ax.bar(
            x + offset,
            values,
            width,
            label=col,
            color=COLUMN_COLORS[ci % len(COLUMN_COLORS)],
            yerr=None if omit_err else [lower, upper],
            capsize=0 if omit_err else 3,
        )

    ax.set_xticks(x)
    ax.set_xticklabels(row_names, rotation=30, ha="right")
    ax.set_ylabel("µs/op")
    if len(columns) > 1 or columns[0] != "default":
        ax.legend(loc="upper left", framealpha=0.9, fontsize=9)
    style_chart(ax, title or "benchmarks")

    fig.tight_layout()
    fig.savefig(str(output), format="svg", bbox_inches="tight")
    plt.close(fig)
    print(f"  Wrote {output}", file=sys.stderr)
    return True


def generate_charts(
    table: BenchTable, output_dir: Path, omit_err: bool = False
) -> list[Path]:
    """Write one SVG per package into output_dir and return the paths."""
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    used: set[str] = set()
    for title, rows in table.items():
        filename = chart_filename(title)
        stem = filename[: -len(".svg")]
        n = 1
        while filename in used:
            n += 1
            filename = f"{stem}_{n}.svg"
        if n > 1:
            print(
                f"Warning: chart name for {title!r} already taken, using {filename}",
                file=sys.stderr,
            )
        used.add(filename)

        output = output_dir / filename
        if generate_package_chart(title, rows, output, omit_err=omit_err):
            written.append(output)
    return written


# ── Main ─────────────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Generate SVG benchmark charts")
    parser.add_argument("input", help="benchstat output file")
    parser.add_argument(
        "--output-dir",
        default="docs/benchmarks",
        help="Output directory for SVG charts (default: docs/benchmarks)",
    )
    parser.add_argument(
        "--omit-err", action="store_true", help="Do not draw error bars"
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

    if not len(table):
        print("Error: no benchmark packages found", file=sys.stderr)
        sys.exit(1)

    print("Generating charts...")
    generate_charts(table, Path(args.output_dir), omit_err=args.omit_err)
    print("\nDone.")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
main.py - Command line entry point for the present packer

Usage:
    python main.py input.txt [--workers 4] [--strategy auto|backtracking|anchored|cp_sat]
                             [--region-seconds 30] [--report] [--layout] [--out-dir DIR]
"""
import argparse
import os
import sys

from config import CFG, STRATEGIES
from demand_parser import PuzzleFormatError, parse_puzzle
from io_files import write_layout_view_html, write_report
from packer.orchestrator import count_feasible, solve_regions
from progress import summary_line
from render import render_result

TITLE = "Day 12 - Christmas Tree Farm"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Count the regions every required present fits into")
    parser.add_argument("input", help="puzzle input file (shape blocks followed by WxH region lines)")
    parser.add_argument("--workers", type=int, default=None,
                        help=f"worker processes for regions (default: {CFG.WORKERS})")
    parser.add_argument("--strategy", choices=STRATEGIES, default=None,
                        help=f"search strategy (default: {CFG.STRATEGY})")
    parser.add_argument("--region-seconds", type=float, default=None,
                        help="timebox each region in an isolated child process")
    parser.add_argument("--report", action="store_true", help="write the placement report")
    parser.add_argument("--layout", action="store_true", help="write the HTML layout view")
    parser.add_argument("--out-dir", default=os.getcwd(), help="directory for report/layout files")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        with open(args.input, "r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        print(f"Error: could not load {args.input}: {exc}", file=sys.stderr)
        return 1

    try:
        shapes, regions = parse_puzzle(text)
    except PuzzleFormatError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    results = solve_regions(
        shapes,
        regions,
        workers=args.workers,
        region_seconds=args.region_seconds,
        strategy=args.strategy,
    )

    print(TITLE)
    print("=" * len(TITLE))
    print(f"Part 1: {count_feasible(results)}")
    print(summary_line(), file=sys.stderr)

    if args.report:
        path = write_report(results, args.out_dir)
        print(f"Report written to {path}")
    if args.layout:
        sections = []
        for n, res in enumerate(results, start=1):
            if res.ok:
                svg, legend = render_result(res.placed, res.region.w, res.region.h)
                sections.append((f"#{n} {res.region.label}", svg, legend))
        path = write_layout_view_html(sections, args.out_dir)
        print(f"Layout written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

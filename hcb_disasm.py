#!/usr/bin/env python3
"""Command-line interface for the HCB scenario disassembler."""

from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Optional, Sequence

from hcbdisasm import (
    Disassembler,
    DisassemblyError,
    IRTextRenderer,
    Nls,
    SymbolTable,
    serialize_program,
)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("input", type=Path, help="Scenario (.hcb) file to disassemble")
    parser.add_argument(
        "--nls",
        type=Nls.parse,
        default=Nls.SHIFT_JIS,
        help="Text encoding of scenario strings: shift_jis, gbk or utf8",
    )
    parser.add_argument(
        "--ir-out",
        type=Path,
        default=None,
        help="Override the default <input>.ir.txt output path",
    )
    parser.add_argument(
        "--json-out",
        type=Path,
        default=None,
        help="Additionally write the routine table as JSON",
    )
    parser.add_argument(
        "--symbols",
        type=Path,
        default=None,
        help="JSON file mapping routine addresses to names",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity of diagnostic messages written to stderr",
    )
    return parser.parse_args(argv)


def validate_inputs(path: Path) -> None:
    if not path.exists():
        raise SystemExit(f"missing input file: {path}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    start_time = time.perf_counter()
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    validate_inputs(args.input)

    symbols = SymbolTable.load(args.symbols)
    try:
        program = Disassembler.from_path(args.input, args.nls).disassemble()
    except DisassemblyError as exc:
        raise SystemExit(f"disassembly failed: {exc}") from exc

    ir_output_path = args.ir_out or args.input.with_suffix(".ir.txt")
    IRTextRenderer(symbols).write(program, ir_output_path)
    print(f"ir written to {ir_output_path}")

    if args.json_out is not None:
        payload = json.dumps(serialize_program(program), indent=2, ensure_ascii=False)
        args.json_out.write_text(payload, "utf-8")
        print(f"json written to {args.json_out}")

    total_time = time.perf_counter() - start_time
    print(f"total execution time: {total_time:.2f}s")


if __name__ == "__main__":
    main()

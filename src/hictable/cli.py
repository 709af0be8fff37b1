from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from .errors import HicTableError, ValidationError
from .formats import HicFormat, guess_format, parse_format
from .matrix import to_matrix
from .readers import load_hic
from .reporting import describe_table, write_json
from .synth import make_synthetic_table
from .table import DataType, Norm
from .writers import write_hic, write_matrix


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", type=str, required=True)
    p.add_argument("--input_format", type=str, default="auto", choices=["auto"] + [f.value for f in HicFormat])
    p.add_argument("--chrom", type=str, nargs="+", default=None)
    p.add_argument("--resolution", type=int, default=None)
    p.add_argument("--type", type=str, default=None, choices=[t.value for t in DataType])
    p.add_argument("--norm", type=str, default=None, choices=[n.value for n in Norm])
    p.add_argument("--genome", type=str, default=None)
    p.add_argument("--sample", type=str, default=None)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hictable")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    pc = sub.add_parser("convert", help="Convert a Hi-C file between formats")
    _add_input_args(pc)
    pc.add_argument("--output", type=str, required=True)
    pc.add_argument("--output_format", type=str, default=None, choices=[f.value for f in HicFormat])
    pc.add_argument("--juicer_tools", type=str, default=None, help="Path to juicer_tools.jar (.hic/.cool output)")
    pc.add_argument("--java", type=str, default=None)

    pi = sub.add_parser("info", help="Print metadata and record counts of a Hi-C file")
    _add_input_args(pi)
    pi.add_argument("--json", type=str, default=None, help="Also write the description to this JSON file")

    pm = sub.add_parser("matrix", help="Dump one chromosome as a dense TSV matrix")
    _add_input_args(pm)
    pm.add_argument("--output", type=str, required=True)
    pm.add_argument("--full_matrix", action=argparse.BooleanOptionalAction, default=False)
    pm.add_argument("--missing_score", type=float, default=float("nan"))

    ps = sub.add_parser("synth", help="Generate a small synthetic single-chromosome contact table")
    ps.add_argument("--output", type=str, required=True)
    ps.add_argument("--n_bins", type=int, default=256)
    ps.add_argument("--resolution", type=int, default=100_000)
    ps.add_argument("--chrom", type=str, default="chr1")
    ps.add_argument("--seed", type=int, default=0)
    ps.add_argument("--genome", type=str, default=None)
    ps.add_argument("--sample", type=str, default=None)

    return p


def _load(args: argparse.Namespace):
    fmt = guess_format(args.input) if args.input_format == "auto" else parse_format(args.input_format)

    kwargs: dict[str, Any] = {
        k: getattr(args, k)
        for k in ("type", "norm", "genome", "sample")
        if getattr(args, k) is not None
    }
    if args.chrom is not None:
        if fmt is HicFormat.JUICER_DUMP:
            if len(args.chrom) != 1:
                raise ValidationError("juicer_dump input holds exactly one chromosome; pass a single --chrom")
            kwargs["chrom"] = args.chrom[0]
        else:
            kwargs["chrom"] = args.chrom
    if fmt is HicFormat.JUICER_HIC and args.resolution is None:
        raise ValidationError("--resolution is required for .hic input")
    if args.resolution is not None:
        if fmt is HicFormat.COOL:
            logging.getLogger(__name__).warning("--resolution is ignored for .cool input")
        else:
            kwargs["resolution"] = args.resolution

    return load_hic(args.input, format=fmt, **kwargs)


def _run(args: argparse.Namespace) -> None:
    if args.cmd == "convert":
        table = _load(args)
        out_fmt = guess_format(args.output) if args.output_format is None else parse_format(args.output_format)
        kwargs: dict[str, Any] = {}
        if out_fmt in (HicFormat.JUICER_HIC, HicFormat.COOL):
            kwargs = {"juicer_tools": args.juicer_tools, "java": args.java}
        write_hic(table, args.output, format=out_fmt, **kwargs)
        print(f"Wrote {len(table)} records to:", Path(args.output).as_posix())
        return

    if args.cmd == "info":
        table = _load(args)
        print(table.summary())
        print("Chromosomes:", ", ".join(table.chroms()))
        if args.json:
            write_json(describe_table(table), args.json)
            print("Wrote:", Path(args.json).as_posix())
        return

    if args.cmd == "matrix":
        table = _load(args)
        chrom = args.chrom[0] if args.chrom else None
        mat, positions = to_matrix(
            table, chrom, missing_score=args.missing_score, full_matrix=bool(args.full_matrix)
        )
        chrom = chrom or table.chroms()[0]
        write_matrix(mat, positions, chrom, args.output)
        print(f"Wrote {mat.shape[0]}x{mat.shape[1]} matrix to:", Path(args.output).as_posix())
        return

    if args.cmd == "synth":
        table = make_synthetic_table(
            int(args.n_bins),
            resolution=int(args.resolution),
            chrom=str(args.chrom),
            seed=int(args.seed),
            genome=args.genome,
            sample=args.sample,
        )
        write_hic(table, args.output)
        print(f"Wrote {len(table)} records to:", Path(args.output).as_posix())
        return

    raise SystemExit(f"Unknown command: {args.cmd}")


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        _run(args)
    except (HicTableError, FileNotFoundError) as e:
        raise SystemExit(f"hictable: {e}") from e

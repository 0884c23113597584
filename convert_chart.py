#!/usr/bin/env python
import argparse
import logging
import pathlib
import sys

from maniaparser.classes.enums import ChartFormat
from maniaparser.convert import detect_format, get_parser, get_writer


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Converts SM/OSU/QUA/FSC chart files to another chart format.")
    parser.add_argument("filename", nargs="+", help="input SM/OSU/QUA/FSC file(s) to read")
    parser.add_argument(
        "--to", required=True, choices=[fmt.value for fmt in ChartFormat], help="format to convert the file(s) to"
    )
    parser.add_argument("--output-dir", action="store", help="directory to write to. defaults to the input's directory")
    parser.add_argument("--difficulty", action="store", help="difficulty to read from SM files with several charts")
    parser.add_argument("--validate", action="store_true", help="check each chart for problems before writing")
    parser.add_argument("--log-level", action="store", help="change logging level. invalid values are silently ignored")
    args = parser.parse_args(argv)

    log_level = logging.WARNING
    if args.log_level is not None:
        try:
            log_level_int = int(args.log_level)
            if log_level_int in logging._levelToName:
                log_level = log_level_int
        except ValueError:
            log_level_str = args.log_level.upper()
            log_level = logging._nameToLevel.get(log_level_str, log_level)
    logging.basicConfig(format="[%(levelname)s %(asctime)s] %(filename)s: %(message)s", level=log_level)

    target = ChartFormat(args.to)
    for fn in args.filename:
        try:
            fpath = pathlib.Path(fn)
            source = detect_format(fpath)
            kwargs = {"difficulty": args.difficulty} if source == ChartFormat.STEPMANIA else {}

            with fpath.open("r", encoding="utf-8-sig") as f:
                chart = get_parser(source, **kwargs).parse(f)
            if args.validate:
                chart.validate()

            out_dir = pathlib.Path(args.output_dir) if args.output_dir else fpath.parent
            out_path = out_dir / fpath.with_suffix(target.suffix).name
            output = get_writer(target).write_str(chart)
            with out_path.open("w", encoding="utf-8", newline="\n") as f:
                f.write(output)
            print(out_path)
        except Exception as err:
            print(f"{parser.prog}: {type(err).__name__}: {err}")
            print(f"{parser.prog}: error: unable to convert file, or no such file: {fn!r}")
            return 3

    return 0


if __name__ == "__main__":
    sys.exit(main())

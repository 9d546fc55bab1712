# Description: Command line interface for single note renders.
"""Command line entry point following the positional resampler contract."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import RenderConfig
from .params import RenderRequest, parse_pitch, parse_tempo
from .plugins import load_plugins, unload_plugins
from .resampler import render_file

__all__ = ["build_parser", "parse_request", "main"]

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicewarp",
        description="Analysis/resynthesis resampler for one note of a voice sample.",
    )
    parser.add_argument("in_file", help="source WAV file")
    parser.add_argument("out_file", help="destination WAV file")
    parser.add_argument("pitch", help="MIDI note number or note name such as C#4")
    parser.add_argument("velocity", help="consonant velocity in percent")
    parser.add_argument("flags", help="flag string, e.g. g-5B60")
    parser.add_argument("offset", help="offset into the sample in ms")
    parser.add_argument("length", help="requested note length in ms")
    parser.add_argument("consonant", help="fixed consonant length in ms")
    parser.add_argument("cutoff", help="cutoff in ms; negative is measured from the offset")
    parser.add_argument("volume", help="volume in percent")
    parser.add_argument("modulation", help="source pitch modulation in percent")
    parser.add_argument("tempo", help="tempo in BPM, optionally prefixed with !")
    parser.add_argument("pitchbend", nargs="?", default=None, help="encoded pitch bend")
    parser.add_argument("--config", default=None, help="JSON configuration file")
    return parser


def _number(name: str, text: str) -> float:
    try:
        return float(text)
    except ValueError as error:
        raise ValueError(f"Invalid {name} value '{text}'") from error


def parse_request(args: argparse.Namespace) -> RenderRequest:
    """Convert parsed positional strings into a :class:`RenderRequest`."""
    return RenderRequest(
        in_file=args.in_file,
        out_file=args.out_file,
        pitch=parse_pitch(args.pitch),
        velocity=_number("velocity", args.velocity),
        flags=args.flags,
        offset=_number("offset", args.offset),
        length=_number("length", args.length),
        consonant=_number("consonant", args.consonant),
        cutoff=_number("cutoff", args.cutoff),
        volume=_number("volume", args.volume),
        modulation=_number("modulation", args.modulation),
        tempo=parse_tempo(args.tempo),
        pitchbend=args.pitchbend or None,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = RenderConfig.from_file(args.config) if args.config else RenderConfig()
        logging.basicConfig(level=config.general.level, format=_LOG_FORMAT)
        request = parse_request(args)
        plugins = load_plugins(config.plugins)
        try:
            path = render_file(request, config, plugins)
        finally:
            unload_plugins(plugins)
    except Exception as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    logger.info("Wrote %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())

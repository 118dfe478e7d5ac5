"""Command line entry: prepare a sample, or run a simulation from a configuration file."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from .sample import set_sample
from .simulation import BuriedPipe


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Without argument, build input.txt from prepa.txt; otherwise integrate the given file."""
    parser = argparse.ArgumentParser(
        prog="buriedpipe",
        description="Disks around a deformable pipe in a periodic cell.",
    )
    parser.add_argument("conf", nargs="?", help="configuration file to start from")
    args = parser.parse_args(argv)

    sim = BuriedPipe()
    try:
        if args.conf is None:
            set_sample(sim)
            sim.save_conf("input.txt")
            return 0
        sim.load_conf(args.conf)
    except (OSError, ValueError) as exc:
        print(f"buriedpipe: {exc}", file=sys.stderr)
        return 1

    print("Beginning iterations.")
    sim.integrate()
    print("End of iterations.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
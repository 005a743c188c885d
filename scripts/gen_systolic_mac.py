#!/usr/bin/env python3
"""Generate SystolicMac / Tiny Tapeout top Verilog from sysmac."""

import argparse
import sys
from pathlib import Path

# Add src to path if running from scripts/
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from amaranth.back import verilog  # noqa: E402

from sysmac.config import MacArrayConfig  # noqa: E402
from sysmac.top import SystolicMac, TinyTapeoutTop  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=project_root / "gen",
        help="Directory for generated Verilog (default: gen/)",
    )
    parser.add_argument(
        "--tt-name",
        default="tt_um_systolic_mac",
        help="Module name of the Tiny Tapeout top (default: tt_um_systolic_mac)",
    )
    parser.add_argument(
        "--lanes",
        type=int,
        default=4,
        help="Number of MAC lanes (default: 4)",
    )
    parser.add_argument(
        "--core-only",
        action="store_true",
        help="Only generate the bare core, not the Tiny Tapeout wrapper",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    args.out_dir.mkdir(parents=True, exist_ok=True)

    config = MacArrayConfig(num_lanes=args.lanes)

    output_path = args.out_dir / "systolic_mac.v"
    with open(output_path, "w") as f:
        f.write(verilog.convert(SystolicMac(config), name="SystolicMac"))
    print(f"Generated {output_path}")

    if args.core_only:
        return

    output_path = args.out_dir / f"{args.tt_name}.v"
    with open(output_path, "w") as f:
        f.write(verilog.convert(TinyTapeoutTop(config), name=args.tt_name))
    print(f"Generated {output_path}")


if __name__ == "__main__":
    main()

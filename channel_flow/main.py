"""
Main entry point for the real-time 1D Saint-Venant channel solver.

Runs a channel frame by frame, as a host engine would, and saves the history
of the depth and discharge to HDF5.

Usage:
    python -m channel_flow.main <parameter_file> [options]

Examples:
    python -m channel_flow.main parameters.json
    python -m channel_flow.main parameters.json --output my_solution.h5
"""

import sys

from channel_flow.solver.data_file import DataFile
from channel_flow.solver.runner import FrameRunner


def main(argv=None):
    """Main function to run the channel solver."""
    argv = sys.argv if argv is None else argv

    # -------------------------------------------------------
    # Check command line arguments
    # -------------------------------------------------------
    if len(argv) < 2:
        print("\033[91mPlease, enter the name of your JSON parameter file.\033[0m")
        print("Usage: python -m channel_flow.main <parameters.json> [options]")
        print("Options:")
        print("  --output FILE    Specify custom output filename (saved in results_dir)")
        print("\nNote: Results are always saved in the directory specified in the parameter file")
        return -1

    output_filename = None
    if '--output' in argv:
        idx = argv.index('--output')
        if idx + 1 < len(argv):
            output_filename = argv[idx + 1]

    # -------------------------------------------------------
    # Read parameter file
    # -------------------------------------------------------
    data_file = DataFile(argv[1])
    try:
        data_file.read_data_file(verbosity=0)
    except (FileNotFoundError, ValueError) as exc:
        print(f"\033[91mERROR::DATAFILE : {exc}\033[0m")
        return -1

    print("Solving 1D St-Venant equations in a channel with the following parameters")
    print('=' * 50)
    data_file.print_data()

    # -------------------------------------------------------
    # Build channel and run
    # -------------------------------------------------------
    try:
        runner = FrameRunner(data_file)
    except ValueError as exc:
        print(f"\033[91mERROR::CHANNEL : {exc}\033[0m")
        return -1

    print('=' * 50)
    runner.solve(verbosity=1, output_filename=output_filename)

    print("\033[92mSolved\033[0m")
    return 0


if __name__ == "__main__":
    sys.exit(main())

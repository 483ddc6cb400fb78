"""Command line interface.

Example::

    peptidescan -in /data/1D25/commonRNAseq/ /data/2D25/commonRNAseq/ \\
        -psm "DB search psm.csv" -db uniprot.fasta.gz -cdb combined.fa \\
        -idb /data/individual_dbs/ -out /data/results/ \\
        -target COPD -control Control -threads 4

Exit codes: 0 success, 1 input or format error, 126 wrong command line
parameters, 127 unexpected error.
"""

import argparse
import logging
import sys

from peptidescan import __version__
from peptidescan.constants import DEFAULT_THREADS

logger = logging.getLogger()

EXIT_CODE_USER_ERROR = 1
EXIT_CODE_WRONG_CLI_PARAM = 126
EXIT_CODE_UNKNOWN_ERROR = 127

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

REQUIRED = {
    "input_dirs": "-in",
    "psm": "-psm",
    "database": "-db",
    "combined_database": "-cdb",
    "individual_database_dir": "-idb",
    "output": "-out",
    "target": "-target",
    "control": "-control",
}

parser = argparse.ArgumentParser(
    prog="peptidescan",
    description=(
        "Match PSM peptides to UniProt, combined and individual sample databases "
        "and compare scan IDs across the three tiers"
    ),
    add_help=False,
)
parser.add_argument("-h", "-help", dest="help", action="store_true", help="Show this help and exit")
parser.add_argument("-version", action="store_true", help="Print version and exit")
parser.add_argument(
    "-in",
    dest="input_dirs",
    nargs="+",
    metavar="DIR",
    help="Dataset folder(s) with one sub-folder per sample (/home/name/1D25/commonRNAseq/)",
)
parser.add_argument(
    "-psm",
    metavar="NAME",
    help='Name of the PSM file in each sample folder; quote names with spaces ("DB search psm.csv")',
)
parser.add_argument("-db", dest="database", metavar="FASTA", help="UniProt database (.fa, .fasta, optionally .gz)")
parser.add_argument("-cdb", dest="combined_database", metavar="FASTA", help="Combined database (.fa, .fasta, optionally .gz)")
parser.add_argument(
    "-idb",
    dest="individual_database_dir",
    metavar="DIR",
    help="Folder with one database per sample (COPD3.fasta, Control_1.fa.gz, ...)",
)
parser.add_argument("-out", dest="output", metavar="DIR", help="Output folder")
parser.add_argument("-target", metavar="NAME", help="Target sample prefix, case-sensitive (COPD)")
parser.add_argument("-control", metavar="NAME", help="Control sample prefix, case-sensitive (Control)")
parser.add_argument(
    "-threads",
    type=int,
    default=DEFAULT_THREADS,
    help=f"Number of worker threads (default: {DEFAULT_THREADS})",
)
parser.add_argument(
    "-timeout",
    type=float,
    default=None,
    metavar="SECONDS",
    help="Give up when workers do not finish a step within this time (default: wait forever)",
)
parser.add_argument(
    "-exclude-transcripts",
    dest="exclude_transcripts",
    action="store_true",
    help="Ignore bare Ensembl transcript accessions (ENST...)",
)
parser.add_argument(
    "-log-level",
    dest="log_level",
    default="INFO",
    choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    help="Logging level (default: INFO)",
)


def init_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def run(argv=None) -> int:
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit:
        # argparse already printed the reason
        return EXIT_CODE_WRONG_CLI_PARAM

    if unknown:
        print(f"Unknown arguments: {unknown}")
        parser.print_help()
        return EXIT_CODE_WRONG_CLI_PARAM

    if args.help:
        parser.print_help()
        return 0

    if args.version:
        print(f"{__version__}")
        return 0

    missing = [flag for dest, flag in REQUIRED.items() if not getattr(args, dest)]
    if missing:
        print(f"Missing required arguments: {' '.join(missing)}")
        parser.print_help()
        return EXIT_CODE_WRONG_CLI_PARAM

    # load modules only here to keep -h and -version fast
    from peptidescan.config import PipelineConfig
    from peptidescan.exceptions import PeptideScanError
    from peptidescan.pipeline import PeptideScanPipeline

    init_logging(args.log_level)
    logger.info(f"peptidescan {__version__}")

    try:
        config = PipelineConfig.from_args(args)
        result = PeptideScanPipeline(config).run()

    except Exception as e:
        if isinstance(e, PeptideScanError):
            exit_code = EXIT_CODE_USER_ERROR
        else:
            import traceback

            logger.info(traceback.format_exc())
            exit_code = EXIT_CODE_UNKNOWN_ERROR

        logger.error(e)
        return exit_code

    logger.info(f"✓ Done, results in {', '.join(str(p) for p in result.output_files)}")
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()

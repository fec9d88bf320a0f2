""" paperkey command line: extract secrets to paper, or restore them """

import argparse
import logging
import sys
import time

from .version import __version__
from .config import Options
from .exceptions import PaperkeyException
from .extract import extract
from .output import FILE_FORMAT, DataType, decode, encode
from .restore import restore

logger = logging.getLogger(__name__)

def setup_logging(log_level):
    logging.basicConfig(
        level = getattr(logging, log_level),
        format = "%(name)s: %(levelname)s: %(message)s",
        stream = sys.stderr,
        force = True,
    )

def build_parser():
    parser = argparse.ArgumentParser(
        prog = "paperkey",
        description = "Extract the secret part of an OpenPGP key for paper backup, "
                      "or restore it with the help of the public key.",
    )
    parser.add_argument("--version", action = 'version', version = "%(prog)s " + __version__)
    parser.add_argument(
        "-v", "--verbose", dest = 'verbosity', action = 'count', default = 0,
        help = "increase output verbosity (can be repeated)",
    )
    parser.add_argument(
        "--output", metavar = "FILE",
        help = "write the result to this file instead of stdout",
    )
    parser.add_argument(
        "--file-format", action = 'store_true',
        help = "show the secrets file format and exit",
    )

    extract_args = parser.add_argument_group("extraction options")
    extract_args.add_argument(
        "--secret-key", metavar = "FILE",
        help = "read the secret key from this file instead of stdin",
    )
    extract_args.add_argument(
        "--output-type", choices = DataType.output_types,
        help = "base16 text (default) or raw binary",
    )
    extract_args.add_argument(
        "--output-width", metavar = "N", type = int,
        help = "maximum width of base16 lines (default 78)",
    )
    extract_args.add_argument(
        "--comment", metavar = "TEXT",
        help = "add a comment to the base16 header",
    )

    restore_args = parser.add_argument_group("restoration options")
    restore_args.add_argument(
        "--pubring", metavar = "FILE",
        help = "public keyring to restore the secret key into",
    )
    restore_args.add_argument(
        "--secrets", metavar = "FILE",
        help = "read the extracted secrets from this file instead of stdin",
    )
    restore_args.add_argument(
        "--input-type", choices = DataType.input_types,
        help = "format of the secrets (default: detect)",
    )
    restore_args.add_argument(
        "--ignore-crc-error", dest = 'ignore_checksum_errors', action = 'store_true', default = None,
        help = "do not fail on CRC and checksum errors (use with care)",
    )
    return parser

def _read(path):
    if path is None or path == '-':
        return sys.stdin.buffer.read()
    with open(path, 'rb') as f:
        return f.read()

def _write(path, data):
    if path is None or path == '-':
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    with open(path, 'wb') as f:
        f.write(data)

def run(args, options):
    """ Returns the bytes to write; nothing is written on failure """
    if args.pubring:
        public_keyring = _read(args.pubring)
        secrets = _read(args.secrets)
        records = decode(secrets, options.input_type, options.ignore_checksum_errors)
        logger.info("read secrets for %d keys", len(records))
        return restore(public_keyring, records)

    records = extract(_read(args.secret_key))
    logger.info("extracted %d secret keys", len(records))
    return encode(records, options.output_type, options.output_width, options.comment, time.time())

def main(argv = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.file_format:
        sys.stdout.write(FILE_FORMAT)
        return 0

    if args.secrets and not args.pubring:
        parser.error("--secrets needs --pubring")

    try:
        options = Options.from_env(
            output_type = args.output_type,
            output_width = args.output_width,
            comment = args.comment,
            input_type = args.input_type,
            ignore_checksum_errors = args.ignore_checksum_errors,
            log_level = {0: None, 1: 'INFO'}.get(args.verbosity, 'DEBUG'),
        )
    except ValueError as e:
        parser.error(str(e))

    setup_logging(options.normalized_log_level)

    try:
        result = run(args, options)
    except PaperkeyException as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("%s: %s", e.filename or "I/O error", e.strerror or e)
        return 1

    _write(args.output, result)
    return 0

if __name__ == '__main__':
    sys.exit(main())

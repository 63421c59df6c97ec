import sys
import os
from optparse import OptionParser


def exec_main(options, args, function):
    if not options.output and not options.dryrun:
        sys.stderr.write("-o/--output required\n")
        sys.exit(1)
    else:
        if not options.dryrun and not os.path.exists(options.output):
            sys.stderr.write(
                "-o/--output points to a directory that does not exist\n")
            sys.exit(1)
        if not options.dryrun and not os.path.isdir(options.output):
            sys.stderr.write(
                "-o/--output points to a file, it must point to a directory\n")
            sys.exit(1)
        if options.slug and len(args) > 1:
            sys.stderr.write("--slug can only be used with a single file\n")
            sys.exit(1)
        for arg in args:
            function(arg, options)


def option_parser(usage):
    parser = OptionParser(usage=usage)
    parser.add_option(
        "-o", "--output", dest="output",
        help="Output data directory. Records are written under <output>/<type>/. (required)")
    parser.add_option(
        "-d", "--dry-run", dest="dryrun", default=False, action="store_true",
        help="Dry run (no actual output)")
    parser.add_option(
        "-k", "--skip-schema", dest="skip_schema", default=False, action="store_true",
        help="Skip schema validation")
    parser.add_option(
        "-s", "--stdout", dest="stdout", default=False, action="store_true",
        help="Write json to stdout")
    parser.add_option(
        "--slug", dest="slug", default=None,
        help="Slug of the parsed page (default: derived from the file name)")
    return parser


def fetch_option_parser(usage):
    parser = option_parser(usage)
    parser.add_option(
        "-r", "--retries", dest="retries", type="int", default=4,
        help="Retries for transient HTTP failures (default: 4)")
    parser.add_option(
        "--debug", dest="debug", default=False, action="store_true",
        help="Write retry diagnostics to stderr")
    return parser

#!python
import argparse
import logging
import platform
import sys
import time
from functools import partial
from typing import Dict, List, Optional

from . import __version__
from . import config as _config
from . import util as _util
from .bam.evidence import count_partition
from .bam.header import (
    Region,
    bam_sample_name,
    extract_sample_name,
    headers_compatible,
    load_header,
    parse_region,
)
from .candidate import SVCandidate, read_candidates
from .constants import EXIT_ERROR, EXIT_OK, SAMPLE_ROLE, SUBCOMMAND
from .counts import (
    CohortCounts,
    count_partitions,
    merge_counts,
    read_counts,
    write_counts,
    write_counts_summary,
)
from .error import ConfigurationError, RegionParseError
from .scoring import PrecomputedScorer
from .util import filepath
from .writer import SVWriter


def create_parser(argv):
    parser = argparse.ArgumentParser(formatter_class=_config.CustomHelpFormatter)
    parser.add_argument(
        '-v',
        '--version',
        action='version',
        version='%(prog)s version ' + __version__,
        help='Outputs the version number',
    )
    subp = parser.add_subparsers(
        dest='command', help='specifies which subprogram to use'
    )
    subp.required = True
    required = {}  # hold required argument group by subparser command name
    optional = {}  # hold optional argument group by subparser command name
    for command in SUBCOMMAND:
        subparser = subp.add_parser(
            command.value, formatter_class=_config.CustomHelpFormatter, add_help=False
        )
        required[command] = subparser.add_argument_group('required arguments')
        optional[command] = subparser.add_argument_group('optional arguments')
        optional[command].add_argument(
            '-h', '--help', action='help', help='show this help message and exit'
        )
        optional[command].add_argument('--log', help='redirect stdout to a log file', default=None)
        optional[command].add_argument(
            '--log_level',
            help='level of logging to output',
            choices=['INFO', 'DEBUG'],
            default='INFO',
        )

    for command in [SUBCOMMAND.REGION, SUBCOMMAND.SAMPLE_NAME, SUBCOMMAND.COUNT]:
        required[command].add_argument(
            '--bam', '-b', help='path to the alignment file', type=filepath, required=True
        )
    required[SUBCOMMAND.CHECK_HEADERS].add_argument(
        '--bam',
        '-b',
        nargs=2,
        help='paths to the two alignment files to compare',
        type=filepath,
        required=True,
    )

    # region
    required[SUBCOMMAND.REGION].add_argument(
        'regions', nargs='+', help='region(s) to resolve, CONTIG[:START[-END]] (1-based)'
    )

    # sample name
    optional[SUBCOMMAND.SAMPLE_NAME].add_argument(
        '--default', default='SAMPLE', help='name to use when the header has no SM tag'
    )

    # count
    required[SUBCOMMAND.COUNT].add_argument(
        '--role', choices=[role.value for role in SAMPLE_ROLE], required=True,
        help='the role of the sample in the run'
    )
    optional[SUBCOMMAND.COUNT].add_argument(
        '--regions', nargs='+', default=[],
        help='partitions to count, CONTIG[:START[-END]]. Defaults to one partition per contig',
    )
    optional[SUBCOMMAND.COUNT].add_argument(
        '--processes', type=int, default=_util.get_env_variable('processes', 1),
        help='number of partitions to count in parallel',
    )
    optional[SUBCOMMAND.COUNT].add_argument(
        '--min_mapq', type=int, default=_util.get_env_variable('min_mapq', 15),
        help='reads below this mapping quality are excluded before classification',
    )
    optional[SUBCOMMAND.COUNT].add_argument(
        '--max_fragment_size', type=int, default=1000,
        help='largest fragment size of a proper read pair',
    )

    # merge counts
    required[SUBCOMMAND.MERGE_COUNTS].add_argument(
        '-n', '--inputs', nargs='+', help='path to the counts files', required=True,
        metavar='FILEPATH',
    )
    for command in [SUBCOMMAND.COUNT, SUBCOMMAND.MERGE_COUNTS]:
        required[command].add_argument(
            '--outputfile', '-o', required=True, help='path to the output counts file', metavar='FILEPATH'
        )
        optional[command].add_argument(
            '--summary', help='path to write a tab-delimited summary of the counts to',
            metavar='FILEPATH', default=None,
        )

    # write
    required[SUBCOMMAND.WRITE].add_argument(
        '--config', '-c', help='path to the JSON config file', type=filepath, required=True
    )
    required[SUBCOMMAND.WRITE].add_argument(
        '-n', '--inputs', nargs='+', help='path to the candidate files', required=True,
        metavar='FILEPATH',
    )

    return parser, parser.parse_args(argv)


def region_main(bam: str, regions: List[str]) -> int:
    header = load_header(bam)
    status = EXIT_OK
    for region in regions:
        try:
            tid, start, end = parse_region(header, region)
        except RegionParseError as err:
            _util.logger.error(str(err))
            status = EXIT_ERROR
            continue
        print('\t'.join([region, str(tid), header.references[tid], str(start), str(end)]))
    return status


def check_headers_main(bams: List[str]) -> int:
    first, second = [load_header(bam) for bam in bams]
    if headers_compatible(first, second):
        _util.logger.info(f'headers are compatible: {bams[0]} {bams[1]}')
        return EXIT_OK
    _util.logger.error(f'headers are not compatible: {bams[0]} {bams[1]}')
    return EXIT_ERROR


def count_main(
    bam: str,
    role: str,
    regions: List[str],
    outputfile: str,
    processes: int = 1,
    min_mapq: int = 15,
    max_fragment_size: int = 1000,
    summary: Optional[str] = None,
) -> None:
    role = SAMPLE_ROLE(role)
    if not regions:
        regions = list(load_header(bam).references)
    sample_counts = count_partitions(
        regions,
        partial(count_partition, bam, min_mapq=min_mapq, max_fragment_size=max_fragment_size),
        processes=processes,
    )
    counts = CohortCounts()
    counts.select(role).merge(sample_counts)
    write_counts(outputfile, counts)
    if summary:
        write_counts_summary(summary, counts, roles=[role])


def merge_counts_main(inputs: List[str], outputfile: str, summary: Optional[str] = None) -> None:
    counts = merge_counts([read_counts(filename) for filename in inputs])
    write_counts(outputfile, counts)
    if summary:
        write_counts_summary(summary, counts)


def in_regions(candidate: SVCandidate, header, regions: List[Region]) -> bool:
    """
    checks if the first breakend of a candidate falls within any of the regions
    """
    if not regions:
        return True
    break1 = candidate.junctions[0].break1
    if break1.chr not in header.references:
        return False
    tid = header.references.index(break1.chr)
    return any([region.contains(tid, break1.start - 1) for region in regions])


def write_main(inputs: List[str], config: Dict, start_time: Optional[int] = None) -> None:
    options = _config.RunOptions.from_config(config)

    headers = {role: [load_header(bam) for bam in options.bams(role)] for role in options.roles}
    all_headers = [header for role in options.roles for header in headers[role]]
    reference_header = all_headers[0]
    for bam, header in zip(options.normal_bams + options.tumor_bams, all_headers):
        if not headers_compatible(reference_header, header):
            raise ConfigurationError('alignment file header is not compatible with the other inputs', bam)

    sample_names = {}
    for role in options.roles:
        name = options.sample_names.get(role)
        if not name:
            name = extract_sample_name(str(headers[role][0]), role.value.upper())
        sample_names[role] = name
        _util.logger.info(f'{role.value} sample: {name}')

    # regions given in the config are fatal on error
    regions = [parse_region(reference_header, region) for region in options.regions]

    candidates = []
    for filename in inputs:
        candidates.extend(read_candidates(filename))
    selected = [c for c in candidates if in_regions(c, reference_header, regions)]
    _util.logger.info(f'{len(selected)} of {len(candidates)} candidates in the requested regions')

    counts = read_counts(options.counts_file) if options.counts_file else None

    with SVWriter(options, PrecomputedScorer(), sample_names=sample_names, counts=counts) as writer:
        for candidate in selected:
            filtered = {
                junction.index: bool(junction.data.get('filtered', False))
                for junction in candidate.junctions
            }
            writer.write_sv(candidate, filtered)
    _util.generate_complete_stamp(options.output_dir, start_time=start_time)


def main(argv: Optional[List[str]] = None):
    """
    sets up the parser and checks the validity of command line args
    redirects into subcommand main functions

    Args:
        argv: List of arguments, defaults to command line arguments
    """
    if argv is None:  # need to do at run time or patching will not behave as expected
        argv = sys.argv[1:]
    start_time = int(time.time())
    parser, args = create_parser(argv)

    log_conf = {
        'format': '{asctime} [{levelname}] {message}',
        'style': '{',
        'level': args.log_level,
    }

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    if args.log:  # redirect stdout AND stderr to a log file
        log_conf['filename'] = args.log
    logging.basicConfig(**log_conf)

    _util.logger.info(f'svjunction: {__version__}')
    _util.logger.info(f'hostname: {platform.node()}')
    _util.log_arguments(args)

    command = SUBCOMMAND(args.command)

    if command == SUBCOMMAND.WRITE:
        config = _config.load_config(args.config)
        try:
            args.inputs = _util.bash_expands(*args.inputs)
        except FileNotFoundError:
            parser.error('--inputs file(s) for {} {} do not exist'.format(command.value, args.inputs))
        write_main(args.inputs, config, start_time=start_time)
    elif command == SUBCOMMAND.REGION:
        return region_main(args.bam, args.regions)
    elif command == SUBCOMMAND.CHECK_HEADERS:
        return check_headers_main(args.bam)
    elif command == SUBCOMMAND.SAMPLE_NAME:
        print(bam_sample_name(args.bam, args.default))
    elif command == SUBCOMMAND.COUNT:
        count_main(
            args.bam,
            args.role,
            args.regions,
            args.outputfile,
            processes=args.processes,
            min_mapq=args.min_mapq,
            max_fragment_size=args.max_fragment_size,
            summary=args.summary,
        )
    elif command == SUBCOMMAND.MERGE_COUNTS:
        try:
            args.inputs = _util.bash_expands(*args.inputs)
        except FileNotFoundError:
            parser.error('--inputs file(s) for {} {} do not exist'.format(command.value, args.inputs))
        merge_counts_main(args.inputs, args.outputfile, summary=args.summary)
    else:
        raise NotImplementedError('invalid sub-command', command)

    duration = int(time.time()) - start_time
    _util.logger.info(f'run time (s): {duration}')
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())

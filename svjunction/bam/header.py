"""
resolves region strings and sample names against the header of an alignment file
"""
import re
from typing import NamedTuple

import pysam

from ..error import InvalidCoordinateError, MalformedRegionError

SAMPLE_NAME_TAG = 'SM:'
REGION_FIELD_SEP = ':'
REGION_RANGE_SEP = '-'
COORDINATE_PATTERN = re.compile(r'[+-]?\d+', re.ASCII)


class Region(NamedTuple):
    """
    a resolved genomic region, 0-based half-open on the contig with index tid
    """

    tid: int
    start: int
    end: int

    def contains(self, tid: int, pos: int) -> bool:
        """
        Args:
            tid: the contig index
            pos: a 0-based position
        """
        return tid == self.tid and self.start <= pos < self.end


def _contig_table(header):
    """
    returns the contig names and lengths of a header as parallel tuples. Accepts a pysam.AlignmentHeader,
    an open pysam.AlignmentFile or anything else with references and lengths attributes
    """
    return tuple(header.references), tuple(header.lengths)


def load_header(filename: str) -> pysam.AlignmentHeader:
    """
    read the header of an alignment file (bam/cram/sam)
    """
    with pysam.AlignmentFile(filename, 'r', check_sq=False) as fh:
        return pysam.AlignmentHeader.from_dict(fh.header.to_dict())


def _parse_coordinate(value: str, region: str) -> int:
    if not COORDINATE_PATTERN.fullmatch(value):
        raise InvalidCoordinateError(
            f'cannot parse region [{region}]: coordinate is not an integer: {repr(value)}'
        )
    return int(value)


def parse_region(header, region: str) -> Region:
    """
    parse a region string of the form CONTIG[:START[-END]] against the contigs of a header

    START is given as 1-based and converted to 0-based. END is returned as given which makes the
    result a 0-based half-open range. Missing coordinates default to the full length of the contig

    Args:
        header: the header to resolve contig names against
        region: the region string

    Returns:
        the resolved region

    Raises:
        MalformedRegionError: the region does not follow the expected pattern or the contig is not in the header
        InvalidCoordinateError: a coordinate is not an integer

    Example:
        >>> parse_region(header, 'chr1:100-200')
        Region(tid=0, start=99, end=200)
    """
    words = region.split(REGION_FIELD_SEP)
    if not words[0]:
        raise MalformedRegionError(f'cannot parse region [{region}]: missing contig name')
    if len(words) > 2:
        raise MalformedRegionError(
            f'cannot parse region [{region}]: too many colon-separated fields'
        )
    references, lengths = _contig_table(header)

    try:
        tid = references.index(words[0])
    except ValueError:
        raise MalformedRegionError(
            f'cannot parse region [{region}]: contig not found in header: {repr(words[0])}'
        )
    start, end = 0, lengths[tid]

    if len(words) == 1:
        return Region(tid, start, end)

    positions = words[1].split(REGION_RANGE_SEP)
    if len(positions) > 2:
        raise MalformedRegionError(
            f'cannot parse region [{region}]: too many dash-separated fields'
        )
    start = _parse_coordinate(positions[0], region) - 1
    if len(positions) == 2:
        end = _parse_coordinate(positions[1], region)
    return Region(tid, start, end)


def headers_compatible(first, second) -> bool:
    """
    checks that two headers list the same contigs, with the same lengths, in the same order

    Example:
        >>> headers_compatible(header, header)
        True
    """
    return _contig_table(first) == _contig_table(second)


def extract_sample_name(header_text: str, default: str) -> str:
    """
    get the sample name from the header text of an alignment file. The first tab or newline delimited
    token containing the SM: tag is used and no validation is done on the name found

    Args:
        header_text: the raw header text
        default: the name to return when no sample tag is found

    Example:
        >>> extract_sample_name('@RG\\tID:1\\tSM:Sample1\\n', 'default')
        'Sample1'
    """
    for token in re.split(r'[\t\n]+', header_text):
        pos = token.find(SAMPLE_NAME_TAG)
        if pos >= 0:
            return token[pos + len(SAMPLE_NAME_TAG) :]
    return default


def bam_sample_name(filename: str, default: str) -> str:
    """
    get the sample name from the read group records of an alignment file
    """
    return extract_sample_name(str(load_header(filename)), default)

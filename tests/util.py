import os

import pysam

from svjunction.candidate import SVJunction
from svjunction.breakpoint import Breakpoint


def package_relative_file(*paths):
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..', *paths))


def mock_junction(
    index=0,
    candidate_id='1',
    chr1='1',
    pos1=1000,
    orient1='L',
    chr2='1',
    pos2=5000,
    orient2='R',
    **kwargs
):
    return SVJunction(
        Breakpoint(chr1, pos1, orient=orient1),
        Breakpoint(chr2, pos2, orient=orient2),
        index=index,
        candidate_id=candidate_id,
        **kwargs
    )


def read_records(filename):
    """
    read a record stream back into a list of rows. Returns the meta lines and the rows
    """
    meta = {}
    header = None
    rows = []
    with open(filename, 'r') as fh:
        for line in fh.readlines():
            line = line.rstrip('\n')
            if line.startswith('##'):
                key, value = line[2:].split('=', 1)
                meta[key] = value
            elif line.startswith('#'):
                header = line[1:].split('\t')
            elif line:
                rows.append(dict(zip(header, line.split('\t'))))
    return meta, rows


def make_bam(filename, sample_name, reads=None, contigs=(('1', 100000), ('2', 50000))):
    """
    write a small sorted and indexed bam file

    Args:
        reads (list): dicts of read attributes in coordinate order
    """
    header = {
        'HD': {'VN': '1.6', 'SO': 'coordinate'},
        'SQ': [{'SN': name, 'LN': length} for name, length in contigs],
        'RG': [{'ID': 'rg1', 'SM': sample_name}],
    }
    with pysam.AlignmentFile(filename, 'wb', header=header) as fh:
        for attrs in reads or []:
            attrs = dict(attrs)
            tags = attrs.pop('tags', [])
            read = pysam.AlignedSegment(fh.header)
            read.query_sequence = 'A' * 50
            read.query_qualities = pysam.qualitystring_to_array('I' * 50)
            read.cigartuples = [(0, 50)]
            read.next_reference_id = -1
            read.next_reference_start = -1
            for attr, value in attrs.items():
                setattr(read, attr, value)
            for tag, value in tags:
                read.set_tag(tag, value)
            fh.write(read)
    pysam.index(filename)
    return filename

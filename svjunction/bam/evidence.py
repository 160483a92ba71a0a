"""
scans the reads of a single genomic partition and tallies the SV evidence they provide
"""
from typing import Optional, Tuple

import pysam

from ..constants import EVIDENCE_TYPE
from ..counts import SampleCounts
from ..util import logger
from .header import parse_region

CIGAR_INS = 1
CIGAR_DEL = 2
CIGAR_SOFT_CLIP = 4
SUPPLEMENTARY_ALIGNMENT_TAG = 'SA'


def is_innie_pair(read) -> bool:
    """
    checks if the read and its mate face each other (the expected orientation for illumina pairs)

    ::

        ++++> <---- is innie
        <---- ++++> is not
    """
    if read.reference_start <= read.next_reference_start:
        return not read.is_reverse and read.mate_is_reverse
    return read.is_reverse and not read.mate_is_reverse


def max_cigar_event(read, *operations: int) -> int:
    """
    Returns:
        the length of the longest cigar block of any of the given operation types
    """
    return max([size for op, size in read.cigartuples or [] if op in operations] or [0])


def classify_read(
    read,
    max_fragment_size: int,
    close_fraction: float = 0.1,
    min_indel_size: int = 50,
    min_soft_clip: int = 20,
) -> Tuple[Optional[EVIDENCE_TYPE], bool]:
    """
    determine the type of SV evidence a read provides

    Args:
        read (pysam.AlignedSegment): the read to classify
        max_fragment_size: the largest fragment size of a proper pair
        close_fraction: anomalous pairs within this fraction over the max fragment size are flagged as close
        min_indel_size: smallest insertion or deletion counted as cigar evidence
        min_soft_clip: smallest soft-clipped read edge counted as semi-aligned evidence

    Returns:
        the evidence type (None when the read is not evidence) and whether the read is a close anomalous pair
    """
    if read.is_unmapped:
        if read.is_paired and not read.mate_is_unmapped:
            return EVIDENCE_TYPE.SHADOW, False
        return None, False
    if read.has_tag(SUPPLEMENTARY_ALIGNMENT_TAG):
        return EVIDENCE_TYPE.SPLIT_ALIGN, False
    if read.is_paired and not read.mate_is_unmapped:
        if read.reference_id != read.next_reference_id or not is_innie_pair(read):
            return EVIDENCE_TYPE.PAIR, False
        fragment_size = abs(read.template_length)
        if fragment_size > max_fragment_size:
            is_close = fragment_size <= max_fragment_size * (1 + close_fraction)
            return EVIDENCE_TYPE.LOCAL_PAIR, is_close
    if max_cigar_event(read, CIGAR_INS, CIGAR_DEL) >= min_indel_size:
        return EVIDENCE_TYPE.CIGAR, False
    if max_cigar_event(read, CIGAR_SOFT_CLIP) >= min_soft_clip:
        return EVIDENCE_TYPE.SEMIALIGN, False
    return None, False


def count_partition(
    bam_path: str,
    region: str,
    min_mapq: int = 15,
    max_fragment_size: int = 1000,
    close_fraction: float = 0.1,
    min_indel_size: int = 50,
    min_soft_clip: int = 20,
) -> SampleCounts:
    """
    count the evidence for all reads starting within a region of a single sample

    Args:
        bam_path: path to the indexed alignment file of the sample
        region: the region string (CONTIG[:START[-END]]) of the partition

    Returns:
        the counts for this partition only
    """
    counts = SampleCounts()
    with pysam.AlignmentFile(bam_path, 'rb') as fh:
        bounds = parse_region(fh.header, region)
        logger.debug(f'counting reads in {region} from {bam_path}')
        for read in fh.fetch(fh.references[bounds.tid], bounds.start, bounds.end):
            # reads overlapping the partition start belong to the preceding partition
            if not bounds.contains(read.reference_id, read.reference_start):
                continue
            if read.is_secondary or read.is_supplementary or read.is_duplicate or read.is_qcfail:
                counts.input.evidence_count.ignored += 1
                continue
            if not read.is_unmapped and read.mapping_quality < min_mapq:
                counts.input.min_mapq += 1
                continue
            counts.input.evidence_count.total += 1
            etype, is_close = classify_read(
                read,
                max_fragment_size,
                close_fraction=close_fraction,
                min_indel_size=min_indel_size,
                min_soft_clip=min_soft_clip,
            )
            if etype is None:
                continue
            counts.evidence.add(etype)
            if is_close:
                counts.evidence.close_count += 1
            scan = counts.input.evidence_count
            if etype in {EVIDENCE_TYPE.PAIR, EVIDENCE_TYPE.LOCAL_PAIR, EVIDENCE_TYPE.SHADOW}:
                scan.anomalous += 1
            elif etype == EVIDENCE_TYPE.SPLIT_ALIGN:
                scan.split += 1
                if read.is_paired and not read.mate_is_unmapped and not is_innie_pair(read):
                    scan.anomalous_and_split += 1
            elif etype == EVIDENCE_TYPE.CIGAR:
                scan.indel += 1
    return counts

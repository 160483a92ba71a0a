"""
controlled vocabulary and constants used throughout the svjunction package
"""
from enum import Enum
from typing import List

PROGNAME: str = 'svjunction'
EXIT_OK: int = 0
EXIT_ERROR: int = 1

UNSCORED_FILTER: str = 'Unscored'
"""filter label given to a junction which the scorer could not score for a model"""

MIN_QUALITY_FILTER: str = 'MinQUAL'
"""filter label given to a junction with a quality below the configured minimum"""


class SUBCOMMAND(str, Enum):
    """
    holds controlled vocabulary for the command line subcommands
    """

    REGION = 'region'
    CHECK_HEADERS = 'check_headers'
    SAMPLE_NAME = 'sample_name'
    COUNT = 'count'
    MERGE_COUNTS = 'merge_counts'
    WRITE = 'write'


class EVIDENCE_TYPE(str, Enum):
    """
    holds controlled vocabulary for the type of SV evidence a read provides

    Attributes:
        PAIR: anomalous read pair
        LOCAL_PAIR: anomalous read pair which is close enough to be treated as local evidence
        CIGAR: large insertion or deletion in the read alignment
        SEMIALIGN: poorly aligned read edge (soft-clipping or mismatch dense)
        SHADOW: unmapped read with a mapped mate
        SPLIT_ALIGN: split read alignment (supplementary alignment given)
        UNKNOWN: evidence which does not fall into any other category
    """

    PAIR = 'pair'
    LOCAL_PAIR = 'local_pair'
    CIGAR = 'cigar'
    SEMIALIGN = 'semialign'
    SHADOW = 'shadow'
    SPLIT_ALIGN = 'split_align'
    UNKNOWN = 'unknown'


class SAMPLE_ROLE(str, Enum):
    """
    holds controlled vocabulary for the biological role of a sample in the run
    """

    NORMAL = 'normal'
    TUMOR = 'tumor'

    @classmethod
    def from_is_tumor(cls, is_tumor: bool) -> 'SAMPLE_ROLE':
        """
        Example:
            >>> SAMPLE_ROLE.from_is_tumor(True)
            <SAMPLE_ROLE.TUMOR: 'tumor'>
        """
        return cls.TUMOR if is_tumor else cls.NORMAL


class GENOTYPE_MODEL(str, Enum):
    """
    holds controlled vocabulary for the scoring models a junction can be genotyped with

    Attributes:
        DIPLOID: germline diploid model
        SOMATIC: tumor/normal somatic model
        TUMOR: tumor-only model
        RNA: RNA (expressed fusion) model
    """

    DIPLOID = 'diploid'
    SOMATIC = 'somatic'
    TUMOR = 'tumor'
    RNA = 'rna'


class STREAM(str, Enum):
    """
    holds controlled vocabulary for the output record streams. Every genotype model has a stream
    of the same name, and there is one additional stream for unscored candidates
    """

    CANDIDATE = 'candidate'
    DIPLOID = 'diploid'
    SOMATIC = 'somatic'
    TUMOR = 'tumor'
    RNA = 'rna'

    @classmethod
    def from_model(cls, model: GENOTYPE_MODEL) -> 'STREAM':
        return cls(model.value)

    @property
    def filename(self) -> str:
        return '{}SV.tab'.format(self.value)


class ORIENT(str, Enum):
    """
    holds controlled vocabulary for allowed orientation values

    Attributes:
        LEFT: left wrt to the positive/forward strand
        RIGHT: right wrt to the positive/forward strand
        NS: orientation is not specified
    """

    LEFT = 'L'
    RIGHT = 'R'
    NS = '?'


class SVTYPE(str, Enum):
    """
    holds controlled vocabulary for acceptable structural variant classifications
    """

    DEL = 'DEL'
    INS = 'INS'
    DUP = 'DUP'
    INV = 'INV'
    BND = 'BND'


class COLUMNS:
    """
    column names for the tab-delimited record streams
    """

    id = 'id'
    event_id = 'event_id'
    candidate_id = 'candidate_id'
    junction_index = 'junction_index'
    svtype = 'svtype'
    break1_chromosome = 'break1_chromosome'
    break1_position = 'break1_position'
    break1_orientation = 'break1_orientation'
    break2_chromosome = 'break2_chromosome'
    break2_position = 'break2_position'
    break2_orientation = 'break2_orientation'
    untemplated_seq = 'untemplated_seq'
    contig_seq = 'contig_seq'
    model = 'model'
    quality = 'quality'
    genotype = 'genotype'
    filters = 'filters'

    @staticmethod
    def pair_support(role: SAMPLE_ROLE) -> str:
        return '{}_pair_support'.format(role.value)

    @staticmethod
    def split_support(role: SAMPLE_ROLE) -> str:
        return '{}_split_support'.format(role.value)


JUNCTION_COLUMNS: List[str] = [
    COLUMNS.id,
    COLUMNS.event_id,
    COLUMNS.candidate_id,
    COLUMNS.junction_index,
    COLUMNS.svtype,
    COLUMNS.break1_chromosome,
    COLUMNS.break1_position,
    COLUMNS.break1_orientation,
    COLUMNS.break2_chromosome,
    COLUMNS.break2_position,
    COLUMNS.break2_orientation,
    COLUMNS.untemplated_seq,
    COLUMNS.contig_seq,
]
"""columns shared by every record stream, in output order"""

SCORE_COLUMNS: List[str] = [COLUMNS.model, COLUMNS.quality, COLUMNS.genotype, COLUMNS.filters]
"""columns added to the record streams of the genotype models"""

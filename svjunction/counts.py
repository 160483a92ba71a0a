"""
per-sample evidence counts. Each genomic partition fills its own private set of counts which are
merged into the run totals afterwards. Merging is field-wise addition so partial counts can be
combined in any order or grouping with the same result
"""
import json
from concurrent import futures
from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

import pandas as pd

from .constants import EVIDENCE_TYPE, SAMPLE_ROLE
from .util import logger

T = TypeVar('T', bound='MergeableCounts')


class MergeableCounts:
    """
    merge, copy and serialization behaviour shared by all of the count records
    """

    def merge(self, other) -> None:
        raise NotImplementedError('abstract method')

    def clear(self) -> None:
        raise NotImplementedError('abstract method')

    def to_dict(self) -> Dict:
        raise NotImplementedError('abstract method')

    @classmethod
    def from_dict(cls, data: Dict):
        raise NotImplementedError('abstract method')

    def __add__(self, other):
        """
        sum two sets of counts and return the result as a new set of counts
        """
        if not isinstance(other, self.__class__):
            return NotImplemented
        result = deepcopy(self)
        result.merge(other)
        return result

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def loads(cls, text: str):
        return cls.from_dict(json.loads(text))


@dataclass
class LocusEvidenceCount(MergeableCounts):
    """
    counts of the reads scanned for SV evidence in a sample

    Note:
        counts are stored as floats, they can get very large and exact values are not required
    """

    total: float = 0.0
    ignored: float = 0.0
    anomalous: float = 0.0
    split: float = 0.0
    anomalous_and_split: float = 0.0
    indel: float = 0.0
    assembly: float = 0.0
    remote_recovery: float = 0.0

    def merge(self, other: 'LocusEvidenceCount') -> None:
        for attr in fields(self):
            setattr(self, attr.name, getattr(self, attr.name) + getattr(other, attr.name))

    def clear(self) -> None:
        for attr in fields(self):
            setattr(self, attr.name, 0.0)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'LocusEvidenceCount':
        return cls(**{key: float(value) for key, value in data.items()})


@dataclass
class ReadInputCounts(MergeableCounts):
    """
    reads seen on input for a sample: those dropped for low mapping quality before any
    classification and those passed on to the evidence scan
    """

    min_mapq: float = 0.0
    evidence_count: LocusEvidenceCount = field(default_factory=LocusEvidenceCount)

    def total(self) -> float:
        return self.min_mapq + self.evidence_count.total

    def merge(self, other: 'ReadInputCounts') -> None:
        self.min_mapq += other.min_mapq
        self.evidence_count.merge(other.evidence_count)

    def clear(self) -> None:
        self.min_mapq = 0.0
        self.evidence_count.clear()

    def to_dict(self) -> Dict:
        return {'min_mapq': self.min_mapq, 'evidence_count': self.evidence_count.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict) -> 'ReadInputCounts':
        return cls(
            min_mapq=float(data.get('min_mapq', 0)),
            evidence_count=LocusEvidenceCount.from_dict(data.get('evidence_count', {})),
        )


def _empty_type_counts() -> Dict[EVIDENCE_TYPE, int]:
    return {etype: 0 for etype in EVIDENCE_TYPE}


@dataclass
class EvidenceTypeCounts(MergeableCounts):
    """
    detailed evidence type counts for a sample. Every evidence type always has an entry

    Attributes:
        by_type: count of reads for each evidence type
        close_count: anomalous pairs which are still close to the proper pair threshold (down-weighted during scoring)
    """

    by_type: Dict[EVIDENCE_TYPE, int] = field(default_factory=_empty_type_counts)
    close_count: int = 0

    def __post_init__(self):
        by_type = _empty_type_counts()
        for etype, count in self.by_type.items():
            by_type[EVIDENCE_TYPE(etype)] = int(count)
        self.by_type = by_type
        self.close_count = int(self.close_count)

    def add(self, etype: EVIDENCE_TYPE, freq: int = 1) -> None:
        self.by_type[EVIDENCE_TYPE(etype)] += freq

    def __getitem__(self, etype) -> int:
        return self.by_type[EVIDENCE_TYPE(etype)]

    def merge(self, other: 'EvidenceTypeCounts') -> None:
        for etype in EVIDENCE_TYPE:
            self.by_type[etype] += other.by_type[etype]
        self.close_count += other.close_count

    def clear(self) -> None:
        for etype in EVIDENCE_TYPE:
            self.by_type[etype] = 0
        self.close_count = 0

    def to_dict(self) -> Dict:
        return {
            'by_type': {etype.value: count for etype, count in self.by_type.items()},
            'close_count': self.close_count,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'EvidenceTypeCounts':
        return cls(by_type=dict(data.get('by_type', {})), close_count=data.get('close_count', 0))


@dataclass
class SampleCounts(MergeableCounts):
    """
    total statistics for a single sample
    """

    input: ReadInputCounts = field(default_factory=ReadInputCounts)
    evidence: EvidenceTypeCounts = field(default_factory=EvidenceTypeCounts)

    def merge(self, other: 'SampleCounts') -> None:
        self.input.merge(other.input)
        self.evidence.merge(other.evidence)

    def clear(self) -> None:
        self.input.clear()
        self.evidence.clear()

    def to_dict(self) -> Dict:
        return {'input': self.input.to_dict(), 'evidence': self.evidence.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict) -> 'SampleCounts':
        return cls(
            input=ReadInputCounts.from_dict(data.get('input', {})),
            evidence=EvidenceTypeCounts.from_dict(data.get('evidence', {})),
        )

    def summary(self, label: str) -> Dict:
        """
        flatten the counts into a single row for reporting
        """
        row = {
            'sample': label,
            'total_reads': self.input.total(),
            'min_mapq_filtered_reads': self.input.min_mapq,
        }
        for attr, value in self.input.evidence_count.to_dict().items():
            row[f'evidence_scan_{attr}'] = value
        for etype in EVIDENCE_TYPE:
            row[f'{etype.value}_evidence'] = self.evidence[etype]
        row['close_pair_evidence'] = self.evidence.close_count
        return row


class CohortCounts(MergeableCounts):
    """
    holds the counts of the normal and the tumor sample of a run. Both slots always exist, in a
    tumor-only run the normal sample simply stays at zero

    Example:
        >>> counts = CohortCounts()
        >>> counts.select(SAMPLE_ROLE.TUMOR).evidence.add(EVIDENCE_TYPE.PAIR)
    """

    def __init__(self):
        self._samples = {role: SampleCounts() for role in SAMPLE_ROLE}

    def select(self, role: SAMPLE_ROLE) -> SampleCounts:
        """
        Returns:
            the counts for the sample with the given role
        """
        return self._samples[SAMPLE_ROLE(role)]

    def populated_roles(self) -> List[SAMPLE_ROLE]:
        """
        Returns:
            the roles whose sample has any counts
        """
        empty = SampleCounts()
        return [role for role, sample in self._samples.items() if sample != empty]

    def merge(self, other: 'CohortCounts') -> None:
        for role, sample in self._samples.items():
            sample.merge(other.select(role))

    def clear(self) -> None:
        for sample in self._samples.values():
            sample.clear()

    def __eq__(self, other):
        if not isinstance(other, CohortCounts):
            return NotImplemented
        return self._samples == other._samples

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__name__,
            ', '.join(['{}={}'.format(role.value, repr(s)) for role, s in self._samples.items()]),
        )

    def to_dict(self) -> Dict:
        return {role.value: sample.to_dict() for role, sample in self._samples.items()}

    @classmethod
    def from_dict(cls, data: Dict) -> 'CohortCounts':
        """
        Raises:
            ValueError: a key is not a sample role
        """
        result = cls()
        for role, sample in data.items():
            result._samples[SAMPLE_ROLE(role)] = SampleCounts.from_dict(sample)
        return result


def merge_counts(partials: Iterable[T]) -> T:
    """
    merge any number of partial counts into a new set of counts. The inputs are not modified

    Raises:
        ValueError: no counts were given
    """
    partials = iter(partials)
    try:
        result = deepcopy(next(partials))
    except StopIteration:
        raise ValueError('at least one set of counts is required to merge')
    for partial in partials:
        result.merge(partial)
    return result


def count_partitions(
    partitions: Iterable, count_func: Callable[..., T], processes: int = 1
) -> T:
    """
    count each partition independently and merge the results

    Args:
        partitions: the partitions (ex. region strings) to be counted
        count_func: function which returns the counts for a single partition. Must be picklable when processes > 1
        processes: the number of worker processes to count with

    Returns:
        the merged counts for all partitions
    """
    partitions = list(partitions)
    logger.info(f'counting {len(partitions)} partition(s) with {processes} process(es)')
    if processes <= 1:
        partials = [count_func(partition) for partition in partitions]
    else:
        with futures.ProcessPoolExecutor(max_workers=processes) as pool:
            partials = list(pool.map(count_func, partitions))
    return merge_counts(partials)


def write_counts(filename: str, counts: CohortCounts) -> None:
    logger.info(f'writing: {filename}')
    with open(filename, 'w') as fh:
        json.dump(counts.to_dict(), fh, indent=2, sort_keys=True)


def read_counts(filename: str) -> CohortCounts:
    logger.info(f'loading: {filename}')
    with open(filename, 'r') as fh:
        return CohortCounts.from_dict(json.load(fh))


def write_counts_summary(
    filename: str,
    counts: CohortCounts,
    labels: Optional[Dict] = None,
    roles: Optional[Sequence[SAMPLE_ROLE]] = None,
) -> None:
    """
    write a tab-delimited table with one row of counts per sample

    Args:
        filename: path to the output table
        counts: the counts to summarize
        labels: sample name by role, defaults to the role name
        roles: the samples to report, defaults to the samples with any counts (or both when neither has)
    """
    labels = labels or {}
    roles = roles or counts.populated_roles() or list(SAMPLE_ROLE)
    rows = [counts.select(role).summary(labels.get(role, role.value)) for role in roles]
    logger.info(f'writing: {filename}')
    df = pd.DataFrame.from_records(rows, columns=list(rows[0].keys()))
    df.to_csv(filename, index=False, sep='\t')

"""
the candidate events handed to the writer. A candidate groups one or more junctions which were
discovered together (ex. the two junctions of a reciprocal translocation)
"""
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .breakpoint import Breakpoint, BreakpointPair
from .constants import SAMPLE_ROLE
from .util import logger


@dataclass(frozen=True)
class JunctionSupport:
    """
    supporting read counts for a junction in a single sample
    """

    pair: int = 0
    split: int = 0


class SVJunction(BreakpointPair):
    """
    a single junction of a candidate event along with its assembly and supporting read data
    """

    index: int
    candidate_id: str
    contig_seq: Optional[str]
    support: Dict[SAMPLE_ROLE, JunctionSupport]

    def __init__(
        self,
        b1: Breakpoint,
        b2: Breakpoint,
        index: int,
        candidate_id: str,
        untemplated_seq: Optional[str] = None,
        contig_seq: Optional[str] = None,
        support: Optional[Mapping] = None,
        **kwargs,
    ):
        """
        Args:
            index: position of the junction within its candidate
            candidate_id: identifier of the candidate (ex. the locus graph edge) the junction belongs to
            contig_seq: the assembled contig sequence spanning the junction, if assembly succeeded
            support: supporting read counts by sample role
        """
        BreakpointPair.__init__(self, b1, b2, untemplated_seq=untemplated_seq, **kwargs)
        self.index = int(index)
        self.candidate_id = str(candidate_id)
        self.contig_seq = contig_seq
        self.support = {SAMPLE_ROLE(role): sup for role, sup in (support or {}).items()}

    def support_for(self, role: SAMPLE_ROLE) -> JunctionSupport:
        return self.support.get(SAMPLE_ROLE(role), JunctionSupport())

    @classmethod
    def from_dict(cls, row: Dict, index: int, candidate_id: str) -> 'SVJunction':
        row = dict(row)

        def _breakpoint(data):
            return Breakpoint(
                data['chr'],
                data['start'],
                data.get('end'),
                orient=data.get('orientation', '?'),
            )

        break1 = _breakpoint(row.pop('break1'))
        break2 = _breakpoint(row.pop('break2'))
        support = {
            role: JunctionSupport(**counts) for role, counts in row.pop('support', {}).items()
        }
        return cls(
            break1,
            break2,
            index=index,
            candidate_id=candidate_id,
            untemplated_seq=row.pop('untemplated_seq', None),
            contig_seq=row.pop('contig_seq', None),
            support=support,
            **row,
        )


@dataclass(frozen=True)
class SVCandidate:
    """
    a candidate SV event. Immutable once created

    Attributes:
        candidate_id: identifier of the candidate
        junctions: the junctions of the event, junction.index is its position in this tuple
        evidence: raw supporting evidence passed through to the scorer
    """

    candidate_id: str
    junctions: Tuple[SVJunction, ...]
    evidence: Mapping = field(default_factory=dict)

    def __post_init__(self):
        junctions = tuple(self.junctions)
        if not junctions:
            raise ValueError('a candidate must have at least one junction', self.candidate_id)
        for expected, junction in enumerate(junctions):
            if junction.index != expected:
                raise ValueError(
                    'junction index does not match its position in the candidate',
                    self.candidate_id,
                    junction.index,
                    expected,
                )
        object.__setattr__(self, 'junctions', junctions)
        object.__setattr__(self, 'evidence', MappingProxyType(dict(self.evidence)))

    @property
    def is_multi_junction(self) -> bool:
        return len(self.junctions) > 1

    @classmethod
    def from_dict(cls, row: Dict) -> 'SVCandidate':
        candidate_id = str(row['candidate_id'])
        junctions = [
            SVJunction.from_dict(junction, index, candidate_id)
            for index, junction in enumerate(row['junctions'])
        ]
        return cls(candidate_id, tuple(junctions), row.get('evidence', {}))


def read_candidates(filename: str) -> List[SVCandidate]:
    """
    load candidates from a JSON file containing a list of candidate objects

    Example:
        .. code-block:: json

            [{"candidate_id": "1", "junctions": [{
                "break1": {"chr": "1", "start": 100, "orientation": "L"},
                "break2": {"chr": "1", "start": 5000, "orientation": "R"},
                "support": {"tumor": {"pair": 4, "split": 2}}
            }]}]
    """
    logger.info(f'loading: {filename}')
    with open(filename, 'r') as fh:
        rows = json.load(fh)
    candidates = [SVCandidate.from_dict(row) for row in rows]
    logger.info(f'loaded {len(candidates)} candidates')
    return candidates

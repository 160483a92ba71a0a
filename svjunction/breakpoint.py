from typing import Dict, Optional

from .constants import ORIENT, SVTYPE
from .error import InvalidRearrangement
from .interval import Interval


class Breakpoint(Interval):
    """
    class for storing information about a SV breakend
    coordinates are given as 1-indexed
    """

    orient: ORIENT
    chr: str

    @property
    def key(self):
        return (self.chr, self.start, self.end, self.orient.value)

    def __init__(self, chr: str, start: int, end: Optional[int] = None, orient=ORIENT.NS):
        """
        Args:
            chr: the chromosome
            start: the genomic position of the breakpoint
            end: if the breakpoint is uncertain (a range) then specify the end of the range here
            orient (ORIENT): the orientation (which side is retained at the break)

        Examples:
            >>> Breakpoint('1', 1, 2)
            >>> Breakpoint('1', 1, orient='R')
        """
        Interval.__init__(self, start, end)
        self.orient = ORIENT(orient)
        self.chr = str(chr)

    def __repr__(self):
        orient = '' if self.orient == ORIENT.NS else self.orient.value

        return 'Breakpoint({0}:{1}{2}{3})'.format(
            self.chr, self.start, '-' + str(self.end) if self.end != self.start else '', orient
        )

    def __eq__(self, other):
        if not hasattr(other, 'key'):
            return False
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def to_dict(self):
        return {
            'chr': self.chr,
            'start': self.start,
            'end': self.end,
            'orientation': self.orient.value,
        }


class BreakpointPair:
    """
    a pair of breakends joined by a novel adjacency (a junction)
    """

    break1: Breakpoint
    break2: Breakpoint
    untemplated_seq: Optional[str]
    data: Dict

    def __init__(
        self, b1: Breakpoint, b2: Breakpoint, untemplated_seq: Optional[str] = None, **kwargs
    ):
        """
        Args:
            b1: the first breakpoint
            b2: the second breakpoint
            untemplated_seq: seq between the breakpoints that is not part of either breakpoint

        Note:
            the breakpoints are stored in sorted order so break1 is always the leftmost breakend

        Example:
            >>> BreakpointPair(Breakpoint('1', 1, orient='L'), Breakpoint('1', 9999, orient='R'))
        """
        if b1.key[:3] > b2.key[:3]:
            b1, b2 = b2, b1
        self.break1 = b1
        self.break2 = b2
        self.untemplated_seq = untemplated_seq
        self.data = {}
        self.data.update(kwargs)

    def __eq__(self, other):
        for attr in ['break1', 'break2', 'untemplated_seq']:
            if not hasattr(other, attr):
                return False
            elif getattr(self, attr) != getattr(other, attr):
                return False
        return True

    def __hash__(self):
        return hash((self.break1, self.break2, self.untemplated_seq))

    def __repr__(self):
        return '{}({}==>{}, untemplated_seq={})'.format(
            self.__class__.__name__, self.break1, self.break2, self.untemplated_seq
        )

    @property
    def interchromosomal(self) -> bool:
        """bool: True if the breakpoints are on different chromosomes, False otherwise"""
        return self.break1.chr != self.break2.chr

    @property
    def LL(self) -> bool:
        return self.break1.orient == ORIENT.LEFT and self.break2.orient == ORIENT.LEFT

    @property
    def LR(self) -> bool:
        return self.break1.orient == ORIENT.LEFT and self.break2.orient == ORIENT.RIGHT

    @property
    def RL(self) -> bool:
        return self.break1.orient == ORIENT.RIGHT and self.break2.orient == ORIENT.LEFT

    @property
    def RR(self) -> bool:
        return self.break1.orient == ORIENT.RIGHT and self.break2.orient == ORIENT.RIGHT

    @property
    def size(self) -> Optional[int]:
        """
        the reference span of an intrachromosomal junction, or the inserted length when that is larger.
        None for interchromosomal junctions
        """
        if self.interchromosomal:
            return None
        span = self.break2.start - self.break1.start
        return max(span, len(self.untemplated_seq or ''))

    def classify(self) -> SVTYPE:
        """
        uses the chromosomes and orientations to determine the structural variant type of the junction

        Example:
            >>> bpp = BreakpointPair(Breakpoint('1', 1, orient='L'), Breakpoint('1', 9999, orient='R'))
            >>> bpp.classify()
            <SVTYPE.DEL: 'DEL'>
        """
        if self.interchromosomal:
            return SVTYPE.BND
        if ORIENT.NS in {self.break1.orient, self.break2.orient}:
            raise InvalidRearrangement('orientation must be specified to classify a junction', self)
        if self.LL or self.RR:
            return SVTYPE.INV
        elif self.RL:
            return SVTYPE.DUP
        # deletion-type adjacency where the inserted sequence is longer than the deleted span
        if self.untemplated_seq and len(self.untemplated_seq) > self.break2.start - self.break1.start - 1:
            return SVTYPE.INS
        return SVTYPE.DEL


import itertools
from typing import Optional

from shortuuid import uuid

from .constants import SVTYPE

DEFAULT_ID_PREFIX = 'SVJ'


class JunctionIdGenerator:
    """
    issues the identifiers shared by every record written for a junction. Identifiers have the form
    {prefix}{svtype}:{run token}:{serial} where the serial number advances with every identifier issued
    and the run token distinguishes generators so that two runs never issue the same identifier

    Example:
        >>> idgen = JunctionIdGenerator(run_token='abc')
        >>> idgen.next_id(SVTYPE.DEL)
        'SVJDEL:abc:1'
        >>> idgen.next_id(SVTYPE.BND)
        'SVJBND:abc:2'
    """

    def __init__(self, prefix: str = DEFAULT_ID_PREFIX, run_token: Optional[str] = None):
        self.prefix = prefix
        self.run_token = run_token if run_token else uuid()[:12]
        self._serial = itertools.count(1)
        self.issued = 0

    def next_id(self, svtype: SVTYPE) -> str:
        self.issued += 1
        return '{}{}:{}:{}'.format(self.prefix, SVTYPE(svtype).value, self.run_token, next(self._serial))

"""
dispatches scored candidate junctions to the record stream of every genotype model which applies to the run
"""
import atexit
import os
from contextlib import ExitStack
from typing import Dict, List, Mapping, Optional, Set

from . import __version__
from .candidate import SVCandidate, SVJunction
from .config import RunOptions
from .constants import (
    COLUMNS,
    GENOTYPE_MODEL,
    JUNCTION_COLUMNS,
    MIN_QUALITY_FILTER,
    PROGNAME,
    SAMPLE_ROLE,
    SCORE_COLUMNS,
    STREAM,
    SVTYPE,
)
from .counts import CohortCounts
from .error import ScoringError
from .junction_id import JunctionIdGenerator
from .scoring import ModelScore, SVScorer
from .util import logger, mkdirp


def _format_value(value) -> str:
    if value is None:
        return 'None'
    return str(value)


class RecordWriter:
    """
    appends tab-delimited records to a single output stream
    """

    def __init__(self, fh, columns: List[str], meta: Optional[Dict[str, str]] = None):
        """
        Args:
            fh: the open, writable file handle
            columns: the columns to output in order
            meta: key/value pairs written as ## lines above the column header
        """
        self.fh = fh
        self.columns = list(columns)
        self.count = 0
        for key, value in (meta or {}).items():
            fh.write(f'##{key}={value}\n')
        fh.write('#' + '\t'.join(self.columns) + '\n')

    def write(self, record: Dict) -> None:
        self.fh.write('\t'.join([_format_value(record.get(col)) for col in self.columns]) + '\n')
        self.count += 1


class _CandidateIds:
    """
    lazily issues the junction identifiers of a single candidate so that only the junctions which are written
    draw an identifier, and every record for the same junction gets the same one
    """

    def __init__(self, idgen: JunctionIdGenerator, svtypes: Dict[int, SVTYPE], is_event: bool):
        self.idgen = idgen
        self.svtypes = svtypes
        self.is_event = is_event
        self.ids: Dict[int, str] = {}
        self.event_id: Optional[str] = None

    def get(self, junction: SVJunction) -> str:
        if junction.index not in self.ids:
            self.ids[junction.index] = self.idgen.next_id(self.svtypes[junction.index])
            if self.is_event and self.event_id is None:
                self.event_id = self.ids[junction.index]
        return self.ids[junction.index]


class SVWriter:
    """
    owns the output streams and the junction identifier generator of a single run. Every stream is opened
    when the writer is created, failing to open any of them closes the others and re-raises the error

    Example:
        >>> with SVWriter(options, scorer) as writer:
        ...     for candidate in candidates:
        ...         writer.write_sv(candidate)
    """

    def __init__(
        self,
        options: RunOptions,
        scorer: SVScorer,
        sample_names: Optional[Mapping[SAMPLE_ROLE, str]] = None,
        id_generator: Optional[JunctionIdGenerator] = None,
        counts: Optional[CohortCounts] = None,
    ):
        """
        Args:
            options: the run settings
            scorer: the scoring model to score junctions with
            sample_names: name of each sample by role, defaults to the names given in the run settings
            id_generator: the junction identifier generator, a new one is created by default
            counts: evidence counts of the run, summarized in the meta lines of each stream
        """
        self.options = options
        self.scorer = scorer
        self.models = options.models
        self.idgen = id_generator if id_generator else JunctionIdGenerator(options.id_prefix)
        sample_names = sample_names if sample_names is not None else options.sample_names
        self.sample_names = {
            role: sample_names.get(role) or role.value.upper() for role in options.roles
        }
        self.counts = counts
        self.streams: Dict[STREAM, RecordWriter] = {}
        self._last_breakend = None
        self._closed = False

        mkdirp(options.output_dir)
        with ExitStack() as stack:
            for stream in options.streams:
                filename = os.path.join(options.output_dir, stream.filename)
                logger.info(f'writing: {filename}')
                fh = stack.enter_context(open(filename, 'w'))
                self.streams[stream] = RecordWriter(fh, self._columns(stream), self._meta(stream))
            self._stack = stack.pop_all()
        atexit.register(self.close)  # makes the streams 'auto close' on normal python exit

    def _columns(self, stream: STREAM) -> List[str]:
        columns = list(JUNCTION_COLUMNS)
        for role in self.options.roles:
            columns.extend([COLUMNS.pair_support(role), COLUMNS.split_support(role)])
        if stream != STREAM.CANDIDATE:
            columns.extend(SCORE_COLUMNS)
        return columns

    def _meta(self, stream: STREAM) -> Dict[str, str]:
        meta = {'source': f'{PROGNAME} {__version__}', 'stream': stream.value}
        for role, name in self.sample_names.items():
            meta[f'sample.{role.value}'] = name
            if self.counts is not None:
                sample = self.counts.select(role)
                meta[f'sample.{role.value}.total_reads'] = f'{sample.input.total():.0f}'
                meta[f'sample.{role.value}.evidence_reads'] = f'{sum(sample.evidence.by_type.values())}'
        return meta

    def __enter__(self):
        return self

    def __exit__(self, *pos):
        self.close()

    def close(self) -> None:
        """
        close all of the output streams. Records already written are kept as-is
        """
        if self._closed:
            return
        self._closed = True
        self._stack.close()
        for stream, count in self.summary().items():
            logger.info(f'wrote {count} record(s) to the {stream} stream')

    def summary(self) -> Dict[str, int]:
        """
        Returns:
            the number of records written to each stream
        """
        return {stream.value: writer.count for stream, writer in self.streams.items()}

    def _check_filtered(self, candidate: SVCandidate, filtered: Optional[Mapping[int, bool]]) -> Set[int]:
        indices = {junction.index for junction in candidate.junctions}
        filtered = filtered or {}
        unknown = set(filtered) - indices
        if unknown:
            raise ValueError(
                'filtered flags given for junctions not in the candidate',
                candidate.candidate_id,
                sorted(unknown),
            )
        return {index for index, is_filtered in filtered.items() if is_filtered}

    def _check_order(self, candidate: SVCandidate) -> None:
        break1 = candidate.junctions[0].break1
        if (
            self._last_breakend is not None
            and self._last_breakend.chr == break1.chr
            and break1.start < self._last_breakend.start
        ):
            logger.warning(
                f'candidate {candidate.candidate_id} at {break1.chr}:{break1.start} is out of order '
                f'(previous candidate at {self._last_breakend.chr}:{self._last_breakend.start})'
            )
        self._last_breakend = break1

    def _is_scorable(self, junction: SVJunction) -> bool:
        size = junction.size
        return size is None or size >= self.options.min_scored_variant_size

    def _score(self, junction: SVJunction, model: GENOTYPE_MODEL) -> ModelScore:
        try:
            score = self.scorer.score(junction, model)
        except ScoringError as err:
            logger.warning(
                f'unable to score junction {junction.index} of candidate {junction.candidate_id} '
                f'with the {model.value} model: {err}'
            )
            return ModelScore.unscored()
        if score is None:
            return ModelScore.unscored()
        return score

    def _apply_model_filters(self, model: GENOTYPE_MODEL, score: ModelScore) -> Optional[ModelScore]:
        """
        Returns:
            the score to write for the model or None if the junction should not be written to the model stream
        """
        if not score.is_scored:
            return score
        if model == GENOTYPE_MODEL.SOMATIC:
            if score.quality < self.options.min_somatic_score:
                return None
            return score
        if score.quality < self.options.min_quality:
            return score.with_filter(MIN_QUALITY_FILTER)
        return score

    def _record(
        self,
        junction: SVJunction,
        ids: _CandidateIds,
        model: Optional[GENOTYPE_MODEL] = None,
        score: Optional[ModelScore] = None,
    ) -> Dict:
        junction_id = ids.get(junction)
        record = {
            COLUMNS.id: junction_id,
            COLUMNS.event_id: ids.event_id,
            COLUMNS.candidate_id: junction.candidate_id,
            COLUMNS.junction_index: junction.index,
            COLUMNS.svtype: ids.svtypes[junction.index].value,
            COLUMNS.break1_chromosome: junction.break1.chr,
            COLUMNS.break1_position: junction.break1.start,
            COLUMNS.break1_orientation: junction.break1.orient.value,
            COLUMNS.break2_chromosome: junction.break2.chr,
            COLUMNS.break2_position: junction.break2.start,
            COLUMNS.break2_orientation: junction.break2.orient.value,
            COLUMNS.untemplated_seq: junction.untemplated_seq,
            COLUMNS.contig_seq: junction.contig_seq,
        }
        for role in self.options.roles:
            support = junction.support_for(role)
            record[COLUMNS.pair_support(role)] = support.pair
            record[COLUMNS.split_support(role)] = support.split
        if model is not None:
            record[COLUMNS.model] = model.value
            record[COLUMNS.quality] = score.quality
            record[COLUMNS.genotype] = score.genotype
            record[COLUMNS.filters] = ';'.join(score.filters) if score.filters else 'PASS'
        return record

    def write_sv(self, candidate: SVCandidate, filtered: Optional[Mapping[int, bool]] = None) -> Dict[int, str]:
        """
        score and write all of the junctions of a candidate

        Args:
            candidate: the candidate event
            filtered: flags by junction index. Junctions flagged True are neither scored nor written

        Returns:
            the identifier issued for each junction written, by junction index

        Raises:
            ValueError: a filtered flag is given for a junction index which is not part of the candidate
            InvalidRearrangement: an unfiltered junction has an unspecified orientation

        Note:
            any error other than a ScoringError raised by the scorer propagates before any record of the
            candidate is written
        """
        if self._closed:
            raise ValueError('cannot write to a closed writer')
        filtered_indices = self._check_filtered(candidate, filtered)
        junctions = [j for j in candidate.junctions if j.index not in filtered_indices]
        if not junctions:
            return {}
        svtypes = {junction.index: junction.classify() for junction in junctions}

        # all scoring happens before the first record of the candidate is written
        scored = []
        for junction in junctions:
            if not self._is_scorable(junction):
                logger.debug(
                    f'skipping scoring for junction {junction.index} of candidate {candidate.candidate_id} '
                    f'(size {junction.size} < {self.options.min_scored_variant_size})'
                )
                continue
            for model in self.models:
                score = self._apply_model_filters(model, self._score(junction, model))
                if score is not None:
                    scored.append((junction, model, score))

        ids = _CandidateIds(self.idgen, svtypes, candidate.is_multi_junction)
        self._check_order(candidate)

        candidate_stream = self.streams.get(STREAM.CANDIDATE)
        if candidate_stream is not None:
            for junction in junctions:
                candidate_stream.write(self._record(junction, ids))

        for junction, model, score in scored:
            self.streams[STREAM.from_model(model)].write(self._record(junction, ids, model, score))
        return dict(ids.ids)

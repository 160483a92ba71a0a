import logging
import os
from unittest import mock

import pytest

from svjunction.candidate import JunctionSupport, SVCandidate
from svjunction.config import RunOptions
from svjunction.constants import (
    EVIDENCE_TYPE,
    MIN_QUALITY_FILTER,
    SAMPLE_ROLE,
    STREAM,
    UNSCORED_FILTER,
)
from svjunction.counts import CohortCounts
from svjunction.error import InvalidRearrangement, ScoringError
from svjunction.junction_id import JunctionIdGenerator
from svjunction.scoring import PrecomputedScorer, SVScorer
from svjunction.writer import RecordWriter, SVWriter

from ..util import mock_junction, read_records

SCORES = {
    'diploid': {'quality': 50, 'genotype': '0/1'},
    'somatic': {'quality': 30, 'genotype': '0/1'},
}


@pytest.fixture
def output_dir(tmp_path):
    return str(tmp_path / 'output')


def make_options(output_dir, normal=True, tumor=True, **kwargs):
    return RunOptions(
        output_dir=output_dir,
        normal_bams=['normal.bam'] if normal else [],
        tumor_bams=['tumor.bam'] if tumor else [],
        **kwargs
    )


def make_writer(output_dir, scorer=None, **kwargs):
    return SVWriter(
        make_options(output_dir, **kwargs),
        scorer if scorer is not None else PrecomputedScorer(),
        id_generator=JunctionIdGenerator(run_token='run'),
    )


def stream_rows(output_dir, stream):
    return read_records(os.path.join(output_dir, stream.filename))[1]


def single(index=0, candidate_id='1', scores=SCORES, **kwargs):
    return SVCandidate(candidate_id, (mock_junction(index=index, candidate_id=candidate_id, scores=scores, **kwargs),))


class TestRecordWriter:
    def test_header_and_rows(self, tmp_path):
        filename = str(tmp_path / 'records.tab')
        with open(filename, 'w') as fh:
            writer = RecordWriter(fh, ['a', 'b'], {'source': 'test'})
            writer.write({'a': 1, 'b': None})
            writer.write({'a': 'x'})
        assert writer.count == 2
        meta, rows = read_records(filename)
        assert meta == {'source': 'test'}
        assert rows == [{'a': '1', 'b': 'None'}, {'a': 'x', 'b': 'None'}]


class TestStreams:
    def test_somatic_run(self, output_dir):
        with make_writer(output_dir) as writer:
            assert set(writer.streams) == {STREAM.CANDIDATE, STREAM.DIPLOID, STREAM.SOMATIC}
        for stream in [STREAM.CANDIDATE, STREAM.DIPLOID, STREAM.SOMATIC]:
            assert os.path.exists(os.path.join(output_dir, stream.filename))

    def test_germline_run(self, output_dir):
        with make_writer(output_dir, tumor=False) as writer:
            assert set(writer.streams) == {STREAM.CANDIDATE, STREAM.DIPLOID}

    def test_tumor_only_run(self, output_dir):
        with make_writer(output_dir, normal=False) as writer:
            assert set(writer.streams) == {STREAM.CANDIDATE, STREAM.TUMOR}
            writer.write_sv(single(scores={'tumor': {'quality': 40}}))
        rows = stream_rows(output_dir, STREAM.TUMOR)
        assert len(rows) == 1
        assert rows[0]['model'] == 'tumor'
        assert 'normal_pair_support' not in rows[0]
        assert 'tumor_pair_support' in rows[0]

    def test_rna_run(self, output_dir):
        with make_writer(output_dir, tumor=False, rna=True) as writer:
            assert set(writer.streams) == {STREAM.CANDIDATE, STREAM.RNA}
            writer.write_sv(single(scores={'rna': {'quality': 40}}))
        assert stream_rows(output_dir, STREAM.RNA)[0]['quality'] == '40.0'

    def test_no_candidate_stream(self, output_dir):
        with make_writer(output_dir, report_candidates=False) as writer:
            writer.write_sv(single())
            assert set(writer.summary()) == {'diploid', 'somatic'}
        assert not os.path.exists(os.path.join(output_dir, STREAM.CANDIDATE.filename))

    def test_meta(self, output_dir):
        options = make_options(output_dir, sample_names={'tumor': 'T1'})
        SVWriter(options, PrecomputedScorer()).close()
        meta, _ = read_records(os.path.join(output_dir, STREAM.SOMATIC.filename))
        assert meta['stream'] == 'somatic'
        assert meta['sample.tumor'] == 'T1'
        assert meta['sample.normal'] == 'NORMAL'

    def test_meta_counts(self, output_dir):
        counts = CohortCounts()
        counts.select(SAMPLE_ROLE.TUMOR).input.min_mapq = 4
        counts.select(SAMPLE_ROLE.TUMOR).input.evidence_count.total = 96
        counts.select(SAMPLE_ROLE.TUMOR).evidence.add(EVIDENCE_TYPE.PAIR, 7)
        options = make_options(output_dir, normal=False)
        SVWriter(options, PrecomputedScorer(), counts=counts).close()
        meta, _ = read_records(os.path.join(output_dir, STREAM.TUMOR.filename))
        assert meta['sample.tumor.total_reads'] == '100'
        assert meta['sample.tumor.evidence_reads'] == '7'
        assert 'sample.normal.total_reads' not in meta

    def test_sample_names_override(self, output_dir):
        options = make_options(output_dir, sample_names={'tumor': 'T1'})
        writer = SVWriter(options, PrecomputedScorer(), sample_names={SAMPLE_ROLE.TUMOR: 'T2'})
        writer.close()
        assert writer.sample_names == {SAMPLE_ROLE.NORMAL: 'NORMAL', SAMPLE_ROLE.TUMOR: 'T2'}

    def test_open_failure_closes_opened_streams(self, output_dir):
        first_fh = mock.MagicMock()
        with mock.patch(
            'svjunction.writer.open', create=True, side_effect=[first_fh, OSError('disk full')]
        ):
            with pytest.raises(OSError):
                make_writer(output_dir)
        first_fh.__exit__.assert_called_once()


class TestJunctionIds:
    def test_shared_across_streams(self, output_dir):
        with make_writer(output_dir) as writer:
            ids = writer.write_sv(single())
        assert ids == {0: 'SVJDEL:run:1'}
        for stream in [STREAM.CANDIDATE, STREAM.DIPLOID, STREAM.SOMATIC]:
            rows = stream_rows(output_dir, stream)
            assert [row['id'] for row in rows] == ['SVJDEL:run:1']
            assert rows[0]['event_id'] == 'None'

    def test_distinct_across_candidates(self, output_dir):
        with make_writer(output_dir) as writer:
            first = writer.write_sv(single(candidate_id='1'))
            second = writer.write_sv(single(candidate_id='2', pos1=2000, pos2=9000))
        assert first[0] != second[0]
        rows = stream_rows(output_dir, STREAM.CANDIDATE)
        assert [row['id'] for row in rows] == [first[0], second[0]]

    def test_multi_junction_event(self, output_dir):
        candidate = SVCandidate(
            'tx',
            (
                mock_junction(index=0, candidate_id='tx', chr2='2', pos2=300, scores=SCORES),
                mock_junction(index=1, candidate_id='tx', pos1=1010, orient1='R', chr2='2', pos2=310, orient2='L', scores=SCORES),
            ),
        )
        with make_writer(output_dir) as writer:
            ids = writer.write_sv(candidate)
        assert ids == {0: 'SVJBND:run:1', 1: 'SVJBND:run:2'}
        for stream in [STREAM.CANDIDATE, STREAM.DIPLOID, STREAM.SOMATIC]:
            rows = stream_rows(output_dir, stream)
            assert [row['id'] for row in rows] == ['SVJBND:run:1', 'SVJBND:run:2']
            assert {row['event_id'] for row in rows} == {'SVJBND:run:1'}


class TestFiltered:
    def candidate(self):
        return SVCandidate(
            '1',
            (
                mock_junction(index=0, scores=SCORES),
                mock_junction(index=1, pos1=2000, pos2=3000, orient1='R', orient2='L', scores=SCORES),
            ),
        )

    def test_filtered_junction_not_written(self, output_dir):
        with make_writer(output_dir) as writer:
            ids = writer.write_sv(self.candidate(), filtered={0: True, 1: False})
            assert writer.idgen.issued == 1
        assert ids == {1: 'SVJDUP:run:1'}
        for stream in [STREAM.CANDIDATE, STREAM.DIPLOID, STREAM.SOMATIC]:
            rows = stream_rows(output_dir, stream)
            assert [row['junction_index'] for row in rows] == ['1']
            assert rows[0]['event_id'] == 'SVJDUP:run:1'

    def test_all_filtered(self, output_dir):
        with make_writer(output_dir) as writer:
            assert writer.write_sv(self.candidate(), filtered={0: True, 1: True}) == {}
            assert writer.summary() == {'candidate': 0, 'diploid': 0, 'somatic': 0}

    def test_unknown_index(self, output_dir):
        with make_writer(output_dir) as writer:
            with pytest.raises(ValueError):
                writer.write_sv(self.candidate(), filtered={5: True})
            assert writer.idgen.issued == 0
        assert stream_rows(output_dir, STREAM.CANDIDATE) == []

    def test_filtered_unspecified_orientation(self, output_dir):
        candidate = SVCandidate(
            '1', (mock_junction(index=0, scores=SCORES), mock_junction(index=1, orient1='?', scores=SCORES))
        )
        with make_writer(output_dir) as writer:
            assert list(writer.write_sv(candidate, filtered={1: True})) == [0]

    def test_unspecified_orientation(self, output_dir):
        with make_writer(output_dir) as writer:
            with pytest.raises(InvalidRearrangement):
                writer.write_sv(single(orient1='?'))
            assert writer.summary()['candidate'] == 0


class TestScoring:
    def test_scores_written(self, output_dir):
        with make_writer(output_dir) as writer:
            writer.write_sv(single(support={'tumor': JunctionSupport(4, 2)}))
        row = stream_rows(output_dir, STREAM.DIPLOID)[0]
        assert row['model'] == 'diploid'
        assert row['quality'] == '50.0'
        assert row['genotype'] == '0/1'
        assert row['filters'] == 'PASS'
        assert row['tumor_pair_support'] == '4'
        assert row['tumor_split_support'] == '2'
        assert row['normal_pair_support'] == '0'
        assert row['svtype'] == 'DEL'

    def test_candidate_stream_unscored_columns(self, output_dir):
        with make_writer(output_dir) as writer:
            writer.write_sv(single())
        row = stream_rows(output_dir, STREAM.CANDIDATE)[0]
        assert 'quality' not in row
        assert row['break1_position'] == '1000'
        assert row['break2_orientation'] == 'R'

    def test_scoring_error(self, output_dir, caplog):
        scorer = mock.Mock(spec=SVScorer)
        scorer.score.side_effect = ScoringError('no coverage')
        with caplog.at_level(logging.WARNING, logger='svjunction'):
            with make_writer(output_dir, scorer=scorer) as writer:
                ids = writer.write_sv(single())
        assert ids == {0: 'SVJDEL:run:1'}
        assert 'no coverage' in caplog.text
        for stream in [STREAM.DIPLOID, STREAM.SOMATIC]:
            row = stream_rows(output_dir, stream)[0]
            assert row['filters'] == UNSCORED_FILTER
            assert row['quality'] == 'None'
            assert row['id'] == 'SVJDEL:run:1'

    def test_other_errors_propagate_before_writing(self, output_dir):
        scorer = mock.Mock(spec=SVScorer)
        scorer.score.side_effect = KeyError('bug')
        with make_writer(output_dir, scorer=scorer) as writer:
            with pytest.raises(KeyError):
                writer.write_sv(single())
            assert writer.idgen.issued == 0
        for stream in [STREAM.CANDIDATE, STREAM.DIPLOID, STREAM.SOMATIC]:
            assert stream_rows(output_dir, stream) == []

    def test_missing_model_score(self, output_dir):
        with make_writer(output_dir) as writer:
            writer.write_sv(single(scores={'diploid': {'quality': 50}}))
        assert stream_rows(output_dir, STREAM.DIPLOID)[0]['filters'] == 'PASS'
        assert stream_rows(output_dir, STREAM.SOMATIC)[0]['filters'] == UNSCORED_FILTER

    def test_min_quality_filter(self, output_dir):
        scores = {'diploid': {'quality': 10, 'filters': ['LowDepth']}, 'somatic': {'quality': 30}}
        with make_writer(output_dir) as writer:
            writer.write_sv(single(scores=scores))
        row = stream_rows(output_dir, STREAM.DIPLOID)[0]
        assert row['filters'] == 'LowDepth;' + MIN_QUALITY_FILTER

    def test_min_somatic_score(self, output_dir):
        scores = {'diploid': {'quality': 50}, 'somatic': {'quality': 5}}
        with make_writer(output_dir) as writer:
            writer.write_sv(single(scores=scores))
            assert writer.summary() == {'candidate': 1, 'diploid': 1, 'somatic': 0}

    def test_small_junction_candidate_only(self, output_dir):
        with make_writer(output_dir) as writer:
            ids = writer.write_sv(single(pos1=1000, pos2=1020))
            assert writer.summary() == {'candidate': 1, 'diploid': 0, 'somatic': 0}
        assert ids == {0: 'SVJDEL:run:1'}

    def test_interchromosomal_always_scored(self, output_dir):
        with make_writer(output_dir, min_scored_variant_size=10 ** 9) as writer:
            writer.write_sv(single(chr2='2', pos2=10))
            assert writer.summary() == {'candidate': 1, 'diploid': 1, 'somatic': 1}


class TestLifecycle:
    def test_write_after_close(self, output_dir):
        writer = make_writer(output_dir)
        writer.close()
        with pytest.raises(ValueError):
            writer.write_sv(single())

    def test_close_twice(self, output_dir):
        writer = make_writer(output_dir)
        writer.write_sv(single())
        writer.close()
        writer.close()
        assert len(stream_rows(output_dir, STREAM.CANDIDATE)) == 1

    def test_out_of_order_warning(self, output_dir, caplog):
        with caplog.at_level(logging.WARNING, logger='svjunction'):
            with make_writer(output_dir) as writer:
                writer.write_sv(single(candidate_id='1', pos1=5000, pos2=9000))
                writer.write_sv(single(candidate_id='2', pos1=1000, pos2=9000))
        assert 'out of order' in caplog.text
        assert len(stream_rows(output_dir, STREAM.CANDIDATE)) == 2

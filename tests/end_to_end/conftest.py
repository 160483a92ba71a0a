import pytest

from ..util import make_bam

PAIRED_READS = [
    dict(
        query_name='r1', flag=99, reference_id=0, reference_start=100, mapping_quality=60,
        next_reference_id=0, next_reference_start=300, template_length=250,
    ),
    dict(query_name='r2', flag=0, reference_id=0, reference_start=200, mapping_quality=5),
    dict(
        query_name='r1', flag=147, reference_id=0, reference_start=300, mapping_quality=60,
        next_reference_id=0, next_reference_start=100, template_length=-250,
    ),
    dict(
        query_name='r3', flag=0, reference_id=0, reference_start=400, mapping_quality=60,
        tags=[('SA', '2,100,+,50M,60,0;')],
    ),
]


@pytest.fixture
def normal_bam(tmp_path):
    return make_bam(str(tmp_path / 'normal.bam'), 'N1', PAIRED_READS)


@pytest.fixture
def tumor_bam(tmp_path):
    return make_bam(str(tmp_path / 'tumor.bam'), 'T1', PAIRED_READS)

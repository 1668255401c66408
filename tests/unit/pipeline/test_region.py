import pytest

from bcbio_recall.pipeline import region
from bcbio_recall.pipeline.region import Region


@pytest.fixture
def ref_file(tmpdir):
    fasta = tmpdir.join('ref.fa')
    fasta.write('>chr1\nACGT\n')
    tmpdir.join('ref.fa.fai').write('chr1\t1000\t6\t4\t5\n'
                                    'chr2\t500\t1100\t60\t61\n'
                                    'chrM\t100\t1700\t60\t61\n')
    yield str(fasta)


def test_region_string_conversions():
    r = Region('chr1', 99, 200)
    assert region.to_samtools(r) == 'chr1:100-200'
    assert region.to_freebayes(r) == 'chr1:99..200'
    assert region.to_safestr(r) == 'chr1_99_200'
    assert str(r) == 'chr1:100-200'


def test_parse_samtools_region():
    assert region.parse('chr1:100-200') == Region('chr1', 99, 200)
    assert region.parse('chr1:1,000-2,000') == Region('chr1', 999, 2000)


def test_parse_contig_uses_reference(ref_file):
    assert region.parse('chr2', ref_file) == Region('chr2', 0, 500)


@pytest.mark.parametrize('region_str', ['chr1:200-100', 'chr1:0-10', 'chr1:a-b'])
def test_parse_invalid_region(region_str):
    with pytest.raises(ValueError):
        region.parse(region_str)


def test_parse_unknown_contig(ref_file):
    with pytest.raises(ValueError):
        region.parse('chr22', ref_file)


def test_get_regions_whole_contigs(ref_file):
    regions = region.get_regions(ref_file, {'algorithm': {}})
    assert regions == [Region('chr1', 0, 1000), Region('chr2', 0, 500), Region('chrM', 0, 100)]


def test_get_regions_from_region_string(ref_file):
    regions = region.get_regions(ref_file, {'algorithm': {'region': 'chr2:11-20'}})
    assert regions == [Region('chr2', 10, 20)]


def test_get_regions_from_bed_sorted_by_reference(ref_file, tmpdir):
    bed_file = tmpdir.join('regions.bed')
    bed_file.write('track name=test\n'
                   'chrM\t0\t50\n'
                   'chr1\t500\t600\n'
                   'chr1\t10\t20\n')
    regions = region.get_regions(ref_file, {'algorithm': {'region': str(bed_file)}})
    assert regions == [Region('chr1', 10, 20), Region('chr1', 500, 600), Region('chrM', 0, 50)]


def test_sort_by_ref_unknown_contig(ref_file):
    with pytest.raises(ValueError):
        region.sort_by_ref([Region('chrUn', 0, 10)], ref_file)

import mock
import pytest

from bcbio_recall import bam
from bcbio_recall.pipeline.region import Region


@pytest.fixture
def mock_samtools(mocker):
    mocker.patch('bcbio_recall.bam.config_utils.get_program', return_value='samtools')
    mocker.patch('bcbio_recall.bam.index')
    yield mocker.patch('bcbio_recall.bam.do.run')


@pytest.mark.parametrize(('in_file', 'cram_ref'), [
    ('/data/s1.bam', False),
    ('/data/s1.cram', True),
])
def test_subset_in_region(mock_samtools, tmpdir, in_file, cram_ref):
    out_file = bam.subset_in_region(in_file, 'ref.fa', Region('chr1', 99, 200), str(tmpdir), {})
    assert out_file == str(tmpdir.join('s1-chr1_99_200.bam'))
    cmd = mock_samtools.call_args[0][0]
    assert cmd[:3] == ['samtools', 'view', '-b']
    assert cmd[-2:] == [in_file, 'chr1:100-200']
    assert ('-T' in cmd) is cram_ref
    bam.index.assert_called_with(out_file, {})


def test_sample_names_from_read_groups(mocker):
    samfile = mock.MagicMock()
    samfile.__enter__.return_value.header.to_dict.return_value = {
        'RG': [{'ID': 'rg1', 'SM': 's1'}, {'ID': 'rg2', 'SM': 's1'}, {'ID': 'rg3', 'SM': 's2'},
               {'ID': 'rg4'}]}
    open_samfile = mocker.patch('bcbio_recall.bam.open_samfile', return_value=samfile)
    assert bam.sample_names('s.cram', 'ref.fa') == ['s1', 's2']
    open_samfile.assert_called_once_with('s.cram', 'ref.fa')


def test_sample_names_rejects_other_files():
    with pytest.raises(ValueError):
        bam.sample_names('s.sam')

import os

import pytest

from bcbio_recall import utils


@pytest.mark.parametrize(('fname', 'expected'), [
    ('sample.vcf.gz', ('sample', '.vcf.gz')),
    ('sample.vcf', ('sample', '.vcf')),
    ('/data/sample.bam', ('/data/sample', '.bam')),
])
def test_splitext_plus(fname, expected):
    assert utils.splitext_plus(fname) == expected


def test_file_exists_requires_content(tmpdir):
    empty = tmpdir.join('empty.txt')
    empty.write('')
    full = tmpdir.join('full.txt')
    full.write('x')
    assert not utils.file_exists(str(empty))
    assert utils.file_exists(str(full))
    assert not utils.file_exists(str(tmpdir.join('missing.txt')))
    assert not utils.file_exists(None)


def test_symlink_plus_links_index_files(tmpdir):
    orig = tmpdir.join('orig.vcf.gz')
    orig.write('x')
    tmpdir.join('orig.vcf.gz.tbi').write('x')
    new_dir = tmpdir.mkdir('new')
    new = str(new_dir.join('new.vcf.gz'))
    utils.symlink_plus(str(orig), new)
    assert os.path.islink(new)
    assert os.path.exists(new + '.tbi')


def test_copy_plus_copies_index_files(tmpdir):
    orig = tmpdir.join('orig.bam')
    orig.write('x')
    tmpdir.join('orig.bam.bai').write('x')
    new = str(tmpdir.join('new.bam'))
    utils.copy_plus(str(orig), new)
    assert os.path.exists(new)
    assert os.path.exists(new + '.bai')


def test_flatten():
    assert list(utils.flatten([[['a', 'b'], ['c']], 'd', None])) == ['a', 'b', 'c', 'd', None]

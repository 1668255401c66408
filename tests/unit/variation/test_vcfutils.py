import os

import pysam
import pytest

from bcbio_recall.pipeline.region import Region
from bcbio_recall.variation import vcfutils
from tests.unit.conftest import DummyFileTransaction


def test_get_samples(vcf_writer):
    vcf_file = vcf_writer('multi', ['s2', 's1'], [('chr1', 10, 'A', 'G', ['0/1', '0/0'])])
    assert vcfutils.get_samples(vcf_file) == ['s2', 's1']


def test_samples_to_files_sorted_by_sample(vcf_writer):
    multi = vcf_writer('multi', ['s3', 's1'], [])
    single = vcf_writer('single', ['s2'], [])
    assert vcfutils.samples_to_files([multi, single]) == [('s1', multi), ('s2', single), ('s3', multi)]


def test_check_samples_nodups(vcf_writer):
    one = vcf_writer('one', ['s1', 's2'], [])
    two = vcf_writer('two', ['s3'], [])
    vcfutils.check_samples_nodups([one, two])
    dup = vcf_writer('dup', ['s2'], [])
    with pytest.raises(ValueError) as excinfo:
        vcfutils.check_samples_nodups([one, two, dup])
    assert 's2' in str(excinfo.value)


def test_region_has_variants(vcf_writer):
    vcf_file = vcf_writer('regions', ['s1'], [('chr1', 100, 'A', 'G', ['0/1'])])
    assert vcfutils.region_has_variants(vcf_file, Region('chr1', 0, 1000))
    assert not vcfutils.region_has_variants(vcf_file, Region('chr1', 200, 1000))
    assert not vcfutils.region_has_variants(vcf_file, Region('chr2', 0, 500))


def test_vcf_has_variants(vcf_writer, tmpdir):
    assert vcfutils.vcf_has_variants(vcf_writer('full', ['s1'], [('chr1', 1, 'A', 'G', ['1/1'])]))
    assert not vcfutils.vcf_has_variants(vcf_writer('empty', ['s1'], []))
    assert not vcfutils.vcf_has_variants(str(tmpdir.join('missing.vcf.gz')))


def test_write_empty_vcf_with_samples(tmpdir):
    out_file = vcfutils.write_empty_vcf(str(tmpdir.join('empty.vcf')), {}, ['s1', 's2'])
    assert vcfutils.get_samples(out_file) == ['s1', 's2']
    assert not vcfutils.vcf_has_variants(out_file)


def test_subset_sample_region_command(mocker, tmpdir):
    mocker.patch('bcbio_recall.variation.vcfutils.config_utils.get_program',
                 side_effect=lambda name, config: name)
    mocker.patch('bcbio_recall.variation.vcfutils.bgzip_and_index',
                 side_effect=lambda f, config: f)
    mocker.patch('bcbio_recall.variation.vcfutils.file_transaction', side_effect=DummyFileTransaction)
    run = mocker.patch('bcbio_recall.variation.vcfutils.do.run')
    vcfutils.subset_sample_region('in.vcf.gz', 's1', Region('chr1', 0, 100),
                                  str(tmpdir.join('out.vcf.gz')), {}, only_called=True)
    cmd = run.call_args[0][0]
    assert cmd[cmd.index('-r') + 1] == 'chr1:1-100'
    assert cmd[cmd.index('-s') + 1] == 's1'
    assert cmd[cmd.index('-e') + 1] == 'GT="mis"'
    assert cmd[cmd.index('-o') + 1] == 'tx_file'
    assert cmd[-1] == 'in.vcf.gz'


def test_merge_single_file_copies(mocker, tmpdir, vcf_writer):
    vcf_file = vcf_writer('single', ['s1'], [('chr1', 10, 'A', 'G', ['0/1'])])
    run = mocker.patch('bcbio_recall.variation.vcfutils.do.run')
    mocker.patch('bcbio_recall.variation.vcfutils.tabix_index')
    out_file = str(tmpdir.join('merged.vcf.gz'))
    assert vcfutils.merge_variant_files([vcf_file], out_file, Region('chr1', 0, 1000), {}) == out_file
    assert not run.called
    assert vcfutils.get_samples(out_file) == ['s1']


def test_prepared_copies_of_same_named_inputs_stay_separate(mocker, tmpdir):
    mocker.patch('bcbio_recall.pipeline.tools.config_utils.get_program',
                 side_effect=lambda name, config: name)
    mocker.patch('bcbio_recall.variation.vcfutils.tabix_index')

    def bgzip_pipeline(cmds, out_file, descr):
        with open(out_file, 'w') as out_handle:
            out_handle.write(cmds[-1][-1])
    mocker.patch('bcbio_recall.variation.vcfutils.do.run_pipeline', side_effect=bgzip_pipeline)
    inprep = tmpdir.mkdir('inprep')
    inputs = []
    for sample in ['S1', 'S2']:
        in_file = tmpdir.mkdir(sample).join('calls.vcf')
        in_file.write('#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t%s\n' % sample)
        inputs.append(str(in_file))
    prepped = [vcfutils.bgzip_and_index(f, {}, out_dir=str(inprep)) for f in inputs]
    assert prepped[0] != prepped[1]
    for in_file, out_file in zip(inputs, prepped):
        assert os.path.dirname(out_file) == str(inprep)
        assert os.path.basename(out_file).startswith('calls-')
        assert out_file.endswith('.vcf.gz')
        with open(out_file) as in_handle:
            assert in_handle.read() == in_file
    assert os.path.exists(inputs[0]) and os.path.exists(inputs[1])


def test_get_prep_file_keeps_compressed_extension():
    assert vcfutils.get_prep_file('/a/calls.vcf.gz', '/prep').endswith('.vcf.gz')
    assert vcfutils.get_prep_file('/a/calls.vcf', '/prep') != vcfutils.get_prep_file('/b/calls.vcf', '/prep')


def test_nocall_missing_marks_uncalled_positions(mocker, tmpdir, vcf_writer):
    mocker.patch('bcbio_recall.variation.vcfutils.tabix_index')
    needcall = vcf_writer('needcall', ['other'], [('chr1', 100, 'A', 'G', ['0/1']),
                                                  ('chr1', 150, 'C', 'T', ['1/1']),
                                                  ('chr1', 200, 'G', 'A', ['0/1'])])
    recalled = vcf_writer('recall', ['s1'], [('chr1', 150, 'C', 'T', ['0/0'])])
    out_file = vcfutils.nocall_missing(needcall, recalled, 's1', str(tmpdir.join('nocall.vcf.gz')), {})
    with pysam.VariantFile(out_file) as in_vcf:
        assert list(in_vcf.header.samples) == ['s1']
        recs = [(rec.pos, rec.alleles, rec.samples['s1']['GT']) for rec in in_vcf]
    assert recs == [(100, ('A', 'G'), (None, None)), (200, ('G', 'A'), (None, None))]


def test_nocall_missing_haploid(mocker, tmpdir, vcf_writer):
    mocker.patch('bcbio_recall.variation.vcfutils.tabix_index')
    needcall = vcf_writer('needcall', ['other'], [('chrM', 10, 'A', 'G', ['1'])])
    recalled = vcf_writer('recall', ['s1'], [])
    out_file = vcfutils.nocall_missing(needcall, recalled, 's1', str(tmpdir.join('nocall.vcf.gz')), {},
                                       ploidy=1)
    with pysam.VariantFile(out_file) as in_vcf:
        assert [rec.samples['s1']['GT'] for rec in in_vcf] == [(None,)]

from bcbio_recall.pipeline.region import Region
from bcbio_recall.variation import ploidy


CHR1 = Region('chr1', 0, 1000)
CHRM = Region('chrM', 0, 100)


def test_existing_ploidy_uses_maximum(vcf_writer):
    haploid = vcf_writer('haploid', ['s1'], [('chr1', 10, 'A', 'G', ['1']),
                                              ('chrM', 10, 'A', 'G', ['1'])])
    diploid = vcf_writer('diploid', ['s2'], [('chr1', 20, 'C', 'T', ['0/1'])])
    assert ploidy.get_existing_ploidy([haploid], CHRM) == 1
    assert ploidy.get_existing_ploidy([haploid, diploid], CHR1) == 2


def test_existing_ploidy_without_records(vcf_writer):
    vcf_file = vcf_writer('chr1only', ['s1'], [('chr1', 10, 'A', 'G', ['0/1'])])
    assert ploidy.get_existing_ploidy([vcf_file], CHRM) is None
    assert ploidy.get_existing_ploidy([vcf_file], Region('chr2', 0, 500)) is None


def test_ploidy_file_limited_to_first_records(vcf_writer):
    records = [('chr1', i + 1, 'A', 'G', ['1']) for i in range(ploidy.MAX_RECORDS)]
    records.append(('chr1', 100, 'A', 'G', ['0/1/1']))
    vcf_file = vcf_writer('mixed', ['s1'], records)
    assert ploidy.get_ploidy_file(vcf_file, CHR1) == [1] * ploidy.MAX_RECORDS
    assert ploidy.get_existing_ploidy([vcf_file], CHR1) == 1

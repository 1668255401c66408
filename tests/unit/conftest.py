import os

import pysam
import pytest


class DummyCM(object):
    """Explicit structure of a context manager.
    Allows to monkey-patch context managers defined through
    @contextmanager decorator.

    value: holds whatever the context manager should yield.
    """
    value = None

    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self.value

    def __exit__(self, *args, **kwargs):
        pass


class DummyTxTmpdir(DummyCM):
    value = 'foo'  # path that dummy tx_tmpdir "yields"


class DummyFileTransaction(DummyCM):
    value = 'tx_file'


VCF_HEADER = """##fileformat=VCFv4.2
##contig=<ID=chr1,length=1000>
##contig=<ID=chr2,length=500>
##contig=<ID=chrM,length=100>
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t{samples}
"""


def write_vcf(out_dir, name, samples, records):
    """Write a small VCF, bgzip and index it with pysam.

    records are (chrom, pos, ref, alt, [genotypes]) tuples, in sorted order.
    """
    vcf_file = os.path.join(str(out_dir), "%s.vcf" % name)
    with open(vcf_file, "w") as out_handle:
        out_handle.write(VCF_HEADER.format(samples="\t".join(samples)))
        for chrom, pos, ref, alt, gts in records:
            out_handle.write("\t".join([chrom, str(pos), ".", ref, alt, "50", "PASS", ".", "GT"] +
                                       list(gts)) + "\n")
    return pysam.tabix_index(vcf_file, preset="vcf", force=True)


@pytest.fixture
def vcf_writer(tmpdir):
    def _write(name, samples, records):
        return write_vcf(tmpdir, name, samples, records)
    yield _write

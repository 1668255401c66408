#!/usr/bin/env python

"""Setup file and install script for squaring off variant calls by recalling"""

import os
import subprocess

import setuptools

VERSION = '0.1.0'

# add version number and git commit hash of the current revision to version.py
try:
    git_run = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'], stdout=subprocess.PIPE,
                             stderr=subprocess.DEVNULL)
    git_run.check_returncode()
except (OSError, subprocess.SubprocessError):
    commit_hash = ''
else:
    commit_hash = git_run.stdout.strip().decode()

here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, 'bcbio_recall', 'pipeline', 'version.py'), 'w') as version_file:
    version_file.writelines([f'__version__ = "{VERSION}"\n',
                             f'__git_revision__ = "{commit_hash}"\n'])

# external tools (freebayes, platypus, samtools, bcftools, vcflib, vt, htslib) are
# installed via Conda from bioconda
setuptools.setup(
    name='bcbio-variation-recall',
    version=VERSION,
    description='Square off multi-sample variant calls by recalling at all called positions',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    scripts=['scripts/bcbio_variation_recall.py'],
    entry_points={'console_scripts': [
        'bcbio-variation-recall = bcbio_recall.pipeline.main:main']},
    python_requires='>=3.7',
    install_requires=['joblib', 'logbook', 'looseversion', 'pybedtools', 'pysam',
                      'PyYAML', 'toolz'],
    extras_require={'test': ['mock', 'pytest', 'pytest-mock']},
)

import os

from setuptools import find_packages, setup

VERSION = '1.0.0'


def parse_md_readme():
    try:
        with open('README.md', 'r') as fh:
            return fh.read()
    except OSError:
        return ''


# HSTLIB is a dependency for pysam.
# The cram file libraries fail for some OS versions and svjunction does not use cram files so we disable these options
os.environ['HTSLIB_CONFIGURE_OPTIONS'] = '--disable-lzma --disable-bz2 --disable-libcurl'


TEST_REQS = [
    'coverage>=4.2',
    'pycodestyle>=2.3.1',
    'pytest',
    'pytest-cov',
]


INSTALL_REQS = [
    'braceexpand==0.1.2',
    'pandas>=1.1',
    'pysam>=0.16',
    'shortuuid>=0.5.0',
    'snakemake>=6.1.1',
]


setup(
    name='svjunction',
    version='{}'.format(VERSION),
    packages=find_packages(exclude=['tests', 'tests.*']),
    description='Per-sample SV evidence counts and multi-model structural variant junction record writer',
    long_description=parse_md_readme(),
    long_description_content_type='text/markdown',
    install_requires=INSTALL_REQS,
    extras_require={
        'test': TEST_REQS,
        'dev': ['black', 'flake8'] + TEST_REQS,
    },
    tests_require=TEST_REQS,
    python_requires='>=3.8',
    package_data={'svjunction': ['schemas/config.json']},
    include_package_data=True,
    test_suite='tests',
    entry_points={'console_scripts': ['svjunction = svjunction.main:main']},
)

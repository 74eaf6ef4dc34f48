#!/usr/bin/env python3

from setuptools import setup, find_packages

with open('auto_multimer/__init__.py') as file:
    exec(file.read())

with open('README.rst') as file:
    readme = file.read()

def define_command(module, extras=None):
    entry_point = '{0} = auto_multimer.commands.{0}:main'.format(module)
    if extras is not None:
        entry_point += ' {0}'.format(extras)
    return entry_point


setup(
    name='auto_multimer',
    version=__version__,
    author=__author__,
    author_email=__email__,
    license='GPLv3',
    description="Run colabfold search and prediction over a batch of FASTA files, archiving verified results to durable storage.",
    long_description=readme,
    keywords=[
        'scientific',
        'colabfold',
        'alphafold',
        'multimer',
        'protein',
    ],
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
    ],
    packages=find_packages(exclude=['tests']),
    python_requires='>=3.10',
    install_requires=[
        'docopt',
        'pyyaml',
    ],
    extras_require={
        'tests': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'auto_multimer=auto_multimer.main:main',
        ],
        'auto_multimer.commands': [
            define_command('run'),
            define_command('status'),
            define_command('clean'),
        ],
    },
)

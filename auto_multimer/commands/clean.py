#!/usr/bin/env python3

"""\
Delete leftover working directories for complexes that are already archived.

A run normally cleans up after itself, but a run that was interrupted at the
wrong moment can leave working directories behind on the local disk.  Only
complexes whose MSA and predictions are both in the archive are touched.

Usage:
    auto_multimer clean -i <input> -o <archive> [options]
    auto_multimer clean --help

Options:
    -i <input>
        A FASTA file, or a directory containing FASTA files.
    -o <archive>
        The root of the archive.
    --local-root PATH
        The local disk used for working directories.  [default: /mnt/nvme]
    -c PATH, --config PATH
        A YAML file providing the local root (and any other settings).
    -d, --dry-run
        Print the directories that would be deleted, without deleting them.
"""

import os, sys
import docopt
from .. import pipeline, driver, settings, scripting

def stray_directories(config):
    """
    Return the scratch workspaces of every archived complex that still has
    something on the local disk.
    """
    strays = []

    for unit in pipeline.collect_inputs(config.input_path):
        scratch = pipeline.ScratchWorkspace(config.local_root, unit.id)
        archive = pipeline.ArchiveWorkspace(config.archive_root, unit.id)

        if archive.is_fully_archived and scratch.exists():
            strays.append(scratch)

    return strays

@scripting.catch_and_print_errors()
def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    usage = __doc__.replace('[default:', '[fallback:')
    args = docopt.docopt(usage, argv=argv)
    driver.configure_logging()

    config = settings.Settings.load(
            args['-i'], args['-o'],
            overrides={'local_root': args['--local-root']},
            config_path=args['--config'],
    )

    for scratch in stray_directories(config):
        if args['--dry-run']:
            for directory in scratch.io_dirs:
                if os.path.exists(directory):
                    print(directory)
        else:
            driver.Driver(config).purge_scratch(scratch)

#!/usr/bin/env python3

"""\
Generate MSAs and predict structures for one or more complexes, then archive
the results.

Each FASTA file is treated as one complex.  The MSA is generated with
colabfold_search and structures are predicted with colabfold_batch, both in
working directories on the local disk.  The MSA is then copied to the archive
and verified by MD5 checksum, the prediction directory is mirrored to the
archive with rsync, and the local copies are deleted.  Complexes that are
already archived are skipped, and steps whose output is already present on
the local disk are not repeated, so an interrupted batch can just be started
again.

Usage:
    auto_multimer run -i <input> -o <archive> [options]
    auto_multimer run --help

Options:
    -i <input>
        A FASTA file, or a directory containing FASTA files (*.fasta, *.fa,
        *.faa, *.fastaa).  Subdirectories are not searched.
    -o <archive>
        The root of the archive, where results will be kept.  This is usually
        on a network disk.  Each complex gets its own subdirectory.
    --local-root PATH
        The local disk to use for working directories.
        [default: /mnt/nvme]
    --db PATH
        The colabfold database directory.
        [default: /mnt/nvme/colabfold_db/]
    --mmseqs PATH
        The mmseqs binary used by colabfold_search.
        [default: /home/ubuntu/localcolabfold/localcolabfold/conda/envs/colabfold/bin/mmseqs]
    --threads NUM
        The number of threads for colabfold_search.  [default: 15]
    --gpu ID
        The GPU for colabfold_search to use.  [default: 1]
    --model-type TYPE
        The model type for colabfold_batch.  [default: alphafold2_multimer_v3]
    --num-models NUM
        The number of models to predict.  [default: 5]
    --num-recycles NUM
        The number of recycles for each prediction.  [default: 3]
    --pair-mode MODE
        How to pair MSAs between chains.  [default: unpaired_paired]
    --pair-strategy STRATEGY
        The strategy for pairing MSAs.  [default: greedy]
    --use-templates
        Use templates in the prediction.  This is the default.
    --no-templates
        Don't use templates in the prediction.  If this option is combined
        with the one above, whichever comes last wins.
    -c PATH, --config PATH
        A YAML file providing values for any of the settings above, e.g.
        "db_path: /scratch/colabfold_db".  Options given on the command line
        take precedence over values in this file.
    -d, --dry-run
        Report what would be done for each complex, without running any
        tools or moving any files.
    -x, --fail-fast
        Stop after the first complex that fails, rather than moving on to the
        next one.
    --verbose
        Print debugging messages.

The defaults listed above only apply when a value is given neither on the
command line nor in the config file.
"""

import sys, logging
import docopt
from .. import pipeline, driver, settings, scripting

logger = logging.getLogger(__name__)

# Map settings to the options that override them.
OPTIONS = {
        'local_root': '--local-root',
        'db_path': '--db',
        'mmseqs': '--mmseqs',
        'threads': '--threads',
        'gpu': '--gpu',
        'model_type': '--model-type',
        'num_models': '--num-models',
        'num_recycles': '--num-recycles',
        'pair_mode': '--pair-mode',
        'pair_strategy': '--pair-strategy',
}

def parse_args(argv=None):
    """
    Parse the command line.  The defaults in the help text aren't given to
    docopt, because an option that wasn't given must not hide the value from
    the config file.
    """
    usage = __doc__.replace('[default:', '[fallback:')
    return docopt.docopt(usage, argv=argv)

def templates_option(args, argv):
    """
    Return True if --use-templates was the last template option given, False
    if --no-templates was, and None if neither was given.
    """
    choice = None

    for arg in argv:
        if arg == '--use-templates':
            choice = True
        elif arg == '--no-templates':
            choice = False

    # docopt also accepts unambiguous abbreviations of long options, which the
    # loop above won't see.
    if choice is None:
        if args['--no-templates']:
            choice = False
        elif args['--use-templates']:
            choice = True

    return choice

def load_settings(args, argv):
    overrides = {k: args[v] for k, v in OPTIONS.items()}
    overrides['use_templates'] = templates_option(args, argv)

    return settings.Settings.load(
            args['-i'], args['-o'],
            overrides=overrides,
            config_path=args['--config'],
    )

@scripting.catch_and_print_errors()
def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    driver.configure_logging(args['--verbose'])

    config = load_settings(args, argv)
    units = pipeline.collect_inputs(config.input_path)
    scratch = pipeline.ScratchWorkspace(config.local_root, None)

    logger.info("Found %d fasta file(s)", len(units))
    logger.info("Local temp root : %s", config.local_root)
    logger.info("Archive root    : %s", config.archive_root)
    logger.info("MSA work root   : %s (will be deleted per complex)",
            scratch.msa_work_root)
    logger.info("Pred work root  : %s (will be archived then deleted per complex)",
            scratch.prediction_work_root)
    logger.debug("Settings:\n%s", config.describe())

    batch = driver.Driver(
            config,
            dry_run=args['--dry-run'],
            fail_fast=args['--fail-fast'],
    )
    results = batch.run(units)
    failures = driver.summarize(results)

    if failures:
        raise SystemExit(1)

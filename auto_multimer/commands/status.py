#!/usr/bin/env python3

"""\
Report how far each complex has gotten through the pipeline.

The status of each complex is worked out from the files present in the
archive and on the local disk, exactly as the run command would, so this
shows what `auto_multimer run` would do next without running anything:

    archived       The MSA and predictions are in the archive.
    predict-done   The MSA and predictions exist, but haven't been archived.
    search-done    The MSA exists, but the prediction still needs to run.
    not-started    Nothing has been done yet.

Usage:
    auto_multimer status -i <input> -o <archive> [options]
    auto_multimer status --help

Options:
    -i <input>
        A FASTA file, or a directory containing FASTA files.
    -o <archive>
        The root of the archive.
    --local-root PATH
        The local disk used for working directories.  [default: /mnt/nvme]
    -c PATH, --config PATH
        A YAML file providing the local root (and any other settings).
    -y, --yaml
        Print the status of each complex as YAML, for use by other scripts.
"""

import sys
import yaml
import docopt
from .. import pipeline, resume, settings, scripting

def unit_statuses(config):
    """
    Return a list of (unit, decision) tuples for every input complex.
    """
    statuses = []

    for unit in pipeline.collect_inputs(config.input_path):
        scratch = pipeline.ScratchWorkspace(config.local_root, unit.id)
        archive = pipeline.ArchiveWorkspace(config.archive_root, unit.id)
        decision = resume.decide(scratch, archive)
        unit.status = decision.status
        statuses.append((unit, decision))

    return statuses

def format_table(statuses):
    if not statuses:
        return ''

    width = max(len(unit.id) for unit, _ in statuses)
    rows = [
            '{0:{1}}  {2}'.format(unit.id, width, unit.status)
            for unit, _ in statuses
    ]
    return '\n'.join(rows)

def format_yaml(statuses):
    records = [
            dict(
                id=unit.id,
                fasta=unit.fasta_path,
                status=unit.status,
                local_msa=decision.local_msa,
                archived_msa=decision.archived_msa,
                local_predictions=decision.local_predictions,
            )
            for unit, decision in statuses
    ]
    return yaml.safe_dump(records, default_flow_style=False, sort_keys=False)

@scripting.catch_and_print_errors()
def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    usage = __doc__.replace('[default:', '[fallback:')
    args = docopt.docopt(usage, argv=argv)

    config = settings.Settings.load(
            args['-i'], args['-o'],
            overrides={'local_root': args['--local-root']},
            config_path=args['--config'],
    )
    statuses = unit_statuses(config)

    if args['--yaml']:
        sys.stdout.write(format_yaml(statuses))
    else:
        print(format_table(statuses))

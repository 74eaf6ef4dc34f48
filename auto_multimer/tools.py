#!/usr/bin/env python3

"""\
Build and run the command lines for the external tools.  The search step is
`colabfold_search` (which uses mmseqs and the colabfold database to make an
MSA) and the prediction step is `colabfold_batch`.  Both are treated as black
boxes: this module only knows which arguments they take and where they put
their output.
"""

import os, sys, shlex, shutil, logging, subprocess
from datetime import datetime
from . import pipeline

logger = logging.getLogger(__name__)

def check_environment(settings):
    """
    Make sure every program and database the run depends on is present.  This
    is called once before any complex is processed, because there's no point
    starting a long batch that is guaranteed to fail.
    """

    for command in (settings.search_exe, settings.predict_exe, settings.rsync):
        if shutil.which(command) is None:
            raise pipeline.CommandNotFound(command)

    if not (os.path.isfile(settings.mmseqs) and
            os.access(settings.mmseqs, os.X_OK)):
        raise pipeline.ExecutableNotFound(settings.mmseqs)

    if not os.path.isdir(settings.db_path):
        raise pipeline.DatabaseNotFound(settings.db_path)

def search_command(settings, fasta_path, msa_dir):
    return [
            settings.search_exe,
            '--mmseqs', settings.mmseqs,
            fasta_path, settings.db_path, msa_dir,
            '--gpu', str(settings.gpu),
            '--threads', str(settings.threads),
    ]

def predict_command(settings, msa_path, prediction_dir):
    command = [
            settings.predict_exe,
            msa_path, prediction_dir,
            '--model-type', settings.model_type,
            '--num-models', str(settings.num_models),
            '--num-recycles', str(settings.num_recycles),
            '--pair-mode', settings.pair_mode,
            '--pair-strategy', settings.pair_strategy,
    ]
    if settings.use_templates:
        command += ['--use-templates']

    return command

def run_tool(command, log_path=None):
    """
    Run one of the external tools and raise ToolFailed if it doesn't exit
    cleanly.
    """
    try:
        status = run_command(command, log_path)
    except OSError as error:
        raise pipeline.ToolFailed(command, error)

    if status != 0:
        raise pipeline.ToolFailed(command, "exit status {0}".format(status))

def run_command(command, log_path=None):
    """
    Run a command as if it were piped though tee.

    Output (stdout and stderr, interleaved) is echoed to the terminal as soon
    as it's generated, and is also appended to the given log file.  Bytes
    that aren't valid UTF-8 are replaced rather than raising.  The log
    is a convenience: if it can't be opened or written, a warning is printed
    and the command keeps running.  The exit status of the command is
    returned.
    """

    log = _open_log(log_path)
    log = _write_log(log, "[{0:%Y-%m-%d %H:%M:%S}] + {1}\n".format(
        datetime.now(), shlex.join(command)))

    try:
        process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding='utf-8',
                errors='replace',
                bufsize=1,
        )
        with process.stdout:
            for line in process.stdout:
                sys.stdout.write(line)
                sys.stdout.flush()
                log = _write_log(log, line)

        return process.wait()

    finally:
        if log is not None:
            log.close()

def _open_log(log_path):
    if log_path is None:
        return None
    try:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
        return open(log_path, 'a', encoding='utf-8')
    except OSError as error:
        logger.warning("Can't write to log '%s': %s", log_path, error)
        return None

def _write_log(log, text):
    """Write to the log, and stop using it if that doesn't work."""
    if log is None:
        return None
    try:
        log.write(text)
        log.flush()
        return log
    except OSError as error:
        logger.warning("Can't write to log '%s': %s", log.name, error)
        log.close()
        return None

#!/usr/bin/env python3

"""\
This module defines the Workspace classes that are central to every command.
The role of these classes is to provide paths to all the files produced while
processing a complex and to hide the organization of the directories holding
those files.  There are two kinds of workspace: the scratch workspace lives on
a fast local disk and holds the files that the search and prediction tools
are actively writing, while the archive workspace lives on durable (usually
network) storage and holds the results that have been verified and kept.

This module also defines the errors raised by the pipeline and the functions
used to discover which FASTA files need to be processed.
"""

import os, glob

__all__ = [
        'WorkUnit',
        'Workspace',
        'ScratchWorkspace',
        'ArchiveWorkspace',
        'collect_inputs',
        'select_newest_result',
        'is_nonempty_file',
        'has_prediction_marker',
        'PipelineError',
        'EnvironmentNotReady',
        'CommandNotFound',
        'ExecutableNotFound',
        'DatabaseNotFound',
        'InputNotFound',
        'NoInputsFound',
        'UnitError',
        'SourceMissingOrEmpty',
        'SourceDirMissing',
        'IntegrityMismatch',
        'MirrorFailed',
        'CleanupFailed',
        'NoSearchResultProduced',
        'NoPredictionProduced',
        'ToolFailed',
]

FASTA_EXTENSIONS = '.fasta', '.fa', '.faa', '.fastaa'
MSA_EXTENSION = '.a3m'
PREDICTION_MARKERS = '*.pdb', '*ranking*.json'

NOT_STARTED = 'not-started'
SEARCH_DONE = 'search-done'
PREDICT_DONE = 'predict-done'
ARCHIVED = 'archived'


class WorkUnit (object):
    """
    One input FASTA file on its way through the pipeline.

    The identifier is the file name with its last extension removed, so
    'complex1.fasta' becomes 'complex1' and 'complex1.v2.fa' becomes
    'complex1.v2'.  Every directory created for this unit, both on scratch and
    in the archive, is named after this identifier.
    """

    def __init__(self, fasta_path):
        self.fasta_path = fasta_path
        self.id = os.path.splitext(os.path.basename(fasta_path))[0]
        self.status = NOT_STARTED

    def __repr__(self):
        return 'WorkUnit({0.fasta_path!r}, status={0.status!r})'.format(self)


class Workspace (object):
    """
    Provide paths to the files belonging to one complex.

    Both kinds of workspace store an MSA file and a directory of predicted
    structures, they just keep them in different places.  Subclasses decide
    where by overriding `msa_dir` and `prediction_dir`; everything else (the
    canonical MSA path and the checks for whether each artifact is present)
    is shared.

    Workspace objects should do little more than return paths to files.  The
    few convenience methods that create directories or inspect their contents
    are the exception rather than the rule.
    """

    def __init__(self, root, unit_id):
        self._root = os.path.normpath(root)
        self.unit_id = unit_id

    def __repr__(self):
        return '{0}({1!r}, {2!r})'.format(
                self.__class__.__name__, self.root_dir, self.unit_id)

    @property
    def root_dir(self):
        return self._root

    @property
    def msa_dir(self):
        raise NotImplementedError

    @property
    def prediction_dir(self):
        raise NotImplementedError

    @property
    def msa_path(self):
        return os.path.join(self.msa_dir, self.unit_id + MSA_EXTENSION)

    @property
    def has_msa(self):
        return is_nonempty_file(self.msa_path)

    @property
    def has_predictions(self):
        return has_prediction_marker(self.prediction_dir)

    @property
    def io_dirs(self):
        return [self.msa_dir, self.prediction_dir]

    def make_dirs(self):
        for directory in self.io_dirs:
            os.makedirs(directory, exist_ok=True)


class ScratchWorkspace (Workspace):
    """
    Provide paths to the transient working directories on the local disk.

    Each complex gets its own MSA directory and prediction directory, so no
    two steps ever write to the same place:

        <local_root>/msas_work/<unit_id>/<unit_id>.a3m
        <local_root>/predictions_work/<unit_id>/
    """

    @property
    def msa_work_root(self):
        return os.path.join(self.root_dir, 'msas_work')

    @property
    def prediction_work_root(self):
        return os.path.join(self.root_dir, 'predictions_work')

    @property
    def msa_dir(self):
        return os.path.join(self.msa_work_root, self.unit_id)

    @property
    def prediction_dir(self):
        return os.path.join(self.prediction_work_root, self.unit_id)

    @property
    def msa_candidates(self):
        return glob.glob(os.path.join(self.msa_dir, '*' + MSA_EXTENSION))

    def exists(self):
        return any(os.path.exists(x) for x in self.io_dirs)


class ArchiveWorkspace (Workspace):
    """
    Provide paths to the durable copy of a complex's results.

    Every complex gets one directory under the archive root with a fixed set
    of subdirectories:

        <archive_root>/<unit_id>/msa/<unit_id>.a3m
        <archive_root>/<unit_id>/predictions/
        <archive_root>/<unit_id>/logs/{search,predict,archive}.log

    Once written, these files are the source of truth for deciding whether a
    complex needs any more work.
    """

    @property
    def focus_dir(self):
        return os.path.join(self.root_dir, self.unit_id)

    @property
    def msa_dir(self):
        return os.path.join(self.focus_dir, 'msa')

    @property
    def prediction_dir(self):
        return os.path.join(self.focus_dir, 'predictions')

    @property
    def log_dir(self):
        return os.path.join(self.focus_dir, 'logs')

    @property
    def search_log_path(self):
        return os.path.join(self.log_dir, 'search.log')

    @property
    def predict_log_path(self):
        return os.path.join(self.log_dir, 'predict.log')

    @property
    def archive_log_path(self):
        return os.path.join(self.log_dir, 'archive.log')

    @property
    def io_dirs(self):
        return [self.msa_dir, self.prediction_dir, self.log_dir]

    @property
    def is_fully_archived(self):
        """
        True if both the MSA and at least one recognizable prediction have
        been archived.

        Note that a single structure or ranking file is accepted as evidence
        that the prediction finished, even if some of the other requested
        models failed.  This is a weak check, but it's the same one used to
        decide whether a local prediction can be reused.
        """
        return self.has_msa and self.has_predictions

    def exists(self):
        return os.path.exists(self.focus_dir)


def collect_inputs(input_path):
    """
    Return a WorkUnit for each FASTA file to process.

    If the given path is a directory, every regular file directly inside it
    (subdirectories are not searched) with a recognized FASTA extension is
    included, in alphabetical order.  If the path is a file, it's used as-is
    regardless of its extension.
    """
    if os.path.isdir(input_path):
        fasta_paths = sorted(
                os.path.join(input_path, name)
                for name in os.listdir(input_path)
                if name.endswith(FASTA_EXTENSIONS)
                and os.path.isfile(os.path.join(input_path, name)))
    elif os.path.isfile(input_path):
        fasta_paths = [input_path]
    else:
        raise InputNotFound(input_path)

    if not fasta_paths:
        raise NoInputsFound(input_path)

    return [WorkUnit(x) for x in fasta_paths]

def select_newest_result(directory, extension=MSA_EXTENSION):
    """
    Return the most recently modified file in the given directory with the
    given extension, or None if there aren't any.

    The search tool doesn't promise to name its output after the input file,
    and a directory reused from an interrupted run may hold stale results as
    well as fresh ones.  The newest file is taken to be the one that was just
    produced.  Files with the same modification time are ordered by name,
    descending, so the choice is always deterministic.
    """
    candidates = glob.glob(os.path.join(directory, '*' + extension))
    candidates = [x for x in candidates if os.path.isfile(x)]

    if not candidates:
        return None

    newest_first = lambda x: (os.path.getmtime(x), os.path.basename(x))
    return max(candidates, key=newest_first)

def is_nonempty_file(path):
    return os.path.isfile(path) and os.path.getsize(path) > 0

def has_prediction_marker(directory):
    """
    Return true if the given directory contains a predicted structure or a
    ranking file.  Only the top level of the directory is examined.
    """
    if not os.path.isdir(directory):
        return False

    for pattern in PREDICTION_MARKERS:
        if glob.glob(os.path.join(directory, pattern)):
            return True

    return False


class PipelineError (IOError):

    def __init__(self, message):
        super(PipelineError, self).__init__(message)
        self.no_stack_trace = True


class EnvironmentNotReady (PipelineError):
    """
    Something the whole run depends on is missing.  These errors are checked
    for before any complex is processed, and abort the run.
    """
    pass


class CommandNotFound (EnvironmentNotReady):

    def __init__(self, command):
        self.command = command
        EnvironmentNotReady.__init__(self,
                "Missing command: '{0}' is not on your $PATH.".format(command))


class ExecutableNotFound (EnvironmentNotReady):

    def __init__(self, path, what='mmseqs'):
        self.path = path
        EnvironmentNotReady.__init__(self,
                "{0} not executable: '{1}'".format(what, path))


class DatabaseNotFound (EnvironmentNotReady):

    def __init__(self, path):
        self.path = path
        EnvironmentNotReady.__init__(self,
                "Database directory not found: '{0}'".format(path))


class InputNotFound (PipelineError):

    def __init__(self, path):
        self.path = path
        PipelineError.__init__(self,
                "Input path not found: '{0}'".format(path))


class NoInputsFound (PipelineError):

    def __init__(self, path):
        self.path = path
        PipelineError.__init__(self, """\
No FASTA files found in '{0}'.
Files must end in one of: {1}""".format(path, ' '.join(FASTA_EXTENSIONS)))


class UnitError (PipelineError):
    """
    Something went wrong while processing a single complex.  The complex is
    abandoned, no local files are deleted, and the run moves on.
    """
    pass


class SourceMissingOrEmpty (UnitError):

    def __init__(self, path):
        self.path = path
        UnitError.__init__(self, "Source missing/empty: '{0}'".format(path))


class SourceDirMissing (UnitError):

    def __init__(self, path):
        self.path = path
        UnitError.__init__(self, "Source dir not found: '{0}'".format(path))


class IntegrityMismatch (UnitError):

    def __init__(self, source, destination, source_digest, destination_digest):
        self.source = source
        self.destination = destination
        self.source_digest = source_digest
        self.destination_digest = destination_digest
        UnitError.__init__(self,
                "MD5 mismatch: '{0}' -> '{1}' ({2} vs {3})".format(
                    source, destination, source_digest, destination_digest))


class MirrorFailed (UnitError):

    def __init__(self, source, destination, reason):
        self.source = source
        self.destination = destination
        UnitError.__init__(self,
                "Failed to mirror '{0}' -> '{1}': {2}".format(
                    source, destination, reason))


class CleanupFailed (UnitError):

    def __init__(self, path, reason):
        self.path = path
        UnitError.__init__(self,
                "Archived, but couldn't delete '{0}': {1}".format(path, reason))


class NoSearchResultProduced (UnitError):

    def __init__(self, unit_id, directory):
        self.unit_id = unit_id
        self.directory = directory
        UnitError.__init__(self,
                "No valid a3m produced for '{0}' in '{1}'".format(
                    unit_id, directory))


class NoPredictionProduced (UnitError):

    def __init__(self, unit_id, directory):
        self.unit_id = unit_id
        self.directory = directory
        UnitError.__init__(self,
                "No structures or rankings produced for '{0}' in '{1}'".format(
                    unit_id, directory))


class ToolFailed (UnitError):

    def __init__(self, command, reason):
        self.command = command
        UnitError.__init__(self,
                "'{0}' failed: {1}".format(command[0], reason))

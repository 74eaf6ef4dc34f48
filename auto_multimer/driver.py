#!/usr/bin/env python3

"""\
Run every complex through the pipeline, one after another:

1. Make an MSA with the search tool, in a scratch directory.
2. Predict structures from the MSA, in another scratch directory.
3. Archive the MSA (checksum verified) and the predictions (mirrored), then
   delete the scratch directories.

Before any of this, the files already present in the archive and on scratch
are used to skip whatever was finished by a previous run.  Complexes are never
processed in parallel, so each scratch directory has exactly one owner.
"""

import os, shutil, logging, collections
from . import pipeline, resume, tools, archival

logger = logging.getLogger(__name__)


class UnitResult (collections.namedtuple('UnitResult', 'unit status error')):
    __slots__ = ()

    @property
    def ok(self):
        return self.error is None


class Driver (object):

    def __init__(self, settings, dry_run=False, fail_fast=False):
        self.settings = settings
        self.dry_run = dry_run
        self.fail_fast = fail_fast

    def scratch_for(self, unit):
        return pipeline.ScratchWorkspace(self.settings.local_root, unit.id)

    def archive_for(self, unit):
        return pipeline.ArchiveWorkspace(self.settings.archive_root, unit.id)

    def run(self, units):
        """
        Process the given work units in order and return a UnitResult for
        each one that was attempted.

        Missing tools or databases abort the run before anything is done.  A
        failure while processing one complex is logged and the run moves on to
        the next complex, unless fail_fast was requested.
        """

        if not self.dry_run:
            tools.check_environment(self.settings)

            scratch = pipeline.ScratchWorkspace(self.settings.local_root, None)
            os.makedirs(scratch.msa_work_root, exist_ok=True)
            os.makedirs(scratch.prediction_work_root, exist_ok=True)
            os.makedirs(self.settings.archive_root, exist_ok=True)

        results = []

        for unit in units:
            result = self.process(unit)
            results.append(result)

            if not result.ok and self.fail_fast:
                logger.error("Stopping early because '%s' failed.", unit.id)
                break

        return results

    def process(self, unit):
        scratch = self.scratch_for(unit)
        archive = self.archive_for(unit)

        logger.info("=" * 60)
        logger.info("Complex: %s", unit.id)
        logger.info("FASTA  : %s", unit.fasta_path)
        logger.info("NETDIR : %s", archive.focus_dir)

        decision = resume.decide(scratch, archive)
        unit.status = decision.status

        if decision.fully_archived:
            logger.info("Already archived (a3m + predictions).  Skip.")
            if not self.dry_run:
                self.purge_scratch(scratch)
            return UnitResult(unit, unit.status, None)

        if self.dry_run:
            self.describe(unit, scratch, decision)
            return UnitResult(unit, unit.status, None)

        # Any OSError (e.g. a full archive disk) only fails this complex.
        try:
            archive.make_dirs()
            scratch.make_dirs()

            self.search(unit, scratch, archive, decision)
            unit.status = pipeline.SEARCH_DONE

            self.predict(unit, scratch, archive, decision)
            unit.status = pipeline.PREDICT_DONE

            self.archive_results(unit, scratch, archive)
            unit.status = pipeline.ARCHIVED

        except (pipeline.UnitError, OSError) as error:
            logger.error("Giving up on '%s': %s", unit.id, error)
            return UnitResult(unit, unit.status, error)

        logger.info("Done: %s", unit.id)
        return UnitResult(unit, unit.status, None)

    def search(self, unit, scratch, archive, decision):
        if decision.local_msa:
            logger.info("Local a3m exists, skip search: %s", scratch.msa_path)
            return

        if decision.restore_msa:
            logger.info("Archived a3m exists, skip search: %s", archive.msa_path)
            shutil.copy2(archive.msa_path, scratch.msa_path)
            return

        logger.info("Running %s ...", self.settings.search_exe)
        command = tools.search_command(
                self.settings, unit.fasta_path, scratch.msa_dir)
        tools.run_tool(command, archive.search_log_path)

        # The search tool names its output after the records in the FASTA
        # file, not after the file itself.  Copy the newest MSA to the name
        # the rest of the pipeline expects.

        newest_msa = pipeline.select_newest_result(scratch.msa_dir)

        if newest_msa is not None and \
                os.path.abspath(newest_msa) != os.path.abspath(scratch.msa_path):
            logger.info("Using '%s' as %s", os.path.basename(newest_msa),
                    os.path.basename(scratch.msa_path))
            shutil.copyfile(newest_msa, scratch.msa_path)

        if not scratch.has_msa:
            raise pipeline.NoSearchResultProduced(unit.id, scratch.msa_dir)

    def predict(self, unit, scratch, archive, decision):
        if decision.local_predictions:
            logger.info("Local prediction exists, skip predict: %s",
                    scratch.prediction_dir)
            return

        logger.info("Running %s (%s) ...",
                self.settings.predict_exe, self.settings.model_type)
        command = tools.predict_command(
                self.settings, scratch.msa_path, scratch.prediction_dir)
        tools.run_tool(command, archive.predict_log_path)

        if not scratch.has_predictions:
            raise pipeline.NoPredictionProduced(unit.id, scratch.prediction_dir)

    def archive_results(self, unit, scratch, archive):
        handler = open_unit_log(archive.archive_log_path)

        try:
            logger.info("Archiving a3m with MD5 -> %s", archive.msa_path)
            digest = archival.transfer_file(scratch.msa_path, archive.msa_path)
            logger.info("Archived a3m to: %s (md5 %s)", archive.msa_path, digest)

            logger.info("Deleting local MSA work dir: %s", scratch.msa_dir)
            try:
                shutil.rmtree(scratch.msa_dir)
            except OSError as error:
                raise pipeline.CleanupFailed(scratch.msa_dir, error)

            logger.info("Archiving predictions dir -> %s", archive.prediction_dir)
            archival.transfer_directory(
                    scratch.prediction_dir, archive.prediction_dir,
                    rsync=self.settings.rsync)
            logger.info("Archived predictions to: %s", archive.prediction_dir)

        except (pipeline.UnitError, OSError) as error:
            logger.error("%s", error)
            raise

        finally:
            close_unit_log(handler)

    def purge_scratch(self, scratch):
        """
        Delete the scratch directories of a complex that is already archived.
        This is just tidying up, so failures are reported and then ignored.
        """
        for directory in scratch.io_dirs:
            if not os.path.exists(directory):
                continue
            logger.info("Removing stray local dir: %s", directory)
            try:
                shutil.rmtree(directory)
            except OSError as error:
                logger.warning("Couldn't remove '%s': %s", directory, error)

    def describe(self, unit, scratch, decision):
        """Log what would be done for the given complex, without doing it."""

        if decision.run_search:
            command = tools.search_command(
                    self.settings, unit.fasta_path, scratch.msa_dir)
            logger.info("Would run: %s", ' '.join(command))
        elif decision.restore_msa:
            logger.info("Would restore the archived a3m.")
        else:
            logger.info("Would reuse local a3m: %s", scratch.msa_path)

        if decision.run_predict:
            command = tools.predict_command(
                    self.settings, scratch.msa_path, scratch.prediction_dir)
            logger.info("Would run: %s", ' '.join(command))
        else:
            logger.info("Would reuse local predictions: %s",
                    scratch.prediction_dir)

        logger.info("Would archive to: %s", self.archive_for(unit).focus_dir)


def open_unit_log(path):
    """
    Start copying the pipeline's log messages into the given file.  Returns
    None (after a warning) if the file can't be opened.
    """
    try:
        handler = logging.FileHandler(path, mode='a')
    except OSError as error:
        logger.warning("Can't write to log '%s': %s", path, error)
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    handler.setLevel(logging.INFO)

    # The log file gets the progress messages even if the console doesn't.
    # The previous level is put back by close_unit_log().
    package_logger = logging.getLogger(__package__)
    handler.previous_level = package_logger.level
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)

    package_logger.addHandler(handler)
    return handler

def close_unit_log(handler):
    if handler is None:
        return
    package_logger = logging.getLogger(__package__)
    package_logger.removeHandler(handler)
    package_logger.setLevel(handler.previous_level)
    handler.close()

def configure_logging(verbose=False):
    logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
    )

def summarize(results):
    """Log a line for every complex that didn't make it to the archive."""

    failures = [x for x in results if not x.ok]

    logger.info("=" * 60)
    if not failures:
        logger.info("All complexes finished.")
    else:
        logger.error("%d of %d complex(es) failed:", len(failures), len(results))
        for result in failures:
            logger.error("    %s (%s): %s",
                    result.unit.id, result.status, result.error)

    return failures


LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

#!/usr/bin/env python3

"""\
Move results from the scratch disk to the archive.  The rule everything here
follows is that a local file is only ever deleted once its archived copy is
known to be good.  Single files are verified with an MD5 checksum; directories
of predictions are mirrored with rsync and trusted if rsync succeeds, because
checksumming every file in a large prediction tree isn't worth the time.
"""

import os, shutil, hashlib, logging, subprocess
from . import pipeline

logger = logging.getLogger(__name__)

def file_digest(path, chunk_size=1024 * 1024):
    """Return the MD5 checksum of the given file as a hex string."""
    md5 = hashlib.md5()
    with open(path, 'rb') as file:
        for chunk in iter(lambda: file.read(chunk_size), b''):
            md5.update(chunk)
    return md5.hexdigest()

def transfer_file(source, destination):
    """
    Copy a file to the archive, verify the copy, then delete the original.

    The destination must be the full path of the archived file, not just its
    directory.  Any existing file at that path is overwritten.  If the
    checksums of the two files don't match, IntegrityMismatch is raised and
    both files are left where they are so the problem can be investigated.
    The checksum of the archived file is returned on success.
    """

    if not pipeline.is_nonempty_file(source):
        raise pipeline.SourceMissingOrEmpty(source)

    os.makedirs(os.path.dirname(os.path.abspath(destination)), exist_ok=True)
    shutil.copy2(source, destination)

    source_digest = file_digest(source)
    destination_digest = file_digest(destination)

    if source_digest != destination_digest:
        raise pipeline.IntegrityMismatch(
                source, destination, source_digest, destination_digest)

    # Only delete the source once the checksums agree.

    try:
        os.remove(source)
    except OSError as error:
        raise pipeline.CleanupFailed(source, error)

    logger.debug("Verified '%s' (md5 %s)", destination, destination_digest)
    return destination_digest

def transfer_directory(source_dir, destination_dir, rsync='rsync'):
    """
    Make the destination an exact copy of the source directory, then delete
    the source.

    Files in the destination that aren't in the source (i.e. left over from an
    earlier, interrupted run) are removed.  If rsync can't be run or reports
    an error, MirrorFailed is raised and the source is left untouched.
    """

    if not os.path.isdir(source_dir):
        raise pipeline.SourceDirMissing(source_dir)

    os.makedirs(destination_dir, exist_ok=True)

    # The trailing slashes tell rsync to copy the contents of the source
    # directory, rather than the directory itself.

    rsync_command = [
            rsync, '-a', '--delete',
            os.path.join(source_dir, ''),
            os.path.join(destination_dir, ''),
    ]
    logger.debug("Running: %s", ' '.join(rsync_command))

    try:
        status = subprocess.call(rsync_command)
    except OSError as error:
        raise pipeline.MirrorFailed(source_dir, destination_dir, error)

    if status != 0:
        raise pipeline.MirrorFailed(source_dir, destination_dir,
                "rsync exited with status {0}".format(status))

    try:
        shutil.rmtree(source_dir)
    except OSError as error:
        raise pipeline.CleanupFailed(source_dir, error)

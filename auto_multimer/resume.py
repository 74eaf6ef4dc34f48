#!/usr/bin/env python3

"""\
Decide how much of the pipeline still needs to run for a complex.

No journal or state file is kept.  The presence of the files each step
produces is the only record of progress, so an interrupted run can simply be
started again: anything that finished is reused and anything that didn't is
redone.  The price is that a truncated file left behind by a killed process
could be mistaken for a finished one.
"""

import collections
from . import pipeline


class ResumeDecision (collections.namedtuple('ResumeDecision', [
        'fully_archived', 'local_msa', 'archived_msa', 'local_predictions'])):

    __slots__ = ()

    @property
    def run_search(self):
        return not (self.fully_archived or self.local_msa or self.archived_msa)

    @property
    def restore_msa(self):
        """
        True if the MSA only survives in the archive and must be copied back
        to scratch before predicting.
        """
        return not (self.fully_archived or self.local_msa) and self.archived_msa

    @property
    def run_predict(self):
        return not (self.fully_archived or self.local_predictions)

    @property
    def status(self):
        if self.fully_archived:
            return pipeline.ARCHIVED
        if not (self.local_msa or self.archived_msa):
            return pipeline.NOT_STARTED
        if self.local_predictions:
            return pipeline.PREDICT_DONE
        return pipeline.SEARCH_DONE


def decide(scratch, archive):
    """
    Inspect the given scratch and archive workspaces for one complex.

    A complex is fully archived if the archive holds a non-empty MSA and at
    least one predicted structure or ranking file; nothing more needs to be
    done for it.  Otherwise the search step can be skipped if a non-empty MSA
    exists either locally or in the archive, and the prediction step can be
    skipped if the local prediction directory already contains a structure or
    ranking file.
    """
    if archive.is_fully_archived:
        return ResumeDecision(True, False, True, False)

    return ResumeDecision(
            fully_archived=False,
            local_msa=scratch.has_msa,
            archived_msa=archive.has_msa,
            local_predictions=scratch.has_predictions,
    )

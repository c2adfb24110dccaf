"""
Saga-style helper for multi-step writes that cannot share one database
transaction (they interleave with mail delivery and QR generation).

Each Step pairs an action with the undo that reverses it. When a step fails,
the undos of the steps that already completed run in reverse order and the
original error is re-raised.
"""
import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

Step = namedtuple('Step', ['name', 'action', 'undo'])
Step.__new__.__defaults__ = (None,)


def run_with_compensation(steps, context=''):
    """
    Run ``steps`` in order and return the list of their results.

    A failing undo is logged at CRITICAL as a data-integrity incident; the
    remaining undos still run.
    """
    completed = []
    results = []
    for step in steps:
        try:
            results.append(step.action())
        except Exception as exc:
            logger.warning("%s: step '%s' failed (%s), rolling back %d step(s)",
                           context or 'compensated operation', step.name, exc, len(completed))
            _rollback(completed, context)
            raise
        completed.append(step)
    return results


def _rollback(completed, context):
    for step in reversed(completed):
        if step.undo is None:
            continue
        try:
            step.undo()
        except Exception:
            logger.critical(
                "DATA INTEGRITY: rollback of step '%s' failed during %s",
                step.name, context or 'compensated operation', exc_info=True,
            )

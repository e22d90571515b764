"""
Invoke tasks for response-envelope development.

    inv test              # all suites
    inv test --suite=unit
    inv test --suite=api --verbose --test-name="paging"
"""

import logging
import sys

from invoke import Collection, task

from response_envelope.config.logging import bootstrap_logging

bootstrap_logging()
logger = logging.getLogger(__name__)

SUITES = {
    'unit': ['tests/unit'],
    'api': ['tests/api'],
    'all': ['tests'],
}


@task(help={
    'suite': 'Test suite to run (unit, api, all)',
    'verbose': 'Enable verbose output',
    'test_name': 'Only run tests matching this keyword expression (pytest -k)',
})
def test(ctx, suite='all', verbose=False, test_name=None):
    """
    Run tests for a specific suite.
    """
    if suite not in SUITES:
        print(f"❌ Unknown suite '{suite}'. Available suites: {', '.join(SUITES)}", file=sys.stderr)
        sys.exit(1)

    cmd = [sys.executable, '-m', 'pytest', *SUITES[suite]]
    if verbose:
        cmd.append('-v')
    if test_name:
        cmd.extend(['-k', f'"{test_name}"'])

    logger.debug(f"Running: {' '.join(cmd)}")
    result = ctx.run(' '.join(cmd), warn=True, pty=False)
    if result.exited != 0:
        sys.exit(result.exited)


namespace = Collection(test)

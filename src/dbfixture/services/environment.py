"""Environment switches for dbfixture."""

import os
from typing import Mapping, Optional

from dbfixture import constants
from dbfixture.models import FixtureFlags

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def parse_flag(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in TRUTHY_VALUES


def read_flags(environ: Optional[Mapping[str, str]] = None) -> FixtureFlags:
    environ = os.environ if environ is None else environ
    return FixtureFlags(
        delete_image=parse_flag(environ.get(constants.ENV_DELETE_IMAGE)),
        force_refresh=parse_flag(environ.get(constants.ENV_FORCE_REFRESH)),
    )


class EnvironmentGate:
    """Tells whether the process runs under the test profile."""

    def __init__(self, variable: str = constants.ENV_PROFILE, environ: Optional[Mapping[str, str]] = None):
        self.variable = variable
        self.environ = os.environ if environ is None else environ

    def is_test(self) -> bool:
        value = self.environ.get(self.variable, "")
        return value.strip().lower() == constants.TEST_PROFILE


class StaticGate:
    """Gate with a fixed answer, used by the pytest plugin."""

    def __init__(self, is_test: bool = True):
        self._is_test = is_test

    def is_test(self) -> bool:
        return self._is_test

# -*- coding: utf-8 -*-
import logging
from importlib.metadata import PackageNotFoundError, version


try:
    __version__ = version("paramKernel")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

logging.getLogger(__name__).addHandler(logging.NullHandler())

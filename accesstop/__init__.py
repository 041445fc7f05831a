# coding: utf-8

__version__ = '0.1.0'

from ._common import *
from .load import load_formats

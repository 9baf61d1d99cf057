# Copyright (c) US Inc. All rights reserved.
"""Tuneforge - dataset validation, fine-tuning orchestration and generated output normalization"""

from .version import __version__, __product_name__

# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging

# Create logger object
global_logger = logging.getLogger("mdtranslate")
global_logger.setLevel(logging.DEBUG)
# Output to console (stderr, stdout carries the status line)
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"))
global_logger.addHandler(console_handler)


def set_verbose(verbose: bool):
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from mdtranslate.logger.logger import global_logger, set_verbose

__all__ = ["global_logger", "set_verbose"]
